"""Test package for the mindgames engines.

The engines are headless: every test drives a session with a fake clock and
pumps the frame scheduler by hand, so no window or real time is involved.
To run these tests, execute ``pytest`` from the project root.
"""
