from __future__ import annotations

from dataclasses import dataclass

import pytest

from mindgames.clock import FrameScheduler, RealClock


@dataclass
class FakeClock:
    t: float = 0.0

    def now(self) -> float:
        return self.t

    def advance(self, dt: float) -> None:
        self.t += float(dt)


def test_callbacks_fire_in_due_order_with_ties_in_scheduling_order() -> None:
    clock = FakeClock()
    sched = FrameScheduler(clock)
    fired: list[str] = []

    sched.after(2.0, lambda: fired.append("late"))
    sched.after(1.0, lambda: fired.append("a"))
    sched.after(1.0, lambda: fired.append("b"))

    clock.advance(0.5)
    assert sched.update() == 0
    assert fired == []

    clock.advance(0.5)
    assert sched.update() == 2
    assert fired == ["a", "b"]

    clock.advance(5.0)
    assert sched.update() == 1
    assert fired == ["a", "b", "late"]
    assert sched.pending() == 0


def test_cancelled_callback_never_runs() -> None:
    clock = FakeClock()
    sched = FrameScheduler(clock)
    fired: list[int] = []

    handle = sched.after(1.0, lambda: fired.append(1))
    handle.cancel()
    handle.cancel()
    assert handle.cancelled is True
    assert sched.pending() == 0

    clock.advance(2.0)
    assert sched.update() == 0
    assert fired == []


def test_callback_may_schedule_a_due_timer_in_the_same_update() -> None:
    clock = FakeClock()
    sched = FrameScheduler(clock)
    fired: list[str] = []

    def first() -> None:
        fired.append("first")
        sched.after(0.0, lambda: fired.append("now"))
        sched.after(1.0, lambda: fired.append("later"))

    sched.after(1.0, first)
    clock.advance(1.0)
    assert sched.update() == 2
    assert fired == ["first", "now"]
    assert sched.pending() == 1


def test_remaining_and_cancel_all() -> None:
    clock = FakeClock(t=10.0)
    sched = FrameScheduler(clock)
    handle = sched.after(3.0, lambda: None)
    sched.after(4.0, lambda: None)

    assert handle.due_at_s == pytest.approx(13.0)
    clock.advance(1.0)
    assert handle.remaining_s(clock.now()) == pytest.approx(2.0)
    assert handle.remaining_s(100.0) == 0.0

    sched.cancel_all()
    assert sched.pending() == 0
    assert handle.cancelled is True


def test_negative_delay_is_rejected() -> None:
    sched = FrameScheduler(FakeClock())
    with pytest.raises(ValueError):
        sched.after(-0.1, lambda: None)


def test_real_clock_is_monotonic() -> None:
    clock = RealClock()
    a = clock.now()
    b = clock.now()
    assert b >= a
