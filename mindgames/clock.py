from __future__ import annotations

import heapq
import itertools
import time
from collections.abc import Callable
from typing import Protocol


class Clock(Protocol):
    """Source of monotonic seconds.

    Sessions and the scheduler read time only through this, never directly.
    """

    def now(self) -> float: ...


class RealClock:
    def now(self) -> float:
        return time.monotonic()


class TimerHandle:
    """Cancellation handle for a callback registered with a scheduler."""

    __slots__ = ("_due_at_s", "_callback", "_cancelled")

    def __init__(self, due_at_s: float, callback: Callable[[], None]) -> None:
        self._due_at_s = float(due_at_s)
        self._callback = callback
        self._cancelled = False

    @property
    def due_at_s(self) -> float:
        return self._due_at_s

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True

    def remaining_s(self, now: float) -> float:
        return max(0.0, self._due_at_s - now)

    def _fire(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        self._callback()


class Scheduler(Protocol):
    def after(self, delay_s: float, callback: Callable[[], None]) -> TimerHandle: ...


class FrameScheduler:
    """Polled scheduler driven by the host's frame loop.

    Nothing runs on its own: the host calls :meth:`update` once per frame and
    every due, uncancelled callback fires in due-time order. Tests drive it
    with a fake clock and explicit ``update()`` calls.
    """

    def __init__(self, clock: Clock) -> None:
        self._clock = clock
        self._queue: list[tuple[float, int, TimerHandle]] = []
        self._seq = itertools.count()

    def after(self, delay_s: float, callback: Callable[[], None]) -> TimerHandle:
        if delay_s < 0:
            raise ValueError("delay_s must be >= 0")
        handle = TimerHandle(self._clock.now() + float(delay_s), callback)
        heapq.heappush(self._queue, (handle.due_at_s, next(self._seq), handle))
        return handle

    def update(self) -> int:
        """Fire every due callback. Returns the number fired."""

        fired = 0
        while self._queue:
            due_at_s, _, handle = self._queue[0]
            if handle.cancelled:
                heapq.heappop(self._queue)
                continue
            if due_at_s > self._clock.now():
                break
            heapq.heappop(self._queue)
            handle._fire()
            fired += 1
        return fired

    def pending(self) -> int:
        return sum(1 for _, _, h in self._queue if not h.cancelled)

    def cancel_all(self) -> None:
        for _, _, handle in self._queue:
            handle.cancel()
        self._queue.clear()
