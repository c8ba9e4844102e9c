"""Clock and one-shot scheduler abstractions used by the passcode registry.

All times are expressed in **milliseconds**: ``Clock.now()`` returns
milliseconds since the epoch and ``Scheduler.schedule_once`` takes a delay
in milliseconds.
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Protocol


class Clock(Protocol):
    def now(self) -> float:
        """Current time in milliseconds since the epoch."""


class Scheduler(Protocol):
    def schedule_once(self, delay_ms: float, callback: Callable[[], None]) -> Any:
        """Run *callback* once after *delay_ms*; return a cancellable handle."""

    def cancel(self, handle: Any) -> None:
        """Cancel a pending callback. No-op if it already ran or was cancelled."""


class SystemClock:
    """Wall-clock time from :func:`time.time`."""

    def now(self) -> float:
        return time.time() * 1000


class AsyncioScheduler:
    """Schedules callbacks on an asyncio event loop via ``call_later``.

    When no loop is given, the running loop at scheduling time is used, so
    the scheduler must be driven from inside a coroutine.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def schedule_once(
        self, delay_ms: float, callback: Callable[[], None]
    ) -> asyncio.TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(max(delay_ms, 0) / 1000, callback)

    def cancel(self, handle: asyncio.TimerHandle) -> None:
        handle.cancel()


class ThreadTimerScheduler:
    """Schedules callbacks on daemon :class:`threading.Timer` threads.

    Callbacks run on their own threads; callers must guard shared state.
    """

    def schedule_once(
        self, delay_ms: float, callback: Callable[[], None]
    ) -> threading.Timer:
        timer = threading.Timer(max(delay_ms, 0) / 1000, callback)
        timer.daemon = True
        timer.start()
        return timer

    def cancel(self, handle: threading.Timer) -> None:
        handle.cancel()


# ── Controllable time (tests and simulations) ────────────


class ManualClock:
    """A clock that only moves when told to."""

    def __init__(self, start_ms: float = 0) -> None:
        self._now = start_ms

    def now(self) -> float:
        return self._now

    def advance(self, ms: float) -> None:
        """Move time forward without firing any scheduled callback."""
        self._now += ms


@dataclass(order=True)
class ManualHandle:
    due_ms: float
    seq: int
    callback: Callable[[], None] = field(compare=False)
    cancelled: bool = field(default=False, compare=False)
    fired: bool = field(default=False, compare=False)


class ManualScheduler:
    """Deterministic scheduler paired with a :class:`ManualClock`.

    Nothing runs until :meth:`run_due` or :meth:`advance` is called; due
    callbacks then fire in due-time order (ties in scheduling order).
    """

    def __init__(self, clock: ManualClock) -> None:
        self._clock = clock
        self._queue: list[ManualHandle] = []
        self._seq = itertools.count()
        self._cancelled = 0

    def schedule_once(
        self, delay_ms: float, callback: Callable[[], None]
    ) -> ManualHandle:
        handle = ManualHandle(
            due_ms=self._clock.now() + max(delay_ms, 0),
            seq=next(self._seq),
            callback=callback,
        )
        heapq.heappush(self._queue, handle)
        return handle

    def cancel(self, handle: ManualHandle) -> None:
        if handle.cancelled or handle.fired:
            return
        handle.cancelled = True
        self._cancelled += 1
        # Drop dead handles once they make up most of the queue
        if self._cancelled * 2 > len(self._queue):
            self._queue = [h for h in self._queue if not h.cancelled]
            heapq.heapify(self._queue)
            self._cancelled = 0

    @property
    def pending(self) -> int:
        """Number of scheduled callbacks that have neither fired nor been cancelled."""
        return len(self._queue) - self._cancelled

    @property
    def queued(self) -> int:
        """Handles still held in the queue, cancelled ones included."""
        return len(self._queue)

    def run_due(self) -> int:
        """Fire every callback due at the current time; return how many ran."""
        fired = 0
        while self._queue and self._queue[0].due_ms <= self._clock.now():
            handle = heapq.heappop(self._queue)
            if handle.cancelled:
                self._cancelled -= 1
                continue
            handle.fired = True
            handle.callback()
            fired += 1
        return fired

    def advance(self, ms: float) -> int:
        """Move the clock forward by *ms*, firing callbacks as their time comes.

        The clock is stepped to each due time in turn, so a callback observes
        ``now()`` equal to the time it was scheduled for.
        """
        target = self._clock.now() + ms
        fired = 0
        while self._queue and self._queue[0].due_ms <= target:
            step = self._queue[0].due_ms - self._clock.now()
            if step > 0:
                self._clock.advance(step)
            fired += self.run_due()
        self._clock.advance(target - self._clock.now())
        return fired
