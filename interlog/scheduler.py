"""Timer primitives and the two periodic tasks driving the log.

Both tasks run as callbacks on the host's event loop: the idle tick flushes
pending entries once the host has been idle long enough, and the retention
tick trims the output. They are started and cancelled together.
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
from typing import Callable, List, Optional, Tuple

from .utils import setup_logger


logger = setup_logger("interlog.scheduler")


def _run_guarded(callback: Callable[[], None]) -> None:
    try:
        callback()
    except Exception:
        logger.exception("Timer callback %r failed", callback)


class RepeatingCall:
    def __init__(self, loop: asyncio.AbstractEventLoop, interval: float, callback: Callable[[], None]) -> None:
        self.loop = loop
        self.interval = interval
        self.callback = callback
        self._handle: Optional[asyncio.TimerHandle] = None
        self._cancelled = False
        self._schedule()

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def _schedule(self) -> None:
        self._handle = self.loop.call_later(self.interval, self._fire)

    def _fire(self) -> None:
        if self._cancelled:
            return
        _run_guarded(self.callback)
        if not self._cancelled:
            self._schedule()

    def cancel(self) -> None:
        self._cancelled = True
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None


class AsyncioTimers:
    """Repeating timers on an asyncio event loop."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        self.loop = loop

    def every(self, interval: float, callback: Callable[[], None]) -> RepeatingCall:
        loop = self.loop or asyncio.get_running_loop()
        return RepeatingCall(loop, interval, callback)


class ManualCall:
    def __init__(self, interval: float, callback: Callable[[], None]) -> None:
        self.interval = interval
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualTimers:
    """Timers driven by explicit ``advance()`` calls instead of a real clock."""

    def __init__(self, start: float = 0.0) -> None:
        self.now = start
        self._queue: List[Tuple[float, int, ManualCall]] = []
        self._seq = itertools.count()

    def every(self, interval: float, callback: Callable[[], None]) -> ManualCall:
        call = ManualCall(interval, callback)
        heapq.heappush(self._queue, (self.now + interval, next(self._seq), call))
        return call

    def clock(self) -> float:
        return self.now

    def advance(self, seconds: float) -> int:
        """Move the clock forward, firing due callbacks in order. Returns the number fired."""
        target = self.now + seconds
        fired = 0
        while self._queue and self._queue[0][0] <= target:
            due, _seq, call = heapq.heappop(self._queue)
            if call.cancelled:
                continue
            self.now = due
            _run_guarded(call.callback)
            fired += 1
            if not call.cancelled:
                heapq.heappush(self._queue, (due + call.interval, next(self._seq), call))
        self.now = target
        return fired

    def pending(self) -> int:
        return sum(1 for _due, _seq, call in self._queue if not call.cancelled)


class Scheduler:
    def __init__(
        self,
        timers,
        idle_threshold: float,
        retention_interval: float,
        is_idle: Callable[[float], bool],
        on_idle: Callable[[], None],
        on_retention: Callable[[], None],
    ) -> None:
        self.timers = timers
        self.idle_threshold = idle_threshold
        self.retention_interval = retention_interval
        self.is_idle = is_idle
        self.on_idle = on_idle
        self.on_retention = on_retention
        self._idle_call = None
        self._retention_call = None

    @property
    def running(self) -> bool:
        return self._idle_call is not None

    def start(self) -> None:
        if self.running:
            return
        self._idle_call = self.timers.every(self.idle_threshold, self._idle_tick)
        self._retention_call = self.timers.every(self.retention_interval, self.on_retention)

    def stop(self) -> None:
        for call in (self._idle_call, self._retention_call):
            if call is not None:
                call.cancel()
        self._idle_call = None
        self._retention_call = None

    def _idle_tick(self) -> None:
        if self.is_idle(self.idle_threshold):
            self.on_idle()
