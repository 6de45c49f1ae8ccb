# memory_game/scheduling.py
from __future__ import annotations
import heapq
import itertools
import logging
import threading
from datetime import datetime, timedelta
from typing import Callable, List, Optional, Tuple

from .models import utc_now

logger = logging.getLogger(__name__)

Callback = Callable[[], None]


class _TimerHandle:
    def __init__(self, timer: threading.Timer):
        self._timer = timer

    def cancel(self) -> None:
        self._timer.cancel()


class ThreadingScheduler:
    """Wall-clock scheduler; callbacks run on daemon timer threads."""

    def now(self) -> datetime:
        return utc_now()

    def call_later(self, delay: float, callback: Callback) -> _TimerHandle:
        timer = threading.Timer(max(0.0, delay), callback)
        timer.daemon = True
        timer.start()
        return _TimerHandle(timer)


class _ManualHandle:
    def __init__(self) -> None:
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """
    Virtual clock for tests and headless runs.

    Nothing fires until advance() moves the clock past a callback's due time.
    """

    def __init__(self, start: Optional[datetime] = None):
        self._now = start or utc_now()
        self._queue: List[Tuple[datetime, int, _ManualHandle, Callback]] = []
        self._seq = itertools.count()

    def now(self) -> datetime:
        return self._now

    def call_later(self, delay: float, callback: Callback) -> _ManualHandle:
        handle = _ManualHandle()
        due = self._now + timedelta(seconds=max(0.0, delay))
        heapq.heappush(self._queue, (due, next(self._seq), handle, callback))
        return handle

    @property
    def pending(self) -> int:
        return sum(1 for _, _, h, _ in self._queue if not h.cancelled)

    def advance(self, seconds: float) -> None:
        target = self._now + timedelta(seconds=seconds)
        while self._queue and self._queue[0][0] <= target:
            due, _, handle, callback = heapq.heappop(self._queue)
            self._now = due
            if not handle.cancelled:
                callback()
        self._now = target


class GameTimer:
    """
    Elapsed-seconds counter ticking once per interval while active.

    stop() cancels the outstanding tick, so no tick lands after it returns.
    """

    def __init__(self, scheduler, interval: float = 1.0):
        self.scheduler = scheduler
        self.interval = interval
        self.elapsed = 0
        self.active = False
        self._handle = None
        self._origin: Optional[datetime] = None
        self._generation = 0
        self._lock = threading.RLock()

    def start(self) -> None:
        with self._lock:
            self._cancel()
            self._generation += 1
            self.elapsed = 0
            self.active = True
            self._origin = self.scheduler.now()
            self._schedule(self._generation)

    def stop(self) -> None:
        with self._lock:
            self._cancel()
            self._generation += 1
            self.active = False

    def _cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _schedule(self, generation: int) -> None:
        # next tick is due at origin + (elapsed + 1) * interval, so late ticks do not drift
        due = self._origin + timedelta(seconds=self.interval * (self.elapsed + 1))
        delay = max(0.0, (due - self.scheduler.now()).total_seconds())
        self._handle = self.scheduler.call_later(delay, lambda: self._tick(generation))

    def _tick(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation or not self.active:
                logger.debug("dropping stale timer tick")
                return
            self.elapsed += 1
            self._schedule(generation)
