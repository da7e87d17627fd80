from __future__ import annotations

import asyncio
import heapq
import itertools
from dataclasses import dataclass, field
from typing import Callable, Protocol

import structlog

log = structlog.get_logger()

Callback = Callable[[], None]


class TimerHandle(Protocol):
    def cancel(self) -> None:
        ...


class Scheduler(Protocol):
    """
    Cancellable delayed callbacks, all run on one thread of execution.
    """

    def call_later(self, delay_ms: int, callback: Callback) -> TimerHandle:
        ...


class AsyncioScheduler:
    """
    Production scheduler backed by the running asyncio loop.

    The loop is resolved lazily so the scheduler can be built before the
    ASGI server starts its loop.
    """

    def __init__(self, *, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def call_later(self, delay_ms: int, callback: Callback) -> TimerHandle:
        if delay_ms < 0:
            raise ValueError("delay_ms must be >= 0")
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(delay_ms / 1000.0, callback)


@dataclass(order=True, slots=True)
class _ManualTimer:
    due_ms: int
    seq: int
    callback: Callback = field(compare=False)
    cancelled: bool = field(default=False, compare=False)

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """
    Virtual-clock scheduler for tests and offline replays.

    Nothing fires until advance() is called. Timers due at the same instant
    fire in scheduling order; callbacks may schedule further timers, which
    fire within the same advance() if they fall inside the window.
    """

    def __init__(self) -> None:
        self._now_ms = 0
        self._counter = itertools.count()
        self._queue: list[_ManualTimer] = []

    @property
    def now_ms(self) -> int:
        return self._now_ms

    @property
    def pending(self) -> int:
        return sum(1 for t in self._queue if not t.cancelled)

    def call_later(self, delay_ms: int, callback: Callback) -> TimerHandle:
        if delay_ms < 0:
            raise ValueError("delay_ms must be >= 0")
        timer = _ManualTimer(due_ms=self._now_ms + delay_ms, seq=next(self._counter), callback=callback)
        heapq.heappush(self._queue, timer)
        return timer

    def advance(self, ms: int) -> int:
        """
        Move the clock forward by `ms` and fire everything due. Returns the
        number of callbacks fired.
        """
        if ms < 0:
            raise ValueError("ms must be >= 0")
        target = self._now_ms + ms
        fired = 0
        while self._queue and self._queue[0].due_ms <= target:
            timer = heapq.heappop(self._queue)
            if timer.cancelled:
                continue
            self._now_ms = timer.due_ms
            timer.callback()
            fired += 1
        self._now_ms = target
        return fired

    def run_until_idle(self, *, max_ms: int = 600_000) -> int:
        """
        Fire timers until none remain (or the clock passes max_ms).
        """
        fired = 0
        limit = self._now_ms + max_ms
        while self.pending:
            nxt = min(t.due_ms for t in self._queue if not t.cancelled)
            if nxt > limit:
                log.warning("scheduler.idle_limit_reached", now_ms=self._now_ms, next_due_ms=nxt)
                break
            fired += self.advance(nxt - self._now_ms)
        return fired
