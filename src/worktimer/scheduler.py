"""Single-shot and periodic callback scheduling used by the session timer.

All callbacks run on one thread: the asyncio loop for `AsyncioScheduler`,
or whichever thread calls `ManualScheduler.advance`.
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
from typing import Callable, Optional, Protocol

Callback = Callable[[], None]


class TimerHandle(Protocol):
    @property
    def active(self) -> bool:
        ...

    def cancel(self) -> None:
        ...

    def remaining_ms(self) -> int:
        ...


class Scheduler(Protocol):
    def call_later(self, delay_ms: int, callback: Callback) -> TimerHandle:
        ...

    def call_every(self, interval_ms: int, callback: Callback) -> TimerHandle:
        ...


class _AsyncioTimerHandle:
    def __init__(
        self,
        loop: asyncio.AbstractEventLoop,
        delay_ms: int,
        callback: Callback,
        *,
        repeat: bool,
    ):
        self._loop = loop
        self._delay_seconds = max(0, int(delay_ms)) / 1000.0
        self._callback = callback
        self._repeat = repeat
        self._handle: Optional[asyncio.TimerHandle] = loop.call_later(
            self._delay_seconds,
            self._fire,
        )

    @property
    def active(self) -> bool:
        return self._handle is not None

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def remaining_ms(self) -> int:
        if self._handle is None:
            return 0
        remaining = (self._handle.when() - self._loop.time()) * 1000.0
        return max(0, int(round(remaining)))

    def _fire(self) -> None:
        # Re-arm first so the callback may cancel the next occurrence.
        if self._repeat:
            self._handle = self._loop.call_later(self._delay_seconds, self._fire)
        else:
            self._handle = None
        self._callback()


class AsyncioScheduler:
    """Scheduler backed by `loop.call_later` on a single asyncio loop."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop or asyncio.get_running_loop()

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        return self._loop

    def call_later(self, delay_ms: int, callback: Callback) -> TimerHandle:
        return _AsyncioTimerHandle(self._loop, delay_ms, callback, repeat=False)

    def call_every(self, interval_ms: int, callback: Callback) -> TimerHandle:
        if interval_ms <= 0:
            raise ValueError("interval_ms must be greater than zero")
        return _AsyncioTimerHandle(self._loop, interval_ms, callback, repeat=True)


class _ManualTimerHandle:
    def __init__(
        self,
        scheduler: "ManualScheduler",
        due_ms: int,
        interval_ms: int,
        callback: Callback,
        *,
        repeat: bool,
    ):
        self._scheduler = scheduler
        self.due_ms = due_ms
        self.interval_ms = interval_ms
        self.callback = callback
        self.repeat = repeat
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def cancel(self) -> None:
        self._active = False

    def remaining_ms(self) -> int:
        if not self._active:
            return 0
        return max(0, self.due_ms - self._scheduler.now_ms())


class ManualScheduler:
    """Virtual-clock scheduler; time only moves when `advance` is called."""

    def __init__(self, start_ms: int = 0):
        self._now_ms = int(start_ms)
        self._queue: list[tuple[int, int, _ManualTimerHandle]] = []
        self._sequence = itertools.count()

    def now_ms(self) -> int:
        return self._now_ms

    def call_later(self, delay_ms: int, callback: Callback) -> TimerHandle:
        handle = _ManualTimerHandle(
            self,
            self._now_ms + max(0, int(delay_ms)),
            max(0, int(delay_ms)),
            callback,
            repeat=False,
        )
        self._push(handle)
        return handle

    def call_every(self, interval_ms: int, callback: Callback) -> TimerHandle:
        if interval_ms <= 0:
            raise ValueError("interval_ms must be greater than zero")
        handle = _ManualTimerHandle(
            self,
            self._now_ms + int(interval_ms),
            int(interval_ms),
            callback,
            repeat=True,
        )
        self._push(handle)
        return handle

    def pending(self) -> int:
        return sum(1 for _, _, handle in self._queue if handle.active)

    def advance(self, delta_ms: int) -> None:
        """Move the clock forward, firing due callbacks in time order."""
        if delta_ms < 0:
            raise ValueError("delta_ms must not be negative")
        target = self._now_ms + int(delta_ms)
        while self._queue:
            due_ms, _, handle = self._queue[0]
            if not handle.active or handle.due_ms != due_ms:
                heapq.heappop(self._queue)
                continue
            if due_ms > target:
                break
            heapq.heappop(self._queue)
            self._now_ms = due_ms
            if handle.repeat:
                handle.due_ms = due_ms + handle.interval_ms
                self._push(handle)
            else:
                handle.cancel()
            handle.callback()
        self._now_ms = target

    def _push(self, handle: _ManualTimerHandle) -> None:
        heapq.heappush(self._queue, (handle.due_ms, next(self._sequence), handle))
