"""
Cooperative scheduling for the Lineup Overlay engine.

All engine mutation happens on one event loop. Timers (debounce, click
delay, feed interval) and blocking I/O (feed requests, HTTP sinks) go
through a ``Scheduler`` so the engine runs the same way under asyncio and
under the deterministic ``ManualScheduler`` used in tests.
"""
from __future__ import annotations

import asyncio
import heapq
import itertools
from typing import Any, Callable, List, Optional, Protocol, Tuple

from ..utils.logging_utils import setup_logger
from ..utils.time_utils import now_ts

logger = setup_logger(__name__)

DoneCallback = Callable[[Any], None]
ErrorCallback = Callable[[BaseException], None]


class TimerHandle:
    """Cancellable reference to a scheduled callback."""

    def __init__(self, due: float, callback: Callable[[], None], cancel_hook: Optional[Callable[[], None]] = None):
        self.due = due
        self._callback = callback
        self._cancel_hook = cancel_hook
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        """Cancel the callback; safe to call more than once."""
        if self.cancelled or self.fired:
            return
        self.cancelled = True
        if self._cancel_hook is not None:
            self._cancel_hook()

    @property
    def pending(self) -> bool:
        return not self.cancelled and not self.fired

    def _run(self) -> None:
        if not self.pending:
            return
        self.fired = True
        self._callback()


class Scheduler(Protocol):
    def now(self) -> float: ...

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...

    def run_blocking(self, func: Callable[[], Any], on_done: DoneCallback, on_error: ErrorCallback) -> None: ...


class ManualScheduler:
    """
    Deterministic scheduler driven by an explicit virtual clock.

    ``advance`` runs every callback that falls due, in due-time order and
    then insertion order. Blocking work runs inline.
    """

    def __init__(self, start: float = 0.0):
        self._time = start
        self._queue: List[Tuple[float, int, TimerHandle]] = []
        self._counter = itertools.count()

    def now(self) -> float:
        return self._time

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        handle = TimerHandle(self._time + max(0.0, delay), callback)
        heapq.heappush(self._queue, (handle.due, next(self._counter), handle))
        return handle

    def run_blocking(self, func: Callable[[], Any], on_done: DoneCallback, on_error: ErrorCallback) -> None:
        try:
            result = func()
        except Exception as exc:
            on_error(exc)
            return
        on_done(result)

    def advance(self, seconds: float) -> int:
        """Move the clock forward, firing due callbacks; returns how many fired."""
        target = self._time + seconds
        fired = 0
        while self._queue and self._queue[0][0] <= target:
            due, _, handle = heapq.heappop(self._queue)
            self._time = max(self._time, due)
            if handle.pending:
                handle._run()
                fired += 1
        self._time = target
        return fired

    def run_pending(self) -> int:
        """Fire callbacks that are already due without moving the clock."""
        return self.advance(0.0)

    @property
    def pending_count(self) -> int:
        return sum(1 for _, _, handle in self._queue if handle.pending)


class AsyncioScheduler:
    """Scheduler backed by an asyncio event loop."""

    def __init__(self, loop: asyncio.AbstractEventLoop):
        self.loop = loop

    def now(self) -> float:
        return now_ts()

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        handle: TimerHandle

        def _fire() -> None:
            handle._run()

        loop_handle = self.loop.call_later(max(0.0, delay), _fire)
        handle = TimerHandle(self.now() + delay, callback, cancel_hook=loop_handle.cancel)
        return handle

    def run_blocking(self, func: Callable[[], Any], on_done: DoneCallback, on_error: ErrorCallback) -> None:
        future = self.loop.run_in_executor(None, func)

        def _deliver(fut: "asyncio.Future") -> None:
            if fut.cancelled():
                logger.debug("Blocking call cancelled before completion")
                return
            exc = fut.exception()
            if exc is not None:
                on_error(exc)
            else:
                on_done(fut.result())

        future.add_done_callback(_deliver)
