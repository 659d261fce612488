"""
Runtimes that host the engine's event loop.

The engine is single-threaded: every mutation runs on one event loop.
``EngineRuntime`` owns an asyncio loop on a background thread and lets
request handlers submit work to it. ``InlineRuntime`` runs work directly
and is paired with ``ManualScheduler`` in tests.
"""
import asyncio
import concurrent.futures
import threading
from typing import Any, Callable, Optional

from ..services.scheduler import AsyncioScheduler, ManualScheduler
from ..utils.logging_utils import setup_logger

logger = setup_logger(__name__)

DEFAULT_CALL_TIMEOUT = 15.0


class EngineRuntime:
    """Runs an asyncio loop in a dedicated thread."""

    def __init__(self):
        self.loop = asyncio.new_event_loop()
        self.scheduler = AsyncioScheduler(self.loop)
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(target=self._run, name="overlay-engine", daemon=True)
        self._thread.start()

    def _run(self) -> None:
        asyncio.set_event_loop(self.loop)
        self.loop.run_forever()

    def call(self, fn: Callable[..., Any], *args: Any, timeout: float = DEFAULT_CALL_TIMEOUT, **kwargs: Any) -> Any:
        """Run ``fn`` on the engine loop and wait for its result."""
        future: concurrent.futures.Future = concurrent.futures.Future()

        def _invoke() -> None:
            try:
                future.set_result(fn(*args, **kwargs))
            except Exception as exc:
                future.set_exception(exc)

        self.loop.call_soon_threadsafe(_invoke)
        return future.result(timeout)

    def call_with_callback(self, starter: Callable[[Callable[[Any], None]], None],
                           timeout: float = DEFAULT_CALL_TIMEOUT,
                           on_timeout: Optional[Callable[[], Any]] = None) -> Any:
        """
        Start callback-style work on the loop and wait until it reports back.

        ``starter`` receives a ``done`` function to call with the result. When
        the wait times out, ``on_timeout`` runs on the loop so the work can be
        abandoned there; a result delivered before it ran is still returned.

        Raises:
            concurrent.futures.TimeoutError: If no result arrived in time
        """
        future: concurrent.futures.Future = concurrent.futures.Future()

        def _invoke() -> None:
            try:
                starter(future.set_result)
            except Exception as exc:
                future.set_exception(exc)

        self.loop.call_soon_threadsafe(_invoke)
        try:
            return future.result(timeout)
        except concurrent.futures.TimeoutError:
            if on_timeout is None:
                raise
            self.call(on_timeout)
            if future.done():
                return future.result()
            raise

    def stop(self) -> None:
        if self._thread is None:
            return
        self.loop.call_soon_threadsafe(self.loop.stop)
        self._thread.join(timeout=5)
        self._thread = None
        logger.info("Engine loop stopped")


class InlineRuntime:
    """Runs work immediately on the calling thread."""

    def __init__(self, scheduler: Optional[ManualScheduler] = None):
        self.scheduler = scheduler or ManualScheduler()

    def start(self) -> None:
        pass

    def call(self, fn: Callable[..., Any], *args: Any, timeout: float = DEFAULT_CALL_TIMEOUT, **kwargs: Any) -> Any:
        return fn(*args, **kwargs)

    def call_with_callback(self, starter: Callable[[Callable[[Any], None]], None],
                           timeout: float = DEFAULT_CALL_TIMEOUT,
                           on_timeout: Optional[Callable[[], Any]] = None) -> Any:
        results = []
        starter(results.append)
        if not results and on_timeout is not None:
            on_timeout()
        if not results:
            raise TimeoutError("Callback-style call did not complete inline")
        return results[0]

    def stop(self) -> None:
        pass
