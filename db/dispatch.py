"""
db/dispatch.py
--------------
Strategies for delivering background-query results to the "main" context.

QueryExecutor never calls success/error callbacks directly from a worker
thread; it hands them to a Dispatcher, which decides where they run.
"""

import asyncio
import queue
import threading
from typing import Any, Callable, Optional, Protocol

from utils.logger import get_logger

logger = get_logger(__name__)


class Dispatcher(Protocol):
    def dispatch(self, callback: Callable[..., Any], *args: Any) -> None:
        ...


def _run_callback(callback: Callable[..., Any], args: tuple) -> None:
    try:
        callback(*args)
    except Exception:
        logger.exception(f"Callback {getattr(callback, '__name__', callback)!r} raised")


class ImmediateDispatcher:
    """Runs callbacks right away on whichever thread finished the work."""

    def dispatch(self, callback: Callable[..., Any], *args: Any) -> None:
        _run_callback(callback, args)


class QueueDispatcher:
    """
    Thread-safe FIFO of callbacks drained by one owning thread.

    This is the event-loop model of desktop toolkits: workers enqueue,
    and the main thread calls ``run_pending()`` from its loop (or parks in
    ``run_forever()``) so every callback runs on that thread.
    """

    def __init__(self):
        self._queue: "queue.Queue[tuple[Callable[..., Any], tuple]]" = queue.Queue()
        self.thread_ident: Optional[int] = None

    def dispatch(self, callback: Callable[..., Any], *args: Any) -> None:
        self._queue.put((callback, args))

    def run_pending(self, timeout: Optional[float] = None) -> int:
        """
        Run every queued callback on the calling thread.

        Args:
            timeout: Seconds to wait for the first callback when the queue
                is empty. None returns immediately.

        Returns:
            The number of callbacks run.
        """
        self.thread_ident = threading.get_ident()
        ran = 0
        if timeout is not None:
            try:
                callback, args = self._queue.get(timeout=timeout)
            except queue.Empty:
                return 0
            _run_callback(callback, args)
            ran += 1
        while True:
            try:
                callback, args = self._queue.get_nowait()
            except queue.Empty:
                return ran
            _run_callback(callback, args)
            ran += 1

    def run_forever(self, stop: threading.Event, poll_interval: float = 0.1) -> None:
        """Drain callbacks until ``stop`` is set, then flush what is left."""
        while not stop.is_set():
            self.run_pending(timeout=poll_interval)
        self.run_pending()

    @property
    def pending(self) -> int:
        return self._queue.qsize()


class AsyncioDispatcher:
    """Delivers callbacks on an asyncio event loop via ``call_soon_threadsafe``."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self.loop = loop or asyncio.get_running_loop()

    def dispatch(self, callback: Callable[..., Any], *args: Any) -> None:
        self.loop.call_soon_threadsafe(_run_callback, callback, args)
