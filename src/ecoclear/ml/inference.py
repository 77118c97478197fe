"""Bounded worker pool for blocking model work.

    request -> asyncio.Semaphore(max_concurrent) -> ThreadPoolExecutor -> onnxruntime

Model loading and per-image classification both run here, so neither a
download nor a forward pass stalls the event loop. A classification that
cannot get a slot within ``timeout`` seconds gets TimeoutError; model loads
wait as long as it takes.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, TypeVar

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable

    from ecoclear.config import Settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_QUEUE_TIMEOUT: float = 5.0


class InferencePool:
    """Runs synchronous callables on worker threads, at most ``max_concurrent`` at once."""

    def __init__(self, settings: Settings, timeout: float = DEFAULT_QUEUE_TIMEOUT) -> None:
        workers = settings.max_concurrent
        self._timeout = timeout
        self._slots = asyncio.Semaphore(workers)
        self._workers = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="ecoclear-inference")
        self._stats_lock = threading.Lock()
        self._running = 0
        self._waiting = 0

    def _bump(self, running: int = 0, waiting: int = 0) -> None:
        with self._stats_lock:
            self._running += running
            self._waiting += waiting

    @asynccontextmanager
    async def _slot(self, timeout: float | None) -> AsyncIterator[None]:
        self._bump(waiting=1)
        try:
            await asyncio.wait_for(self._slots.acquire(), timeout=timeout)
        except TimeoutError:
            logger.warning("No inference slot free after %.1fs", timeout)
            raise
        finally:
            self._bump(waiting=-1)

        self._bump(running=1)
        try:
            yield
        finally:
            self._slots.release()
            self._bump(running=-1)

    async def run(self, func: Callable[..., T], *args: object) -> T:
        """Call ``func(*args)`` on a worker thread once a slot is free.

        Raises:
            TimeoutError: No slot became free within the queue timeout.
        """
        async with self._slot(self._timeout):
            return await asyncio.get_running_loop().run_in_executor(self._workers, func, *args)

    async def run_untimed(self, func: Callable[..., T], *args: object) -> T:
        """Like ``run``, but waits for a slot however long the queue is."""
        async with self._slot(None):
            return await asyncio.get_running_loop().run_in_executor(self._workers, func, *args)

    @property
    def active_count(self) -> int:
        with self._stats_lock:
            return self._running

    @property
    def queue_depth(self) -> int:
        """Callers currently waiting for a slot."""
        with self._stats_lock:
            return self._waiting

    def shutdown(self) -> None:
        self._workers.shutdown(wait=True)
