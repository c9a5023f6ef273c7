"""Background event loop for consuming a pipeline from synchronous code.

The pipeline, its sessions and their in-flight queries all live on the
runner's loop thread; the calling thread only ever blocks on one result at
a time.

Usage:
    with SyncRunner() as runner:
        for result in runner.results(pipeline, limit=10):
            print(result)
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import logging
import threading
from collections.abc import Coroutine, Iterator
from typing import TYPE_CHECKING, Any, TypeVar

from polystreams.scheduling.merger import Subscription
from polystreams.scheduling.models import QueryResult

if TYPE_CHECKING:
    from polystreams.scheduling.pipeline import PollingPipeline

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_JOIN_TIMEOUT = 5.0


class SyncRunner:
    """Owns one event loop thread and the pipelines driven on it.

    The loop starts lazily on first use (or on ``__enter__``) and is stopped
    by ``close``. A closed runner can be started again.

    Args:
        name: Thread name, visible in thread dumps.
    """

    def __init__(self, name: str = "polystreams-sync-runner") -> None:
        self._name = name
        self._loop: asyncio.AbstractEventLoop | None = None
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()

    @property
    def running(self) -> bool:
        return self._loop is not None

    def start(self) -> None:
        """Start the loop thread. Does nothing if it is already running."""
        with self._lock:
            if self._loop is not None:
                return
            loop = asyncio.new_event_loop()
            thread = threading.Thread(target=loop.run_forever, daemon=True, name=self._name)
            thread.start()
            self._loop, self._thread = loop, thread
        logger.debug("sync_runner_started", extra={"event": "sync_runner_started"})

    def submit(self, coro: Coroutine[Any, Any, T]) -> concurrent.futures.Future[T]:
        """Schedule coro on the loop thread without waiting for it."""
        self.start()
        loop = self._loop
        if loop is None:
            coro.close()
            raise RuntimeError("runner was closed")
        return asyncio.run_coroutine_threadsafe(coro, loop)

    def run(self, coro: Coroutine[Any, Any, T]) -> T:
        """Run coro on the loop thread, blocking until it completes."""
        return self.submit(coro).result()

    def results(self, pipeline: PollingPipeline, limit: int | None = None) -> Iterator[QueryResult]:
        """Yield the pipeline's merged results as they arrive.

        Subscribes (starting the pipeline), pulls one result per step, and
        closes the pipeline when the caller stops iterating, the stream ends
        or limit results have been yielded. A limit of zero or less yields
        nothing and leaves the pipeline untouched.
        """
        if limit is not None and limit <= 0:
            return
        subscription = self.run(_subscribe(pipeline))
        taken = 0
        try:
            while limit is None or taken < limit:
                result = self.run(_next_result(subscription))
                if result is None:
                    break
                yield result
                taken += 1
        finally:
            self.run(pipeline.aclose())
            logger.debug("sync_results_closed", extra={"event": "sync_results_closed", "taken": taken})

    def close(self, timeout: float = DEFAULT_JOIN_TIMEOUT) -> None:
        """Stop the loop thread and release the loop. Safe to call repeatedly."""
        with self._lock:
            loop, thread = self._loop, self._thread
            self._loop = self._thread = None
        if loop is None or thread is None:
            return
        asyncio.run_coroutine_threadsafe(loop.shutdown_asyncgens(), loop).result(timeout)
        loop.call_soon_threadsafe(loop.stop)
        thread.join(timeout)
        loop.close()
        logger.debug("sync_runner_closed", extra={"event": "sync_runner_closed"})

    def __enter__(self) -> SyncRunner:
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


async def _subscribe(pipeline: PollingPipeline) -> Subscription:
    return pipeline.subscribe()


async def _next_result(subscription: Subscription) -> QueryResult | None:
    try:
        return await subscription.__anext__()
    except StopAsyncIteration:
        return None
