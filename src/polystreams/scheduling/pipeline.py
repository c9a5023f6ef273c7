"""Polling pipeline: stagger, sessions, invoker and merger wired together.

Usage:
    config = PollingConfig.derive(["a", "b", "c", "d"], padding=0.5)
    pipeline = PollingPipeline(config, fetch)

    async with pipeline:
        async for result in pipeline.subscribe():
            print(result)

    # From synchronous code
    for result in iter_results(pipeline, limit=10):
        print(result)
"""

from __future__ import annotations

import asyncio
import functools
import logging
from collections.abc import AsyncIterator, Callable, Iterator
from typing import Any

from polystreams.clock import AsyncioClock, Clock
from polystreams.errors import PipelineClosedError
from polystreams.scheduling.invoker import QueryInvoker, as_invoker
from polystreams.scheduling.merger import StreamMerger, Subscription
from polystreams.scheduling.models import PollingConfig, QueryResult, SourceId
from polystreams.scheduling.registry import SessionRegistry
from polystreams.scheduling.session import PollSession
from polystreams.scheduling.stagger import staggered
from polystreams.scheduling.sync_runner import SyncRunner
from polystreams.tracing import TriggerHistory

logger = logging.getLogger(__name__)


class PollingPipeline:
    """Staggered, repeating poller with a single merged result stream.

    The stagger releases one source every ``padding`` seconds; each release
    registers and starts a PollSession; every session pushes its results
    into one StreamMerger. Nothing runs until ``start`` (or the first
    ``subscribe``), and ``aclose`` tears the whole pipeline down.

    Args:
        config: Sources and timing.
        invoker: QueryInvoker, or a callable adapted with ``as_invoker``.
        clock: Time source. Defaults to the wall clock.
        history: Optional trigger history shared by all sessions.
    """

    def __init__(
        self,
        config: PollingConfig,
        invoker: QueryInvoker | Callable[[SourceId], Any],
        clock: Clock | None = None,
        history: TriggerHistory | None = None,
    ) -> None:
        self._config = config
        self._invoker = as_invoker(invoker)
        self._clock: Clock = clock or AsyncioClock()
        self._history = history
        self._merger = StreamMerger()
        self._registry = SessionRegistry()
        self._root: asyncio.Task[None] | None = None
        self._released = 0
        self._closed = False

    @property
    def config(self) -> PollingConfig:
        return self._config

    @property
    def clock(self) -> Clock:
        return self._clock

    @property
    def merger(self) -> StreamMerger:
        return self._merger

    @property
    def registry(self) -> SessionRegistry:
        return self._registry

    @property
    def released_count(self) -> int:
        """Sources released by the stagger so far."""
        return self._released

    @property
    def active_sessions(self) -> int:
        return self._registry.active_count

    @property
    def running(self) -> bool:
        return self._root is not None and not self._closed

    @property
    def closed(self) -> bool:
        return self._closed

    def start(self) -> None:
        """Begin releasing sources. Must be called with a running event loop.

        Calling start on a running pipeline does nothing.

        Raises:
            PipelineClosedError: If the pipeline was closed.
        """
        if self._closed:
            raise PipelineClosedError("pipeline is closed")
        if self._root is not None:
            return
        origin = self._clock.now()
        self._root = asyncio.create_task(self._release_sessions(origin), name="polystreams-stagger")
        self._root.add_done_callback(self._on_root_done)
        logger.info(
            "pipeline_started",
            extra={
                "event": "pipeline_started",
                "source_count": len(self._config.source_ids),
                "padding": self._config.padding,
                "repeat_after": self._config.repeat_after,
            },
        )

    def subscribe(self) -> Subscription:
        """Attach a consumer, starting the pipeline if needed.

        Stagger timing counts from the first start, so subscribing before
        time advances sees every result.
        """
        if self._closed:
            raise PipelineClosedError("pipeline is closed")
        subscription = self._merger.subscribe()
        self.start()
        return subscription

    async def __aiter__(self) -> AsyncIterator[QueryResult]:
        # The subscription detaches when the loop exits, including on break.
        subscription = self.subscribe()
        try:
            async for result in subscription:
                yield result
        finally:
            subscription.unsubscribe()

    async def take(self, count: int) -> list[QueryResult]:
        """Subscribe, wait for the next count results, then detach.

        The pipeline keeps running; only this observer stops buffering.
        """
        return await self.subscribe().take(count, detach=True)

    async def aclose(self) -> None:
        """Cancel the stagger, every session and their in-flight queries.

        Results completing afterwards are dropped. Safe to call repeatedly.
        """
        already_closed = self._closed
        self._closed = True
        tasks: list[asyncio.Task[None]] = []
        if self._root is not None and not self._root.done():
            self._root.cancel()
            tasks.append(self._root)
        tasks.extend(self._registry.cancel_all())
        self._merger.close()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        if not already_closed:
            logger.info(
                "pipeline_closed",
                extra={"event": "pipeline_closed", "released": self._released},
            )

    async def __aenter__(self) -> PollingPipeline:
        self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def _release_sessions(self, origin: float) -> None:
        async for source_id in staggered(
            self._config.source_ids, self._config.padding, self._clock, origin=origin
        ):
            index = self._released
            session = PollSession(
                source_id,
                self._config.repeat_after,
                self._clock,
                self._invoker,
                self._merger,
                index=index,
                history=self._history,
            )
            task = asyncio.create_task(session.run(), name=f"poll-{source_id}-{index}")
            self._registry.add(session, task)
            task.add_done_callback(functools.partial(self._on_session_done, index))
            self._released += 1
        logger.debug("stagger_complete", extra={"event": "stagger_complete"})

    def _on_root_done(self, task: asyncio.Task[None]) -> None:
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            self._fail(error)

    def _on_session_done(self, index: int, task: asyncio.Task[None]) -> None:
        self._registry.remove(index)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            self._fail(error)

    def _fail(self, error: BaseException) -> None:
        # Invocation failures never get here; this is a fault in the pipeline itself.
        logger.error(
            "pipeline_failed",
            exc_info=error,
            extra={"event": "pipeline_failed"},
        )
        self._closed = True
        if self._root is not None and not self._root.done():
            self._root.cancel()
        self._registry.cancel_all()
        self._merger.close(error)


def iter_results(
    pipeline: PollingPipeline,
    limit: int | None = None,
    runner: SyncRunner | None = None,
) -> Iterator[QueryResult]:
    """Consume a pipeline's merged stream from synchronous code.

    The pipeline runs on a background loop and is closed when the caller
    stops iterating (or after limit results). Without a runner, a private
    one is started for this call and shut down afterwards.
    """
    if runner is not None:
        yield from runner.results(pipeline, limit)
        return
    with SyncRunner() as owned:
        yield from owned.results(pipeline, limit)

