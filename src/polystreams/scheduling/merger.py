"""Stream merger: fans every session's results into one stream.

Results are forwarded strictly in the order they are pushed, which is the
order invocations complete in. No reordering, buffering window or
per-source sequencing is applied.

Usage:
    merger = StreamMerger()
    subscription = merger.subscribe()

    merger.push(QueryResult.success("a", "a: result"))

    first = await subscription.take(1)
    async for result in subscription:  # until the merger closes
        ...

    # Bounded observation: detach once enough results have arrived
    async with merger.subscribe() as subscription:
        first_four = await subscription.take(4)
"""

from __future__ import annotations

import asyncio
import logging
from typing import Final

from polystreams.errors import PipelineClosedError
from polystreams.scheduling.models import QueryResult

logger = logging.getLogger(__name__)


class _End:
    """Queue marker for a finished subscription."""


_END: Final = _End()


class Subscription:
    """One consumer's view of the merged stream.

    Sees every result pushed after it subscribed, in arrival order. The
    queue is unbounded: sessions never wait on a slow consumer. A consumer
    that stops reading must detach (``unsubscribe``, ``aclose``, leaving an
    ``async with`` block, or ``take(..., detach=True)``), otherwise its queue
    keeps growing until the merger closes.
    """

    def __init__(self, merger: StreamMerger) -> None:
        self._merger = merger
        self._queue: asyncio.Queue[QueryResult | _End] = asyncio.Queue()
        self._finished = False
        self._detached = False
        self._error: BaseException | None = None

    @property
    def finished(self) -> bool:
        return self._finished

    @property
    def attached(self) -> bool:
        """True while the merger still delivers results to this subscription."""
        return not self._detached

    def __aiter__(self) -> Subscription:
        return self

    async def __aenter__(self) -> Subscription:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def __anext__(self) -> QueryResult:
        if self._finished:
            self._raise_end()
        item = await self._queue.get()
        if isinstance(item, _End):
            self._finished = True
            self._raise_end()
        return item

    async def take(self, count: int, *, detach: bool = False) -> list[QueryResult]:
        """Wait for the next count results.

        Returns fewer only if the stream ends first.

        Args:
            count: Number of results to wait for.
            detach: Unsubscribe once the results are in (or the wait is
                abandoned), for callers that only observe a prefix.
        """
        if count < 0:
            raise ValueError(f"count must be non-negative, got {count}")
        taken: list[QueryResult] = []
        try:
            while len(taken) < count:
                try:
                    taken.append(await self.__anext__())
                except StopAsyncIteration:
                    break
        finally:
            if detach:
                self.unsubscribe()
        return taken

    def drain(self) -> list[QueryResult]:
        """Return every result that has already arrived, without waiting."""
        drained: list[QueryResult] = []
        while not self._finished:
            try:
                item = self._queue.get_nowait()
            except asyncio.QueueEmpty:
                break
            if isinstance(item, _End):
                self._finished = True
                if self._error is not None:
                    raise self._error
                break
            drained.append(item)
        return drained

    def unsubscribe(self) -> None:
        """Stop receiving results. Pending iteration ends normally.

        Safe to call repeatedly, and after the merger closed.
        """
        if self._detached:
            return
        self._merger._discard(self)
        self._end(None)

    async def aclose(self) -> None:
        self.unsubscribe()

    def _deliver(self, result: QueryResult) -> None:
        self._queue.put_nowait(result)

    def _end(self, error: BaseException | None) -> None:
        if self._detached:
            return
        self._detached = True
        self._error = error
        self._queue.put_nowait(_END)

    def _raise_end(self) -> None:
        if self._error is not None:
            raise self._error
        raise StopAsyncIteration


class StreamMerger:
    """Fan-in point for every poll session's results.

    ``push`` is a single non-blocking enqueue per subscriber, so a result is
    never split or interleaved with another. Any number of sessions may push
    concurrently from the event loop.
    """

    def __init__(self) -> None:
        self._subscribers: list[Subscription] = []
        self._closed = False
        self._pushed = 0
        self._dropped = 0

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    @property
    def pushed_count(self) -> int:
        """Results forwarded to subscribers."""
        return self._pushed

    @property
    def dropped_count(self) -> int:
        """Results that arrived after close and were discarded."""
        return self._dropped

    def subscribe(self) -> Subscription:
        """Attach a new consumer.

        Raises:
            PipelineClosedError: If the merger is already closed.
        """
        if self._closed:
            raise PipelineClosedError("cannot subscribe to a closed stream")
        subscription = Subscription(self)
        self._subscribers.append(subscription)
        return subscription

    def push(self, result: QueryResult) -> bool:
        """Forward result to every subscriber.

        Returns:
            False if the merger is closed and the result was dropped.
        """
        if self._closed:
            self._dropped += 1
            logger.debug(
                "result_dropped",
                extra={"event": "result_dropped", "source_id": result.source_id},
            )
            return False
        for subscription in tuple(self._subscribers):
            subscription._deliver(result)
        self._pushed += 1
        return True

    def close(self, error: BaseException | None = None) -> None:
        """End every subscription.

        Args:
            error: Raised to consumers instead of a normal end of stream,
                for pipelines that died of an unexpected fault.
        """
        if self._closed:
            return
        self._closed = True
        subscribers, self._subscribers = self._subscribers, []
        for subscription in subscribers:
            subscription._end(error)

    def _discard(self, subscription: Subscription) -> None:
        if subscription in self._subscribers:
            self._subscribers.remove(subscription)
