"""Poll session: the unbounded per-source timer and query loop."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from typing import Any, Protocol

from polystreams.clock import Clock
from polystreams.errors import ConfigurationError
from polystreams.scheduling.invoker import QueryInvoker
from polystreams.scheduling.models import QueryResult, SourceId, Trigger
from polystreams.tracing import TriggerHistory, TriggerRecord

logger = logging.getLogger(__name__)


class ResultSink(Protocol):
    """Destination for invocation outcomes (normally a StreamMerger)."""

    def push(self, result: QueryResult) -> Any:
        ...


class PollSession:
    """Queries one source immediately, then every ``repeat_after`` seconds.

    Triggers are driven by elapsed time only. Each trigger starts its own
    invocation task, so a slow or stalled query never delays the next
    trigger and several queries for the same source may be in flight at
    once. Every outcome, success or failure, is pushed to the sink as a
    QueryResult; an invocation failure never stops the session.

    The session runs until its task is cancelled. Cancellation stops the
    timer and cancels in-flight invocations on a best-effort basis.

    Args:
        source_id: Source to poll.
        repeat_after: Seconds between triggers after the first.
        clock: Time source.
        invoker: Performs the queries.
        sink: Receives every QueryResult.
        index: Release index of this session within its pipeline.
        history: Optional trigger history to record fired triggers in.
    """

    def __init__(
        self,
        source_id: SourceId,
        repeat_after: float,
        clock: Clock,
        invoker: QueryInvoker,
        sink: ResultSink,
        *,
        index: int = 0,
        history: TriggerHistory | None = None,
    ) -> None:
        if repeat_after <= 0:
            raise ConfigurationError(f"repeat_after must be positive, got {repeat_after}")
        self.source_id = source_id
        self.index = index
        self._repeat_after = repeat_after
        self._clock = clock
        self._invoker = invoker
        self._sink = sink
        self._history = history
        self._in_flight: set[asyncio.Task[None]] = set()
        self._triggers_fired = 0
        self._results_emitted = 0
        self._failures = 0

    @property
    def repeat_after(self) -> float:
        return self._repeat_after

    @property
    def in_flight(self) -> int:
        """Invocations started but not yet completed."""
        return len(self._in_flight)

    @property
    def triggers_fired(self) -> int:
        return self._triggers_fired

    @property
    def results_emitted(self) -> int:
        return self._results_emitted

    @property
    def failures(self) -> int:
        return self._failures

    async def triggers(self) -> AsyncIterator[Trigger]:
        """Infinite trigger sequence: one now, then one per interval."""
        activated_at = self._clock.now()
        yield Trigger(self.source_id, self.index, 0, activated_at)
        sequence = 1
        async for deadline in self._clock.every(self._repeat_after, start=activated_at):
            yield Trigger(self.source_id, self.index, sequence, deadline)
            sequence += 1

    async def run(self) -> None:
        """Fire triggers forever. Returns only by cancellation."""
        logger.info(
            "session_started",
            extra={"event": "session_started", "source_id": self.source_id, "index": self.index},
        )
        triggers = self.triggers()
        try:
            async for trigger in triggers:
                self._fire(trigger)
        finally:
            await triggers.aclose()
            cancelled = self._cancel_in_flight()
            logger.info(
                "session_stopped",
                extra={
                    "event": "session_stopped",
                    "source_id": self.source_id,
                    "index": self.index,
                    "triggers_fired": self._triggers_fired,
                    "cancelled_in_flight": cancelled,
                },
            )

    def _fire(self, trigger: Trigger) -> None:
        fired_at = self._clock.now()
        self._triggers_fired += 1
        if self._history is not None:
            self._history.record_trigger(TriggerRecord.from_trigger(trigger, fired_at))
        task = asyncio.create_task(
            self._invoke(trigger, fired_at),
            name=f"query-{self.source_id}-{self.index}-{trigger.sequence}",
        )
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)

    async def _invoke(self, trigger: Trigger, issued_at: float) -> None:
        try:
            value = await self._invoker.invoke(trigger.source_id)
        except Exception as exc:
            self._failures += 1
            logger.warning(
                "query for %s failed: %s",
                trigger.source_id,
                exc,
                extra={"event": "query_failed", "source_id": trigger.source_id},
            )
            result = QueryResult.failure(
                trigger.source_id,
                exc,
                sequence=trigger.sequence,
                issued_at=issued_at,
                completed_at=self._clock.now(),
            )
        else:
            result = QueryResult.success(
                trigger.source_id,
                value,
                sequence=trigger.sequence,
                issued_at=issued_at,
                completed_at=self._clock.now(),
            )
        self._results_emitted += 1
        self._sink.push(result)

    def _cancel_in_flight(self) -> int:
        pending = [task for task in self._in_flight if not task.done()]
        for task in pending:
            task.cancel()
        return len(pending)
