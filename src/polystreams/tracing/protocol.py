"""Protocols for trigger tracing.

These protocols define the interface for trigger history backends, so
tests and diagnostics can observe exactly when each session fired.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from polystreams.tracing.models import TriggerRecord


@runtime_checkable
class TriggerHistory(Protocol):
    """Protocol for recording and querying fired triggers.

    Usage:
        history = InMemoryTriggerHistory()
        pipeline = PollingPipeline(config, invoker, clock=clock, history=history)

        await clock.advance(2.1)
        history.first_trigger_times()  # {0: 0.0, 1: 0.5, 2: 1.0, 3: 1.5}

    Thread Safety:
        Implementations should be safe to call from any session.
    """

    def record_trigger(self, record: TriggerRecord) -> None:
        """Record a fired trigger.

        Note:
            Implementations may be bounded; older records may be evicted.
        """
        ...

    def records(self) -> list[TriggerRecord]:
        """All retained records in the order they were recorded."""
        ...

    def for_source(self, source_id: str) -> list[TriggerRecord]:
        """Retained records for one source id, in recording order."""
        ...

    def first_trigger_times(self) -> dict[int, float]:
        """Map of session release index to the time of its first trigger."""
        ...

    def clear(self) -> None:
        """Drop all records."""
        ...

    @property
    def trigger_count(self) -> int:
        """Number of records currently retained."""
        ...
