"""Data models for trigger tracing.

Records are plain data so any history backend can store them.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from polystreams.scheduling.models import Trigger


@dataclass(frozen=True, slots=True)
class TriggerRecord:
    """One fired trigger, as observed by a poll session.

    Attributes:
        source_id: Source the trigger was for.
        index: Release index of the owning session.
        sequence: Position in that session's trigger sequence.
        scheduled_at: Clock time the trigger was due.
        fired_at: Clock time the session actually handled it.

    Example:
        record = TriggerRecord(
            source_id="b", index=1, sequence=0, scheduled_at=0.5, fired_at=0.5
        )
    """

    source_id: str
    index: int
    sequence: int
    scheduled_at: float
    fired_at: float

    @classmethod
    def from_trigger(cls, trigger: Trigger, fired_at: float) -> TriggerRecord:
        return cls(
            source_id=trigger.source_id,
            index=trigger.index,
            sequence=trigger.sequence,
            scheduled_at=trigger.scheduled_at,
            fired_at=fired_at,
        )

    @property
    def lag(self) -> float:
        """How late the trigger was handled relative to its schedule."""
        return self.fired_at - self.scheduled_at

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dictionary."""
        return {
            "source_id": self.source_id,
            "index": self.index,
            "sequence": self.sequence,
            "scheduled_at": self.scheduled_at,
            "fired_at": self.fired_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TriggerRecord:
        """Create from dictionary (for deserialization)."""
        return cls(
            source_id=data["source_id"],
            index=data["index"],
            sequence=data["sequence"],
            scheduled_at=data["scheduled_at"],
            fired_at=data.get("fired_at", data["scheduled_at"]),
        )
