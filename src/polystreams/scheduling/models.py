"""Scheduling models and configuration.

Types flowing through the pipeline: the polling configuration, the triggers
a poll session emits, and the tagged results the merger forwards.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any

from polystreams.errors import ConfigurationError

SourceId = str
"""Opaque identifier of a pollable source."""

DEFAULT_SAFETY_MARGIN = 5.0
"""Seconds added on top of the stagger duration by ``PollingConfig.derive``."""


@dataclass(frozen=True, slots=True)
class PollingConfig:
    """Configuration for a polling pipeline.

    Validated at construction, so a bad configuration fails before any
    polling begins.

    Usage:
        config = PollingConfig(["a", "b"], padding=0.5, repeat_after=7.0)
        config = PollingConfig.derive(["a", "b"], padding=0.5)  # 0.5 * 2 + 5
    """

    source_ids: tuple[SourceId, ...]
    """Pollable sources, released in this order. Duplicates are allowed."""

    padding: float
    """Seconds between successive stagger releases."""

    repeat_after: float
    """Steady-state polling interval per source, in seconds."""

    def __post_init__(self) -> None:
        # Accept any iterable of ids; store an immutable snapshot.
        object.__setattr__(self, "source_ids", tuple(self.source_ids))
        self._validate()

    @classmethod
    def derive(
        cls,
        source_ids: Iterable[SourceId],
        padding: float,
        safety_margin: float = DEFAULT_SAFETY_MARGIN,
    ) -> PollingConfig:
        """Build a config whose interval is the stagger duration plus a margin."""
        if safety_margin <= 0:
            raise ConfigurationError(f"safety_margin must be positive, got {safety_margin}")
        ids = tuple(source_ids)
        return cls(ids, padding=padding, repeat_after=padding * len(ids) + safety_margin)

    @property
    def stagger_duration(self) -> float:
        """Time needed to release every source."""
        return self.padding * len(self.source_ids)

    def _validate(self) -> None:
        if self.padding <= 0:
            raise ConfigurationError(f"padding must be positive, got {self.padding}")
        if self.repeat_after <= 0:
            raise ConfigurationError(f"repeat_after must be positive, got {self.repeat_after}")
        if self.repeat_after <= self.stagger_duration:
            raise ConfigurationError(
                f"repeat_after ({self.repeat_after}s) must exceed the stagger duration "
                f"({self.stagger_duration}s for {len(self.source_ids)} sources)"
            )


@dataclass(frozen=True, slots=True)
class Trigger:
    """Request to query a source now. Never retained after consumption."""

    source_id: SourceId
    index: int
    """Release index of the owning session."""
    sequence: int
    """Position in the session's trigger sequence, starting at 0."""
    scheduled_at: float
    """Clock time the trigger was due."""


class ResultKind(Enum):
    """Outcome of a single invocation."""

    SUCCESS = auto()
    FAILURE = auto()


@dataclass(frozen=True, slots=True)
class QueryResult:
    """Outcome of one invocation, tagged by kind and source.

    Build instances with ``success`` or ``failure``.
    """

    kind: ResultKind
    source_id: SourceId
    value: Any = None
    error: BaseException | None = field(default=None, compare=False)
    sequence: int = 0
    issued_at: float = 0.0
    completed_at: float = 0.0

    @classmethod
    def success(
        cls,
        source_id: SourceId,
        value: Any,
        *,
        sequence: int = 0,
        issued_at: float = 0.0,
        completed_at: float = 0.0,
    ) -> QueryResult:
        return cls(
            ResultKind.SUCCESS,
            source_id,
            value=value,
            sequence=sequence,
            issued_at=issued_at,
            completed_at=completed_at,
        )

    @classmethod
    def failure(
        cls,
        source_id: SourceId,
        error: BaseException,
        *,
        sequence: int = 0,
        issued_at: float = 0.0,
        completed_at: float = 0.0,
    ) -> QueryResult:
        return cls(
            ResultKind.FAILURE,
            source_id,
            error=error,
            sequence=sequence,
            issued_at=issued_at,
            completed_at=completed_at,
        )

    @property
    def ok(self) -> bool:
        return self.kind is ResultKind.SUCCESS

    @property
    def latency(self) -> float:
        return self.completed_at - self.issued_at

    def unwrap(self) -> Any:
        """Return the value, or raise the stored error for failures."""
        if self.error is not None:
            raise self.error
        return self.value

    def __str__(self) -> str:
        if self.ok:
            return str(self.value)
        return f"{self.source_id}: {type(self.error).__name__}: {self.error}"
