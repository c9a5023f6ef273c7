"""In-memory trigger history."""

from __future__ import annotations

import threading
from collections import deque

from polystreams.tracing.models import TriggerRecord


class InMemoryTriggerHistory:
    """Trigger history kept in a (optionally bounded) buffer.

    Args:
        max_records: Keep at most this many records, evicting the oldest.
            None keeps everything.
    """

    def __init__(self, max_records: int | None = None) -> None:
        if max_records is not None and max_records < 1:
            raise ValueError(f"max_records must be positive, got {max_records}")
        self._records: deque[TriggerRecord] = deque(maxlen=max_records)
        self._lock = threading.Lock()

    def record_trigger(self, record: TriggerRecord) -> None:
        with self._lock:
            self._records.append(record)

    def records(self) -> list[TriggerRecord]:
        with self._lock:
            return list(self._records)

    def for_source(self, source_id: str) -> list[TriggerRecord]:
        return [record for record in self.records() if record.source_id == source_id]

    def first_trigger_times(self) -> dict[int, float]:
        firsts: dict[int, float] = {}
        for record in self.records():
            if record.sequence == 0:
                firsts.setdefault(record.index, record.fired_at)
        return firsts

    def last_fired_at(self) -> float | None:
        with self._lock:
            return max((record.fired_at for record in self._records), default=None)

    def clear(self) -> None:
        with self._lock:
            self._records.clear()

    @property
    def trigger_count(self) -> int:
        return len(self._records)
