"""Shared clock behavior built on top of ``sleep_until``."""

from __future__ import annotations

import abc
from collections.abc import AsyncIterator


class ClockBase(abc.ABC):
    """Derives the one-shot and repeating primitives from ``sleep_until``.

    Subclasses provide ``now`` and ``sleep_until``. Repeating deadlines are
    anchored to the start time (``start + k * duration``) rather than to the
    previous wakeup, so a slow consumer never accumulates drift.
    """

    @abc.abstractmethod
    def now(self) -> float: ...

    @abc.abstractmethod
    async def sleep_until(self, deadline: float) -> None: ...

    async def after(self, duration: float) -> float:
        if duration < 0:
            raise ValueError(f"duration must be non-negative, got {duration}")
        deadline = self.now() + duration
        await self.sleep_until(deadline)
        return deadline

    def every(self, duration: float, start: float | None = None) -> AsyncIterator[float]:
        if duration <= 0:
            raise ValueError(f"duration must be positive, got {duration}")
        origin = self.now() if start is None else start
        return self._ticks(duration, origin)

    async def _ticks(self, duration: float, origin: float) -> AsyncIterator[float]:
        tick = 0
        while True:
            tick += 1
            deadline = origin + tick * duration
            await self.sleep_until(deadline)
            yield deadline

    async def schedule_once(self, duration: float) -> float:
        return await self.after(duration)

    def schedule_repeating(self, duration: float, start: float | None = None) -> AsyncIterator[float]:
        return self.every(duration, start)
