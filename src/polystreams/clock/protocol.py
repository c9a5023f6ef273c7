"""Clock protocol consumed by every scheduling component.

Production code only ever talks to this interface, so tests can swap the
wall clock for a VirtualClock and drive time by hand.

Usage:
    async def poll(clock: Clock) -> None:
        await clock.after(0.5)
        async for fired_at in clock.every(7.0):
            ...
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Protocol, runtime_checkable


@runtime_checkable
class Clock(Protocol):
    """Source of delayed and periodic time events.

    Times are plain floats in seconds. Only differences between times are
    meaningful; the epoch is implementation-defined.
    """

    def now(self) -> float:
        """Current clock time in seconds."""
        ...

    async def sleep_until(self, deadline: float) -> None:
        """Suspend until the clock reaches deadline.

        Past deadlines return after a single cooperative yield.
        """
        ...

    async def after(self, duration: float) -> float:
        """Single future event, duration from now.

        Returns:
            The clock time the event fired at.
        """
        ...

    def every(self, duration: float, start: float | None = None) -> AsyncIterator[float]:
        """Lazy infinite sequence of events spaced by duration.

        The first event fires at ``start + duration`` (start defaults to
        ``now()``), never at start itself.
        """
        ...

    async def schedule_once(self, duration: float) -> float:
        """Same as ``after``."""
        ...

    def schedule_repeating(self, duration: float, start: float | None = None) -> AsyncIterator[float]:
        """Same as ``every``."""
        ...
