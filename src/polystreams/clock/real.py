"""Wall-clock implementation backed by asyncio timers."""

from __future__ import annotations

import asyncio
import time

from polystreams.clock.base import ClockBase


class AsyncioClock(ClockBase):
    """Clock driven by the monotonic clock and ``asyncio.sleep``.

    Holds no state, so any number of sessions may share one instance.
    ``now()`` uses the same monotonic source as the default event loop.
    """

    def now(self) -> float:
        return time.monotonic()

    async def sleep_until(self, deadline: float) -> None:
        await asyncio.sleep(max(0.0, deadline - self.now()))
