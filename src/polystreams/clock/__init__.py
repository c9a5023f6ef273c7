"""Clock abstraction with wall-clock and virtual implementations."""

from polystreams.clock.base import ClockBase
from polystreams.clock.protocol import Clock
from polystreams.clock.real import AsyncioClock
from polystreams.clock.virtual import VirtualClock

__all__ = [
    "Clock",
    "ClockBase",
    "AsyncioClock",
    "VirtualClock",
]
