"""Shared test fixtures."""

import sys

import pytest

# Ensure src is in path
sys.path.insert(0, "src")

from polystreams import InMemoryTriggerHistory, VirtualClock


async def echo(source_id: str) -> str:
    """Deterministic zero-latency query."""
    return f"{source_id}: result"


class ListSink:
    """ResultSink that keeps every pushed result."""

    def __init__(self) -> None:
        self.results = []

    def push(self, result) -> bool:
        self.results.append(result)
        return True


class LatencyInvoker:
    """Invoker whose queries take a fixed amount of (virtual) time per source."""

    def __init__(self, clock, latencies: dict[str, float], default: float = 0.0) -> None:
        self._clock = clock
        self._latencies = latencies
        self._default = default
        self.calls: list[tuple[str, float]] = []

    async def invoke(self, source_id: str) -> str:
        self.calls.append((source_id, self._clock.now()))
        await self._clock.after(self._latencies.get(source_id, self._default))
        return f"{source_id}: result"


@pytest.fixture
def clock() -> VirtualClock:
    """Fresh virtual clock at time zero."""
    return VirtualClock()


@pytest.fixture
def history() -> InMemoryTriggerHistory:
    return InMemoryTriggerHistory()


@pytest.fixture
def sink() -> ListSink:
    return ListSink()
