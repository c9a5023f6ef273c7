"""Tests for the stagger sequencer.

Why these tests exist:
- The i-th source must be released at exactly i * padding
- The sequence is finite and must leave no timers behind
"""

import asyncio

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from polystreams import ConfigurationError, VirtualClock, staggered


async def _collect(source_ids, padding, clock, origin=None):
    released = []
    async for source_id in staggered(source_ids, padding, clock, origin=origin):
        released.append((source_id, clock.now()))
    return released


@pytest.mark.asyncio
async def test_releases_are_spaced_by_padding(clock: VirtualClock) -> None:
    task = asyncio.create_task(_collect(["a", "b", "c"], 0.5, clock))

    await clock.advance(0.0)
    assert not task.done()

    await clock.advance(1.0)
    assert task.done()
    assert task.result() == [("a", 0.0), ("b", 0.5), ("c", 1.0)]
    assert clock.pending == 0


@pytest.mark.asyncio
async def test_first_release_is_immediate(clock: VirtualClock) -> None:
    released = []

    async def first_only() -> None:
        async for source_id in staggered(["a", "b"], 10.0, clock):
            released.append(source_id)
            break

    await first_only()
    assert released == ["a"]
    assert clock.now() == 0.0


@pytest.mark.asyncio
async def test_empty_sources_complete_immediately(clock: VirtualClock) -> None:
    assert await _collect([], 0.5, clock) == []
    assert clock.pending == 0


@pytest.mark.asyncio
async def test_explicit_origin(clock: VirtualClock) -> None:
    await clock.advance(3.0)
    task = asyncio.create_task(_collect(["a", "b", "c"], 1.0, clock, origin=2.0))

    await clock.advance_to(4.0)
    assert task.result() == [("a", 3.0), ("b", 3.0), ("c", 4.0)]


@pytest.mark.parametrize("padding", [0.0, -1.0])
def test_rejects_non_positive_padding(clock: VirtualClock, padding: float) -> None:
    with pytest.raises(ConfigurationError):
        staggered(["a"], padding, clock)


@settings(max_examples=30, deadline=None)
@given(
    count=st.integers(min_value=1, max_value=8),
    padding=st.floats(min_value=0.001, max_value=100.0, allow_nan=False, allow_infinity=False),
)
def test_release_times_are_index_times_padding(count: int, padding: float) -> None:
    """For any N and p, release i happens at exactly i * p."""
    source_ids = [f"source-{i}" for i in range(count)]

    async def scenario():
        clock = VirtualClock()
        task = asyncio.create_task(_collect(source_ids, padding, clock))
        await clock.advance_to((count - 1) * padding)
        return await task

    released = asyncio.run(scenario())
    assert released == [(source_id, i * padding) for i, source_id in enumerate(source_ids)]
