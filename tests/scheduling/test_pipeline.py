"""Tests for pipeline wiring and lifecycle.

Why these tests exist:
- Active sessions must track stagger releases, never exceed the configured set
- Root cancellation must tear everything down exactly once
- Faults inside the pipeline must reach consumers instead of hanging them
"""

import asyncio

import pytest
from conftest import echo

from polystreams import (
    PipelineClosedError,
    PollingConfig,
    PollingPipeline,
    VirtualClock,
)

CONFIG = PollingConfig(["a", "b", "c", "d"], padding=0.5, repeat_after=7.0)


@pytest.mark.asyncio
async def test_nothing_runs_before_start(clock: VirtualClock) -> None:
    pipeline = PollingPipeline(CONFIG, echo, clock=clock)
    await clock.advance(5.0)

    assert not pipeline.running
    assert pipeline.released_count == 0
    assert pipeline.active_sessions == 0


@pytest.mark.asyncio
async def test_active_sessions_follow_stagger_releases(clock: VirtualClock) -> None:
    pipeline = PollingPipeline(CONFIG, echo, clock=clock)
    pipeline.start()

    observed = []
    for target in [0.0, 0.5, 1.0, 1.5, 2.0, 20.0]:
        await clock.advance_to(target)
        observed.append((pipeline.released_count, pipeline.active_sessions))

    assert observed == [(1, 1), (2, 2), (3, 3), (4, 4), (4, 4), (4, 4)]
    assert pipeline.registry.source_ids() == ["a", "b", "c", "d"]

    await pipeline.aclose()


@pytest.mark.asyncio
async def test_start_is_idempotent(clock: VirtualClock) -> None:
    pipeline = PollingPipeline(CONFIG, echo, clock=clock)
    pipeline.start()
    pipeline.start()
    subscription = pipeline.subscribe()

    await clock.advance(2.0)
    assert len(subscription.drain()) == 4
    assert pipeline.active_sessions == 4

    await pipeline.aclose()


@pytest.mark.asyncio
async def test_empty_source_list_creates_no_sessions(clock: VirtualClock) -> None:
    pipeline = PollingPipeline(PollingConfig([], padding=0.5, repeat_after=1.0), echo, clock=clock)
    subscription = pipeline.subscribe()

    await clock.advance(10.0)

    assert pipeline.released_count == 0
    assert subscription.drain() == []
    assert clock.pending == 0
    await pipeline.aclose()


@pytest.mark.asyncio
async def test_duplicate_source_ids_poll_twice(clock: VirtualClock) -> None:
    config = PollingConfig(["a", "a"], padding=1.0, repeat_after=5.0)
    pipeline = PollingPipeline(config, echo, clock=clock)
    subscription = pipeline.subscribe()

    await clock.advance(1.0)

    assert [r.value for r in subscription.drain()] == ["a: result", "a: result"]
    assert pipeline.registry.source_ids() == ["a", "a"]
    await pipeline.aclose()


@pytest.mark.asyncio
async def test_aclose_is_idempotent_and_ends_subscriptions(clock: VirtualClock) -> None:
    pipeline = PollingPipeline(CONFIG, echo, clock=clock)
    subscription = pipeline.subscribe()
    await clock.advance(0.6)

    await pipeline.aclose()
    await pipeline.aclose()

    assert pipeline.closed
    assert not pipeline.running
    assert pipeline.active_sessions == 0
    assert clock.pending == 0
    assert len(await subscription.take(10)) == 2


@pytest.mark.asyncio
async def test_closed_pipeline_rejects_start_and_subscribe(clock: VirtualClock) -> None:
    pipeline = PollingPipeline(CONFIG, echo, clock=clock)
    await pipeline.aclose()

    with pytest.raises(PipelineClosedError):
        pipeline.start()
    with pytest.raises(PipelineClosedError):
        pipeline.subscribe()


@pytest.mark.asyncio
async def test_async_context_manager(clock: VirtualClock) -> None:
    async with PollingPipeline(CONFIG, echo, clock=clock) as pipeline:
        subscription = pipeline.subscribe()
        await clock.advance(1.5)
        assert len(subscription.drain()) == 4

    assert pipeline.closed
    assert clock.pending == 0


@pytest.mark.asyncio
async def test_async_iteration_subscribes(clock: VirtualClock) -> None:
    pipeline = PollingPipeline(CONFIG, echo, clock=clock)
    collected = []

    async def consume() -> None:
        async for result in pipeline:
            collected.append(result.source_id)

    consumer = asyncio.create_task(consume())
    await clock.advance(1.0)
    await pipeline.aclose()
    await consumer

    assert collected == ["a", "b", "c"]


@pytest.mark.asyncio
async def test_accepts_invoker_objects(clock: VirtualClock) -> None:
    class Client:
        async def invoke(self, source_id: str) -> dict:
            return {"source": source_id, "state": "ok"}

    pipeline = PollingPipeline(CONFIG, Client(), clock=clock)
    subscription = pipeline.subscribe()
    await clock.advance(0.0)

    assert subscription.drain()[0].value == {"source": "a", "state": "ok"}
    await pipeline.aclose()


class _BrokenTimerClock(VirtualClock):
    def every(self, duration, start=None):
        raise RuntimeError("timer backend down")


@pytest.mark.asyncio
async def test_pipeline_fault_reaches_consumers() -> None:
    clock = _BrokenTimerClock()
    pipeline = PollingPipeline(CONFIG, echo, clock=clock)
    subscription = pipeline.subscribe()

    await clock.advance(0.0)

    with pytest.raises(RuntimeError, match="timer backend down"):
        await subscription.take(2)
    assert pipeline.closed
    assert pipeline.active_sessions == 0
    await pipeline.aclose()


@pytest.mark.asyncio
async def test_take_detaches_after_count(clock: VirtualClock) -> None:
    pipeline = PollingPipeline(CONFIG, echo, clock=clock)

    first = asyncio.create_task(pipeline.take(4))
    await clock.advance(2.1)
    assert [r.source_id for r in await first] == ["a", "b", "c", "d"]

    await clock.advance(700.0)

    assert pipeline.running
    assert pipeline.merger.subscriber_count == 0
    assert pipeline.merger.pushed_count > 4
    await pipeline.aclose()


@pytest.mark.asyncio
async def test_breaking_out_of_iteration_detaches(clock: VirtualClock) -> None:
    pipeline = PollingPipeline(CONFIG, echo, clock=clock)
    seen = []

    async def first_result() -> None:
        async for result in pipeline:
            seen.append(result.source_id)
            break

    consumer = asyncio.create_task(first_result())
    await clock.advance(0.0)
    await consumer
    await clock.advance(700.0)

    assert seen == ["a"]
    assert pipeline.running
    assert pipeline.merger.subscriber_count == 0
    await pipeline.aclose()
