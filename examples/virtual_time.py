"""Drive a pipeline with a virtual clock: no real waiting.

Demonstrates:
- Stagger and repeat timing observed through a trigger history
- Out-of-order completion when queries have different latencies
"""

import asyncio

from polystreams import InMemoryTriggerHistory, PollingConfig, PollingPipeline, VirtualClock

LATENCIES = {"a": 1.2, "b": 0.1, "c": 0.7, "d": 0.0}


async def main() -> None:
    clock = VirtualClock()
    history = InMemoryTriggerHistory()

    async def query(source_id: str) -> str:
        await clock.after(LATENCIES[source_id])
        return f"{source_id}: result"

    config = PollingConfig.derive(list(LATENCIES), padding=0.5)
    pipeline = PollingPipeline(config, query, clock=clock, history=history)
    subscription = pipeline.subscribe()

    await clock.advance(16.0)
    await pipeline.aclose()

    print("Triggers:")
    for record in history.records():
        print(f"  t={record.fired_at:5.2f}  {record.source_id} #{record.sequence}")

    print("\nResults in arrival order:")
    for result in subscription.drain():
        print(f"  t={result.completed_at:5.2f}  {result} (issued t={result.issued_at:.2f})")


if __name__ == "__main__":
    asyncio.run(main())
