"""Print every merged result as sources are polled.

Usage:
    python examples/console_poll.py                      # sources a b c d
    python examples/console_poll.py --sources x y z      # custom sources
    python examples/console_poll.py --limit 12 --fail-rate 0.2
    POLYSTREAMS_PADDING=1.0 python examples/console_poll.py
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import random
import sys

from polystreams import PollingPipeline, ResultKind
from polystreams.config import PollingSettings

DEFAULT_SOURCES = ["a", "b", "c", "d"]


def make_query(fail_rate: float, max_latency: float):
    """Fake query: random latency, occasional failure."""

    async def query(source_id: str) -> str:
        await asyncio.sleep(random.uniform(0, max_latency))
        if random.random() < fail_rate:
            raise ConnectionError(f"{source_id} unreachable")
        return f"{source_id}: result"

    return query


async def run(pipeline: PollingPipeline, limit: int | None) -> None:
    seen = 0
    async with pipeline:
        async for result in pipeline.subscribe():
            marker = "ok " if result.kind is ResultKind.SUCCESS else "ERR"
            print(f"[{marker}] {result}  (#{result.sequence}, {result.latency * 1000:.0f}ms)")
            seen += 1
            if limit is not None and seen >= limit:
                break


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        prog="console-poll",
        description="Staggered polling example printing the merged result stream",
    )
    parser.add_argument("--sources", nargs="+", help="Source ids to poll")
    parser.add_argument("--padding", type=float, help="Seconds between first queries")
    parser.add_argument("--limit", type=int, help="Stop after this many results")
    parser.add_argument("--fail-rate", type=float, default=0.0, help="Probability a query fails")
    parser.add_argument("--max-latency", type=float, default=0.3, help="Max fake query latency")
    args = parser.parse_args(argv)

    overrides = {}
    if args.sources:
        overrides["source_ids"] = args.sources
    if args.padding is not None:
        overrides["padding"] = args.padding
    settings = PollingSettings(**overrides)
    if not settings.source_ids:
        settings = settings.model_copy(update={"source_ids": DEFAULT_SOURCES})

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    config = settings.to_config()
    print(
        f"Polling {len(config.source_ids)} sources, "
        f"{config.padding}s apart, every {config.repeat_after}s (Ctrl+C to stop)\n"
    )

    pipeline = PollingPipeline(config, make_query(args.fail_rate, args.max_latency))
    try:
        asyncio.run(run(pipeline, args.limit))
    except KeyboardInterrupt:
        print("\nStopped.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
