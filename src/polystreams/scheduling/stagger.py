"""Stagger sequencer: spreads source releases out over time."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Sequence

from polystreams.clock import Clock
from polystreams.errors import ConfigurationError
from polystreams.scheduling.models import SourceId

logger = logging.getLogger(__name__)


def staggered(
    source_ids: Sequence[SourceId],
    padding: float,
    clock: Clock,
    origin: float | None = None,
) -> AsyncIterator[SourceId]:
    """Release each source id ``padding`` seconds after the previous one.

    The i-th id is released at ``origin + i * padding``: the first one
    immediately, the rest spaced out. The sequence is finite and completes
    right after the last release; an empty input completes at once.

    Args:
        source_ids: Ids in release order.
        padding: Seconds between releases.
        clock: Time source.
        origin: Release time of the first id. Defaults to ``clock.now()``
            when iteration begins.

    Raises:
        ConfigurationError: If padding is not positive.
    """
    if padding <= 0:
        raise ConfigurationError(f"padding must be positive, got {padding}")
    return _releases(tuple(source_ids), padding, clock, origin)


async def _releases(
    source_ids: tuple[SourceId, ...],
    padding: float,
    clock: Clock,
    origin: float | None,
) -> AsyncIterator[SourceId]:
    start = clock.now() if origin is None else origin
    for index, source_id in enumerate(source_ids):
        if index:
            await clock.sleep_until(start + index * padding)
        logger.debug(
            "source_released",
            extra={"event": "source_released", "source_id": source_id, "index": index},
        )
        yield source_id
