"""Trigger tracing for observing when poll sessions fire.

Usage:
    from polystreams.tracing import InMemoryTriggerHistory

    history = InMemoryTriggerHistory(max_records=10_000)
    pipeline = PollingPipeline(config, invoker, history=history)
"""

from polystreams.tracing.memory import InMemoryTriggerHistory
from polystreams.tracing.models import TriggerRecord
from polystreams.tracing.protocol import TriggerHistory

__all__ = [
    "InMemoryTriggerHistory",
    "TriggerHistory",
    "TriggerRecord",
]
