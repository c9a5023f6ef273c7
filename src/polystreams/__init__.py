"""PolyStreams: staggered, repeating polling merged into one result stream.

Usage:
    from polystreams import PollingConfig, PollingPipeline

    async def fetch(source_id: str) -> str:
        return f"{source_id}: result"

    config = PollingConfig.derive(["a", "b", "c", "d"], padding=0.5)
    async with PollingPipeline(config, fetch) as pipeline:
        async for result in pipeline.subscribe():
            print(result)
"""

__version__ = "0.1.0"

# Errors
from polystreams.errors import (
    ConfigurationError,
    PipelineClosedError,
    PolyStreamsError,
)

# Clocks
from polystreams.clock import (
    AsyncioClock,
    Clock,
    VirtualClock,
)

# Scheduling
from polystreams.scheduling import (
    ExecutorInvoker,
    FunctionInvoker,
    PollingConfig,
    PollingPipeline,
    PollSession,
    QueryInvoker,
    QueryResult,
    ResultKind,
    StreamMerger,
    Subscription,
    Trigger,
    as_invoker,
    iter_results,
    staggered,
)

# Tracing
from polystreams.tracing import (
    InMemoryTriggerHistory,
    TriggerHistory,
    TriggerRecord,
)

__all__ = [
    # Version
    "__version__",
    # Errors
    "PolyStreamsError",
    "ConfigurationError",
    "PipelineClosedError",
    # Clocks
    "Clock",
    "AsyncioClock",
    "VirtualClock",
    # Scheduling
    "PollingConfig",
    "PollingPipeline",
    "PollSession",
    "StreamMerger",
    "Subscription",
    "Trigger",
    "QueryResult",
    "ResultKind",
    "staggered",
    "iter_results",
    # Invokers
    "QueryInvoker",
    "FunctionInvoker",
    "ExecutorInvoker",
    "as_invoker",
    # Tracing
    "TriggerHistory",
    "TriggerRecord",
    "InMemoryTriggerHistory",
]
