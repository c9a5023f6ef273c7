"""Staggered polling: sequencing, sessions, invocation and merging."""

from polystreams.scheduling.models import (
    DEFAULT_SAFETY_MARGIN,
    PollingConfig,
    QueryResult,
    ResultKind,
    SourceId,
    Trigger,
)
from polystreams.scheduling.invoker import (
    ExecutorInvoker,
    FunctionInvoker,
    QueryInvoker,
    as_invoker,
)
from polystreams.scheduling.merger import StreamMerger, Subscription
from polystreams.scheduling.session import PollSession, ResultSink
from polystreams.scheduling.stagger import staggered
from polystreams.scheduling.registry import ActiveSession, SessionRegistry
from polystreams.scheduling.pipeline import PollingPipeline, iter_results
from polystreams.scheduling.sync_runner import SyncRunner

__all__ = [
    # Pipeline
    "PollingPipeline",
    "iter_results",
    "SyncRunner",
    # Components
    "staggered",
    "PollSession",
    "StreamMerger",
    "Subscription",
    "SessionRegistry",
    "ActiveSession",
    # Models
    "DEFAULT_SAFETY_MARGIN",
    "PollingConfig",
    "QueryResult",
    "ResultKind",
    "SourceId",
    "Trigger",
    # Protocols and adapters
    "QueryInvoker",
    "ResultSink",
    "FunctionInvoker",
    "ExecutorInvoker",
    "as_invoker",
]
