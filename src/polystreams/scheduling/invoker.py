"""Query invoker protocol and adapters.

The scheduler never knows what a query does. It hands a source id to an
invoker and awaits whatever comes back; latency, failure and any retry or
timeout policy belong to the invoker.

Usage:
    async def fetch(source_id: str) -> str:
        return f"{source_id}: result"

    invoker = as_invoker(fetch)

    # Blocking client code runs on an executor thread
    invoker = ExecutorInvoker(requests_based_fetch)
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Awaitable, Callable
from concurrent.futures import Executor
from typing import Any, Protocol, runtime_checkable

from polystreams.scheduling.models import SourceId


@runtime_checkable
class QueryInvoker(Protocol):
    """Performs one asynchronous query against a source."""

    def invoke(self, source_id: SourceId) -> Awaitable[Any]:
        """Start a query for source_id.

        Must not block the caller. The returned awaitable yields the query
        payload or raises; either outcome is reported downstream.
        """
        ...


class FunctionInvoker:
    """Adapts a coroutine function or plain callable to QueryInvoker.

    Awaitable return values are awaited; anything else is used as the
    payload directly. Plain callables run on the event loop, so they must be
    quick. Use ExecutorInvoker for blocking work.
    """

    def __init__(self, func: Callable[[SourceId], Any]) -> None:
        self._func = func

    async def invoke(self, source_id: SourceId) -> Any:
        outcome = self._func(source_id)
        if inspect.isawaitable(outcome):
            return await outcome
        return outcome

    def __repr__(self) -> str:
        name = getattr(self._func, "__qualname__", repr(self._func))
        return f"FunctionInvoker({name})"


class ExecutorInvoker:
    """Runs a blocking callable on an executor thread per invocation.

    Args:
        func: Blocking query function.
        executor: Executor to use. None selects the event loop's default
            thread pool.
    """

    def __init__(self, func: Callable[[SourceId], Any], executor: Executor | None = None) -> None:
        self._func = func
        self._executor = executor

    async def invoke(self, source_id: SourceId) -> Any:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, self._func, source_id)


def as_invoker(target: QueryInvoker | Callable[[SourceId], Any]) -> QueryInvoker:
    """Normalize an invoker-like object to QueryInvoker.

    Raises:
        TypeError: If target neither has an ``invoke`` method nor is callable.
    """
    if isinstance(target, QueryInvoker):
        return target
    if callable(target):
        return FunctionInvoker(target)
    raise TypeError(f"expected a QueryInvoker or callable, got {type(target).__name__}")
