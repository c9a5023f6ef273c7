"""Manually advanced clock for deterministic tests.

Usage:
    clock = VirtualClock()
    pipeline = PollingPipeline(config, invoker, clock=clock)
    subscription = pipeline.subscribe()

    await clock.advance(2.1)  # fires every timer due in (0, 2.1] in order
    results = subscription.drain()
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
import threading

from polystreams.clock.base import ClockBase

DEFAULT_SETTLE_ROUNDS = 64


class VirtualClock(ClockBase):
    """Clock whose time only moves when ``advance`` is awaited.

    Timers live in a min-heap ordered by ``(deadline, issue order)``, so two
    timers due at the same instant always fire in the order they were
    scheduled. Firing happens one timer at a time: the clock jumps to the
    timer's deadline, wakes its waiter, then lets the event loop settle so
    that everything the wakeup triggers (including zero-latency queries)
    completes at that same virtual instant before time moves on.

    Args:
        start: Initial virtual time.
        settle_rounds: Event loop iterations granted after every firing.
            Each round runs every callback that became ready in the
            previous one, so this bounds the length of a zero-latency
            causal chain that completes within one instant.
    """

    def __init__(self, start: float = 0.0, settle_rounds: int = DEFAULT_SETTLE_ROUNDS) -> None:
        if settle_rounds < 1:
            raise ValueError(f"settle_rounds must be at least 1, got {settle_rounds}")
        self._now = start
        self._settle_rounds = settle_rounds
        self._timers: list[tuple[float, int, asyncio.Future[None]]] = []
        self._issued = itertools.count()
        self._lock = threading.Lock()

    def now(self) -> float:
        return self._now

    @property
    def pending(self) -> int:
        """Number of timers still waiting to fire (cancelled waiters excluded)."""
        with self._lock:
            return sum(1 for _, _, waiter in self._timers if not waiter.done())

    @property
    def next_deadline(self) -> float | None:
        """Deadline of the earliest live timer, or None when idle."""
        with self._lock:
            live = [deadline for deadline, _, waiter in self._timers if not waiter.done()]
        return min(live) if live else None

    async def sleep_until(self, deadline: float) -> None:
        if deadline <= self._now:
            await asyncio.sleep(0)
            return
        waiter: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        with self._lock:
            heapq.heappush(self._timers, (deadline, next(self._issued), waiter))
        waiter.add_done_callback(self._discard_cancelled)
        await waiter

    async def advance(self, duration: float) -> None:
        """Move time forward by duration, firing due timers in order."""
        if duration < 0:
            raise ValueError(f"cannot advance by a negative duration: {duration}")
        await self.advance_to(self._now + duration)

    async def advance_to(self, target: float) -> None:
        """Move time forward to target, firing due timers in order.

        Returns once every timer with a deadline at or before target has
        fired, including timers scheduled while advancing.
        """
        if target < self._now:
            raise ValueError(f"cannot move virtual time backwards from {self._now} to {target}")
        await self._settle()
        while (timer := self._pop_due(target)) is not None:
            deadline, _, waiter = timer
            self._now = deadline
            self._wake(waiter)
            await self._settle()
        self._now = target
        await self._settle()

    def _pop_due(self, target: float) -> tuple[float, int, asyncio.Future[None]] | None:
        with self._lock:
            while self._timers and self._timers[0][0] <= target:
                timer = heapq.heappop(self._timers)
                if not timer[2].done():
                    return timer
        return None

    def _discard_cancelled(self, waiter: asyncio.Future[None]) -> None:
        # Fired timers are already off the heap; only cancelled ones remain.
        if not waiter.cancelled():
            return
        with self._lock:
            live = [timer for timer in self._timers if timer[2] is not waiter]
            if len(live) != len(self._timers):
                heapq.heapify(live)
                self._timers = live

    @staticmethod
    def _wake(waiter: asyncio.Future[None]) -> None:
        loop = waiter.get_loop()
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if loop is running:
            waiter.set_result(None)
        else:
            loop.call_soon_threadsafe(_resolve, waiter)

    async def _settle(self) -> None:
        for _ in range(self._settle_rounds):
            await asyncio.sleep(0)


def _resolve(waiter: asyncio.Future[None]) -> None:
    if not waiter.done():
        waiter.set_result(None)
