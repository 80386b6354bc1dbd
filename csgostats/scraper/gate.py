# csgostats/scraper/gate.py
"""Bounded, first-come-first-served admission for extraction operations."""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from typing import Awaitable, Callable, Deque, Optional, TypeVar

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


class ConcurrencyGate:
    """
    Runs at most ``concurrency`` operations at a time.

    Callers beyond the limit wait in arrival order. A finishing operation
    hands its slot straight to the oldest waiter, so a late caller can never
    overtake a queued one.
    """

    def __init__(self, concurrency: int = 10, logger: Optional[logging.Logger] = None):
        if concurrency < 1:
            raise ValueError(f"concurrency must be at least 1, got {concurrency}")
        self.concurrency = concurrency
        self.logger = logger or LOGGER
        self._running = 0
        self._waiters: Deque[asyncio.Future] = deque()

    @property
    def size(self) -> int:
        """Number of operations waiting for a slot."""
        return len(self._waiters)

    @property
    def pending(self) -> int:
        """Number of operations currently running."""
        return self._running

    async def _acquire(self) -> None:
        if self._running < self.concurrency and not self._waiters:
            self._running += 1
            return

        waiter = asyncio.get_running_loop().create_future()
        self._waiters.append(waiter)
        self.logger.debug("%d requests are currently waiting", self.size)
        try:
            await waiter
        except asyncio.CancelledError:
            if waiter.done() and not waiter.cancelled():
                # Slot was handed over just before the cancellation landed
                self._release()
            else:
                self._waiters.remove(waiter)
            raise
        # _release() transferred its slot to us; _running is unchanged

    def _release(self) -> None:
        while self._waiters:
            waiter = self._waiters.popleft()
            if not waiter.done():
                waiter.set_result(None)
                return
        self._running -= 1

    async def submit(self, operation: Callable[[], Awaitable[T]]) -> T:
        """Wait for a slot, run ``operation()`` and return (or raise) its outcome."""
        await self._acquire()
        try:
            return await operation()
        finally:
            self._release()
