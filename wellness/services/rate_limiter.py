"""Throttle outbound generation calls to one per minimum interval."""
from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable

logger = logging.getLogger(__name__)

Clock = Callable[[], float]
Sleeper = Callable[[float], Awaitable[None]]


class RateLimiter:
    """Space out call start times by at least ``min_interval`` seconds.

    The slot for the next caller is reserved while the lock is held, before
    any waiting happens. Overlapping callers therefore queue one interval
    apart instead of all waking up after the same delay.
    """

    def __init__(
        self,
        min_interval: float = 1.5,
        *,
        clock: Clock | None = None,
        sleep: Sleeper | None = None,
    ) -> None:
        if min_interval < 0:
            raise ValueError("min_interval must not be negative")
        self.min_interval = float(min_interval)
        self._clock = clock or time.monotonic
        self._sleep = sleep or asyncio.sleep
        self._lock = asyncio.Lock()
        self._last_slot: float | None = None

    @property
    def last_slot(self) -> float | None:
        """Clock reading of the most recently reserved slot."""

        return self._last_slot

    async def acquire(self) -> float:
        """Wait for the next free slot and return how long the caller waited."""

        async with self._lock:
            now = self._clock()
            if self._last_slot is None:
                slot = now
            else:
                slot = max(now, self._last_slot + self.min_interval)
            self._last_slot = slot

        delay = slot - now
        if delay > 0:
            logger.debug("Rate limiter delaying request by %.3fs", delay)
            await self._sleep(delay)
        return delay

    def reset(self) -> None:
        self._last_slot = None
