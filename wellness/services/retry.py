"""Generic retry loop used around single-attempt remote calls."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

Sleeper = Callable[[float], Awaitable[None]]


@dataclass(slots=True)
class RetryPolicy:
    """Retry ``operation`` up to ``max_attempts`` times.

    ``is_retryable`` decides whether an exception may be retried at all and
    ``delay_for`` returns the pause (in seconds) before the next attempt,
    given the exception and the 1-based number of the attempt that failed.
    The exception from the final attempt is re-raised unchanged.
    """

    max_attempts: int = 3
    is_retryable: Callable[[BaseException], bool] = lambda exc: True
    delay_for: Callable[[BaseException, int], float] = lambda exc, attempt: 0.0
    sleep: Sleeper = field(default=asyncio.sleep)

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

    async def run(self, operation: Callable[[], Awaitable[T]], *, label: str = "operation") -> T:
        attempt = 1
        while True:
            try:
                return await operation()
            except Exception as exc:
                if attempt >= self.max_attempts or not self.is_retryable(exc):
                    raise
                delay = max(0.0, self.delay_for(exc, attempt))
                logger.warning(
                    "%s failed on attempt %d/%d (%s); retrying in %.1fs",
                    label,
                    attempt,
                    self.max_attempts,
                    type(exc).__name__,
                    delay,
                    extra={"event": "retry.scheduled", "attempt": attempt},
                )
                if delay:
                    await self.sleep(delay)
                attempt += 1
