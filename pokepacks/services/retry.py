"""
Retry policy for outbound catalog requests.

Only transient failures are retried: rate limiting, gateway errors, and
transport-level failures where no response arrived (timeouts, DNS, resets).
Everything else propagates on the first attempt.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TypeVar

import httpx

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Backoff schedule in seconds; the last entry repeats
DEFAULT_DELAYS = (0.3, 0.7, 1.2, 2.0)

DEFAULT_MAX_ATTEMPTS = 4

RETRY_STATUS_CODES = frozenset({429, 502, 503, 504})


@dataclass
class RetryPolicy:
    """
    Bounded retry with a fixed backoff schedule.

    Attributes:
        max_attempts: Total attempts including the first
        delays: Sleep before retry i is delays[min(i, len(delays) - 1)]
        retry_statuses: HTTP status codes treated as transient
        sleep: Awaitable sleep, replaceable in tests
    """

    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    delays: tuple[float, ...] = DEFAULT_DELAYS
    retry_statuses: frozenset[int] = RETRY_STATUS_CODES
    sleep: Callable[[float], Awaitable[None]] = field(default=asyncio.sleep, repr=False)

    def is_retryable(self, error: Exception) -> bool:
        """Whether an error belongs to a transient class."""
        if isinstance(error, httpx.HTTPStatusError):
            return error.response.status_code in self.retry_statuses
        return isinstance(error, httpx.TransportError)

    def delay_for(self, attempt: int) -> float:
        """Backoff before retrying after the given zero-based attempt."""
        return self.delays[min(attempt, len(self.delays) - 1)]

    async def run(self, operation: Callable[[], Awaitable[T]]) -> T:
        """
        Await operation, retrying transient failures.

        Raises:
            The last error once attempts are exhausted, or the first
            non-retryable error immediately.
        """
        for attempt in range(self.max_attempts):
            try:
                return await operation()
            except Exception as e:
                if not self.is_retryable(e) or attempt == self.max_attempts - 1:
                    raise
                delay = self.delay_for(attempt)
                logger.warning(
                    "CATALOG_RETRY",
                    extra={"attempt": attempt + 1, "delay": delay, "error": type(e).__name__},
                )
                await self.sleep(delay)

        raise RuntimeError("RetryPolicy.max_attempts must be at least 1")
