"""Token bucket rate limiting for outgoing requests."""

import asyncio
import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Callable

logger = logging.getLogger(__name__)


class TokenBucketLimiter:
    """
    Token bucket that admits at most ``burst_limit`` requests per refill window.

    The bucket starts full. Each acquisition takes one token. Once the
    bucket is empty, the next caller waits until ``refill_interval_ms``
    has passed since the last refill, then the bucket is refilled to
    ``burst_limit`` in one step (no gradual drip).

    Thread-safe for asyncio tasks: all bucket state is read and written
    under a single asyncio.Lock, so concurrent callers can never refill
    twice or take the same token.

    Example:
        limiter = TokenBucketLimiter(burst_limit=3, refill_interval_ms=1000)

        await limiter.acquire()  # immediate
        await limiter.acquire()  # immediate
        await limiter.acquire()  # immediate
        await limiter.acquire()  # waits ~1s for the refill

        async with limiter.limit():
            await send_request(...)
    """

    def __init__(
        self,
        burst_limit: int,
        refill_interval_ms: int = 1000,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize the limiter.

        Args:
            burst_limit: Maximum tokens held, and requests per window
            refill_interval_ms: Minimum milliseconds between full refills
            clock: Monotonic clock returning seconds

        Raises:
            ValueError: If burst_limit or refill_interval_ms is not a positive integer
        """
        _check_positive_int("burst_limit", burst_limit)
        _check_positive_int("refill_interval_ms", refill_interval_ms)

        self._burst_limit = burst_limit
        self._refill_interval_ms = refill_interval_ms
        self._clock = clock

        # Bucket state (protected by _lock)
        self._tokens = burst_limit
        self._last_refill_at = clock()
        self._lock = asyncio.Lock()

        self._refills = 0
        self._total_acquired = 0

    @property
    def burst_limit(self) -> int:
        return self._burst_limit

    @property
    def refill_interval_ms(self) -> int:
        return self._refill_interval_ms

    @property
    def tokens(self) -> int:
        """Tokens currently left in the bucket."""
        return self._tokens

    async def acquire(self) -> None:
        """
        Take one token, waiting for a refill if the bucket is empty.

        Cancelling a waiting caller leaves the bucket untouched, because
        state only changes after the wait completes.
        """
        async with self._lock:
            if self._tokens == 0:
                interval = self._refill_interval_ms / 1000
                wait_time = interval - (self._clock() - self._last_refill_at)

                if wait_time > 0:
                    logger.debug(f"Token bucket empty, waiting {wait_time:.3f}s for refill")
                    await asyncio.sleep(wait_time)

                self._tokens = self._burst_limit
                self._last_refill_at = self._clock()
                self._refills += 1
                logger.debug(f"Token bucket refilled to {self._burst_limit}")

            self._tokens -= 1
            self._total_acquired += 1

    @asynccontextmanager
    async def limit(self) -> AsyncIterator[None]:
        """
        Async context manager that acquires a token before the body runs.

        Example:
            async with limiter.limit():
                response = await session.get(url)
        """
        await self.acquire()
        yield

    def get_stats(self) -> dict:
        """Get rate limiter statistics."""
        return {
            "burst_limit": self._burst_limit,
            "refill_interval_ms": self._refill_interval_ms,
            "tokens": self._tokens,
            "refills": self._refills,
            "total_acquired": self._total_acquired,
        }


def _check_positive_int(name: str, value: int) -> None:
    # bool is an int subclass
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValueError(f"{name} must be a positive integer, got {value!r}")
