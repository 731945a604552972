"""Tests for the token bucket limiter."""

import asyncio
import time

import pytest
from ldpclient.http import TokenBucketLimiter


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class TestConstruction:
    """Tests for limiter configuration."""

    def test_starts_full(self):
        """Test that a new bucket holds burst_limit tokens."""
        limiter = TokenBucketLimiter(burst_limit=4)
        assert limiter.tokens == 4
        assert limiter.burst_limit == 4

    def test_default_refill_interval(self):
        """Test the default refill interval of one second."""
        limiter = TokenBucketLimiter(burst_limit=1)
        assert limiter.refill_interval_ms == 1000

    @pytest.mark.parametrize(
        "burst_limit,refill_interval_ms",
        [
            (0, 1000),
            (-1, 1000),
            (3, 0),
            (3, -50),
            (1.5, 1000),
            (3, 250.0),
            (True, 1000),
        ],
    )
    def test_rejects_invalid_settings(self, burst_limit, refill_interval_ms):
        """Test that misconfiguration fails at construction."""
        with pytest.raises(ValueError):
            TokenBucketLimiter(burst_limit, refill_interval_ms)

    def test_initial_stats(self):
        """Test statistics before any acquisition."""
        limiter = TokenBucketLimiter(burst_limit=2, refill_interval_ms=500)
        assert limiter.get_stats() == {
            "burst_limit": 2,
            "refill_interval_ms": 500,
            "tokens": 2,
            "refills": 0,
            "total_acquired": 0,
        }


class TestAcquire:
    """Tests for single-caller acquisition."""

    @pytest.mark.asyncio
    async def test_burst_is_immediate(self):
        """Test that a full burst is admitted without waiting."""
        limiter = TokenBucketLimiter(burst_limit=3, refill_interval_ms=1000)

        start = time.monotonic()
        for _ in range(3):
            await limiter.acquire()
        elapsed = time.monotonic() - start

        assert elapsed < 0.1
        assert limiter.tokens == 0

    @pytest.mark.asyncio
    async def test_call_after_burst_waits_for_refill(self):
        """Test that the call after a burst waits roughly one interval."""
        start = time.monotonic()
        limiter = TokenBucketLimiter(burst_limit=3, refill_interval_ms=200)

        for _ in range(3):
            await limiter.acquire()
        await limiter.acquire()
        elapsed = time.monotonic() - start

        assert 0.15 <= elapsed < 1.0

    @pytest.mark.asyncio
    async def test_refill_restores_full_bucket(self):
        """Test that a refill sets tokens to burst_limit before taking one."""
        limiter = TokenBucketLimiter(burst_limit=3, refill_interval_ms=50)

        for _ in range(4):
            await limiter.acquire()

        assert limiter.tokens == 2
        stats = limiter.get_stats()
        assert stats["refills"] == 1
        assert stats["total_acquired"] == 4

    @pytest.mark.asyncio
    async def test_elapsed_interval_refills_without_waiting(self):
        """Test that no wait happens once the interval has already passed."""
        clock = FakeClock()
        limiter = TokenBucketLimiter(burst_limit=1, refill_interval_ms=1000, clock=clock)

        await limiter.acquire()
        clock.now = 10.0

        start = time.monotonic()
        await limiter.acquire()

        assert time.monotonic() - start < 0.1
        assert limiter.tokens == 0
        assert limiter.get_stats()["refills"] == 1

    @pytest.mark.asyncio
    async def test_tokens_never_exceed_burst_limit(self):
        """Test that a long idle period does not accumulate extra tokens."""
        clock = FakeClock()
        limiter = TokenBucketLimiter(burst_limit=2, refill_interval_ms=100, clock=clock)

        await limiter.acquire()
        await limiter.acquire()
        clock.now = 3600.0
        await limiter.acquire()

        assert limiter.tokens == 1
        assert limiter.tokens <= limiter.burst_limit

    @pytest.mark.asyncio
    async def test_limit_context_manager_takes_token(self):
        """Test that limit() consumes one token on entry."""
        limiter = TokenBucketLimiter(burst_limit=2)

        async with limiter.limit():
            assert limiter.tokens == 1

        assert limiter.tokens == 1


class TestConcurrency:
    """Tests for concurrent callers sharing one bucket."""

    @pytest.mark.asyncio
    async def test_concurrent_callers_respect_rate(self):
        """Test that N > burst callers split into immediate and deferred groups."""
        limiter = TokenBucketLimiter(burst_limit=3, refill_interval_ms=200)
        start = time.monotonic()

        async def timed_acquire() -> float:
            await limiter.acquire()
            return time.monotonic() - start

        times = sorted(await asyncio.gather(*(timed_acquire() for _ in range(7))))

        immediate = [t for t in times if t < 0.1]
        assert len(immediate) == 3
        assert all(0.15 <= t < 0.35 for t in times[3:6])
        assert times[6] >= 0.35

        stats = limiter.get_stats()
        assert stats["total_acquired"] == 7
        assert stats["refills"] == 2
        assert stats["tokens"] == 2

    @pytest.mark.asyncio
    async def test_no_window_admits_more_than_burst(self):
        """Test that no refill window ever admits more than burst_limit callers."""
        burst, interval = 2, 0.1
        limiter = TokenBucketLimiter(burst_limit=burst, refill_interval_ms=100)
        start = time.monotonic()

        async def timed_acquire() -> float:
            await limiter.acquire()
            return time.monotonic() - start

        times = sorted(await asyncio.gather(*(timed_acquire() for _ in range(8))))

        # Every window of burst + 1 completions spans at least one refill wait
        for i in range(len(times) - burst):
            assert times[i + burst] - times[i] >= interval * 0.75

    @pytest.mark.asyncio
    async def test_cancelled_waiter_consumes_no_token(self):
        """Test that abandoning a pending acquire leaves the bucket unchanged."""
        limiter = TokenBucketLimiter(burst_limit=1, refill_interval_ms=5000)
        await limiter.acquire()

        waiter = asyncio.create_task(limiter.acquire())
        await asyncio.sleep(0.05)
        waiter.cancel()

        with pytest.raises(asyncio.CancelledError):
            await waiter

        assert limiter.tokens == 0
        stats = limiter.get_stats()
        assert stats["refills"] == 0
        assert stats["total_acquired"] == 1

    @pytest.mark.asyncio
    async def test_cancelled_queued_waiter_does_not_block_others(self):
        """Test that a waiter cancelled in the lock queue does not stall later callers."""
        limiter = TokenBucketLimiter(burst_limit=1, refill_interval_ms=100)
        await limiter.acquire()

        first = asyncio.create_task(limiter.acquire())
        second = asyncio.create_task(limiter.acquire())
        await asyncio.sleep(0.01)
        second.cancel()

        await asyncio.wait_for(first, timeout=1.0)
        with pytest.raises(asyncio.CancelledError):
            await second

        assert limiter.tokens == 0
        assert limiter.get_stats()["total_acquired"] == 2
