"""
Unit tests for RateLimiter module.

Run with: pytest tests/unit/test_rate_limiter.py -v
"""

import pytest

from keyhunter.core.rate_limiter import RateLimiter, RateLimitConfig


class TestRateLimiter:
    """Test suite for RateLimiter class"""

    def test_initialization_with_defaults(self):
        """Test rate limiter initializes with a full one-token bucket"""
        limiter = RateLimiter()

        assert limiter.capacity == 1.0
        assert limiter.request_count == 0
        assert limiter.total_wait == 0.0
        assert limiter.config.delay == 0.0

    def test_initialization_with_custom_config(self):
        """Test config object overrides keyword arguments"""
        config = RateLimitConfig(requests_per_second=5.0, delay=0.5, burst=3)
        limiter = RateLimiter(requests_per_second=1.0, config=config)

        assert limiter.config.requests_per_second == 5.0
        assert limiter.config.delay == 0.5
        assert limiter.capacity == 3.0

    def test_rejects_non_positive_rate(self):
        """Test zero or negative rates are refused"""
        with pytest.raises(ValueError):
            RateLimiter(requests_per_second=0)

    def test_rejects_negative_delay(self):
        """Test negative extra delay is refused"""
        with pytest.raises(ValueError):
            RateLimiter(delay=-1.0)

    def test_with_delay(self):
        """Test with_delay() builds a 1 req/s limiter with a fixed delay"""
        limiter = RateLimiter.with_delay(3.0)

        assert limiter.config.requests_per_second == 1.0
        assert limiter.config.delay == 3.0

    @pytest.mark.asyncio
    async def test_first_wait_is_immediate(self, sleeps):
        """Test a full bucket admits the first call without sleeping"""
        limiter = RateLimiter(requests_per_second=1.0)

        await limiter.wait()

        assert sleeps == []
        assert limiter.request_count == 1
        assert limiter.last_request_time is not None

    @pytest.mark.asyncio
    async def test_second_wait_sleeps_for_deficit(self, sleeps):
        """Test an empty bucket sleeps until one token has refilled"""
        limiter = RateLimiter(requests_per_second=2.0, burst=1)

        await limiter.wait()
        await limiter.wait()

        assert len(sleeps) == 1
        assert 0 < sleeps[0] <= 0.5
        assert limiter.request_count == 2

    @pytest.mark.asyncio
    async def test_extra_delay_after_admission(self, sleeps):
        """Test the fixed delay is slept after every admission"""
        limiter = RateLimiter(requests_per_second=1000, delay=2.0)

        await limiter.wait()
        await limiter.wait()

        assert sleeps == [2.0, 2.0]
        assert limiter.total_wait == pytest.approx(4.0)

    @pytest.mark.asyncio
    async def test_burst_admits_without_waiting(self, sleeps):
        """Test a bucket of N admits N back-to-back calls"""
        limiter = RateLimiter(requests_per_second=1.0, burst=3)

        for _ in range(3):
            await limiter.wait()

        assert sleeps == []
        assert limiter.request_count == 3

    @pytest.mark.asyncio
    async def test_reset(self, sleeps):
        """Test reset() restores initial state"""
        limiter = RateLimiter(requests_per_second=1.0, delay=1.0)
        await limiter.wait()

        limiter.reset()

        assert limiter.request_count == 0
        assert limiter.total_wait == 0.0
        assert limiter.last_request_time is None

    def test_get_stats(self):
        """Test statistics reporting"""
        limiter = RateLimiter(requests_per_second=2.0, delay=0.5)

        stats = limiter.get_stats()

        assert stats["request_count"] == 0
        assert stats["config"]["requests_per_second"] == 2.0
        assert stats["config"]["delay"] == 0.5
        assert stats["config"]["capacity"] == 2.0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
