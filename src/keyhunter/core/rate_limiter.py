"""
Rate Limiter - Token bucket throttling for outbound API calls.

Every remote service the hunter talks to (GitHub search, raw downloads and
each validation endpoint) publishes a request quota. A RateLimiter admits
calls at a steady rate, optionally followed by a fixed extra delay that
encodes a service's documented limit.

Example:
    >>> limiter = RateLimiter(requests_per_second=2)
    >>> await limiter.wait()  # Wait before next request
    >>> slow = RateLimiter.with_delay(3.0)  # 1 req/s plus 3s after admission
"""

import asyncio
import time
from typing import Optional
from dataclasses import dataclass

import structlog


@dataclass
class RateLimitConfig:
    """Configuration for rate limiter"""
    requests_per_second: float = 1.0  # Steady admission rate
    delay: float = 0.0  # Extra sleep after each admission (seconds)
    burst: Optional[int] = None  # Bucket size (defaults to one second of quota)


class RateLimiter:
    """
    Token bucket rate limiter with an optional post-admission delay.

    Key features:
    1. Steady quota - tokens refill continuously at requests_per_second
    2. Fixed delay - per-service spacing on top of the quota
    3. FIFO admission - waiters are serialised by a lock, first come first served

    wait() never fails; it only suspends the caller.
    """

    def __init__(
        self,
        requests_per_second: float = 1.0,
        delay: float = 0.0,
        burst: Optional[int] = None,
        config: Optional[RateLimitConfig] = None,
    ):
        """
        Initialize the rate limiter.

        Args:
            requests_per_second: Admission rate (must be positive)
            delay: Extra delay in seconds slept after each admission
            burst: Bucket capacity (defaults to max(1, requests_per_second))
            config: Full configuration, overrides the keyword arguments
        """
        self.config = config or RateLimitConfig(
            requests_per_second=requests_per_second,
            delay=delay,
            burst=burst,
        )
        if self.config.requests_per_second <= 0:
            raise ValueError("requests_per_second must be positive")
        if self.config.delay < 0:
            raise ValueError("delay must not be negative")

        self.capacity = float(self.config.burst or max(1.0, self.config.requests_per_second))
        self._tokens = self.capacity
        self._last_refill = time.monotonic()
        self._lock = asyncio.Lock()

        self.request_count = 0
        self.total_wait = 0.0
        self.last_request_time: Optional[float] = None

        self.logger = structlog.get_logger(__name__)

        self.logger.debug(
            "rate_limiter_initialized",
            requests_per_second=self.config.requests_per_second,
            delay=self.config.delay,
            capacity=self.capacity,
        )

    @classmethod
    def with_delay(cls, seconds: float) -> "RateLimiter":
        """1 request/second baseline plus a fixed delay after each admission"""
        return cls(requests_per_second=1.0, delay=seconds)

    def _refill(self):
        now = time.monotonic()
        elapsed = now - self._last_refill
        self._last_refill = now
        self._tokens = min(
            self.capacity,
            self._tokens + elapsed * self.config.requests_per_second,
        )

    async def wait(self):
        """
        Wait until the quota admits the next call, then sleep the extra delay.
        """
        waited = 0.0

        async with self._lock:
            self._refill()
            if self._tokens < 1.0:
                deficit = (1.0 - self._tokens) / self.config.requests_per_second
                self.logger.debug("rate_limit_wait", delay=f"{deficit:.2f}s")
                await asyncio.sleep(deficit)
                waited += deficit
                self._refill()
                # The sleep covered the deficit
                self._tokens = max(self._tokens, 1.0)
            self._tokens -= 1.0

            self.request_count += 1
            self.last_request_time = time.time()

        if self.config.delay > 0:
            await asyncio.sleep(self.config.delay)
            waited += self.config.delay

        self.total_wait += waited

    def reset(self):
        """Reset the rate limiter to initial state"""
        self._tokens = self.capacity
        self._last_refill = time.monotonic()
        self.request_count = 0
        self.total_wait = 0.0
        self.last_request_time = None

        self.logger.debug("rate_limiter_reset")

    def get_stats(self) -> dict:
        """
        Get rate limiter statistics.

        Returns:
            Dictionary with current statistics
        """
        return {
            "request_count": self.request_count,
            "total_wait": f"{self.total_wait:.2f}s",
            "available_tokens": round(self._tokens, 2),
            "config": {
                "requests_per_second": self.config.requests_per_second,
                "delay": self.config.delay,
                "capacity": self.capacity,
            }
        }

    def __repr__(self) -> str:
        return (
            f"RateLimiter(requests_per_second={self.config.requests_per_second}, "
            f"delay={self.config.delay})"
        )
