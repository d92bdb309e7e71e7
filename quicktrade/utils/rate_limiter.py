"""
Rate Limiter - Token Bucket Algorithm
======================================

Keeps Kalshi REST calls under the per-second request budget.
"""

import asyncio
import time
from typing import Optional


class TokenBucketRateLimiter:
    """
    Token bucket rate limiter for API calls.

    Kalshi's basic API tier allows 10 writes and 20 reads per second,
    so the default rate stays under the write limit.
    """

    def __init__(self, rate: float = 10.0, capacity: Optional[float] = None):
        """
        Args:
            rate: Tokens added per second
            capacity: Maximum tokens the bucket can hold (defaults to rate)
        """
        if rate <= 0:
            raise ValueError("rate must be positive")

        self.rate = rate
        self.capacity = capacity if capacity is not None else rate
        self.tokens = self.capacity
        self.last_update = time.monotonic()
        self._lock = asyncio.Lock()

    def _refill(self):
        now = time.monotonic()
        elapsed = now - self.last_update
        self.tokens = min(self.capacity, self.tokens + elapsed * self.rate)
        self.last_update = now

    async def acquire(self, tokens: float = 1.0) -> float:
        """
        Take tokens from the bucket, sleeping until enough are available.

        Returns:
            Time waited (seconds)
        """
        async with self._lock:
            self._refill()

            wait_time = 0.0
            if tokens > self.tokens:
                wait_time = (tokens - self.tokens) / self.rate
                await asyncio.sleep(wait_time)
                self._refill()

            self.tokens = max(0.0, self.tokens - tokens)
            return wait_time
