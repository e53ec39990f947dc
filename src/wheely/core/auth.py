"""
Login throttling.

Credential checks are bcrypt bound and a natural brute force target, so
login and password-change requests draw from a token bucket per client.
"""

import asyncio
import time
from typing import Dict

import structlog

from .exceptions import RateLimitError

logger = structlog.get_logger(__name__)


class TokenBucket:
    """
    Token bucket rate limiter implementation.

    """

    def __init__(self, capacity: int, refill_rate: int) -> None:
        self.capacity = capacity
        self.refill_rate = refill_rate
        self.tokens = capacity
        self.last_refill = time.time()
        self.lock = asyncio.Lock()

    async def consume(self, tokens: int = 1) -> bool:
        """
        Try to consume tokens from bucket.

        Returns True if tokens available, False otherwise.
        """
        async with self.lock:
            now = time.time()
            time_passed = now - self.last_refill

            # Add tokens based on time passed
            tokens_to_add = int(time_passed * self.refill_rate)
            if tokens_to_add > 0:
                self.tokens = min(self.capacity, self.tokens + tokens_to_add)
                self.last_refill = now

            if self.tokens >= tokens:
                self.tokens -= tokens
                return True

            return False

    def get_retry_after(self) -> int:
        """Get suggested retry-after time in seconds."""
        return max(1, int((1 - self.tokens) / self.refill_rate))

    def is_full(self, now: float) -> bool:
        """True when refilling up to now would bring the bucket to capacity."""
        return self.tokens + (now - self.last_refill) * self.refill_rate >= self.capacity


class RateLimiter:
    """
    Per-client rate limiter using token buckets.

    At most max_clients buckets are kept. A full bucket behaves like a new
    one, so those are dropped first; failing that, the least recently
    refilled bucket goes.
    """

    def __init__(self, rps: int, burst: int, max_clients: int = 10000) -> None:
        self.rps = rps
        self.burst = burst
        self.max_clients = max_clients
        self.buckets: Dict[str, TokenBucket] = {}

    def _evict(self) -> None:
        now = time.time()
        evicted = [key for key, bucket in self.buckets.items() if bucket.is_full(now)]
        if not evicted:
            evicted = [min(self.buckets, key=lambda key: self.buckets[key].last_refill)]

        for key in evicted:
            del self.buckets[key]
        logger.debug("Rate limit buckets evicted", evicted=len(evicted), remaining=len(self.buckets))

    async def check_rate_limit(self, client_key: str) -> None:
        """
        Check rate limit for a client.

        Raises RateLimitError if limit exceeded.
        """
        if client_key not in self.buckets:
            if len(self.buckets) >= self.max_clients:
                self._evict()
            logger.debug(
                "Creating new rate limit bucket",
                client=client_key,
                capacity=self.burst,
                refill_rate=self.rps,
            )
            self.buckets[client_key] = TokenBucket(
                capacity=self.burst,
                refill_rate=self.rps,
            )

        bucket = self.buckets[client_key]

        if not await bucket.consume():
            retry_after = bucket.get_retry_after()
            logger.warning(
                "Rate limit exceeded",
                client=client_key,
                retry_after=retry_after,
            )
            raise RateLimitError(
                message="Too many login attempts, try again later",
                retry_after=retry_after,
            )

    def reset(self) -> None:
        self.buckets.clear()
