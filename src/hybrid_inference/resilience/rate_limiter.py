"""
Token bucket rate limiter for remote tiers.

Each remote client owns one bucket. A call takes one token; the bucket
refills continuously at requests_per_minute and never holds more than
burst_size tokens. An empty bucket is reported to the caller, which turns it
into a rate_limit failure so the normal retry policy applies.
"""

import threading
import time
from dataclasses import dataclass
from typing import Callable

import structlog

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class RateLimitConfig:
    """Bucket sizing."""

    requests_per_minute: int = 60
    burst_size: int = 10

    def __post_init__(self) -> None:
        if self.requests_per_minute < 1:
            raise ValueError("requests_per_minute must be >= 1")
        if self.burst_size < 1:
            raise ValueError("burst_size must be >= 1")


class TokenBucketLimiter:
    """Thread-safe token bucket."""

    def __init__(
        self,
        config: RateLimitConfig | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config or RateLimitConfig()
        self._clock = clock
        self._lock = threading.Lock()
        self._tokens = float(self.config.burst_size)
        self._last_refill = clock()

    def _refill(self, now: float) -> None:
        elapsed = max(0.0, now - self._last_refill)
        rate_per_second = self.config.requests_per_minute / 60.0
        self._tokens = min(float(self.config.burst_size), self._tokens + elapsed * rate_per_second)
        self._last_refill = now

    def try_acquire(self) -> bool:
        """Take one token if available."""
        with self._lock:
            self._refill(self._clock())
            if self._tokens >= 1.0:
                self._tokens -= 1.0
                return True
            remaining = self._tokens

        logger.warning(
            "Rate limit exceeded",
            remaining_tokens=round(remaining, 3),
            requests_per_minute=self.config.requests_per_minute,
        )
        return False

    def seconds_until_available(self) -> float:
        """Time until one token is available (0 if one is available now)."""
        with self._lock:
            self._refill(self._clock())
            missing = 1.0 - self._tokens
        if missing <= 0:
            return 0.0
        return missing / (self.config.requests_per_minute / 60.0)

    @property
    def available_tokens(self) -> float:
        with self._lock:
            self._refill(self._clock())
            return self._tokens
