"""
Request rate limiting.

Burst protection for a single application session. Two gates are
evaluated in a fixed order:

1. Minimum delay since the last recorded request
2. Sliding windows: requests in the trailing minute, then trailing hour

State lives only in process memory; a restart resets it. The durable
budget gate is the backstop for sustained usage.
"""

import logging
import math
import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque, Optional

logger = logging.getLogger(__name__)

MINUTE = 60.0
HOUR = 3600.0


@dataclass(frozen=True)
class RateLimitStatus:
    """Outcome of a rate limit check."""
    allowed: bool
    reason: Optional[str] = None
    wait_time: int = 0  # seconds


@dataclass(frozen=True)
class RateLimiterStats:
    """Display-only snapshot of rate limiter usage."""
    requests_this_minute: int
    requests_this_hour: int
    max_per_minute: int
    max_per_hour: int


class RateLimiter:
    """Sliding-window rate limiter with a minimum inter-request delay.

    Construct one per application session and share it. Timestamps come
    from a monotonic clock so wall-clock changes do not affect spacing.
    """

    def __init__(
        self,
        min_delay: float = 2.0,
        max_per_minute: int = 10,
        max_per_hour: int = 50,
        clock: Optional[Callable[[], float]] = None,
    ):
        """Initialize the limiter.

        Args:
            min_delay: Minimum seconds between recorded requests
            max_per_minute: Cap on requests in the trailing 60 seconds
            max_per_hour: Cap on requests in the trailing hour
            clock: Returns the current time in seconds (defaults to time.monotonic)
        """
        if min_delay < 0:
            raise ValueError("min_delay cannot be negative")
        if max_per_minute <= 0:
            raise ValueError("max_per_minute must be > 0")
        if max_per_hour <= 0:
            raise ValueError("max_per_hour must be > 0")

        self.min_delay = min_delay
        self.max_per_minute = max_per_minute
        self.max_per_hour = max_per_hour
        self.clock = clock or time.monotonic

        self._requests: Deque[float] = deque()
        self._last_request: Optional[float] = None
        self._lock = threading.RLock()

    def check_rate_limit(self) -> RateLimitStatus:
        """Check whether a request may be sent now.

        Does not record anything; call record_request() once the request
        is about to be dispatched.
        """
        with self._lock:
            now = self.clock()

            if self._last_request is not None:
                elapsed = now - self._last_request
                if elapsed < self.min_delay:
                    wait_time = math.ceil(self.min_delay - elapsed)
                    return self._deny(
                        f"Please wait {wait_time} seconds between submissions",
                        wait_time,
                    )

            self._prune(now)

            if self._count_since(now - MINUTE) >= self.max_per_minute:
                return self._deny("Too many requests per minute. Please slow down.", 60)

            if len(self._requests) >= self.max_per_hour:
                return self._deny("Hourly request limit reached. Please try again later.", 3600)

            return RateLimitStatus(allowed=True)

    def record_request(self) -> None:
        """Record that a request is being dispatched now."""
        with self._lock:
            now = self.clock()
            self._requests.append(now)
            self._last_request = now

    def try_acquire(self) -> RateLimitStatus:
        """Check and, when allowed, record a request as one atomic step."""
        with self._lock:
            status = self.check_rate_limit()
            if status.allowed:
                self.record_request()
            return status

    def get_stats(self) -> RateLimiterStats:
        """Return current counts for display. Has no side effects."""
        with self._lock:
            now = self.clock()
            return RateLimiterStats(
                requests_this_minute=self._count_since(now - MINUTE),
                requests_this_hour=self._count_since(now - HOUR),
                max_per_minute=self.max_per_minute,
                max_per_hour=self.max_per_hour,
            )

    def reset(self) -> None:
        """Forget all recorded requests."""
        with self._lock:
            self._requests.clear()
            self._last_request = None

    def _prune(self, now: float) -> None:
        cutoff = now - HOUR
        while self._requests and self._requests[0] <= cutoff:
            self._requests.popleft()

    def _count_since(self, cutoff: float) -> int:
        return sum(1 for t in self._requests if t > cutoff)

    def _deny(self, reason: str, wait_time: int) -> RateLimitStatus:
        logger.info("Rate limit denied: %s", reason)
        return RateLimitStatus(allowed=False, reason=reason, wait_time=wait_time)
