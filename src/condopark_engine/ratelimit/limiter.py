"""Fixed-window attempt limiter for authentication endpoints.

Buckets live in process memory: they reset on restart and are not shared
between server instances. Running more than one instance needs an external
shared store (e.g. Redis) behind the same interface.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable

logger = logging.getLogger(__name__)


def normalize_identifier(identifier: str) -> str:
    return (identifier or "").strip().lower()


@dataclass
class RateLimitBucket:
    count: int
    window_start: float


@dataclass(frozen=True)
class RateLimitResult:
    allowed: bool
    limit: int
    remaining: int
    reset_at: float  # epoch seconds

    def headers(self) -> dict[str, str]:
        """X-RateLimit-* headers. Only for endpoints allowed to expose them."""
        return {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(int(self.reset_at)),
        }


class RateLimiter:
    """At most ``max_attempts`` per identifier per ``window_seconds``.

    Every call to :meth:`check` counts as an attempt, successful or not.
    Increment and compare happen under one lock so concurrent callers can
    never both slip under the limit.
    """

    def __init__(
        self,
        max_attempts: int = 5,
        window_seconds: float = 15 * 60,
        scope: str = "default",
        clock: Callable[[], float] = time.time,
        cleanup_interval: float = 300,
    ):
        self.max_attempts = max_attempts
        self.window_seconds = window_seconds
        self.scope = scope
        self._clock = clock
        self._cleanup_interval = cleanup_interval
        self._buckets: dict[str, RateLimitBucket] = {}
        self._lock = threading.Lock()
        self._last_cleanup = clock()

    def _key(self, identifier: str) -> str:
        return f"{self.scope}:{normalize_identifier(identifier)}"

    def _expired(self, bucket: RateLimitBucket, now: float) -> bool:
        return now >= bucket.window_start + self.window_seconds

    def check(self, identifier: str) -> RateLimitResult:
        """Record an attempt and report whether it is allowed."""
        key = self._key(identifier)
        with self._lock:
            now = self._clock()
            self._maybe_cleanup(now)

            bucket = self._buckets.get(key)
            if bucket is None or self._expired(bucket, now):
                bucket = RateLimitBucket(count=0, window_start=now)
                self._buckets[key] = bucket

            reset_at = bucket.window_start + self.window_seconds
            if bucket.count >= self.max_attempts:
                logger.info(
                    "rate limit exceeded",
                    extra={"scope": self.scope, "attempts": bucket.count},
                )
                return RateLimitResult(False, self.max_attempts, 0, reset_at)

            bucket.count += 1
            return RateLimitResult(
                True, self.max_attempts, self.max_attempts - bucket.count, reset_at
            )

    def info(self, identifier: str) -> RateLimitResult | None:
        """Current state for an identifier without recording an attempt."""
        key = self._key(identifier)
        with self._lock:
            bucket = self._buckets.get(key)
            if bucket is None:
                return None
            now = self._clock()
            if self._expired(bucket, now):
                del self._buckets[key]
                return None
            return RateLimitResult(
                bucket.count < self.max_attempts,
                self.max_attempts,
                max(0, self.max_attempts - bucket.count),
                bucket.window_start + self.window_seconds,
            )

    def reset(self, identifier: str) -> None:
        with self._lock:
            self._buckets.pop(self._key(identifier), None)

    def purge_expired(self) -> int:
        """Drop expired buckets. Returns how many were removed."""
        with self._lock:
            return self._purge(self._clock())

    def _maybe_cleanup(self, now: float) -> None:
        if now - self._last_cleanup >= self._cleanup_interval:
            self._purge(now)

    def _purge(self, now: float) -> int:
        expired = [k for k, b in self._buckets.items() if self._expired(b, now)]
        for k in expired:
            del self._buckets[k]
        self._last_cleanup = now
        if expired:
            logger.debug("rate limiter cleanup", extra={"scope": self.scope, "purged": len(expired)})
        return len(expired)

    def __len__(self) -> int:
        return len(self._buckets)
