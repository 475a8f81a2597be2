"""Fixed-window rate limiter keyed by (integration, tenant), in-memory."""

import threading
import time
from typing import Callable, NamedTuple

from cachetools import LRUCache
from pydantic import BaseModel, Field


class RateLimitConfig(BaseModel):
    """Configuration for one integration's quota.

    Attributes:
        limit: Maximum calls per tenant per window; 0 means unlimited.
        window_seconds: Window length in seconds.
    """

    limit: int = Field(default=1000, ge=0, description="Calls per window")
    window_seconds: float = Field(default=60.0, gt=0, description="Window length in seconds")

    @property
    def unlimited(self) -> bool:
        return self.limit == 0


class RateLimitResult(NamedTuple):
    """Result of a rate limit check.

    Attributes:
        allowed: Whether the request is allowed.
        limit: The rate limit.
        remaining: Remaining requests in window.
        reset_at: Unix timestamp when the window resets.
        retry_after: Seconds to wait if denied (0 if allowed).
    """

    allowed: bool
    limit: int
    remaining: int
    reset_at: int
    retry_after: float = 0.0


class RateLimitBucket:
    """Thread-safe fixed-window counter for one (integration, tenant) pair.

    The window restarts when the clock reaches ``window_start + window_seconds``.
    A rejected attempt does not increment the count.
    """

    def __init__(self, integration_name: str, tenant_id: str, config: RateLimitConfig, now: float):
        self.integration_name = integration_name
        self.tenant_id = tenant_id
        self.limit = config.limit
        self.window_seconds = config.window_seconds
        self.window_start = now
        self.count = 0
        self._lock = threading.Lock()

    def consume(self, config: RateLimitConfig, now: float) -> RateLimitResult:
        """Check the window and count one attempt if allowed.

        Args:
            config: Current quota for the bucket's integration.
            now: Current time in epoch seconds.

        Returns:
            RateLimitResult with allow/deny status and metadata.
        """
        with self._lock:
            self.limit = config.limit
            self.window_seconds = config.window_seconds

            if now >= self.window_start + self.window_seconds:
                self.window_start = now
                self.count = 0

            reset_at = self.window_start + self.window_seconds

            if self.count >= self.limit:
                return RateLimitResult(
                    allowed=False,
                    limit=self.limit,
                    remaining=0,
                    reset_at=int(reset_at),
                    retry_after=max(0.0, reset_at - now),
                )

            self.count += 1
            return RateLimitResult(
                allowed=True,
                limit=self.limit,
                remaining=self.limit - self.count,
                reset_at=int(reset_at),
            )


class RateLimiter:
    """Per-tenant, per-integration rate limiter.

    Buckets are held in an LRU cache so idle tenants are eventually evicted.
    The cache lock only guards lookup and insertion; counting happens under
    each bucket's own lock so unrelated tenants never serialize.
    """

    def __init__(
        self,
        default_config: RateLimitConfig | None = None,
        max_buckets: int = 10000,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize rate limiter.

        Args:
            default_config: Quota for integrations without an override.
            max_buckets: Maximum buckets kept before least-recently-used eviction.
            clock: Time source, injectable for tests.
        """
        self.default_config = default_config or RateLimitConfig()
        self._configs: dict[str, RateLimitConfig] = {}
        self._buckets: LRUCache[tuple[str, str], RateLimitBucket] = LRUCache(maxsize=max_buckets)
        self._lock = threading.Lock()
        self._clock = clock

    def set_limit(self, integration_name: str, limit: int, window_seconds: float | None = None) -> None:
        """Configure an integration's quota (administrative operation)."""
        config = RateLimitConfig(
            limit=limit,
            window_seconds=window_seconds or self.default_config.window_seconds,
        )
        with self._lock:
            self._configs[integration_name] = config

    def get_config(self, integration_name: str) -> RateLimitConfig:
        return self._configs.get(integration_name, self.default_config)

    def get_bucket(self, integration_name: str, tenant_id: str) -> RateLimitBucket | None:
        with self._lock:
            return self._buckets.get((integration_name, tenant_id))

    def check_and_increment(self, integration_name: str, tenant_id: str) -> RateLimitResult:
        """Count one invocation attempt for a tenant on an integration.

        Args:
            integration_name: Integration being called.
            tenant_id: Tenant making the call.

        Returns:
            RateLimitResult; ``allowed`` is False once the window's quota is used.
        """
        config = self.get_config(integration_name)
        now = self._clock()

        if config.unlimited:
            return RateLimitResult(allowed=True, limit=0, remaining=0, reset_at=0)

        key = (integration_name, tenant_id)
        with self._lock:
            bucket = self._buckets.get(key)
            if bucket is None:
                bucket = RateLimitBucket(integration_name, tenant_id, config, now)
                self._buckets[key] = bucket

        return bucket.consume(config, now)

    def reset(self) -> None:
        """Drop all buckets."""
        with self._lock:
            self._buckets.clear()
