"""Rate limiting module - Fixed-window per-tenant quotas."""

from .limiter import (
    RateLimitConfig,
    RateLimitResult,
    RateLimitBucket,
    RateLimiter,
)
from .exceptions import RateLimitExceededError


__all__ = [
    "RateLimitConfig",
    "RateLimitResult",
    "RateLimitBucket",
    "RateLimiter",
    "RateLimitExceededError",
]
