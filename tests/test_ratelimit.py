"""Unit tests for rate limiting module."""

import threading

import pytest
from pydantic import ValidationError

from mcphub.ratelimit import (
    RateLimitBucket,
    RateLimitConfig,
    RateLimiter,
    RateLimitExceededError,
)


class FakeClock:
    """Manually advanced time source."""

    def __init__(self, start: float = 1_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


class TestRateLimitConfig:
    """Tests for RateLimitConfig."""

    def test_defaults(self):
        config = RateLimitConfig()

        assert config.limit == 1000
        assert config.window_seconds == 60.0
        assert not config.unlimited

    def test_zero_is_unlimited(self):
        assert RateLimitConfig(limit=0).unlimited

    def test_rejects_negative_limit(self):
        with pytest.raises(ValidationError):
            RateLimitConfig(limit=-1)


class TestRateLimitBucket:
    """Tests for the fixed-window counter."""

    def test_counts_until_limit(self):
        config = RateLimitConfig(limit=2, window_seconds=10)
        bucket = RateLimitBucket("search", "u1", config, now=0.0)

        first = bucket.consume(config, now=1.0)
        second = bucket.consume(config, now=2.0)
        third = bucket.consume(config, now=3.0)

        assert (first.allowed, first.remaining) == (True, 1)
        assert (second.allowed, second.remaining) == (True, 0)
        assert not third.allowed
        assert third.retry_after == pytest.approx(7.0)
        assert bucket.count == 2

    def test_window_reset_starts_at_now(self):
        config = RateLimitConfig(limit=1, window_seconds=10)
        bucket = RateLimitBucket("search", "u1", config, now=0.0)
        bucket.consume(config, now=0.0)

        result = bucket.consume(config, now=15.0)

        assert result.allowed
        assert bucket.window_start == 15.0
        assert bucket.count == 1


class TestRateLimiter:
    """Tests for RateLimiter."""

    def test_fixed_window_limit_three_per_minute(self, clock):
        """Three calls pass, the fourth is rejected, the window then resets."""
        limiter = RateLimiter(RateLimitConfig(limit=3, window_seconds=60), clock=clock)

        results = []
        for offset in (0, 1, 2, 3):
            clock.now = 1_000.0 + offset
            results.append(limiter.check_and_increment("search", "u1"))

        assert [r.allowed for r in results] == [True, True, True, False]
        assert results[3].retry_after == pytest.approx(57.0)
        assert limiter.get_bucket("search", "u1").count == 3

        clock.now = 1_061.0
        after_reset = limiter.check_and_increment("search", "u1")

        assert after_reset.allowed
        assert limiter.get_bucket("search", "u1").count == 1

    def test_rejected_attempts_do_not_count(self, clock):
        limiter = RateLimiter(RateLimitConfig(limit=1, window_seconds=60), clock=clock)

        limiter.check_and_increment("search", "u1")
        for _ in range(5):
            assert not limiter.check_and_increment("search", "u1").allowed

        assert limiter.get_bucket("search", "u1").count == 1

    def test_tenants_and_integrations_isolated(self, clock):
        limiter = RateLimiter(RateLimitConfig(limit=1, window_seconds=60), clock=clock)

        assert limiter.check_and_increment("search", "u1").allowed
        assert limiter.check_and_increment("search", "u2").allowed
        assert limiter.check_and_increment("calculator", "u1").allowed
        assert not limiter.check_and_increment("search", "u1").allowed

    def test_per_integration_limit(self, clock):
        limiter = RateLimiter(RateLimitConfig(limit=100, window_seconds=60), clock=clock)
        limiter.set_limit("search", 1, window_seconds=5)

        assert limiter.get_config("search").window_seconds == 5
        assert limiter.get_config("calculator").limit == 100
        assert limiter.check_and_increment("search", "u1").allowed
        assert not limiter.check_and_increment("search", "u1").allowed

        clock.advance(5)
        assert limiter.check_and_increment("search", "u1").allowed

    def test_zero_limit_is_unlimited(self, clock):
        limiter = RateLimiter(clock=clock)
        limiter.set_limit("search", 0)

        for _ in range(50):
            assert limiter.check_and_increment("search", "u1").allowed
        assert limiter.get_bucket("search", "u1") is None

    def test_lru_evicts_idle_buckets(self, clock):
        limiter = RateLimiter(RateLimitConfig(limit=5), max_buckets=2, clock=clock)

        limiter.check_and_increment("search", "u1")
        limiter.check_and_increment("search", "u2")
        limiter.check_and_increment("search", "u3")

        assert limiter.get_bucket("search", "u1") is None
        assert limiter.get_bucket("search", "u3") is not None

    def test_reset(self, clock):
        limiter = RateLimiter(RateLimitConfig(limit=1), clock=clock)
        limiter.check_and_increment("search", "u1")

        limiter.reset()

        assert limiter.check_and_increment("search", "u1").allowed

    def test_concurrent_increments_never_exceed_limit(self, clock):
        limiter = RateLimiter(RateLimitConfig(limit=50, window_seconds=60), clock=clock)
        allowed = []
        lock = threading.Lock()

        def worker():
            for _ in range(20):
                result = limiter.check_and_increment("search", "u1")
                with lock:
                    allowed.append(result.allowed)

        threads = [threading.Thread(target=worker) for _ in range(10)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert allowed.count(True) == 50
        assert limiter.get_bucket("search", "u1").count == 50


class TestRateLimitExceededError:
    def test_retry_after_header_rounds_up(self):
        error = RateLimitExceededError(integration_name="search", limit=3, retry_after=0.2)

        assert error.retry_after_header == "1"
        assert error.data == {"retryAfter": 0.2, "limit": 3}

    def test_message_mentions_integration(self):
        error = RateLimitExceededError(integration_name="search", limit=3, retry_after=12.5)

        assert "search" in error.message
        assert error.retry_after_header == "13"
