from __future__ import annotations

import pytest

from leadconnect.infrastructure.rate_limiting import (
    FixedWindowRateLimiter,
    LimitsRateLimiter,
    build_rate_limiter,
)


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now


def test_fixed_window_blocks_after_quota_and_reports_retry_after():
    clock = FakeClock()
    limiter = FixedWindowRateLimiter(3, 900, clock=clock)

    decisions = [limiter.hit("owner@acme.example") for _ in range(3)]
    assert [d.remaining for d in decisions] == [2, 1, 0]
    assert all(d.allowed for d in decisions)

    clock.now += 100.5
    blocked = limiter.hit("owner@acme.example")
    assert not blocked.allowed
    assert blocked.retry_after == 800


def test_fixed_window_resets_after_window():
    clock = FakeClock()
    limiter = FixedWindowRateLimiter(1, 60, clock=clock)
    assert limiter.hit("k").allowed
    assert not limiter.hit("k").allowed
    clock.now += 60
    assert limiter.hit("k").allowed


def test_keys_are_independent():
    limiter = FixedWindowRateLimiter(1, 60, clock=FakeClock())
    assert limiter.hit("1:10.0.0.1").allowed
    assert limiter.hit("1:10.0.0.2").allowed
    assert not limiter.hit("1:10.0.0.1").allowed


def test_reset_clears_all_windows():
    limiter = FixedWindowRateLimiter(1, 60, clock=FakeClock())
    limiter.hit("k")
    limiter.reset()
    assert limiter.hit("k").allowed


def test_invalid_configuration_is_rejected():
    with pytest.raises(ValueError):
        FixedWindowRateLimiter(0, 60)


def test_limits_backed_limiter_with_memory_storage():
    limiter = LimitsRateLimiter(2, 3600, "memory://", namespace="config")
    assert limiter.hit("203.0.113.9").remaining == 1
    assert limiter.hit("203.0.113.9").allowed
    blocked = limiter.hit("203.0.113.9")
    assert not blocked.allowed
    assert 1 <= blocked.retry_after <= 3600


def test_build_rate_limiter_picks_backend_from_storage_uri():
    assert isinstance(build_rate_limiter(5, 60, namespace="leads"), FixedWindowRateLimiter)
    assert isinstance(
        build_rate_limiter(5, 60, namespace="leads", storage_uri="memory://"), LimitsRateLimiter
    )
