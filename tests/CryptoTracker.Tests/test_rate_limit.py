"""Tests for inbound request throttling."""
import pytest
from fastapi.testclient import TestClient

from app import create_app
from config import RateLimitConfig
from web.rate_limit import FixedWindowRateLimiter


class FakeClock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


def test_limiter_blocks_after_cap_and_resets_with_window():
    clock = FakeClock()
    limiter = FixedWindowRateLimiter(RateLimitConfig(window_ms=1000, max_requests=2), clock=clock)

    assert limiter.hit("a").allowed
    assert limiter.hit("a").allowed
    blocked = limiter.hit("a")
    assert not blocked.allowed
    assert blocked.remaining == 0
    assert limiter.hit("b").allowed

    clock.now += 1.0
    assert limiter.hit("a").allowed


def test_limiter_rejects_bad_config():
    with pytest.raises(ValueError):
        FixedWindowRateLimiter(RateLimitConfig(window_ms=0, max_requests=1))
    with pytest.raises(ValueError):
        FixedWindowRateLimiter(RateLimitConfig(window_ms=1000, max_requests=0))


def test_middleware_returns_429_when_exhausted():
    app = create_app(rate_limit=RateLimitConfig(window_ms=60000, max_requests=2), enable_scheduler=False)
    client = TestClient(app)

    assert client.get("/ping").status_code == 200
    second = client.get("/ping")
    assert second.headers["RateLimit-Remaining"] == "0"
    third = client.get("/ping")

    assert third.status_code == 429
    assert third.json() == {"error": "Too many requests"}
    assert "Retry-After" in third.headers


def test_throttled_response_carries_cors_header():
    app = create_app(rate_limit=RateLimitConfig(window_ms=60000, max_requests=1), enable_scheduler=False)
    client = TestClient(app)
    origin = {"Origin": "http://dashboard.test"}

    assert client.get("/ping", headers=origin).status_code == 200
    blocked = client.get("/ping", headers=origin)

    assert blocked.status_code == 429
    assert blocked.headers["access-control-allow-origin"] == "*"
    assert blocked.json() == {"error": "Too many requests"}


def test_cors_preflight_does_not_consume_quota():
    app = create_app(rate_limit=RateLimitConfig(window_ms=60000, max_requests=1), enable_scheduler=False)
    client = TestClient(app)
    preflight = {"Origin": "http://dashboard.test", "Access-Control-Request-Method": "GET"}

    for _ in range(3):
        assert client.options("/crypto/current", headers=preflight).status_code == 200

    assert client.get("/ping").status_code == 200
