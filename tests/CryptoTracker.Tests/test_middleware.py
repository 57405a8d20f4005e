"""Tests for security headers and access logging on every response."""
import logging

from fastapi.testclient import TestClient

from app import create_app
from config import RateLimitConfig
from web.middleware import SECURITY_HEADERS


def _client(max_requests=1000):
    app = create_app(
        rate_limit=RateLimitConfig(window_ms=60000, max_requests=max_requests), enable_scheduler=False
    )
    return TestClient(app)


def test_security_headers_are_set():
    response = _client().get("/ping")

    assert response.headers["x-content-type-options"] == "nosniff"
    assert response.headers["x-frame-options"] == "SAMEORIGIN"
    assert response.headers["referrer-policy"] == "no-referrer"
    assert response.headers["strict-transport-security"].startswith("max-age=")


def test_security_headers_are_set_on_errors_and_throttling():
    client = _client(max_requests=1)

    missing = client.get("/does-not-exist")
    throttled = client.get("/ping")

    assert missing.status_code == 404
    assert throttled.status_code == 429
    for response in (missing, throttled):
        for name, value in SECURITY_HEADERS.items():
            assert response.headers[name] == value


def test_requests_are_logged(caplog):
    client = _client()

    with caplog.at_level(logging.INFO, logger="web.access"):
        client.get("/ping")

    assert "GET /ping 200" in caplog.text
