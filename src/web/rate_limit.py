"""Fixed-window inbound request throttling keyed by client address."""
from __future__ import annotations

import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Tuple

from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from config import RateLimitConfig


@dataclass(frozen=True)
class RateDecision:
    allowed: bool
    remaining: int
    reset_after: float


class FixedWindowRateLimiter:
    """Counts hits per key inside windows of ``window_ms`` milliseconds."""

    def __init__(self, config: RateLimitConfig, clock: Callable[[], float] = time.monotonic) -> None:
        if config.window_ms <= 0:
            raise ValueError("window_ms must be > 0")
        if config.max_requests < 1:
            raise ValueError("max_requests must be >= 1")
        self.config = config
        self._clock = clock
        self._lock = threading.Lock()
        # key -> (window start, hits)
        self._windows: Dict[str, Tuple[float, int]] = {}

    def hit(self, key: str) -> RateDecision:
        window = self.config.window_ms / 1000.0
        now = self._clock()
        with self._lock:
            start, hits = self._windows.get(key, (now, 0))
            if now - start >= window:
                start, hits = now, 0
            hits += 1
            self._windows[key] = (start, hits)
            if len(self._windows) > 10000:
                self._evict(now, window)
        reset_after = max(0.0, start + window - now)
        return RateDecision(
            allowed=hits <= self.config.max_requests,
            remaining=max(0, self.config.max_requests - hits),
            reset_after=reset_after,
        )

    def _evict(self, now: float, window: float) -> None:
        expired = [k for k, (start, _) in self._windows.items() if now - start >= window]
        for k in expired:
            del self._windows[k]


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp, limiter: FixedWindowRateLimiter) -> None:
        super().__init__(app)
        self.limiter = limiter

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        key = request.client.host if request.client else "unknown"
        decision = self.limiter.hit(key)
        headers = {
            "RateLimit-Limit": str(self.limiter.config.max_requests),
            "RateLimit-Remaining": str(decision.remaining),
            "RateLimit-Reset": str(math.ceil(decision.reset_after)),
        }
        if not decision.allowed:
            headers["Retry-After"] = headers["RateLimit-Reset"]
            return JSONResponse(status_code=429, content={"error": "Too many requests"}, headers=headers)

        response = await call_next(request)
        response.headers.update(headers)
        return response
