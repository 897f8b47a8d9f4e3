"""Per-address request rate limiting.

Two fixed-window limiters sit in front of every HTTP route:

- a general limiter shared by all endpoints
- a stricter limiter that only applies to ``POST /upload``

Both are keyed on the client address, preferring the first hop of
``X-Forwarded-For`` when the app runs behind a proxy.  ``/health`` is exempt
so that liveness probes never get throttled.  WebSocket upgrades do not pass
through this middleware.
"""

from __future__ import annotations

import logging
from datetime import timedelta

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from throttled import RateLimiterType, Throttled, rate_limiter, store

from livegallery.api.errors import create_error_response

logger = logging.getLogger(__name__)

EXEMPT_PATHS = frozenset({"/health"})


def _make_throttle(window_seconds: int, limit: int) -> Throttled:
    return Throttled(
        using=RateLimiterType.FIXED_WINDOW.value,
        quota=rate_limiter.per_duration(timedelta(seconds=window_seconds), limit=limit),
        store=store.MemoryStore(),
    )


def client_key(request: Request) -> str:
    """Extract the client identifier from *request*."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client:
        return request.client.host
    return "unknown"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Reject requests over quota with 429 before they reach a handler."""

    def __init__(
        self,
        app,
        window_seconds: int = 900,
        general_limit: int = 100,
        upload_limit: int = 20,
    ) -> None:
        super().__init__(app)
        self.window_seconds = window_seconds
        self.general_throttle = _make_throttle(window_seconds, general_limit)
        self.upload_throttle = _make_throttle(window_seconds, upload_limit)

    async def dispatch(self, request: Request, call_next):
        path = request.url.path
        if path in EXEMPT_PATHS:
            return await call_next(request)

        key = client_key(request)
        limited = self.general_throttle.limit(f"general:{key}", cost=1).limited
        if not limited and request.method == "POST" and path == "/upload":
            limited = self.upload_throttle.limit(f"upload:{key}", cost=1).limited

        if limited:
            logger.warning(f"Rate limit exceeded for {key} on {request.method} {path}")
            return create_error_response(
                "Too many requests, please try again later.",
                429,
                headers={"Retry-After": str(self.window_seconds)},
            )

        return await call_next(request)
