"""Session check for the management endpoints.

The check runs as middleware, inside ``SessionMiddleware`` and before routing,
so an unauthenticated mutation is answered with 401 without its JSON or
multipart body ever being read or parsed.
"""

from __future__ import annotations

import logging
import re

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from livegallery.api.errors import create_error_response
from livegallery.core.errors import AuthError
from livegallery.core.gallery import GalleryService

logger = logging.getLogger(__name__)

# (method, path) pairs that mutate gallery state.
PROTECTED_ROUTES: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("POST", re.compile(r"^/upload/?$")),
    ("POST", re.compile(r"^/images/move/?$")),
    ("POST", re.compile(r"^/update-params/?$")),
    ("DELETE", re.compile(r"^/images/[^/]+/?$")),
)


def is_protected(method: str, path: str) -> bool:
    return any(method == m and pattern.match(path) for m, pattern in PROTECTED_ROUTES)


class SessionAuthMiddleware(BaseHTTPMiddleware):
    """Reject mutations from sessions the gate does not recognise."""

    async def dispatch(self, request: Request, call_next):
        if is_protected(request.method, request.url.path):
            service: GalleryService = request.app.state.gallery
            if not service.gate.is_authenticated(request.session):
                logger.info(f"Unauthorized {request.method} {request.url.path}")
                error = AuthError("Unauthorized")
                return create_error_response(error.message, error.status_code)
        return await call_next(request)
