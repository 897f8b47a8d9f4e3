"""Shared-password gate for the management endpoints.

The client's cookie session (Starlette ``SessionMiddleware``) carries only an
opaque session identifier.  Whether that identifier is authenticated, and
until when, is decided here, server side.  Logging out or letting the TTL
lapse invalidates the identifier even if the browser still presents the
cookie.

The password check is a plain equality comparison against a single
process-wide secret.  Brute-force protection comes from the request rate
limiter in front of the application.
"""

from __future__ import annotations

import logging
import secrets
import time
from collections.abc import Callable, MutableMapping
from typing import Any

logger = logging.getLogger(__name__)

SESSION_KEY = "sid"


class SessionGate:
    """Tracks which session identifiers are authenticated.

    Args:
        password: The shared secret.
        ttl_seconds: Lifetime of an authenticated session.
        clock: Time source returning seconds; injectable for tests.
    """

    def __init__(
        self,
        password: str,
        ttl_seconds: int,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._password = password
        self._ttl = ttl_seconds
        self._clock = clock
        self._expiry: dict[str, float] = {}

    @property
    def active_sessions(self) -> int:
        return len(self._expiry)

    def authenticate(self, session: MutableMapping[str, Any], password: str) -> bool:
        """Check *password* and mark *session* authenticated on a match.

        A mismatch changes nothing: an unauthenticated session stays that
        way, and a session that already logged in keeps its login.
        """
        self.purge_expired()
        if password != self._password:
            logger.warning("Authentication failed: wrong password")
            return False

        # Fresh identifier on every login.
        self._expiry.pop(session.get(SESSION_KEY), None)
        sid = secrets.token_urlsafe(32)
        self._expiry[sid] = self._clock() + self._ttl
        session[SESSION_KEY] = sid
        logger.info("Authentication succeeded")
        return True

    def is_authenticated(self, session: MutableMapping[str, Any]) -> bool:
        sid = session.get(SESSION_KEY)
        if sid is None:
            return False
        expires_at = self._expiry.get(sid)
        if expires_at is None:
            return False
        if self._clock() >= expires_at:
            del self._expiry[sid]
            logger.info("Session expired")
            return False
        return True

    def logout(self, session: MutableMapping[str, Any]) -> None:
        """Invalidate the session's identifier and clear the cookie session."""
        sid = session.get(SESSION_KEY)
        if sid is not None:
            self._expiry.pop(sid, None)
        session.clear()

    def purge_expired(self) -> int:
        """Drop every expired identifier.

        Returns:
            Number of identifiers removed.
        """
        now = self._clock()
        expired = [sid for sid, expires_at in self._expiry.items() if now >= expires_at]
        for sid in expired:
            del self._expiry[sid]
        return len(expired)
