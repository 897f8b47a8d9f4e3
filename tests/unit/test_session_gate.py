"""Tests for livegallery.core.session_gate — shared-password sessions."""

from __future__ import annotations

from livegallery.core.session_gate import SESSION_KEY, SessionGate


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def _gate(clock: FakeClock | None = None, ttl: int = 60) -> SessionGate:
    return SessionGate("secret", ttl, clock=clock or FakeClock())


class TestAuthenticate:
    def test_correct_password_marks_session(self):
        gate = _gate()
        session: dict = {}

        assert gate.authenticate(session, "secret") is True
        assert gate.is_authenticated(session) is True
        assert SESSION_KEY in session

    def test_wrong_password_leaves_session_unauthenticated(self):
        gate = _gate()
        session: dict = {}

        assert gate.authenticate(session, "nope") is False
        assert gate.is_authenticated(session) is False
        assert session == {}

    def test_wrong_password_keeps_existing_login(self):
        """A mistyped password does not log out a manager."""
        gate = _gate()
        session: dict = {}
        gate.authenticate(session, "secret")
        sid = session[SESSION_KEY]

        assert gate.authenticate(session, "nope") is False

        assert gate.is_authenticated(session) is True
        assert session[SESSION_KEY] == sid
        assert gate.active_sessions == 1

    def test_relogin_rotates_identifier(self):
        gate = _gate()
        session: dict = {}
        gate.authenticate(session, "secret")
        first = session[SESSION_KEY]

        gate.authenticate(session, "secret")

        assert session[SESSION_KEY] != first
        assert gate.active_sessions == 1

    def test_unknown_identifier_is_not_authenticated(self):
        """A forged or server-forgotten identifier grants nothing."""
        gate = _gate()

        assert gate.is_authenticated({SESSION_KEY: "made-up"}) is False


class TestExpiry:
    def test_session_expires_after_ttl(self):
        clock = FakeClock()
        gate = _gate(clock, ttl=60)
        session: dict = {}
        gate.authenticate(session, "secret")

        clock.now += 59
        assert gate.is_authenticated(session) is True

        clock.now += 1
        assert gate.is_authenticated(session) is False
        assert gate.active_sessions == 0

    def test_purge_expired(self):
        clock = FakeClock()
        gate = _gate(clock, ttl=10)
        old: dict = {}
        gate.authenticate(old, "secret")
        clock.now += 5
        fresh: dict = {}
        gate.authenticate(fresh, "secret")

        clock.now += 6

        assert gate.purge_expired() == 1
        assert gate.is_authenticated(fresh) is True


class TestLogout:
    def test_logout_invalidates_identifier(self):
        gate = _gate()
        session: dict = {}
        gate.authenticate(session, "secret")
        copy_of_cookie = dict(session)

        gate.logout(session)

        assert session == {}
        assert gate.is_authenticated(copy_of_cookie) is False

    def test_logout_without_login_is_harmless(self):
        gate = _gate()
        session: dict = {"other": 1}

        gate.logout(session)

        assert session == {}
