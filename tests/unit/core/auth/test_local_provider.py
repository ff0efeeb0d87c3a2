"""Tests for LocalIdentityProvider and AuthService error mapping."""

from __future__ import annotations

import asyncio

import pytest

from healthpath.core.auth.identity import (
    PROFILE_LOAD_FAILED_MESSAGE,
    AuthError,
    AuthService,
    auth_error_message,
)
from healthpath.core.auth.local_provider import LocalIdentityProvider


def _run(coro):
    """Run an async coroutine synchronously (no pytest-asyncio required)."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@pytest.fixture
def provider(health_db):
    return LocalIdentityProvider(health_db, max_failed_attempts=3)


@pytest.fixture
def auth(provider):
    return AuthService(provider)


def _code(exc_info) -> str:
    return exc_info.value.code


class TestSignUp:
    def test_creates_profile(self, auth, provider):
        profile = _run(auth.sign_up("Ada@Example.com ", "secret1", "Ada"))
        assert profile.email == "ada@example.com"
        assert profile.display_name == "Ada"
        assert profile.uid
        assert provider.is_signed_in(profile.uid)

    def test_duplicate_email(self, auth):
        _run(auth.sign_up("ada@example.com", "secret1", "Ada"))
        with pytest.raises(AuthError) as excinfo:
            _run(auth.sign_up("ADA@example.com", "another1", "Ada 2"))
        assert _code(excinfo) == "auth/email-already-in-use"
        assert excinfo.value.message == "This email is already registered. Please login instead."

    def test_weak_password(self, auth):
        with pytest.raises(AuthError) as excinfo:
            _run(auth.sign_up("ada@example.com", "12345", "Ada"))
        assert _code(excinfo) == "auth/weak-password"

    def test_invalid_email(self, auth):
        with pytest.raises(AuthError) as excinfo:
            _run(auth.sign_up("not-an-email", "secret1", "Ada"))
        assert _code(excinfo) == "auth/invalid-email"


class TestSignIn:
    def test_success(self, auth, provider):
        created = _run(auth.sign_up("ada@example.com", "secret1", "Ada"))
        _run(auth.sign_out(created.uid))
        assert not provider.is_signed_in(created.uid)

        profile = _run(auth.sign_in("ada@example.com", "secret1"))
        assert profile.uid == created.uid
        assert provider.is_signed_in(created.uid)

    def test_unknown_user(self, auth):
        with pytest.raises(AuthError) as excinfo:
            _run(auth.sign_in("ghost@example.com", "secret1"))
        assert _code(excinfo) == "auth/user-not-found"

    def test_wrong_password_then_lockout(self, auth):
        _run(auth.sign_up("ada@example.com", "secret1", "Ada"))
        for _ in range(3):
            with pytest.raises(AuthError) as excinfo:
                _run(auth.sign_in("ada@example.com", "wrong-pass"))
            assert _code(excinfo) == "auth/wrong-password"

        with pytest.raises(AuthError) as excinfo:
            _run(auth.sign_in("ada@example.com", "secret1"))
        assert _code(excinfo) == "auth/too-many-requests"

    def test_password_reset_does_not_clear_lockout(self, auth):
        _run(auth.sign_up("ada@example.com", "secret1", "Ada"))
        wrong_password_replies = 0
        for _ in range(3):
            for _ in range(3):
                with pytest.raises(AuthError) as excinfo:
                    _run(auth.sign_in("ada@example.com", "wrong-pass"))
                if _code(excinfo) == "auth/wrong-password":
                    wrong_password_replies += 1
            _run(auth.reset_password("ada@example.com"))

        assert wrong_password_replies == 3
        with pytest.raises(AuthError) as excinfo:
            _run(auth.sign_in("ada@example.com", "secret1"))
        assert _code(excinfo) == "auth/too-many-requests"

    def test_reset_request_is_recorded(self, auth, health_db):
        profile = _run(auth.sign_up("ada@example.com", "secret1", "Ada"))
        _run(auth.reset_password("ada@example.com"))
        rows = health_db.connection.execute(
            "SELECT uid FROM password_resets"
        ).fetchall()
        assert [r["uid"] for r in rows] == [profile.uid]

    def test_lockout_expires(self, auth, health_db):
        _run(auth.sign_up("ada@example.com", "secret1", "Ada"))
        for _ in range(3):
            with pytest.raises(AuthError):
                _run(auth.sign_in("ada@example.com", "wrong-pass"))
        with health_db.transaction() as conn:
            conn.execute("UPDATE users SET locked_until = ?", ("2000-01-01T00:00:00.000Z",))

        assert _run(auth.sign_in("ada@example.com", "secret1")).email == "ada@example.com"
        row = health_db.connection.execute(
            "SELECT failed_attempts, locked_until FROM users"
        ).fetchone()
        assert row["failed_attempts"] == 0
        assert row["locked_until"] is None

    def test_successful_sign_in_resets_counter(self, auth):
        _run(auth.sign_up("ada@example.com", "secret1", "Ada"))
        for _ in range(2):
            with pytest.raises(AuthError):
                _run(auth.sign_in("ada@example.com", "wrong-pass"))
        _run(auth.sign_in("ada@example.com", "secret1"))
        for _ in range(2):
            with pytest.raises(AuthError) as excinfo:
                _run(auth.sign_in("ada@example.com", "wrong-pass"))
            assert _code(excinfo) == "auth/wrong-password"

    def test_disabled_account(self, auth, health_db):
        profile = _run(auth.sign_up("ada@example.com", "secret1", "Ada"))
        with health_db.transaction() as conn:
            conn.execute("UPDATE users SET disabled = 1 WHERE uid = ?", (profile.uid,))
        with pytest.raises(AuthError) as excinfo:
            _run(auth.sign_in("ada@example.com", "secret1"))
        assert _code(excinfo) == "auth/user-disabled"


class TestProfile:
    def test_get_profile(self, auth):
        created = _run(auth.sign_up("ada@example.com", "secret1", "Ada"))
        assert _run(auth.get_profile(created.uid)) == created

    def test_missing_profile_is_none(self, auth):
        assert _run(auth.get_profile("nope")) is None

    def test_load_failure_is_normalized(self, auth, health_db):
        health_db.close()
        with pytest.raises(AuthError) as excinfo:
            _run(auth.get_profile("any"))
        assert excinfo.value.message == PROFILE_LOAD_FAILED_MESSAGE


class TestErrorMapping:
    def test_known_code(self):
        assert auth_error_message("auth/wrong-password") == "Incorrect password. Please try again."

    def test_unknown_code_uses_default(self):
        assert auth_error_message("auth/quota-exceeded") == "An error occurred. Please try again."

    def test_unexpected_exception_becomes_unknown(self):
        class _Broken:
            async def sign_in(self, email, password):
                raise RuntimeError("socket closed")

        with pytest.raises(AuthError) as excinfo:
            _run(AuthService(_Broken()).sign_in("a@b.co", "secret1"))
        assert _code(excinfo) == "auth/unknown"
        assert excinfo.value.message == "An error occurred. Please try again."
