"""Identity provider interface and user-facing error mapping.

Provider implementations raise ``AuthError`` with a provider code
(``auth/...``). ``AuthService`` is the boundary the tools call: it converts
each code to one fixed message so the UI never shows provider internals.
"""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

from healthpath.core.storage.models import UserProfile

logger = logging.getLogger(__name__)

AUTH_ERROR_MESSAGES: dict[str, str] = {
    "auth/email-already-in-use": "This email is already registered. Please login instead.",
    "auth/invalid-email": "Please enter a valid email address.",
    "auth/operation-not-allowed": "Email/password sign up is not enabled. Please contact support.",
    "auth/weak-password": "Password is too weak. Please use at least 6 characters.",
    "auth/user-disabled": "This account has been disabled. Please contact support.",
    "auth/user-not-found": "No account found with this email. Please sign up first.",
    "auth/wrong-password": "Incorrect password. Please try again.",
    "auth/too-many-requests": "Too many failed attempts. Please try again later.",
    "auth/network-request-failed": "Network error. Please check your internet connection.",
    "auth/invalid-credential": "Invalid email or password. Please try again.",
}
DEFAULT_AUTH_MESSAGE = "An error occurred. Please try again."
SIGN_OUT_FAILED_MESSAGE = "Failed to sign out. Please try again."
PROFILE_LOAD_FAILED_MESSAGE = "Failed to load user profile."


def auth_error_message(code: str) -> str:
    """Map a provider error code to its user-facing message."""
    return AUTH_ERROR_MESSAGES.get(code, DEFAULT_AUTH_MESSAGE)


class AuthError(Exception):
    """Authentication failure carrying a provider code and a user-facing message."""

    def __init__(self, code: str, message: str | None = None) -> None:
        self.code = code
        self.message = message or auth_error_message(code)
        super().__init__(self.message)


@runtime_checkable
class IdentityProvider(Protocol):
    """Operations consumed from the authentication service."""

    async def create_account(
        self, email: str, password: str, display_name: str
    ) -> UserProfile: ...

    async def sign_in(self, email: str, password: str) -> UserProfile: ...

    async def sign_out(self, uid: str) -> None: ...

    async def send_password_reset(self, email: str) -> None: ...

    async def get_profile(self, uid: str) -> UserProfile | None: ...


class AuthService:
    """Wraps an ``IdentityProvider`` and normalizes every failure to ``AuthError``.

    Usage::

        auth = AuthService(LocalIdentityProvider(db))
        try:
            profile = await auth.sign_in(email, password)
        except AuthError as exc:
            show(exc.message)
    """

    def __init__(self, provider: IdentityProvider) -> None:
        self._provider = provider

    @staticmethod
    def _normalize(exc: Exception, operation: str, fallback: str = DEFAULT_AUTH_MESSAGE) -> AuthError:
        if isinstance(exc, AuthError):
            logger.warning("%s failed: %s", operation, exc.code)
            return AuthError(exc.code, auth_error_message(exc.code))
        logger.error("%s failed unexpectedly: %s", operation, exc)
        return AuthError("auth/unknown", fallback)

    async def sign_up(self, email: str, password: str, display_name: str) -> UserProfile:
        try:
            profile = await self._provider.create_account(email, password, display_name)
        except Exception as exc:
            raise self._normalize(exc, "Sign up") from exc
        logger.info("Account created: %s", profile.uid)
        return profile

    async def sign_in(self, email: str, password: str) -> UserProfile:
        try:
            profile = await self._provider.sign_in(email, password)
        except Exception as exc:
            raise self._normalize(exc, "Sign in") from exc
        logger.info("Signed in: %s", profile.uid)
        return profile

    async def sign_out(self, uid: str) -> None:
        try:
            await self._provider.sign_out(uid)
        except Exception as exc:
            logger.error("Sign out failed for %s: %s", uid, exc)
            raise AuthError("auth/sign-out-failed", SIGN_OUT_FAILED_MESSAGE) from exc

    async def reset_password(self, email: str) -> None:
        try:
            await self._provider.send_password_reset(email)
        except Exception as exc:
            raise self._normalize(exc, "Password reset") from exc

    async def get_profile(self, uid: str) -> UserProfile | None:
        try:
            return await self._provider.get_profile(uid)
        except Exception as exc:
            logger.error("Profile load failed for %s: %s", uid, exc)
            raise AuthError("auth/profile-load-failed", PROFILE_LOAD_FAILED_MESSAGE) from exc
