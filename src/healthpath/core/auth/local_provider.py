"""SQLite-backed identity provider with bcrypt password hashes.

Used when no external authentication service is configured. Raises
``AuthError`` with the same codes a hosted provider would use, so
``AuthService`` maps both identically.
"""

from __future__ import annotations

import logging
import re
import sqlite3
import uuid
from datetime import datetime, timedelta, timezone

import bcrypt

from healthpath.core.auth.identity import AuthError
from healthpath.core.storage.database import HealthDatabase
from healthpath.core.storage.models import UserProfile, normalize_date, now_iso

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6
_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class LocalIdentityProvider:
    """Accounts stored in the vitals database.

    Failed sign-ins are counted per account. Reaching ``max_failed_attempts``
    locks the account for ``lockout_s`` seconds, during which every attempt
    fails with ``auth/too-many-requests``. A successful sign-in clears the
    counter; a password reset request does not.
    """

    def __init__(
        self,
        database: HealthDatabase,
        max_failed_attempts: int = 5,
        lockout_s: int = 900,
    ) -> None:
        self._db = database
        self._max_failed = max_failed_attempts
        self._lockout_s = lockout_s
        self._signed_in: set[str] = set()

    @staticmethod
    def _normalize_email(email: str) -> str:
        normalized = (email or "").strip().lower()
        if not _EMAIL_RE.match(normalized):
            raise AuthError("auth/invalid-email")
        return normalized

    @staticmethod
    def _row_to_profile(row: sqlite3.Row) -> UserProfile:
        return UserProfile(
            uid=row["uid"],
            email=row["email"],
            display_name=row["display_name"],
            created_at=row["created_at"],
            photo_url=row["photo_url"],
        )

    def _find_by_email(self, email: str) -> sqlite3.Row | None:
        try:
            return self._db.connection.execute(
                "SELECT * FROM users WHERE email = ?", (email,)
            ).fetchone()
        except sqlite3.Error as exc:
            raise AuthError("auth/network-request-failed") from exc

    async def create_account(
        self, email: str, password: str, display_name: str
    ) -> UserProfile:
        normalized = self._normalize_email(email)
        if len(password or "") < MIN_PASSWORD_LENGTH:
            raise AuthError("auth/weak-password")
        if self._find_by_email(normalized) is not None:
            raise AuthError("auth/email-already-in-use")

        uid = uuid.uuid4().hex
        created_at = now_iso()
        password_hash = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("ascii")
        try:
            with self._db.transaction() as conn:
                conn.execute(
                    """INSERT INTO users (uid, email, display_name, password_hash, created_at)
                       VALUES (?, ?, ?, ?, ?)""",
                    (uid, normalized, display_name.strip(), password_hash, created_at),
                )
        except sqlite3.IntegrityError as exc:
            raise AuthError("auth/email-already-in-use") from exc
        except sqlite3.Error as exc:
            raise AuthError("auth/network-request-failed") from exc

        self._signed_in.add(uid)
        logger.info("Local account created: %s", uid)
        return UserProfile(
            uid=uid,
            email=normalized,
            display_name=display_name.strip(),
            created_at=created_at,
        )

    async def sign_in(self, email: str, password: str) -> UserProfile:
        normalized = self._normalize_email(email)
        row = self._find_by_email(normalized)
        if row is None:
            raise AuthError("auth/user-not-found")
        if row["disabled"]:
            raise AuthError("auth/user-disabled")
        if row["locked_until"] and row["locked_until"] > now_iso():
            raise AuthError("auth/too-many-requests")

        if not bcrypt.checkpw((password or "").encode("utf-8"), row["password_hash"].encode("ascii")):
            self._record_failure(row)
            raise AuthError("auth/wrong-password")

        if row["failed_attempts"] or row["locked_until"]:
            with self._db.transaction() as conn:
                conn.execute(
                    "UPDATE users SET failed_attempts = 0, locked_until = NULL WHERE uid = ?",
                    (row["uid"],),
                )
        self._signed_in.add(row["uid"])
        return self._row_to_profile(row)

    def _record_failure(self, row: sqlite3.Row) -> None:
        attempts = row["failed_attempts"] + 1
        locked_until = None
        if attempts >= self._max_failed:
            locked_until = normalize_date(
                datetime.now(timezone.utc) + timedelta(seconds=self._lockout_s)
            )
            attempts = 0
            logger.warning("Account %s locked after repeated failed sign-ins", row["uid"])
        with self._db.transaction() as conn:
            conn.execute(
                "UPDATE users SET failed_attempts = ?, locked_until = ? WHERE uid = ?",
                (attempts, locked_until, row["uid"]),
            )

    async def sign_out(self, uid: str) -> None:
        self._signed_in.discard(uid)

    def is_signed_in(self, uid: str) -> bool:
        return uid in self._signed_in

    async def send_password_reset(self, email: str) -> None:
        """Record a reset request; delivery is left to the hosting environment."""
        normalized = self._normalize_email(email)
        row = self._find_by_email(normalized)
        if row is None:
            raise AuthError("auth/user-not-found")
        with self._db.transaction() as conn:
            conn.execute(
                "INSERT INTO password_resets (id, uid, requested_at) VALUES (?, ?, ?)",
                (uuid.uuid4().hex, row["uid"], now_iso()),
            )
        logger.info("Password reset requested for %s", row["uid"])

    async def get_profile(self, uid: str) -> UserProfile | None:
        row = self._db.connection.execute(
            "SELECT * FROM users WHERE uid = ?", (uid,)
        ).fetchone()
        return self._row_to_profile(row) if row is not None else None
