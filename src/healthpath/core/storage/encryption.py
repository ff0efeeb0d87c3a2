"""Fernet encryption for vital-sign payloads at rest.

Measurement values and notes are sealed before they reach SQLite. The
owning user, timestamp and source stay in plaintext columns so history can
be ordered and range-filtered without decrypting every row.

``RecordCipher`` accepts a comma-separated key list. The first key seals new
payloads; every key is tried when opening, which allows key rotation without
rewriting old rows.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from cryptography.fernet import Fernet, InvalidToken, MultiFernet

logger = logging.getLogger(__name__)


class EncryptionError(Exception):
    """Raised when sealing or opening a payload fails."""


class RecordCipher:
    """Seals and opens vital-record payload dicts.

    Usage::

        cipher = RecordCipher(RecordCipher.generate_key())
        token = cipher.seal({"heart_rate": 72})
        cipher.open(token)  # {"heart_rate": 72}
    """

    def __init__(self, keys: str) -> None:
        """Initialize from one key or a comma-separated list (newest first).

        Raises:
            EncryptionError: If no key is given or any key is invalid.
        """
        key_list = [k.strip() for k in (keys or "").split(",") if k.strip()]
        if not key_list:
            raise EncryptionError("Encryption key must not be empty")
        try:
            self._fernet = MultiFernet([Fernet(k.encode()) for k in key_list])
        except ValueError as exc:
            raise EncryptionError(f"Invalid encryption key: {exc}") from exc
        self.key_count = len(key_list)

    def seal(self, payload: dict[str, Any]) -> str:
        """Encrypt a JSON-serializable payload dict to a token string.

        Raises:
            EncryptionError: If the payload is not a dict or cannot be serialized.
        """
        if not isinstance(payload, dict):
            raise EncryptionError(
                f"Payload must be a dict, got {type(payload).__name__}"
            )
        try:
            plaintext = json.dumps(payload, separators=(",", ":"), sort_keys=True)
        except (TypeError, ValueError) as exc:
            raise EncryptionError(f"Payload is not serializable: {exc}") from exc
        return self._fernet.encrypt(plaintext.encode("utf-8")).decode("utf-8")

    def open(self, token: str) -> dict[str, Any]:
        """Decrypt a token back to its payload dict. An empty token opens to ``{}``.

        Raises:
            EncryptionError: If the token is invalid, was sealed with an unknown
                key, or does not hold a JSON object.
        """
        if not token:
            return {}
        try:
            plaintext = self._fernet.decrypt(token.encode("utf-8"))
        except InvalidToken as exc:
            raise EncryptionError("Decryption failed: invalid token or wrong key") from exc
        try:
            data = json.loads(plaintext)
        except json.JSONDecodeError as exc:
            raise EncryptionError(f"Decrypted payload is not JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise EncryptionError("Decrypted payload is not an object")
        return data

    def rotate(self, token: str) -> str:
        """Re-seal a token under the current primary key."""
        try:
            return self._fernet.rotate(token.encode("utf-8")).decode("utf-8")
        except InvalidToken as exc:
            raise EncryptionError("Rotation failed: invalid token or wrong key") from exc

    @staticmethod
    def generate_key() -> str:
        """Generate a new URL-safe base64 Fernet key."""
        return Fernet.generate_key().decode("utf-8")
