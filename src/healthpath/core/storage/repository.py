"""Vitals repository — latest-snapshot and history operations.

The repository mediates between ``VitalRecord`` and the SQLite store, using
``RecordCipher`` to seal measurement payloads. Two views are kept per user:

* ``latest_vitals`` — one row keyed by ``user_id``, always fully replaced.
* ``vitals_history`` — append-only rows with generated ids.

Single-record reads and all writes are strict (``PersistenceError``). History
and range reads are lenient: failures are logged and an empty list returned so
a dashboard never blocks on history.
"""

from __future__ import annotations

import logging
import math
import sqlite3
import uuid
from dataclasses import replace
from datetime import datetime
from typing import Any

from healthpath.core.storage.database import DatabaseError, HealthDatabase
from healthpath.core.storage.encryption import EncryptionError, RecordCipher
from healthpath.core.storage.models import (
    DEFAULT_SOURCE,
    VITAL_SOURCES,
    VitalSource,
    VitalRecord,
    normalize_date,
    now_iso,
)

logger = logging.getLogger(__name__)

_STORE_ERRORS = (sqlite3.Error, DatabaseError, EncryptionError)


class PersistenceError(Exception):
    """Raised when the store is unreachable or rejects a write."""


class ValidationError(ValueError):
    """Raised for client-side input problems caught before any write."""


class EmptyRecordError(ValidationError):
    """Raised when a write carries no vital-sign measurement."""


class VitalsRepository:
    """CRUD repository for a user's latest vitals snapshot and history.

    Usage::

        db = HealthDatabase(":memory:")
        db.initialize()
        repo = VitalsRepository(db, RecordCipher(key))

        latest, entry_id = repo.record_vitals("uid-1", VitalRecord(heart_rate=72))
        history = repo.get_vitals_history("uid-1", limit=20)
    """

    def __init__(self, database: HealthDatabase, cipher: RecordCipher) -> None:
        self._db = database
        self._cipher = cipher

    @property
    def database(self) -> HealthDatabase:
        return self._db

    @staticmethod
    def _new_id() -> str:
        return str(uuid.uuid4())

    @staticmethod
    def _prepare(user_id: str, partial: VitalRecord) -> VitalRecord:
        """Validate a write and fill the ``date``/``source`` defaults."""
        if partial.is_empty():
            raise EmptyRecordError("At least one vital sign is required")
        for name, value in partial.measurements().items():
            if (
                isinstance(value, bool)
                or not isinstance(value, (int, float))
                or not math.isfinite(value)
                or value <= 0
            ):
                raise ValidationError(f"{name} must be a positive number, got {value!r}")
        source = partial.source or DEFAULT_SOURCE
        if source not in VITAL_SOURCES:
            raise ValidationError(f"Unknown source {source!r}. Valid: {VITAL_SOURCES}")
        try:
            date = normalize_date(partial.date) if partial.date else now_iso()
        except ValueError as exc:
            raise ValidationError(f"Invalid date {partial.date!r}") from exc
        return replace(partial, user_id=user_id, date=date, source=source)

    # ------------------------------------------------------------------
    # Latest snapshot (strict)
    # ------------------------------------------------------------------

    def update_latest_vitals(self, user_id: str, partial: VitalRecord) -> VitalRecord:
        """Replace the user's latest snapshot with ``partial``.

        This is a full replace, not a storage-level merge: callers merge in
        application code first (see :meth:`record_vitals`).

        Returns:
            The stored record, with defaults filled.

        Raises:
            EmptyRecordError: If no measurement is present.
            PersistenceError: If the write fails.
        """
        record = self._prepare(user_id, partial)
        try:
            with self._db.transaction() as conn:
                self._replace_latest(conn, record)
        except _STORE_ERRORS as exc:
            logger.error("Error updating latest vitals for %s: %s", user_id, exc)
            raise PersistenceError("Failed to save vital record") from exc
        logger.info("Latest vitals replaced for %s (source=%s)", user_id, record.source)
        return replace(record, id=user_id)

    def get_latest_vitals(self, user_id: str) -> VitalRecord:
        """Return the latest snapshot, or an empty record if the user has none.

        Raises:
            PersistenceError: If the read fails.
        """
        try:
            row = self._db.connection.execute(
                "SELECT user_id, date, source, payload_enc FROM latest_vitals WHERE user_id = ?",
                (user_id,),
            ).fetchone()
            if row is None:
                return VitalRecord(user_id=user_id)
            return self._row_to_record(row, record_id=row["user_id"])
        except _STORE_ERRORS as exc:
            logger.error("Error fetching latest vitals for %s: %s", user_id, exc)
            raise PersistenceError("Failed to fetch vitals") from exc

    def delete_latest_vitals(self, user_id: str) -> bool:
        """Remove the latest snapshot.

        Returns:
            True if a snapshot existed and was deleted.

        Raises:
            PersistenceError: If the delete fails.
        """
        try:
            with self._db.transaction() as conn:
                cursor = conn.execute(
                    "DELETE FROM latest_vitals WHERE user_id = ?", (user_id,)
                )
        except _STORE_ERRORS as exc:
            logger.error("Error deleting latest vitals for %s: %s", user_id, exc)
            raise PersistenceError("Failed to delete vital record") from exc
        deleted = cursor.rowcount > 0
        if deleted:
            logger.info("Deleted latest vitals for %s", user_id)
        return deleted

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def add_vital_to_history(self, user_id: str, partial: VitalRecord) -> str:
        """Append a history entry and return its generated id.

        Raises:
            EmptyRecordError: If no measurement is present.
            PersistenceError: If the write fails.
        """
        record = self._prepare(user_id, partial)
        entry_id = self._new_id()
        try:
            with self._db.transaction() as conn:
                self._insert_history(conn, entry_id, record)
        except _STORE_ERRORS as exc:
            logger.error("Error adding vital record for %s: %s", user_id, exc)
            raise PersistenceError("Failed to save vital record") from exc
        logger.info("History entry %s added for %s (source=%s)", entry_id, user_id, record.source)
        return entry_id

    def get_vitals_history(self, user_id: str, limit: int | None = None) -> list[VitalRecord]:
        """History entries newest first, capped at ``limit``. Empty on failure."""
        query = (
            "SELECT id, user_id, date, source, payload_enc FROM vitals_history "
            "WHERE user_id = ? ORDER BY date DESC, created_at DESC"
        )
        params: list[Any] = [user_id]
        if limit and limit > 0:
            query += " LIMIT ?"
            params.append(limit)
        return self._query_history(query, params, "history")

    def get_vitals_in_range(
        self,
        user_id: str,
        start: str | datetime,
        end: str | datetime,
    ) -> list[VitalRecord]:
        """History entries with ``start <= date <= end``, newest first. Empty on failure."""
        try:
            start_iso = normalize_date(start)
            end_iso = normalize_date(end)
        except ValueError as exc:
            logger.error("Invalid range for %s: %s", user_id, exc)
            return []
        return self._query_history(
            "SELECT id, user_id, date, source, payload_enc FROM vitals_history "
            "WHERE user_id = ? AND date >= ? AND date <= ? "
            "ORDER BY date DESC, created_at DESC",
            [user_id, start_iso, end_iso],
            "range",
        )

    def delete_history_entry(self, user_id: str, entry_id: str) -> bool:
        """Delete one history entry owned by ``user_id``.

        Raises:
            PersistenceError: If the delete fails.
        """
        try:
            with self._db.transaction() as conn:
                cursor = conn.execute(
                    "DELETE FROM vitals_history WHERE id = ? AND user_id = ?",
                    (entry_id, user_id),
                )
        except _STORE_ERRORS as exc:
            logger.error("Error deleting history entry %s: %s", entry_id, exc)
            raise PersistenceError("Failed to delete vital record") from exc
        return cursor.rowcount > 0

    def count_history(self, user_id: str) -> int:
        row = self._db.connection.execute(
            "SELECT COUNT(*) FROM vitals_history WHERE user_id = ?", (user_id,)
        ).fetchone()
        return row[0]

    # ------------------------------------------------------------------
    # Combined write
    # ------------------------------------------------------------------

    def record_vitals(
        self,
        user_id: str,
        partial: VitalRecord,
        source: VitalSource = DEFAULT_SOURCE,
    ) -> tuple[VitalRecord, str]:
        """Merge new readings into the latest snapshot and log them to history.

        Fields present in ``partial`` override the current snapshot; the
        merged record is stamped with the current time and ``source``. The
        latest-snapshot replace and the history append commit in a single
        transaction, so the two views cannot diverge on a failed write.

        Returns:
            ``(merged_record, history_entry_id)``

        Raises:
            EmptyRecordError: If ``partial`` carries no measurement.
            PersistenceError: If reading the snapshot or writing fails.
        """
        if partial.is_empty():
            raise EmptyRecordError("At least one vital sign is required")

        current = self.get_latest_vitals(user_id)
        merged = current.merged_with(replace(partial, date="", source=""))
        merged = replace(merged, id="", date=now_iso(), source=source)
        record = self._prepare(user_id, merged)
        entry_id = self._new_id()

        try:
            with self._db.transaction() as conn:
                self._replace_latest(conn, record)
                self._insert_history(conn, entry_id, record)
        except _STORE_ERRORS as exc:
            logger.error("Error recording vitals for %s: %s", user_id, exc)
            raise PersistenceError("Failed to save vital record") from exc

        logger.info(
            "Recorded vitals for %s: %s (source=%s, entry=%s)",
            user_id,
            sorted(partial.measurements()),
            source,
            entry_id,
        )
        return replace(record, id=user_id), entry_id

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    def rotate_encryption(self) -> int:
        """Re-seal every stored payload under the primary key.

        Returns:
            Number of rows re-sealed.
        """
        count = 0
        try:
            with self._db.transaction() as conn:
                for table, key in (("latest_vitals", "user_id"), ("vitals_history", "id")):
                    rows = conn.execute(f"SELECT {key}, payload_enc FROM {table}").fetchall()
                    for row in rows:
                        conn.execute(
                            f"UPDATE {table} SET payload_enc = ? WHERE {key} = ?",
                            (self._cipher.rotate(row["payload_enc"]), row[key]),
                        )
                        count += 1
        except _STORE_ERRORS as exc:
            logger.error("Key rotation failed: %s", exc)
            raise PersistenceError("Failed to rotate encryption keys") from exc
        logger.info("Re-sealed %d vitals payloads", count)
        return count

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _replace_latest(self, conn: sqlite3.Connection, record: VitalRecord) -> None:
        conn.execute(
            """INSERT OR REPLACE INTO latest_vitals (user_id, date, source, payload_enc, updated_at)
               VALUES (?, ?, ?, ?, datetime('now'))""",
            (record.user_id, record.date, record.source, self._cipher.seal(record.payload())),
        )

    def _insert_history(
        self, conn: sqlite3.Connection, entry_id: str, record: VitalRecord
    ) -> None:
        conn.execute(
            """INSERT INTO vitals_history (id, user_id, date, source, payload_enc)
               VALUES (?, ?, ?, ?, ?)""",
            (entry_id, record.user_id, record.date, record.source, self._cipher.seal(record.payload())),
        )

    def _query_history(self, query: str, params: list[Any], label: str) -> list[VitalRecord]:
        try:
            rows = self._db.connection.execute(query, params).fetchall()
            return [self._row_to_record(row, record_id=row["id"]) for row in rows]
        except _STORE_ERRORS:
            logger.exception("Error fetching vitals %s for %s", label, params[0])
            return []

    def _row_to_record(self, row: Any, *, record_id: str) -> VitalRecord:
        payload = self._cipher.open(row["payload_enc"])
        record = VitalRecord.from_dict(payload)
        return replace(
            record,
            id=record_id,
            user_id=row["user_id"],
            date=row["date"],
            source=row["source"],
        )
