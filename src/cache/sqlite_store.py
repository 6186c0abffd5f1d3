# src/cache/sqlite_store.py — v2
"""SQLite-based outcome store (OUTCOME_BACKEND=sqlite, default).

Uses stdlib sqlite3 in WAL mode so concurrent readers never block the writer.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from pathlib import Path

from thumbkit.cache.base_outcome_store import BaseOutcomeStore
from thumbkit.cache.models import OutcomeRecord

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS outcomes (
    source_hash TEXT NOT NULL,
    requested_type TEXT NOT NULL,
    resolved_type TEXT NOT NULL,
    failure_code INTEGER,
    data TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    PRIMARY KEY (source_hash, requested_type)
);
CREATE INDEX IF NOT EXISTS idx_outcomes_hash ON outcomes(source_hash);
"""


class SqliteOutcomeStore(BaseOutcomeStore):
    """SQLite-backed outcome store."""

    def __init__(self, db_path: Path | str) -> None:
        self._db_path = Path(db_path).expanduser()
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        self._conn = sqlite3.connect(
            str(self._db_path), timeout=10.0, check_same_thread=False
        )
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.executescript(_SCHEMA)

    async def get(self, source_hash: str, requested_type: str) -> OutcomeRecord | None:
        """Retrieve the record for a source and requested type."""
        with self._lock:
            row = self._conn.execute(
                "SELECT data FROM outcomes WHERE source_hash = ? AND requested_type = ?",
                (source_hash, requested_type),
            ).fetchone()
        return self._load(row)

    async def get_resolved(self, source_hash: str) -> OutcomeRecord | None:
        """Most recent positive record for a source."""
        with self._lock:
            row = self._conn.execute(
                """SELECT data FROM outcomes
                   WHERE source_hash = ? AND failure_code IS NULL
                   ORDER BY updated_at DESC LIMIT 1""",
                (source_hash,),
            ).fetchone()
        return self._load(row)

    async def put(self, record: OutcomeRecord) -> None:
        """Store a record (upsert)."""
        with self._lock:
            self._conn.execute(
                """INSERT OR REPLACE INTO outcomes
                   (source_hash, requested_type, resolved_type, failure_code, data, updated_at)
                   VALUES (?, ?, ?, ?, ?, ?)""",
                (
                    record.source_hash,
                    record.requested_type,
                    record.resolved_type,
                    record.failure_code,
                    record.model_dump_json(),
                    record.updated_at.isoformat(),
                ),
            )
            self._conn.commit()

    async def delete(self, source_hash: str, requested_type: str | None = None) -> int:
        """Remove one record, or all records of a source."""
        with self._lock:
            if requested_type is None:
                cursor = self._conn.execute(
                    "DELETE FROM outcomes WHERE source_hash = ?", (source_hash,)
                )
            else:
                cursor = self._conn.execute(
                    "DELETE FROM outcomes WHERE source_hash = ? AND requested_type = ?",
                    (source_hash, requested_type),
                )
            self._conn.commit()
        return cursor.rowcount

    async def list_entries(self) -> list[OutcomeRecord]:
        """List all records."""
        with self._lock:
            rows = self._conn.execute("SELECT data FROM outcomes").fetchall()
        entries: list[OutcomeRecord] = []
        for row in rows:
            record = self._load(row)
            if record is not None:
                entries.append(record)
        return entries

    def close(self) -> None:
        """Close the database connection."""
        with self._lock:
            self._conn.close()

    @staticmethod
    def _load(row: tuple | None) -> OutcomeRecord | None:
        if row is None:
            return None
        try:
            return OutcomeRecord.model_validate_json(row[0])
        except ValueError as e:
            logger.warning("Failed to deserialize outcome record: %s", e)
            return None
