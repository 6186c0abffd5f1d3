# src/cache/json_store.py — v2
"""JSON file-based outcome store (OUTCOME_BACKEND=json).

Stores each record as an individual JSON file under the outcomes directory.
Files are written to a temporary name and renamed into place, so readers
never see a half-written record.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

from thumbkit.cache.base_outcome_store import BaseOutcomeStore
from thumbkit.cache.models import OutcomeRecord

logger = logging.getLogger(__name__)


class JsonOutcomeStore(BaseOutcomeStore):
    """File-based outcome store using JSON files."""

    def __init__(self, root: Path | str) -> None:
        self._root = Path(root).expanduser()
        self._root.mkdir(parents=True, exist_ok=True)

    async def get(self, source_hash: str, requested_type: str) -> OutcomeRecord | None:
        """Retrieve the record for a source and requested type."""
        return self._read(self._entry_path(source_hash, requested_type))

    async def get_resolved(self, source_hash: str) -> OutcomeRecord | None:
        """Most recent positive record for a source."""
        positives = [
            record
            for path in self._root.glob(f"{source_hash}__*.json")
            if (record := self._read(path)) is not None and not record.is_negative
        ]
        if not positives:
            return None
        return max(positives, key=lambda r: r.updated_at)

    async def put(self, record: OutcomeRecord) -> None:
        """Store a record (atomic replace)."""
        path = self._entry_path(record.source_hash, record.requested_type)
        fd, tmp_name = tempfile.mkstemp(dir=self._root, prefix=".tmp-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(record.model_dump_json(indent=2))
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    async def delete(self, source_hash: str, requested_type: str | None = None) -> int:
        """Remove one record, or all records of a source."""
        if requested_type is None:
            paths = list(self._root.glob(f"{source_hash}__*.json"))
        else:
            paths = [self._entry_path(source_hash, requested_type)]
        removed = 0
        for path in paths:
            if path.exists():
                path.unlink(missing_ok=True)
                removed += 1
        return removed

    async def list_entries(self) -> list[OutcomeRecord]:
        """List all records."""
        entries: list[OutcomeRecord] = []
        if not self._root.is_dir():
            return entries
        for path in self._root.glob("*__*.json"):
            record = self._read(path)
            if record is not None:
                entries.append(record)
        return entries

    def _entry_path(self, source_hash: str, requested_type: str) -> Path:
        """Return file path for a record key."""
        safe_type = requested_type.replace("/", "_").replace("\\", "_")
        return self._root / f"{source_hash}__{safe_type}.json"

    @staticmethod
    def _read(path: Path) -> OutcomeRecord | None:
        if not path.exists():
            return None
        try:
            return OutcomeRecord.model_validate_json(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("Failed to read outcome record %s: %s", path.name, e)
            return None
