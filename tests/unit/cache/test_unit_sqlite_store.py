# tests/unit/cache/test_sqlite_store.py — v2
"""Tests for cache/sqlite_store.py — full functional tests (stdlib sqlite3)."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from thumbkit.cache.models import OutcomeRecord
from thumbkit.cache.sqlite_store import SqliteOutcomeStore


@pytest.fixture
def store(tmp_path):
    db_path = tmp_path / "outcomes.db"
    s = SqliteOutcomeStore(db_path=db_path)
    yield s
    s.close()


def _record(requested="img", resolved="img", code=None, day=1, source_hash="abc123"):
    return OutcomeRecord(
        source_hash=source_hash,
        requested_type=requested,
        resolved_type=resolved,
        failure_code=code,
        capabilities="exif,sniff,zip",
        updated_at=datetime(2026, 2, day, tzinfo=timezone.utc),
    )


class TestSqliteOutcomeStore:
    @pytest.mark.asyncio
    async def test_put_and_get(self, store):
        await store.put(_record())
        result = await store.get("abc123", "img")
        assert result is not None
        assert result.resolved_type == "img"
        assert result.capabilities == "exif,sniff,zip"

    @pytest.mark.asyncio
    async def test_get_missing(self, store):
        assert await store.get("nonexistent", "img") is None

    @pytest.mark.asyncio
    async def test_key_is_source_and_requested_type(self, store):
        await store.put(_record(requested="img", resolved="doc"))
        await store.put(_record(requested="file", resolved="doc"))
        assert (await store.get("abc123", "img")).resolved_type == "doc"
        assert (await store.get("abc123", "file")).resolved_type == "doc"
        assert await store.get("abc123", "mov") is None

    @pytest.mark.asyncio
    async def test_put_overwrites(self, store):
        await store.put(_record(code=5))
        await store.put(_record(resolved="doc"))
        result = await store.get("abc123", "img")
        assert result.is_negative is False
        assert result.resolved_type == "doc"
        assert len(await store.list_entries()) == 1

    @pytest.mark.asyncio
    async def test_negative_record(self, store):
        await store.put(_record(requested="ar-zip", resolved="ar-zip", code=1))
        result = await store.get("abc123", "ar-zip")
        assert result.is_negative is True
        assert result.failure_code == 1

    @pytest.mark.asyncio
    async def test_get_resolved_latest_positive(self, store):
        await store.put(_record(requested="file", resolved="img", day=1))
        await store.put(_record(requested="mov", resolved="file", code=5, day=3))
        await store.put(_record(requested="img", resolved="doc", day=2))
        result = await store.get_resolved("abc123")
        assert result is not None
        assert result.resolved_type == "doc"

    @pytest.mark.asyncio
    async def test_get_resolved_ignores_negative(self, store):
        await store.put(_record(code=5))
        assert await store.get_resolved("abc123") is None

    @pytest.mark.asyncio
    async def test_delete_one(self, store):
        await store.put(_record(requested="img"))
        await store.put(_record(requested="file"))
        removed = await store.delete("abc123", "img")
        assert removed == 1
        assert await store.get("abc123", "img") is None
        assert await store.get("abc123", "file") is not None

    @pytest.mark.asyncio
    async def test_delete_all_of_source(self, store):
        await store.put(_record(requested="img"))
        await store.put(_record(requested="file"))
        await store.put(_record(source_hash="other"))
        removed = await store.delete("abc123")
        assert removed == 2
        assert len(await store.list_entries()) == 1

    @pytest.mark.asyncio
    async def test_list_entries(self, store):
        await store.put(_record(requested="img"))
        await store.put(_record(requested="doc"))
        entries = await store.list_entries()
        assert {e.requested_type for e in entries} == {"img", "doc"}

    @pytest.mark.asyncio
    async def test_persists_across_connections(self, tmp_path):
        db_path = tmp_path / "nested" / "outcomes.db"
        first = SqliteOutcomeStore(db_path)
        await first.put(_record())
        first.close()
        second = SqliteOutcomeStore(db_path)
        try:
            assert await second.get("abc123", "img") is not None
        finally:
            second.close()
