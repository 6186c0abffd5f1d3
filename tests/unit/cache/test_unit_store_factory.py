# tests/unit/cache/test_store_factory.py — v1
"""Tests for cache/store_factory.py."""

from __future__ import annotations

import pytest

from thumbkit.cache.json_store import JsonOutcomeStore
from thumbkit.cache.sqlite_store import SqliteOutcomeStore
from thumbkit.cache.store_factory import create_outcome_store
from thumbkit.config.settings import Settings


class TestCreateOutcomeStore:
    def test_sqlite_default(self, tmp_path):
        s = Settings(_env_file=None, cache_root=tmp_path)
        store = create_outcome_store(s)
        try:
            assert isinstance(store, SqliteOutcomeStore)
            assert (tmp_path / "outcomes.db").exists()
        finally:
            store.close()

    def test_json(self, tmp_path):
        s = Settings(_env_file=None, cache_root=tmp_path, outcome_backend="json")
        store = create_outcome_store(s)
        assert isinstance(store, JsonOutcomeStore)
        assert (tmp_path / "outcomes").is_dir()

    def test_unsupported_backend(self, tmp_path):
        s = Settings(_env_file=None, cache_root=tmp_path)
        s.outcome_backend = "redis"
        with pytest.raises(ValueError, match="Unsupported"):
            create_outcome_store(s)
