# src/cache/store_factory.py — v1
"""Factory for outcome store instantiation."""

from __future__ import annotations

from thumbkit.cache.base_outcome_store import BaseOutcomeStore
from thumbkit.config.settings import Settings


def create_outcome_store(settings: Settings | None = None) -> BaseOutcomeStore:
    """Instantiate the configured outcome backend.

    Args:
        settings: Application settings. Defaults to ``Settings()``.

    Returns:
        Configured BaseOutcomeStore implementation.
    """
    settings = settings or Settings()
    backend = settings.outcome_backend

    if backend == "sqlite":
        from thumbkit.cache.sqlite_store import SqliteOutcomeStore
        return SqliteOutcomeStore(db_path=settings.cache_dir / settings.outcome_db_name)

    if backend == "json":
        from thumbkit.cache.json_store import JsonOutcomeStore
        return JsonOutcomeStore(root=settings.cache_dir / "outcomes")

    raise ValueError(f"Unsupported outcome backend: {backend!r}")
