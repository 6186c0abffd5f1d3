# src/cache/base_outcome_store.py — v1
"""Abstract outcome store interface."""

from __future__ import annotations

from abc import ABC, abstractmethod

from thumbkit.cache.models import OutcomeRecord


class BaseOutcomeStore(ABC):
    """Unified interface for outcome storage backends.

    Records are keyed by ``(source_hash, requested_type)``; ``put`` is an
    idempotent upsert and concurrent writers resolve as last-writer-wins.
    """

    @abstractmethod
    async def get(self, source_hash: str, requested_type: str) -> OutcomeRecord | None:
        """Retrieve the record for a source and requested type."""

    @abstractmethod
    async def get_resolved(self, source_hash: str) -> OutcomeRecord | None:
        """Most recent positive (non-failure) record for a source, if any."""

    @abstractmethod
    async def put(self, record: OutcomeRecord) -> None:
        """Store a record (upsert)."""

    @abstractmethod
    async def delete(self, source_hash: str, requested_type: str | None = None) -> int:
        """Remove one record, or every record of a source. Returns count removed."""

    @abstractmethod
    async def list_entries(self) -> list[OutcomeRecord]:
        """List all records."""

    def close(self) -> None:
        """Release backend resources."""
