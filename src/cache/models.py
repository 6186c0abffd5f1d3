# src/cache/models.py — v2
"""Cache domain models: OutcomeRecord."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OutcomeRecord(BaseModel):
    """Known result of thumbnailing a source under a requested type.

    A record with ``failure_code`` set is negative: the source is known not to
    yield a thumbnail for ``requested_type``. Without it, the record carries
    the type detection resolved to, which may correct the caller's guess.
    """

    source_hash: str
    requested_type: str
    resolved_type: str
    failure_code: int | None = None
    capabilities: str = ""
    updated_at: datetime = Field(default_factory=_utcnow)

    @property
    def is_negative(self) -> bool:
        return self.failure_code is not None

    @property
    def key(self) -> str:
        return f"{self.source_hash}:{self.requested_type}"
