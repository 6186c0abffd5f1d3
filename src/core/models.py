# src/core/models.py — v1
"""Shared Pydantic domain models used across modules."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel


class ThumbResult(BaseModel):
    """Outcome of one thumbnail request.

    ``href`` is None when no thumbnail could be produced. ``type`` is the type
    that produced (or, on a cache hit, previously produced) the thumbnail; when
    it differs from ``declared_type`` the caller's guess was wrong and
    ``type_corrected`` is set so it can update its own records.
    """

    href: str | None = None
    path: Path | None = None
    type: str
    declared_type: str
    type_corrected: bool = False
    cached: bool = False

    @property
    def found(self) -> bool:
        return self.href is not None
