# src/api/models.py — v2
"""API-level models: ThumbRequest."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field, field_validator


class ThumbRequest(BaseModel):
    """What the listing layer asks for: a source, a type guess and a size."""

    source_path: Path
    declared_type: str = "file"
    width: int = Field(gt=0, le=4096)
    height: int = Field(default=0, ge=0, le=4096)

    @field_validator("declared_type")
    @classmethod
    def normalize_declared_type(cls, v: str) -> str:  # noqa: N805
        return v.strip().lower() or "file"
