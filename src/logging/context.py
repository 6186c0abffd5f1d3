# src/logging/context.py — v1
"""Contextual logging support: attach source hash and thumbnail type to log records."""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

# Context variables for structured logging, set per thumbnail request.
_source_hash: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "source_hash", default=None
)
_thumb_type: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "thumb_type", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    source_hash: str | None = None
    thumb_type: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        source_hash=_source_hash.get(),
        thumb_type=_thumb_type.get(),
    )


def set_request_context(source_hash: str, thumb_type: str | None = None) -> None:
    """Set request-level context (called once per thumb() call)."""
    _source_hash.set(source_hash)
    _thumb_type.set(thumb_type)


def set_type_context(thumb_type: str) -> None:
    """Update the type currently being attempted by the cascade."""
    _thumb_type.set(thumb_type)


def clear_context() -> None:
    """Reset all context variables."""
    _source_hash.set(None)
    _thumb_type.set(None)
