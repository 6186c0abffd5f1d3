# src/cache/fingerprint.py — v3
"""Source and capability fingerprints used as cache and outcome keys.

The source fingerprint is a hash of the path, not of the content: it must be
cheap enough to compute on every listing request, and staleness is handled
separately by comparing modification times.
"""

from __future__ import annotations

import hashlib
from pathlib import Path

_SEPARATOR = ","


def compute_source_fingerprint(source_path: Path | str) -> str:
    """SHA-1 of the source path string. Same path gives the same fingerprint."""
    return hashlib.sha1(str(source_path).encode("utf-8")).hexdigest()  # noqa: S324


def capability_fingerprint(available: set[str] | list[str]) -> str:
    """Serialize a set of available handler names deterministically."""
    return _SEPARATOR.join(sorted(set(available)))


def parse_capability_fingerprint(fingerprint: str | None) -> set[str]:
    """Inverse of :func:`capability_fingerprint`."""
    if not fingerprint:
        return set()
    return {name for name in fingerprint.split(_SEPARATOR) if name}


def handlers_grew(recorded: str | None, current: str) -> bool:
    """True if a handler is available now that was not when ``recorded`` was taken.

    Handlers that disappeared do not invalidate anything: a failure recorded
    with more tools available stays a failure with fewer.
    """
    return bool(parse_capability_fingerprint(current) - parse_capability_fingerprint(recorded))
