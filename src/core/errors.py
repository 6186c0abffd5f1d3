# src/core/errors.py — v1
"""Failure taxonomy for thumbnail capture.

Capture handlers raise these; the cascade decides whether a failure falls back
to generic file handling, ends the candidate, or is persisted as a known
negative outcome. None of them ever reaches the caller of ``thumb()``.
"""

from __future__ import annotations

from enum import IntEnum


class FailureCode(IntEnum):
    """Codes stored with negative outcome records."""

    NO_IMAGE_ENTRY = 1
    ENTRY_UNDECODABLE = 2
    NO_ARCHIVE_HANDLER = 3
    ARCHIVE_UNREADABLE = 4
    UNRECOGNIZED = 5


class ThumbkitError(Exception):
    """Base class for all thumbkit errors."""


class CaptureError(ThumbkitError):
    """A capture attempt for one type failed; never cached."""


class WrongType(CaptureError):
    """Attempted handler does not match the actual content."""


class ToolUnavailable(CaptureError):
    """Required external tool or library is missing."""


class ToolOutputInvalid(CaptureError):
    """External tool ran but did not produce a usable image."""

    def __init__(self, message: str, stderr: str = "", returncode: int | None = None):
        self.stderr = stderr
        self.returncode = returncode
        super().__init__(message)


class ToolTimeout(ToolOutputInvalid):
    """External tool exceeded its wall-clock budget and was killed."""


class ProbeError(CaptureError):
    """Duration probing reported a real error on its diagnostic stream."""


class DecodeFailure(CaptureError):
    """Image bytes are corrupt or in an unsupported format."""


class ArchiveError(CaptureError):
    """Archive library failure unrelated to the container format (transient)."""


class UnhandledArchive(ThumbkitError):
    """Archive will never yield a thumbnail; cached as a permanent failure."""

    def __init__(self, message: str, code: FailureCode):
        self.code = code
        super().__init__(message)
