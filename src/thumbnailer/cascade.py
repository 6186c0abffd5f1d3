# src/thumbnailer/cascade.py — v1
"""Per-request cascade state and the type transition table.

Each capture handler either succeeds, fails, or hands over to another type.
The table below lists every hand-over a handler may make; anything else is a
routing bug and ends the cascade.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from thumbkit.detection.types import AR_RAR, AR_ZIP, DOC, FILE, IMG, MOV, SWF, TYPE_TAGS
from thumbkit.imaging.processor import ImageProcessor

# Handler → types it may redispatch to.
TRANSITIONS: dict[str, frozenset[str]] = {
    FILE: frozenset(TYPE_TAGS) - {FILE},
    IMG: frozenset({SWF, FILE}),
    MOV: frozenset({FILE}),
    SWF: frozenset({FILE}),
    DOC: frozenset({FILE}),
    AR_ZIP: frozenset({FILE}),
    AR_RAR: frozenset({FILE}),
}

# Handler → type tried when it raises a transient CaptureError.
FALLBACK: dict[str, str | None] = {
    FILE: None,
    IMG: FILE,
    MOV: FILE,
    SWF: FILE,
    DOC: FILE,
    AR_ZIP: FILE,
    AR_RAR: FILE,
}

MAX_ATTEMPTS = len(TYPE_TAGS)


@dataclass(frozen=True)
class Step:
    """Result of one capture handler."""

    captured: bool = False
    next_type: str | None = None


CAPTURED = Step(captured=True)
FAILED = Step()


def redispatch(tag: str) -> Step:
    return Step(next_type=tag)


@dataclass
class CascadeState:
    """Mutable state of a single ``thumb()`` call."""

    source: Path
    source_hash: str
    declared_type: str
    current_type: str
    attempts: int = 0
    tried: list[str] = field(default_factory=list)
    image: ImageProcessor | None = None
    # The generic file handler concluded nothing can be done with the source.
    terminal: bool = False
    failure_recorded: bool = False

    @property
    def exhausted(self) -> bool:
        return self.attempts >= MAX_ATTEMPTS

    @property
    def was_wrong(self) -> bool:
        return self.current_type != self.declared_type

    def begin_attempt(self, tag: str) -> None:
        self.attempts += 1
        self.current_type = tag
        self.tried.append(tag)

    def retain(self, image: ImageProcessor) -> None:
        """Keep ``image`` as the decoded capture, releasing any previous one."""
        if self.image is not None and self.image is not image:
            self.image.release()
        self.image = image

    def release(self) -> None:
        if self.image is not None:
            self.image.release()
            self.image = None
