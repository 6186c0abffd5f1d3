# src/detection/types.py — v1
"""Thumbnail type tags and their mapping from MIME types.

The cascade walks these tags in order; ``len(TYPE_TAGS)`` also bounds the
number of capture attempts a single request may make.
"""

from __future__ import annotations

from typing import Literal

TypeTag = Literal["file", "img", "mov", "swf", "doc", "ar-zip", "ar-rar"]

FILE: TypeTag = "file"
IMG: TypeTag = "img"
MOV: TypeTag = "mov"
SWF: TypeTag = "swf"
DOC: TypeTag = "doc"
AR_ZIP: TypeTag = "ar-zip"
AR_RAR: TypeTag = "ar-rar"

TYPE_TAGS: tuple[TypeTag, ...] = (FILE, IMG, MOV, SWF, DOC, AR_ZIP, AR_RAR)

# Declared family aliases expand to several concrete candidates.
_FAMILIES: dict[str, list[TypeTag]] = {
    "ar": [AR_ZIP, AR_RAR],
}

_EXACT_MIME: dict[str, TypeTag] = {
    "application/x-shockwave-flash": SWF,
    "application/vnd.adobe.flash.movie": SWF,
    "application/pdf": DOC,
    "application/postscript": DOC,
    "application/eps": DOC,
    "image/x-eps": DOC,
    "application/zip": AR_ZIP,
    "application/x-zip-compressed": AR_ZIP,
    "application/x-rar": AR_RAR,
    "application/x-rar-compressed": AR_RAR,
    "application/vnd.rar": AR_RAR,
    "application/ogg": MOV,
}


def normalize_type(name: str | None) -> TypeTag:
    """Return ``name`` if it is a known tag, else the generic ``file`` tag."""
    if name in TYPE_TAGS:
        return name  # type: ignore[return-value]
    return FILE


def expand_types(declared: str | None) -> list[TypeTag]:
    """Expand a declared type into the ordered list of candidates to try.

    A concrete tag is a single-element list; ``file`` starts with sniffing;
    family aliases such as ``ar`` expand to each member.
    """
    if declared in _FAMILIES:
        return list(_FAMILIES[declared])
    return [normalize_type(declared)]


def mime_to_handler_type(mime: str | None) -> TypeTag:
    """Map a MIME type onto the tag of the handler able to thumbnail it."""
    if not mime:
        return FILE
    mime = mime.split(";", 1)[0].strip().lower()
    if mime in _EXACT_MIME:
        return _EXACT_MIME[mime]
    if mime.startswith("image/"):
        return IMG
    if mime.startswith("video/"):
        return MOV
    return FILE
