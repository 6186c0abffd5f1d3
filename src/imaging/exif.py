# src/imaging/exif.py — v1
"""EXIF helpers: orientation tag and embedded JPEG thumbnails."""

from __future__ import annotations

import logging
from pathlib import Path

from PIL import ExifTags, Image, UnidentifiedImageError

logger = logging.getLogger(__name__)

ORIENTATION_TAG = 0x0112
_THUMB_OFFSET_TAG = 0x0201  # JPEGInterchangeFormat
_THUMB_LENGTH_TAG = 0x0202  # JPEGInterchangeFormatLength
_EXIF_HEADER = b"Exif\x00\x00"

# Counter-clockwise rotation undoing each orientation value.
ORIENTATION_ROTATION: dict[int, int] = {3: 180, 6: 270, 8: 90}

_READ_ERRORS = (OSError, UnidentifiedImageError, ValueError, SyntaxError, KeyError, TypeError)


def read_orientation(source: Path | str) -> int | None:
    """Orientation tag of an image file, or None if absent or unreadable."""
    try:
        with Image.open(source) as im:
            value = im.getexif().get(ORIENTATION_TAG)
    except _READ_ERRORS as e:
        logger.debug("No EXIF orientation for %s: %s", source, e)
        return None
    return int(value) if value is not None else None


def read_embedded_thumbnail(source: Path | str) -> bytes | None:
    """JPEG thumbnail stored in the EXIF IFD1 of ``source``, if any."""
    try:
        with Image.open(source) as im:
            raw = im.info.get("exif")
            if not raw:
                return None
            ifd1 = im.getexif().get_ifd(ExifTags.IFD.IFD1)
    except _READ_ERRORS as e:
        logger.debug("No EXIF thumbnail for %s: %s", source, e)
        return None

    offset = ifd1.get(_THUMB_OFFSET_TAG)
    length = ifd1.get(_THUMB_LENGTH_TAG)
    if not offset or not length:
        return None

    # Offsets are relative to the TIFF header that follows the APP1 marker.
    base = len(_EXIF_HEADER) if raw.startswith(_EXIF_HEADER) else 0
    data = raw[base + offset : base + offset + length]
    if len(data) != length or not data.startswith(b"\xff\xd8"):
        return None
    return bytes(data)
