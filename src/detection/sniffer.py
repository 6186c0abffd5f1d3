# src/detection/sniffer.py — v1
"""Content-type sniffing from magic bytes, with an extension fallback.

Only the formats the cascade can actually route somewhere are recognised by
signature; everything else goes through ``mimetypes``.
"""

from __future__ import annotations

import logging
import mimetypes
from pathlib import Path

logger = logging.getLogger(__name__)

_HEADER_SIZE = 64

# (offset, signature, mime); first match wins.
_SIGNATURES: list[tuple[int, bytes, str]] = [
    (0, b"\xff\xd8\xff", "image/jpeg"),
    (0, b"\x89PNG\r\n\x1a\n", "image/png"),
    (0, b"GIF87a", "image/gif"),
    (0, b"GIF89a", "image/gif"),
    (0, b"BM", "image/bmp"),
    (0, b"II*\x00", "image/tiff"),
    (0, b"MM\x00*", "image/tiff"),
    (0, b"\x00\x00\x01\x00", "image/vnd.microsoft.icon"),
    (0, b"\x00\x00\x00\x0cjP  \r\n\x87\n", "image/jp2"),
    (0, b"%PDF-", "application/pdf"),
    (0, b"%!PS", "application/postscript"),
    (0, b"\xc5\xd0\xd3\xc6", "application/postscript"),
    (0, b"Rar!\x1a\x07", "application/x-rar"),
    (0, b"PK\x03\x04", "application/zip"),
    (0, b"PK\x05\x06", "application/zip"),
    (0, b"FWS", "application/x-shockwave-flash"),
    (0, b"CWS", "application/x-shockwave-flash"),
    (0, b"ZWS", "application/x-shockwave-flash"),
    (0, b"\x1aE\xdf\xa3", "video/x-matroska"),
    (0, b"FLV\x01", "video/x-flv"),
    (0, b"\x00\x00\x01\xba", "video/mpeg"),
    (0, b"\x00\x00\x01\xb3", "video/mpeg"),
    (0, b"0&\xb2u\x8ef\xcf\x11", "video/x-ms-asf"),
    (0, b"OggS", "application/ogg"),
]

_SWF_SIGNATURES = (b"FWS", b"CWS", b"ZWS")


def read_header(path: Path, size: int = _HEADER_SIZE) -> bytes:
    """Return the first ``size`` bytes of ``path`` (empty on read errors)."""
    try:
        with open(path, "rb") as fh:
            return fh.read(size)
    except OSError as e:
        logger.debug("Cannot read header of %s: %s", path, e)
        return b""


def sniff_header(header: bytes) -> str | None:
    """Identify a MIME type from leading bytes, or None if unknown."""
    if len(header) >= 12 and header[:4] == b"RIFF":
        kind = header[8:12]
        if kind == b"WEBP":
            return "image/webp"
        if kind == b"AVI ":
            return "video/x-msvideo"
    if len(header) >= 12 and header[4:8] == b"ftyp":
        brand = header[8:12]
        if brand == b"qt  ":
            return "video/quicktime"
        if brand in (b"avif", b"avis"):
            return "image/avif"
        if brand in (b"heic", b"heix", b"mif1"):
            return "image/heic"
        return "video/mp4"
    for offset, signature, mime in _SIGNATURES:
        if header[offset : offset + len(signature)] == signature:
            return mime
    return None


def sniff_mimetype(path: Path | str) -> str:
    """Detect the MIME type of a file on disk.

    Magic bytes take precedence over the file name; unknown content falls
    back to ``mimetypes`` and finally to ``application/octet-stream``.
    """
    path = Path(path)
    mime = sniff_header(read_header(path))
    if mime is None:
        mime, _ = mimetypes.guess_type(path.name)
    return mime or "application/octet-stream"


def is_swf(header: bytes) -> bool:
    """True for Flash movie (SWF) or component (SWC) signatures."""
    return header[:3] in _SWF_SIGNATURES

