# src/archive/extractor.py — v1
"""Pull the first image out of a zip or rar archive.

Zip entries are scanned in container order, rar entries in natural name
order. Only the selected entry is read, into a spooled buffer bounded in
memory. Requires the 'rarfile' package for rar archives.
"""

from __future__ import annotations

import logging
import re
import shutil
import tempfile
import zipfile
import zlib
from pathlib import Path
from typing import IO, Iterable

from thumbkit.core.errors import ArchiveError, FailureCode, UnhandledArchive, WrongType

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = frozenset(
    ["jpg", "jpe", "jpeg", "jp2", "jpx", "tiff", "webp", "ico", "png", "bmp", "gif"]
)

_DIGITS_RE = re.compile(r"(\d+)")


def natural_key(name: str) -> list[object]:
    """Sort key placing ``page2.png`` before ``page10.png``."""
    return [int(part) if part.isdigit() else part.lower() for part in _DIGITS_RE.split(name)]


def is_image_name(name: str) -> bool:
    """True if ``name`` has an extension from the raster image allow-list."""
    _, dot, ext = name.rpartition(".")
    return bool(dot) and ext.lower() in IMAGE_EXTENSIONS


def select_entry(names: Iterable[str]) -> str | None:
    """First name in ``names`` that is a file with an image extension."""
    for name in names:
        if name.endswith("/"):
            continue
        if is_image_name(name):
            return name
    return None


def _spool(source: IO[bytes], memory_limit: int) -> IO[bytes]:
    buffer = tempfile.SpooledTemporaryFile(max_size=memory_limit, mode="w+b")  # noqa: SIM115
    try:
        shutil.copyfileobj(source, buffer)
    except BaseException:
        buffer.close()
        raise
    buffer.seek(0)
    return buffer


def extract_zip(path: Path, memory_limit: int) -> IO[bytes] | None:
    """Return the first image entry of a zip archive, or None."""
    try:
        archive = zipfile.ZipFile(path)
    except zipfile.BadZipFile as e:
        raise WrongType(f"Not a zip file: {e}") from e
    except (zipfile.LargeZipFile, NotImplementedError, RuntimeError, OSError) as e:
        raise ArchiveError(f"Unhandled zip error: {e}") from e

    with archive:
        names = [info.filename for info in archive.infolist() if not info.is_dir()]
        selected = select_entry(names)
        if selected is None:
            return None
        logger.debug("Selected %s from zip %s", selected, path.name)
        try:
            with archive.open(selected) as member:
                return _spool(member, memory_limit)
        except (zipfile.BadZipFile, zlib.error, EOFError) as e:  # damaged entry data
            raise ArchiveError(f"Corrupt zip entry {selected}: {e}") from e
        except (zipfile.LargeZipFile, NotImplementedError, RuntimeError, OSError) as e:
            raise ArchiveError(f"Unhandled zip error: {e}") from e


def extract_rar(path: Path, memory_limit: int) -> IO[bytes] | None:
    """Return the first image entry of a rar archive (natural order), or None."""
    try:
        import rarfile
    except ImportError as e:
        raise UnhandledArchive(
            "rarfile package required for rar extraction: pip install rarfile",
            FailureCode.NO_ARCHIVE_HANDLER,
        ) from e

    try:
        archive = rarfile.RarFile(path)
    except rarfile.NotRarFile as e:
        raise WrongType(f"Not a rar file: {e}") from e
    except (rarfile.Error, OSError) as e:
        raise UnhandledArchive(
            f"Error opening rar archive: {e}", FailureCode.ARCHIVE_UNREADABLE
        ) from e

    try:
        names = sorted(
            (info.filename for info in archive.infolist() if not info.is_dir()),
            key=natural_key,
        )
        selected = select_entry(names)
        if selected is None:
            return None
        logger.debug("Selected %s from rar %s", selected, path.name)
        with archive.open(selected) as member:
            return _spool(member, memory_limit)
    except (rarfile.Error, EOFError, OSError) as e:
        raise ArchiveError(f"Unhandled rar error: {e}") from e
    finally:
        archive.close()


def extract(
    path: Path | str,
    kind: str,
    *,
    memory_limit: int = 2 * 1024 * 1024,
    zip_enabled: bool = True,
    rar_enabled: bool = True,
) -> IO[bytes] | None:
    """Extract the first image-like entry of an archive.

    Args:
        path: Archive on disk.
        kind: ``"ar-zip"`` or ``"ar-rar"``.
        memory_limit: Bytes kept in memory before the buffer spills to disk.
        zip_enabled, rar_enabled: Capability switches.

    Returns:
        A rewound binary buffer owned by the caller, or None when the archive
        holds no qualifying entry.

    Raises:
        WrongType: The file is not an archive of ``kind``.
        UnhandledArchive: No reader is available for ``kind`` or it cannot be opened.
        ArchiveError: Other library failure, not worth caching.
    """
    path = Path(path)
    if kind == "ar-zip" and zip_enabled:
        return extract_zip(path, memory_limit)
    if kind == "ar-rar" and rar_enabled:
        return extract_rar(path, memory_limit)
    raise UnhandledArchive(
        f"No handler for archive of type {kind}.", FailureCode.NO_ARCHIVE_HANDLER
    )
