# src/cache/artifact_cache.py — v1
"""Filesystem cache of finished JPEG thumbnails.

Artifacts are named ``{source_hash}-{width}x{height}.jpg``. An artifact is
fresh while its modification time is at least the source's; otherwise it is
rebuilt and overwritten. Writers go through :meth:`ArtifactCache.publish`,
which renders into a temporary file in the same directory and renames it
into place.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Callable

logger = logging.getLogger(__name__)


class ArtifactCache:
    """Content-addressed store of thumbnail JPEGs plus their public hrefs."""

    def __init__(self, thumbs_dir: Path, href_base: str, cache_root: Path | None = None) -> None:
        self._dir = Path(thumbs_dir)
        self._href_base = href_base.rstrip("/")
        self._cache_root = Path(cache_root) if cache_root is not None else self._dir
        self._dir.mkdir(parents=True, exist_ok=True)

    @property
    def directory(self) -> Path:
        return self._dir

    @staticmethod
    def artifact_name(source_hash: str, width: int, height: int) -> str:
        return f"{source_hash}-{width}x{height}.jpg"

    def locate(self, source_hash: str, width: int, height: int) -> tuple[Path, str]:
        """Return ``(thumb_path, thumb_href)`` for a fingerprint and size."""
        name = self.artifact_name(source_hash, width, height)
        return self._dir / name, f"{self._href_base}/{name}"

    def contains_source(self, source_path: Path) -> bool:
        """True if ``source_path`` lies inside the cache area."""
        try:
            resolved = Path(source_path).resolve()
        except OSError:
            return False
        return resolved.is_relative_to(self._cache_root.resolve())

    @staticmethod
    def is_fresh(thumb_path: Path, source_path: Path) -> bool:
        """True if the artifact exists and is not older than its source."""
        try:
            return source_path.stat().st_mtime <= thumb_path.stat().st_mtime
        except OSError:
            return False

    def publish(self, thumb_path: Path, render: Callable[[Path], None]) -> bool:
        """Render into a temporary file and atomically move it to ``thumb_path``.

        ``render`` receives the temporary path and must write a complete JPEG
        to it. Returns True if the artifact is in place afterwards.
        """
        try:
            fd, tmp_name = tempfile.mkstemp(dir=self._dir, prefix=".tmp-", suffix=".jpg")
        except OSError as e:
            logger.warning("Could not create temporary file in %s: %s", self._dir, e)
            return False
        os.close(fd)
        tmp_path = Path(tmp_name)
        try:
            render(tmp_path)
            if tmp_path.stat().st_size == 0:
                logger.warning("Renderer produced an empty file for %s", thumb_path.name)
                return False
            os.chmod(tmp_path, 0o644)
            os.replace(tmp_path, thumb_path)
        except (OSError, ValueError) as e:
            logger.warning("Could not publish thumbnail %s: %s", thumb_path.name, e)
            return False
        finally:
            tmp_path.unlink(missing_ok=True)
        return thumb_path.exists()

    def purge(self, source_hash: str) -> int:
        """Delete every artifact of a source. Returns the number removed."""
        removed = 0
        for path in self._dir.glob(f"{source_hash}-*x*.jpg"):
            path.unlink(missing_ok=True)
            removed += 1
        return removed
