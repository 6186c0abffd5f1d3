# src/imaging/processor.py — v1
"""Decode, crop, reorient and encode thumbnail images with Pillow.

One :class:`ImageProcessor` holds at most one decoded source and one
rendered destination. Decode failures are reported as ``False``, never raised,
so the cascade can move on to the next candidate type.
"""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import IO

from PIL import Image, UnidentifiedImageError

from thumbkit.imaging.exif import ORIENTATION_ROTATION, read_orientation
from thumbkit.imaging.geometry import compute_crop

logger = logging.getLogger(__name__)

try:
    _RESAMPLING_FILTER = Image.Resampling.LANCZOS
except AttributeError:  # pragma: no cover - legacy Pillow
    _RESAMPLING_FILTER = Image.LANCZOS  # type: ignore[attr-defined]

_BACKGROUND = (255, 255, 255)
_DECODE_ERRORS = (
    OSError,
    UnidentifiedImageError,
    ValueError,
    SyntaxError,
    Image.DecompressionBombError,
)


class ImageProcessor:
    """Stateful wrapper around one source image and its thumbnail."""

    def __init__(self, source_file: Path | str | None = None) -> None:
        self.source_file = Path(source_file) if source_file is not None else None
        self._source: Image.Image | None = None
        self._dest: Image.Image | None = None

    @property
    def width(self) -> int | None:
        return self._source.width if self._source is not None else None

    @property
    def height(self) -> int | None:
        return self._source.height if self._source is not None else None

    @property
    def is_loaded(self) -> bool:
        return self._source is not None

    @property
    def dest(self) -> Image.Image | None:
        return self._dest

    def decode(self, data: bytes | IO[bytes] | Path | str) -> bool:
        """Load image data, replacing any previous source.

        Accepts raw bytes, a binary stream (read from its start) or a path.
        Returns False for corrupt, unsupported or zero-sized images.
        """
        self.release()
        try:
            if isinstance(data, (bytes, bytearray)):
                fp: IO[bytes] | Path | str = io.BytesIO(data)
            elif isinstance(data, (str, Path)):
                fp = data
            else:
                data.seek(0)
                fp = data
            with Image.open(fp) as im:
                im.load()
                image = im.copy() if im.mode in ("RGB", "RGBA", "L", "LA", "P", "PA") else im.convert("RGBA")
        except _DECODE_ERRORS as e:
            logger.debug("Decode failed for %s: %s", self.source_file or "<buffer>", e)
            return False

        if not image.width or not image.height:
            image.close()
            return False
        self._source = image
        return True

    def resize_crop(self, width: int, height: int) -> None:
        """Render the thumbnail: crop to the target ratio and scale.

        ``height`` 0 keeps the source aspect ratio. The destination is filled
        white first so transparent sources do not come out black.
        """
        if self._source is None:
            return
        self._release_dest()

        crop = compute_crop(self._source.width, self._source.height, width, height)
        region = self._source.crop(crop.box)
        if region.mode not in ("RGB", "RGBA"):
            region = region.convert("RGBA")
        region = region.resize((crop.dest_width, crop.dest_height), _RESAMPLING_FILTER)

        dest = Image.new("RGB", (crop.dest_width, crop.dest_height), _BACKGROUND)
        if region.mode == "RGBA":
            dest.paste(region, (0, 0), region)
        else:
            dest.paste(region, (0, 0))
        self._dest = dest

    def rotate(self, angle: int) -> None:
        """Rotate the source counter-clockwise by 90, 180 or 270 degrees."""
        if self._source is None or angle not in (90, 180, 270):
            return
        rotated = self._source.rotate(angle, expand=True)
        self._source.close()
        self._source = rotated

    def normalize_exif_orientation(self, exif_source_file: Path | str | None = None) -> None:
        """Undo the EXIF orientation recorded in the original source file."""
        if self._source is None:
            return
        exif_source_file = exif_source_file or self.source_file
        if exif_source_file is None:
            return
        orientation = read_orientation(exif_source_file)
        angle = ORIENTATION_ROTATION.get(orientation or 0)
        if angle:
            self.rotate(angle)

    def save_jpeg(self, filename: Path | str, quality: int = 80) -> None:
        """Encode the rendered thumbnail as JPEG. No-op before resize_crop()."""
        if self._dest is None:
            return
        self._dest.save(filename, format="JPEG", quality=quality, optimize=True)

    def _release_dest(self) -> None:
        if self._dest is not None:
            self._dest.close()
            self._dest = None

    def release(self) -> None:
        """Free decoded source and rendered destination."""
        self._release_dest()
        if self._source is not None:
            self._source.close()
            self._source = None
