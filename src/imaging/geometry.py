# src/imaging/geometry.py — v1
"""Crop and scale geometry for thumbnails."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class CropBox:
    """Source region to sample and destination size to scale it to."""

    x: int
    y: int
    width: int
    height: int
    dest_width: int
    dest_height: int

    @property
    def box(self) -> tuple[int, int, int, int]:
        """Pillow-style ``(left, upper, right, lower)`` box."""
        return (self.x, self.y, self.x + self.width, self.y + self.height)


def compute_crop(src_width: int, src_height: int, width: float, height: float) -> CropBox:
    """Compute the crop region of a ``src_width x src_height`` image.

    A ``height`` of 0 derives the destination size from ``width`` and the
    source aspect ratio, never exceeding the source dimensions. The crop is
    then the largest region with the destination ratio: full width cropped
    vertically from the top for narrower sources, full height centred
    horizontally for wider ones. All values are truncated to integers.
    """
    if src_width <= 0 or src_height <= 0:
        raise ValueError(f"Invalid source size {src_width}x{src_height}")
    if width <= 0:
        raise ValueError(f"Invalid target width {width}")

    src_r = src_width / src_height

    if height == 0:
        if src_r >= 1:
            height = width / src_r
        else:
            height = width
            width = height * src_r
        if width > src_width:
            width = src_width
            height = src_height

    ratio = width / height

    if src_r <= ratio:
        crop_w = src_width
        crop_h = crop_w / ratio
        crop_x = 0.0
    else:
        crop_h = src_height
        crop_w = crop_h * ratio
        crop_x = 0.5 * (src_width - crop_w)

    return CropBox(
        x=int(crop_x),
        y=0,
        width=max(1, int(crop_w)),
        height=max(1, int(crop_h)),
        dest_width=max(1, int(width)),
        dest_height=max(1, int(height)),
    )
