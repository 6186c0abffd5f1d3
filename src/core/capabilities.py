# src/core/capabilities.py — v1
"""Detection of the external tools and libraries available to the cascade.

The set of available handlers is fingerprinted into every outcome record, so
that a failure recorded before e.g. ffmpeg was installed is retried after.
"""

from __future__ import annotations

import importlib.util
import logging
import shutil

from pydantic import BaseModel

from thumbkit.cache.fingerprint import capability_fingerprint
from thumbkit.config.settings import Settings

logger = logging.getLogger(__name__)


class Capabilities(BaseModel):
    """Which handlers the cascade may use."""

    ffmpeg: bool = False
    avconv: bool = False
    gm: bool = False
    convert: bool = False
    sniff: bool = False
    exif: bool = False
    zip: bool = False
    rar: bool = False

    @property
    def available(self) -> set[str]:
        return {name for name, enabled in self.model_dump().items() if enabled}

    @property
    def fingerprint(self) -> str:
        return capability_fingerprint(self.available)

    @property
    def has_video(self) -> bool:
        return self.ffmpeg or self.avconv

    @property
    def has_rasterizer(self) -> bool:
        return self.gm or self.convert


def _which_all(*names: str) -> bool:
    return all(shutil.which(name) is not None for name in names)


def _module_available(name: str) -> bool:
    return importlib.util.find_spec(name) is not None


def detect_capabilities(settings: Settings | None = None) -> Capabilities:
    """Probe the environment for tools, honoring the ``*_enabled`` switches."""
    settings = settings or Settings()
    caps = Capabilities(
        ffmpeg=settings.ffmpeg_enabled and _which_all("ffmpeg", "ffprobe"),
        avconv=settings.avconv_enabled and _which_all("avconv", "avprobe"),
        gm=settings.gm_enabled and _which_all("gm"),
        convert=settings.convert_enabled and _which_all("convert"),
        sniff=settings.sniff_enabled,
        exif=settings.exif_enabled,
        zip=settings.zip_enabled,
        rar=settings.rar_enabled and _module_available("rarfile"),
    )
    logger.debug("Detected capabilities: %s", caps.fingerprint or "<none>")
    return caps
