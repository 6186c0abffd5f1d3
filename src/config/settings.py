# src/config/settings.py — v1
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for cache locations, thumbnail encoding options,
external tool switches and logging. Every field can be set through a
``THUMBKIT_``-prefixed environment variable.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_prefix="THUMBKIT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Cache layout ===
    cache_root: Path = Path("~/.thumbkit/cache")
    thumbs_dirname: str = "thumbs"
    thumbs_href: str = "/_cache/thumbs"
    outcome_backend: Literal["sqlite", "json"] = "sqlite"
    outcome_db_name: str = "outcomes.db"

    # === Thumbnail rendering ===
    jpeg_quality: int = 80
    seek_percentage: int = 50
    exif_thumbnails: bool = False

    # === External tools ===
    capture_memory_mb: int = 2
    tool_timeout_s: float = 30.0
    tool_max_output_mb: int = 64

    # Capability switches (a tool is used only if enabled AND found)
    ffmpeg_enabled: bool = True
    avconv_enabled: bool = True
    gm_enabled: bool = True
    convert_enabled: bool = True
    sniff_enabled: bool = True
    exif_enabled: bool = True
    zip_enabled: bool = True
    rar_enabled: bool = True

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "text"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 5

    # --- Validators ---

    @field_validator("seek_percentage")
    @classmethod
    def validate_seek_percentage(cls, v: int) -> int:  # noqa: N805
        if not 0 <= v <= 100:
            raise ValueError("seek_percentage must be between 0 and 100")
        return v

    @field_validator("jpeg_quality")
    @classmethod
    def validate_jpeg_quality(cls, v: int) -> int:  # noqa: N805
        if not 1 <= v <= 95:
            raise ValueError("jpeg_quality must be between 1 and 95")
        return v

    @field_validator("thumbs_href")
    @classmethod
    def strip_href(cls, v: str) -> str:  # noqa: N805
        return v.rstrip("/")

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        if not self.thumbs_dirname or Path(self.thumbs_dirname).name != self.thumbs_dirname:
            errors.append("THUMBS_DIRNAME must be a plain directory name")

        if self.capture_memory_mb <= 0:
            errors.append("CAPTURE_MEMORY_MB must be > 0")

        if self.tool_max_output_mb < self.capture_memory_mb:
            errors.append("TOOL_MAX_OUTPUT_MB must be >= CAPTURE_MEMORY_MB")

        if self.tool_timeout_s <= 0:
            errors.append("TOOL_TIMEOUT_S must be > 0")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    @property
    def cache_dir(self) -> Path:
        """Expanded, absolute cache root."""
        return self.cache_root.expanduser().resolve()

    @property
    def thumbs_dir(self) -> Path:
        """Directory holding generated JPEG artifacts."""
        return self.cache_dir / self.thumbs_dirname

    @property
    def capture_memory_bytes(self) -> int:
        return self.capture_memory_mb * 1024 * 1024

    @property
    def tool_max_output_bytes(self) -> int:
        return self.tool_max_output_mb * 1024 * 1024


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or embedding).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
