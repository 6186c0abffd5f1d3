# tests/unit/config/test_settings.py — v2
"""Tests for config/settings.py — typed Settings and validation rules."""

from __future__ import annotations

from pathlib import Path

import pytest

from thumbkit.config.settings import ConfigurationError, Settings, load_settings


class TestSettingsDefaults:
    def test_default_cache_layout(self):
        s = Settings(_env_file=None)
        assert s.thumbs_dirname == "thumbs"
        assert s.thumbs_href == "/_cache/thumbs"
        assert s.outcome_backend == "sqlite"

    def test_default_rendering(self):
        s = Settings(_env_file=None)
        assert s.jpeg_quality == 80
        assert s.seek_percentage == 50
        assert s.exif_thumbnails is False

    def test_default_tools(self):
        s = Settings(_env_file=None)
        assert s.capture_memory_bytes == 2 * 1024 * 1024
        assert s.tool_max_output_bytes == 64 * 1024 * 1024
        assert s.ffmpeg_enabled is True
        assert s.rar_enabled is True


class TestSettingsValidation:
    def test_seek_percentage_range(self):
        with pytest.raises(ValueError, match="seek_percentage"):
            Settings(_env_file=None, seek_percentage=101)

    def test_seek_percentage_bounds_accepted(self):
        assert Settings(_env_file=None, seek_percentage=0).seek_percentage == 0
        assert Settings(_env_file=None, seek_percentage=100).seek_percentage == 100

    def test_jpeg_quality_range(self):
        with pytest.raises(ValueError, match="jpeg_quality"):
            Settings(_env_file=None, jpeg_quality=0)

    def test_thumbs_dirname_plain_name(self):
        with pytest.raises(ConfigurationError, match="THUMBS_DIRNAME"):
            Settings(_env_file=None, thumbs_dirname="../thumbs")

    def test_capture_memory_positive(self):
        with pytest.raises(ConfigurationError, match="CAPTURE_MEMORY_MB"):
            Settings(_env_file=None, capture_memory_mb=0)

    def test_max_output_not_below_memory(self):
        with pytest.raises(ConfigurationError, match="TOOL_MAX_OUTPUT_MB"):
            Settings(_env_file=None, capture_memory_mb=8, tool_max_output_mb=4)

    def test_timeout_positive(self):
        with pytest.raises(ConfigurationError, match="TOOL_TIMEOUT_S"):
            Settings(_env_file=None, tool_timeout_s=0)

    def test_href_trailing_slash_stripped(self):
        s = Settings(_env_file=None, thumbs_href="/static/thumbs/")
        assert s.thumbs_href == "/static/thumbs"


class TestSettingsHelpers:
    def test_cache_dir_expanded(self, tmp_path):
        s = Settings(_env_file=None, cache_root=tmp_path / "c")
        assert s.cache_dir == (tmp_path / "c").resolve()
        assert s.thumbs_dir == s.cache_dir / "thumbs"

    def test_home_expanded(self):
        s = Settings(_env_file=None)
        assert "~" not in str(s.cache_dir)


class TestLoadSettings:
    def test_with_overrides(self):
        s = load_settings(log_level="DEBUG", jpeg_quality=90)
        assert s.log_level == "DEBUG"
        assert s.jpeg_quality == 90

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("THUMBKIT_SEEK_PERCENTAGE", "25")
        monkeypatch.setenv("THUMBKIT_GM_ENABLED", "false")
        s = Settings(_env_file=None)
        assert s.seek_percentage == 25
        assert s.gm_enabled is False

    def test_env_file(self, tmp_path):
        env = tmp_path / ".env"
        env.write_text("THUMBKIT_THUMBS_DIRNAME=previews\nUNRELATED=1\n")
        s = Settings(_env_file=env)
        assert s.thumbs_dirname == "previews"
        assert isinstance(s.cache_root, Path)
