# tests/unit/tools/test_commands.py — v1
"""Tests for tools/commands.py — argument templates and substitution."""

from __future__ import annotations

from thumbkit.tools.commands import (
    AVCONV,
    CONVERT_CMDV,
    FFMPEG,
    FFMPEG_CMDV,
    GM_CONVERT_CMDV,
    SEEK,
    SRC,
    seek_after_input,
    substitute,
)


class TestTemplates:
    def test_converters_write_jpeg_to_stdout(self):
        assert FFMPEG_CMDV[-1] == "-"
        assert GM_CONVERT_CMDV[-1] == "JPG:-"
        assert CONVERT_CMDV[-1] == "JPG:-"

    def test_rasterizers_take_first_page(self):
        assert f"{SRC}[0]" in GM_CONVERT_CMDV
        assert f"{SRC}[0]" in CONVERT_CMDV

    def test_tool_pairs(self):
        assert FFMPEG.probe[0] == "ffprobe"
        assert FFMPEG.convert[0] == "ffmpeg"
        assert AVCONV.probe[0] == "avprobe"
        assert AVCONV.convert[0] == "avconv"


class TestSubstitute:
    def test_fills_placeholders(self):
        argv = substitute(FFMPEG_CMDV, "/v/clip.mp4", "6.2")
        assert argv[argv.index("-ss") + 1] == "6.2"
        assert argv[argv.index("-i") + 1] == "/v/clip.mp4"
        assert SRC not in argv and SEEK not in argv

    def test_page_suffix_kept(self):
        argv = substitute(GM_CONVERT_CMDV, "/d/doc.pdf")
        assert "/d/doc.pdf[0]" in argv

    def test_source_with_placeholder_text(self):
        argv = substitute(FFMPEG_CMDV, "/v/[SEEK].mp4", "1.0")
        assert "/v/[SEEK].mp4" in argv

    def test_template_unchanged(self):
        substitute(FFMPEG_CMDV, "/x", "1.0")
        assert SRC in FFMPEG_CMDV


class TestSeekAfterInput:
    def test_swap(self):
        swapped = seek_after_input(FFMPEG_CMDV)
        assert swapped.index("-i") < swapped.index("-ss")
        assert swapped[swapped.index("-i") + 1] == SRC
        assert swapped[swapped.index("-ss") + 1] == SEEK
        assert len(swapped) == len(FFMPEG_CMDV)
        assert swapped[:6] == FFMPEG_CMDV[:6]
        assert swapped[10:] == FFMPEG_CMDV[10:]

    def test_idempotent(self):
        once = seek_after_input(FFMPEG_CMDV)
        assert seek_after_input(once) == once
