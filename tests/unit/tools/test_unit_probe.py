# tests/unit/tools/test_probe.py — v1
"""Tests for tools/probe.py — duration to seek offset."""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest

from thumbkit.core.errors import ProbeError
from thumbkit.tools.commands import FFPROBE_CMDV
from thumbkit.tools.probe import DEFAULT_SEEK, compute_seek, seek_offset


class TestSeekOffset:
    def test_half(self):
        assert seek_offset("12.345\n", "", 50) == "6.2"

    def test_rounds_half_up(self):
        assert seek_offset("10.5", "", 50) == "5.3"

    def test_zero_percent(self):
        assert seek_offset("100", "", 0) == "0.0"

    def test_full(self):
        assert seek_offset("7", "", 100) == "7.0"

    @pytest.mark.parametrize("stdout", ["", "N/A", "inf", "nan", "abc"])
    def test_unusable_duration_defaults(self, stdout):
        assert seek_offset(stdout, "", 50) == DEFAULT_SEEK

    def test_misdetection_raises(self):
        with pytest.raises(ProbeError):
            seek_offset("", "[mp3] Format detected only with low score, misdetection possible!", 50)

    def test_misdetection_ignored_with_duration(self):
        assert seek_offset("4", "misdetection possible", 50) == "2.0"


class TestComputeSeek:
    @pytest.mark.asyncio
    async def test_runs_probe(self, tool_output_factory):
        fake = AsyncMock(return_value=tool_output_factory(b"12.345\n"))
        with patch("thumbkit.tools.probe.run_command", fake):
            seek = await compute_seek(FFPROBE_CMDV, "/v/clip.mp4", 50, timeout=5)
        assert seek == "6.2"
        argv = fake.call_args.args[0]
        assert argv[0] == "ffprobe"
        assert argv[-1] == "/v/clip.mp4"
        assert fake.call_args.kwargs["timeout"] == 5
