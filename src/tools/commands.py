# src/tools/commands.py — v1
"""Argument templates for the external tools driven by the cascade.

``[SRC]`` is replaced by the source path and ``[SEEK]`` by the computed seek
offset in seconds. Every converter writes a single JPEG to stdout.
"""

from __future__ import annotations

from dataclasses import dataclass

SRC = "[SRC]"
SEEK = "[SEEK]"

FFMPEG_CMDV = (
    "ffmpeg", "-v", "warning", "-nostdin", "-y", "-hide_banner",
    "-ss", SEEK, "-i", SRC, "-an", "-vframes", "1", "-f", "image2", "-",
)
FFPROBE_CMDV = (
    "ffprobe", "-v", "warning", "-show_entries", "format=duration",
    "-of", "default=noprint_wrappers=1:nokey=1", SRC,
)
AVCONV_CMDV = (
    "avconv", "-v", "warning", "-nostdin", "-y", "-hide_banner",
    "-ss", SEEK, "-i", SRC, "-an", "-vframes", "1", "-f", "image2", "-",
)
AVPROBE_CMDV = (
    "avprobe", "-v", "warning", "-show_entries", "format=duration",
    "-of", "default=noprint_wrappers=1:nokey=1", SRC,
)
GM_CONVERT_CMDV = (
    "gm", "convert", "-density", "200", "-quality", "100", "-strip", f"{SRC}[0]", "JPG:-",
)
CONVERT_CMDV = (
    "convert", "-density", "200", "-quality", "100", "-strip", f"{SRC}[0]", "JPG:-",
)


@dataclass(frozen=True)
class VideoTools:
    """A matching prober/converter pair."""

    name: str
    probe: tuple[str, ...]
    convert: tuple[str, ...]


FFMPEG = VideoTools("ffmpeg", FFPROBE_CMDV, FFMPEG_CMDV)
AVCONV = VideoTools("avconv", AVPROBE_CMDV, AVCONV_CMDV)


def substitute(template: tuple[str, ...] | list[str], source: str, seek: str | None = None) -> list[str]:
    """Fill placeholders in an argument template."""
    argv: list[str] = []
    for arg in template:
        if seek is not None:
            arg = arg.replace(SEEK, seek)
        arg = arg.replace(SRC, source)
        argv.append(arg)
    return argv


def seek_after_input(template: tuple[str, ...]) -> tuple[str, ...]:
    """Move ``-i [SRC]`` in front of ``-ss [SEEK]``.

    Flash movies are only seekable once the input is opened, so the seek has
    to become an output option.
    """
    argv = list(template)
    ss = argv.index("-ss")
    i = argv.index("-i")
    if i < ss:
        return template
    argv[ss:i + 2] = ["-i", argv[i + 1], "-ss", argv[ss + 1]]
    return tuple(argv)
