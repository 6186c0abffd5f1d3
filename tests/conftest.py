# tests/conftest.py — v1
"""Shared test fixtures for all unit tests.

Provides isolated settings, synthesized images and fake tool outputs.
No external tools are required — subprocesses are mocked unless a test says
otherwise.
"""

from __future__ import annotations

import io
import struct
import zipfile
from pathlib import Path

import pytest
from PIL import Image

from thumbkit.config.settings import Settings
from thumbkit.core.capabilities import Capabilities
from thumbkit.tools.invoker import ToolOutput


def make_image_bytes(
    size: tuple[int, int] = (64, 32),
    fmt: str = "PNG",
    color: tuple[int, ...] = (200, 30, 30),
    mode: str = "RGB",
    exif: Image.Exif | None = None,
) -> bytes:
    """Encode a solid-color image in memory."""
    buf = io.BytesIO()
    im = Image.new(mode, size, color)
    kwargs = {"exif": exif} if exif is not None else {}
    im.save(buf, format=fmt, **kwargs)
    return buf.getvalue()


def make_tool_output(data: bytes, returncode: int = 0, stderr: str = "") -> ToolOutput:
    """ToolOutput as run_command() would return it."""
    return ToolOutput(
        argv=["fake"],
        returncode=returncode,
        stdout=io.BytesIO(data),
        stderr=stderr,
        size=len(data),
    )


def make_damaged_zip(path: Path, name: str = "a.bmp", data: bytes | None = None) -> Path:
    """Write a zip whose single deflated entry has a corrupt compressed stream.

    The container and central directory stay valid; only the entry data is
    overwritten, so decompression fails while reading it.
    """
    data = data if data is not None else make_image_bytes((64, 64), fmt="BMP")
    with zipfile.ZipFile(path, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        zf.writestr(name, data)
    with zipfile.ZipFile(path) as zf:
        info = zf.getinfo(name)
    raw = bytearray(path.read_bytes())
    name_len, extra_len = struct.unpack("<HH", raw[info.header_offset + 26:info.header_offset + 30])
    start = info.header_offset + 30 + name_len + extra_len
    # 0xff opens a deflate block of the reserved type 3.
    count = min(8, info.compress_size)
    raw[start:start + count] = b"\xff" * count
    path.write_bytes(bytes(raw))
    return path

# === FIXTURES ===


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings rooted in a temporary cache directory, ignoring any .env."""
    return Settings(_env_file=None, cache_root=tmp_path / "cache")


@pytest.fixture
def all_capabilities() -> Capabilities:
    return Capabilities(
        ffmpeg=True, avconv=False, gm=True, convert=False,
        sniff=True, exif=True, zip=True, rar=False,
    )


@pytest.fixture
def sources(tmp_path: Path) -> Path:
    """Directory for source files, outside the cache area."""
    path = tmp_path / "files"
    path.mkdir()
    return path


@pytest.fixture
def png_file(sources: Path) -> Path:
    path = sources / "picture.png"
    path.write_bytes(make_image_bytes((1000, 500)))
    return path


@pytest.fixture
def jpeg_bytes() -> bytes:
    return make_image_bytes((320, 240), fmt="JPEG")


@pytest.fixture
def image_factory():
    """Return :func:`make_image_bytes` for tests that need custom images."""
    return make_image_bytes


@pytest.fixture
def tool_output_factory():
    """Return :func:`make_tool_output` for tests that fake run_command()."""
    return make_tool_output


@pytest.fixture
def damaged_zip_factory():
    """Return :func:`make_damaged_zip` for archive corruption tests."""
    return make_damaged_zip
