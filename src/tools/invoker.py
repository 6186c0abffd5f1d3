# src/tools/invoker.py — v1
"""Run an external tool and capture its stdout into a bounded buffer.

Standard output is spooled in memory up to ``memory_limit`` bytes and spills
to a temporary file beyond that. Standard error is kept separately and is
only used for logging and a few fallback heuristics; success is judged by
the caller from the captured bytes, never from the exit code.
"""

from __future__ import annotations

import asyncio
import logging
import tempfile
from dataclasses import dataclass
from typing import IO

from thumbkit.core.errors import ToolOutputInvalid, ToolTimeout, ToolUnavailable

logger = logging.getLogger(__name__)

JPEG_MAGIC = b"\xff\xd8\xff"

_CHUNK_SIZE = 64 * 1024
_STDERR_LIMIT = 64 * 1024


@dataclass
class ToolOutput:
    """Captured result of one external process."""

    argv: list[str]
    returncode: int
    stdout: IO[bytes]
    stderr: str
    size: int

    def head(self, n: int = 3) -> bytes:
        """First ``n`` bytes of stdout; the stream is rewound afterwards."""
        self.stdout.seek(0)
        data = self.stdout.read(n)
        self.stdout.seek(0)
        return data

    def text(self) -> str:
        """Whole stdout decoded as UTF-8 (for small outputs such as probes)."""
        self.stdout.seek(0)
        data = self.stdout.read()
        self.stdout.seek(0)
        return data.decode("utf-8", errors="replace")

    def close(self) -> None:
        self.stdout.close()


def is_jpeg(output: ToolOutput) -> bool:
    """True if the captured stdout starts with the JPEG magic number."""
    return output.head(len(JPEG_MAGIC)) == JPEG_MAGIC


async def _pump(stream: asyncio.StreamReader, sink: IO[bytes], max_output: int) -> int:
    total = 0
    while True:
        chunk = await stream.read(_CHUNK_SIZE)
        if not chunk:
            return total
        total += len(chunk)
        if total > max_output:
            raise ToolOutputInvalid(f"output exceeded {max_output} bytes")
        sink.write(chunk)


async def _drain(stream: asyncio.StreamReader) -> bytes:
    data = bytearray()
    while True:
        chunk = await stream.read(_CHUNK_SIZE)
        if not chunk:
            return bytes(data)
        if len(data) < _STDERR_LIMIT:
            data.extend(chunk[: _STDERR_LIMIT - len(data)])


async def run_command(
    argv: list[str],
    *,
    timeout: float = 30.0,
    memory_limit: int = 2 * 1024 * 1024,
    max_output: int = 64 * 1024 * 1024,
) -> ToolOutput:
    """Spawn ``argv`` and capture its output.

    Args:
        argv: Fully substituted command line.
        timeout: Wall-clock budget in seconds; the process is killed beyond it.
        memory_limit: Bytes of stdout kept in memory before spilling to disk.
        max_output: Hard cap on stdout size.

    Returns:
        ToolOutput whose ``stdout`` is rewound to the start. The caller owns
        it and must ``close()`` it.

    Raises:
        ToolUnavailable: The executable cannot be found or started.
        ToolTimeout: The process ran longer than ``timeout``.
        ToolOutputInvalid: The process produced more than ``max_output`` bytes.
    """
    try:
        proc = await asyncio.create_subprocess_exec(
            *argv,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except (FileNotFoundError, PermissionError) as e:
        raise ToolUnavailable(f"{argv[0]}: {e}") from e

    spool = tempfile.SpooledTemporaryFile(max_size=memory_limit, mode="w+b")  # noqa: SIM115
    assert proc.stdout is not None and proc.stderr is not None
    pump = asyncio.ensure_future(_pump(proc.stdout, spool, max_output))
    drain = asyncio.ensure_future(_drain(proc.stderr))
    try:
        size, err = await asyncio.wait_for(asyncio.gather(pump, drain), timeout=timeout)
        returncode = await proc.wait()
    except asyncio.TimeoutError as e:
        _kill(proc)
        await proc.wait()
        spool.close()
        raise ToolTimeout(f"{argv[0]} timed out after {timeout:.0f}s") from e
    except ToolOutputInvalid:
        _kill(proc)
        drain.cancel()
        await proc.wait()
        spool.close()
        raise
    except BaseException:
        _kill(proc)
        spool.close()
        raise

    stderr = err.decode("utf-8", errors="replace")
    if stderr.strip():
        logger.debug("%s stderr: %s", argv[0], stderr.strip()[:500])
    spool.seek(0)
    return ToolOutput(argv=argv, returncode=returncode, stdout=spool, stderr=stderr, size=size)


def _kill(proc: asyncio.subprocess.Process) -> None:
    if proc.returncode is None:
        try:
            proc.kill()
        except ProcessLookupError:
            pass
