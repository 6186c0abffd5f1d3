# src/tools/probe.py — v1
"""Duration probing for the video and flash handlers."""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from thumbkit.core.errors import ProbeError
from thumbkit.tools.commands import substitute
from thumbkit.tools.invoker import run_command

logger = logging.getLogger(__name__)

DEFAULT_SEEK = "0.1"

# The only diagnostic that turns an unparseable probe into a hard failure.
# TODO: match on ffprobe's exit status instead once avprobe support is dropped.
MISDETECTION_MARKER = "misdetection possible"

_ONE_DECIMAL = Decimal("0.1")


def seek_offset(probe_stdout: str, probe_stderr: str, seek_percentage: int | float) -> str:
    """Turn raw probe output into the seek offset passed to the converter.

    Missing, non-numeric or infinite durations seek to ``0.1`` seconds unless
    stderr carries the misdetection warning, which raises :class:`ProbeError`.
    Otherwise the offset is ``duration * seek_percentage / 100`` rounded
    half-up to one decimal.
    """
    text = (probe_stdout or "").strip()
    try:
        duration = Decimal(text)
    except InvalidOperation:
        duration = None

    if duration is None or not duration.is_finite():
        if probe_stderr and MISDETECTION_MARKER in probe_stderr:
            raise ProbeError(probe_stderr.strip())
        return DEFAULT_SEEK

    offset = duration * Decimal(str(seek_percentage)) / Decimal(100)
    return str(offset.quantize(_ONE_DECIMAL, rounding=ROUND_HALF_UP))


async def compute_seek(
    probe_template: tuple[str, ...],
    source: str,
    seek_percentage: int | float,
    *,
    timeout: float = 30.0,
) -> str:
    """Run the prober on ``source`` and return the seek offset in seconds."""
    output = await run_command(
        substitute(probe_template, source),
        timeout=timeout,
        memory_limit=64 * 1024,
        max_output=1024 * 1024,
    )
    try:
        offset = seek_offset(output.text(), output.stderr, seek_percentage)
    finally:
        output.close()
    logger.debug("Seek offset for %s: %ss", source, offset)
    return offset
