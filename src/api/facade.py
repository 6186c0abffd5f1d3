# src/api/facade.py — v1
"""Public API facade — single entry point for thumbnail generation.

Usage:
    from thumbkit.api.facade import thumb
    result = await thumb("photos/cat.jpg", "img", width=240)
    if result.found:
        print(result.href)
"""

from __future__ import annotations

import logging
from pathlib import Path

from thumbkit.api.models import ThumbRequest
from thumbkit.cache.base_outcome_store import BaseOutcomeStore
from thumbkit.cache.store_factory import create_outcome_store
from thumbkit.config.settings import Settings
from thumbkit.core.capabilities import Capabilities
from thumbkit.core.models import ThumbResult
from thumbkit.thumbnailer.thumbnailer import Thumbnailer

logger = logging.getLogger(__name__)


def create_thumbnailer(
    settings: Settings | None = None,
    outcome_store: BaseOutcomeStore | None = None,
    capabilities: Capabilities | None = None,
) -> Thumbnailer:
    """Build a :class:`Thumbnailer` wired to the configured backends.

    Args:
        settings: Global settings. Loaded from environment / .env if None.
        outcome_store: Outcome store. Created from settings if None.
        capabilities: Available handlers. Probed from PATH if None.
    """
    settings = settings or Settings()
    if outcome_store is None:
        outcome_store = create_outcome_store(settings)
    return Thumbnailer(settings, outcome_store, capabilities)


async def thumb(
    source_path: Path | str,
    declared_type: str = "file",
    width: int = 240,
    height: int = 0,
    settings: Settings | None = None,
    thumbnailer: Thumbnailer | None = None,
) -> ThumbResult:
    """Return a cached or freshly built thumbnail for one source file.

    Args:
        source_path: File to thumbnail.
        declared_type: Type guessed by the caller (``img``, ``mov``, ``ar``...).
        width: Thumbnail width in pixels.
        height: Thumbnail height in pixels, 0 keeps the source aspect ratio.
        settings: Global settings, used only when ``thumbnailer`` is None.
        thumbnailer: Reusable thumbnailer. A one-shot one is built if None.

    Returns:
        ThumbResult; ``href`` is None when no thumbnail can be produced.

    Raises:
        pydantic.ValidationError: If the requested size is out of range.
    """
    request = ThumbRequest(
        source_path=Path(source_path),
        declared_type=declared_type,
        width=width,
        height=height,
    )
    if thumbnailer is not None:
        return await thumbnailer.thumb(
            request.source_path, request.declared_type, request.width, request.height
        )

    owned = create_thumbnailer(settings)
    try:
        return await owned.thumb(
            request.source_path, request.declared_type, request.width, request.height
        )
    finally:
        owned.close()
