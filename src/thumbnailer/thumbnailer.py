# src/thumbnailer/thumbnailer.py — v1
"""Thumbnail orchestrator: artifact cache, outcome store and type cascade.

Usage:
    thumbnailer = Thumbnailer(settings, outcome_store)
    result = await thumbnailer.thumb(path, "img", 240, 0)

A request first tries the artifact cache, then the outcome store for a known
failure, and only then walks the candidate types. Capture handlers share one
dispatch loop so they can fall back into one another; the loop counts every
attempt and never makes more than there are type tags.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import sqlite3
from pathlib import Path
from typing import IO, AsyncIterator, Awaitable, Callable

from thumbkit.archive.extractor import extract
from thumbkit.cache.artifact_cache import ArtifactCache
from thumbkit.cache.base_outcome_store import BaseOutcomeStore
from thumbkit.cache.fingerprint import compute_source_fingerprint, handlers_grew
from thumbkit.cache.models import OutcomeRecord
from thumbkit.config.settings import Settings
from thumbkit.core.capabilities import Capabilities, detect_capabilities
from thumbkit.core.errors import (
    ArchiveError,
    CaptureError,
    DecodeFailure,
    FailureCode,
    ToolOutputInvalid,
    ToolUnavailable,
    UnhandledArchive,
    WrongType,
)
from thumbkit.core.models import ThumbResult
from thumbkit.detection.sniffer import is_swf, read_header, sniff_header, sniff_mimetype
from thumbkit.detection.types import (
    AR_RAR,
    AR_ZIP,
    DOC,
    FILE,
    IMG,
    MOV,
    SWF,
    expand_types,
    mime_to_handler_type,
)
from thumbkit.imaging.exif import read_embedded_thumbnail
from thumbkit.imaging.processor import ImageProcessor
from thumbkit.logging.context import clear_context, set_request_context, set_type_context
from thumbkit.thumbnailer.cascade import (
    CAPTURED,
    FAILED,
    FALLBACK,
    TRANSITIONS,
    CascadeState,
    Step,
    redispatch,
)
from thumbkit.tools.commands import (
    AVCONV,
    CONVERT_CMDV,
    FFMPEG,
    GM_CONVERT_CMDV,
    VideoTools,
    seek_after_input,
    substitute,
)
from thumbkit.tools.invoker import is_jpeg, run_command
from thumbkit.tools.probe import compute_seek

logger = logging.getLogger(__name__)

_STORE_ERRORS = (sqlite3.Error, OSError)

Handler = Callable[[CascadeState], Awaitable[Step]]


def _load_image(source: Path, exif: bool, embedded: bool) -> ImageProcessor | None:
    """Decode ``source`` (or its EXIF thumbnail) and undo its orientation."""
    processor = ImageProcessor(source)
    if embedded:
        data = read_embedded_thumbnail(source)
        if data and processor.decode(data):
            processor.normalize_exif_orientation(source)
            return processor
    if not processor.decode(source):
        return None
    if exif:
        processor.normalize_exif_orientation(source)
    return processor


def _decode_buffer(source: Path, buffer: IO[bytes]) -> ImageProcessor | None:
    processor = ImageProcessor(source)
    if not processor.decode(buffer):
        return None
    return processor


class Thumbnailer:
    """Produces cached JPEG thumbnails for arbitrary files."""

    def __init__(
        self,
        settings: Settings,
        outcome_store: BaseOutcomeStore,
        capabilities: Capabilities | None = None,
        artifact_cache: ArtifactCache | None = None,
    ) -> None:
        self._settings = settings
        self._store = outcome_store
        self._caps = capabilities if capabilities is not None else detect_capabilities(settings)
        self._artifacts = artifact_cache or ArtifactCache(
            settings.thumbs_dir, settings.thumbs_href, cache_root=settings.cache_dir
        )
        self._locks: dict[Path, asyncio.Lock] = {}
        self._lock_users: dict[Path, int] = {}
        self._handlers: dict[str, Handler] = {
            FILE: self._capture_file,
            IMG: self._capture_img,
            MOV: self._capture_mov,
            SWF: self._capture_swf,
            DOC: self._capture_doc,
            AR_ZIP: self._capture_archive,
            AR_RAR: self._capture_archive,
        }

    @property
    def capabilities(self) -> Capabilities:
        return self._caps

    @property
    def artifacts(self) -> ArtifactCache:
        return self._artifacts

    async def thumb(
        self,
        source_path: Path | str,
        declared_type: str,
        width: int,
        height: int = 0,
    ) -> ThumbResult:
        """Return a thumbnail reference for ``source_path``, building it if needed.

        Never raises for problems with the source itself: every failure ends
        up as a result whose ``href`` is None.
        """
        source = Path(source_path)
        absent = ThumbResult(type=declared_type, declared_type=declared_type)

        if width <= 0 or height < 0:
            logger.warning("Invalid thumbnail size %sx%s", width, height)
            return absent
        if not source.is_file() or self._artifacts.contains_source(source):
            return absent

        source_hash = compute_source_fingerprint(source)
        set_request_context(source_hash, declared_type)
        try:
            thumb_path, thumb_href = self._artifacts.locate(source_hash, width, height)

            hit = await self._cache_hit(source, source_hash, declared_type, thumb_path, thumb_href)
            if hit is not None:
                return hit

            async with self._path_lock(thumb_path):
                # A concurrent request may have built it while we waited.
                hit = await self._cache_hit(source, source_hash, declared_type, thumb_path, thumb_href)
                if hit is not None:
                    return hit
                return await self._build(source, source_hash, declared_type, width, height,
                                         thumb_path, thumb_href)
        finally:
            clear_context()

    async def forget(self, source_path: Path | str) -> int:
        """Drop every artifact and outcome record of a source."""
        source_hash = compute_source_fingerprint(Path(source_path))
        removed = self._artifacts.purge(source_hash)
        try:
            removed += await self._store.delete(source_hash)
        except _STORE_ERRORS as e:
            logger.warning("Could not delete outcomes for %s: %s", source_path, e)
        return removed

    def close(self) -> None:
        self._store.close()

    @contextlib.asynccontextmanager
    async def _path_lock(self, thumb_path: Path) -> AsyncIterator[None]:
        """Serialize builds of one artifact; the lock lives while anyone holds or awaits it."""
        lock = self._locks.setdefault(thumb_path, asyncio.Lock())
        self._lock_users[thumb_path] = self._lock_users.get(thumb_path, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[thumb_path] -= 1
            if not self._lock_users[thumb_path]:
                del self._lock_users[thumb_path]
                del self._locks[thumb_path]

    # --- Cache levels ---

    async def _cache_hit(
        self,
        source: Path,
        source_hash: str,
        declared_type: str,
        thumb_path: Path,
        thumb_href: str,
    ) -> ThumbResult | None:
        if not self._artifacts.is_fresh(thumb_path, source):
            return None
        resolved = declared_type
        record = await self._lookup_resolved(source_hash)
        if record is not None:
            # Tell the caller its type detection was wrong so it can update it.
            resolved = record.resolved_type
        return ThumbResult(
            href=thumb_href,
            path=thumb_path,
            type=resolved,
            declared_type=declared_type,
            type_corrected=resolved != declared_type,
            cached=True,
        )

    async def _known_failure(self, source_hash: str, declared_type: str) -> OutcomeRecord | None:
        try:
            record = await self._store.get(source_hash, declared_type)
        except _STORE_ERRORS as e:
            logger.warning("Outcome lookup failed: %s", e)
            return None
        if record is None or not record.is_negative:
            return None
        if handlers_grew(record.capabilities, self._caps.fingerprint):
            logger.info("New handlers since failure was recorded, retrying")
            return None
        return record

    # --- Cascade ---

    async def _build(
        self,
        source: Path,
        source_hash: str,
        declared_type: str,
        width: int,
        height: int,
        thumb_path: Path,
        thumb_href: str,
    ) -> ThumbResult:
        failure = await self._known_failure(source_hash, declared_type)
        if failure is not None:
            logger.debug("Cached failure %s (code %s)", failure.resolved_type, failure.failure_code)
            return ThumbResult(type=failure.resolved_type, declared_type=declared_type)

        state = CascadeState(
            source=source,
            source_hash=source_hash,
            declared_type=declared_type,
            current_type=declared_type,
        )
        try:
            # Hopefully the first candidate is the right one; the others are
            # only tried when it fails without giving up on the source.
            for candidate in expand_types(declared_type):
                captured = await self._capture(state, candidate)
                if not captured:
                    if state.current_type == FILE:
                        break
                    continue
                if await self._render(state, thumb_path, width, height):
                    if state.was_wrong:
                        await self._record(state, state.current_type)
                    logger.info("Thumbnail %s built as %s", thumb_path.name, state.current_type)
                    return ThumbResult(
                        href=thumb_href,
                        path=thumb_path,
                        type=state.current_type,
                        declared_type=declared_type,
                        type_corrected=state.was_wrong,
                    )

            if state.terminal and not state.failure_recorded:
                await self._record(state, FILE, FailureCode.UNRECOGNIZED)
            logger.info("No thumbnail for %s after %d attempt(s)", source.name, state.attempts)
            return ThumbResult(type=state.current_type, declared_type=declared_type)
        finally:
            state.release()

    async def _capture(self, state: CascadeState, tag: str) -> bool:
        """Run capture handlers starting at ``tag`` until one settles."""
        while True:
            if state.exhausted:
                logger.warning("Giving up after %d capture attempts", state.attempts)
                return False
            state.begin_attempt(tag)
            set_type_context(tag)

            try:
                step = await self._handlers[tag](state)
            except UnhandledArchive as e:
                logger.info("Unhandled archive: %s", e)
                # Cache the failure to avoid scanning it again.
                await self._record(state, tag, e.code)
                state.failure_recorded = True
                state.current_type = FILE
                return False
            except ArchiveError as e:
                logger.warning("Archive error, not cached: %s", e)
                state.current_type = FILE
                return False
            except CaptureError as e:
                fallback = FALLBACK[tag]
                logger.debug("%s capture failed (%s): %s", tag, type(e).__name__, e)
                if fallback is None:
                    return False
                step = redispatch(fallback)

            if step.captured:
                return True
            if step.next_type is None:
                return False
            if step.next_type not in TRANSITIONS[tag]:
                logger.error("Invalid transition %s -> %s", tag, step.next_type)
                return False
            tag = step.next_type

    async def _render(self, state: CascadeState, thumb_path: Path, width: int, height: int) -> bool:
        image = state.image
        if image is None:
            return False
        quality = self._settings.jpeg_quality

        def render(tmp_path: Path) -> None:
            image.resize_crop(width, height)
            image.save_jpeg(tmp_path, quality)

        if await asyncio.to_thread(self._artifacts.publish, thumb_path, render):
            return True
        state.release()
        return False

    # --- Capture handlers ---

    async def _capture_file(self, state: CascadeState) -> Step:
        if not self._caps.sniff:
            state.terminal = True
            return FAILED

        mime = await asyncio.to_thread(sniff_mimetype, state.source)
        handler_type = mime_to_handler_type(mime)
        logger.debug("Sniffed %s -> %s", mime, handler_type)

        if handler_type == FILE or handler_type in state.tried:
            state.terminal = True
            return FAILED
        await self._record(state, handler_type, requested_type=FILE)
        return redispatch(handler_type)

    async def _capture_img(self, state: CascadeState) -> Step:
        exif = self._caps.exif
        if exif:
            header = await asyncio.to_thread(read_header, state.source)
            if is_swf(header):
                return redispatch(SWF)
            mime = sniff_header(header)
            if mime is not None and not mime.startswith("image/"):
                raise WrongType(f"not an image: {mime}")

        processor = await asyncio.to_thread(
            _load_image, state.source, exif, exif and self._settings.exif_thumbnails
        )
        if processor is None:
            raise DecodeFailure(f"cannot decode {state.source.name}")
        state.retain(processor)
        return CAPTURED

    async def _capture_mov(self, state: CascadeState) -> Step:
        return await self._capture_video(state, seek_first=True)

    async def _capture_swf(self, state: CascadeState) -> Step:
        return await self._capture_video(state, seek_first=False)

    async def _capture_video(self, state: CascadeState, seek_first: bool) -> Step:
        if not self._caps.has_video:
            raise ToolUnavailable("neither ffmpeg nor avconv is available")
        tools = self._video_tools()
        seek = await compute_seek(
            tools.probe,
            str(state.source),
            self._settings.seek_percentage,
            timeout=self._settings.tool_timeout_s,
        )
        template = tools.convert if seek_first else seek_after_input(tools.convert)
        await self._capture_command(state, template, seek)
        return CAPTURED

    async def _capture_doc(self, state: CascadeState) -> Step:
        if not self._caps.has_rasterizer:
            raise ToolUnavailable("neither gm nor convert is available")
        template = GM_CONVERT_CMDV if self._caps.gm else CONVERT_CMDV
        try:
            await self._capture_command(state, template)
        except ToolUnavailable:
            raise
        except CaptureError as e:
            # Rasterizer errors end this candidate without a generic fallback.
            logger.info("Document rasterization failed: %s", e)
            return FAILED
        return CAPTURED

    async def _capture_archive(self, state: CascadeState) -> Step:
        buffer = await asyncio.to_thread(
            extract,
            state.source,
            state.current_type,
            memory_limit=self._settings.capture_memory_bytes,
            zip_enabled=self._caps.zip,
            rar_enabled=self._caps.rar,
        )
        if buffer is None:
            raise UnhandledArchive("No file found in archive.", FailureCode.NO_IMAGE_ENTRY)
        try:
            processor = await asyncio.to_thread(_decode_buffer, state.source, buffer)
        finally:
            buffer.close()
        if processor is None:
            raise UnhandledArchive(
                "Failed processing selected file from archive.", FailureCode.ENTRY_UNDECODABLE
            )
        state.retain(processor)
        return CAPTURED

    async def _capture_command(
        self, state: CascadeState, template: tuple[str, ...], seek: str | None = None
    ) -> None:
        output = await run_command(
            substitute(template, str(state.source), seek),
            timeout=self._settings.tool_timeout_s,
            memory_limit=self._settings.capture_memory_bytes,
            max_output=self._settings.tool_max_output_bytes,
        )
        try:
            # Judge success by the JPEG magic number, not by stderr or exit code.
            if not is_jpeg(output):
                raise ToolOutputInvalid(
                    f"{template[0]} produced no JPEG (exit {output.returncode})",
                    stderr=output.stderr,
                    returncode=output.returncode,
                )
            processor = await asyncio.to_thread(_decode_buffer, state.source, output.stdout)
        finally:
            output.close()
        if processor is None:
            raise DecodeFailure(f"{template[0]} output could not be decoded")
        state.retain(processor)

    def _video_tools(self) -> VideoTools:
        return FFMPEG if self._caps.ffmpeg else AVCONV

    # --- Outcome store ---

    async def _record(
        self,
        state: CascadeState,
        resolved_type: str,
        failure_code: int | None = None,
        *,
        requested_type: str | None = None,
    ) -> None:
        record = OutcomeRecord(
            source_hash=state.source_hash,
            requested_type=requested_type or state.declared_type,
            resolved_type=resolved_type,
            failure_code=int(failure_code) if failure_code is not None else None,
            capabilities=self._caps.fingerprint,
        )
        try:
            await self._store.put(record)
        except _STORE_ERRORS as e:
            logger.warning("Could not record outcome: %s", e)

    async def _lookup_resolved(self, source_hash: str) -> OutcomeRecord | None:
        try:
            return await self._store.get_resolved(source_hash)
        except _STORE_ERRORS as e:
            logger.warning("Outcome lookup failed: %s", e)
            return None
