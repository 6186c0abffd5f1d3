# src/main.py — v1
"""CLI entry point — thumb, capabilities, forget commands.

Usage:
    thumbkit thumb <file> [-t TYPE] [-W WIDTH] [-H HEIGHT]
    thumbkit capabilities
    thumbkit forget <file>
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from thumbkit.version import __version__

if TYPE_CHECKING:
    from thumbkit.config.settings import Settings

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    from thumbkit.config.settings import ConfigurationError, load_settings

    try:
        settings = load_settings()
    except (ConfigurationError, ValueError) as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 2

    _setup_logging(settings, args.verbose)

    try:
        return asyncio.run(args.func(args, settings))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="thumbkit",
        description=f"thumbkit v{__version__} — Cached thumbnails for arbitrary files",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- thumb ---
    p_thumb = subparsers.add_parser(
        "thumb", help="Build or look up the thumbnail of a file",
    )
    p_thumb.add_argument("file", type=Path, help="Source file")
    p_thumb.add_argument(
        "-t", "--type", dest="thumb_type", default="file",
        help="Declared type: file, img, mov, swf, doc, ar, ar-zip, ar-rar (default: file)",
    )
    p_thumb.add_argument(
        "-W", "--width", type=int, default=240,
        help="Thumbnail width in pixels (default: 240)",
    )
    p_thumb.add_argument(
        "-H", "--height", type=int, default=0,
        help="Thumbnail height in pixels, 0 keeps the aspect ratio (default: 0)",
    )
    p_thumb.set_defaults(func=_cmd_thumb)

    # --- capabilities ---
    p_caps = subparsers.add_parser(
        "capabilities", help="List the handlers available on this host",
    )
    p_caps.set_defaults(func=_cmd_capabilities)

    # --- forget ---
    p_forget = subparsers.add_parser(
        "forget", help="Drop cached thumbnails and outcomes of a file",
    )
    p_forget.add_argument("file", type=Path, help="Source file")
    p_forget.set_defaults(func=_cmd_forget)

    return parser


async def _cmd_thumb(args: argparse.Namespace, settings: Settings) -> int:
    """Produce one thumbnail and print its location."""
    from pydantic import ValidationError

    from thumbkit.api.facade import thumb

    file_path: Path = args.file
    if not file_path.is_file():
        logger.error("File not found: %s", file_path)
        return 1

    try:
        result = await thumb(
            file_path, args.thumb_type, width=args.width, height=args.height,
            settings=settings,
        )
    except ValidationError as exc:
        logger.error("Invalid request: %s", exc)
        return 2

    if not result.found:
        print(f"No thumbnail for {file_path} (type: {result.type})")
        return 1

    print(f"\nThumbnail {'cached' if result.cached else 'built'}:")
    print(f"  Href:  {result.href}")
    print(f"  Path:  {result.path}")
    print(f"  Type:  {result.type}")
    if result.type_corrected:
        print(f"  Note:  declared type {result.declared_type!r} was wrong")
    return 0


async def _cmd_capabilities(args: argparse.Namespace, settings: Settings) -> int:
    """Print which handlers are available."""
    from thumbkit.core.capabilities import detect_capabilities

    caps = detect_capabilities(settings)
    print("\nCapabilities:")
    for name, enabled in caps.model_dump().items():
        print(f"  {name:<8} {'yes' if enabled else 'no'}")
    return 0


async def _cmd_forget(args: argparse.Namespace, settings: Settings) -> int:
    """Remove artifacts and outcome records of one source."""
    from thumbkit.api.facade import create_thumbnailer

    thumbnailer = create_thumbnailer(settings)
    try:
        removed = await thumbnailer.forget(args.file)
    finally:
        thumbnailer.close()
    print(f"Removed {removed} cache entr{'y' if removed == 1 else 'ies'} for {args.file}")
    return 0


def _setup_logging(settings: Settings, verbose: bool) -> None:
    """Configure logging for CLI usage."""
    from thumbkit.logging.logger import setup_logging

    setup_logging(
        level="DEBUG" if verbose else settings.log_level,
        log_format=settings.log_format,
        log_file=str(settings.log_file) if settings.log_file else None,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
    )


if __name__ == "__main__":
    sys.exit(main())
