# src/main.py — v2
"""CLI entry point — submit, history, register commands.

Usage:
    stemcache submit <file> --submitter <id>
    stemcache history --submitter <id> [--page N] [--limit N]
    stemcache register <id>
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from stemcache.version import __version__

if TYPE_CHECKING:
    from stemcache.api.facade import StemCacheService
    from stemcache.api.models import ApiResponse
    from stemcache.config.settings import Settings

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    from stemcache.config.settings import ConfigurationError, load_settings

    try:
        settings = load_settings()
    except ConfigurationError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2

    _setup_logging(settings, args.verbose)

    try:
        return asyncio.run(_dispatch(args, settings))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="stemcache",
        description=f"stemcache v{__version__} — content-addressed stem separation cache",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- submit ---
    p_submit = subparsers.add_parser(
        "submit", help="Submit an audio file for separation",
    )
    p_submit.add_argument("file", type=Path, help="Path to the audio file")
    p_submit.add_argument(
        "-s", "--submitter", required=True, help="Submitter identity",
    )
    p_submit.set_defaults(func=_cmd_submit)

    # --- history ---
    p_history = subparsers.add_parser(
        "history", help="Show a submitter's processing history",
    )
    p_history.add_argument(
        "-s", "--submitter", required=True, help="Submitter identity",
    )
    p_history.add_argument("--page", default=None, help="Page number (default: 1)")
    p_history.add_argument("--limit", default=None, help="Page size (default: 10)")
    p_history.set_defaults(func=_cmd_history)

    # --- register ---
    p_register = subparsers.add_parser(
        "register", help="Create a submitter profile",
    )
    p_register.add_argument("submitter", help="Submitter identity")
    p_register.set_defaults(func=_cmd_register)

    return parser


async def _dispatch(args: argparse.Namespace, settings: Settings) -> int:
    from stemcache.api.facade import StemCacheService

    service = StemCacheService.from_settings(settings)
    try:
        return await args.func(args, service)
    finally:
        await service.aclose()


async def _cmd_submit(args: argparse.Namespace, service: StemCacheService) -> int:
    """Stage the file as a transient upload and submit it."""
    from stemcache.api.models import UploadedArtifact
    from stemcache.storage.transient import stage_upload

    file_path: Path = args.file
    if not file_path.is_file():
        logger.error("File not found: %s", file_path)
        return 1

    staged = stage_upload(file_path, service.settings.upload_dir)
    upload = UploadedArtifact(path=staged, original_name=file_path.name)
    response = await service.submit(upload, args.submitter)
    return _print_response(response)


async def _cmd_history(args: argparse.Namespace, service: StemCacheService) -> int:
    response = await service.history(args.submitter, args.page, args.limit)
    return _print_response(response)


async def _cmd_register(args: argparse.Namespace, service: StemCacheService) -> int:
    profile = await service.register(args.submitter)
    print(profile.model_dump_json(indent=2))
    return 0


def _print_response(response: ApiResponse) -> int:
    """Print the JSON body; exit code 0 only for 2xx."""
    print(json.dumps(response.body, indent=2))
    return 0 if 200 <= response.status_code < 300 else 1


def _setup_logging(settings: Settings, verbose: bool) -> None:
    """Configure logging for CLI usage."""
    from stemcache.logging.logger import setup_logging

    setup_logging(
        level="DEBUG" if verbose else settings.log_level,
        log_format=settings.log_format,
        log_file=str(settings.log_file) if settings.log_file else None,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
    )


if __name__ == "__main__":
    sys.exit(main())
