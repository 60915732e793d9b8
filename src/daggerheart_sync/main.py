"""
Command-line entry points.

``daggerheart-sync`` reconciles the translation files with the cached
source data; ``daggerheart-sync-sources`` refreshes that cache.
"""

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path

from .config import SyncConfig
from .exceptions import SyncError
from .pipeline import run_sync
from .sources.fetcher import refresh_api_cache

logger = logging.getLogger("daggerheart-sync")


def setup_logging(quiet: bool = False) -> None:
    """Configure root logging once; quiet mode keeps only warnings."""
    level_name = os.getenv("DAGGERHEART_SYNC_LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(message)s",
    )
    if quiet:
        logger.setLevel(logging.WARNING)


def _parse_args(description: str, argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=description)
    parser.add_argument(
        "--base-dir",
        type=Path,
        default=None,
        help="Project root holding module/translations, original/ and tmp_data/ (default: current directory)",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Only print warnings and errors (same as UPDATE_TRANSLATIONS_QUIET=1)",
    )
    return parser.parse_args(argv)


def _load_config(args: argparse.Namespace) -> SyncConfig:
    overrides = {}
    if args.base_dir is not None:
        overrides["base_dir"] = args.base_dir.resolve()
    config = SyncConfig.from_env(**overrides)
    if args.quiet:
        config.quiet = True
    return config


def main(argv: list[str] | None = None) -> None:
    """Run the reconciliation batch job."""
    args = _parse_args("Update Russian Daggerheart translation files from cached API data", argv)
    config = _load_config(args)
    setup_logging(config.quiet)

    try:
        report = asyncio.run(run_sync(config))
    except SyncError as e:
        print(f"❌ {e.message}", file=sys.stderr)
        sys.exit(1)

    if not config.quiet:
        print(report.format())
    if report.failed:
        print(f"❌ {len(report.failed)} file(s) could not be updated", file=sys.stderr)
        sys.exit(1)


def refresh_main(argv: list[str] | None = None) -> None:
    """Download fresh API data into the local cache."""
    args = _parse_args("Refresh the cached Daggerheart API data", argv)
    config = _load_config(args)
    setup_logging(config.quiet)

    try:
        written = asyncio.run(refresh_api_cache(config))
    except SyncError as e:
        print(f"❌ {e.message}", file=sys.stderr)
        sys.exit(1)
    logger.info(f"✅ Wrote {len(written)} cache file(s) to {config.cache_dir}")


if __name__ == "__main__":
    main()
