"""
Pytest configuration and fixtures for daggerheart-sync tests.
"""

import json
import sys
from pathlib import Path

import pytest

# Add src directory to Python path to allow importing daggerheart_sync
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from daggerheart_sync.overrides import OverrideTables, default_overrides  # noqa: E402
from daggerheart_sync.updaters import SyncContext  # noqa: E402


# Configure anyio to only use asyncio (not trio)
@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def empty_ctx() -> SyncContext:
    """Context with no lookups and no manual tables."""
    return SyncContext(overrides=OverrideTables())


@pytest.fixture
def bundled_ctx() -> SyncContext:
    """Context with no lookups but the bundled manual tables."""
    return SyncContext(overrides=default_overrides())


def _write_json(path: Path, data, trailing_newline: bool = True) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    text = json.dumps(data, indent=2, ensure_ascii=False)
    path.write_text(text + ("\n" if trailing_newline else ""), encoding="utf-8")
    return path


@pytest.fixture
def write_json():
    """Writer for JSON files formatted the way destination files are."""
    return _write_json
