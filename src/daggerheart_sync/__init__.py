"""
Daggerheart translation sync - keeps Russian Foundry VTT translation files
in step with the daggerheart.su rules database.
"""

from .config import SyncConfig
from .exceptions import SyncError
from .pipeline import run_sync
from .report import FileStats, SyncReport

try:
    from importlib.metadata import version as _get_version
    __version__ = _get_version("daggerheart-ru-sync")
except Exception:
    __version__ = "0.1.0"  # Fallback if metadata unavailable
__all__ = ["SyncConfig", "SyncError", "FileStats", "SyncReport", "run_sync"]
