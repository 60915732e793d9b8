"""Manual corrections layered over the data source."""

from .loader import DEFAULT_OVERRIDES_PATH, default_overrides, load_overrides
from .models import EntryPatch, ItemOverride, OverrideTables, resolve_alias

__all__ = [
    "DEFAULT_OVERRIDES_PATH",
    "default_overrides",
    "load_overrides",
    "EntryPatch",
    "ItemOverride",
    "OverrideTables",
    "resolve_alias",
]
