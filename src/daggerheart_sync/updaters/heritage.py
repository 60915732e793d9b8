"""
Updaters for ancestry and community files.
"""

from typing import Any, Mapping

from ..overrides.models import resolve_alias
from ..sources.models import LookupEntry
from ..storage import EntryUpdater
from .base import SyncContext, apply_feature, apply_top_level, lookup_first


def make_top_with_features_updater(
    tops: Mapping[str, LookupEntry],
    features: Mapping[str, LookupEntry],
    aliases: Mapping[str, str] | None = None,
) -> EntryUpdater:
    """Resolve an entry as a top-level entity, one of its features, or both."""
    aliases = aliases or {}

    def update(norm: str | None, entry: dict[str, Any], key: str) -> bool:
        if not norm:
            return False
        lookup = resolve_alias(norm, aliases)
        handled = False

        top_info = tops.get(lookup)
        if top_info:
            apply_top_level(entry, top_info)
            handled = True

        feature_info = lookup_first(features, lookup, norm)
        if feature_info:
            apply_feature(entry, feature_info)
            handled = True
        return handled

    return update


def make_ancestries_updater(ctx: SyncContext) -> EntryUpdater:
    return make_top_with_features_updater(
        ctx.top("ancestry"),
        ctx.feature_map("ancestry"),
        ctx.overrides.aliases.feature,
    )


def make_communities_updater(ctx: SyncContext) -> EntryUpdater:
    base = make_top_with_features_updater(ctx.top("community"), ctx.feature_map("community"))

    def update(norm: str | None, entry: dict[str, Any], key: str) -> bool:
        handled = base(norm, entry, key)
        ctx.overrides.patch_entry("communities", key, entry)
        return handled

    return update
