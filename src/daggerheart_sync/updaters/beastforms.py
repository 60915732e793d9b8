"""
Updater for beastform files.

A beastform is either whole (its features are the description) or
composite (each nested item is one feature of the form).
"""

from typing import Any

from ..merge.fields import set_html_field
from ..storage import EntryUpdater
from ..text.markdown import markdown_to_html
from ..text.normalize import sanitize_html, sanitize_name, strip_links
from .base import SyncContext, apply_action_overrides, apply_feature


def parse_advantages(value: str | None) -> list[str]:
    """``"sneak, track"`` -> ``["Sneak", "Track"]``"""
    if not value:
        return []
    advantages = []
    for chunk in value.split(","):
        name = sanitize_name(chunk)
        if name:
            advantages.append(name[0].upper() + name[1:])
    return advantages


def make_beastforms_updater(ctx: SyncContext) -> EntryUpdater:
    overrides = ctx.overrides
    forms = ctx.top("beastform")
    features = ctx.feature_map("beastform")

    def update(norm: str | None, entry: dict[str, Any], key: str) -> bool:
        if not norm:
            return False

        info = forms.get(norm)
        if info is None:
            feature_info = features.get(norm)
            if feature_info:
                apply_feature(entry, feature_info)
            apply_action_overrides(entry, overrides)
            return feature_info is not None

        raw = info.raw
        entry["name"] = sanitize_name(info.name)
        items = entry.get("items")
        items = items if isinstance(items, dict) else {}
        if raw.features and not items:
            # Whole forms describe themselves through their features.
            entry.pop("description", None)
        else:
            if entry.get("description") and items and info.description:
                set_html_field(entry, "description", info.description)
            else:
                entry.pop("description", None)

            for item, feature in zip(items.values(), raw.features):
                if not isinstance(item, dict):
                    continue
                item["name"] = sanitize_name(feature.name) or ""
                body = markdown_to_html(feature.main_body)
                if body:
                    set_html_field(item, "description", body)
                else:
                    item.pop("description", None)

        if "advantageOn" in entry:
            advantages = parse_advantages(raw.advantages)
            if advantages:
                entry["advantageOn"] = advantages

        if "examples" in entry and raw.examples:
            examples = sanitize_html(strip_links(raw.examples))
            if examples:
                entry["examples"] = examples

        apply_action_overrides(entry, overrides)
        return True

    return update
