"""
Shared state and helpers for the per-category entry updaters.

Every updater factory takes a ``SyncContext`` and returns an
``EntryUpdater`` closure ``(normalized_key, entry, raw_key) -> bool`` that
mutates the entry in place and reports whether a source counterpart was
found.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Mapping

from ..merge.actions import set_action_html, write_action
from ..merge.fields import set_html_field
from ..overrides.models import OverrideTables
from ..sources.models import LookupEntry, SourceEntity, SourceFeature, TransformationLookup
from ..text.markdown import markdown_to_html
from ..text.normalize import sanitize_html, sanitize_name

_BULLET_ITEM_RE = re.compile(r"- .*?(?=\n- |\n*$)", re.DOTALL)


@dataclass
class SyncContext:
    """Lookup maps and manual tables shared by all updaters of one run."""

    overrides: OverrideTables
    tops: dict[str, dict[str, LookupEntry]] = field(default_factory=dict)
    features: dict[str, dict[str, LookupEntry]] = field(default_factory=dict)
    transformations: dict[str, TransformationLookup] = field(default_factory=dict)
    class_items: dict[str, str] = field(default_factory=dict)
    equipment: dict[str, dict[str, LookupEntry]] = field(default_factory=dict)
    potential_labels: dict[str, list[str]] = field(default_factory=dict)
    adversaries_en_by_slug: dict[str, SourceEntity] = field(default_factory=dict)
    adversary_snapshot: dict[str, dict[str, Any]] = field(default_factory=dict)

    def top(self, endpoint: str) -> dict[str, LookupEntry]:
        return self.tops.get(endpoint, {})

    def feature_map(self, scope: str) -> dict[str, LookupEntry]:
        return self.features.get(scope, {})


def set_or_clear(target: dict[str, Any], key: str, html: str | None) -> None:
    """Apply a lookup description: None keeps, empty removes, text merges."""
    if html is None:
        return
    if html:
        set_html_field(target, key, html)
    else:
        target.pop(key, None)


def apply_top_level(entry: dict[str, Any], info: LookupEntry) -> None:
    """Name and description of a top-level entity; stale actions are removed."""
    entry["name"] = sanitize_name(info.name)
    set_or_clear(entry, "description", info.description)
    entry.pop("actions", None)


def apply_feature(entry: dict[str, Any], info: LookupEntry) -> None:
    if info.name:
        entry["name"] = sanitize_name(info.name)
    set_or_clear(entry, "description", info.description)


def apply_action_overrides(entry: dict[str, Any], overrides: OverrideTables) -> None:
    """Force the fixed text of every overridden action id present in the entry."""
    actions = entry.get("actions")
    if not isinstance(actions, dict):
        return
    for action_id in list(actions):
        override = overrides.action_overrides.get(action_id)
        if override:
            write_action(actions, action_id, override)


def generate_bullet_actions(feature: SourceFeature | None) -> list[str]:
    """One HTML fragment per ``- `` item of a feature body."""
    if feature is None:
        return []
    source = feature.main_body.replace("\r\n", "\n")
    fragments = []
    for segment in _BULLET_ITEM_RE.findall(source):
        cleaned = re.sub(r"^-\s*", "", segment).replace("***", "**").strip()
        fragments.append(sanitize_html(markdown_to_html(cleaned)) or "")
    return fragments


def apply_feature_generated_actions(entry: dict[str, Any], info: LookupEntry, overrides: OverrideTables) -> None:
    """Fill actions in order from the bullets of a list-style feature."""
    actions = entry.get("actions")
    raw = info.raw
    if not isinstance(actions, dict) or not actions or not overrides.is_bullet_feature(getattr(raw, "id", None)):
        return
    generated = generate_bullet_actions(raw)
    for action_id, html in zip(list(actions), generated):
        if html:
            set_action_html(actions, action_id, html)


def translate_attack(entry: dict[str, Any], overrides: OverrideTables) -> None:
    attack = entry.get("attack")
    if not isinstance(attack, str):
        return
    translated = overrides.translate_attack(attack)
    if translated:
        entry["attack"] = sanitize_name(translated)


def lookup_first(maps: Mapping[str, LookupEntry], *keys: str | None) -> LookupEntry | None:
    for key in keys:
        if key and key in maps:
            return maps[key]
    return None
