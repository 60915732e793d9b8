"""
Models for the manual override tables.
"""

from __future__ import annotations

import re
from types import MappingProxyType
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..merge.actions import get_action_html, set_action_html
from ..merge.fields import ensure_html_fragment


def _freeze(value: Any) -> Any:
    if isinstance(value, Mapping):
        return MappingProxyType({key: _freeze(item) for key, item in value.items()})
    return value


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class ItemOverride(_Frozen):
    """Fixed name and optional description for one destination entry."""

    name: str | None = None
    description: str | None = Field(default=None, description="HTML; empty string removes the description")


class PatternReplacement(_Frozen):
    pattern: str = Field(..., description="Regular expression, matched case-insensitively")
    value: str = ""

    def apply(self, html: str) -> str:
        return re.sub(self.pattern, self.value, html, flags=re.IGNORECASE)


class EntryPatch(_Frozen):
    """Edits applied to one entry after its text is refreshed."""

    description_replacements: tuple[PatternReplacement, ...] = ()
    description_prefix: str | None = None
    description_suffix: str | None = None
    action_prefix: str | None = None
    action_suffix: str | None = None

    def patch_description(self, html: str | None) -> str | None:
        if html is None:
            return None
        updated = html
        for replacement in self.description_replacements:
            if updated:
                updated = replacement.apply(updated)
        if self.description_prefix:
            updated = ensure_html_fragment(updated, self.description_prefix, "prefix")
        if self.description_suffix:
            updated = ensure_html_fragment(updated, self.description_suffix, "suffix")
        return updated

    def patch_entry(self, entry: dict[str, Any]) -> None:
        if "description" in entry:
            entry["description"] = self.patch_description(entry["description"])
        actions = entry.get("actions")
        if not actions or not (self.action_prefix or self.action_suffix):
            return
        for action_id in list(actions):
            html = get_action_html(actions, action_id)
            if self.action_prefix:
                html = ensure_html_fragment(html, self.action_prefix, "prefix")
            if self.action_suffix:
                html = ensure_html_fragment(html, self.action_suffix, "suffix")
            set_action_html(actions, action_id, html)


class DomainSnippet(_Frozen):
    marker: str = Field(..., description="Text whose presence means the snippet is already there")
    html: str


class Aliases(_Frozen):
    subclass: Mapping[str, str] = Field(default_factory=dict)
    feature: Mapping[str, str] = Field(default_factory=dict)
    transformation: Mapping[str, str] = Field(default_factory=dict)
    equipment: Mapping[str, str] = Field(default_factory=dict)

    @field_validator("*", mode="after")
    @classmethod
    def _read_only(cls, value: Any) -> Any:
        return _freeze(value)


def resolve_alias(key: str | None, aliases: Mapping[str, str]) -> str | None:
    if not key:
        return key
    return aliases.get(key, key)


class OverrideTables(_Frozen):
    """All manual corrections, loaded once per process."""

    aliases: Aliases = Field(default_factory=Aliases)
    action_overrides: Mapping[str, str] = Field(default_factory=dict)
    bullet_action_features: frozenset[int | str] = frozenset()
    numbered_option_features: frozenset[int | str] = frozenset()
    class_items: Mapping[str, ItemOverride] = Field(default_factory=dict)
    armors: Mapping[str, ItemOverride] = Field(default_factory=dict)
    entry_patches: Mapping[str, Mapping[str, EntryPatch]] = Field(default_factory=dict)
    domain_snippets: Mapping[str, DomainSnippet] = Field(default_factory=dict)
    legacy_ancestry_keys: frozenset[str] = frozenset()
    labels: Mapping[str, str] = Field(default_factory=dict)
    attack_names: Mapping[str, str] = Field(default_factory=dict)
    transformation_action_names: Mapping[str, str] = Field(default_factory=dict)
    other_potential_label: str = "Прочие"
    level_five_suffix: str = " (уровень 5)"

    @field_validator(
        "action_overrides",
        "class_items",
        "armors",
        "entry_patches",
        "domain_snippets",
        "labels",
        "attack_names",
        "transformation_action_names",
        mode="after",
    )
    @classmethod
    def _read_only(cls, value: Any) -> Any:
        return _freeze(value)

    def entry_patch(self, category: str, entry_key: str) -> EntryPatch | None:
        section = self.entry_patches.get(category)
        return section.get(entry_key) if section else None

    def patch_description(self, category: str, entry_key: str, html: str | None) -> str | None:
        patch = self.entry_patch(category, entry_key)
        return patch.patch_description(html) if patch else html

    def patch_entry(self, category: str, entry_key: str, entry: dict[str, Any]) -> None:
        patch = self.entry_patch(category, entry_key)
        if patch:
            patch.patch_entry(entry)

    def domain_snippet(self, entry_key: str) -> DomainSnippet | None:
        return self.domain_snippets.get(entry_key)

    def translate_attack(self, value: str | None) -> str | None:
        if not value or not value.strip():
            return None
        return self.attack_names.get(value.strip().lower())

    def is_bullet_feature(self, feature_id: int | str | None) -> bool:
        return feature_id is not None and feature_id in self.bullet_action_features

    def is_numbered_option_feature(self, feature_id: int | str | None) -> bool:
        return feature_id is not None and feature_id in self.numbered_option_features

