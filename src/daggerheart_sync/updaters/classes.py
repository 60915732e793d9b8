"""
Updaters for class and subclass files.

Class files mix several kinds of entries: the classes themselves, their
features, starting items and a few rules.  Each kind is looked up in turn;
later matches refine what earlier ones wrote.
"""

import re
from typing import Any

from ..overrides.models import resolve_alias
from ..sources.models import SourceEntity
from ..storage import EntryUpdater
from ..text.normalize import sanitize_name
from .base import (
    SyncContext,
    apply_action_overrides,
    apply_feature,
    apply_feature_generated_actions,
    apply_top_level,
    lookup_first,
    set_or_clear,
)

_HEADING_RE = re.compile(r"<h\d\b", re.IGNORECASE)
_EMPTY_PARAGRAPH_BEFORE_HEADING_RE = re.compile(r"<p>\s*</p>\s*<h\d\b", re.IGNORECASE)
_LEVEL_FIVE_SUFFIX = "level5"


def keep_trailing_headings(existing: Any, incoming: str) -> str:
    """Keep the hand-written heading sections that follow a class description.

    The source has no headings; when the current value has some, everything
    from the first heading on is re-attached after the new text.
    """
    if not isinstance(existing, str) or not _HEADING_RE.search(existing) or _HEADING_RE.search(incoming):
        return incoming
    match = _EMPTY_PARAGRAPH_BEFORE_HEADING_RE.search(existing) or _HEADING_RE.search(existing)
    if match and match.start() > 0:
        return f"{incoming}{existing[match.start():]}"
    return incoming


def _question_list(values: list[str]) -> list[str] | None:
    cleaned = [sanitize_name(value) for value in values if isinstance(value, str)]
    cleaned = [value for value in cleaned if value]
    return cleaned or None


def apply_class_questions(entry: dict[str, Any], raw: SourceEntity) -> None:
    for source_field, target_field in (("background_questions", "backgroundQuestions"), ("connection_questions", "connections")):
        questions = _question_list(getattr(raw, source_field))
        if questions:
            entry[target_field] = questions
        else:
            entry.pop(target_field, None)


def make_classes_updater(ctx: SyncContext) -> EntryUpdater:
    overrides = ctx.overrides
    classes = ctx.top("class")
    rules = ctx.top("rule")
    features = ctx.feature_map("class")

    def patched(key: str, html: str | None) -> str | None:
        return overrides.patch_description("classes", key, html)

    def update(norm: str | None, entry: dict[str, Any], key: str) -> bool:
        if not norm:
            return False
        handled = False

        class_info = classes.get(norm)
        if class_info:
            entry["name"] = sanitize_name(class_info.name)
            if class_info.description is not None:
                if class_info.description:
                    merged = keep_trailing_headings(entry.get("description"), class_info.description)
                    set_or_clear(entry, "description", patched(key, merged))
                else:
                    entry.pop("description", None)
            apply_class_questions(entry, class_info.raw)
            entry.pop("actions", None)
            handled = True

        feature_info = features.get(norm)
        if feature_info:
            if feature_info.name:
                entry["name"] = sanitize_name(feature_info.name)
            if feature_info.description is not None:
                set_or_clear(entry, "description", patched(key, feature_info.description))
            handled = True

        # "<Feature> Level 5" entries reuse the base feature's text
        if norm.endswith(_LEVEL_FIVE_SUFFIX):
            base_info = features.get(norm[: -len(_LEVEL_FIVE_SUFFIX)])
            if base_info:
                entry["name"] = f"{sanitize_name(base_info.name)}{overrides.level_five_suffix}"
                if base_info.description:
                    set_or_clear(entry, "description", patched(key, base_info.description))
                else:
                    entry.pop("description", None)
                apply_feature_generated_actions(entry, base_info, overrides)
                handled = True

        if feature_info:
            apply_feature_generated_actions(entry, feature_info, overrides)

        item_name = ctx.class_items.get(norm)
        if item_name:
            entry["name"] = item_name
            entry.pop("actions", None)
            handled = True

        item_override = overrides.class_items.get(key)
        if item_override:
            if item_override.name:
                entry["name"] = item_override.name
            if item_override.description is not None:
                set_or_clear(entry, "description", patched(key, item_override.description))
            entry.pop("actions", None)
            handled = True

        rule_info = rules.get(norm)
        if rule_info and (not handled or not entry.get("description")):
            entry["name"] = sanitize_name(rule_info.name)
            if rule_info.description is not None:
                set_or_clear(entry, "description", patched(key, rule_info.description))
            handled = True

        overrides.patch_entry("classes", key, entry)
        apply_action_overrides(entry, overrides)
        return handled

    return update


def make_subclasses_updater(ctx: SyncContext) -> EntryUpdater:
    overrides = ctx.overrides
    subclasses = ctx.top("subclass")
    features = ctx.feature_map("subclass")

    def update(norm: str | None, entry: dict[str, Any], key: str) -> bool:
        if not norm:
            return False
        lookup = resolve_alias(norm, overrides.aliases.subclass)
        handled = False

        subclass_info = subclasses.get(lookup)
        if subclass_info:
            apply_top_level(entry, subclass_info)
            handled = True

        feature_info = lookup_first(features, lookup, norm)
        if feature_info:
            apply_feature(entry, feature_info)
            apply_feature_generated_actions(entry, feature_info, overrides)
            handled = True

        apply_action_overrides(entry, overrides)
        return handled

    return update
