"""
Updaters for adversary and environment files.

Both kinds carry nested ``items`` that correspond to the source features.
Adversary items are matched by name against the previous-revision snapshot
when possible so that reordered source features land on the right item;
environment items are paired by position and keep their GM-only secret
sections.
"""

import logging
import re
from typing import Any, Mapping

from ..merge.actions import set_action_html
from ..merge.fields import set_html_field
from ..merge.secrets import dedupe_secret_content, extract_secret_texts, preserve_secret_sections_from_source
from ..overrides.models import OverrideTables
from ..sources.models import SourceEntity, SourceFeature
from ..storage import EntryUpdater
from ..text.markdown import markdown_to_html
from ..text.normalize import extract_plain_text, extract_visible_text, normalize_key, sanitize_name
from .base import SyncContext, apply_action_overrides, apply_feature, generate_bullet_actions

logger = logging.getLogger(__name__)

BATTLE_BOX_SLUG = "battle-box"

_ITEM_KIND_SUFFIX_RE = re.compile(
    r"\s*[-–—]\s*(?:action|reaction|passive|действие|реакция|пассив[^\s]*)$",
    re.IGNORECASE,
)
_EXPERIENCE_BONUS_RE = re.compile(r"\s*[+\-]\d+\s*$")
_LEADING_STRONG_LABEL_RE = re.compile(r"^<p><strong>[^<]+?\.</strong>\s*", re.IGNORECASE)
_OPTION_NAME_RE = re.compile(r"-\s+\*\*(.+?)\*\*")
_LIST_START_RE = re.compile(r"\n-\s")


def clean_item_name(name: str | None) -> str:
    """Drop a trailing ``- Action``/``- Reaction``/``- Passive`` marker."""
    if not name:
        return ""
    return _ITEM_KIND_SUFFIX_RE.sub("", name).strip()


def strip_experience_bonus(name: str) -> str:
    return _EXPERIENCE_BONUS_RE.sub("", name).strip()


def strip_leading_strong_label(html: str) -> str:
    return _LEADING_STRONG_LABEL_RE.sub("<p>", html, count=1)


def render_numbered_options(feature: SourceFeature) -> str | None:
    """Intro text followed by an ordered list of the bold option names."""
    source = feature.main_body.replace("\r\n", "\n").strip()
    if not source:
        return None
    intro = _LIST_START_RE.split(source)[0].strip()
    intro_html = markdown_to_html(intro) if intro else ""
    options = []
    for match in _OPTION_NAME_RE.finditer(source):
        name = sanitize_name(match.group(1).rstrip(".").strip())
        if name:
            options.append(f"<li><p><strong>{name}</strong></p></li>")
    list_html = f"<ol>{''.join(options)}</ol>" if options else ""
    return f"{intro_html}{list_html}" or None


def apply_feature_to_item(item: dict[str, Any], feature: SourceFeature, overrides: OverrideTables) -> None:
    name = sanitize_name(clean_item_name(feature.name))
    if name:
        item["name"] = name
    if overrides.is_numbered_option_feature(feature.id):
        body = render_numbered_options(feature)
    else:
        body = markdown_to_html(feature.main_body)
    if body:
        set_html_field(item, "description", body)
    else:
        item.pop("description", None)


def apply_battle_box(entry: dict[str, Any], raw: SourceEntity, overrides: OverrideTables) -> None:
    """Spread the battle box's features over its items.

    The first two features fill the first two items, each bullet of the
    random-tactics feature fills one of the following items, and the last
    two features fill the last two items.
    """
    items = entry.get("items")
    if not isinstance(items, dict) or len(items) < 2 or len(raw.features) < 2:
        return
    item_keys = list(items)
    features = raw.features

    for item_key, feature in zip(item_keys[:2], features[:2]):
        if isinstance(items[item_key], dict):
            apply_feature_to_item(items[item_key], feature, overrides)

    bullets = generate_bullet_actions(features[1])
    for item_key, bullet in zip(item_keys[2:], bullets):
        html = strip_leading_strong_label(bullet) if bullet else ""
        target = items[item_key]
        if not html or not isinstance(target, dict):
            continue
        set_html_field(target, "description", html)
        actions = target.get("actions")
        if isinstance(actions, dict):
            for action_id in list(actions):
                set_action_html(actions, action_id, html)

    for item_key, feature in zip(item_keys[-2:], features[2:4]):
        if isinstance(items[item_key], dict):
            apply_feature_to_item(items[item_key], feature, overrides)


def _features_by_source_name(original: SourceEntity, translated: list[SourceFeature]) -> dict[str, SourceFeature]:
    by_id = {feature.id: feature for feature in translated if feature.id is not None}
    by_name: dict[str, SourceFeature] = {}
    for feature in original.features:
        counterpart = by_id.get(feature.id) if feature.id is not None else None
        key = normalize_key(clean_item_name(feature.name))
        if counterpart is not None and key and key not in by_name:
            by_name[key] = counterpart
    return by_name


def assign_items_by_snapshot(
    items: dict[str, Any],
    snapshot_items: Mapping[str, Any],
    original: SourceEntity,
    features: list[SourceFeature],
    overrides: OverrideTables,
) -> None:
    """Pair items with features through the item names of the snapshot.

    Items whose snapshot name matches no source feature take the next
    feature not yet used.
    """
    by_name = _features_by_source_name(original, features)
    remaining = list(features)
    for item_id, item in items.items():
        if not isinstance(item, dict):
            continue
        snapshot_item = snapshot_items.get(item_id)
        snapshot_name = snapshot_item.get("name", "") if isinstance(snapshot_item, dict) else ""
        key = normalize_key(clean_item_name(snapshot_name))
        feature = by_name.get(key) if key else None
        if feature is None:
            feature = remaining.pop(0) if remaining else None
        elif feature in remaining:
            remaining.remove(feature)
        if feature is None:
            break
        apply_feature_to_item(item, feature, overrides)


def assign_items_in_order(items: dict[str, Any], features: list[SourceFeature], overrides: OverrideTables) -> None:
    for item, feature in zip(items.values(), features):
        if isinstance(item, dict):
            apply_feature_to_item(item, feature, overrides)


def apply_experiences(entry: dict[str, Any], experiences: str) -> None:
    """Rename experiences in order from a comma-separated source list."""
    current = entry.get("experiences")
    if not experiences or not isinstance(current, dict) or not current:
        return
    values = [value.strip() for value in experiences.split(",") if value.strip()]
    for index, experience in enumerate(current.values()):
        value = values[index] if index < len(values) else experiences
        if isinstance(experience, dict):
            experience["name"] = sanitize_name(strip_experience_bonus(value))


def _set_short_description(entry: dict[str, Any], raw: SourceEntity) -> None:
    description = markdown_to_html(raw.short_description or raw.main_body)
    if description:
        set_html_field(entry, "description", description)
    else:
        entry.pop("description", None)


def translate_adversary(norm: str | None, entry: dict[str, Any], ctx: SyncContext, match_snapshot: bool = True) -> bool:
    if not norm:
        return False
    overrides = ctx.overrides
    info = ctx.top("adversary").get(norm)
    if info is None:
        feature_info = ctx.feature_map("adversary").get(norm)
        if feature_info:
            apply_feature(entry, feature_info)
        apply_action_overrides(entry, overrides)
        return feature_info is not None

    raw = info.raw
    entry["name"] = sanitize_name(info.name)
    _set_short_description(entry, raw)
    if raw.motives:
        set_html_field(entry, "motivesAndTactics", raw.motives)
    if raw.weapon_name:
        entry["attack"] = sanitize_name(raw.weapon_name)
    apply_experiences(entry, raw.experiences)

    items = entry.get("items")
    items = items if isinstance(items, dict) else {}
    if raw.slug == BATTLE_BOX_SLUG:
        apply_battle_box(entry, raw, overrides)
    else:
        original = ctx.adversaries_en_by_slug.get(raw.slug) if raw.slug and match_snapshot else None
        snapshot = ctx.adversary_snapshot.get(norm) if match_snapshot else None
        snapshot_items = snapshot.get("items") if isinstance(snapshot, dict) else None
        if original is not None and isinstance(snapshot_items, dict) and snapshot_items and raw.features and original.features:
            assign_items_by_snapshot(items, snapshot_items, original, raw.features, overrides)
        else:
            assign_items_in_order(items, raw.features, overrides)

    apply_action_overrides(entry, overrides)
    return True


def _environment_item_body(feature: SourceFeature, previous: Any) -> str:
    """Rendered feature text, reconciled with the item's current description.

    The current text is kept when it already says the same thing or when
    the new visible text reveals what used to be secret; otherwise its
    secret sections are carried into the new text.
    """
    body = markdown_to_html(feature.main_body)
    if not previous or not isinstance(previous, str):
        return body
    visible = extract_visible_text(body)
    secrets = extract_secret_texts(previous)
    if visible and secrets and any(secret and secret in visible for secret in secrets):
        return previous
    previous_plain = extract_plain_text(previous)
    if previous_plain and previous_plain == extract_plain_text(body):
        return previous
    return preserve_secret_sections_from_source(body, previous) or ""


def apply_potential_labels(entry: dict[str, Any], labels: list[str]) -> None:
    groups = entry.get("potentialAdversaries")
    if not isinstance(groups, dict):
        return
    for index, group in enumerate(groups.values()):
        if not isinstance(group, dict):
            continue
        label = labels[index] if index < len(labels) else None
        if label:
            group["label"] = sanitize_name(label)


def translate_environment(norm: str | None, entry: dict[str, Any], ctx: SyncContext) -> bool:
    if not norm:
        return False
    overrides = ctx.overrides
    info = ctx.top("environment").get(norm)
    if info is None:
        feature_info = ctx.feature_map("environment").get(norm)
        if feature_info:
            apply_feature(entry, feature_info)
        apply_action_overrides(entry, overrides)
        return feature_info is not None

    raw = info.raw
    entry["name"] = sanitize_name(info.name)
    _set_short_description(entry, raw)

    items = entry.get("items")
    if isinstance(items, dict):
        for item, feature in zip(items.values(), raw.features):
            if not isinstance(item, dict):
                continue
            body = _environment_item_body(feature, item.get("description"))
            item["name"] = sanitize_name(clean_item_name(feature.name))
            if body:
                set_html_field(item, "description", body)
                if item.get("description"):
                    item["description"] = dedupe_secret_content(item["description"])
            else:
                item.pop("description", None)

    if raw.impulses:
        set_html_field(entry, "impulses", raw.impulses)
    apply_potential_labels(entry, ctx.potential_labels.get(raw.slug, []) if raw.slug else [])
    apply_action_overrides(entry, overrides)
    return True


def make_adversaries_updater(ctx: SyncContext) -> EntryUpdater:
    def update(norm: str | None, entry: dict[str, Any], key: str) -> bool:
        return translate_adversary(norm, entry, ctx)

    return update


def make_environments_updater(ctx: SyncContext) -> EntryUpdater:
    def update(norm: str | None, entry: dict[str, Any], key: str) -> bool:
        return translate_environment(norm, entry, ctx)

    return update


def make_encounters_updater(ctx: SyncContext) -> EntryUpdater:
    """Updater for files mixing adversaries and environments.

    Each entry goes to whichever kind knows its name, adversaries first.
    Adversary items are paired by position here.
    """
    adversary_maps = (ctx.top("adversary"), ctx.feature_map("adversary"))
    environment_maps = (ctx.top("environment"), ctx.feature_map("environment"))

    def update(norm: str | None, entry: dict[str, Any], key: str) -> bool:
        if not norm:
            return False
        if any(norm in lookup for lookup in adversary_maps):
            return translate_adversary(norm, entry, ctx, match_snapshot=False)
        if any(norm in lookup for lookup in environment_maps):
            return translate_environment(norm, entry, ctx)
        logger.debug(f"{key}: neither an adversary nor an environment")
        return False

    return update
