"""
Updater for domain card files.

A card's description is rebuilt from the source text.  Its actions are cut
from the same text, but only when the description actually changed, so the
hand-tuned split of an untouched card survives every run.
"""

import logging
from typing import Any, Mapping

from ..merge.fields import merge_html, set_html_field
from ..merge.splitter import distribute_actions
from ..merge.splitters import DOMAIN_SPLITTERS, SplitterRegistry
from ..overrides.models import resolve_alias
from ..sources.models import SourceEntity
from ..storage import EntryUpdater
from ..text.markdown import markdown_to_html
from ..text.normalize import extract_plain_text, sanitize_name
from .base import SyncContext, apply_action_overrides, apply_feature, lookup_first

logger = logging.getLogger(__name__)


def domain_markdown(raw: SourceEntity) -> str:
    """Card text: the main body, else every feature as ``**Name:** body``."""
    if raw.main_body:
        return raw.main_body
    parts = []
    for feature in raw.features:
        label = f"**{sanitize_name(feature.name)}:** " if feature.name else ""
        parts.append(f"{label}{feature.main_body}")
    return "\n\n".join(parts)


def description_changed(entry: dict[str, Any], html: str) -> bool:
    """Whether ``html`` reads differently from the entry's current description.

    The comparison runs on the merged result so directives kept from the
    current text do not count as a change.
    """
    existing = entry.get("description")
    existing_raw = existing if isinstance(existing, str) else ""
    merged = merge_html(existing_raw, html) if html else ""
    incoming_plain = extract_plain_text(merged or html)
    return bool(incoming_plain) and extract_plain_text(existing_raw) != incoming_plain


def _previous_actions(previous_entries: Mapping[str, Any], key: str) -> dict[str, Any]:
    previous = previous_entries.get(key)
    actions = previous.get("actions") if isinstance(previous, dict) else None
    return actions if isinstance(actions, dict) else {}


def make_domains_updater(
    ctx: SyncContext,
    previous_entries: Mapping[str, Any] | None = None,
    splitters: SplitterRegistry = DOMAIN_SPLITTERS,
) -> EntryUpdater:
    """Updater for a domain card file.

    ``previous_entries`` is the file's content before this run; its actions
    decide which slots held identical text.
    """
    overrides = ctx.overrides
    cards = ctx.top("domain-card")
    features = ctx.feature_map("domain-card")
    previous_entries = previous_entries or {}

    def update(norm: str | None, entry: dict[str, Any], key: str) -> bool:
        if not norm:
            return False
        lookup = resolve_alias(norm, overrides.aliases.feature)
        handled = False

        card = cards.get(lookup)
        if card:
            raw = card.raw
            entry["name"] = sanitize_name(card.name)
            markdown = domain_markdown(raw)
            html = markdown_to_html(markdown)
            refresh_actions = description_changed(entry, html)

            if html:
                set_html_field(entry, "description", html)
            else:
                entry.pop("description", None)

            snippet = overrides.domain_snippet(key)
            description = entry.get("description")
            if snippet and isinstance(description, str) and description and snippet.marker not in description:
                set_html_field(entry, "description", f"{description.rstrip()}{snippet.html}")

            actions = entry.get("actions")
            if isinstance(actions, dict) and actions and refresh_actions:
                written = distribute_actions(
                    actions,
                    _previous_actions(previous_entries, key),
                    markdown,
                    html,
                    features=raw.features,
                    raw=raw,
                    splitter=splitters.get(norm),
                )
                logger.debug(f"{key}: refreshed {len(written)} action(s)")
            handled = True

        feature_info = lookup_first(features, lookup, norm)
        if feature_info and not handled:
            apply_feature(entry, feature_info)
            handled = True

        apply_action_overrides(entry, overrides)
        return handled

    return update


__all__ = ["description_changed", "domain_markdown", "make_domains_updater"]
