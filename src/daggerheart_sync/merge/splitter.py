"""
Distributing one source description over several action slots.

The data source describes a card as a single text while the destination
may hold several actions for it.  ``distribute_actions`` cuts the text into
one segment per distinct slot and writes the segments in slot order.  Slots
that held identical text before the refresh share one segment.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Callable, MutableMapping, Sequence

from ..text.markdown import markdown_to_html
from ..text.normalize import sanitize_name
from .actions import action_description, get_action_html, set_action_html

_TAG_RE = re.compile(r"<[^>]*>")
_WHITESPACE_RE = re.compile(r"\s+")
_PARAGRAPH_BREAK_RE = re.compile(r"\n\s*\n+")


def fingerprint(html: str | None) -> str:
    """Normalized text of an action used to spot duplicate slots."""
    if not html:
        return ""
    text = _TAG_RE.sub(" ", html)
    return _WHITESPACE_RE.sub(" ", text).strip().lower()


def normalize_markdown(markdown: str | None) -> str:
    if not markdown:
        return ""
    return markdown.replace("\r\n", "\n").strip()


def split_paragraphs(markdown: str | None) -> list[str]:
    source = normalize_markdown(markdown)
    if not source:
        return []
    return [chunk.strip() for chunk in _PARAGRAPH_BREAK_RE.split(source) if chunk.strip()]


def split_markdown_sections(markdown: str | None) -> list[str]:
    """Render each blank-line separated part of ``markdown`` on its own."""
    return [html for html in (markdown_to_html(part) for part in split_paragraphs(markdown)) if html]


@dataclass
class SlotOrder:
    """Action slots to fill, in order, plus the slots that copy another."""

    unique_ids: list[str] = field(default_factory=list)
    duplicates: dict[str, str] = field(default_factory=dict)


def described_slots(actions: MutableMapping[str, Any], previous: MutableMapping[str, Any]) -> list[str]:
    """Action ids that had text either in the snapshot or currently."""
    ids = []
    for action_id in actions:
        before = action_description(previous.get(action_id)).strip()
        current = action_description(actions.get(action_id)).strip()
        if before or current:
            ids.append(action_id)
    return ids


def derive_slot_order(
    action_ids: Sequence[str],
    actions: MutableMapping[str, Any],
    previous: MutableMapping[str, Any],
    force_unique: bool = False,
) -> SlotOrder:
    """Group slots by the text they held in the previous snapshot.

    A slot absent from the snapshot is fingerprinted by its current text; an
    empty fingerprint falls back to the slot id, so empty slots never merge.
    """
    if force_unique:
        return SlotOrder(unique_ids=list(action_ids))
    order = SlotOrder()
    seen: dict[str, str] = {}
    for action_id in action_ids:
        if action_id in previous:
            source = action_description(previous[action_id])
        else:
            source = get_action_html(actions, action_id)
        key = fingerprint(source) or action_id
        if key in seen:
            order.duplicates[action_id] = seen[key]
        else:
            seen[key] = action_id
            order.unique_ids.append(action_id)
    return order


def reconcile_segments(segments: list[str], desired_count: int) -> list[str]:
    """Fit ``segments`` to ``desired_count``.

    Surplus segments are appended to the last kept one so no text is lost;
    missing ones repeat the last segment.
    """
    if not segments or desired_count <= 0:
        return list(segments)
    adjusted = list(segments)
    while len(adjusted) > desired_count:
        extra = adjusted.pop()
        adjusted[-1] = f"{adjusted[-1]}{extra}"
    while len(adjusted) < desired_count:
        adjusted.append(adjusted[-1])
    return adjusted


def render_markdown_segments(segments: Sequence[str] | None, desired_count: int) -> list[str]:
    chunks = [markdown_to_html(segment.strip()) for segment in segments or () if segment and segment.strip()]
    chunks = [chunk for chunk in chunks if chunk]
    return reconcile_segments(chunks, desired_count)


def build_action_html_from_feature(feature: Any) -> str | None:
    """Feature body as HTML, prefixed with the bold feature name."""
    if feature is None:
        return None
    body = markdown_to_html(getattr(feature, "main_body", None) or "")
    if not body:
        return None
    name = sanitize_name(getattr(feature, "name", None) or "")
    if not name:
        return body
    if body.startswith("<p>"):
        return body.replace("<p>", f"<p><strong>{name}:</strong> ", 1)
    return f"<p><strong>{name}:</strong></p>{body}"


def build_segments_for_actions(features: Sequence[Any], markdown: str, desired_count: int) -> list[str]:
    """Default segmentation: per feature, else per paragraph, else whole text."""
    segments = [html for html in (build_action_html_from_feature(f) for f in features or ()) if html]
    if not segments and markdown:
        segments = split_markdown_sections(markdown)
    if not segments and markdown:
        whole = markdown_to_html(markdown)
        segments = [whole] if whole else []
    if not segments:
        return []
    if desired_count <= 0:
        return segments
    if len(segments) < desired_count and markdown:
        fallback = split_markdown_sections(markdown)
        if len(fallback) >= desired_count:
            segments = fallback
    return reconcile_segments(segments, desired_count)


@dataclass
class SplitRequest:
    """Input handed to an entity-specific splitter."""

    markdown: str
    html: str
    desired_count: int
    features: Sequence[Any] = ()
    raw: Any = None


@dataclass(frozen=True)
class ActionSplitter:
    """Entity-specific segmentation returning Markdown segments."""

    split: Callable[[SplitRequest], list[str] | None]
    force_unique: bool = True


def distribute_actions(
    actions: MutableMapping[str, Any],
    previous: MutableMapping[str, Any],
    markdown: str,
    html: str,
    features: Sequence[Any] = (),
    raw: Any = None,
    splitter: ActionSplitter | None = None,
) -> list[str]:
    """Write the segments of ``markdown`` into the described action slots.

    Slots that held the same text before this run share one segment.  The
    text is cut by ``splitter`` when one is given, otherwise per feature or
    paragraph; a single slot takes the whole ``html``.

    Args:
        actions: The entry's actions, updated in place
        previous: Actions of the same entry before this run, used for fingerprints
        markdown: Source text of the whole card
        html: ``markdown`` rendered to HTML
        features: Source features, handed to ``splitter``
        raw: Source entity, handed to ``splitter``
        splitter: Card-specific segmentation, if registered

    Returns:
        Ids of the slots that were written
    """
    slots = described_slots(actions, previous)
    if not slots:
        return []
    order = derive_slot_order(slots, actions, previous, force_unique=bool(splitter and splitter.force_unique))
    desired = len(order.unique_ids)

    segments: list[str] = []
    if splitter is not None:
        custom = splitter.split(
            SplitRequest(markdown=markdown, html=html, desired_count=desired, features=features, raw=raw)
        )
        segments = render_markdown_segments(custom, desired)
    if not segments:
        if desired <= 1:
            if html and desired == 1:
                segments = [html]
        else:
            segments = build_segments_for_actions(features, markdown, desired)
    if not segments and html and desired:
        segments = [html] * desired
    if not segments:
        return []

    written = []
    for index, action_id in enumerate(order.unique_ids):
        segment = segments[index] if index < len(segments) else html
        if segment:
            set_action_html(actions, action_id, segment)
            written.append(action_id)
    for duplicate_id, origin_id in order.duplicates.items():
        copied = get_action_html(actions, origin_id) or html
        if copied:
            set_action_html(actions, duplicate_id, copied)
            written.append(duplicate_id)
    return written
