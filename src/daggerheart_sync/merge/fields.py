"""
Writing HTML into destination entries.
"""

from __future__ import annotations

import re
from typing import Any, Literal, MutableMapping

from ..text.normalize import (
    collapse_adjacent_inline_tags,
    extract_plain_text,
    has_visible_text,
    sanitize_html,
)
from .tags import merge_directives

_LINK_MARKUP_RE = re.compile(r"<a[\s>]|\[[^\]]+\]\([^)]+\)", re.IGNORECASE)


def merge_html(existing_raw: str, html: str) -> str:
    """Sanitize ``html`` and merge the directives of ``existing_raw`` into it.

    A merge that falls back to ``existing_raw`` returns it untouched.
    """
    sanitized = sanitize_html(html)
    if not sanitized:
        return ""
    result = merge_directives(existing_raw, sanitized)
    if result.kept_previous:
        return result.html
    merged = collapse_adjacent_inline_tags(result.html, "em")
    return collapse_adjacent_inline_tags(merged, "strong")


def set_html_field(target: MutableMapping[str, Any], key: str, html: str | None) -> None:
    """Store ``html`` under ``target[key]`` without losing hand-made markup.

    ``None``, empty or invisible content removes the key.  If the merged
    result reads the same as the current value, the current value is kept
    byte for byte (or its sanitized form when it still carries link markup),
    so rerunning the sync over its own output changes nothing.
    """
    if target is None:
        return
    if html is None:
        target.pop(key, None)
        return
    if not sanitize_html(html):
        target.pop(key, None)
        return

    current = target.get(key)
    existing_raw = current if isinstance(current, str) else ""
    merged = merge_html(existing_raw, html)
    if not has_visible_text(merged):
        target.pop(key, None)
        return

    if existing_raw:
        existing_sanitized = sanitize_html(existing_raw) or ""
        existing_plain = extract_plain_text(existing_sanitized or existing_raw)
        if existing_plain and existing_plain == extract_plain_text(merged):
            has_links = bool(_LINK_MARKUP_RE.search(existing_raw))
            if has_links and existing_sanitized and existing_sanitized != existing_raw:
                target[key] = existing_sanitized
            else:
                target[key] = existing_raw
            return

    target[key] = merged


def ensure_html_fragment(html: str | None, fragment: str | None, position: Literal["prefix", "suffix"]) -> str:
    """Add ``fragment`` to ``html`` unless its text is already there."""
    base = html or ""
    if not fragment or fragment in base:
        return base
    fragment_plain = extract_plain_text(fragment)
    base_plain = extract_plain_text(base)
    if fragment_plain and base_plain and fragment_plain in base_plain:
        return base
    return f"{fragment}{base}" if position == "prefix" else f"{base}{fragment}"
