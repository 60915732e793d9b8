"""Text normalization and Markdown rendering."""

from .markdown import markdown_to_html
from .normalize import (
    collapse_adjacent_inline_tags,
    extract_plain_text,
    extract_visible_text,
    fragment_has_question,
    has_visible_text,
    normalize_key,
    sanitize_html,
    sanitize_name,
    strip_links,
    unwrap_single_paragraph,
)

__all__ = [
    "markdown_to_html",
    "collapse_adjacent_inline_tags",
    "extract_plain_text",
    "extract_visible_text",
    "fragment_has_question",
    "has_visible_text",
    "normalize_key",
    "sanitize_html",
    "sanitize_name",
    "strip_links",
    "unwrap_single_paragraph",
]
