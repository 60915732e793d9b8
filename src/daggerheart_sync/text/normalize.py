"""
Key normalization and HTML sanitizing helpers.

These are the building blocks every merge step relies on: a normalized key
to match entities across languages and two kinds of text fingerprints used
to decide whether two HTML fragments say the same thing.
"""

from __future__ import annotations

import re

__all__ = [
    "normalize_key",
    "strip_links",
    "collapse_adjacent_inline_tags",
    "sanitize_html",
    "sanitize_name",
    "extract_plain_text",
    "extract_visible_text",
    "has_visible_text",
    "fragment_has_question",
    "unwrap_single_paragraph",
]

_SINGLE_QUOTES_RE = re.compile(r"[’‘ʼ`]")
_DOUBLE_QUOTES_RE = re.compile(r"[“”]")
_WHITESPACE_RE = re.compile(r"\s+")
_NON_KEY_CHARS_RE = re.compile(r"[^a-z0-9]+")

_HASH_PLACEHOLDER_RE = re.compile(r"#\{([^}]+)\}#")
_HTML_LINK_RE = re.compile(r"<a\s+[^>]*>(.*?)</a>", re.IGNORECASE | re.DOTALL)
_MARKDOWN_LINK_RE = re.compile(r"\[([^\]]+)\]\([^)]+\)")
_CLASS_ATTR_RE = re.compile(r'\sclass="[^"]*"', re.IGNORECASE)
_OPENING_TAG_RE = re.compile(r"<([a-z][a-z0-9]*)\b[^>]*>", re.IGNORECASE)
_SPACE_BEFORE_PUNCT_RE = re.compile(r"[ \t]+([,.;:!?])")
_REPEATED_SPACES_RE = re.compile(r"[ \t]{2,}")

_TAG_RE = re.compile(r"<[^>]+>")
_NBSP_RE = re.compile(r"&nbsp;", re.IGNORECASE)
_SINGLE_PARAGRAPH_RE = re.compile(r"^<p>(.*)</p>$", re.DOTALL)

_OPENING_BRACKETS = "([{«"
_CLOSING_PUNCTUATION = ")]},.:;!?"


def normalize_key(text: str | None) -> str | None:
    """Reduce a display name to a language-neutral lookup key.

    Quote variants are unified, whitespace collapsed, the text lowercased and
    everything outside ``[a-z0-9]`` removed.  Returns None when nothing is
    left, so names written purely in another script never produce a key.
    """
    if not text:
        return None
    cleaned = _SINGLE_QUOTES_RE.sub("'", text)
    cleaned = _DOUBLE_QUOTES_RE.sub('"', cleaned)
    cleaned = _WHITESPACE_RE.sub(" ", cleaned).strip().lower()
    key = _NON_KEY_CHARS_RE.sub("", cleaned)
    return key or None


def _drop_class_attribute(match: re.Match) -> str:
    # Secret sections are recognized by their class.
    if match.group(1).lower() == "section":
        return match.group(0)
    return _CLASS_ATTR_RE.sub("", match.group(0))


def strip_links(text: str | None) -> str:
    """Remove link markup while keeping link text."""
    if not text:
        return ""
    result = _HASH_PLACEHOLDER_RE.sub(r"\1", text)
    result = result.replace("#{", "")
    # Links may be nested; unwrap until nothing is left.
    while True:
        unwrapped = _HTML_LINK_RE.sub(r"\1", result)
        if unwrapped == result:
            break
        result = unwrapped
    result = _MARKDOWN_LINK_RE.sub(r"\1", result)
    result = _OPENING_TAG_RE.sub(_drop_class_attribute, result)
    result = _SPACE_BEFORE_PUNCT_RE.sub(r"\1", result)
    result = _REPEATED_SPACES_RE.sub(" ", result)
    return result


def collapse_adjacent_inline_tags(html: str | None, tag: str) -> str:
    """Merge runs like ``<em>a</em> <em>b</em>`` into ``<em>a b</em>``.

    A non-breaking space between the runs is kept as ``&nbsp;``.  No space is
    inserted when either side is empty, the left side ends with an opening
    bracket or the right side starts with closing punctuation.
    """
    if not html:
        return html or ""
    pattern = re.compile(
        rf"<{tag}([^>]*)>([^<]*)</{tag}>((?:\s|&nbsp;)+)<{tag}([^>]*)>([^<]*)</{tag}>",
        re.IGNORECASE,
    )

    def join(match: re.Match) -> str:
        attrs_left, left, gap, attrs_right, right = match.groups()
        left = left.rstrip()
        right = right.lstrip()
        if "&nbsp;" in gap.lower():
            spacer = "&nbsp;"
        elif not left or not right or left[-1] in _OPENING_BRACKETS or right[0] in _CLOSING_PUNCTUATION:
            spacer = ""
        else:
            spacer = " "
        attrs = attrs_left or attrs_right or ""
        return f"<{tag}{attrs}>{left}{spacer}{right}</{tag}>"

    result = html
    while True:
        collapsed = pattern.sub(join, result)
        if collapsed == result:
            return result
        result = collapsed


def sanitize_html(text: str | None) -> str | None:
    """Strip links and tidy inline emphasis of an HTML fragment."""
    if text is None:
        return None
    cleaned = strip_links(text)
    cleaned = collapse_adjacent_inline_tags(cleaned, "em")
    cleaned = collapse_adjacent_inline_tags(cleaned, "strong")
    return cleaned.strip()


def sanitize_name(text: str | None) -> str | None:
    if text is None:
        return None
    return strip_links(text).strip()


def extract_plain_text(html: str | None) -> str:
    """Comparison fingerprint: tags dropped, whitespace removed, lowercased."""
    if not html:
        return ""
    return _WHITESPACE_RE.sub("", _TAG_RE.sub(" ", html)).lower()


def extract_visible_text(html: str | None) -> str:
    """Readable text of a fragment with whitespace collapsed."""
    if not html:
        return ""
    text = _TAG_RE.sub(" ", strip_links(html))
    text = _NBSP_RE.sub(" ", text)
    return _WHITESPACE_RE.sub(" ", text).strip()


def has_visible_text(html: str | None) -> bool:
    if not html:
        return False
    text = _NBSP_RE.sub(" ", _TAG_RE.sub("", html))
    return bool(text.strip())


def fragment_has_question(html: str | None) -> bool:
    if not html:
        return False
    return "?" in _TAG_RE.sub(" ", html)


def unwrap_single_paragraph(html: str | None) -> str:
    """Return the inner HTML of a lone ``<p>`` or the input unchanged."""
    if not html:
        return ""
    trimmed = html.strip()
    match = _SINGLE_PARAGRAPH_RE.match(trimmed)
    if match and "<p" not in match.group(1).lower():
        return match.group(1)
    return trimmed
