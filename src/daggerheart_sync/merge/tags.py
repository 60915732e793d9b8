"""
Preservation of hand-authored directives across text refreshes.

Destination HTML may contain markup the data source does not know about:
``@Template[...]`` area templates, ``[[/r ...]]`` inline rolls,
``@UUID[...]{label}`` document links and secret sections.  When a field is
regenerated from source text, ``merge_directives`` carries every such
directive from the previous value into the new one.

Each directive is placed with the first strategy that works:

1. anchored: reinserted after the same block, or inside the same
   ``<strong>``/``<em>`` wrapper
2. text match: bound to the text it decorated in the new HTML
3. appended: added at the end, before any secret section

``@UUID`` links have no appended fallback.  When their label text no longer
appears in the new HTML they are dropped; the drop is reported in the
result so callers can see it.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum

from ..text.normalize import extract_plain_text, fragment_has_question
from .secrets import (
    SECRET_SECTION_RE,
    normalize_secret_sections,
    rewrap_section,
    section_inner,
)

logger = logging.getLogger(__name__)

TEMPLATE_TAG_RE = re.compile(r"@Template\[[^\]]+\]", re.IGNORECASE)
INLINE_ROLL_RE = re.compile(r"\[\[/([a-z]+)\s*([^\]]+)\]\]", re.IGNORECASE)
UUID_TAG_RE = re.compile(r"@UUID\[([^\]]+)\]\{([^}]*)\}", re.IGNORECASE)
DIRECTIVE_RE = re.compile(r"""@[A-Za-z]+\[|\[\[/r|<section[^>]+class=['"]secret""")
PLACED_DIRECTIVE_RE = re.compile(
    r"\[\[/[^\]]*\]\]|@UUID\[[^\]]+\]\{[^}]*\}|@Template\[[^\]]+\]", re.IGNORECASE
)

_BLOCK_RE = re.compile(r"<(?:p|ul|ol)[^>]*>[\s\S]*?</(?:p|ul|ol)>", re.IGNORECASE)
_SECTION_START_RE = re.compile(r"<section\b", re.IGNORECASE)
_TRAILING_EM_PARAGRAPH_RE = re.compile(
    r"(<p[^>]*><em>(?:(?!</p>)[\s\S])*?</em></p>)\s*$", re.IGNORECASE
)
_TRAILING_PARAGRAPH_RE = re.compile(r"(<p[^>]*>(?:(?!</p>)[\s\S])*?</p>)\s*$", re.IGNORECASE)
_OPEN_WRAPPER_RE = {
    "strong": re.compile(r"<strong[^>]*>$", re.IGNORECASE),
    "em": re.compile(r"<em[^>]*>$", re.IGNORECASE),
}
_CLOSE_WRAPPER_RE = {
    "strong": re.compile(r"^</strong>", re.IGNORECASE),
    "em": re.compile(r"^</em>", re.IGNORECASE),
}


class Placement(str, Enum):
    """How a directive ended up in the merged HTML."""

    PRESENT = "present"
    ANCHORED = "anchored"
    TEXT_MATCH = "text_match"
    APPENDED = "appended"
    DROPPED = "dropped"


@dataclass
class DirectivePlacement:
    directive: str
    placement: Placement


@dataclass
class TagMergeResult:
    """Merged HTML plus a record of where each directive went."""

    html: str
    placements: list[DirectivePlacement] = field(default_factory=list)
    kept_previous: bool = False

    def record(self, directive: str, placement: Placement) -> None:
        self.placements.append(DirectivePlacement(directive, placement))

    def directives(self, placement: Placement) -> list[str]:
        return [p.directive for p in self.placements if p.placement is placement]

    @property
    def dropped(self) -> list[str]:
        return self.directives(Placement.DROPPED)


def append_before_secret(html: str, fragments: list[str]) -> str:
    """Append ``fragments`` at the end of the open content.

    If the HTML has a ``<section>``, fragments go right before it so secrets
    stay last.
    """
    if not fragments:
        return html
    block = "".join(fragments)
    section = _SECTION_START_RE.search(html)
    if section is None:
        return html.rstrip() + block
    return f"{html[:section.start()]}{block}{html[section.start():]}"


def find_block_index(html: str, index: int) -> int | None:
    """Index of the last block element that ends at or before ``index``."""
    if not html:
        return None
    position = None
    for current, match in enumerate(_BLOCK_RE.finditer(html)):
        if match.end() > index:
            break
        position = current
    return position


def insert_after_block_index(html: str, block_index: int | None, snippet: str) -> str | None:
    if not html or block_index is None or block_index < 0 or not snippet:
        return None
    for current, match in enumerate(_BLOCK_RE.finditer(html)):
        if current == block_index:
            return f"{html[:match.end()]}{snippet}{html[match.end():]}"
    return None


def _merge_templates(source: str, html: str, outcome: TagMergeResult) -> str:
    pending: list[str] = []
    seen: set[str] = set()
    for match in TEMPLATE_TAG_RE.finditer(source):
        tag = match.group(0)
        if tag in seen:
            continue
        seen.add(tag)
        if tag in html:
            outcome.record(tag, Placement.PRESENT)
            continue
        snippet = f"<p>{tag}</p>"
        anchored = insert_after_block_index(html, find_block_index(source, match.start()), snippet)
        if anchored is not None:
            html = anchored
            outcome.record(tag, Placement.ANCHORED)
        else:
            pending.append(snippet)
            outcome.record(tag, Placement.APPENDED)
    return append_before_secret(html, pending)


def search_outside_directives(pattern: re.Pattern, html: str) -> re.Match | None:
    """First match of ``pattern`` that does not overlap a directive in ``html``.

    Args:
        pattern: Compiled pattern for the text a directive should decorate
        html: HTML that may already contain placed directives

    Returns:
        The match, or None when every occurrence lies inside a directive
    """
    placed = [match.span() for match in PLACED_DIRECTIVE_RE.finditer(html)]
    for match in pattern.finditer(html):
        if not any(start < match.end() and match.start() < end for start, end in placed):
            return match
    return None


def _source_wrappers(source: str, match: re.Match) -> list[str]:
    before = source[:match.start()]
    after = source[match.end():]
    return [
        tag
        for tag in ("strong", "em")
        if _OPEN_WRAPPER_RE[tag].search(before) and _CLOSE_WRAPPER_RE[tag].search(after)
    ]


def _merge_inline_rolls(source: str, html: str, outcome: TagMergeResult) -> str:
    appended: list[str] = []
    for match in INLINE_ROLL_RE.finditer(source):
        full = match.group(0)
        expression = (match.group(2) or "").strip()
        if not expression:
            continue
        if full in html:
            outcome.record(full, Placement.PRESENT)
            continue

        escaped = re.escape(expression)
        placed = False
        for tag in _source_wrappers(source, match):
            wrapper = re.compile(rf"(<{tag}[^>]*>)\s*{escaped}\s*(</{tag}>)", re.IGNORECASE)
            found = search_outside_directives(wrapper, html)
            if found is not None:
                html = f"{html[:found.start()]}{found.group(1)}{full}{found.group(2)}{html[found.end():]}"
                outcome.record(full, Placement.ANCHORED)
                placed = True
                break
        if placed:
            continue

        found = search_outside_directives(re.compile(escaped, re.IGNORECASE), html)
        if found is not None:
            html = f"{html[:found.start()]}{full}{html[found.end():]}"
            outcome.record(full, Placement.TEXT_MATCH)
            continue

        snippet = f"<p>{full}</p>"
        if snippet not in appended:
            appended.append(snippet)
            outcome.record(full, Placement.APPENDED)
    return append_before_secret(html, appended)


def _merge_links(source: str, html: str, outcome: TagMergeResult) -> str:
    for match in UUID_TAG_RE.finditer(source):
        full = match.group(0)
        path = match.group(1)
        label = (match.group(2) or "").strip()
        if not path or not label:
            continue
        if full in html:
            outcome.record(full, Placement.PRESENT)
            continue
        found = search_outside_directives(re.compile(re.escape(label)), html)
        if found is not None:
            html = f"{html[:found.start()]}@UUID[{path}]{{{label}}}{html[found.end():]}"
            outcome.record(full, Placement.TEXT_MATCH)
        else:
            logger.debug(f"Dropping link {full}: label text no longer present")
            outcome.record(full, Placement.DROPPED)
    return html


def _wrap_trailing_question(block: str, html: str) -> str | None:
    for pattern in (_TRAILING_EM_PARAGRAPH_RE, _TRAILING_PARAGRAPH_RE):
        match = pattern.search(html)
        if match and fragment_has_question(match.group(1)):
            return html[:match.start()] + rewrap_section(block, match.group(1))
    return None


def _merge_secrets(source: str, html: str, outcome: TagMergeResult) -> str:
    appended: list[str] = []
    seen: set[str] = set()
    for match in SECRET_SECTION_RE.finditer(source):
        block = match.group(0).strip()
        if not block or block in seen:
            continue
        seen.add(block)
        if block in html:
            outcome.record(block, Placement.PRESENT)
            continue

        inner = section_inner(block)
        if inner and inner in html:
            index = html.index(inner)
            html = html[:index] + rewrap_section(block, inner) + html[index + len(inner):]
            outcome.record(block, Placement.TEXT_MATCH)
            continue

        if fragment_has_question(inner):
            wrapped = _wrap_trailing_question(block, html)
            if wrapped is not None:
                html = wrapped
                outcome.record(block, Placement.ANCHORED)
                continue

        appended.append(block)
        outcome.record(block, Placement.APPENDED)
    if appended:
        html = html.rstrip() + "".join(appended)
    return html


def merge_directives(old_html: str | None, new_html: str | None) -> TagMergeResult:
    """Carry directives from ``old_html`` into ``new_html``.

    Args:
        old_html: Current destination value, the source of directives
        new_html: Freshly rendered HTML

    Returns:
        The merged HTML and where each directive went.  When both texts
        read the same and no directive could be carried, ``html`` is
        ``old_html`` unchanged and ``kept_previous`` is set.
    """
    if not new_html:
        return TagMergeResult(html=new_html or "")
    source = old_html or ""
    outcome = TagMergeResult(html=new_html)

    html = _merge_templates(source, new_html, outcome)
    html = _merge_inline_rolls(source, html, outcome)
    html = _merge_links(source, html, outcome)
    html = _merge_secrets(source, html, outcome)

    if source:
        plain_source = extract_plain_text(source)
        if plain_source and plain_source == extract_plain_text(html):
            if DIRECTIVE_RE.search(source) and not DIRECTIVE_RE.search(html):
                outcome.html = source
                outcome.kept_previous = True
                return outcome

    outcome.html = normalize_secret_sections(html)
    return outcome

