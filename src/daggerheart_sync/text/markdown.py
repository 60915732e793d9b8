"""
Minimal Markdown to HTML renderer for the data source's text fields.

Only the subset used by the source is supported: paragraphs, ``-``/``*``
bullet lists, ``>`` blockquotes and ``*``/``**``/``***`` emphasis.  The input
is tokenized line by line into a small block tree which is then rendered,
so list and quote closing order is fixed by the tree shape rather than by
state flags.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Union

from .normalize import collapse_adjacent_inline_tags, strip_links

__all__ = ["Paragraph", "BulletList", "Quote", "parse_blocks", "render_blocks", "markdown_to_html"]

_HTML_TAG_RE = re.compile(r"<[a-z][\s>]", re.IGNORECASE)
_BULLET_RE = re.compile(r"^[-*]\s+")
_QUOTE_RE = re.compile(r"^>\s*")

_STRONG_EM_RE = re.compile(r"\*\*\*(.+?)\*\*\*")
_STRONG_RE = re.compile(r"\*\*(.+?)\*\*")
_EM_RE = re.compile(r"\*(.+?)\*")


@dataclass
class Paragraph:
    text: str


@dataclass
class BulletList:
    items: list[str] = field(default_factory=list)


@dataclass
class Quote:
    children: list[Union[Paragraph, BulletList]] = field(default_factory=list)


Block = Union[Paragraph, BulletList, Quote]


def render_inline(text: str) -> str:
    """Convert emphasis markers within a single line."""
    text = _STRONG_EM_RE.sub(r"<strong><em>\1</em></strong>", text)
    text = _STRONG_RE.sub(r"<strong>\1</strong>", text)
    return _EM_RE.sub(r"<em>\1</em>", text)


def parse_blocks(text: str) -> list[Block]:
    """Tokenize Markdown into top-level blocks.

    Every non-empty line outside a list is its own paragraph.  A blank line
    (or an empty ``>`` line) ends the open list and the open quote.
    """
    blocks: list[Block] = []
    quote: Quote | None = None
    bullets: BulletList | None = None

    for raw_line in text.split("\n"):
        line = raw_line.strip()
        is_quote = line.startswith(">")
        if is_quote:
            line = _QUOTE_RE.sub("", line, count=1)
        if not line:
            bullets = None
            quote = None
            continue

        if is_quote and quote is None:
            quote = Quote()
            bullets = None
            blocks.append(quote)
        elif not is_quote and quote is not None:
            quote = None
            bullets = None

        container = quote.children if quote is not None else blocks
        bullet = _BULLET_RE.match(line)
        if bullet:
            if bullets is None:
                bullets = BulletList()
                container.append(bullets)
            bullets.items.append(line[bullet.end():])
        else:
            bullets = None
            container.append(Paragraph(line))
    return blocks


def _render_block(block: Block) -> str:
    if isinstance(block, Paragraph):
        return f"<p>{render_inline(block.text)}</p>"
    if isinstance(block, BulletList):
        items = "".join(f"<li>{render_inline(item)}</li>" for item in block.items)
        return f"<ul>{items}</ul>"
    inner = "".join(_render_block(child) for child in block.children)
    return f"<blockquote>{inner}</blockquote>"


def render_blocks(blocks: list[Block]) -> str:
    return "".join(_render_block(block) for block in blocks)


def markdown_to_html(text: str | None) -> str:
    """Render a source text field as sanitized HTML.

    Text that already contains HTML tags is passed through with link markup
    removed.  Empty input yields an empty string.
    """
    if not text:
        return ""
    prepared = text.replace("\r\n", "\n").strip()
    if not prepared:
        return ""
    if _HTML_TAG_RE.search(prepared):
        return strip_links(prepared)
    html = render_blocks(parse_blocks(prepared))
    html = collapse_adjacent_inline_tags(html, "em")
    return strip_links(html)
