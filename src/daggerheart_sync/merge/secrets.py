"""
Helpers for GM-only ``<section class="secret">`` blocks.

Secret sections exist only in the destination files; the data source never
produces them.  These helpers keep them attached to the right content when
the surrounding text is regenerated.
"""

from __future__ import annotations

import re

from ..text.normalize import extract_visible_text, fragment_has_question

SECRET_SECTION_RE = re.compile(
    r"""<section\b[^>]*class=['"][^'"]*\bsecret\b[^'"]*['"][^>]*>[\s\S]*?</section>""",
    re.IGNORECASE,
)
SECRET_SECTION_PARTS_RE = re.compile(
    r"""(<section\b[^>]*class=['"][^'"]*\bsecret\b[^'"]*['"][^>]*>)([\s\S]*?)(</section>)""",
    re.IGNORECASE,
)
_SECTION_INNER_RE = re.compile(r"^<section[^>]*>([\s\S]*?)</section>$", re.IGNORECASE)
_SECTION_OPEN_RE = re.compile(r"^<section[^>]*>", re.IGNORECASE)
_SECTION_ID_RE = re.compile(r"""\bid=['"]([^'"]+)['"]""", re.IGNORECASE)
_PARAGRAPH_RE = re.compile(r"<p[^>]*>[\s\S]*?</p>", re.IGNORECASE)

_PLACEHOLDER = "__SECRET_BLOCK_{}__"


def section_inner(block: str) -> str:
    """Trimmed content of a ``<section>`` block."""
    match = _SECTION_INNER_RE.match(block)
    return match.group(1).strip() if match else ""


def rewrap_section(block: str, inner: str) -> str:
    """Return ``block`` with its content replaced by ``inner``."""
    match = _SECTION_OPEN_RE.match(block)
    opening = match.group(0) if match else "<section>"
    return f"{opening}{inner}</section>"


def extract_secret_texts(html: str | None) -> list[str]:
    if not html:
        return []
    texts = []
    for match in SECRET_SECTION_RE.finditer(html):
        text = extract_visible_text(section_inner(match.group(0)))
        if text:
            texts.append(text)
    return texts


def remove_plain_text_outside_secrets(html: str, plain_text: str) -> tuple[str, bool]:
    """Remove the first occurrence of ``plain_text`` that lies outside any secret.

    Returns the new HTML and whether anything was removed.
    """
    if not html or not plain_text:
        return html, False
    sections: list[str] = []

    def hide(match: re.Match) -> str:
        sections.append(match.group(0))
        return _PLACEHOLDER.format(len(sections) - 1)

    masked = SECRET_SECTION_RE.sub(hide, html)
    if plain_text not in masked:
        return html, False
    masked = masked.replace(plain_text, "", 1)
    for index, section in enumerate(sections):
        masked = masked.replace(_PLACEHOLDER.format(index), section, 1)
    return masked, True


def dedupe_secret_content(html: str | None) -> str | None:
    """Drop visible copies of text that is also kept inside a secret."""
    if not html:
        return html
    result = html
    for match in list(SECRET_SECTION_RE.finditer(html)):
        inner = section_inner(match.group(0))
        plain = extract_visible_text(inner) if inner else ""
        if plain:
            result, _ = remove_plain_text_outside_secrets(result, plain)
    return result


def normalize_secret_sections(html: str | None) -> str | None:
    """Move leading non-question paragraphs out of a secret section.

    When the first question paragraph inside a secret is preceded by other
    content, the section is reopened right before that paragraph so that
    only the question stays hidden.
    """
    if not html:
        return html

    def reanchor(match: re.Match) -> str:
        opening, inner, closing = match.groups()
        paragraphs = list(_PARAGRAPH_RE.finditer(inner))
        question_index = next(
            (i for i, p in enumerate(paragraphs) if fragment_has_question(p.group(0))),
            -1,
        )
        if question_index <= 0:
            return match.group(0)
        anchor = paragraphs[question_index].start()
        before = inner[:anchor]
        if anchor <= 0 or not before.strip():
            return match.group(0)
        return f"{before}{opening}{inner[anchor:]}{closing}"

    return SECRET_SECTION_PARTS_RE.sub(reanchor, html)


def preserve_secret_sections_from_source(new_html: str | None, old_html: str | None) -> str | None:
    """Carry secret sections of ``old_html`` into freshly rendered ``new_html``.

    A section whose ``id`` matches one already present replaces it.  Any other
    section is appended, after its visible text has been removed from the
    open part of the new HTML.
    """
    if not new_html or not old_html:
        return new_html
    result = new_html
    pending: list[str] = []
    for match in SECRET_SECTION_RE.finditer(old_html):
        block = match.group(0).strip()
        if not block or block in result:
            continue
        id_match = _SECTION_ID_RE.search(block)
        if id_match:
            by_id = re.compile(
                rf"""<section\b[^>]*id=['"]{re.escape(id_match.group(1))}['"][^>]*>[\s\S]*?</section>""",
                re.IGNORECASE,
            )
            if by_id.search(result):
                result = by_id.sub(lambda _m: block, result, count=1)
                continue
        inner = section_inner(block)
        if inner:
            if inner in result:
                result = result.replace(inner, "", 1)
            else:
                plain = extract_visible_text(inner)
                if plain:
                    result, _ = remove_plain_text_outside_secrets(result, plain)
        pending.append(block)
    if pending:
        result = result.rstrip() + "".join(pending)
    return result
