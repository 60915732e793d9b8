"""
Updater for transformation files.
"""

import re
from typing import Any

from ..merge.actions import translate_action_names
from ..merge.fields import set_html_field
from ..overrides.models import resolve_alias
from ..sources.models import TransformationLookup
from ..storage import EntryUpdater
from ..text.markdown import markdown_to_html
from ..text.normalize import sanitize_name
from .base import SyncContext, apply_action_overrides

# A whole paragraph holding a document link
_UUID_PARAGRAPH_RE = re.compile(
    r"<p[^>]*>(?:(?!</p>)[\s\S])*?@UUID\[[^\]]+\](?:(?!</p>)[\s\S])*?</p>",
    re.IGNORECASE,
)


def render_transformation_description(info: TransformationLookup) -> str:
    sections = []
    short_html = markdown_to_html(info.short_description)
    if short_html:
        sections.append(short_html)
    body = info.feature_body.strip()
    if body:
        feature_html = markdown_to_html(f"{info.feature_name}: {body}" if info.feature_name else body)
        if feature_html:
            sections.append(feature_html)
    return "".join(sections)


def append_uuid_paragraphs(html: str, previous_html: Any) -> str:
    """Carry over paragraphs of ``previous_html`` that link other documents."""
    if not isinstance(previous_html, str):
        return html
    result = html or ""
    for fragment in _UUID_PARAGRAPH_RE.findall(previous_html):
        if fragment not in result:
            result = f"{result}{fragment}"
    return result


def make_transformations_updater(ctx: SyncContext) -> EntryUpdater:
    overrides = ctx.overrides

    def update(norm: str | None, entry: dict[str, Any], key: str) -> bool:
        if not norm:
            return False
        info = ctx.transformations.get(resolve_alias(norm, overrides.aliases.transformation))
        if info is None:
            return False

        if info.name:
            entry["name"] = sanitize_name(info.name)
        description = append_uuid_paragraphs(render_transformation_description(info), entry.get("description"))
        if description:
            set_html_field(entry, "description", description)
        else:
            entry.pop("description", None)

        actions = entry.get("actions")
        if isinstance(actions, dict):
            translate_action_names(actions, dict(overrides.transformation_action_names))
        apply_action_overrides(entry, overrides)
        return True

    return update
