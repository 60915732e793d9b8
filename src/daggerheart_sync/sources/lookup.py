"""
Builders that pair translated and original entities into lookup maps.

Every map is keyed by the normalized English name, which is also what the
destination files are keyed by.  Builders are pure: they read datasets and
return new dictionaries.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Callable, Iterable, Sequence

from ..text.markdown import markdown_to_html
from ..text.normalize import normalize_key, sanitize_html, sanitize_name, strip_links, unwrap_single_paragraph
from .models import (
    BilingualDataset,
    LookupEntry,
    SourceEntity,
    SourceFeature,
    TransformationLookup,
)

logger = logging.getLogger(__name__)

MainFieldProcessor = Callable[[str, SourceEntity], str]
DescriptionBuilder = Callable[[SourceEntity, SourceEntity], "str | None"]

_PARAGRAPH_BREAK_RE = re.compile(r"\n\s*\n+")
_MD_IMAGE_RE = re.compile(r"!\[[^\]]*\]\([^)]*\)")
_HTML_IMAGE_RE = re.compile(r"<img[^>]*>", re.IGNORECASE)
_TRAILING_IMAGE_RE = re.compile(r"\n!\[[^\]]*\]\([^)]*\)|\n<img[^>]*>", re.IGNORECASE)
_LEADING_ARTICLE_RE = re.compile(r"^(?:an?\s+)", re.IGNORECASE)
_LABELLED_GROUP_RE = re.compile(r"([^,()]+)\([^)]*\)")


def normalise_text(text: str | None) -> str:
    if not text:
        return ""
    return text.replace("\r\n", "\n").strip()


def _paragraphs(text: str) -> list[str]:
    return [chunk.strip() for chunk in _PARAGRAPH_BREAK_RE.split(text) if chunk.strip()]


def prepare_community_main_body(value: str, entity: SourceEntity) -> str:
    """First paragraph of a community text, plus the next one if it is italic flavour."""
    if not value:
        return value
    cleaned = _HTML_IMAGE_RE.sub("", _MD_IMAGE_RE.sub("", value))
    chunks = _paragraphs(cleaned)[:2]
    if not chunks:
        return ""
    selected = [chunks[0]]
    if len(chunks) > 1 and chunks[1].startswith("*"):
        selected.append(chunks[1])
    return "\n\n".join(selected)


def prepare_ancestry_main_body(value: str, entity: SourceEntity) -> str:
    """Up to two paragraphs of an ancestry text, cut at the first image."""
    if not value:
        return value
    image = _TRAILING_IMAGE_RE.search(value)
    truncated = value[:image.start()] if image else value
    paragraphs = _paragraphs(truncated.replace("\r\n", "\n"))[:2]
    if not paragraphs:
        return entity.short_description.strip()
    return "\n\n".join(paragraphs)


def build_top_level_map(
    dataset: BilingualDataset,
    description_fields: Sequence[str],
    main_field: str | None = None,
    process_main_field: MainFieldProcessor | None = None,
) -> dict[str, LookupEntry]:
    """Pair entities by slug (or id) and render their translated description.

    Args:
        dataset: Translated and original entities of one endpoint
        description_fields: Fields joined, in order, with blank lines
        main_field: Optional long-text field appended after them
        process_main_field: Preprocessor applied to ``main_field`` in both languages

    Returns:
        Entries keyed by normalized English name.  ``description`` is None
        when the translation is identical to the original text.
    """
    target_by_id = dataset.target_by_identifier()
    result: dict[str, LookupEntry] = {}

    for original in dataset.source:
        identifier = original.identifier
        translated = target_by_id.get(identifier) if identifier else None
        key = normalize_key(original.name)
        if translated is None or key is None:
            continue

        translated_parts = [translated.text(name).strip() for name in description_fields]
        original_parts = [original.text(name).strip() for name in description_fields]
        if main_field:
            translated_main = translated.text(main_field)
            original_main = original.text(main_field)
            if process_main_field:
                translated_main = process_main_field(translated_main, translated)
                original_main = process_main_field(original_main, original)
            translated_parts.append((translated_main or "").strip())
            original_parts.append((original_main or "").strip())

        text_target = "\n\n".join(part for part in translated_parts if part)
        text_source = "\n\n".join(part for part in original_parts if part)
        same_text = bool(text_target and text_source) and normalise_text(text_target) == normalise_text(text_source)
        description = markdown_to_html(text_target) if text_target and not same_text else None

        result[key] = LookupEntry(
            name=sanitize_name(translated.name or original.name) or "",
            description=description,
            raw=translated,
        )
    return result


@dataclass(frozen=True)
class FeatureConflict:
    """Two entities translate a same-named feature differently."""

    name: str
    scope: str


def build_feature_map(
    dataset: BilingualDataset,
    fields: Sequence[str],
    scope: str,
) -> tuple[dict[str, LookupEntry], list[FeatureConflict]]:
    """Map feature names to translations, matching features by id.

    Features whose name and body are both untranslated are skipped.  When a
    name repeats, the first mapping wins and differing texts are reported
    as conflicts.
    """
    target_by_id = dataset.target_by_identifier()
    features: dict[str, LookupEntry] = {}
    conflicts: list[FeatureConflict] = []

    for original in dataset.source:
        translated = target_by_id.get(original.identifier) if original.identifier else None
        if translated is None:
            continue
        for field_name in fields:
            translated_by_id = {
                feature.id: feature for feature in translated.feature_group(field_name) if feature.id is not None
            }
            for feature in original.feature_group(field_name):
                if feature.id is None:
                    continue
                counterpart = translated_by_id.get(feature.id)
                key = normalize_key(feature.name)
                if counterpart is None or key is None:
                    continue

                name = sanitize_name(counterpart.name or feature.name) or ""
                body_target = normalise_text(counterpart.main_body)
                body_source = normalise_text(feature.main_body)
                same_name = not name or name == feature.name
                same_body = bool(body_target) and bool(body_source) and body_target == body_source
                if same_name and same_body:
                    continue

                candidate = LookupEntry(
                    name=name or feature.name,
                    description=None if same_body else markdown_to_html(counterpart.main_body),
                    raw=counterpart,
                )
                existing = features.get(key)
                if existing is not None:
                    if candidate.description and existing.description and candidate.description != existing.description:
                        conflicts.append(FeatureConflict(name=feature.name, scope=scope))
                    continue
                features[key] = candidate
    return features, conflicts


def build_transformation_map(dataset: BilingualDataset) -> dict[str, TransformationLookup]:
    """Entries keyed by ``"<transformation> - <feature>"``."""
    target_by_id = dataset.target_by_identifier()
    entries: dict[str, TransformationLookup] = {}
    for original in dataset.source:
        translated = target_by_id.get(original.identifier) if original.identifier else None
        if translated is None:
            continue
        translated_features = {f.id: f for f in translated.features if f.id is not None}
        base_name = sanitize_name(translated.name or original.name) or ""
        for feature in original.features:
            counterpart = translated_features.get(feature.id) if feature.id is not None else None
            if counterpart is None:
                continue
            key = normalize_key(f"{original.name} - {feature.name}".strip())
            if not key:
                continue
            feature_name = sanitize_name(counterpart.name or feature.name) or ""
            entries[key] = TransformationLookup(
                name=f"{base_name} - {feature_name}" if feature_name else base_name,
                short_description=translated.short_description,
                feature_name=feature_name,
                feature_body=counterpart.main_body,
            )
    return entries


def build_class_items_map(dataset: BilingualDataset) -> dict[str, str]:
    """Starting class items paired by position, also keyed without a leading article."""
    target_by_slug = {entity.slug: entity for entity in dataset.target if entity.slug}
    items: dict[str, str] = {}
    for original in dataset.source:
        translated = target_by_slug.get(original.slug) if original.slug else None
        if translated is None:
            continue
        for english, russian in zip(original.class_items, translated.class_items):
            name = sanitize_name(russian) or ""
            key = normalize_key(english)
            if key:
                items[key] = name
            bare_key = normalize_key(_LEADING_ARTICLE_RE.sub("", english))
            if bare_key and bare_key != key:
                items[bare_key] = name
    return items


def parse_potential_label_list(text: str | None, other_label: str) -> list[str]:
    """Group labels of a "potential adversaries" text.

    ``"Beasts (Bear, Wolf), Outlaws (Bandit)"`` gives ``["Beasts", "Outlaws"]``;
    names outside any group add ``other_label`` once at the end.
    """
    if not text:
        return []
    cleaned = strip_links(text)
    labels: list[str] = []
    for match in _LABELLED_GROUP_RE.finditer(cleaned):
        label = sanitize_name(re.sub(r"[:：]+$", "", match.group(1).strip()))
        if label and label not in labels:
            labels.append(label)
    remainder = re.sub(r"[,.\s]+", " ", _LABELLED_GROUP_RE.sub("", cleaned)).strip()
    if remainder:
        labels.append(other_label)
    return labels


def build_potential_labels(entities: Iterable[SourceEntity], other_label: str) -> dict[str, list[str]]:
    labels = {}
    for entity in entities:
        if not entity.slug:
            continue
        parsed = parse_potential_label_list(entity.potential_adversaries, other_label)
        if parsed:
            labels[entity.slug] = parsed
    return labels


def build_feature_description(features: Sequence[SourceFeature]) -> str | None:
    """Summary HTML: one ``<strong>Name</strong>: body`` paragraph per feature."""
    chunks = []
    for feature in features or ():
        title = sanitize_name(feature.name) or ""
        body = sanitize_html(markdown_to_html(feature.main_body)) or ""
        inner = unwrap_single_paragraph(body)
        if title and inner:
            chunks.append(f"<p><strong>{title}</strong>: {inner}</p>")
        elif title:
            chunks.append(f"<p><strong>{title}</strong></p>")
        elif body:
            chunks.append(body)
    return "".join(chunks) or None


def default_equipment_description(translated: SourceEntity, original: SourceEntity) -> str | None:
    body_target = normalise_text(translated.main_body)
    body_source = normalise_text(original.main_body)
    if body_target and (not body_source or body_target != body_source):
        return markdown_to_html(translated.main_body)
    return None


def armor_description(translated: SourceEntity, original: SourceEntity) -> str | None:
    return build_feature_description(translated.features)


def weapon_description(translated: SourceEntity, original: SourceEntity) -> str | None:
    described = build_feature_description(translated.features)
    if original.type_slug == "combat-wheelchair":
        return described or default_equipment_description(translated, original)
    return described


def build_equipment_map(
    dataset: BilingualDataset,
    type_slugs: Iterable[str],
    describe: DescriptionBuilder = default_equipment_description,
) -> dict[str, LookupEntry]:
    """Equipment of the given types, keyed by normalized English name."""
    wanted = set(type_slugs)
    target_by_slug = {entity.slug: entity for entity in dataset.target if entity.slug}
    equipment: dict[str, LookupEntry] = {}
    for original in dataset.source:
        if original.type_slug not in wanted:
            continue
        translated = target_by_slug.get(original.slug) if original.slug else None
        key = normalize_key(original.name)
        if translated is None or key is None:
            continue
        description = describe(translated, original)
        equipment[key] = LookupEntry(
            name=sanitize_name(translated.name or original.name) or "",
            description=sanitize_html(description) if description else None,
            raw=translated,
        )
    return equipment


def log_conflicts(conflicts: Sequence[FeatureConflict]) -> None:
    if not conflicts:
        return
    logger.info("Conflicting feature translations detected:")
    for conflict in conflicts:
        logger.info(f" - {conflict.name}: {conflict.scope}")
