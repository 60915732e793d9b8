"""
Pydantic models for the data source's JSON payloads and derived lookups.

Only the fields the pipeline reads are declared; everything else the API
sends is kept as extra data.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SourceFeature(BaseModel):
    """A named rules feature nested in an entity."""

    model_config = ConfigDict(extra="allow")

    id: int | str | None = Field(default=None, description="Feature id, shared across languages")
    name: str = Field(default="", description="Feature name")
    main_body: str = Field(default="", description="Feature text in Markdown or HTML")

    @field_validator("name", "main_body", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value


_FEATURE_FIELDS = ("features", "foundation_features", "specialization_features", "mastery_features")
_TEXT_FIELDS = (
    "name",
    "description",
    "short_description",
    "main_body",
    "motives",
    "weapon_name",
    "experiences",
    "impulses",
    "advantages",
    "examples",
    "potential_adversaries",
    "type_slug",
)


class SourceEntity(BaseModel):
    """One entity of a data source endpoint in one language."""

    model_config = ConfigDict(extra="allow")

    id: int | str | None = None
    slug: str | None = None
    name: str = ""
    description: str = ""
    short_description: str = ""
    main_body: str = ""
    type_slug: str = ""

    features: list[SourceFeature] = Field(default_factory=list)
    foundation_features: list[SourceFeature] = Field(default_factory=list)
    specialization_features: list[SourceFeature] = Field(default_factory=list)
    mastery_features: list[SourceFeature] = Field(default_factory=list)

    motives: str = ""
    weapon_name: str = ""
    experiences: str = ""
    impulses: str = ""
    advantages: str = ""
    examples: str = ""
    potential_adversaries: str = ""

    class_items: list[str] = Field(default_factory=list)
    background_questions: list[str] = Field(default_factory=list)
    connection_questions: list[str] = Field(default_factory=list)

    @field_validator(*_FEATURE_FIELDS, "class_items", "background_questions", "connection_questions", mode="before")
    @classmethod
    def _none_to_list(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator(*_TEXT_FIELDS, mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> Any:
        if value is None:
            return ""
        if isinstance(value, (int, float)):
            return str(value)
        return value

    @property
    def identifier(self) -> str | None:
        """Slug, or the id as a string, used to pair languages."""
        if self.slug:
            return self.slug
        if self.id is None or self.id == "":
            return None
        return str(self.id)

    def feature_group(self, field_name: str) -> list[SourceFeature]:
        return list(getattr(self, field_name, None) or [])

    def text(self, field_name: str) -> str:
        value = getattr(self, field_name, None)
        return value if isinstance(value, str) else ""


class BilingualDataset(BaseModel):
    """Entities of one endpoint in the target and source language."""

    endpoint: str
    target: list[SourceEntity] = Field(default_factory=list, description="Translated entities (ru)")
    source: list[SourceEntity] = Field(default_factory=list, description="Original entities (en)")

    def target_by_identifier(self) -> dict[str, SourceEntity]:
        return {entity.identifier: entity for entity in self.target if entity.identifier}

    def source_by_slug(self) -> dict[str, SourceEntity]:
        return {entity.slug: entity for entity in self.source if entity.slug}


class LookupEntry(BaseModel):
    """Translation for one destination entity.

    ``description`` is None when the translated text equals the source
    text, which tells the updater to keep the destination value as is.
    """

    name: str
    description: str | None = None
    raw: SourceEntity | SourceFeature


class TransformationLookup(BaseModel):
    """Translation for one transformation feature entry."""

    name: str
    short_description: str = ""
    feature_name: str = ""
    feature_body: str = ""
