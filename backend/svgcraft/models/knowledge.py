"""Knowledge objects: a closed union of kind-specific bodies plus lifecycle fields."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator, model_validator

from svgcraft.models.document import SVGComponent
from svgcraft.models.intent import HexColor

KnowledgeKind = Literal["style_pack", "motif", "glossary", "rule", "fewshot"]
KnowledgeStatus = Literal["experimental", "active", "deprecated"]
LinkRelation = Literal["belongs_to", "refines", "contradicts"]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ── Bodies ──


class StylePalette(BaseModel):
    primary: list[HexColor] = Field(..., min_length=1)
    secondary: list[HexColor] = Field(default_factory=list)
    accent: list[HexColor] = Field(default_factory=list)


class StylePackBody(BaseModel):
    kind: Literal["style_pack"] = "style_pack"
    name: str = ""
    palette: StylePalette
    constraints: dict[str, Any]
    stroke_width: float | None = Field(default=None, gt=0)


class MotifBody(BaseModel):
    kind: Literal["motif"] = "motif"
    name: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    type: str | None = None
    elements: list[str] = Field(default_factory=list)
    component: SVGComponent | None = None
    reusable: bool = False

    @model_validator(mode="after")
    def _has_geometry(self) -> MotifBody:
        if not self.elements and self.component is None:
            raise ValueError("motif needs either elements or a component")
        if self.reusable and self.component is None:
            raise ValueError("reusable motif needs a component")
        return self


class GlossaryBody(BaseModel):
    kind: Literal["glossary"] = "glossary"
    term: str = Field(..., min_length=1)
    definition: str = Field(..., min_length=1)


class RuleBody(BaseModel):
    kind: Literal["rule"] = "rule"
    condition: str = Field(..., min_length=1)
    action: str = Field(..., min_length=1)


class FewshotBody(BaseModel):
    kind: Literal["fewshot"] = "fewshot"
    prompt: str = Field(..., min_length=1)
    response: str = Field(..., min_length=1)


KnowledgeBody = Annotated[
    Union[StylePackBody, MotifBody, GlossaryBody, RuleBody, FewshotBody],
    Field(discriminator="kind"),
]


# ── Objects ──


class KnowledgeDraft(BaseModel):
    """Input for creating a knowledge object."""

    title: str = Field(..., min_length=1, max_length=200)
    body: KnowledgeBody
    tags: list[str] = Field(default_factory=list)
    status: KnowledgeStatus = "experimental"
    version: str = "1.0.0"
    quality_score: float = Field(default=0.0, ge=0, le=1)

    @field_validator("tags")
    @classmethod
    def _normalize_tags(cls, tags: list[str]) -> list[str]:
        return normalize_tags(tags)


class KnowledgeObject(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    body: KnowledgeBody
    tags: tuple[str, ...] = ()
    version: str = "1.0.0"
    status: KnowledgeStatus = "experimental"
    quality_score: float = Field(default=0.0, ge=0, le=1)
    embedding: tuple[float, ...] | None = None
    parent_id: str | None = None
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime | None = Field(default_factory=_utcnow)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def kind(self) -> KnowledgeKind:
        return self.body.kind


class KnowledgeLink(BaseModel):
    source_id: str
    target_id: str
    relation: LinkRelation
    created_at: datetime = Field(default_factory=_utcnow)


class AuditEntry(BaseModel):
    object_id: str
    action: str
    user_id: str | None = None
    reason: str | None = None
    changes: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=_utcnow)


class Preferences(BaseModel):
    tag_weights: dict[str, float] = Field(default_factory=dict)
    kind_weights: dict[str, float] = Field(
        default_factory=lambda: {
            "style_pack": 1.0,
            "motif": 1.0,
            "glossary": 0.8,
            "rule": 0.6,
            "fewshot": 0.9,
        }
    )


# ── Grounding ──


class GroundingData(BaseModel):
    style_pack: StylePackBody | None = None
    motifs: list[MotifBody] = Field(default_factory=list)
    glossary: list[GlossaryBody] = Field(default_factory=list)
    fewshot: list[FewshotBody] = Field(default_factory=list)
    components: list[SVGComponent] = Field(default_factory=list)
    source_ids: list[str] = Field(default_factory=list)


def normalize_tags(tags: list[str] | tuple[str, ...]) -> list[str]:
    """Lower-case, strip and de-duplicate tags, keeping first-seen order."""
    seen: list[str] = []
    for tag in tags:
        t = tag.strip().lower()
        if t and t not in seen:
            seen.append(t)
    return seen
