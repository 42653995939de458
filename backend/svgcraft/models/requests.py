"""API and pipeline request models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from svgcraft.models.feedback import FeedbackSignal
from svgcraft.models.intent import HexColor
from svgcraft.models.knowledge import KnowledgeBody, LinkRelation


class CanvasSize(BaseModel):
    width: float
    height: float


class GenerationRequest(BaseModel):
    """What the pipeline consumes. Deliberately unconstrained: bad values reach the fallback path."""

    prompt: str
    size: CanvasSize | None = None
    palette: list[str] | None = None
    seed: int | None = None
    user_id: str | None = None
    model: str | None = None


class ApiCanvasSize(BaseModel):
    width: float = Field(..., ge=16, le=2048)
    height: float = Field(..., ge=16, le=2048)


class GenerateRequest(BaseModel):
    prompt: str = Field(..., min_length=1, max_length=500, description="Free-text design prompt")
    size: ApiCanvasSize | None = Field(default=None, description="Canvas size in px")
    palette: list[HexColor] | None = Field(default=None, max_length=10)
    seed: int | None = Field(default=None, ge=0, description="Seed for reproducible layouts")
    user_id: str | None = None
    model: str | None = None

    def to_pipeline(self) -> GenerationRequest:
        return GenerationRequest(
            prompt=self.prompt,
            size=CanvasSize(width=self.size.width, height=self.size.height) if self.size else None,
            palette=self.palette,
            seed=self.seed,
            user_id=self.user_id,
            model=self.model,
        )


class CreateObjectRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    body: KnowledgeBody
    tags: list[str] = Field(default_factory=list)
    quality_score: float = Field(default=0.0, ge=0, le=1)
    user_id: str | None = None
    reason: str | None = None


class UpdateObjectRequest(BaseModel):
    changes: dict[str, Any] = Field(..., description="Fields to change: title, body, tags, quality_score")
    user_id: str | None = None
    reason: str | None = None


class StatusChangeRequest(BaseModel):
    user_id: str | None = None
    reason: str | None = None


class CreateLinkRequest(BaseModel):
    source_id: str
    target_id: str
    relation: LinkRelation


class CacheInvalidateRequest(BaseModel):
    pattern: str | None = Field(default=None, description="Substring of cache keys to drop; all when empty")


class FeedbackRequest(BaseModel):
    event_id: int = Field(..., ge=1)
    signal: FeedbackSignal
    user_id: str | None = None
    notes: str | None = Field(default=None, max_length=500)
