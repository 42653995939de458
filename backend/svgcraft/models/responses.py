"""API response models."""

from __future__ import annotations

from pydantic import BaseModel, Field

from svgcraft.models.document import DocumentMetadata, SVGComponent


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str = "0.1.0"
    llm_configured: bool = False
    embeddings_configured: bool = False
    knowledge_objects: int = 0


class GenerationResponse(BaseModel):
    svg: str
    metadata: DocumentMetadata
    layers: list[SVGComponent] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
    event_id: int | None = Field(default=None, description="Id to attach feedback to")


class CompatibilityTestResult(BaseModel):
    prompt: str
    similarity: float
    score: float
    passed: bool


class CompatibilityReport(BaseModel):
    object_id: str
    passed: bool
    average_score: float
    results: list[CompatibilityTestResult] = Field(default_factory=list)
    issues: list[str] = Field(default_factory=list)


class KnowledgeAnalytics(BaseModel):
    total: int = 0
    by_kind: dict[str, int] = Field(default_factory=dict)
    by_status: dict[str, int] = Field(default_factory=dict)
    average_quality: float = 0.0
    stale_candidates: int = 0


class CacheMetrics(BaseModel):
    entries: int = 0
    hits: int = 0
    misses: int = 0
    hit_rate: float = 0.0
    evictions: int = 0


class TokenMetrics(BaseModel):
    total_tokens: int = 0
    cached_tokens: int = 0
    requests: int = 0
    cache_hits: int = 0
    estimated_cost_usd: float = 0.0
    saved_cost_usd: float = 0.0


class CountResponse(BaseModel):
    count: int


class FeedbackResponse(BaseModel):
    status: str = "ok"
    message: str = ""
    preferences_updated: bool = False
