"""Generation events and the feedback signals recorded against them."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class FeedbackSignal(str, Enum):
    KEPT = "kept"
    EDITED = "edited"
    REGENERATED = "regenerated"
    EXPORTED = "exported"
    FAVORITED = "favorited"
    REPORTED = "reported"


# Signed strength of each signal
FEEDBACK_WEIGHTS: dict[FeedbackSignal, float] = {
    FeedbackSignal.EXPORTED: 2.0,
    FeedbackSignal.FAVORITED: 1.5,
    FeedbackSignal.KEPT: 1.0,
    FeedbackSignal.EDITED: 0.5,
    FeedbackSignal.REGENERATED: -0.5,
    FeedbackSignal.REPORTED: -3.0,
}

IMPLICIT_SIGNALS = (FeedbackSignal.EXPORTED, FeedbackSignal.REGENERATED)


class GenerationEvent(BaseModel):
    """One served generation and the knowledge objects that grounded it."""

    id: int
    prompt: str
    user_id: str | None = None
    used_object_ids: list[str] = Field(default_factory=list)
    created_at: datetime


class FeedbackRecord(BaseModel):
    event_id: int
    signal: FeedbackSignal
    weight: float
    user_id: str | None = None
    notes: str | None = None
    created_at: datetime


class LearningMetrics(BaseModel):
    total_events: int = 0
    feedback_count: int = 0
    feedback_rate: float = 0.0
    positive_feedback: int = 0
    bias_score: float = 0.0
