"""Feedback endpoints: explicit and implicit signals on served generations."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from svgcraft.dependencies import get_preference_learner
from svgcraft.errors import EventNotFoundError
from svgcraft.knowledge.feedback import PreferenceLearner
from svgcraft.models.feedback import IMPLICIT_SIGNALS, LearningMetrics
from svgcraft.models.requests import FeedbackRequest
from svgcraft.models.responses import FeedbackResponse

router = APIRouter(prefix="/feedback")


async def _record(req: FeedbackRequest, learner: PreferenceLearner) -> FeedbackResponse:
    before = learner.preferences.for_user(req.user_id), learner.preferences.global_preferences
    try:
        record = await learner.record_feedback(req.event_id, req.signal, req.user_id, req.notes)
    except EventNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    after = learner.preferences.for_user(req.user_id), learner.preferences.global_preferences
    return FeedbackResponse(
        status="ok",
        message=f"Recorded {record.signal.value} for event {record.event_id}",
        preferences_updated=any(b is not a for b, a in zip(before, after)),
    )


@router.post("", response_model=FeedbackResponse)
async def submit_feedback(
    req: FeedbackRequest,
    learner: PreferenceLearner = Depends(get_preference_learner),
) -> FeedbackResponse:
    return await _record(req, learner)


@router.post("/implicit", response_model=FeedbackResponse)
async def implicit_feedback(
    req: FeedbackRequest,
    learner: PreferenceLearner = Depends(get_preference_learner),
) -> FeedbackResponse:
    """Client-observed signals only: the SVG was exported or regenerated."""
    if req.signal not in IMPLICIT_SIGNALS:
        raise HTTPException(
            status_code=422,
            detail=f"Implicit feedback must be one of: {', '.join(s.value for s in IMPLICIT_SIGNALS)}",
        )
    return await _record(req, learner)


@router.get("/metrics", response_model=LearningMetrics)
async def feedback_metrics(
    user_id: str | None = Query(default=None),
    learner: PreferenceLearner = Depends(get_preference_learner),
) -> LearningMetrics:
    return learner.metrics(user_id)
