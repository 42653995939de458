"""POST /api/generate — prompt to SVG."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from svgcraft.dependencies import get_pipeline, get_preference_learner
from svgcraft.knowledge.feedback import PreferenceLearner
from svgcraft.models.requests import GenerateRequest
from svgcraft.models.responses import GenerationResponse
from svgcraft.pipeline.orchestrator import GenerationPipeline

router = APIRouter()


@router.post("/generate", response_model=GenerationResponse)
async def generate(
    req: GenerateRequest,
    pipeline: GenerationPipeline = Depends(get_pipeline),
    learner: PreferenceLearner = Depends(get_preference_learner),
) -> GenerationResponse:
    response = await pipeline.process(req.to_pipeline())
    event = await learner.log_event(req.prompt, response.metadata.used_objects, req.user_id)
    response.event_id = event.id
    return response
