"""Health check + meta endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from svgcraft.config import Settings
from svgcraft.dependencies import get_services, get_settings
from svgcraft.models.responses import HealthResponse
from svgcraft.services import Services

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health(
    services: Services = Depends(get_services),
    config: Settings = Depends(get_settings),
) -> HealthResponse:
    return HealthResponse(
        status="ok",
        version="0.1.0",
        llm_configured=bool(config.anthropic_api_key),
        embeddings_configured=services.embedder is not None,
        knowledge_objects=len(services.store),
    )


@router.get("/prompts")
async def prompts() -> dict[str, str]:
    from svgcraft.llm.prompts import get_all_templates

    return get_all_templates()
