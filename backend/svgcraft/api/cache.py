"""Grounding cache and token usage endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from svgcraft.dependencies import get_services
from svgcraft.models.requests import CacheInvalidateRequest
from svgcraft.models.responses import CacheMetrics, CountResponse, TokenMetrics
from svgcraft.services import Services

router = APIRouter()


@router.get("/cache/metrics", response_model=CacheMetrics)
async def cache_metrics(services: Services = Depends(get_services)) -> CacheMetrics:
    cache = services.cache
    return CacheMetrics(
        entries=len(cache),
        hits=cache.hits,
        misses=cache.misses,
        hit_rate=cache.hit_rate,
        evictions=cache.evictions,
    )


@router.post("/cache/invalidate", response_model=CountResponse)
async def cache_invalidate(req: CacheInvalidateRequest, services: Services = Depends(get_services)) -> CountResponse:
    return CountResponse(count=services.cache.invalidate(req.pattern))


@router.post("/cache/cleanup", response_model=CountResponse)
async def cache_cleanup(services: Services = Depends(get_services)) -> CountResponse:
    return CountResponse(count=services.cache.cleanup())


@router.get("/tokens/metrics", response_model=TokenMetrics)
async def token_metrics(services: Services = Depends(get_services)) -> TokenMetrics:
    return TokenMetrics(**services.budget.metrics())
