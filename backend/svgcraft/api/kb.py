"""Knowledge base endpoints: objects, lifecycle, links, grounding and audit."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from svgcraft.dependencies import get_knowledge_store, get_retrieval_engine, get_services
from svgcraft.errors import CompatibilityError, KnowledgeValidationError, ObjectNotFoundError
from svgcraft.knowledge.retrieval import RetrievalEngine
from svgcraft.knowledge.store import KnowledgeStore
from svgcraft.models.knowledge import (
    AuditEntry,
    GroundingData,
    KnowledgeDraft,
    KnowledgeKind,
    KnowledgeLink,
    KnowledgeObject,
    KnowledgeStatus,
    Preferences,
)
from svgcraft.models.requests import (
    CreateLinkRequest,
    CreateObjectRequest,
    StatusChangeRequest,
    UpdateObjectRequest,
)
from svgcraft.models.responses import CompatibilityReport, CountResponse, KnowledgeAnalytics
from svgcraft.services import Services

router = APIRouter(prefix="/kb")


def _http_error(e: Exception) -> HTTPException:
    if isinstance(e, ObjectNotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, (KnowledgeValidationError, CompatibilityError)):
        return HTTPException(status_code=422, detail={"message": str(e), "issues": e.issues})
    return HTTPException(status_code=500, detail=str(e))


@router.post("/objects", response_model=KnowledgeObject, status_code=201)
async def create_object(
    req: CreateObjectRequest,
    store: KnowledgeStore = Depends(get_knowledge_store),
) -> KnowledgeObject:
    draft = KnowledgeDraft(title=req.title, body=req.body, tags=req.tags, quality_score=req.quality_score)
    try:
        return await store.create_object(draft, req.user_id, req.reason)
    except KnowledgeValidationError as e:
        raise _http_error(e) from e


@router.get("/objects", response_model=list[KnowledgeObject])
async def list_objects(
    kind: KnowledgeKind | None = Query(default=None),
    status: KnowledgeStatus | None = Query(default=None),
    store: KnowledgeStore = Depends(get_knowledge_store),
) -> list[KnowledgeObject]:
    return await store.list_objects(kind=kind, status=status)


@router.get("/objects/{object_id}", response_model=KnowledgeObject)
async def get_object(object_id: str, store: KnowledgeStore = Depends(get_knowledge_store)) -> KnowledgeObject:
    try:
        return await store.get_object(object_id)
    except ObjectNotFoundError as e:
        raise _http_error(e) from e


@router.patch("/objects/{object_id}", response_model=KnowledgeObject)
async def update_object(
    object_id: str,
    req: UpdateObjectRequest,
    store: KnowledgeStore = Depends(get_knowledge_store),
) -> KnowledgeObject:
    try:
        return await store.update_object(object_id, req.changes, req.user_id, req.reason)
    except (ObjectNotFoundError, KnowledgeValidationError) as e:
        raise _http_error(e) from e


@router.delete("/objects/{object_id}", status_code=204)
async def delete_object(
    object_id: str,
    user_id: str | None = Query(default=None),
    reason: str | None = Query(default=None),
    store: KnowledgeStore = Depends(get_knowledge_store),
) -> Response:
    try:
        await store.delete_object(object_id, user_id, reason)
    except ObjectNotFoundError as e:
        raise _http_error(e) from e
    return Response(status_code=204)


@router.get("/objects/{object_id}/history", response_model=list[KnowledgeObject])
async def object_history(
    object_id: str,
    store: KnowledgeStore = Depends(get_knowledge_store),
) -> list[KnowledgeObject]:
    try:
        return await store.get_history(object_id)
    except ObjectNotFoundError as e:
        raise _http_error(e) from e


@router.get("/objects/{object_id}/links", response_model=list[KnowledgeLink])
async def object_links(
    object_id: str,
    store: KnowledgeStore = Depends(get_knowledge_store),
) -> list[KnowledgeLink]:
    return await store.get_links(object_id)


@router.get("/objects/{object_id}/compatibility", response_model=CompatibilityReport)
async def compatibility(object_id: str, services: Services = Depends(get_services)) -> CompatibilityReport:
    try:
        return await services.lifecycle.run_compatibility_tests(object_id)
    except ObjectNotFoundError as e:
        raise _http_error(e) from e


@router.post("/objects/{object_id}/activate", response_model=KnowledgeObject)
async def activate(
    object_id: str,
    req: StatusChangeRequest,
    services: Services = Depends(get_services),
) -> KnowledgeObject:
    try:
        return await services.lifecycle.activate(object_id, req.user_id, req.reason)
    except (ObjectNotFoundError, CompatibilityError) as e:
        raise _http_error(e) from e


@router.post("/objects/{object_id}/deprecate", response_model=KnowledgeObject)
async def deprecate(
    object_id: str,
    req: StatusChangeRequest,
    services: Services = Depends(get_services),
) -> KnowledgeObject:
    try:
        return await services.lifecycle.deprecate(object_id, req.user_id, req.reason)
    except ObjectNotFoundError as e:
        raise _http_error(e) from e


@router.post("/deprecate-stale", response_model=list[str])
async def deprecate_stale(services: Services = Depends(get_services)) -> list[str]:
    return await services.lifecycle.deprecate_stale_objects()


@router.post("/links", response_model=KnowledgeLink, status_code=201)
async def create_link(
    req: CreateLinkRequest,
    store: KnowledgeStore = Depends(get_knowledge_store),
) -> KnowledgeLink:
    try:
        return await store.create_link(req.source_id, req.target_id, req.relation)
    except (ObjectNotFoundError, KnowledgeValidationError) as e:
        raise _http_error(e) from e


@router.get("/grounding", response_model=GroundingData)
async def grounding(
    prompt: str = Query(..., min_length=1, max_length=500),
    user_id: str | None = Query(default=None),
    retrieval: RetrievalEngine = Depends(get_retrieval_engine),
) -> GroundingData:
    return await retrieval.retrieve_grounding(prompt, user_id)


@router.post("/embeddings/index", response_model=CountResponse)
async def index_embeddings(retrieval: RetrievalEngine = Depends(get_retrieval_engine)) -> CountResponse:
    return CountResponse(count=await retrieval.index_embeddings())


@router.put("/preferences", response_model=Preferences)
async def set_global_preferences(prefs: Preferences, services: Services = Depends(get_services)) -> Preferences:
    services.preferences.set_global(prefs)
    services.cache.invalidate()
    return prefs


@router.put("/preferences/{user_id}", response_model=Preferences)
async def set_preferences(
    user_id: str,
    prefs: Preferences,
    services: Services = Depends(get_services),
) -> Preferences:
    services.preferences.set_user(user_id, prefs)
    services.cache.invalidate(f"grounding:{user_id}:")
    return prefs


@router.get("/analytics", response_model=KnowledgeAnalytics)
async def analytics(services: Services = Depends(get_services)) -> KnowledgeAnalytics:
    return await services.lifecycle.analytics()


@router.get("/audit", response_model=list[AuditEntry])
async def audit(
    object_id: str | None = Query(default=None),
    limit: int = Query(default=100, ge=1, le=1000),
    store: KnowledgeStore = Depends(get_knowledge_store),
) -> list[AuditEntry]:
    return await store.audit_log(object_id, limit)
