"""FastAPI dependency injection."""

from __future__ import annotations

from fastapi import Depends, Request

from svgcraft.config import settings
from svgcraft.knowledge.feedback import PreferenceLearner
from svgcraft.knowledge.retrieval import RetrievalEngine
from svgcraft.knowledge.store import KnowledgeStore
from svgcraft.pipeline.orchestrator import GenerationPipeline
from svgcraft.services import Services


def get_settings():
    return settings


def get_services(request: Request) -> Services:
    return request.app.state.services


def get_pipeline(services: Services = Depends(get_services)) -> GenerationPipeline:
    return services.pipeline


def get_knowledge_store(services: Services = Depends(get_services)) -> KnowledgeStore:
    return services.store


def get_retrieval_engine(services: Services = Depends(get_services)) -> RetrievalEngine:
    return services.retrieval


def get_preference_learner(services: Services = Depends(get_services)) -> PreferenceLearner:
    return services.learner
