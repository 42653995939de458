"""Service container — built once at startup and passed explicitly to callers."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from svgcraft.config import Settings, settings
from svgcraft.knowledge.cache import TTLCache
from svgcraft.knowledge.feedback import PreferenceLearner
from svgcraft.knowledge.lifecycle import LifecycleManager
from svgcraft.knowledge.preferences import PreferenceStore
from svgcraft.knowledge.retrieval import RetrievalEngine
from svgcraft.knowledge.store import KnowledgeStore
from svgcraft.knowledge.tokens import TokenBudget
from svgcraft.llm.embeddings import EmbeddingProvider, OpenAIEmbeddingProvider
from svgcraft.llm.intent_normalizer import LLMNormalizer
from svgcraft.models.knowledge import GroundingData
from svgcraft.pipeline.orchestrator import GenerationPipeline, PipelineOptions

logger = logging.getLogger(__name__)


@dataclass
class Services:
    store: KnowledgeStore
    preferences: PreferenceStore
    cache: TTLCache[GroundingData]
    budget: TokenBudget
    retrieval: RetrievalEngine
    lifecycle: LifecycleManager
    pipeline: GenerationPipeline
    learner: PreferenceLearner
    embedder: EmbeddingProvider | None = None


def build_services(config: Settings | None = None, embedder: EmbeddingProvider | None = None) -> Services:
    config = config or settings

    if embedder is None and config.openai_api_key:
        embedder = OpenAIEmbeddingProvider(
            api_key=config.openai_api_key,
            model=config.embedding_model,
            base_url=config.openai_base_url,
            timeout=config.embedding_timeout_s,
        )

    cache: TTLCache[GroundingData] = TTLCache(max_entries=config.cache_max_entries)
    budget = TokenBudget()
    store = KnowledgeStore(budget=budget, cache=cache)
    preferences = PreferenceStore()
    retrieval = RetrievalEngine(store, preferences, cache, budget, embedder)

    pipeline = GenerationPipeline(
        retrieval=retrieval,
        llm_normalizer=LLMNormalizer() if config.anthropic_api_key else None,
        options=PipelineOptions(
            temperature=config.pipeline_temperature,
            max_retries=config.pipeline_max_retries,
            fallback_to_rule_based=config.pipeline_fallback,
        ),
        default_size=config.default_canvas,
    )

    logger.info(
        "Services ready (llm=%s, embeddings=%s)",
        bool(config.anthropic_api_key),
        embedder.name if embedder else "off",
    )
    return Services(
        store=store,
        preferences=preferences,
        cache=cache,
        budget=budget,
        retrieval=retrieval,
        lifecycle=LifecycleManager(store),
        pipeline=pipeline,
        learner=PreferenceLearner(store, preferences, cache),
        embedder=embedder,
    )
