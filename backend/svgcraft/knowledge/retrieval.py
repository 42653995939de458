"""Retrieval & ranking engine — prompt → small, diverse, policy-compliant grounding bundle."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime

from svgcraft.knowledge.cache import TTLCache, grounding_cache_key, ttl_for_tokens
from svgcraft.knowledge.governance import passes_governance
from svgcraft.knowledge.preferences import PreferenceStore
from svgcraft.knowledge.ranking import ScoredObject, score_object, select_diverse_objects, tag_similarity
from svgcraft.knowledge.store import KnowledgeStore
from svgcraft.knowledge.tokens import TokenBudget, estimate_tokens
from svgcraft.llm.embeddings import EmbeddingProvider
from svgcraft.models.knowledge import (
    FewshotBody,
    GlossaryBody,
    GroundingData,
    KnowledgeObject,
    MotifBody,
    StylePackBody,
)
from svgcraft.utils.math_helpers import cosine_similarity

logger = logging.getLogger(__name__)

MIN_QUALITY_SCORE = 0.3
MIN_SEMANTIC_SIMILARITY = 0.3
MAX_CANDIDATES = 50
MAX_MOTIFS = 6
MAX_GLOSSARY = 3


def object_text(obj: KnowledgeObject) -> str:
    """Text used to embed an object: title, tags and the descriptive body fields."""
    body = obj.body
    if isinstance(body, StylePackBody):
        detail = f"{body.name} palette {' '.join(body.palette.primary)}"
    elif isinstance(body, MotifBody):
        detail = f"{body.name} {body.description} {' '.join(body.elements)}"
    elif isinstance(body, GlossaryBody):
        detail = f"{body.term}: {body.definition}"
    elif isinstance(body, FewshotBody):
        detail = f"{body.prompt} {body.response}"
    else:
        detail = f"{body.condition} {body.action}"
    return f"{obj.title}. {' '.join(obj.tags)}. {detail}".strip()


def is_eligible(obj: KnowledgeObject) -> bool:
    """Governance filter applied to every candidate."""
    return obj.status == "active" and obj.quality_score >= MIN_QUALITY_SCORE and passes_governance(obj)


@dataclass
class Selection:
    """Scored objects chosen per section, in grounding order."""

    style_packs: list[ScoredObject] = field(default_factory=list)
    motifs: list[ScoredObject] = field(default_factory=list)
    glossary: list[ScoredObject] = field(default_factory=list)
    fewshot: list[ScoredObject] = field(default_factory=list)

    @property
    def ids(self) -> list[str]:
        return [s.id for s in (*self.style_packs, *self.motifs, *self.glossary, *self.fewshot)]

    def kept_in(self, grounding: GroundingData) -> Selection:
        """Sections are only ever trimmed from the end, so lengths identify what survived."""
        return Selection(
            style_packs=self.style_packs if grounding.style_pack is not None else [],
            motifs=self.motifs[: len(grounding.motifs)],
            glossary=self.glossary[: len(grounding.glossary)],
            fewshot=self.fewshot[: len(grounding.fewshot)],
        )


class RetrievalEngine:
    def __init__(
        self,
        store: KnowledgeStore,
        preferences: PreferenceStore | None = None,
        cache: TTLCache[GroundingData] | None = None,
        budget: TokenBudget | None = None,
        embedder: EmbeddingProvider | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.store = store
        self.preferences = preferences or PreferenceStore()
        if cache is None:
            cache = store.cache if store.cache is not None else TTLCache()
        # Store writes must invalidate the same cache retrieval reads from.
        store.cache = cache
        self.cache = cache
        self.budget = budget or store.budget
        self.embedder = embedder
        self._clock = clock

    async def retrieve_grounding(self, prompt: str, user_id: str | None = None) -> GroundingData:
        key = grounding_cache_key(prompt, user_id)
        cached = self.cache.get(key)
        if cached is not None:
            self.budget.record_usage(estimate_tokens(cached), from_cache=True)
            logger.debug("Grounding cache hit for %s", key)
            return cached

        start = time.perf_counter()
        candidates = await self.candidates(prompt)
        scored = self.score(candidates, user_id)
        selection = self.select(scored)
        grounding, optimization = self.budget.optimize_grounding(self.assemble(selection))
        grounding.source_ids = selection.kept_in(grounding).ids

        tokens = optimization.optimized_tokens
        self.cache.set(key, grounding, ttl_for_tokens(tokens))
        self.budget.record_usage(tokens)

        logger.info(
            "Grounding: %d candidates → %d motifs, %d glossary, %d fewshot (%d tokens) in %.0fms",
            len(candidates),
            len(grounding.motifs),
            len(grounding.glossary),
            len(grounding.fewshot),
            tokens,
            (time.perf_counter() - start) * 1000,
        )
        return grounding

    # ── Candidates ──

    async def candidates(self, prompt: str) -> list[tuple[KnowledgeObject, float]]:
        """(object, similarity) pairs. Semantic when possible, tag-based otherwise."""
        if self.embedder is not None:
            try:
                semantic = await self._semantic_candidates(prompt)
            except Exception as e:
                logger.warning("Semantic search unavailable, using tag scan: %s", e)
            else:
                if semantic is not None:
                    return semantic
        return await self._tag_candidates(prompt)

    async def _semantic_candidates(self, prompt: str) -> list[tuple[KnowledgeObject, float]] | None:
        objects = await self.store.list_objects(status="active", min_quality=MIN_QUALITY_SCORE)
        embedded = [o for o in objects if o.embedding is not None]
        if not embedded:
            return None

        query = await self.embedder.embed_query(prompt)  # type: ignore[union-attr]
        pairs = []
        for obj in embedded:
            similarity = cosine_similarity(query, obj.embedding or ())
            if similarity > MIN_SEMANTIC_SIMILARITY and is_eligible(obj):
                pairs.append((obj, similarity))
        pairs.sort(key=lambda pair: pair[1], reverse=True)
        return pairs[:MAX_CANDIDATES]

    async def _tag_candidates(self, prompt: str) -> list[tuple[KnowledgeObject, float]]:
        objects = await self.store.list_objects(status="active", min_quality=MIN_QUALITY_SCORE)
        objects = sorted((o for o in objects if is_eligible(o)), key=lambda o: o.quality_score, reverse=True)
        return [(o, tag_similarity(o, prompt)) for o in objects]

    # ── Scoring and selection ──

    def score(self, candidates: list[tuple[KnowledgeObject, float]], user_id: str | None) -> list[ScoredObject]:
        user_prefs = self.preferences.for_user(user_id)
        global_prefs = self.preferences.global_preferences
        now = self._clock() if self._clock else None
        scored = [score_object(obj, sim, user_prefs, global_prefs, now) for obj, sim in candidates]
        scored.sort(key=lambda s: s.score, reverse=True)
        return scored

    @staticmethod
    def select(scored: list[ScoredObject]) -> Selection:
        by_kind: dict[str, list[ScoredObject]] = {}
        for s in scored:
            by_kind.setdefault(s.object.kind, []).append(s)
        return Selection(
            style_packs=by_kind.get("style_pack", [])[:1],
            motifs=select_diverse_objects(by_kind.get("motif", []), MAX_MOTIFS),
            glossary=select_diverse_objects(by_kind.get("glossary", []), MAX_GLOSSARY),
            fewshot=by_kind.get("fewshot", [])[:1],
        )

    @staticmethod
    def assemble(selection: Selection) -> GroundingData:
        motif_bodies = [s.object.body for s in selection.motifs]
        return GroundingData(
            style_pack=selection.style_packs[0].object.body if selection.style_packs else None,
            motifs=motif_bodies,
            glossary=[s.object.body for s in selection.glossary],
            fewshot=[s.object.body for s in selection.fewshot],
            components=[b.component for b in motif_bodies if b.reusable and b.component is not None],
            source_ids=selection.ids,
        )

    # ── Indexing ──

    async def index_embeddings(self) -> int:
        """Embed active objects that have no embedding yet. Returns the count embedded."""
        if self.embedder is None:
            return 0
        pending = [o for o in await self.store.list_objects(status="active") if o.embedding is None]
        if not pending:
            return 0
        vectors = await self.embedder.embed([object_text(o) for o in pending])
        for obj, vector in zip(pending, vectors):
            await self.store.set_embedding(obj.id, vector)
        logger.info("Indexed %d embeddings with %s", len(pending), self.embedder.name)
        return len(pending)
