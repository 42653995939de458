"""Relevance scoring and MMR diversification for knowledge objects."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from svgcraft.models.knowledge import KnowledgeObject, Preferences

SIMILARITY_WEIGHT = 0.6
PREFERENCE_WEIGHT = 0.2
QUALITY_WEIGHT = 0.2
FRESHNESS_WEIGHT = 0.1

MMR_RELEVANCE = 0.7
MMR_DIVERSITY = 0.3

MAX_PREFERENCE_BOOST = 1.5
GLOBAL_PREFERENCE_FACTOR = 0.5
FRESHNESS_THRESHOLD = timedelta(days=4 * 30)


@dataclass
class ScoredObject:
    """A knowledge object with its per-request ranking terms. Lives for one retrieval."""

    object: KnowledgeObject
    similarity: float
    preference_boost: float
    quality: float
    freshness: float
    score: float

    @property
    def id(self) -> str:
        return self.object.id

    @property
    def tags(self) -> tuple[str, ...]:
        return self.object.tags


def compute_score(similarity: float, preference: float, quality: float, freshness: float) -> float:
    """score = 0.6·similarity + 0.2·preference + 0.2·quality − 0.1·freshness_penalty"""
    return (
        SIMILARITY_WEIGHT * similarity
        + PREFERENCE_WEIGHT * preference
        + QUALITY_WEIGHT * quality
        - FRESHNESS_WEIGHT * freshness
    )


def freshness_penalty(updated_at: datetime | None, now: datetime | None = None) -> float:
    """0 within the threshold, then grows linearly to 1 at twice the threshold."""
    if updated_at is None:
        return 1.0
    now = now or datetime.now(timezone.utc)
    if updated_at.tzinfo is None:
        updated_at = updated_at.replace(tzinfo=timezone.utc)
    age = now - updated_at
    if age <= FRESHNESS_THRESHOLD:
        return 0.0
    return min(1.0, age / FRESHNESS_THRESHOLD - 1)


def preference_weight(obj: KnowledgeObject, prefs: Preferences | None) -> float:
    """Tag weights plus kind weight for one preference set, capped."""
    if prefs is None:
        return 0.0
    total = sum(prefs.tag_weights.get(tag, 0.0) for tag in obj.tags)
    total += prefs.kind_weights.get(obj.kind, 0.0)
    return min(total, MAX_PREFERENCE_BOOST)


def preference_boost(
    obj: KnowledgeObject,
    user_prefs: Preferences | None,
    global_prefs: Preferences | None,
) -> float:
    raw = preference_weight(obj, user_prefs) + GLOBAL_PREFERENCE_FACTOR * preference_weight(obj, global_prefs)
    return min(MAX_PREFERENCE_BOOST, raw)


def tag_similarity(obj: KnowledgeObject, prompt: str) -> float:
    """Fraction of the object's tags that occur in the prompt."""
    if not obj.tags:
        return 0.0
    text = prompt.lower()
    return sum(1 for tag in obj.tags if tag.lower() in text) / len(obj.tags)


def jaccard_similarity(a: Iterable[str], b: Iterable[str]) -> float:
    set_a = {t.lower() for t in a}
    set_b = {t.lower() for t in b}
    union = set_a | set_b
    if not union:
        return 0.0
    return len(set_a & set_b) / len(union)


def score_object(
    obj: KnowledgeObject,
    similarity: float,
    user_prefs: Preferences | None,
    global_prefs: Preferences | None,
    now: datetime | None = None,
) -> ScoredObject:
    boost = preference_boost(obj, user_prefs, global_prefs)
    freshness = freshness_penalty(obj.updated_at, now)
    return ScoredObject(
        object=obj,
        similarity=similarity,
        preference_boost=boost,
        quality=obj.quality_score,
        freshness=freshness,
        score=compute_score(similarity, boost, obj.quality_score, freshness),
    )


def select_diverse_objects(objects: Sequence[ScoredObject], k: int) -> list[ScoredObject]:
    """Maximal Marginal Relevance selection of min(k, len(objects)) items.

    The first pick is always the highest-scored candidate; each next pick
    maximizes 0.7·score + 0.3·min(1 − jaccard(tags, selected)).
    """
    if k <= 0:
        return []
    if len(objects) <= k:
        return list(objects)

    remaining = list(objects)
    first = max(range(len(remaining)), key=lambda i: remaining[i].score)
    selected = [remaining.pop(first)]

    while len(selected) < k and remaining:
        best_index, best_value = 0, float("-inf")
        for i, candidate in enumerate(remaining):
            diversity = min(1 - jaccard_similarity(candidate.tags, s.tags) for s in selected)
            value = MMR_RELEVANCE * candidate.score + MMR_DIVERSITY * diversity
            if value > best_value:
                best_index, best_value = i, value
        selected.append(remaining.pop(best_index))

    return selected
