"""Preference learning from feedback on served generations.

Every generation is logged with the knowledge objects that grounded it.
Feedback signals on that generation are weighted (exported +2 ... reported -3)
and spread over the tags and kinds of those objects. The per-signal totals are
normalized by the summed absolute weight, capped at the preference-boost
limit, and written back into the ``PreferenceStore`` that ranking reads:

- user weights once a user has enough recent feedback, smoothed with an
  exponential moving average against their current weights;
- global weights from the last week of feedback across all users, at most
  once per update interval.
"""

from __future__ import annotations

import logging
import statistics
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import get_args

from svgcraft.errors import EventNotFoundError, ObjectNotFoundError
from svgcraft.knowledge.cache import TTLCache
from svgcraft.knowledge.preferences import PreferenceStore
from svgcraft.knowledge.ranking import MAX_PREFERENCE_BOOST
from svgcraft.knowledge.store import KnowledgeStore
from svgcraft.models.feedback import (
    FEEDBACK_WEIGHTS,
    FeedbackRecord,
    FeedbackSignal,
    GenerationEvent,
    LearningMetrics,
)
from svgcraft.models.knowledge import KnowledgeKind, KnowledgeObject, Preferences

logger = logging.getLogger(__name__)

EMA_DECAY = 0.1
MIN_FEEDBACK_COUNT = 10
USER_WINDOW = timedelta(days=30)
GLOBAL_WINDOW = timedelta(days=7)
GLOBAL_UPDATE_INTERVAL = timedelta(hours=24)


def calculate_preference_weights(
    feedback: list[tuple[FeedbackRecord, list[KnowledgeObject]]],
) -> Preferences:
    """Accumulate signed feedback weight onto tags and kinds, normalized by total |weight|."""
    tag_weights: dict[str, float] = {}
    kind_weights = {kind: 0.0 for kind in get_args(KnowledgeKind)}
    total = 0.0

    for record, objects in feedback:
        total += abs(record.weight)
        for obj in objects:
            for tag in obj.tags:
                tag_weights[tag] = tag_weights.get(tag, 0.0) + record.weight
            kind_weights[obj.kind] += record.weight

    if total > 0:
        tag_weights = {tag: w / total for tag, w in tag_weights.items()}
        kind_weights = {kind: w / total for kind, w in kind_weights.items()}
    return Preferences(tag_weights=tag_weights, kind_weights=kind_weights)


def apply_bias_controls(prefs: Preferences) -> Preferences:
    """Cap every weight at the preference-boost limit."""
    return Preferences(
        tag_weights={tag: min(w, MAX_PREFERENCE_BOOST) for tag, w in prefs.tag_weights.items()},
        kind_weights={kind: min(w, MAX_PREFERENCE_BOOST) for kind, w in prefs.kind_weights.items()},
    )


def apply_moving_average(current: Preferences, update: Preferences, decay: float = EMA_DECAY) -> Preferences:
    tags = current.tag_weights.keys() | update.tag_weights.keys()
    return Preferences(
        tag_weights={
            tag: (1 - decay) * current.tag_weights.get(tag, 0.0) + decay * update.tag_weights.get(tag, 0.0)
            for tag in sorted(tags)
        },
        kind_weights={
            kind: (1 - decay) * current.kind_weights.get(kind, 0.0) + decay * weight
            for kind, weight in update.kind_weights.items()
        },
    )


class PreferenceLearner:
    def __init__(
        self,
        store: KnowledgeStore,
        preferences: PreferenceStore,
        cache: TTLCache | None = None,
        clock: Callable[[], datetime] | None = None,
        min_feedback_count: int = MIN_FEEDBACK_COUNT,
    ) -> None:
        self.store = store
        self.preferences = preferences
        self.cache = cache
        self.min_feedback_count = min_feedback_count
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._events: dict[int, GenerationEvent] = {}
        self._feedback: dict[tuple[int, str | None], FeedbackRecord] = {}
        self._global_updated_at: datetime | None = None

    # ── Events ──

    async def log_event(
        self,
        prompt: str,
        used_object_ids: list[str],
        user_id: str | None = None,
    ) -> GenerationEvent:
        event = GenerationEvent(
            id=len(self._events) + 1,
            prompt=prompt,
            user_id=user_id,
            used_object_ids=list(used_object_ids),
            created_at=self._clock(),
        )
        self._events[event.id] = event
        return event

    async def get_event(self, event_id: int) -> GenerationEvent:
        event = self._events.get(event_id)
        if event is None:
            raise EventNotFoundError(event_id)
        return event

    # ── Feedback ──

    async def record_feedback(
        self,
        event_id: int,
        signal: FeedbackSignal,
        user_id: str | None = None,
        notes: str | None = None,
    ) -> FeedbackRecord:
        """Record (or replace) one user's signal on an event, then refresh learned weights."""
        await self.get_event(event_id)
        record = FeedbackRecord(
            event_id=event_id,
            signal=signal,
            weight=FEEDBACK_WEIGHTS[signal],
            user_id=user_id,
            notes=notes,
            created_at=self._clock(),
        )
        self._feedback[(event_id, user_id)] = record
        logger.info("Feedback %s on event %d (user=%s)", signal.value, event_id, user_id or "anonymous")

        if user_id:
            await self.update_user_preferences(user_id)
        await self.update_global_preferences_if_needed()
        return record

    async def update_user_preferences(self, user_id: str) -> bool:
        """Returns False while the user has too little recent feedback."""
        recent = await self._recent_feedback(USER_WINDOW, user_id)
        if len(recent) < self.min_feedback_count:
            return False

        learned = apply_bias_controls(calculate_preference_weights(recent))
        current = self.preferences.for_user(user_id) or Preferences()
        updated = apply_moving_average(current, learned)
        self.preferences.set_user(user_id, updated)
        if self.cache is not None:
            self.cache.invalidate(f"grounding:{user_id}:")

        logger.info("Updated preferences for %s from %d signals (%d tags)", user_id, len(recent), len(updated.tag_weights))
        return True

    async def update_global_preferences_if_needed(self) -> bool:
        if self._global_updated_at is not None and self._clock() - self._global_updated_at < GLOBAL_UPDATE_INTERVAL:
            return False
        return await self.update_global_preferences()

    async def update_global_preferences(self) -> bool:
        recent = await self._recent_feedback(GLOBAL_WINDOW)
        if not recent:
            return False

        learned = apply_bias_controls(calculate_preference_weights(recent))
        self.preferences.set_global(learned)
        self._global_updated_at = self._clock()
        if self.cache is not None:
            self.cache.invalidate()

        logger.info("Updated global preferences from %d signals (%d tags)", len(recent), len(learned.tag_weights))
        return True

    async def _recent_feedback(
        self,
        window: timedelta,
        user_id: str | None = None,
    ) -> list[tuple[FeedbackRecord, list[KnowledgeObject]]]:
        cutoff = self._clock() - window
        records = [
            r
            for r in self._feedback.values()
            if r.created_at >= cutoff and (user_id is None or r.user_id == user_id)
        ]
        records.sort(key=lambda r: r.created_at, reverse=True)
        return [(r, await self._used_objects(self._events[r.event_id])) for r in records]

    async def _used_objects(self, event: GenerationEvent) -> list[KnowledgeObject]:
        objects = []
        for object_id in event.used_object_ids:
            try:
                objects.append(await self.store.get_object(object_id))
            except ObjectNotFoundError:
                continue
        return objects

    # ── Metrics ──

    def metrics(self, user_id: str | None = None) -> LearningMetrics:
        events = [e for e in self._events.values() if user_id is None or e.user_id == user_id]
        feedback = [r for r in self._feedback.values() if user_id is None or r.user_id == user_id]

        prefs = self.preferences.for_user(user_id) if user_id else self.preferences.global_preferences
        weights = list(prefs.tag_weights.values()) if prefs else []
        bias = 0.0
        if weights:
            mean = statistics.fmean(weights)
            # Coefficient of variation of tag weights: 0 is even, 1+ is concentrated.
            bias = min(1.0, statistics.pstdev(weights) / mean) if mean > 0 else 0.0

        return LearningMetrics(
            total_events=len(events),
            feedback_count=len(feedback),
            feedback_rate=len(feedback) / len(events) if events else 0.0,
            positive_feedback=sum(1 for r in feedback if r.weight > 0),
            bias_score=bias,
        )
