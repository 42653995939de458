"""Tests for feedback recording and learned preference weights."""

from __future__ import annotations

from datetime import timedelta

import pytest

from svgcraft.errors import EventNotFoundError
from svgcraft.knowledge.cache import TTLCache
from svgcraft.knowledge.feedback import (
    PreferenceLearner,
    apply_bias_controls,
    apply_moving_average,
    calculate_preference_weights,
)
from svgcraft.knowledge.preferences import PreferenceStore
from svgcraft.knowledge.store import KnowledgeStore
from svgcraft.models.feedback import FeedbackRecord, FeedbackSignal
from svgcraft.models.knowledge import Preferences

from tests.conftest import NOW, glossary_draft, motif_draft, run


class Clock:
    def __init__(self):
        self.now = NOW

    def __call__(self):
        return self.now


def _record(signal: FeedbackSignal, weight: float) -> FeedbackRecord:
    return FeedbackRecord(event_id=1, signal=signal, weight=weight, created_at=NOW)


@pytest.fixture
def clock() -> Clock:
    return Clock()


@pytest.fixture
def learner(store: KnowledgeStore, clock: Clock) -> PreferenceLearner:
    return PreferenceLearner(store, PreferenceStore(), store.cache, clock=clock)


@pytest.fixture
def leaf(store: KnowledgeStore):
    return run(store.create_object(motif_draft("leaf", ["nature", "organic"])))


# ---------------------------------------------------------------------------
# Weight calculation
# ---------------------------------------------------------------------------

def test_weights_are_normalized_by_total_signal(store):
    leaf = run(store.create_object(motif_draft("leaf", ["nature", "organic"])))
    term = run(store.create_object(glossary_draft("outline", ["organic"])))

    prefs = calculate_preference_weights([
        (_record(FeedbackSignal.EXPORTED, 2.0), [leaf]),
        (_record(FeedbackSignal.REPORTED, -3.0), [term]),
    ])

    assert prefs.tag_weights["nature"] == pytest.approx(0.4)
    assert prefs.tag_weights["organic"] == pytest.approx(-0.2)
    assert prefs.kind_weights["motif"] == pytest.approx(0.4)
    assert prefs.kind_weights["glossary"] == pytest.approx(-0.6)
    assert prefs.kind_weights["style_pack"] == 0.0


def test_no_feedback_gives_zero_kind_weights():
    prefs = calculate_preference_weights([])
    assert prefs.tag_weights == {}
    assert set(prefs.kind_weights.values()) == {0.0}


def test_bias_controls_cap_only_from_above():
    capped = apply_bias_controls(Preferences(tag_weights={"hot": 4.0, "cold": -4.0}, kind_weights={"motif": 2.0}))
    assert capped.tag_weights == {"hot": 1.5, "cold": -4.0}
    assert capped.kind_weights == {"motif": 1.5}


def test_moving_average_blends_tag_union():
    current = Preferences(tag_weights={"a": 1.0}, kind_weights={"motif": 1.0})
    update = Preferences(tag_weights={"b": 1.0}, kind_weights={"motif": 0.0})

    blended = apply_moving_average(current, update)

    assert blended.tag_weights == pytest.approx({"a": 0.9, "b": 0.1})
    assert blended.kind_weights == pytest.approx({"motif": 0.9})


# ---------------------------------------------------------------------------
# Recording
# ---------------------------------------------------------------------------

def test_feedback_on_unknown_event_raises(learner):
    with pytest.raises(EventNotFoundError):
        run(learner.record_feedback(99, FeedbackSignal.KEPT))


def test_events_get_increasing_ids(learner, leaf):
    first = run(learner.log_event("leaf icon", [leaf.id], "ana"))
    second = run(learner.log_event("leaf badge", [leaf.id]))
    assert (first.id, second.id) == (1, 2)
    assert run(learner.get_event(1)).used_object_ids == [leaf.id]


def test_feedback_is_one_per_event_and_user(learner, leaf):
    event = run(learner.log_event("leaf icon", [leaf.id], "ana"))
    run(learner.record_feedback(event.id, FeedbackSignal.KEPT, "ana"))
    record = run(learner.record_feedback(event.id, FeedbackSignal.EXPORTED, "ana", notes="shipped"))

    assert record.weight == 2.0
    metrics = learner.metrics()
    assert metrics.feedback_count == 1
    assert metrics.positive_feedback == 1


# ---------------------------------------------------------------------------
# Preference updates
# ---------------------------------------------------------------------------

def test_user_preferences_wait_for_enough_feedback(learner, leaf):
    for i in range(9):
        event = run(learner.log_event(f"leaf {i}", [leaf.id], "ana"))
        run(learner.record_feedback(event.id, FeedbackSignal.FAVORITED, "ana"))
    assert learner.preferences.for_user("ana") is None

    event = run(learner.log_event("leaf 9", [leaf.id], "ana"))
    run(learner.record_feedback(event.id, FeedbackSignal.FAVORITED, "ana"))

    prefs = learner.preferences.for_user("ana")
    assert prefs is not None
    # One signal per tag after normalization, blended from an empty starting point
    assert prefs.tag_weights["nature"] == pytest.approx(0.1)
    assert prefs.kind_weights["motif"] == pytest.approx(0.9 * 1.0 + 0.1 * 1.0)
    assert prefs.kind_weights["glossary"] == pytest.approx(0.9 * 0.8)


def test_old_feedback_falls_out_of_user_window(learner, leaf, clock):
    for i in range(9):
        event = run(learner.log_event(f"leaf {i}", [leaf.id], "ana"))
        run(learner.record_feedback(event.id, FeedbackSignal.KEPT, "ana"))

    clock.now = NOW + timedelta(days=31)
    event = run(learner.log_event("leaf late", [leaf.id], "ana"))
    run(learner.record_feedback(event.id, FeedbackSignal.KEPT, "ana"))

    assert learner.preferences.for_user("ana") is None


def test_user_update_invalidates_only_their_grounding(store, clock, leaf):
    cache = TTLCache()
    learner = PreferenceLearner(store, PreferenceStore(), cache, clock=clock, min_feedback_count=1)
    cache.set("grounding:ana:abc", "mine", 60)
    cache.set("grounding:bo:def", "theirs", 60)
    learner._global_updated_at = NOW

    event = run(learner.log_event("leaf", [leaf.id], "ana"))
    run(learner.record_feedback(event.id, FeedbackSignal.KEPT, "ana"))

    assert cache.get("grounding:ana:abc") is None
    assert cache.get("grounding:bo:def") == "theirs"


def test_global_preferences_update_at_most_daily(learner, leaf, clock):
    defaults = learner.preferences.global_preferences
    event = run(learner.log_event("leaf", [leaf.id]))
    run(learner.record_feedback(event.id, FeedbackSignal.EXPORTED))

    learned = learner.preferences.global_preferences
    assert learned is not defaults
    assert learned.tag_weights == {"nature": 1.0, "organic": 1.0}

    clock.now = NOW + timedelta(hours=1)
    event = run(learner.log_event("leaf again", [leaf.id]))
    run(learner.record_feedback(event.id, FeedbackSignal.REPORTED))
    assert learner.preferences.global_preferences is learned

    clock.now = NOW + timedelta(hours=25)
    event = run(learner.log_event("leaf later", [leaf.id]))
    run(learner.record_feedback(event.id, FeedbackSignal.KEPT))
    # (2 - 3 + 1) / 6 across the three signals still inside the week
    assert learner.preferences.global_preferences.tag_weights["nature"] == pytest.approx(0.0)


def test_missing_objects_are_skipped(learner, leaf):
    event = run(learner.log_event("leaf", [leaf.id, "motif-gone"]))
    run(learner.record_feedback(event.id, FeedbackSignal.KEPT))
    assert learner.preferences.global_preferences.kind_weights["motif"] == pytest.approx(1.0)


# ---------------------------------------------------------------------------
# Metrics
# ---------------------------------------------------------------------------

def test_metrics(learner, leaf):
    for i in range(4):
        run(learner.log_event(f"leaf {i}", [leaf.id], "ana"))
    run(learner.record_feedback(1, FeedbackSignal.EXPORTED, "ana"))
    run(learner.record_feedback(2, FeedbackSignal.REGENERATED, "ana"))

    metrics = learner.metrics("ana")
    assert metrics.total_events == 4
    assert metrics.feedback_count == 2
    assert metrics.feedback_rate == 0.5
    assert metrics.positive_feedback == 1
    assert metrics.bias_score == 0.0


def test_bias_score_rises_with_concentrated_weights(learner):
    learner.preferences.set_global(Preferences(tag_weights={"a": 1.5, "b": 0.1, "c": 0.1}))
    assert learner.metrics().bias_score > 0.9
