"""Tests for the knowledge store: write-time validation, versioning, links, audit."""

from __future__ import annotations

import pytest

from svgcraft.errors import KnowledgeValidationError, ObjectNotFoundError
from svgcraft.knowledge.store import KnowledgeStore, bump_patch
from svgcraft.knowledge.tokens import TokenBudget
from svgcraft.models.knowledge import GroundingData, KnowledgeDraft, MotifBody
from tests.conftest import NOW, glossary_draft, motif_draft, run


@pytest.mark.parametrize("version,bumped", [("1.0.0", "1.0.1"), ("2.3.9", "2.3.10"), ("banana", "1.0.1")])
def test_bump_patch(version, bumped):
    assert bump_patch(version) == bumped


def test_create_and_get(store):
    obj = run(store.create_object(motif_draft("leaf", ["Nature", "leaf", "nature "]), user_id="u1"))
    assert obj.id.startswith("motif-")
    assert obj.kind == "motif"
    assert obj.tags == ("nature", "leaf")
    assert run(store.get_object(obj.id)) == obj
    assert len(store) == 1


def test_get_unknown_raises(store):
    with pytest.raises(ObjectNotFoundError):
        run(store.get_object("motif-missing"))


def test_list_filters(store):
    run(store.create_object(motif_draft("leaf", ["leaf"], quality=0.9)))
    run(store.create_object(motif_draft("wave", ["wave"], quality=0.1, status="experimental")))
    run(store.create_object(glossary_draft("arch", ["arch"])))
    assert len(run(store.list_objects(kind="motif"))) == 2
    assert len(run(store.list_objects(status="active"))) == 2
    assert len(run(store.list_objects(min_quality=0.5))) == 2


# ---------------------------------------------------------------------------
# Write-time validation
# ---------------------------------------------------------------------------

def test_governance_rejection_leaves_store_untouched(store):
    draft = motif_draft("mark", ["symbol"], description="A hate symbol")
    with pytest.raises(KnowledgeValidationError) as exc:
        run(store.create_object(draft))
    assert any("Content policy" in issue for issue in exc.value.issues)
    assert len(store) == 0
    assert run(store.audit_log()) == []


def test_token_budget_rejection():
    store = KnowledgeStore(budget=TokenBudget(max_object_tokens=50))
    draft = motif_draft("leaf", ["leaf"], description="leaf " * 100)
    with pytest.raises(KnowledgeValidationError, match="Token budget exceeded"):
        run(store.create_object(draft))


def test_motif_body_requires_geometry():
    with pytest.raises(ValueError):
        MotifBody(name="leaf", description="no geometry")


def test_discriminated_body_from_dict():
    draft = KnowledgeDraft.model_validate(
        {"title": "Wave", "body": {"kind": "rule", "condition": "ocean", "action": "use waves"}}
    )
    assert draft.body.kind == "rule"


# ---------------------------------------------------------------------------
# Versioning
# ---------------------------------------------------------------------------

def test_content_update_creates_new_version(store):
    original = run(store.create_object(motif_draft("leaf", ["leaf"])))
    updated = run(store.update_object(original.id, {"title": "Leaf motif v2"}, user_id="u1", reason="rename"))

    assert updated.id != original.id
    assert updated.parent_id == original.id
    assert updated.version == "1.0.1"
    assert run(store.get_object(original.id)).title == original.title
    assert [o.id for o in run(store.list_objects())] == [updated.id]
    assert [o.id for o in run(store.get_history(updated.id))] == [updated.id, original.id]


def test_quality_only_update_keeps_id(store):
    obj = run(store.create_object(motif_draft("leaf", ["leaf"])))
    updated = run(store.update_object(obj.id, {"quality_score": 0.4}))
    assert updated.id == obj.id
    assert updated.quality_score == 0.4
    assert updated.version == obj.version


def test_update_rejects_unknown_fields_and_kind_change(store):
    obj = run(store.create_object(motif_draft("leaf", ["leaf"])))
    with pytest.raises(KnowledgeValidationError):
        run(store.update_object(obj.id, {"status": "active"}))
    with pytest.raises(KnowledgeValidationError):
        run(store.update_object(obj.id, {"body": {"kind": "glossary", "term": "x", "definition": "y"}}))
    with pytest.raises(KnowledgeValidationError):
        run(store.update_object(obj.id, {"title": ""}))


def test_update_of_archived_version_is_not_found(store):
    obj = run(store.create_object(motif_draft("leaf", ["leaf"])))
    run(store.update_object(obj.id, {"tags": ["leaf", "nature"]}))
    with pytest.raises(ObjectNotFoundError):
        run(store.update_object(obj.id, {"title": "again"}))


def test_set_status_clamps_quality(store):
    obj = run(store.create_object(motif_draft("leaf", ["leaf"], status="experimental")))
    updated = run(store.set_status(obj.id, "active", quality_score=1.7))
    assert updated.status == "active"
    assert updated.quality_score == 1.0


def test_delete_removes_links(store):
    a = run(store.create_object(motif_draft("leaf", ["leaf"])))
    b = run(store.create_object(glossary_draft("leaf", ["leaf"])))
    run(store.create_link(a.id, b.id, "belongs_to"))
    run(store.delete_object(b.id))
    assert run(store.get_links(a.id)) == []


# ---------------------------------------------------------------------------
# Links and audit
# ---------------------------------------------------------------------------

def test_links(store):
    a = run(store.create_object(motif_draft("leaf", ["leaf"])))
    b = run(store.create_object(glossary_draft("leaf", ["leaf"])))
    link = run(store.create_link(a.id, b.id, "refines"))
    assert link.relation == "refines"
    assert run(store.get_links(b.id)) == [link]

    with pytest.raises(KnowledgeValidationError):
        run(store.create_link(a.id, b.id, "refines"))
    with pytest.raises(KnowledgeValidationError):
        run(store.create_link(a.id, a.id, "refines"))
    with pytest.raises(ObjectNotFoundError):
        run(store.create_link(a.id, "glossary-missing", "refines"))


def test_audit_newest_first():
    store = KnowledgeStore(clock=lambda: NOW)
    obj = run(store.create_object(motif_draft("leaf", ["leaf"]), user_id="u1", reason="seed"))
    run(store.set_status(obj.id, "deprecated", user_id="u2"))
    entries = run(store.audit_log(obj.id))
    assert [e.action for e in entries] == ["deprecated", "create"]
    assert entries[1].user_id == "u1" and entries[1].reason == "seed"
    assert entries[0].changes == {"previous": "active"}
    assert entries[0].timestamp == NOW
    assert len(run(store.audit_log(limit=1))) == 1


def test_writes_invalidate_cache(store):
    store.cache.set("grounding:anonymous:x", GroundingData(), 60)
    run(store.create_object(motif_draft("leaf", ["leaf"])))
    assert len(store.cache) == 0
