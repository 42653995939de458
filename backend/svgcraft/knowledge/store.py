"""In-memory knowledge store — CRUD, versioning, links and an audit trail.

Writes are validated before anything is applied: a rejected write leaves the
store untouched. Content updates never mutate history; they archive the old
object and create a new version whose ``parent_id`` points back to it.
"""

from __future__ import annotations

import hashlib
import logging
import time
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

from pydantic import ValidationError

from svgcraft.errors import KnowledgeValidationError, ObjectNotFoundError
from svgcraft.knowledge.cache import TTLCache
from svgcraft.knowledge.governance import governance_issues
from svgcraft.knowledge.tokens import TokenBudget
from svgcraft.models.knowledge import (
    AuditEntry,
    KnowledgeDraft,
    KnowledgeLink,
    KnowledgeObject,
    KnowledgeStatus,
    LinkRelation,
)

logger = logging.getLogger(__name__)

_CONTENT_FIELDS = {"title", "body", "tags"}
_UPDATABLE_FIELDS = _CONTENT_FIELDS | {"quality_score"}


def bump_patch(version: str) -> str:
    """'1.2.3' → '1.2.4'. Unparseable versions restart at 1.0.1."""
    parts = version.split(".")
    if len(parts) != 3 or not all(p.isdigit() for p in parts):
        return "1.0.1"
    major, minor, patch = (int(p) for p in parts)
    return f"{major}.{minor}.{patch + 1}"


class KnowledgeStore:
    def __init__(
        self,
        budget: TokenBudget | None = None,
        cache: TTLCache | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.budget = budget or TokenBudget()
        self.cache = cache
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._objects: dict[str, KnowledgeObject] = {}
        self._archive: dict[str, KnowledgeObject] = {}
        self._links: list[KnowledgeLink] = []
        self._audit: list[AuditEntry] = []
        self._sequence = 0

    # ── Validation ──

    def validate_draft(self, draft: KnowledgeDraft) -> list[str]:
        """Token budget and governance issues for a draft; empty when acceptable."""
        issues = []
        content = {"title": draft.title, "tags": draft.tags, "body": draft.body.model_dump(mode="json")}
        check = self.budget.check_object(content)
        if not check.valid:
            issues.append(f"Token budget exceeded: {check.message}")
        issues.extend(governance_issues(content))
        return issues

    def _new_id(self, kind: str, title: str) -> str:
        self._sequence += 1
        while True:
            seed = f"{kind}-{title}-{time.time_ns()}-{self._sequence}"
            object_id = f"{kind}-{hashlib.md5(seed.encode()).hexdigest()[:8]}"
            if object_id not in self._objects and object_id not in self._archive:
                return object_id
            self._sequence += 1

    def _invalidate(self) -> None:
        if self.cache is not None:
            self.cache.invalidate()

    def _record(self, object_id: str, action: str, user_id: str | None, reason: str | None, **changes: Any) -> None:
        self._audit.append(
            AuditEntry(
                object_id=object_id,
                action=action,
                user_id=user_id,
                reason=reason,
                changes=changes,
                timestamp=self._clock(),
            )
        )

    # ── CRUD ──

    async def create_object(
        self,
        draft: KnowledgeDraft,
        user_id: str | None = None,
        reason: str | None = None,
    ) -> KnowledgeObject:
        issues = self.validate_draft(draft)
        if issues:
            raise KnowledgeValidationError(issues)

        now = self._clock()
        obj = KnowledgeObject(
            id=self._new_id(draft.body.kind, draft.title),
            title=draft.title,
            body=draft.body,
            tags=tuple(draft.tags),
            version=draft.version,
            status=draft.status,
            quality_score=draft.quality_score,
            created_at=now,
            updated_at=now,
        )
        self._objects[obj.id] = obj
        self._record(obj.id, "create", user_id, reason, kind=obj.kind, version=obj.version)
        self._invalidate()
        logger.info("Created %s %s (%s)", obj.kind, obj.id, obj.title)
        return obj

    async def get_object(self, object_id: str) -> KnowledgeObject:
        obj = self._objects.get(object_id) or self._archive.get(object_id)
        if obj is None:
            raise ObjectNotFoundError(object_id)
        return obj

    async def list_objects(
        self,
        kind: str | None = None,
        status: KnowledgeStatus | None = None,
        min_quality: float = 0.0,
    ) -> list[KnowledgeObject]:
        return [
            o
            for o in self._objects.values()
            if (kind is None or o.kind == kind)
            and (status is None or o.status == status)
            and o.quality_score >= min_quality
        ]

    async def update_object(
        self,
        object_id: str,
        changes: dict[str, Any],
        user_id: str | None = None,
        reason: str | None = None,
    ) -> KnowledgeObject:
        current = self._objects.get(object_id)
        if current is None:
            raise ObjectNotFoundError(object_id)

        unknown = set(changes) - _UPDATABLE_FIELDS
        if unknown:
            raise KnowledgeValidationError([f"Fields cannot be updated: {', '.join(sorted(unknown))}"])

        try:
            draft = KnowledgeDraft(
                title=changes.get("title", current.title),
                body=changes.get("body", current.body.model_dump()),
                tags=changes.get("tags", list(current.tags)),
                status=current.status,
                version=current.version,
                quality_score=changes.get("quality_score", current.quality_score),
            )
        except ValidationError as e:
            raise KnowledgeValidationError([err["msg"] for err in e.errors()]) from e

        if draft.body.kind != current.kind:
            raise KnowledgeValidationError([f"Kind cannot change from {current.kind} to {draft.body.kind}"])
        issues = self.validate_draft(draft)
        if issues:
            raise KnowledgeValidationError(issues)

        now = self._clock()
        content_changed = (
            draft.title != current.title or draft.body != current.body or tuple(draft.tags) != current.tags
        )

        if content_changed:
            updated = KnowledgeObject(
                id=self._new_id(current.kind, draft.title),
                title=draft.title,
                body=draft.body,
                tags=tuple(draft.tags),
                version=bump_patch(current.version),
                status=current.status,
                quality_score=draft.quality_score,
                parent_id=current.id,
                created_at=now,
                updated_at=now,
            )
            del self._objects[current.id]
            self._archive[current.id] = current
            self._objects[updated.id] = updated
            self._record(
                updated.id, "update", user_id, reason,
                parent_id=current.id, version=updated.version, fields=sorted(changes),
            )
            logger.info("Versioned %s → %s (%s)", current.id, updated.id, updated.version)
        else:
            updated = current.model_copy(update={"quality_score": draft.quality_score, "updated_at": now})
            self._objects[current.id] = updated
            self._record(current.id, "update", user_id, reason, fields=sorted(changes))

        self._invalidate()
        return updated

    async def set_status(
        self,
        object_id: str,
        status: KnowledgeStatus,
        user_id: str | None = None,
        reason: str | None = None,
        quality_score: float | None = None,
    ) -> KnowledgeObject:
        current = self._objects.get(object_id)
        if current is None:
            raise ObjectNotFoundError(object_id)
        update: dict[str, Any] = {"status": status, "updated_at": self._clock()}
        if quality_score is not None:
            update["quality_score"] = max(0.0, min(1.0, quality_score))
        updated = current.model_copy(update=update)
        self._objects[object_id] = updated
        self._record(object_id, status, user_id, reason, previous=current.status)
        self._invalidate()
        return updated

    async def set_embedding(self, object_id: str, embedding: list[float]) -> KnowledgeObject:
        current = self._objects.get(object_id)
        if current is None:
            raise ObjectNotFoundError(object_id)
        updated = current.model_copy(update={"embedding": tuple(embedding)})
        self._objects[object_id] = updated
        self._invalidate()
        return updated

    async def delete_object(self, object_id: str, user_id: str | None = None, reason: str | None = None) -> None:
        if object_id not in self._objects:
            raise ObjectNotFoundError(object_id)
        del self._objects[object_id]
        self._links = [link for link in self._links if object_id not in (link.source_id, link.target_id)]
        self._record(object_id, "delete", user_id, reason)
        self._invalidate()

    async def get_history(self, object_id: str) -> list[KnowledgeObject]:
        """Newest first, following parent_id back to the original version."""
        chain = [await self.get_object(object_id)]
        while chain[-1].parent_id:
            parent = self._archive.get(chain[-1].parent_id) or self._objects.get(chain[-1].parent_id)
            if parent is None:
                break
            chain.append(parent)
        return chain

    # ── Links ──

    async def create_link(
        self,
        source_id: str,
        target_id: str,
        relation: LinkRelation,
        user_id: str | None = None,
    ) -> KnowledgeLink:
        await self.get_object(source_id)
        await self.get_object(target_id)
        if source_id == target_id:
            raise KnowledgeValidationError(["An object cannot link to itself"])
        for link in self._links:
            if (link.source_id, link.target_id, link.relation) == (source_id, target_id, relation):
                raise KnowledgeValidationError([f"Link already exists: {source_id} {relation} {target_id}"])

        link = KnowledgeLink(source_id=source_id, target_id=target_id, relation=relation, created_at=self._clock())
        self._links.append(link)
        self._record(source_id, "link", user_id, None, target_id=target_id, relation=relation)
        return link

    async def get_links(self, object_id: str) -> list[KnowledgeLink]:
        return [link for link in self._links if object_id in (link.source_id, link.target_id)]

    # ── Audit ──

    async def audit_log(self, object_id: str | None = None, limit: int = 100) -> list[AuditEntry]:
        entries = [e for e in self._audit if object_id is None or e.object_id == object_id]
        return entries[-limit:][::-1]

    def __len__(self) -> int:
        return len(self._objects)
