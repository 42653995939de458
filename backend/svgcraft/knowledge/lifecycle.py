"""Knowledge object lifecycle: compatibility tests, activation, deprecation, analytics."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timezone

from svgcraft.errors import CompatibilityError
from svgcraft.knowledge.governance import governance_issues
from svgcraft.knowledge.ranking import FRESHNESS_THRESHOLD, tag_similarity
from svgcraft.knowledge.store import KnowledgeStore
from svgcraft.models.knowledge import KnowledgeObject
from svgcraft.models.responses import CompatibilityReport, CompatibilityTestResult, KnowledgeAnalytics

logger = logging.getLogger(__name__)

CANONICAL_PROMPTS = (
    "Create a simple geometric icon",
    "Design a Mediterranean-style architectural element",
    "Generate an abstract pattern with flowing lines",
    "Make a minimalist logo with clean shapes",
    "Create a decorative border with organic motifs",
)

PROMPT_PASS_SCORE = 0.5
AVERAGE_PASS_SCORE = 0.7
STALE_QUALITY_THRESHOLD = 0.3
# Structurally incomplete objects count half
_INVALID_STRUCTURE_FACTOR = 0.5


def structure_issues(obj: KnowledgeObject) -> list[str]:
    """Structural checks beyond schema validation, which already ran at the store boundary."""
    issues = []
    if not obj.tags:
        issues.append("Object has no tags")
    if not obj.title.strip():
        issues.append("Object has no title")
    return issues


class LifecycleManager:
    def __init__(self, store: KnowledgeStore, clock: Callable[[], datetime] | None = None) -> None:
        self.store = store
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    async def run_compatibility_tests(self, object_id: str) -> CompatibilityReport:
        obj = await self.store.get_object(object_id)
        structural = structure_issues(obj)
        issues = structural + governance_issues(obj)
        factor = _INVALID_STRUCTURE_FACTOR if structural else 1.0

        results = []
        for prompt in CANONICAL_PROMPTS:
            similarity = tag_similarity(obj, prompt)
            score = similarity * factor
            results.append(
                CompatibilityTestResult(
                    prompt=prompt,
                    similarity=similarity,
                    score=score,
                    passed=score >= PROMPT_PASS_SCORE,
                )
            )

        average = sum(r.score for r in results) / len(results)
        passed = average >= AVERAGE_PASS_SCORE and not issues
        logger.info("Compatibility %s: avg=%.2f passed=%s", object_id, average, passed)
        return CompatibilityReport(
            object_id=object_id,
            passed=passed,
            average_score=average,
            results=results,
            issues=issues,
        )

    async def activate(
        self,
        object_id: str,
        user_id: str | None = None,
        reason: str | None = None,
        skip_tests: bool = False,
    ) -> KnowledgeObject:
        """Promote to active. Unless skipped, compatibility tests must pass and set the quality score."""
        if skip_tests:
            return await self.store.set_status(object_id, "active", user_id, reason or "manual activation")

        report = await self.run_compatibility_tests(object_id)
        if not report.passed:
            raise CompatibilityError(object_id, report.issues)
        return await self.store.set_status(
            object_id,
            "active",
            user_id,
            reason or "passed compatibility tests",
            quality_score=report.average_score,
        )

    async def deprecate(self, object_id: str, user_id: str | None = None, reason: str | None = None) -> KnowledgeObject:
        return await self.store.set_status(object_id, "deprecated", user_id, reason or "manual deprecation")

    def is_stale(self, obj: KnowledgeObject, now: datetime | None = None) -> bool:
        now = now or self._clock()
        if obj.updated_at is None:
            return True
        updated = obj.updated_at if obj.updated_at.tzinfo else obj.updated_at.replace(tzinfo=timezone.utc)
        return now - updated > FRESHNESS_THRESHOLD

    async def deprecate_stale_objects(self, now: datetime | None = None) -> list[str]:
        """Deprecate active objects that are both stale and below the quality threshold."""
        now = now or self._clock()
        deprecated = []
        for obj in await self.store.list_objects(status="active"):
            if self.is_stale(obj, now) and obj.quality_score < STALE_QUALITY_THRESHOLD:
                await self.store.set_status(obj.id, "deprecated", reason="stale and low quality")
                deprecated.append(obj.id)
        if deprecated:
            logger.info("Deprecated %d stale objects", len(deprecated))
        return deprecated

    async def analytics(self) -> KnowledgeAnalytics:
        objects = await self.store.list_objects()
        by_kind: dict[str, int] = {}
        by_status: dict[str, int] = {}
        for o in objects:
            by_kind[o.kind] = by_kind.get(o.kind, 0) + 1
            by_status[o.status] = by_status.get(o.status, 0) + 1
        now = self._clock()
        return KnowledgeAnalytics(
            total=len(objects),
            by_kind=by_kind,
            by_status=by_status,
            average_quality=sum(o.quality_score for o in objects) / len(objects) if objects else 0.0,
            stale_candidates=sum(
                1
                for o in objects
                if o.status == "active" and self.is_stale(o, now) and o.quality_score < STALE_QUALITY_THRESHOLD
            ),
        )
