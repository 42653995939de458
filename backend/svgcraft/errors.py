"""Request-scoped error types. None of these are fatal to the process."""

from __future__ import annotations


class SvgcraftError(Exception):
    """Base class for all svgcraft errors."""


class NormalizationError(SvgcraftError):
    """The LLM normalizer could not produce a DesignIntent."""


class PlanningError(SvgcraftError):
    """A composition plan failed its schema check."""


class QualityGateError(SvgcraftError):
    def __init__(self, issues: list[str]) -> None:
        self.issues = list(issues)
        super().__init__("QA failed: " + ", ".join(self.issues))


class KnowledgeValidationError(SvgcraftError):
    """A knowledge object was rejected at write time."""

    def __init__(self, issues: list[str]) -> None:
        self.issues = list(issues)
        super().__init__("Knowledge object rejected: " + "; ".join(self.issues))


class ObjectNotFoundError(SvgcraftError):
    def __init__(self, object_id: str) -> None:
        self.object_id = object_id
        super().__init__(f"Knowledge object not found: {object_id}")


class CompatibilityError(SvgcraftError):
    """Activation refused because compatibility tests failed."""

    def __init__(self, object_id: str, issues: list[str]) -> None:
        self.object_id = object_id
        self.issues = list(issues)
        detail = "; ".join(self.issues) if self.issues else "average score below threshold"
        super().__init__(f"Compatibility tests failed for {object_id}: {detail}")


class EmbeddingError(SvgcraftError):
    """The embedding provider failed or is not configured."""


class EventNotFoundError(SvgcraftError):
    def __init__(self, event_id: int) -> None:
        self.event_id = event_id
        super().__init__(f"Generation event not found: {event_id}")
