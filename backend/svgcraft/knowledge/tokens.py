"""Token estimation, budget enforcement and usage/cost metrics."""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel

from svgcraft.models.knowledge import GroundingData, MotifBody

logger = logging.getLogger(__name__)

MAX_OBJECT_TOKENS = 500
MAX_GROUNDING_TOKENS = 3000

GROUNDING_CAPS = {"motifs": 6, "glossary": 3, "fewshot": 1}

# USD per 1K tokens
PRICING = {
    "input": 0.03,
    "output": 0.06,
    "embedding": 0.00002,
}

_STRUCTURAL_CHARS = set('{}[]":,')


def _as_text(content: Any) -> str:
    if isinstance(content, str):
        return content
    if isinstance(content, BaseModel):
        return content.model_dump_json(exclude_none=True)
    return json.dumps(content, ensure_ascii=False, default=str)


def _drop_component(data: GroundingData, motif: MotifBody) -> None:
    """Reusable components travel with their motif."""
    if motif.component is not None and motif.component in data.components:
        data.components.remove(motif.component)


def estimate_tokens(content: Any) -> int:
    """~4 chars per token; structured content pays 0.1 token per structural character."""
    text = _as_text(content)
    tokens = len(text) / 4
    if not isinstance(content, str):
        tokens += 0.1 * sum(1 for ch in text if ch in _STRUCTURAL_CHARS)
    return math.ceil(tokens)


def calculate_cost(input_tokens: int, output_tokens: int = 0, embedding_tokens: int = 0) -> float:
    return (
        input_tokens / 1000 * PRICING["input"]
        + output_tokens / 1000 * PRICING["output"]
        + embedding_tokens / 1000 * PRICING["embedding"]
    )


@dataclass
class BudgetCheck:
    valid: bool
    tokens: int
    limit: int

    @property
    def message(self) -> str:
        return f"{self.tokens} tokens exceeds limit of {self.limit}" if not self.valid else "ok"


@dataclass
class OptimizationResult:
    original_tokens: int
    optimized_tokens: int
    removed: dict[str, int]

    @property
    def saved_tokens(self) -> int:
        return self.original_tokens - self.optimized_tokens


class TokenBudget:
    """Process-wide usage accounting. Counters are last-write-wins."""

    def __init__(
        self,
        max_object_tokens: int = MAX_OBJECT_TOKENS,
        max_grounding_tokens: int = MAX_GROUNDING_TOKENS,
    ) -> None:
        self.max_object_tokens = max_object_tokens
        self.max_grounding_tokens = max_grounding_tokens
        self.total_tokens = 0
        self.cached_tokens = 0
        self.requests = 0
        self.cache_hits = 0

    def check_object(self, content: Any) -> BudgetCheck:
        tokens = estimate_tokens(content)
        return BudgetCheck(valid=tokens <= self.max_object_tokens, tokens=tokens, limit=self.max_object_tokens)

    def optimize_grounding(self, grounding: GroundingData) -> tuple[GroundingData, OptimizationResult]:
        """Apply per-section caps, then drop trailing motifs/glossary until under the total cap."""
        original = estimate_tokens(grounding)
        removed = {section: 0 for section in GROUNDING_CAPS}

        data = grounding.model_copy(deep=True)
        for section, cap in GROUNDING_CAPS.items():
            items = getattr(data, section)
            if len(items) > cap:
                removed[section] += len(items) - cap
                if section == "motifs":
                    for motif in items[cap:]:
                        _drop_component(data, motif)
                setattr(data, section, items[:cap])

        while estimate_tokens(data) > self.max_grounding_tokens and (data.glossary or data.motifs):
            section = "glossary" if data.glossary else "motifs"
            item = getattr(data, section).pop()
            removed[section] += 1
            if section == "motifs":
                _drop_component(data, item)

        optimized = estimate_tokens(data)
        if optimized < original:
            logger.debug("Grounding trimmed %d → %d tokens", original, optimized)
        return data, OptimizationResult(original, optimized, removed)

    def record_usage(self, tokens: int, from_cache: bool = False) -> None:
        self.requests += 1
        self.total_tokens += tokens
        if from_cache:
            self.cache_hits += 1
            self.cached_tokens += tokens

    def metrics(self) -> dict[str, float]:
        return {
            "total_tokens": self.total_tokens,
            "cached_tokens": self.cached_tokens,
            "requests": self.requests,
            "cache_hits": self.cache_hits,
            "estimated_cost_usd": round(calculate_cost(self.total_tokens - self.cached_tokens), 6),
            "saved_cost_usd": round(calculate_cost(self.cached_tokens), 6),
        }
