"""Governance checks for knowledge objects: content policy, neutrality, bias."""

from __future__ import annotations

import json
import re
from typing import Any

from pydantic import BaseModel

SENSITIVE_KEYWORDS = (
    "violence", "hate", "discrimination", "explicit", "inappropriate",
    "offensive", "harmful", "dangerous", "illegal",
)

NON_NEUTRAL_KEYWORDS = (
    "political", "religious", "controversial", "personal", "private",
    "company", "brand", "commercial", "advertisement",
)

BIAS_INDICATORS = (
    "always", "never", "all", "none", "only", "must", "should not",
    "better than", "worse than", "superior", "inferior",
)

# More than this many bias indicators marks content as biased.
BIAS_LIMIT = 2


def searchable_text(content: Any) -> str:
    """Lower-cased JSON rendering of an object, used for keyword scans."""
    if isinstance(content, BaseModel):
        content = content.model_dump(mode="json", exclude={"embedding"})
    return json.dumps(content, ensure_ascii=False, default=str).lower()


def _contains_word(text: str, phrase: str) -> bool:
    return re.search(rf"\b{re.escape(phrase)}\b", text) is not None


def policy_violations(text: str) -> list[str]:
    return [k for k in SENSITIVE_KEYWORDS if _contains_word(text, k)]


def non_neutral_terms(text: str) -> list[str]:
    return [k for k in NON_NEUTRAL_KEYWORDS if _contains_word(text, k)]


def bias_indicators(text: str) -> list[str]:
    return [k for k in BIAS_INDICATORS if _contains_word(text, k)]


def governance_issues(content: Any) -> list[str]:
    """All reasons a title/body/tags bundle is unfit for the knowledge base."""
    text = searchable_text(content)
    issues = []

    violations = policy_violations(text)
    if violations:
        issues.append(f"Content policy violation: {', '.join(violations)}")

    non_neutral = non_neutral_terms(text)
    if non_neutral:
        issues.append(f"Content is not design-neutral: {', '.join(non_neutral)}")

    indicators = bias_indicators(text)
    if len(indicators) > BIAS_LIMIT:
        issues.append(f"Potential bias detected: {', '.join(indicators)}")

    return issues


def passes_governance(content: Any) -> bool:
    return not governance_issues(content)
