"""Task → model selection. Cheap models for intent extraction, mid-tier for open-ended generation."""

from __future__ import annotations

from svgcraft.config import settings

_TASK_MODEL_MAP = {
    "normalize": "cheap",
    "generate": "mid",
}


def get_model_for_task(task: str, override: str | None = None) -> str:
    if override:
        return override
    tier = _TASK_MODEL_MAP.get(task, "cheap")
    if tier == "cheap":
        return settings.model_cheap
    return settings.model_mid
