"""LLM-backed intent normalizer. Any failure surfaces as NormalizationError."""

from __future__ import annotations

import json
import logging
import re

from pydantic import ValidationError

from svgcraft.errors import NormalizationError
from svgcraft.llm.client import get_completion, llm_configured
from svgcraft.llm.prompts import get_prompt_template
from svgcraft.models.intent import DesignIntent
from svgcraft.pipeline.normalizer import DEFAULT_PALETTE, NormalizationContext

logger = logging.getLogger(__name__)


def parse_intent(text: str) -> DesignIntent:
    """Parse LLM output (plain JSON or a fenced ```json block) into a DesignIntent."""
    fenced = re.search(r"```(?:json)?\s*\n(.*?)\n```", text, re.DOTALL)
    if fenced:
        text = fenced.group(1)
    else:
        braces = re.search(r"\{.*\}", text, re.DOTALL)
        if braces:
            text = braces.group(0)

    try:
        data = json.loads(text.strip())
    except json.JSONDecodeError as e:
        raise NormalizationError(f"LLM output is not JSON: {e}") from e

    try:
        return DesignIntent.model_validate(data)
    except ValidationError as e:
        raise NormalizationError(f"LLM intent failed validation: {e.error_count()} errors") from e


class LLMNormalizer:
    def __init__(self, model: str | None = None) -> None:
        self.model = model

    @property
    def available(self) -> bool:
        return llm_configured()

    async def normalize(self, prompt: str, context: NormalizationContext | None = None) -> DesignIntent:
        context = context or NormalizationContext()
        palette = context.default_palette or list(DEFAULT_PALETTE)
        system = get_prompt_template("normalize").format(default_palette=", ".join(palette))

        raw = await get_completion(
            system=system,
            user=prompt,
            task="normalize",
            temperature=context.temperature,
            model=self.model,
        )
        intent = parse_intent(raw)
        logger.debug("LLM intent: %d motifs, %s layout", len(intent.motifs), intent.layout.arrangement)
        return intent
