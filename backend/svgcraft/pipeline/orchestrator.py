"""Generation pipeline — prompt → validated, sanitized SVG with a deterministic fallback."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

from svgcraft.errors import QualityGateError
from svgcraft.llm.intent_normalizer import LLMNormalizer
from svgcraft.models.document import AISVGDocument, DocumentMetadata
from svgcraft.models.intent import DesignIntent
from svgcraft.models.knowledge import GroundingData
from svgcraft.models.plan import CompositionPlan
from svgcraft.models.requests import GenerationRequest
from svgcraft.models.responses import GenerationResponse
from svgcraft.pipeline.normalizer import NormalizationContext, RuleBasedNormalizer
from svgcraft.pipeline.planner import CompositionPlanner
from svgcraft.pipeline.quality_gate import PASS_THRESHOLD, QualityGate
from svgcraft.pipeline.random_source import RandomSource
from svgcraft.pipeline.repair import repair_document, validate_document
from svgcraft.pipeline.synthesizer import DEFAULT_MODEL, SVGSynthesizer, SynthesisContext
from svgcraft.svg.sanitizer import sanitize_svg
from svgcraft.svg.serializer import render_fallback, render_svg

if TYPE_CHECKING:
    from svgcraft.knowledge.retrieval import RetrievalEngine

logger = logging.getLogger(__name__)

FALLBACK_WARNING = "Used fallback generation due to pipeline failure"
FALLBACK_MODEL = "fallback"
FALLBACK_PALETTE = ["#2563eb"]
DEFAULT_SIZE = 400.0


@dataclass
class PipelineOptions:
    temperature: float = 0.2
    max_retries: int = 2
    fallback_to_rule_based: bool = True


class GenerationPipeline:
    """Normalize → Plan → Synthesize → [Validate → Repair]×N → QualityGate → Render."""

    def __init__(
        self,
        retrieval: RetrievalEngine | None = None,
        llm_normalizer: LLMNormalizer | None = None,
        rule_normalizer: RuleBasedNormalizer | None = None,
        synthesizer: SVGSynthesizer | None = None,
        quality_gate: QualityGate | None = None,
        options: PipelineOptions | None = None,
        default_size: float = DEFAULT_SIZE,
    ) -> None:
        self.retrieval = retrieval
        self.llm_normalizer = llm_normalizer
        self.rule_normalizer = rule_normalizer or RuleBasedNormalizer()
        self.synthesizer = synthesizer or SVGSynthesizer()
        self.quality_gate = quality_gate or QualityGate()
        self.options = options or PipelineOptions()
        self.default_size = default_size

    async def process(
        self,
        request: GenerationRequest,
        grounding: GroundingData | None = None,
        options: PipelineOptions | None = None,
    ) -> GenerationResponse:
        options = options or self.options
        start = time.perf_counter()
        try:
            response = await self._run(request, grounding, options)
        except Exception as e:
            if not options.fallback_to_rule_based:
                raise
            logger.warning("Pipeline failed, using fallback: %s", e)
            return self.fallback(request, e)

        logger.info(
            "Generated %d layers in %.0fms (%d warnings)",
            len(response.layers),
            (time.perf_counter() - start) * 1000,
            len(response.warnings),
        )
        return response

    async def _run(
        self,
        request: GenerationRequest,
        grounding: GroundingData | None,
        options: PipelineOptions,
    ) -> GenerationResponse:
        warnings: list[str] = []

        t0 = time.perf_counter()
        intent = await self.normalize(request, options)
        logger.debug("  normalize completed in %.1fms", (time.perf_counter() - t0) * 1000)

        if grounding is None:
            grounding = await self._grounding(request, warnings)

        t0 = time.perf_counter()
        plan = self.plan(intent, grounding, request)
        logger.debug("  plan completed in %.1fms", (time.perf_counter() - t0) * 1000)

        document = self.synthesizer.synthesize(
            plan,
            grounding,
            SynthesisContext(
                prompt=request.prompt,
                seed=request.seed,
                model=request.model or DEFAULT_MODEL,
                user_id=request.user_id,
            ),
        )

        document = self.validate_and_repair(document, intent, options.max_retries)

        quality = self.quality_gate.validate(document, intent)
        if not quality.passed:
            issues = quality.issues or [f"score {quality.score} below {PASS_THRESHOLD}"]
            raise QualityGateError(issues)
        warnings.extend(quality.warnings)

        svg = sanitize_svg(render_svg(document))
        return GenerationResponse(
            svg=svg,
            metadata=document.metadata,
            layers=document.components,
            warnings=warnings,
        )

    # ── Stages ──

    async def normalize(self, request: GenerationRequest, options: PipelineOptions) -> DesignIntent:
        context = NormalizationContext(default_palette=request.palette, temperature=options.temperature)
        if self.llm_normalizer is not None and self.llm_normalizer.available:
            try:
                return await self.llm_normalizer.normalize(request.prompt, context)
            except Exception as e:
                logger.warning("LLM normalizer failed, using rule-based: %s", e)
        return self.rule_normalizer.normalize(request.prompt, context)

    def plan(
        self,
        intent: DesignIntent,
        grounding: GroundingData | None,
        request: GenerationRequest,
    ) -> CompositionPlan:
        # Fresh planner per request: the random source is per-request state.
        planner = CompositionPlanner(RandomSource(request.seed))
        size = request.size
        target = (size.width, size.height) if size else (self.default_size, self.default_size)
        return planner.plan(intent, grounding, target)

    @staticmethod
    def validate_and_repair(document: AISVGDocument, intent: DesignIntent, max_retries: int) -> AISVGDocument:
        """Bounded repair loop. Returns the best-effort document even if issues remain."""
        for attempt in range(max_retries):
            issues = validate_document(document, intent)
            if not issues:
                return document
            logger.debug("  repair pass %d: %d issues", attempt + 1, len(issues))
            document = repair_document(document, issues, intent)

        remaining = validate_document(document, intent)
        if remaining:
            logger.warning("Repair left %d issues after %d passes", len(remaining), max_retries)
        return document

    async def _grounding(self, request: GenerationRequest, warnings: list[str]) -> GroundingData:
        if self.retrieval is None:
            return GroundingData()
        try:
            return await self.retrieval.retrieve_grounding(request.prompt, request.user_id)
        except Exception as e:
            logger.warning("Grounding retrieval failed: %s", e)
            warnings.append("Knowledge grounding unavailable")
            return GroundingData()

    @staticmethod
    def fallback(request: GenerationRequest, error: Exception | None = None) -> GenerationResponse:
        return GenerationResponse(
            svg=render_fallback(request.prompt),
            metadata=DocumentMetadata(
                prompt=request.prompt,
                seed=request.seed,
                palette=list(request.palette) if request.palette else list(FALLBACK_PALETTE),
                description="Fallback generation",
                model=FALLBACK_MODEL,
            ),
            layers=[],
            warnings=[FALLBACK_WARNING],
            errors=[str(error)] if error else [],
        )
