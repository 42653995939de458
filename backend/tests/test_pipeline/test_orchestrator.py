"""End-to-end tests for the generation pipeline (no LLM calls)."""

from __future__ import annotations

import pytest

from svgcraft.errors import PlanningError, QualityGateError
from svgcraft.models.intent import Constraints
from svgcraft.models.knowledge import GroundingData
from svgcraft.models.requests import CanvasSize, GenerationRequest
from svgcraft.pipeline.orchestrator import (
    FALLBACK_MODEL,
    FALLBACK_WARNING,
    GenerationPipeline,
    PipelineOptions,
)
from svgcraft.pipeline.quality_gate import QualityGate, QualityResult
from svgcraft.pipeline.repair import IssueKind, validate_document
from svgcraft.pipeline.synthesizer import DEFAULT_MODEL
from tests.conftest import make_component, make_document, make_intent, run


class _FailingRetrieval:
    async def retrieve_grounding(self, prompt, user_id=None):
        raise RuntimeError("store offline")


class _RejectingGate(QualityGate):
    def __init__(self, issues: list[str]) -> None:
        self.issues = issues

    def validate(self, document, intent):
        return QualityResult(passed=False, score=40, issues=list(self.issues))


class _FailingLLM:
    available = True

    async def normalize(self, prompt, context=None):
        raise ValueError("bad json")


def test_generates_sanitized_svg():
    response = run(GenerationPipeline().process(GenerationRequest(prompt="blue circle", seed=7)))
    assert response.metadata.model == DEFAULT_MODEL
    assert response.errors == []
    assert response.svg.startswith("<svg")
    assert "<circle" in response.svg
    assert len(response.layers) == 5
    assert all(c.attributes.get("stroke-width", 1) >= 1 for c in response.layers)


def test_same_seed_same_svg():
    pipeline = GenerationPipeline()
    request = GenerationRequest(prompt="scattered green leaves", seed=99)
    assert run(pipeline.process(request)).svg == run(pipeline.process(request)).svg


def test_canvas_size_flows_to_view_box():
    request = GenerationRequest(prompt="a circle", seed=1, size=CanvasSize(width=800, height=600))
    response = run(GenerationPipeline().process(request))
    assert 'viewBox="0 0 800 600"' in response.svg


def test_empty_prompt_zero_bounds_falls_back():
    request = GenerationRequest(prompt="", size=CanvasSize(width=0, height=0))
    response = run(GenerationPipeline().process(request))
    assert response.metadata.model == FALLBACK_MODEL
    assert FALLBACK_WARNING in response.warnings
    assert response.layers == []
    assert response.errors


def test_fallback_disabled_propagates_original_error():
    request = GenerationRequest(prompt="", size=CanvasSize(width=0, height=0))
    with pytest.raises(PlanningError):
        run(GenerationPipeline().process(request, options=PipelineOptions(fallback_to_rule_based=False)))


def test_llm_failure_falls_back_to_rules_silently():
    pipeline = GenerationPipeline(llm_normalizer=_FailingLLM())
    response = run(pipeline.process(GenerationRequest(prompt="blue circle", seed=3)))
    assert response.metadata.model == DEFAULT_MODEL
    assert FALLBACK_WARNING not in response.warnings
    assert response.errors == []


def test_retrieval_failure_degrades_to_empty_grounding():
    pipeline = GenerationPipeline(retrieval=_FailingRetrieval())
    response = run(pipeline.process(GenerationRequest(prompt="blue circle", seed=3)))
    assert response.metadata.model == DEFAULT_MODEL
    assert "Knowledge grounding unavailable" in response.warnings


def test_explicit_grounding_skips_retrieval():
    pipeline = GenerationPipeline(retrieval=_FailingRetrieval())
    response = run(pipeline.process(GenerationRequest(prompt="blue circle", seed=3), grounding=GroundingData()))
    assert "Knowledge grounding unavailable" not in response.warnings


def test_fallback_escapes_prompt():
    response = GenerationPipeline.fallback(GenerationRequest(prompt='<b>"x"</b>'))
    assert "&lt;b&gt;&quot;x&quot;&lt;/b&gt;" in response.svg
    assert response.metadata.palette == ["#2563eb"]


def test_quality_gate_failure_falls_back():
    pipeline = GenerationPipeline(quality_gate=_RejectingGate(["a", "b"]))
    response = run(pipeline.process(GenerationRequest(prompt="blue circle", seed=7)))
    assert response.metadata.model == FALLBACK_MODEL
    assert FALLBACK_WARNING in response.warnings
    assert response.errors == ["QA failed: a, b"]


def test_quality_gate_failure_propagates_without_fallback():
    pipeline = GenerationPipeline(quality_gate=_RejectingGate(["a", "b"]))
    options = PipelineOptions(fallback_to_rule_based=False)
    with pytest.raises(QualityGateError, match="QA failed: a, b") as exc:
        run(pipeline.process(GenerationRequest(prompt="blue circle", seed=7), options=options))
    assert exc.value.issues == ["a", "b"]


def test_low_score_without_issues_reports_score():
    pipeline = GenerationPipeline(quality_gate=_RejectingGate([]))
    response = run(pipeline.process(GenerationRequest(prompt="blue circle", seed=7)))
    assert response.errors == ["QA failed: score 40 below 70"]


def test_repair_loop_stops_at_max_retries():
    intent = make_intent(constraints=Constraints(max_elements=1, required_motifs=("circle", "star")))
    document = make_document([make_component("c1", motif="circle", cx=200.123, cy=200.0, r=20.0)])

    repaired = GenerationPipeline.validate_and_repair(document, intent, max_retries=1)

    remaining = {issue.kind for issue in validate_document(repaired, intent)}
    assert remaining == {IssueKind.MISSING_MOTIF}
    assert repaired.components[0].attributes["cx"] == 200.12
    assert [c.metadata.motif for c in repaired.components] == ["circle"]


def test_zero_retries_returns_document_untouched():
    intent = make_intent()
    document = make_document([make_component("c1", cx=200.123, cy=200.0, r=20.0)])
    repaired = GenerationPipeline.validate_and_repair(document, intent, max_retries=0)
    assert repaired.components[0].attributes["cx"] == 200.123
    assert [i.kind for i in validate_document(repaired, intent)] == [IssueKind.EXCESS_PRECISION]
