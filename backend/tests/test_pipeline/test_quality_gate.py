"""Tests for the heuristic quality gate."""

from __future__ import annotations

from svgcraft.models.intent import Constraints
from svgcraft.pipeline.quality_gate import PASS_THRESHOLD, QualityGate, component_geometry
from tests.conftest import make_component, make_document, make_intent

gate = QualityGate()


def test_clean_document_scores_full_marks():
    doc = make_document([make_component("c0", motif="circle"), make_component("c1", motif="circle")])
    result = gate.validate(doc, make_intent(motifs=("circle",)))
    assert result.passed
    assert result.score == 100
    assert result.issues == []


def test_empty_document_fails():
    result = gate.validate(make_document([]), make_intent())
    assert not result.passed
    assert "Document has no components" in result.issues


def test_stroke_only_violation_is_an_issue():
    doc = make_document([make_component("c0")])
    result = gate.validate(doc, make_intent(constraints=Constraints(stroke_only=True)))
    assert not result.passed
    assert any("stroke-only" in issue for issue in result.issues)


def test_missing_required_motif_fails():
    doc = make_document([make_component("c0", motif="circle")])
    intent = make_intent(motifs=("circle",), constraints=Constraints(required_motifs=("star",)))
    result = gate.validate(doc, intent)
    assert not result.passed
    assert result.metrics["motif"] == 80


def test_out_of_bounds_components():
    doc = make_document(
        [
            make_component("c0", cx=390.0, cy=200.0, r=50.0),
            make_component("c1", cx=-30.0, cy=200.0, r=50.0),
        ]
    )
    result = gate.validate(doc, make_intent())
    assert "2 components are out of bounds" in result.issues
    assert result.score < PASS_THRESHOLD + 30


def test_off_palette_colors_only_warn():
    doc = make_document([make_component("c0", cx=100.0, cy=100.0, r=10.0, fill="#ff00ff")])
    result = gate.validate(doc, make_intent())
    assert result.passed
    assert any("outside palette" in w for w in result.warnings)


def test_invalid_component_attributes():
    doc = make_document([make_component("c0", "path", d="")])
    result = gate.validate(doc, make_intent())
    assert not result.passed
    assert "1 components have invalid attributes" in result.issues


def test_component_geometry():
    circle = component_geometry(make_component("c0", cx=10.0, cy=10.0, r=5.0))
    assert circle.bounds == (5.0, 5.0, 15.0, 15.0)
    rect = component_geometry(make_component("r", "rect", x=1.0, y=2.0, width=3.0, height=4.0))
    assert rect.area == 12.0
    assert component_geometry(make_component("p", "path", d="M0 0")) is None
