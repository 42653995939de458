"""Tests for SVG rendering, sanitizing and primitive shapes."""

from __future__ import annotations

import math

import pytest

from svgcraft.svg import shapes
from svgcraft.svg.sanitizer import sanitize_svg
from svgcraft.svg.serializer import render_attributes, render_fallback, render_svg
from svgcraft.utils.math_helpers import cosine_similarity, decimal_places, format_number, is_number, round2
from tests.conftest import make_component, make_document


# ---------------------------------------------------------------------------
# Math helpers
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("value,text", [(200.0, "200"), (12.5, "12.5"), (1.005, "1"), (0.333333, "0.33"), (-3.10, "-3.1")])
def test_format_number(value, text):
    assert format_number(value) == text


def test_decimal_places():
    assert decimal_places(1.0) == 0
    assert decimal_places(1.25) == 2
    assert decimal_places(1.255) == 3
    assert decimal_places(math.inf) == 0


def test_is_number_excludes_bool():
    assert is_number(1) and is_number(1.5)
    assert not is_number(True) and not is_number("1")


def test_round2():
    assert round2(3.14159) == 3.14


def test_cosine_similarity():
    assert cosine_similarity([1, 0], [1, 0]) == pytest.approx(1.0)
    assert cosine_similarity([1, 0], [0, 1]) == pytest.approx(0.0)
    assert cosine_similarity([0, 0], [1, 1]) == 0.0
    assert cosine_similarity([1, 2], [1, 2, 3]) == 0.0


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------

def test_attribute_order_is_stable():
    text = render_attributes({"stroke": "#000", "zeta": "z", "r": 5.0, "cx": 1.5, "cy": 2.0})
    assert text == 'cx="1.5" cy="2" r="5" stroke="#000" zeta="z"'


def test_render_orders_by_z_index():
    back = make_component("back")
    back.z_index = 1
    front = make_component("front")
    front.z_index = 9
    svg = render_svg(make_document([front, back]))
    assert svg.index('id="back"') < svg.index('id="front"')
    assert svg.startswith('<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 400 400"')


def test_render_background_and_title():
    doc = make_document([make_component("c0")])
    doc.background = "#fafafa"
    svg = render_svg(doc, title="A & B")
    assert '<rect width="100%" height="100%" fill="#fafafa"/>' in svg
    assert "<title>A &amp; B</title>" in svg


def test_fallback_markup():
    svg = render_fallback("sun & <moon>")
    assert '<circle cx="200" cy="200" r="100" fill="#2563eb"' in svg
    assert "Fallback: sun &amp; &lt;moon&gt;" in svg
    assert sanitize_svg(svg)


# ---------------------------------------------------------------------------
# Sanitizer
# ---------------------------------------------------------------------------

def test_sanitizer_strips_scripts_and_handlers():
    dirty = (
        '<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 10 10">'
        '<script>alert(1)</script>'
        '<circle cx="5" cy="5" r="2" onclick="evil()"/>'
        '<foreignObject><p>hi</p></foreignObject>'
        "</svg>"
    )
    clean = sanitize_svg(dirty)
    assert "script" not in clean
    assert "onclick" not in clean
    assert "foreignObject" not in clean
    assert "<circle" in clean


def test_sanitizer_clamps_stroke_and_rounds():
    clean = sanitize_svg(
        '<svg xmlns="http://www.w3.org/2000/svg"><line x1="0.12345" y1="0" x2="5" y2="5" stroke-width="0.2"/></svg>'
    )
    assert 'stroke-width="1"' in clean
    assert 'x1="0.12"' in clean


def test_sanitizer_rejects_non_svg():
    with pytest.raises(ValueError):
        sanitize_svg("<html/>")
    with pytest.raises(ValueError):
        sanitize_svg("<not-svg")


# ---------------------------------------------------------------------------
# Shapes
# ---------------------------------------------------------------------------

def test_circle_and_rect_centered():
    assert shapes.circle(50, 50, 20, 40) == {"cx": 50, "cy": 50, "r": 10}
    assert shapes.rect(50, 50, 20, 10) == {"x": 40, "y": 45, "width": 20, "height": 10}


def test_star_points_alternate_radii():
    pts = shapes.star_points(0, 0, 10).split()
    assert len(pts) == 10
    assert pts[0] == "0,-10"


def test_scale_points_maps_template_box():
    assert shapes.scale_points("0,0 100,100", 200, 200, 50, 50) == "175,175 225,225"


def test_template_transform():
    assert shapes.template_transform(200, 200, 50, 50) == "translate(175 175) scale(0.5 0.5)"


def test_path_for_unknown_motif_is_curve():
    assert shapes.path_for_motif("mystery", 0, 0, 10, 10) == shapes.curve_path(0, 0, 10, 10)


def test_sanitizer_strips_script_urls_from_any_attribute():
    clean = sanitize_svg(
        '<svg xmlns="http://www.w3.org/2000/svg">'
        '<rect x="1" y="1" width="4" height="4" fill=" JavaScript:alert(1)" stroke="#333333"/>'
        '<path d="M0 0 L5 5" href="data:text/html,hi" mask="javascript:void(0)"/>'
        "</svg>"
    )
    assert "javascript" not in clean.lower()
    assert "data:" not in clean
    assert 'stroke="#333333"' in clean
    assert 'd="M0 0 L5 5"' in clean
