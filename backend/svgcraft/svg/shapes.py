"""Primitive geometry builders. Every emitted number is rounded to 2 decimals."""

from __future__ import annotations

import math
from collections.abc import Callable

from svgcraft.utils.math_helpers import format_number, round2

# Reusable components are authored in a 100x100 box centered on (50, 50).
TEMPLATE_BOX = 100.0

Attributes = dict[str, str | float]


def _pt(x: float, y: float) -> str:
    return f"{format_number(x)},{format_number(y)}"


def circle(cx: float, cy: float, width: float, height: float) -> Attributes:
    return {"cx": round2(cx), "cy": round2(cy), "r": round2(min(width, height) / 2)}


def rect(cx: float, cy: float, width: float, height: float) -> Attributes:
    return {
        "x": round2(cx - width / 2),
        "y": round2(cy - height / 2),
        "width": round2(width),
        "height": round2(height),
    }


def ellipse(cx: float, cy: float, width: float, height: float) -> Attributes:
    return {"cx": round2(cx), "cy": round2(cy), "rx": round2(width / 2), "ry": round2(height / 2)}


def line(cx: float, cy: float, width: float, height: float) -> Attributes:
    return {
        "x1": round2(cx - width / 2),
        "y1": round2(cy),
        "x2": round2(cx + width / 2),
        "y2": round2(cy),
    }


def triangle_points(cx: float, cy: float, width: float, height: float) -> str:
    return " ".join(
        [
            _pt(cx, cy - height / 2),
            _pt(cx - width / 2, cy + height / 2),
            _pt(cx + width / 2, cy + height / 2),
        ]
    )


def regular_polygon_points(cx: float, cy: float, radius: float, sides: int) -> str:
    pts = []
    for i in range(sides):
        angle = 2 * math.pi * i / sides - math.pi / 2
        pts.append(_pt(cx + math.cos(angle) * radius, cy + math.sin(angle) * radius))
    return " ".join(pts)


def star_points(cx: float, cy: float, outer: float, inner: float | None = None, tips: int = 5) -> str:
    """Alternating outer/inner vertices, first tip pointing up."""
    inner = outer / 2 if inner is None else inner
    pts = []
    for i in range(tips * 2):
        angle = i * math.pi / tips - math.pi / 2
        r = outer if i % 2 == 0 else inner
        pts.append(_pt(cx + math.cos(angle) * r, cy + math.sin(angle) * r))
    return " ".join(pts)


def star_path(cx: float, cy: float, width: float, height: float) -> str:
    pts = star_points(cx, cy, width / 2, width / 4).split(" ")
    return "M" + " L".join(pts) + " Z"


def leaf_path(cx: float, cy: float, width: float, height: float) -> str:
    w, h = width, height
    return (
        f"M{_pt(cx, cy - h / 2)} "
        f"Q{_pt(cx + w / 4, cy - h / 4)} {_pt(cx + w / 8, cy)} "
        f"Q{_pt(cx + w / 4, cy + h / 4)} {_pt(cx, cy + h / 2)} "
        f"Q{_pt(cx - w / 4, cy + h / 4)} {_pt(cx - w / 8, cy)} "
        f"Q{_pt(cx - w / 4, cy - h / 4)} {_pt(cx, cy - h / 2)} Z"
    )


def wave_path(cx: float, cy: float, width: float, height: float) -> str:
    w, h = width, height
    return (
        f"M{_pt(cx - w / 2, cy)} "
        f"Q{_pt(cx - w / 4, cy - h / 2)} {_pt(cx, cy)} "
        f"Q{_pt(cx + w / 4, cy + h / 2)} {_pt(cx + w / 2, cy)}"
    )


def arch_path(cx: float, cy: float, width: float, height: float) -> str:
    w, h = width, height
    r = w / 2
    return (
        f"M{_pt(cx - r, cy + h / 2)} "
        f"L{_pt(cx - r, cy)} "
        f"A{format_number(r)},{format_number(r)} 0 0 1 {_pt(cx + r, cy)} "
        f"L{_pt(cx + r, cy + h / 2)}"
    )


def curve_path(cx: float, cy: float, width: float, height: float) -> str:
    return f"M{_pt(cx - width / 2, cy)} Q{_pt(cx, cy - height / 2)} {_pt(cx + width / 2, cy)}"


# Motif → (element, attribute builder). Matched case-insensitively on the motif name.
ShapeBuilder = Callable[[float, float, float, float], Attributes]

MOTIF_LIBRARY: dict[str, tuple[str, ShapeBuilder]] = {
    "star": ("polygon", lambda cx, cy, w, h: {"points": star_points(cx, cy, w / 2)}),
    "leaf": ("path", lambda cx, cy, w, h: {"d": leaf_path(cx, cy, w, h)}),
    "wave": ("path", lambda cx, cy, w, h: {"d": wave_path(cx, cy, w, h)}),
    "curve": ("path", lambda cx, cy, w, h: {"d": curve_path(cx, cy, w, h)}),
    "arch": ("path", lambda cx, cy, w, h: {"d": arch_path(cx, cy, w, h)}),
    "sun": ("circle", circle),
    "moon": ("circle", circle),
    "diamond": ("polygon", lambda cx, cy, w, h: {"points": regular_polygon_points(cx, cy, min(w, h) / 2, 4)}),
    "hexagon": ("polygon", lambda cx, cy, w, h: {"points": regular_polygon_points(cx, cy, min(w, h) / 2, 6)}),
    "square": ("rect", rect),
    "triangle": ("polygon", lambda cx, cy, w, h: {"points": triangle_points(cx, cy, w, h)}),
}

# Element → default builder when neither grounding nor the library has a shape.
ELEMENT_BUILDERS: dict[str, ShapeBuilder] = {
    "circle": circle,
    "rect": rect,
    "ellipse": ellipse,
    "line": line,
    "polygon": lambda cx, cy, w, h: {"points": triangle_points(cx, cy, w, h)},
    "polyline": lambda cx, cy, w, h: {"points": triangle_points(cx, cy, w, h)},
}


def path_for_motif(motif: str | None, cx: float, cy: float, width: float, height: float) -> str:
    builders = {"wave": wave_path, "leaf": leaf_path, "star": star_path, "arch": arch_path}
    builder = builders.get((motif or "").lower(), curve_path)
    return builder(cx, cy, width, height)


def scale_points(points: str, cx: float, cy: float, width: float, height: float) -> str:
    """Map template-box polygon points onto a target center and size."""
    sx, sy = width / TEMPLATE_BOX, height / TEMPLATE_BOX
    half = TEMPLATE_BOX / 2
    out = []
    for pair in points.split():
        x_str, _, y_str = pair.partition(",")
        out.append(_pt(cx + (float(x_str) - half) * sx, cy + (float(y_str) - half) * sy))
    return " ".join(out)


def template_transform(cx: float, cy: float, width: float, height: float) -> str:
    """Transform placing a template-box path at a target center and size."""
    sx, sy = width / TEMPLATE_BOX, height / TEMPLATE_BOX
    half = TEMPLATE_BOX / 2
    return (
        f"translate({format_number(cx - half * sx)} {format_number(cy - half * sy)}) "
        f"scale({format_number(sx)} {format_number(sy)})"
    )
