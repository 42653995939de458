"""Write SVG markup from an AISVGDocument."""

from __future__ import annotations

from xml.sax.saxutils import escape, quoteattr

from svgcraft.models.document import AISVGDocument, SVGComponent
from svgcraft.utils.math_helpers import format_number, is_number

SVG_NS = "http://www.w3.org/2000/svg"

# Geometry first, then presentation, then anything else alphabetically.
_ATTR_ORDER = [
    "x", "y", "cx", "cy", "r", "rx", "ry", "width", "height",
    "x1", "y1", "x2", "y2", "points", "d",
    "fill", "stroke", "stroke-width", "opacity", "transform",
]
_ATTR_RANK = {name: i for i, name in enumerate(_ATTR_ORDER)}
_TEXT_ENTITIES = {"\"": "&quot;", "'": "&#39;"}


def format_attr(value: str | float) -> str:
    return format_number(value) if is_number(value) else str(value)


def render_attributes(attributes: dict[str, str | float]) -> str:
    keys = sorted(attributes, key=lambda k: (_ATTR_RANK.get(k, len(_ATTR_ORDER)), k))
    return " ".join(f"{k}={quoteattr(format_attr(attributes[k]))}" for k in keys)


def render_component(component: SVGComponent) -> str:
    attrs = render_attributes(component.attributes)
    head = f"<{component.element} id={quoteattr(component.id)}"
    return f"{head} {attrs}/>" if attrs else f"{head}/>"


def render_svg(document: AISVGDocument, title: str = "") -> str:
    """Deterministic output: components in ascending z order, stable attribute order."""
    w = format_number(document.bounds.width)
    h = format_number(document.bounds.height)
    lines = [f'<svg xmlns="{SVG_NS}" viewBox="0 0 {w} {h}" width="{w}" height="{h}">']

    if title:
        lines.append(f"  <title>{escape(title)}</title>")
    if document.background:
        lines.append(f'  <rect width="100%" height="100%" fill={quoteattr(document.background)}/>')

    ordered = sorted(enumerate(document.components), key=lambda pair: (pair[1].z_index, pair[0]))
    for _, component in ordered:
        lines.append("  " + render_component(component))

    lines.append("</svg>")
    return "\n".join(lines)


def render_fallback(prompt: str, width: float = 400, height: float = 400) -> str:
    """Hand-authored minimal SVG: one circle plus an escaped label."""
    w, h = format_number(width), format_number(height)
    label = escape(prompt, _TEXT_ENTITIES)
    cx, cy = format_number(width / 2), format_number(height / 2)
    r = format_number(min(width, height) / 4)
    label_y = format_number(height * 0.875)
    return (
        f'<svg xmlns="{SVG_NS}" viewBox="0 0 {w} {h}" width="{w}" height="{h}">'
        f'<circle cx="{cx}" cy="{cy}" r="{r}" fill="#2563eb" stroke="none"/>'
        f'<text x="{cx}" y="{label_y}" text-anchor="middle" fill="#666" font-size="12">'
        f"Fallback: {label}</text>"
        "</svg>"
    )
