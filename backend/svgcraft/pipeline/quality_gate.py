"""Quality gate — heuristic pass/fail scoring of a synthesized document."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field

from shapely.geometry import Polygon, box

from svgcraft.models.document import AISVGDocument, SVGComponent
from svgcraft.models.intent import DesignIntent
from svgcraft.utils.math_helpers import decimal_places, is_number

logger = logging.getLogger(__name__)

PASS_THRESHOLD = 70

_WEIGHTS = {
    "structural": 0.3,
    "motif": 0.25,
    "style": 0.25,
    "technical": 0.2,
}


@dataclass
class CheckResult:
    score: float = 100.0
    issues: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def finish(self) -> CheckResult:
        self.score = max(0.0, self.score)
        return self


@dataclass
class QualityResult:
    passed: bool
    score: int
    issues: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    metrics: dict[str, float] = field(default_factory=dict)


def component_geometry(component: SVGComponent) -> Polygon | None:
    """Axis-aligned footprint of a component, or None when it cannot be derived."""
    a = component.attributes
    try:
        if component.element == "circle":
            cx, cy, r = float(a["cx"]), float(a["cy"]), float(a["r"])
            return box(cx - r, cy - r, cx + r, cy + r)
        if component.element == "ellipse":
            cx, cy, rx, ry = float(a["cx"]), float(a["cy"]), float(a["rx"]), float(a["ry"])
            return box(cx - rx, cy - ry, cx + rx, cy + ry)
        if component.element == "rect":
            x, y, w, h = float(a["x"]), float(a["y"]), float(a["width"]), float(a["height"])
            return box(x, y, x + w, y + h)
    except (KeyError, TypeError, ValueError):
        return None
    return None


class QualityGate:
    def validate(self, document: AISVGDocument, intent: DesignIntent) -> QualityResult:
        checks = {
            "structural": self._structural(document, intent),
            "motif": self._motifs(document, intent),
            "style": self._style(document, intent),
            "technical": self._technical(document),
        }

        issues = [i for c in checks.values() for i in c.issues]
        warnings = [w for c in checks.values() for w in c.warnings]
        metrics = {name: c.score for name, c in checks.items()}
        score = int(round(sum(metrics[name] * weight for name, weight in _WEIGHTS.items())))
        passed = score >= PASS_THRESHOLD and not issues

        logger.debug("Quality gate: score=%d passed=%s issues=%d", score, passed, len(issues))
        return QualityResult(passed=passed, score=score, issues=issues, warnings=warnings, metrics=metrics)

    # ── Checks ──

    def _structural(self, document: AISVGDocument, intent: DesignIntent) -> CheckResult:
        r = CheckResult()
        count = len(document.components)
        bounds = document.bounds

        if count > intent.constraints.max_elements:
            r.issues.append(f"Too many components: {count} > {intent.constraints.max_elements}")
            r.score -= 30
        if count == 0:
            r.issues.append("Document has no components")
            r.score = 0

        if not (bounds.width > 0 and bounds.height > 0):
            r.issues.append("Invalid document bounds")
            r.score -= 20
            return r.finish()
        if bounds.width < 16 or bounds.height < 16:
            r.warnings.append("Document bounds are very small")
            r.score -= 5
        if bounds.width > 2048 or bounds.height > 2048:
            r.warnings.append("Document bounds are very large")
            r.score -= 5

        canvas = box(0, 0, bounds.width, bounds.height)
        outside = 0
        for c in document.components:
            footprint = component_geometry(c)
            if footprint is not None and not canvas.covers(footprint):
                outside += 1
        if outside:
            if outside / count > 0.5:
                r.issues.append(f"{outside} components are out of bounds")
                r.score -= 25
            else:
                r.warnings.append(f"{outside} components are partially out of bounds")
                r.score -= 10
        return r.finish()

    def _motifs(self, document: AISVGDocument, intent: DesignIntent) -> CheckResult:
        r = CheckResult()
        counts: dict[str, int] = {}
        for c in document.components:
            if c.metadata.motif:
                counts[c.metadata.motif] = counts.get(c.metadata.motif, 0) + 1

        missing = [m for m in intent.constraints.required_motifs if m not in counts]
        if missing:
            r.issues.append(f"Missing required motifs: {', '.join(missing)}")
            r.score -= 20 * len(missing)

        if len(counts) > 1 and max(counts.values()) / min(counts.values()) > 3:
            r.warnings.append("Motif distribution is imbalanced")
            r.score -= 10

        allowed = set(intent.motifs) | set(intent.constraints.required_motifs)
        unexpected = [m for m in counts if m not in allowed]
        if unexpected:
            r.warnings.append(f"Unexpected motifs present: {', '.join(unexpected)}")
            r.score -= 5
        return r.finish()

    def _style(self, document: AISVGDocument, intent: DesignIntent) -> CheckResult:
        r = CheckResult()
        if intent.constraints.stroke_only:
            filled = [c for c in document.components if c.attributes.get("fill") not in (None, "", "none")]
            if filled:
                r.issues.append(f"{len(filled)} components have fill but stroke-only is required")
                r.score -= 15 * len(filled)

        widths = [
            float(c.attributes["stroke-width"])
            for c in document.components
            if is_number(c.attributes.get("stroke-width"))
        ]
        if widths:
            lo, hi = min(widths), max(widths)
            if lo < 1:
                r.issues.append(f"Stroke width {lo} is below minimum of 1")
                r.score -= 20
            if lo > 0 and hi / lo > 4:
                r.warnings.append("Stroke widths vary significantly")
                r.score -= 5

        used: list[str] = []
        for c in document.components:
            for key in ("fill", "stroke"):
                color = c.attributes.get(key)
                if isinstance(color, str) and color not in ("", "none") and color not in used:
                    used.append(color)
        outside_palette = [color for color in used if color not in document.palette]
        if outside_palette:
            r.warnings.append(f"Colors used outside palette: {', '.join(outside_palette)}")
            r.score -= 5 * len(outside_palette)
        return r.finish()

    def _technical(self, document: AISVGDocument) -> CheckResult:
        r = CheckResult()
        precise = sum(
            1
            for c in document.components
            for v in c.attributes.values()
            if is_number(v) and decimal_places(v) > 2
        )
        if precise:
            r.warnings.append(f"{precise} attributes have >2 decimal places")
            r.score -= min(20, precise * 2)

        if not (document.bounds.width > 0 and document.bounds.height > 0):
            r.issues.append("Invalid or missing viewBox")
            r.score -= 25

        invalid = sum(1 for c in document.components if not _is_valid_component(c))
        if invalid:
            r.issues.append(f"{invalid} components have invalid attributes")
            r.score -= 10 * invalid

        degenerate = sum(1 for c in document.components if _is_degenerate(c))
        if degenerate:
            r.warnings.append(f"{degenerate} components are degenerate (zero size)")
            r.score -= 5 * degenerate

        if len(document.components) > 20:
            r.warnings.append("Document is quite complex")
            r.score -= 5
        return r.finish()


def _finite(attrs: dict, *keys: str) -> bool:
    return all(is_number(attrs.get(k)) and math.isfinite(attrs[k]) for k in keys)


def _is_valid_component(c: SVGComponent) -> bool:
    a = c.attributes
    if c.element == "circle":
        return _finite(a, "cx", "cy", "r") and a["r"] > 0
    if c.element == "rect":
        return _finite(a, "x", "y", "width", "height") and a["width"] > 0 and a["height"] > 0
    if c.element == "ellipse":
        return _finite(a, "cx", "cy", "rx", "ry") and a["rx"] > 0 and a["ry"] > 0
    if c.element == "line":
        return _finite(a, "x1", "y1", "x2", "y2")
    if c.element in ("polygon", "polyline"):
        return isinstance(a.get("points"), str) and bool(a["points"])
    if c.element == "path":
        return isinstance(a.get("d"), str) and bool(a["d"])
    return True


def _is_degenerate(c: SVGComponent) -> bool:
    a = c.attributes
    if c.element == "circle":
        return is_number(a.get("r")) and a["r"] <= 0
    if c.element == "rect":
        return (is_number(a.get("width")) and a["width"] <= 0) or (is_number(a.get("height")) and a["height"] <= 0)
    if c.element == "ellipse":
        return (is_number(a.get("rx")) and a["rx"] <= 0) or (is_number(a.get("ry")) and a["ry"] <= 0)
    if c.element == "line":
        return a.get("x1") == a.get("x2") and a.get("y1") == a.get("y2")
    return False
