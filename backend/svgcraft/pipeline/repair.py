"""Document validation and targeted repair.

validate_document returns structured issues; repair_document dispatches on
issue kind. Each repair is idempotent: re-validating a repaired document
yields no new issue of the kind just fixed.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum

from svgcraft.models.document import AISVGDocument, ComponentMetadata, SVGComponent
from svgcraft.models.intent import DesignIntent
from svgcraft.svg import shapes
from svgcraft.utils.math_helpers import decimal_places, is_number, round2

logger = logging.getLogger(__name__)

DEFAULT_BOUNDS = 400.0
MIN_STROKE_WIDTH = 1.0
MAX_DECIMALS = 2

_POSITION_ATTRS = {"x", "y", "cx", "cy", "x1", "y1", "x2", "y2"}
_SIZE_ATTRS = {"width", "height"}
_RADIUS_ATTRS = {"r", "rx", "ry"}


class IssueKind(str, Enum):
    TOO_MANY_COMPONENTS = "too_many_components"
    MISSING_MOTIF = "missing_motif"
    FILL_NOT_ALLOWED = "fill_not_allowed"
    INVALID_NUMBER = "invalid_number"
    THIN_STROKE = "thin_stroke"
    EXCESS_PRECISION = "excess_precision"
    INVALID_BOUNDS = "invalid_bounds"


@dataclass(frozen=True)
class Issue:
    kind: IssueKind
    component_id: str | None = None
    field: str | None = None
    detail: str = ""

    def __str__(self) -> str:
        where = ""
        if self.component_id:
            where = f" [{self.component_id}{'.' + self.field if self.field else ''}]"
        return f"{self.kind.value}{where}: {self.detail}"


def _stroke_set(component: SVGComponent) -> bool:
    stroke = component.attributes.get("stroke")
    return bool(stroke) and stroke != "none"


def validate_document(document: AISVGDocument, intent: DesignIntent) -> list[Issue]:
    """Checks run in a fixed order; each is independent of the others."""
    issues: list[Issue] = []
    constraints = intent.constraints

    count = len(document.components)
    if count > constraints.max_elements:
        issues.append(
            Issue(IssueKind.TOO_MANY_COMPONENTS, detail=f"{count} > {constraints.max_elements}")
        )

    present = {c.metadata.motif for c in document.components if c.metadata.motif}
    for motif in constraints.required_motifs:
        if motif not in present:
            issues.append(Issue(IssueKind.MISSING_MOTIF, field="motif", detail=motif))

    if constraints.stroke_only:
        for c in document.components:
            fill = c.attributes.get("fill")
            if fill and fill != "none":
                issues.append(Issue(IssueKind.FILL_NOT_ALLOWED, c.id, "fill", f"fill={fill}"))

    for c in document.components:
        for key, value in c.attributes.items():
            if is_number(value) and not math.isfinite(value):
                issues.append(Issue(IssueKind.INVALID_NUMBER, c.id, key, f"{key}={value}"))

    for c in document.components:
        width = c.attributes.get("stroke-width")
        if is_number(width) and width < MIN_STROKE_WIDTH and _stroke_set(c):
            issues.append(Issue(IssueKind.THIN_STROKE, c.id, "stroke-width", f"{width} < {MIN_STROKE_WIDTH}"))

    for c in document.components:
        for key, value in c.attributes.items():
            if is_number(value) and math.isfinite(value) and decimal_places(value) > MAX_DECIMALS:
                issues.append(Issue(IssueKind.EXCESS_PRECISION, c.id, key, f"{key}={value}"))

    bounds = document.bounds
    if not (bounds.width > 0 and bounds.height > 0):
        issues.append(
            Issue(IssueKind.INVALID_BOUNDS, field="bounds", detail=f"{bounds.width}x{bounds.height}")
        )

    return issues


def repair_document(
    document: AISVGDocument,
    issues: list[Issue],
    intent: DesignIntent,
) -> AISVGDocument:
    """Apply a targeted fix per issue, in place. Bounds are fixed first so
    injected motif geometry is always sized against valid bounds."""
    kinds = {issue.kind for issue in issues}
    by_id = {c.id: c for c in document.components}

    if IssueKind.INVALID_BOUNDS in kinds:
        if not document.bounds.width > 0:
            document.bounds.width = DEFAULT_BOUNDS
        if not document.bounds.height > 0:
            document.bounds.height = DEFAULT_BOUNDS

    if IssueKind.TOO_MANY_COMPONENTS in kinds:
        dropped = len(document.components) - intent.constraints.max_elements
        document.components = document.components[: intent.constraints.max_elements]
        logger.debug("Repair: truncated %d components", dropped)

    for issue in issues:
        if issue.kind is IssueKind.MISSING_MOTIF:
            _inject_motif(document, issue.detail, intent)

    if IssueKind.FILL_NOT_ALLOWED in kinds:
        for c in document.components:
            c.attributes["fill"] = "none"

    for issue in issues:
        component = by_id.get(issue.component_id or "")
        if component is None or issue.field is None:
            continue
        value = component.attributes.get(issue.field)

        if issue.kind is IssueKind.INVALID_NUMBER and is_number(value) and not math.isfinite(value):
            component.attributes[issue.field] = _default_for(issue.field)
        elif issue.kind is IssueKind.THIN_STROKE and is_number(value) and value < MIN_STROKE_WIDTH:
            component.attributes[issue.field] = MIN_STROKE_WIDTH
        elif issue.kind is IssueKind.EXCESS_PRECISION and is_number(value) and math.isfinite(value):
            component.attributes[issue.field] = round2(value)
        else:
            continue
        component.metadata.repaired = True

    return document


def _default_for(attr: str) -> float:
    if attr in _POSITION_ATTRS:
        return 0.0
    if attr in _SIZE_ATTRS:
        return 10.0
    if attr in _RADIUS_ATTRS:
        return 5.0
    return 1.0


def motif_fallback_shape(motif: str, document: AISVGDocument, index: int) -> SVGComponent:
    """Centered stand-in shape for a required motif: circle, star or square by name."""
    w, h = document.bounds.width, document.bounds.height
    cx, cy = w / 2, h / 2
    size = min(w, h) / 8
    name = motif.lower()

    if any(k in name for k in ("circle", "sun", "moon")):
        element, attrs = "circle", shapes.circle(cx, cy, size, size)
    elif "star" in name:
        element, attrs = "polygon", {"points": shapes.star_points(cx, cy, size / 2)}
    else:
        element, attrs = "rect", shapes.rect(cx, cy, size, size)

    attrs.update({"fill": "none", "stroke": "#333333", "stroke-width": 1.0})
    return SVGComponent(
        id=f"repair-{index}-{name.replace(' ', '-')}",
        type=motif,
        element=element,
        attributes=attrs,
        metadata=ComponentMetadata(motif=motif, generated=True, repaired=True),
        z_index=index + 1,
    )


def _inject_motif(document: AISVGDocument, motif: str, intent: DesignIntent) -> None:
    """Append a fallback shape; at capacity, replace the last component not carrying a required motif."""
    if any(c.metadata.motif == motif for c in document.components):
        return
    shape = motif_fallback_shape(motif, document, len(document.components))

    if len(document.components) < intent.constraints.max_elements:
        document.components.append(shape)
        return

    required = set(intent.constraints.required_motifs)
    for i in range(len(document.components) - 1, -1, -1):
        if document.components[i].metadata.motif not in required:
            shape.z_index = document.components[i].z_index
            document.components[i] = shape
            return
    logger.warning("Repair: no room for required motif %r", motif)
