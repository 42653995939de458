"""Composition planner — DesignIntent + grounding → seeded CompositionPlan.

All randomness flows through the injected RandomSource. Draw order is part of
the reproducibility contract: positions first, then per-component size,
rotation and style, in component order.
"""

from __future__ import annotations

import logging
import math

from pydantic import ValidationError

from svgcraft.errors import PlanningError
from svgcraft.models.intent import ComponentSize, DesignIntent
from svgcraft.models.knowledge import GroundingData
from svgcraft.models.plan import (
    ComponentPlan,
    ComponentStyle,
    CompositionPlan,
    LayoutPlan,
    Point,
    Size,
)
from svgcraft.pipeline.random_source import RandomSource
from svgcraft.utils.math_helpers import format_number

logger = logging.getLogger(__name__)

DEFAULT_BOUNDS = (400.0, 400.0)

SPACING_BY_DENSITY = {"sparse": 40.0, "medium": 20.0, "dense": 10.0}
COUNT_BY_DENSITY = {"sparse": 3, "medium": 5, "dense": 8}

MOTIF_TYPE_MAP = {
    "circle": "circle",
    "square": "rect",
    "triangle": "polygon",
    "line": "line",
    "curve": "path",
    "organic": "path",
    "geometric": "polygon",
}

_DEFAULT_SIZE = ComponentSize(type="default", min_size=50, max_size=150)
_RADIAL_FOLD = 8


class CompositionPlanner:
    """Not shareable across requests: each instance owns one RandomSource."""

    def __init__(self, rng: RandomSource | None = None) -> None:
        self.rng = rng or RandomSource()

    def plan(
        self,
        intent: DesignIntent,
        grounding: GroundingData | None = None,
        target_size: tuple[float, float] | None = None,
    ) -> CompositionPlan:
        width, height = target_size or DEFAULT_BOUNDS
        try:
            layout = self._plan_layout(intent, width, height)
            count = self._component_count(intent)
            positions = self._positions(layout, count)
            components = [
                self._plan_component(i, count, pos, intent, grounding, layout)
                for i, pos in enumerate(positions)
            ]
            z_index = self._z_index(components, layout.arrangement)
            plan = CompositionPlan(layout=layout, components=components, z_index=z_index)
        except ValidationError as e:
            logger.warning("Composition plan failed schema check: %s", e.error_count())
            raise PlanningError(f"Invalid composition plan: {e}") from e

        logger.debug(
            "Planned %d components (%s, spacing=%s)",
            len(plan.components),
            layout.arrangement,
            layout.spacing,
        )
        return plan

    # ── Layout ──

    def _plan_layout(self, intent: DesignIntent, width: float, height: float) -> LayoutPlan:
        palette = intent.style.palette
        return LayoutPlan(
            bounds=Size(width=width, height=height),
            view_box=f"0 0 {format_number(width)} {format_number(height)}",
            background=palette[3] if len(palette) > 3 else None,
            arrangement=intent.layout.arrangement,
            spacing=SPACING_BY_DENSITY.get(intent.style.density, 20.0),
        )

    def _component_count(self, intent: DesignIntent) -> int:
        max_elements = intent.constraints.max_elements
        hint = next((c for c in intent.layout.counts if c.type == "element"), None)
        if hint is not None:
            return min(hint.preferred, max_elements)
        return min(COUNT_BY_DENSITY.get(intent.style.density, 5), max_elements)

    # ── Positions ──

    def _positions(self, layout: LayoutPlan, count: int) -> list[Point]:
        if count <= 0:
            return []
        arrangement = layout.arrangement
        if arrangement == "grid":
            return self._grid(layout, count)
        if arrangement == "scattered":
            return self._scattered(layout, count)
        if arrangement == "organic":
            return self._organic(layout, count)
        return self._centered(layout, count)

    def _grid(self, layout: LayoutPlan, count: int) -> list[Point]:
        w, h, spacing = layout.bounds.width, layout.bounds.height, layout.spacing
        cols = math.ceil(math.sqrt(count))
        rows = math.ceil(count / cols)
        cell_w = (w - spacing * (cols + 1)) / cols
        cell_h = (h - spacing * (rows + 1)) / rows

        points = []
        for i in range(count):
            row, col = divmod(i, cols)
            points.append(
                Point(
                    x=spacing + col * (cell_w + spacing) + cell_w / 2,
                    y=spacing + row * (cell_h + spacing) + cell_h / 2,
                )
            )
        return points

    def _centered(self, layout: LayoutPlan, count: int) -> list[Point]:
        cx, cy = layout.bounds.width / 2, layout.bounds.height / 2
        if count == 1:
            return [Point(x=cx, y=cy)]
        radius = min(layout.bounds.width, layout.bounds.height) / 4
        points = []
        for i in range(count):
            angle = (i / count) * 2 * math.pi
            points.append(Point(x=cx + math.cos(angle) * radius, y=cy + math.sin(angle) * radius))
        return points

    def _scattered(self, layout: LayoutPlan, count: int) -> list[Point]:
        margin = layout.spacing * 2
        w, h = layout.bounds.width, layout.bounds.height
        return [
            Point(x=margin + self.rng() * (w - 2 * margin), y=margin + self.rng() * (h - 2 * margin))
            for _ in range(count)
        ]

    def _organic(self, layout: LayoutPlan, count: int) -> list[Point]:
        w, h, spacing = layout.bounds.width, layout.bounds.height, layout.spacing
        cx, cy = w / 2, h / 2
        points = []
        for i in range(count):
            t = i / (count - 1) if count > 1 else 0.0
            wave = math.sin(t * 2 * math.pi) * 0.3
            spiral = t * 0.5
            x = cx + (t - 0.5) * w * 0.6 + wave * w * 0.2
            y = cy + spiral * h * 0.4 + wave * h * 0.1
            points.append(
                Point(
                    x=max(spacing, min(w - spacing, x)),
                    y=max(spacing, min(h - spacing, y)),
                )
            )
        return points

    # ── Per-component attributes ──

    def _plan_component(
        self,
        index: int,
        count: int,
        position: Point,
        intent: DesignIntent,
        grounding: GroundingData | None,
        layout: LayoutPlan,
    ) -> ComponentPlan:
        motif = self._select_motif(index, intent, grounding)
        return ComponentPlan(
            id=f"component-{index}",
            type=self._component_type(motif, grounding),
            position=position,
            size=self._component_size(intent),
            rotation=self._rotation(index, intent, layout),
            style=self._style(index, intent),
            motif=motif,
        )

    @staticmethod
    def _select_motif(index: int, intent: DesignIntent, grounding: GroundingData | None) -> str | None:
        required = intent.constraints.required_motifs
        if required:
            return required[index % len(required)]
        if intent.motifs:
            return intent.motifs[index % len(intent.motifs)]
        if grounding and grounding.motifs:
            motif = grounding.motifs[index % len(grounding.motifs)]
            return motif.name or motif.type
        return None

    @staticmethod
    def _component_type(motif: str | None, grounding: GroundingData | None) -> str:
        if motif and motif.lower() in MOTIF_TYPE_MAP:
            return MOTIF_TYPE_MAP[motif.lower()]
        if grounding and grounding.components:
            return grounding.components[0].type
        return "path"

    def _component_size(self, intent: DesignIntent) -> Size:
        sizes = intent.layout.sizes
        size_spec = next((s for s in sizes if s.type == "default"), sizes[0] if sizes else _DEFAULT_SIZE)
        base = size_spec.min_size + (size_spec.max_size - size_spec.min_size) * self.rng()
        size = base * (1 + (self.rng() - 0.5) * 0.2)
        if size_spec.aspect_ratio:
            return Size(width=size, height=size / size_spec.aspect_ratio)
        return Size(width=size, height=size)

    def _rotation(self, index: int, intent: DesignIntent, layout: LayoutPlan) -> float:
        if layout.arrangement == "grid":
            return 0.0
        if intent.style.symmetry == "radial":
            return (index * 360 / _RADIAL_FOLD) % 360
        if layout.arrangement in ("organic", "scattered"):
            return self.rng() * 360
        return 0.0

    def _style(self, index: int, intent: DesignIntent) -> ComponentStyle:
        palette = intent.style.palette
        rules = intent.style.stroke_rules
        color_index = index % len(palette)
        color = palette[color_index]

        if rules.stroke_only:
            return ComponentStyle(
                fill="none",
                stroke=color,
                stroke_width=rules.min_stroke_width
                + (rules.max_stroke_width - rules.min_stroke_width) * self.rng(),
            )

        style = ComponentStyle()
        if rules.allow_fill:
            style.fill = color
            style.opacity = 0.7 + self.rng() * 0.3
        if self.rng() > 0.5:
            style.stroke = palette[(color_index + 1) % len(palette)]
            style.stroke_width = rules.min_stroke_width
        return style

    # ── Z order ──

    @staticmethod
    def _z_index(components: list[ComponentPlan], arrangement: str) -> list[int]:
        n = len(components)
        if arrangement == "centered":
            return [int(round(100 - abs(i - n / 2) * 10)) for i in range(n)]
        return [i + 1 for i in range(n)]
