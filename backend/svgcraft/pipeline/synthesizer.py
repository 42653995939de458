"""SVG synthesizer — CompositionPlan → AISVGDocument.

Component source order: reuse a grounding component, else a motif template
from the shape library, else basic geometry for the planned element type.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from svgcraft.models.document import (
    AISVGDocument,
    Bounds,
    ComponentMetadata,
    DocumentMetadata,
    SVGComponent,
)
from svgcraft.models.knowledge import GroundingData
from svgcraft.models.plan import ComponentPlan, ComponentStyle, CompositionPlan
from svgcraft.svg import shapes
from svgcraft.utils.math_helpers import format_number, round2

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "pipeline-v1"
_BASIC_ELEMENTS = {"circle", "rect", "ellipse", "line", "polygon", "polyline", "path"}


@dataclass
class SynthesisContext:
    prompt: str
    seed: int | None = None
    model: str = DEFAULT_MODEL
    user_id: str | None = None


class SVGSynthesizer:
    def synthesize(
        self,
        plan: CompositionPlan,
        grounding: GroundingData | None,
        context: SynthesisContext,
    ) -> AISVGDocument:
        grounding = grounding or GroundingData()
        components = []
        reused = 0
        for cp, z in zip(plan.components, plan.z_index):
            component = self._reuse(cp, grounding) or self._from_library(cp) or self._basic(cp)
            component.z_index = z
            reused += component.metadata.reused
            components.append(component)

        logger.debug("Synthesized %d components (%d reused)", len(components), reused)
        return AISVGDocument(
            components=components,
            metadata=DocumentMetadata(
                prompt=context.prompt,
                seed=context.seed,
                palette=self._palette(plan, grounding),
                description=self._describe(plan),
                model=context.model,
                used_objects=list(grounding.source_ids),
            ),
            bounds=Bounds(width=plan.layout.bounds.width, height=plan.layout.bounds.height),
            palette=self._palette(plan, grounding),
            background=plan.layout.background,
        )

    # ── Sources ──

    def _reuse(self, cp: ComponentPlan, grounding: GroundingData) -> SVGComponent | None:
        for base in grounding.components:
            if (cp.motif and base.metadata.motif == cp.motif) or base.type == cp.motif or base.element == cp.type:
                return self._adapt(base, cp)
        return None

    def _adapt(self, base: SVGComponent, cp: ComponentPlan) -> SVGComponent:
        x, y = cp.position.x, cp.position.y
        w, h = cp.size.width, cp.size.height
        attrs = dict(base.attributes)
        placement = None

        if base.element in ("circle", "rect", "ellipse", "line"):
            attrs.update(shapes.ELEMENT_BUILDERS[base.element](x, y, w, h))
        elif base.element in ("polygon", "polyline") and isinstance(attrs.get("points"), str):
            attrs["points"] = shapes.scale_points(str(attrs["points"]), x, y, w, h)
        elif base.element in ("path", "g"):
            placement = shapes.template_transform(x, y, w, h)

        component = SVGComponent(
            id=cp.id,
            type=base.type,
            element=base.element,
            attributes=attrs,
            metadata=ComponentMetadata(
                motif=cp.motif or base.metadata.motif,
                generated=False,
                reused=True,
            ),
        )
        self._apply_style(component, cp.style)
        self._apply_transform(component, cp, placement)
        return component

    def _from_library(self, cp: ComponentPlan) -> SVGComponent | None:
        if not cp.motif:
            return None
        entry = shapes.MOTIF_LIBRARY.get(cp.motif.lower())
        if entry is None:
            return None
        element, builder = entry
        component = SVGComponent(
            id=cp.id,
            type=cp.motif,
            element=element,
            attributes=builder(cp.position.x, cp.position.y, cp.size.width, cp.size.height),
            metadata=ComponentMetadata(motif=cp.motif, generated=True),
        )
        self._apply_style(component, cp.style)
        self._apply_transform(component, cp)
        return component

    def _basic(self, cp: ComponentPlan) -> SVGComponent:
        x, y = cp.position.x, cp.position.y
        w, h = cp.size.width, cp.size.height
        element = cp.type if cp.type in _BASIC_ELEMENTS else "circle"

        if element == "path":
            attrs: dict[str, str | float] = {"d": shapes.path_for_motif(cp.motif, x, y, w, h)}
        else:
            attrs = shapes.ELEMENT_BUILDERS[element](x, y, w, h)

        component = SVGComponent(
            id=cp.id,
            type=cp.motif or element,
            element=element,
            attributes=attrs,
            metadata=ComponentMetadata(motif=cp.motif, generated=True),
        )
        self._apply_style(component, cp.style)
        self._apply_transform(component, cp)
        return component

    # ── Styling ──

    @staticmethod
    def _apply_style(component: SVGComponent, style: ComponentStyle) -> None:
        if style.fill:
            component.attributes["fill"] = style.fill
        if style.stroke:
            component.attributes["stroke"] = style.stroke
        if style.stroke_width:
            component.attributes["stroke-width"] = round2(style.stroke_width)
        if style.opacity is not None:
            component.attributes["opacity"] = round2(style.opacity)

    @staticmethod
    def _apply_transform(component: SVGComponent, cp: ComponentPlan, placement: str | None = None) -> None:
        parts = []
        if cp.rotation:
            parts.append(
                f"rotate({format_number(cp.rotation)} "
                f"{format_number(cp.position.x)} {format_number(cp.position.y)})"
            )
        if placement:
            parts.append(placement)
        if parts:
            component.attributes["transform"] = " ".join(parts)

    # ── Metadata ──

    @staticmethod
    def _palette(plan: CompositionPlan, grounding: GroundingData) -> list[str]:
        colors: list[str] = []
        for cp in plan.components:
            for color in (cp.style.fill, cp.style.stroke):
                if color and color != "none" and color not in colors:
                    colors.append(color)
        if plan.layout.background and plan.layout.background not in colors:
            colors.append(plan.layout.background)
        if grounding.style_pack:
            for color in grounding.style_pack.palette.primary:
                if color not in colors:
                    colors.append(color)
        return colors

    @staticmethod
    def _describe(plan: CompositionPlan) -> str:
        description = f"Generated SVG with {len(plan.components)} components"
        if plan.layout.arrangement != "centered":
            description += f" in {plan.layout.arrangement} arrangement"
        motifs = list(dict.fromkeys(cp.motif for cp in plan.components if cp.motif))
        if motifs:
            description += f" featuring {', '.join(motifs)}"
        return description
