"""AISVGDocument — synthesized, pre-sanitization SVG document model."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, Field

SVGElement = Literal["svg", "g", "path", "circle", "rect", "line", "polyline", "polygon", "ellipse"]

AttributeValue = str | float


class ComponentMetadata(BaseModel):
    motif: str | None = None
    generated: bool = True
    reused: bool = False
    repaired: bool = False


class SVGComponent(BaseModel):
    id: str
    type: str
    element: SVGElement
    attributes: dict[str, AttributeValue] = Field(default_factory=dict)
    metadata: ComponentMetadata = Field(default_factory=ComponentMetadata)
    z_index: int = 0


class Bounds(BaseModel):
    """Document bounds. Unconstrained so that repair can see and fix bad values."""

    width: float
    height: float


class DocumentMetadata(BaseModel):
    prompt: str
    seed: int | None = None
    palette: list[str] = Field(default_factory=list)
    description: str = ""
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    model: str | None = None
    used_objects: list[str] = Field(default_factory=list)


class AISVGDocument(BaseModel):
    components: list[SVGComponent] = Field(default_factory=list)
    metadata: DocumentMetadata
    bounds: Bounds
    palette: list[str] = Field(default_factory=list)
    background: str | None = None
