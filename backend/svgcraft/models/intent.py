"""DesignIntent — the normalized, immutable form of a free-text prompt."""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

HEX_COLOR = r"^#[0-9A-Fa-f]{6}$"

HexColor = Annotated[str, Field(pattern=HEX_COLOR)]
Density = Literal["sparse", "medium", "dense"]
Symmetry = Literal["none", "horizontal", "vertical", "radial"]
Arrangement = Literal["grid", "centered", "scattered", "organic"]


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class StrokeRules(_Frozen):
    stroke_only: bool = False
    min_stroke_width: float = Field(default=1.0, ge=0.1, le=10)
    max_stroke_width: float = Field(default=2.0, ge=0.1, le=20)
    allow_fill: bool = True


class ComponentSize(_Frozen):
    type: str
    min_size: float = Field(..., ge=1)
    max_size: float = Field(..., ge=1)
    aspect_ratio: float | None = Field(default=None, gt=0)


class ComponentCount(_Frozen):
    type: str
    min: int = Field(..., ge=0)
    max: int = Field(..., ge=1)
    preferred: int = Field(..., ge=0)


class StyleIntent(_Frozen):
    palette: tuple[HexColor, ...] = Field(..., min_length=1, max_length=10)
    stroke_rules: StrokeRules = Field(default_factory=StrokeRules)
    density: Density = "medium"
    symmetry: Symmetry = "none"


class LayoutIntent(_Frozen):
    sizes: tuple[ComponentSize, ...] = ()
    counts: tuple[ComponentCount, ...] = ()
    arrangement: Arrangement = "centered"


class Constraints(_Frozen):
    stroke_only: bool = False
    max_elements: int = Field(default=25, ge=1, le=100)
    required_motifs: tuple[str, ...] = Field(default=(), max_length=10)


class DesignIntent(_Frozen):
    style: StyleIntent
    motifs: tuple[str, ...] = Field(default=(), max_length=20)
    layout: LayoutIntent = Field(default_factory=LayoutIntent)
    constraints: Constraints = Field(default_factory=Constraints)
