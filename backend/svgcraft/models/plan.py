"""CompositionPlan — concrete seeded geometry produced by the planner."""

from __future__ import annotations

from pydantic import BaseModel, Field, model_validator

from svgcraft.models.intent import Arrangement

VIEWBOX_PATTERN = r"^0 0 \d+(\.\d+)? \d+(\.\d+)?$"


class Point(BaseModel):
    x: float
    y: float


class Size(BaseModel):
    width: float = Field(..., gt=0)
    height: float = Field(..., gt=0)


class ComponentStyle(BaseModel):
    fill: str | None = None
    stroke: str | None = None
    stroke_width: float | None = Field(default=None, gt=0)
    opacity: float | None = Field(default=None, ge=0, le=1)


class ComponentPlan(BaseModel):
    id: str
    type: str
    position: Point
    size: Size
    rotation: float = Field(default=0.0, ge=-360, le=360)
    style: ComponentStyle = Field(default_factory=ComponentStyle)
    motif: str | None = None


class LayoutPlan(BaseModel):
    bounds: Size
    view_box: str = Field(..., pattern=VIEWBOX_PATTERN)
    background: str | None = None
    arrangement: Arrangement
    spacing: float = Field(..., ge=0)


class CompositionPlan(BaseModel):
    layout: LayoutPlan
    components: list[ComponentPlan] = Field(default_factory=list, max_length=50)
    z_index: list[int] = Field(default_factory=list)

    @model_validator(mode="after")
    def _z_index_aligned(self) -> CompositionPlan:
        if len(self.z_index) != len(self.components):
            raise ValueError(
                f"z_index has {len(self.z_index)} entries for {len(self.components)} components"
            )
        return self
