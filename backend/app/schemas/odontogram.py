from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.services.odontogram import Quadrant, ToothCondition, ToothSurface, ToothType, parse_surface


class ToothUpsert(BaseModel):
    condition: ToothCondition = ToothCondition.healthy
    surfaces: dict[str, Optional[str]] = Field(default_factory=dict)
    notes: Optional[str] = None
    treatment_needed: Optional[str] = Field(default=None, max_length=200)
    treatment_id: Optional[int] = None

    @field_validator("surfaces")
    @classmethod
    def known_surfaces(cls, value: dict[str, Optional[str]]) -> dict[str, Optional[str]]:
        cleaned: dict[str, Optional[str]] = {}
        for key, finding in value.items():
            surface = parse_surface(key)
            if surface is None:
                raise ValueError(f"Unknown tooth surface: {key}")
            cleaned[surface.value] = finding
        return cleaned


class ToothRecordOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    tooth_number: int
    condition: ToothCondition
    surfaces: dict[str, str] = Field(default_factory=dict)
    notes: Optional[str] = None
    treatment_needed: Optional[str] = None
    treatment_id: Optional[int] = None
    updated_at: Optional[datetime] = None


class ConditionStyleOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    fill: str
    stroke: str
    legend_swatch: str
    dashed: bool


class SegmentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    x1: float
    y1: float
    x2: float
    y2: float


class BoxOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    x: float
    y: float
    width: float
    height: float
    radius: float


class SurfaceOverlayOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    surface: ToothSurface
    finding: str
    shape: str
    x: float
    y: float
    width: float
    height: float
    radius: float


class ToothViewOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    tooth_number: int
    quadrant: Quadrant
    tooth_type: ToothType
    is_upper: bool
    condition: ToothCondition
    label: str
    style: ConditionStyleOut
    selected: bool
    scale: float
    width: int
    height: int
    crown: BoxOut
    roots: list[SegmentOut]
    overlays: list[SurfaceOverlayOut]
    crossed: bool
    cross_mark: list[SegmentOut]
    findings: dict[str, str]
    notes: Optional[str] = None
    treatment_needed: Optional[str] = None


class QuadrantViewOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    quadrant: Quadrant
    label: str
    teeth: list[ToothViewOut]


class LegendEntryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    condition: ToothCondition
    label: str
    swatch: str
    stroke: str
    dashed: bool


class ChartViewOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    quadrants: list[QuadrantViewOut]
    legend: list[LegendEntryOut]
    selected_tooth: Optional[int] = None
    read_only: bool


class OdontogramOut(BaseModel):
    patient_id: int
    teeth: dict[int, ToothRecordOut]
    chart: ChartViewOut
