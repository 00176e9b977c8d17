"""Tooth chart rendering.

The chart turns a sparse ``tooth number -> record`` mapping into a visual tree
laid out in the four FDI quadrants. Geometry is expressed in a per-tooth
``40 x 50`` coordinate box with the origin at the top-left corner, which the
drawing layer maps onto SVG/PDF output.

Rendering never raises: unknown keys are skipped, malformed records render as
healthy teeth and unknown conditions take the healthy style. The chart never
writes records back; clicks are reported to the owner through a callback.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Iterator, Mapping

from app.services.odontogram import (
    CONDITION_LABELS,
    CONDITION_STYLES,
    QUADRANT_TEETH,
    ConditionStyle,
    Quadrant,
    ToothCondition,
    ToothRecord,
    ToothSurface,
    ToothType,
    coerce_teeth,
    is_upper,
    is_valid_tooth,
    label_for,
    style_for,
    tooth_type,
)

TOOTH_BOX_WIDTH = 40
TOOTH_BOX_HEIGHT = 50
TOOTH_HEIGHT = 40
SELECTED_SCALE = 1.1
OVERLAY_COLOR = "#EF4444"
OVERLAY_OPACITY = 0.5
CROSS_COLOR = "#EF4444"
SELECTION_COLOR = "#007AFF"

_UNSET = object()

TOOTH_WIDTHS: Mapping[ToothType, int] = {
    ToothType.incisor: 24,
    ToothType.canine: 24,
    ToothType.premolar: 30,
    ToothType.molar: 36,
}

_UPPER_ROOTS: Mapping[ToothType, tuple[tuple[float, float, float, float], ...]] = {
    ToothType.incisor: ((20, 35, 20, 50),),
    ToothType.canine: ((20, 35, 20, 50),),
    ToothType.premolar: ((15, 35, 12, 48), (25, 35, 28, 48)),
    ToothType.molar: ((10, 35, 8, 48), (20, 35, 20, 50), (30, 35, 32, 48)),
}

_LOWER_ROOTS: Mapping[ToothType, tuple[tuple[float, float, float, float], ...]] = {
    ToothType.incisor: ((20, 15, 20, 0),),
    ToothType.canine: ((20, 15, 20, 0),),
    ToothType.premolar: ((15, 15, 12, 2), (25, 15, 28, 2)),
    ToothType.molar: ((10, 15, 8, 2), (20, 15, 20, 0), (30, 15, 32, 2)),
}

QUADRANT_LABELS: Mapping[Quadrant, str] = {
    Quadrant.upper_right: "Superior derecho",
    Quadrant.upper_left: "Superior izquierdo",
    Quadrant.lower_left: "Inferior izquierdo",
    Quadrant.lower_right: "Inferior derecho",
}


@dataclass(frozen=True)
class Segment:
    x1: float
    y1: float
    x2: float
    y2: float


@dataclass(frozen=True)
class Box:
    x: float
    y: float
    width: float
    height: float
    radius: float = 0


@dataclass(frozen=True)
class SurfaceOverlay:
    surface: ToothSurface
    finding: str
    shape: str
    x: float
    y: float
    width: float = 0
    height: float = 0
    radius: float = 0


@dataclass(frozen=True)
class ToothView:
    tooth_number: int
    quadrant: Quadrant
    tooth_type: ToothType
    is_upper: bool
    condition: ToothCondition
    label: str
    style: ConditionStyle
    selected: bool
    width: int
    height: int
    crown: Box
    roots: tuple[Segment, ...]
    overlays: tuple[SurfaceOverlay, ...] = ()
    cross_mark: tuple[Segment, ...] = ()
    findings: Mapping[str, str] = field(default_factory=dict, hash=False)
    notes: str | None = None
    treatment_needed: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "findings", MappingProxyType(dict(self.findings)))

    @property
    def crossed(self) -> bool:
        return bool(self.cross_mark)

    @property
    def scale(self) -> float:
        return SELECTED_SCALE if self.selected else 1.0

    def overlay(self, surface: ToothSurface) -> SurfaceOverlay | None:
        for item in self.overlays:
            if item.surface == surface:
                return item
        return None


@dataclass(frozen=True)
class QuadrantView:
    quadrant: Quadrant
    label: str
    teeth: tuple[ToothView, ...]


@dataclass(frozen=True)
class LegendEntry:
    condition: ToothCondition
    label: str
    swatch: str
    stroke: str
    dashed: bool


@dataclass(frozen=True)
class ChartView:
    quadrants: tuple[QuadrantView, ...]
    legend: tuple[LegendEntry, ...]
    selected_tooth: int | None
    read_only: bool

    @property
    def teeth(self) -> tuple[ToothView, ...]:
        return tuple(tooth for quadrant in self.quadrants for tooth in quadrant.teeth)

    @property
    def upper_row(self) -> tuple[QuadrantView, QuadrantView]:
        return self.quadrant(Quadrant.upper_right), self.quadrant(Quadrant.upper_left)

    @property
    def lower_row(self) -> tuple[QuadrantView, QuadrantView]:
        return self.quadrant(Quadrant.lower_right), self.quadrant(Quadrant.lower_left)

    def quadrant(self, quadrant: Quadrant) -> QuadrantView:
        for view in self.quadrants:
            if view.quadrant == quadrant:
                return view
        raise KeyError(quadrant)

    def tooth(self, tooth_number: int) -> ToothView | None:
        for tooth in self.teeth:
            if tooth.tooth_number == tooth_number:
                return tooth
        return None


def _crown_box(upper: bool) -> Box:
    return Box(x=5, y=10 if upper else 15, width=30, height=25, radius=4)


def _roots(kind: ToothType, upper: bool) -> tuple[Segment, ...]:
    table = _UPPER_ROOTS if upper else _LOWER_ROOTS
    return tuple(Segment(*coords) for coords in table[kind])


def _cross_mark(upper: bool) -> tuple[Segment, ...]:
    top = 15 if upper else 20
    bottom = 30 if upper else 35
    return (Segment(10, top, 30, bottom), Segment(30, top, 10, bottom))


def _overlays(record: ToothRecord, upper: bool) -> tuple[SurfaceOverlay, ...]:
    surfaces = record.surfaces
    if not surfaces:
        return ()
    bar_y = 15 if upper else 20
    overlays: list[SurfaceOverlay] = []
    if ToothSurface.occlusal in surfaces:
        overlays.append(
            SurfaceOverlay(
                surface=ToothSurface.occlusal,
                finding=surfaces[ToothSurface.occlusal],
                shape="circle",
                x=20,
                y=22 if upper else 27,
                radius=6,
            )
        )
    if ToothSurface.mesial in surfaces:
        overlays.append(
            SurfaceOverlay(
                surface=ToothSurface.mesial,
                finding=surfaces[ToothSurface.mesial],
                shape="rect",
                x=5,
                y=bar_y,
                width=5,
                height=15,
            )
        )
    if ToothSurface.distal in surfaces:
        overlays.append(
            SurfaceOverlay(
                surface=ToothSurface.distal,
                finding=surfaces[ToothSurface.distal],
                shape="rect",
                x=30,
                y=bar_y,
                width=5,
                height=15,
            )
        )
    return tuple(overlays)


def build_tooth_view(tooth_number: int, record: ToothRecord | None, *, selected: bool) -> ToothView:
    record = record or ToothRecord(tooth_number=tooth_number)
    upper = is_upper(tooth_number)
    kind = tooth_type(tooth_number)
    return ToothView(
        tooth_number=tooth_number,
        quadrant=Quadrant(tooth_number // 10),
        tooth_type=kind,
        is_upper=upper,
        condition=record.condition,
        label=label_for(record.condition),
        style=style_for(record.condition),
        selected=selected,
        width=TOOTH_WIDTHS[kind],
        height=TOOTH_HEIGHT,
        crown=_crown_box(upper),
        roots=_roots(kind, upper),
        overlays=_overlays(record, upper),
        cross_mark=_cross_mark(upper) if record.is_crossed else (),
        findings=record.surfaces_payload(),
        notes=record.notes,
        treatment_needed=record.treatment_needed,
    )


def build_legend() -> tuple[LegendEntry, ...]:
    return tuple(
        LegendEntry(
            condition=condition,
            label=CONDITION_LABELS[condition],
            swatch=CONDITION_STYLES[condition].legend_swatch,
            stroke=CONDITION_STYLES[condition].stroke,
            dashed=CONDITION_STYLES[condition].dashed,
        )
        for condition in ToothCondition
    )


def build_chart(
    teeth: Mapping[int, Any] | None,
    *,
    selected_tooth: int | None = None,
    read_only: bool = False,
) -> ChartView:
    records = coerce_teeth(teeth)
    selected = selected_tooth if is_valid_tooth(selected_tooth) else None
    quadrants = tuple(
        QuadrantView(
            quadrant=quadrant,
            label=QUADRANT_LABELS[quadrant],
            teeth=tuple(
                build_tooth_view(number, records.get(number), selected=number == selected)
                for number in numbers
            ),
        )
        for quadrant, numbers in QUADRANT_TEETH.items()
    )
    return ChartView(
        quadrants=quadrants,
        legend=build_legend(),
        selected_tooth=selected,
        read_only=bool(read_only),
    )


class OdontogramChart:
    """Holds the chart inputs and dispatches clicks to the owner."""

    def __init__(
        self,
        teeth: Mapping[int, Any] | None = None,
        *,
        on_tooth_click: Callable[[int], None] | None = None,
        selected_tooth: int | None = None,
        read_only: bool = False,
    ) -> None:
        self.teeth = teeth or {}
        self.on_tooth_click = on_tooth_click
        self.selected_tooth = selected_tooth
        self.read_only = read_only

    def update(
        self,
        *,
        teeth: Mapping[int, Any] | None = None,
        selected_tooth: Any = _UNSET,
        read_only: bool | None = None,
    ) -> None:
        if teeth is not None:
            self.teeth = teeth
        if selected_tooth is not _UNSET:
            self.selected_tooth = selected_tooth
        if read_only is not None:
            self.read_only = read_only

    def render(self) -> ChartView:
        return build_chart(self.teeth, selected_tooth=self.selected_tooth, read_only=self.read_only)

    def click(self, tooth_number: int) -> bool:
        if self.read_only or self.on_tooth_click is None:
            return False
        if not is_valid_tooth(tooth_number):
            return False
        self.on_tooth_click(tooth_number)
        return True

    def __iter__(self) -> Iterator[ToothView]:
        return iter(self.render().teeth)
