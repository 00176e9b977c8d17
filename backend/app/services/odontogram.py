from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping

logger = logging.getLogger("dental_clinic.odontogram")


class ToothCondition(str, enum.Enum):
    healthy = "healthy"
    caries = "caries"
    extraction = "extraction"
    crown = "crown"
    filling = "filling"
    root_canal = "root_canal"
    implant = "implant"
    bridge = "bridge"
    missing = "missing"


class ToothSurface(str, enum.Enum):
    mesial = "mesial"
    distal = "distal"
    occlusal = "occlusal"
    vestibular = "vestibular"
    lingual = "lingual"


class ToothType(str, enum.Enum):
    incisor = "incisor"
    canine = "canine"
    premolar = "premolar"
    molar = "molar"


class Quadrant(int, enum.Enum):
    upper_right = 1
    upper_left = 2
    lower_left = 3
    lower_right = 4


# Each side mirrors outward from the central incisors.
UPPER_RIGHT: tuple[int, ...] = (18, 17, 16, 15, 14, 13, 12, 11)
UPPER_LEFT: tuple[int, ...] = (21, 22, 23, 24, 25, 26, 27, 28)
LOWER_LEFT: tuple[int, ...] = (31, 32, 33, 34, 35, 36, 37, 38)
LOWER_RIGHT: tuple[int, ...] = (48, 47, 46, 45, 44, 43, 42, 41)

QUADRANT_TEETH: Mapping[Quadrant, tuple[int, ...]] = MappingProxyType(
    {
        Quadrant.upper_right: UPPER_RIGHT,
        Quadrant.upper_left: UPPER_LEFT,
        Quadrant.lower_left: LOWER_LEFT,
        Quadrant.lower_right: LOWER_RIGHT,
    }
)

VALID_TEETH: frozenset[int] = frozenset(
    tooth for teeth in QUADRANT_TEETH.values() for tooth in teeth
)

CROSSED_CONDITIONS: frozenset[ToothCondition] = frozenset(
    {ToothCondition.extraction, ToothCondition.missing}
)

SURFACE_ALIASES: Mapping[str, ToothSurface] = MappingProxyType(
    {
        "mesial": ToothSurface.mesial,
        "distal": ToothSurface.distal,
        "occlusal": ToothSurface.occlusal,
        "oclusal": ToothSurface.occlusal,
        "vestibular": ToothSurface.vestibular,
        "buccal": ToothSurface.vestibular,
        "lingual": ToothSurface.lingual,
        "palatal": ToothSurface.lingual,
    }
)


@dataclass(frozen=True)
class ConditionStyle:
    fill: str
    stroke: str
    legend_swatch: str
    dashed: bool = False


CONDITION_STYLES: Mapping[ToothCondition, ConditionStyle] = MappingProxyType(
    {
        ToothCondition.healthy: ConditionStyle("#FFFFFF", "#A3A3A3", "#FFFFFF"),
        ToothCondition.caries: ConditionStyle("#EF4444", "#EF4444", "#EF4444"),
        ToothCondition.extraction: ConditionStyle("#D4D4D4", "#737373", "#D4D4D4"),
        ToothCondition.crown: ConditionStyle("#BF4DFF", "#BF4DFF", "#BF4DFF"),
        ToothCondition.filling: ConditionStyle("#007AFF", "#007AFF", "#007AFF"),
        ToothCondition.root_canal: ConditionStyle("#FF7700", "#FF7700", "#FF7700"),
        ToothCondition.implant: ConditionStyle("#17B4A5", "#17B4A5", "#17B4A5"),
        ToothCondition.bridge: ConditionStyle("#4F63F6", "#4F63F6", "#4F63F6"),
        ToothCondition.missing: ConditionStyle("#F5F5F5", "#D4D4D4", "#F5F5F5", dashed=True),
    }
)

CONDITION_LABELS: Mapping[ToothCondition, str] = MappingProxyType(
    {
        ToothCondition.healthy: "Sano",
        ToothCondition.caries: "Caries",
        ToothCondition.extraction: "Extracción",
        ToothCondition.crown: "Corona",
        ToothCondition.filling: "Obturación",
        ToothCondition.root_canal: "Endodoncia",
        ToothCondition.implant: "Implante",
        ToothCondition.bridge: "Puente",
        ToothCondition.missing: "Ausente",
    }
)

SURFACE_LABELS: Mapping[ToothSurface, str] = MappingProxyType(
    {
        ToothSurface.mesial: "Mesial",
        ToothSurface.distal: "Distal",
        ToothSurface.occlusal: "Oclusal",
        ToothSurface.vestibular: "Vestibular",
        ToothSurface.lingual: "Lingual",
    }
)


def is_valid_tooth(tooth_number: Any) -> bool:
    if isinstance(tooth_number, bool) or not isinstance(tooth_number, int):
        return False
    return tooth_number in VALID_TEETH


def quadrant_of(tooth_number: int) -> Quadrant:
    if not is_valid_tooth(tooth_number):
        raise ValueError(f"Invalid FDI tooth number: {tooth_number!r}")
    return Quadrant(tooth_number // 10)


def is_upper(tooth_number: int) -> bool:
    return quadrant_of(tooth_number) in (Quadrant.upper_right, Quadrant.upper_left)


def tooth_type(position: int) -> ToothType:
    """Derive the tooth shape family from an FDI position (or a full tooth number)."""
    digit = position % 10
    if digit <= 2:
        return ToothType.incisor
    if digit == 3:
        return ToothType.canine
    if digit <= 5:
        return ToothType.premolar
    return ToothType.molar


def parse_condition(value: Any) -> ToothCondition | None:
    if isinstance(value, ToothCondition):
        return value
    label = str(value or "").strip().lower()
    try:
        return ToothCondition(label)
    except ValueError:
        return None


def normalize_condition(value: Any) -> ToothCondition:
    return parse_condition(value) or ToothCondition.healthy


def style_for(condition: Any) -> ConditionStyle:
    return CONDITION_STYLES.get(normalize_condition(condition), CONDITION_STYLES[ToothCondition.healthy])


def label_for(condition: Any) -> str:
    return CONDITION_LABELS.get(normalize_condition(condition), CONDITION_LABELS[ToothCondition.healthy])


def parse_surface(value: Any) -> ToothSurface | None:
    if isinstance(value, ToothSurface):
        return value
    return SURFACE_ALIASES.get(str(value or "").strip().lower())


def normalize_surfaces(raw: Any) -> dict[ToothSurface, str]:
    """Keep known surface keys; findings are stored as text ("" when only flagged)."""
    if not isinstance(raw, Mapping):
        return {}
    surfaces: dict[ToothSurface, str] = {}
    for key, finding in raw.items():
        surface = parse_surface(key)
        if surface is None:
            continue
        surfaces[surface] = "" if finding is None else str(finding)
    return surfaces


@dataclass(frozen=True)
class ToothRecord:
    tooth_number: int
    condition: ToothCondition = ToothCondition.healthy
    surfaces: Mapping[ToothSurface, str] = field(default_factory=dict, hash=False)
    notes: str | None = None
    treatment_needed: str | None = None
    treatment_id: int | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "surfaces", MappingProxyType(dict(self.surfaces)))

    @property
    def is_crossed(self) -> bool:
        return self.condition in CROSSED_CONDITIONS

    def surfaces_payload(self) -> dict[str, str]:
        return {surface.value: finding for surface, finding in self.surfaces.items()}


def coerce_record(tooth_number: int, value: Any) -> ToothRecord:
    """Build a ToothRecord from a record, a dict or an ORM row; anything else is healthy."""
    if isinstance(value, ToothRecord):
        return value
    if value is None:
        return ToothRecord(tooth_number=tooth_number)
    if isinstance(value, Mapping):
        getter = value.get
    elif hasattr(value, "condition"):
        def getter(key, default=None):
            return getattr(value, key, default)
    else:
        logger.debug("Ignoring malformed record for tooth %s: %r", tooth_number, value)
        return ToothRecord(tooth_number=tooth_number)

    treatment_id = getter("treatment_id")
    if isinstance(treatment_id, bool) or not isinstance(treatment_id, int):
        treatment_id = None
    notes = getter("notes")
    treatment_needed = getter("treatment_needed")
    return ToothRecord(
        tooth_number=tooth_number,
        condition=normalize_condition(getter("condition")),
        surfaces=normalize_surfaces(getter("surfaces")),
        notes=str(notes) if notes else None,
        treatment_needed=str(treatment_needed) if treatment_needed else None,
        treatment_id=treatment_id,
    )


def coerce_teeth(teeth: Any) -> dict[int, ToothRecord]:
    """Sparse mapping of valid teeth; invalid keys are dropped."""
    if not isinstance(teeth, Mapping):
        return {}
    records: dict[int, ToothRecord] = {}
    for key, value in teeth.items():
        tooth_number = key
        if isinstance(key, str) and key.strip().isdigit():
            tooth_number = int(key.strip())
        if not is_valid_tooth(tooth_number):
            continue
        records[tooth_number] = coerce_record(tooth_number, value)
    return records
