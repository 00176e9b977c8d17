import pytest

from app.services.odontogram import (
    CONDITION_LABELS,
    CONDITION_STYLES,
    QUADRANT_TEETH,
    VALID_TEETH,
    Quadrant,
    ToothCondition,
    ToothRecord,
    ToothSurface,
    ToothType,
    coerce_record,
    coerce_teeth,
    is_upper,
    is_valid_tooth,
    label_for,
    normalize_surfaces,
    parse_condition,
    quadrant_of,
    style_for,
    tooth_type,
)


def test_thirty_two_permanent_teeth():
    assert len(VALID_TEETH) == 32
    assert sum(len(teeth) for teeth in QUADRANT_TEETH.values()) == 32


def test_quadrant_order_mirrors_from_midline():
    assert QUADRANT_TEETH[Quadrant.upper_right] == (18, 17, 16, 15, 14, 13, 12, 11)
    assert QUADRANT_TEETH[Quadrant.upper_left] == (21, 22, 23, 24, 25, 26, 27, 28)
    assert QUADRANT_TEETH[Quadrant.lower_left] == (31, 32, 33, 34, 35, 36, 37, 38)
    assert QUADRANT_TEETH[Quadrant.lower_right] == (48, 47, 46, 45, 44, 43, 42, 41)


@pytest.mark.parametrize("tooth", [0, 10, 19, 29, 51, 55, 85, 99, -11, "11", 11.0, True, None])
def test_invalid_tooth_numbers(tooth):
    assert not is_valid_tooth(tooth)


def test_quadrant_of_rejects_invalid_tooth():
    with pytest.raises(ValueError):
        quadrant_of(19)


def test_quadrant_and_arch():
    assert quadrant_of(36) == Quadrant.lower_left
    assert is_upper(21)
    assert not is_upper(46)


@pytest.mark.parametrize(
    ("position", "expected"),
    [
        (1, ToothType.incisor),
        (2, ToothType.incisor),
        (3, ToothType.canine),
        (4, ToothType.premolar),
        (5, ToothType.premolar),
        (6, ToothType.molar),
        (7, ToothType.molar),
        (8, ToothType.molar),
        (36, ToothType.molar),
        (13, ToothType.canine),
    ],
)
def test_tooth_type_from_position(position: int, expected: ToothType):
    assert tooth_type(position) == expected


def test_every_condition_has_style_and_label():
    for condition in ToothCondition:
        assert condition in CONDITION_STYLES
        assert CONDITION_LABELS[condition]


def test_style_lookup_is_read_only():
    with pytest.raises(TypeError):
        CONDITION_STYLES[ToothCondition.caries] = CONDITION_STYLES[ToothCondition.healthy]


@pytest.mark.parametrize("value", ["unknown_xyz", "", None, 42])
def test_unknown_condition_takes_healthy_style(value):
    assert parse_condition(value) is None
    assert style_for(value) == CONDITION_STYLES[ToothCondition.healthy]
    assert label_for(value) == "Sano"


def test_labels_are_spanish():
    assert label_for("extraction") == "Extracción"
    assert label_for(ToothCondition.root_canal) == "Endodoncia"


def test_missing_style_is_dashed():
    assert CONDITION_STYLES[ToothCondition.missing].dashed
    assert not CONDITION_STYLES[ToothCondition.caries].dashed


def test_surface_aliases_normalize():
    surfaces = normalize_surfaces({"oclusal": "deep", "buccal": None, "palatal": "x", "apex": "y"})
    assert surfaces == {
        ToothSurface.occlusal: "deep",
        ToothSurface.vestibular: "",
        ToothSurface.lingual: "x",
    }


def test_coerce_record_from_dict():
    record = coerce_record(36, {"condition": "caries", "surfaces": {"occlusal": "deep"}, "treatment_id": 3})
    assert record == ToothRecord(
        tooth_number=36,
        condition=ToothCondition.caries,
        surfaces={ToothSurface.occlusal: "deep"},
        treatment_id=3,
    )


@pytest.mark.parametrize("value", ["caries", 7, ["caries"]])
def test_malformed_record_is_healthy(value):
    assert coerce_record(11, value).condition == ToothCondition.healthy


def test_coerce_teeth_drops_invalid_keys():
    records = coerce_teeth({"11": {"condition": "crown"}, 19: {"condition": "caries"}, "x": {}, 48: None})
    assert set(records) == {11, 48}
    assert records[11].condition == ToothCondition.crown
    assert records[48].condition == ToothCondition.healthy


def test_coerce_teeth_tolerates_non_mapping():
    assert coerce_teeth(None) == {}
    assert coerce_teeth([11, 12]) == {}


def test_records_are_hashable_values():
    surfaces = {ToothSurface.occlusal: "deep"}
    record = ToothRecord(tooth_number=36, condition=ToothCondition.caries, surfaces=surfaces)
    surfaces[ToothSurface.mesial] = "late"

    assert ToothSurface.mesial not in record.surfaces
    with pytest.raises(TypeError):
        record.surfaces[ToothSurface.distal] = "x"
    assert hash(record) == hash(coerce_record(36, {"condition": "caries", "surfaces": {"oclusal": "deep"}}))
    assert len({record, ToothRecord(tooth_number=36, condition=ToothCondition.caries)}) == 2
