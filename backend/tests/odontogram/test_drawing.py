from reportlab.lib.units import mm

from app.services.odontogram import VALID_TEETH
from app.services.odontogram_chart import build_chart
from app.services.odontogram_drawing import (
    CHART_HEIGHT,
    CHART_WIDTH,
    _findings_rows,
    _findings_table,
    build_chart_drawing,
    paginate_table,
    render_chart_pdf,
    render_chart_svg,
)

TEETH = {
    36: {"condition": "caries", "surfaces": {"occlusal": "deep"}},
    18: {"condition": "missing"},
    21: {"condition": "crown", "notes": "Corona provisional"},
}


def test_drawing_size():
    drawing = build_chart_drawing(build_chart(TEETH))
    assert drawing.width == CHART_WIDTH
    assert drawing.height == CHART_HEIGHT


def test_svg_output():
    svg = render_chart_svg(build_chart(TEETH, selected_tooth=36))
    assert "<svg" in svg
    assert "36" in svg


def test_findings_rows_skip_healthy_teeth():
    rows = _findings_rows(build_chart(TEETH))
    assert rows[0][0] == "Diente"
    assert [row[0] for row in rows[1:]] == ["18", "21", "36"]
    assert rows[3][2] == "Oclusal: deep"


def test_pdf_output():
    pdf_bytes = render_chart_pdf(build_chart(TEETH), patient_name="Lucía Prueba")
    assert pdf_bytes.startswith(b"%PDF")


def test_pdf_without_findings():
    assert render_chart_pdf(build_chart({}), patient_name="Sin Datos").startswith(b"%PDF")


FULL_CHART = {
    tooth: {
        "condition": "caries",
        "surfaces": {"occlusal": "profunda", "mesial": "superficial"},
        "notes": f"Lesión extensa en diente {tooth}, controlar sensibilidad y revisar en la próxima visita. " * 3,
        "treatment_needed": "Obturación compuesta <clase II> & sellado",
    }
    for tooth in VALID_TEETH
}


def test_findings_table_splits_across_pages():
    rows = _findings_rows(build_chart(FULL_CHART))
    assert len(rows) == 33
    width = 267 * mm
    first_height, page_height = 60 * mm, 160 * mm

    parts = paginate_table(_findings_table(rows), width, first_height, page_height)
    assert len(parts) > 1

    tooth_numbers = []
    for index, part in enumerate(parts):
        assert part is not None
        available = first_height if index == 0 else page_height
        _, height = part.wrap(width, available)
        assert height <= available
        assert part._cellvalues[0][0].text == "Diente"
        tooth_numbers.extend(int(row[0].text) for row in part._cellvalues[1:])
    assert tooth_numbers == sorted(VALID_TEETH)


def test_findings_table_moves_to_next_page_when_no_room():
    parts = paginate_table(_findings_table(_findings_rows(build_chart(TEETH))), 267 * mm, 5 * mm, 160 * mm)
    assert parts[0] is None
    assert parts[1] is not None


def test_full_chart_pdf():
    pdf_bytes = render_chart_pdf(build_chart(FULL_CHART), patient_name="Lucía Prueba")
    assert pdf_bytes.startswith(b"%PDF")
