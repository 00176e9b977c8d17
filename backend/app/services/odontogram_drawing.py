from __future__ import annotations

from io import BytesIO
from xml.sax.saxutils import escape

from reportlab.graphics import renderPDF, renderSVG
from reportlab.graphics.shapes import Circle, Drawing, Group, Line, Rect, String
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import ParagraphStyle
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas
from reportlab.platypus import Paragraph, Table, TableStyle

from app.services.pdf import draw_header
from app.services.odontogram import SURFACE_LABELS, ToothCondition, ToothSurface
from app.services.odontogram_chart import (
    CROSS_COLOR,
    OVERLAY_COLOR,
    OVERLAY_OPACITY,
    SELECTION_COLOR,
    TOOTH_BOX_HEIGHT,
    TOOTH_BOX_WIDTH,
    ChartView,
    QuadrantView,
    ToothView,
)

CELL_WIDTH = 44
MIDLINE_GAP = 24
MARGIN = 16
LEGEND_HEIGHT = 28
ROW_HEIGHT = 72
LABEL_COLOR = "#737373"
ROOT_COLOR = "#A3A3A3"
DIVIDER_COLOR = "#E5E5E5"
PAGE_BOTTOM = 15 * mm
FINDINGS_COL_WIDTHS = [18 * mm, 30 * mm, 70 * mm, 80 * mm, 60 * mm]

CHART_WIDTH = 2 * MARGIN + 16 * CELL_WIDTH + MIDLINE_GAP
CHART_HEIGHT = LEGEND_HEIGHT + 2 * ROW_HEIGHT + 3 * MARGIN


def _hex(value: str):
    return colors.HexColor(value)


def _tooth_group(tooth: ToothView, x: float, top: float) -> Group:
    """Shapes for one tooth; (x, top) is the top-left corner of its cell."""
    fit = min(tooth.width / TOOTH_BOX_WIDTH, tooth.height / TOOTH_BOX_HEIGHT)
    scale = fit * tooth.scale
    offset = (CELL_WIDTH - TOOTH_BOX_WIDTH * scale) / 2

    group = Group()
    for root in tooth.roots:
        group.add(
            Line(
                root.x1,
                root.y1,
                root.x2,
                root.y2,
                strokeColor=_hex(ROOT_COLOR),
                strokeWidth=2,
            )
        )

    crown = tooth.crown
    body = Rect(
        crown.x,
        crown.y,
        crown.width,
        crown.height,
        rx=crown.radius,
        ry=crown.radius,
        fillColor=_hex(tooth.style.fill),
        strokeColor=_hex(tooth.style.stroke),
        strokeWidth=2,
    )
    if tooth.style.dashed:
        body.strokeDashArray = [3, 2]
    group.add(body)

    for overlay in tooth.overlays:
        if overlay.shape == "circle":
            shape = Circle(overlay.x, overlay.y, overlay.radius)
        else:
            shape = Rect(overlay.x, overlay.y, overlay.width, overlay.height)
        shape.fillColor = _hex(OVERLAY_COLOR)
        shape.fillOpacity = OVERLAY_OPACITY
        shape.strokeColor = None
        group.add(shape)

    for segment in tooth.cross_mark:
        group.add(
            Line(
                segment.x1,
                segment.y1,
                segment.x2,
                segment.y2,
                strokeColor=_hex(CROSS_COLOR),
                strokeWidth=2,
            )
        )

    if tooth.selected:
        group.add(
            Rect(
                crown.x - 3,
                crown.y - 3,
                crown.width + 6,
                crown.height + 6,
                rx=6,
                ry=6,
                fillColor=None,
                strokeColor=_hex(SELECTION_COLOR),
                strokeWidth=2,
            )
        )

    # Tooth geometry is top-left based; flip it into the drawing's y-up space.
    group.transform = (scale, 0, 0, -scale, x + offset, top)
    return group


def _tooth_number(tooth: ToothView, x: float, y: float) -> String:
    return String(
        x + CELL_WIDTH / 2,
        y,
        str(tooth.tooth_number),
        fontName="Helvetica-Bold" if tooth.selected else "Helvetica",
        fontSize=8,
        fillColor=_hex(SELECTION_COLOR if tooth.selected else LABEL_COLOR),
        textAnchor="middle",
    )


def _draw_row(
    drawing: Drawing,
    quadrants: tuple[QuadrantView, QuadrantView],
    top: float,
    *,
    upper: bool,
) -> None:
    left, right = quadrants
    x = MARGIN
    tooth_top = top - 12 if upper else top
    number_y = top - 8 if upper else top - TOOTH_BOX_HEIGHT - 10
    for quadrant in (left, right):
        for tooth in quadrant.teeth:
            drawing.add(_tooth_group(tooth, x, tooth_top))
            drawing.add(_tooth_number(tooth, x, number_y))
            x += CELL_WIDTH
        x += MIDLINE_GAP
    midline_x = MARGIN + 8 * CELL_WIDTH + MIDLINE_GAP / 2
    drawing.add(
        Line(
            midline_x,
            top,
            midline_x,
            top - ROW_HEIGHT + 8,
            strokeColor=_hex(DIVIDER_COLOR),
            strokeWidth=2,
        )
    )


def _draw_legend(drawing: Drawing, view: ChartView) -> None:
    x = MARGIN
    y = CHART_HEIGHT - MARGIN - 10
    for entry in view.legend:
        swatch = Rect(
            x,
            y,
            10,
            10,
            rx=2,
            ry=2,
            fillColor=_hex(entry.swatch),
            strokeColor=_hex(entry.stroke),
            strokeWidth=1.5,
        )
        if entry.dashed:
            swatch.strokeDashArray = [2, 1]
        drawing.add(swatch)
        drawing.add(
            String(x + 14, y + 2, entry.label, fontName="Helvetica", fontSize=8, fillColor=_hex(LABEL_COLOR))
        )
        x += 80


def build_chart_drawing(view: ChartView) -> Drawing:
    drawing = Drawing(CHART_WIDTH, CHART_HEIGHT)
    _draw_legend(drawing, view)

    upper_top = CHART_HEIGHT - LEGEND_HEIGHT - MARGIN - 6
    drawing.add(
        String(
            CHART_WIDTH / 2,
            upper_top + 4,
            "SUPERIOR",
            fontName="Helvetica-Bold",
            fontSize=7,
            fillColor=_hex(LABEL_COLOR),
            textAnchor="middle",
        )
    )
    _draw_row(drawing, view.upper_row, upper_top, upper=True)

    divider_y = upper_top - ROW_HEIGHT
    drawing.add(
        Line(
            MARGIN,
            divider_y,
            CHART_WIDTH - MARGIN,
            divider_y,
            strokeColor=_hex(DIVIDER_COLOR),
            strokeWidth=1,
        )
    )

    lower_top = divider_y - 6
    _draw_row(drawing, view.lower_row, lower_top, upper=False)
    drawing.add(
        String(
            CHART_WIDTH / 2,
            MARGIN / 2,
            "INFERIOR",
            fontName="Helvetica-Bold",
            fontSize=7,
            fillColor=_hex(LABEL_COLOR),
            textAnchor="middle",
        )
    )
    return drawing


def render_chart_svg(view: ChartView) -> str:
    return renderSVG.drawToString(build_chart_drawing(view))


def _findings_rows(view: ChartView) -> list[list[str]]:
    rows = [["Diente", "Condición", "Superficies", "Notas", "Tratamiento"]]
    for tooth in sorted(view.teeth, key=lambda item: item.tooth_number):
        if tooth.condition == ToothCondition.healthy and not tooth.findings and not tooth.notes:
            continue
        surfaces = ", ".join(
            f"{SURFACE_LABELS[ToothSurface(key)]}: {value}" if value else SURFACE_LABELS[ToothSurface(key)]
            for key, value in tooth.findings.items()
        )
        rows.append(
            [
                str(tooth.tooth_number),
                tooth.label,
                surfaces or "—",
                tooth.notes or "—",
                tooth.treatment_needed or "—",
            ]
        )
    return rows


def _findings_table(rows: list[list[str]]) -> Table:
    header_style = ParagraphStyle("findings-header", fontName="Helvetica-Bold", fontSize=8, leading=10)
    cell_style = ParagraphStyle("findings-cell", fontName="Helvetica", fontSize=8, leading=10)
    cells = [
        [Paragraph(escape(value), header_style if index == 0 else cell_style) for value in row]
        for index, row in enumerate(rows)
    ]
    table = Table(cells, colWidths=FINDINGS_COL_WIDTHS, repeatRows=1)
    table.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#f0f0f0")),
                ("GRID", (0, 0), (-1, -1), 0.25, colors.lightgrey),
                ("VALIGN", (0, 0), (-1, -1), "TOP"),
            ]
        )
    )
    return table


def paginate_table(
    table: Table, width: float, first_height: float, page_height: float
) -> list[Table | None]:
    """Cut a table into one part per page; None marks a page with no room for a row."""
    parts: list[Table | None] = []
    remaining: Table | None = table
    available = first_height
    while remaining is not None:
        pieces = remaining.split(width, available)
        if pieces:
            parts.append(pieces[0])
            remaining = pieces[1] if len(pieces) > 1 else None
        elif available >= page_height:
            # A row taller than a full page is drawn as is.
            parts.append(remaining)
            remaining = None
        else:
            parts.append(None)
        available = page_height
    return parts


def render_chart_pdf(view: ChartView, *, patient_name: str) -> bytes:
    page_width, page_height = landscape(A4)
    buffer = BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=(page_width, page_height))

    header_y = draw_header(pdf, "Odontograma", page_width=page_width, page_height=page_height)
    pdf.setFont("Helvetica", 10)
    pdf.drawString(15 * mm, header_y - 6 * mm, f"Paciente: {patient_name}")

    drawing = build_chart_drawing(view)
    chart_y = header_y - 10 * mm - CHART_HEIGHT
    renderPDF.draw(drawing, pdf, (page_width - CHART_WIDTH) / 2, chart_y)

    rows = _findings_rows(view)
    if len(rows) > 1:
        width = page_width - 30 * mm
        top = chart_y - 6 * mm
        full_page = header_y - 6 * mm - PAGE_BOTTOM
        parts = paginate_table(_findings_table(rows), width, top - PAGE_BOTTOM, full_page)
        for page_index, part in enumerate(parts):
            if page_index:
                pdf.showPage()
                draw_header(pdf, "Odontograma", page_width=page_width, page_height=page_height)
                top = header_y - 6 * mm
            if part is None:
                continue
            _, height = part.wrapOn(pdf, width, top - PAGE_BOTTOM)
            part.drawOn(pdf, 15 * mm, top - height)
    else:
        pdf.setFont("Helvetica", 9)
        pdf.drawString(15 * mm, chart_y - 10 * mm, "Sin hallazgos registrados.")

    pdf.showPage()
    pdf.save()
    return buffer.getvalue()
