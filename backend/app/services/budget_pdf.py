from __future__ import annotations

from io import BytesIO

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas
from reportlab.platypus import Table, TableStyle

from app.models.budget import Budget
from app.services.pdf import draw_header, format_money

STATUS_LABELS = {
    "pending": "Pendiente",
    "accepted": "Aceptado",
    "rejected": "Rechazado",
}


def _draw_patient_block(pdf: canvas.Canvas, budget: Budget, top: float) -> None:
    patient = budget.patient
    pdf.setFont("Helvetica-Bold", 11)
    pdf.drawString(15 * mm, top, "Paciente")
    pdf.setFont("Helvetica", 10)
    pdf.drawString(15 * mm, top - 5 * mm, patient.full_name)
    if patient.document_number:
        pdf.drawString(15 * mm, top - 10 * mm, f"Documento: {patient.document_number}")

    pdf.setFont("Helvetica-Bold", 10)
    pdf.drawString(120 * mm, top, f"Presupuesto: PRES-{budget.id}")
    pdf.setFont("Helvetica", 10)
    pdf.drawString(120 * mm, top - 5 * mm, f"Fecha: {budget.created_at.date().isoformat()}")
    pdf.drawString(120 * mm, top - 10 * mm, f"Estado: {STATUS_LABELS.get(budget.status.value, budget.status.value)}")
    if budget.created_by is not None:
        pdf.drawString(120 * mm, top - 15 * mm, f"Elaborado por: {budget.created_by.display_name}")


def _draw_items_table(pdf: canvas.Canvas, budget: Budget, top: float) -> float:
    data = [["Descripción", "Diente", "Cant.", "Precio", "Total"]]
    for item in budget.items:
        data.append(
            [
                item.description,
                str(item.tooth_number) if item.tooth_number else "—",
                str(item.quantity),
                format_money(item.unit_price_cents),
                format_money(item.total_cents),
            ]
        )
    table = Table(data, colWidths=[85 * mm, 18 * mm, 15 * mm, 30 * mm, 30 * mm])
    table.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#f0f0f0")),
                ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                ("GRID", (0, 0), (-1, -1), 0.25, colors.lightgrey),
                ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
                ("ALIGN", (1, 1), (-1, -1), "RIGHT"),
            ]
        )
    )
    _, height = table.wrapOn(pdf, 180 * mm, top)
    table.drawOn(pdf, 15 * mm, top - height)
    return top - height


def _draw_totals(pdf: canvas.Canvas, budget: Budget, y: float) -> float:
    rows = [("Subtotal", format_money(budget.subtotal_cents))]
    if budget.discount_percent:
        rows.append(
            (f"Descuento ({budget.discount_percent}%)", f"-{format_money(budget.discount_amount_cents)}")
        )
    rows.append(("Total", format_money(budget.total_cents)))
    for index, (label, value) in enumerate(rows):
        is_total = index == len(rows) - 1
        pdf.setFont("Helvetica-Bold" if is_total else "Helvetica", 11 if is_total else 10)
        pdf.drawRightString(160 * mm, y, label)
        pdf.drawRightString(193 * mm, y, value)
        y -= 6 * mm
    return y


def build_budget_pdf(budget: Budget) -> bytes:
    page_width, page_height = A4
    buffer = BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=A4)
    header_y = draw_header(pdf, "Presupuesto", page_width=page_width, page_height=page_height)
    _draw_patient_block(pdf, budget, header_y - 8 * mm)
    table_bottom = _draw_items_table(pdf, budget, header_y - 28 * mm)
    next_y = _draw_totals(pdf, budget, table_bottom - 10 * mm)
    if budget.notes:
        pdf.setFont("Helvetica-Bold", 10)
        pdf.drawString(15 * mm, next_y - 4 * mm, "Notas")
        pdf.setFont("Helvetica", 9)
        pdf.drawString(15 * mm, next_y - 9 * mm, budget.notes)
    pdf.showPage()
    pdf.save()
    return buffer.getvalue()
