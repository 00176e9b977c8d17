from __future__ import annotations

from reportlab.lib import colors
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas

from app.core.settings import settings


def format_money(cents: int) -> str:
    return f"{settings.currency_symbol}{cents / 100:,.2f}"


def draw_header(pdf: canvas.Canvas, title: str, *, page_width: float, page_height: float) -> float:
    """Clinic name on the left, document title on the right; returns the y below the rule."""
    top = page_height - 15 * mm
    pdf.setFont("Helvetica-Bold", 16)
    pdf.drawString(15 * mm, top, settings.clinic_name)
    pdf.setFont("Helvetica-Bold", 14)
    pdf.drawRightString(page_width - 15 * mm, top, title)
    pdf.setStrokeColor(colors.lightgrey)
    rule_y = top - 9 * mm
    pdf.line(15 * mm, rule_y, page_width - 15 * mm, rule_y)
    return rule_y
