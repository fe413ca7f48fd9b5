"""Monthly spending summary rendered to PDF with reportlab"""

import calendar
import io
from datetime import date
from typing import List, Tuple
from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas

LEFT_MARGIN = 72
TOP_MARGIN = 72
LINE_HEIGHT = 18


def render_monthly_summary(
    year: int,
    month: int,
    total_spending: float,
    categories: List[Tuple[str, float]],
    generated_on: date | None = None,
) -> bytes:
    """One-page PDF: title, total spending, per-category totals and generation date"""
    generated_on = generated_on or date.today()
    buffer = io.BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=letter)
    pdf.setTitle(f"Monthly Financial Summary - {calendar.month_name[month]} {year}")
    _, height = letter
    y = height - TOP_MARGIN

    pdf.setFont("Helvetica-Bold", 18)
    pdf.drawString(LEFT_MARGIN, y, f"Monthly Financial Summary - {calendar.month_name[month]} {year}")
    y -= LINE_HEIGHT * 2

    pdf.setFont("Helvetica", 12)
    pdf.drawString(LEFT_MARGIN, y, f"Total Spending: ${total_spending:,.2f}")
    y -= LINE_HEIGHT
    pdf.drawString(LEFT_MARGIN, y, f"Generated: {generated_on.isoformat()}")
    y -= LINE_HEIGHT * 2

    pdf.setFont("Helvetica-Bold", 13)
    pdf.drawString(LEFT_MARGIN, y, "Spending by Category:")
    y -= LINE_HEIGHT
    pdf.setFont("Helvetica", 12)
    for category, amount in categories:
        if y < TOP_MARGIN:
            pdf.showPage()
            pdf.setFont("Helvetica", 12)
            y = height - TOP_MARGIN
        pdf.drawString(LEFT_MARGIN + 12, y, f"{category}: ${amount:,.2f}")
        y -= LINE_HEIGHT

    pdf.showPage()
    pdf.save()
    return buffer.getvalue()
