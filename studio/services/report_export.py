"""Render the timesheet of a date range as a PDF."""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Iterable, Optional

from fpdf import FPDF
from fpdf.enums import XPos, YPos

from ..core.enums import ENERGY_LEVELS, SATISFACTION_LEVELS
from ..models.time_entry import TimeEntry
from .timecalc import format_hours

LOGGER = logging.getLogger(__name__)

PDF_FONT_FAMILY = "Helvetica"
# (header, width in mm)
COLUMNS = (
    ("Data", 22),
    ("Atividade", 62),
    ("Categoria", 28),
    ("Projeto", 38),
    ("Horas", 16),
    ("E/S", 14),
)


def _pdf_text(value: object) -> str:
    """Core PDF fonts are latin-1 only; anything else becomes '?'."""

    return str(value or "").encode("latin-1", "replace").decode("latin-1")


def _format_day(value: Optional[str]) -> str:
    if not value:
        return ""
    try:
        return date.fromisoformat(value[:10]).strftime("%d/%m/%Y")
    except ValueError:
        return value


def _bio_label(entry: TimeEntry) -> str:
    if not entry.energia or not entry.satisfacao:
        return "-"
    return f"{entry.energia}/{entry.satisfacao}"


def render_timesheet_pdf(
    entries: Iterable[TimeEntry],
    *,
    owner: str,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
) -> bytes:
    rows = list(entries)
    pdf = FPDF(unit="mm", format="A4")
    pdf.set_auto_page_break(auto=True, margin=15)
    pdf.add_page()
    effective_width = pdf.w - pdf.l_margin - pdf.r_margin

    pdf.set_font(PDF_FONT_FAMILY, "B", 16)
    pdf.cell(effective_width, 10, "Relatório de Horas", new_x=XPos.LMARGIN, new_y=YPos.NEXT)

    pdf.set_font(PDF_FONT_FAMILY, size=10)
    period = "Todo o período"
    if date_from or date_to:
        start = date_from.strftime("%d/%m/%Y") if date_from else "..."
        end = date_to.strftime("%d/%m/%Y") if date_to else "..."
        period = f"{start} a {end}"
    generated_at = datetime.now(timezone.utc).astimezone()
    for line in (
        f"Responsável: {owner}",
        f"Período: {period}",
        f"Gerado em: {generated_at.strftime('%d/%m/%Y %H:%M')}",
    ):
        pdf.cell(effective_width, 5, _pdf_text(line), new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.ln(4)

    pdf.set_font(PDF_FONT_FAMILY, "B", 9)
    pdf.set_fill_color(235, 235, 235)
    for header, width in COLUMNS:
        pdf.cell(width, 7, _pdf_text(header), border=1, fill=True)
    pdf.ln()

    pdf.set_font(PDF_FONT_FAMILY, size=8)
    total = 0.0
    for entry in rows:
        total += float(entry.hours or 0)
        project_name = entry.project.name if entry.project else ""
        values = (
            _format_day(entry.date),
            entry.activity_name or entry.description or "",
            entry.categoria or "",
            project_name,
            f"{float(entry.hours or 0):.2f}",
            _bio_label(entry),
        )
        for (_, width), value in zip(COLUMNS, values):
            text = _pdf_text(value)
            # Truncate to the column instead of wrapping so rows stay one line high.
            while text and pdf.get_string_width(text) > width - 2:
                text = text[:-1]
            pdf.cell(width, 6, text, border=1)
        pdf.ln()

    if not rows:
        pdf.set_font(PDF_FONT_FAMILY, "I", 9)
        pdf.cell(effective_width, 8, _pdf_text("Nenhum registro no período."), new_x=XPos.LMARGIN, new_y=YPos.NEXT)

    pdf.ln(3)
    pdf.set_font(PDF_FONT_FAMILY, "B", 10)
    pdf.cell(
        effective_width,
        6,
        _pdf_text(f"Total: {total:.2f} h ({format_hours(total)})"),
        new_x=XPos.LMARGIN,
        new_y=YPos.NEXT,
    )
    pdf.set_font(PDF_FONT_FAMILY, size=7)
    legend = "E/S = energia / satisfação. Energia: " + ", ".join(
        f"{k}={v}" for k, v in ENERGY_LEVELS.items()
    ) + ". Satisfação: " + ", ".join(f"{k}={v}" for k, v in SATISFACTION_LEVELS.items()) + "."
    pdf.multi_cell(effective_width, 4, _pdf_text(legend))

    LOGGER.info("timesheet.pdf", extra={"extra_data": {"rows": len(rows)}})
    return bytes(pdf.output())
