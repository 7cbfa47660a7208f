"""Render meeting minutes into a PDF document with fpdf2."""

from __future__ import annotations

from fpdf import FPDF
from fpdf.enums import XPos, YPos

from minutes_bot.extraction.minutes import to_ascii_safe

FONT_FAMILY = "Helvetica"
TITLE_SIZE = 18
HEADING_SIZE = 14
BODY_SIZE = 12
MARGIN_MM = 18


def _write_line(pdf: FPDF, text: str, height: float) -> None:
    pdf.multi_cell(0, height, text, new_x=XPos.LMARGIN, new_y=YPos.NEXT)


def render_minutes_pdf(title: str, body: str) -> bytes:
    """Render a title and Markdown-like minutes body to PDF bytes.

    Text is folded to printable ASCII first because the built-in PDF fonts
    only cover Latin-1.  Lines starting with ``#`` become bold headings.
    """
    pdf = FPDF(format="A4")
    pdf.set_margins(MARGIN_MM, MARGIN_MM, MARGIN_MM)
    pdf.set_auto_page_break(auto=True, margin=MARGIN_MM)
    pdf.add_page()

    pdf.set_font(FONT_FAMILY, style="BU", size=TITLE_SIZE)
    _write_line(pdf, to_ascii_safe(title) or " ", 10)
    pdf.ln(4)

    for line in to_ascii_safe(body).splitlines():
        stripped = line.strip()
        if not stripped:
            pdf.ln(3)
        elif stripped.startswith("#"):
            pdf.ln(2)
            pdf.set_font(FONT_FAMILY, style="B", size=HEADING_SIZE)
            _write_line(pdf, stripped.lstrip("#").strip(), 8)
        else:
            pdf.set_font(FONT_FAMILY, size=BODY_SIZE)
            _write_line(pdf, line.rstrip(), 6)

    return bytes(pdf.output())
