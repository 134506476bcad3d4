"""Printable USMCA analysis report rendered with reportlab.

Page 1 reproduces the BOM with the added tariff-shift column; the last page
is the qualification summary (product identification, cost breakdown,
status, calculated RVC and material cost per country).
"""

from __future__ import annotations

import logging
from datetime import date
from io import BytesIO
from typing import List, Optional, Sequence

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.units import mm
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

from usmcarvc.tariff.formatters import format_currency, format_percentage, format_report_date
from usmcarvc.tariff.models import AnalysisResult, ComponentRecord, PartNumberEntry

logger = logging.getLogger(__name__)

PAGE_SIZE = landscape(A4)
MARGIN = 10 * mm
ROW_HEIGHT = 5 * mm
HEADER_FILL = colors.Color(79 / 255, 70 / 255, 229 / 255)

# (label, width in mm, alignment)
TABLE_COLUMNS = [
    ("Component", 30, "left"),
    ("Description", 85, "left"),
    ("HTSUS", 26, "center"),
    ("Country", 18, "center"),
    ("Quantity", 20, "right"),
    ("Unit", 16, "center"),
    ("Cost Unit.", 28, "right"),
    ("Cost Total", 28, "right"),
    ("Tariff Shift", 26, "center"),
]


def _clip(text: str, width: float, font: str, size: float) -> str:
    if stringWidth(text, font, size) <= width:
        return text
    while text and stringWidth(text + "...", font, size) > width:
        text = text[:-1]
    return text + "..."


def _component_cells(comp: ComponentRecord) -> List[str]:
    def _text(value: object) -> str:
        return "-" if value is None or value == "" else str(value)

    return [
        _text(comp.component_num),
        _text(comp.description),
        _text(comp.htsus),
        _text(comp.country),
        _text(comp.quantity),
        _text(comp.unit),
        format_currency(comp.cost_unit),
        format_currency(comp.cost_total),
        comp.tariff_shift.value if comp.tariff_shift else "-",
    ]


def _draw_row(c: canvas.Canvas, y: float, cells: Sequence[str], *, header: bool = False) -> None:
    font = "Helvetica-Bold" if header else "Helvetica"
    size = 7
    x = MARGIN
    for (label, width_mm, align), text in zip(TABLE_COLUMNS, cells):
        width = width_mm * mm
        if header:
            c.setFillColor(HEADER_FILL)
            c.rect(x, y, width, ROW_HEIGHT, stroke=1, fill=1)
            c.setFillColor(colors.white)
            align = "center"
        else:
            c.rect(x, y, width, ROW_HEIGHT, stroke=1, fill=0)
            c.setFillColor(colors.black)
        cell_font = "Courier" if label == "HTSUS" and not header else font
        c.setFont(cell_font, size)
        text = _clip(text, width - 2 * mm, cell_font, size)
        baseline = y + 1.6 * mm
        if align == "right":
            c.drawRightString(x + width - 1 * mm, baseline, text)
        elif align == "center":
            c.drawCentredString(x + width / 2, baseline, text)
        else:
            c.drawString(x + 1 * mm, baseline, text)
        x += width
    c.setFillColor(colors.black)


def _draw_bom_pages(
    c: canvas.Canvas, part: PartNumberEntry, result: AnalysisResult, date_str: str
) -> None:
    width, height = PAGE_SIZE
    center = width / 2

    c.setFont("Helvetica-Bold", 10)
    c.drawCentredString(center, height - 8 * mm, "BOM WITH USMCA CALCULATION")
    c.setFont("Helvetica", 6)
    c.drawCentredString(center, height - 11.5 * mm, f"Part Number: {part.part_number}")
    c.drawCentredString(center, height - 14 * mm, f"Part Description: {part.description}")
    c.drawCentredString(
        center, height - 16.5 * mm, f"Date Cost: {date_str}        Reference Currency: USD"
    )
    c.drawCentredString(
        center,
        height - 19 * mm,
        f"Qualify: {result.content_rvc.value}        HTS: {part.htsus}",
    )

    c.setLineWidth(0.3)
    headers = [label for label, _, _ in TABLE_COLUMNS]
    y = height - 23 * mm - ROW_HEIGHT
    _draw_row(c, y, headers, header=True)
    for comp in result.components:
        y -= ROW_HEIGHT
        if y < MARGIN:
            c.showPage()
            c.setLineWidth(0.3)
            y = height - MARGIN - ROW_HEIGHT
            _draw_row(c, y, headers, header=True)
            y -= ROW_HEIGHT
        _draw_row(c, y, _component_cells(comp))


def _draw_summary_page(
    c: canvas.Canvas, part: PartNumberEntry, result: AnalysisResult, date_str: str
) -> None:
    width, height = PAGE_SIZE
    left = MARGIN + 2 * mm
    value_x = left + 58 * mm
    pct_x = left + 82 * mm

    c.setFillColor(colors.black)
    c.setFont("Helvetica-Bold", 14)
    c.drawCentredString(width / 2, height - 13 * mm, "BOM WITH USMCA CALCULATION")
    c.setFont("Helvetica-Bold", 12)
    c.drawCentredString(width / 2, height - 20 * mm, "QUALIFICATION RESULTS")

    def _block(top: float, rows: Sequence[Sequence[str]], *, shaded: bool = False) -> float:
        box_height = (len(rows) + 1) * 5 * mm
        c.setLineWidth(0.5)
        if shaded:
            c.setFillColor(colors.Color(220 / 255, 220 / 255, 220 / 255))
            c.rect(MARGIN, top - box_height, 115 * mm, box_height, stroke=1, fill=1)
            c.setFillColor(colors.black)
        else:
            c.rect(MARGIN, top - box_height, 115 * mm, box_height, stroke=1, fill=0)
        y = top - 5 * mm
        for cells in rows:
            c.setFont("Helvetica-Bold", 9)
            c.drawString(left, y, cells[0])
            c.setFont("Helvetica", 9)
            for x, text in zip((value_x, pct_x), cells[1:]):
                c.drawString(x, y, text)
            y -= 5 * mm
        return top - box_height - 5 * mm

    top = height - 30 * mm
    top = _block(
        top,
        [
            ("PART NUMBER:", part.part_number),
            ("PRODUCT NAME:", part.description),
            ("END ITEM HTS:", part.htsus),
            ("DATE COST:", date_str),
            ("CURRENCY:", "USD"),
            ("AGREEMENT:", "USMCA"),
        ],
        shaded=True,
    )
    top = _block(
        top,
        [
            ("TOTAL MATERIAL COST:", format_currency(result.total_materials)),
            ("OTHER (LABOR BURDEN O/H):", format_currency(result.labor_and_others)),
            ("NET COST:", format_currency(result.total_manufactured_cost)),
        ],
    )
    status = "RVC ACCOMPLISHED" if result.qualifies else "INELIGIBLE"
    top = _block(
        top,
        [
            ("STATUS:", result.content_rvc.value),
            (status, ""),
            ("CALCULATED RVC:", format_percentage(result.rvc)),
        ],
    )

    tmc = result.total_manufactured_cost
    top = _block(
        top,
        [
            (
                "NON REGIONAL MATERIAL:",
                format_currency(result.non_originating_total),
                format_percentage(result.non_originating_total / tmc * 100),
            ),
            (
                "OTHER (LABOR BURDEN O/H):",
                format_currency(result.labor_and_others),
                format_percentage(result.labor_and_others / tmc * 100),
            ),
        ],
    )

    c.setFont("Helvetica-Bold", 9)
    c.drawString(left, top, "MATERIAL COST/COUNTRY:")
    y = top - 5 * mm
    for entry in result.countries_by_total():
        if y < MARGIN:
            c.showPage()
            y = height - MARGIN
        label = entry.country or "(blank)"
        c.setFont("Helvetica", 9)
        c.drawString(left, y, f"MATERIAL COST/COUNTRY {label}:")
        c.drawString(value_x, y, format_currency(entry.total))
        c.drawString(pct_x, y, format_percentage(entry.percentage))
        c.drawString(pct_x + 22 * mm, y, "USMCA" if entry.is_usmca else "Non-USMCA")
        y -= 5 * mm


def generate_pdf_report(
    part: PartNumberEntry,
    result: AnalysisResult,
    on: Optional[date] = None,
) -> bytes:
    """Render the BOM and qualification summary as PDF bytes."""
    date_str = format_report_date(on)

    output = BytesIO()
    c = canvas.Canvas(output, pagesize=PAGE_SIZE)
    c.setTitle(f"USMCA Analysis {part.part_number}")
    c.setPageCompression(0)

    _draw_bom_pages(c, part, result, date_str)
    c.showPage()
    _draw_summary_page(c, part, result, date_str)
    c.showPage()
    c.save()

    logger.debug("PDF report for %s: %d components", part.part_number, len(result.components))
    return output.getvalue()
