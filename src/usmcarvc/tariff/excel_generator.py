"""Excel workbook generator for USMCA RVC analysis results.

The workbook mirrors the printable report:

  Sheet 1: BOM Analysis
    - Part identification block and qualification verdict
    - One row per component, including the tariff-shift flag

  Sheet 2: Qualification Results
    - Product information, cost breakdown, status and calculated RVC
    - Material cost by country, sorted by descending total
"""

from __future__ import annotations

import io
import logging
from datetime import date
from typing import Any, List, Optional

import openpyxl
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from usmcarvc.tariff.formatters import format_currency, format_percentage, format_report_date
from usmcarvc.tariff.models import AnalysisResult, PartNumberEntry

logger = logging.getLogger(__name__)

BOM_SHEET = "BOM Analysis"
RESULTS_SHEET = "Qualification Results"

BOM_HEADERS = [
    "Component", "Description", "HTSUS", "Country", "Quantity",
    "Unit", "Cost Unit.", "Cost Total", "Tariff Shift",
]
BOM_WIDTHS = [15, 40, 15, 10, 10, 10, 12, 12, 12]
RESULTS_WIDTHS = [30, 20, 15, 15]

_NAVY = "1A237E"
_LIGHT_BLUE = "E8EAF6"
_WHITE = "FFFFFF"
_LIGHT_GRAY = "F5F5F5"
_MID_GRAY = "9E9E9E"
_DARK_GRAY = "424242"
_GREEN = "2E7D32"
_RED = "C62828"
_NON_USMCA_BG = "FFF8E1"

_COST_FORMAT = "$#,##0.00"


def _make_font(*, bold=False, size=10, color=_DARK_GRAY) -> Font:
    return Font(bold=bold, size=size, color=color)


def _make_fill(hex_color: str) -> PatternFill:
    return PatternFill(start_color=hex_color, end_color=hex_color, fill_type="solid")


def _thin_border() -> Border:
    thin = Side(style="thin", color=_MID_GRAY)
    return Border(left=thin, right=thin, top=thin, bottom=thin)


def _set_widths(ws: Any, widths: List[float]) -> None:
    for col_idx, width in enumerate(widths, start=1):
        ws.column_dimensions[get_column_letter(col_idx)].width = width


def _style_header_row(ws: Any, row: int, num_cols: int) -> None:
    for col in range(1, num_cols + 1):
        cell = ws.cell(row=row, column=col)
        cell.font = _make_font(bold=True, color=_WHITE)
        cell.fill = _make_fill(_NAVY)
        cell.alignment = Alignment(horizontal="center", vertical="center")
        cell.border = _thin_border()


def _write_row(ws: Any, row: int, values: List[Any], bg_color: str = _WHITE) -> None:
    for col_idx, val in enumerate(values, start=1):
        cell = ws.cell(row=row, column=col_idx)
        cell.value = val
        cell.font = _make_font(size=9)
        cell.fill = _make_fill(bg_color)
        cell.border = _thin_border()


def _section(ws: Any, row: int, title: str, span: int = 4) -> None:
    ws.merge_cells(start_row=row, start_column=1, end_row=row, end_column=span)
    cell = ws.cell(row=row, column=1)
    cell.value = title
    cell.font = _make_font(bold=True, size=11, color=_WHITE)
    cell.fill = _make_fill(_NAVY)


def _dash(value: Any) -> Any:
    return "-" if value is None or value == "" else value


# ---------------------------------------------------------------------------
# Sheet builders
# ---------------------------------------------------------------------------
def _build_bom_sheet(
    ws: Any, part: PartNumberEntry, result: AnalysisResult, date_str: str
) -> None:
    ws.sheet_view.showGridLines = False

    ws.merge_cells(start_row=1, start_column=1, end_row=1, end_column=len(BOM_HEADERS))
    title = ws.cell(row=1, column=1)
    title.value = "USMCA ANALYSIS - BOM"
    title.font = _make_font(bold=True, size=14, color=_WHITE)
    title.fill = _make_fill(_NAVY)
    title.alignment = Alignment(horizontal="center")

    info = [
        f"Part Number: {part.part_number}",
        f"Part Description: {part.description}",
        f"HTS: {part.htsus}",
        f"Date: {date_str}",
        f"Qualify: {result.content_rvc.value}",
    ]
    for offset, line in enumerate(info, start=2):
        ws.cell(row=offset, column=1, value=line).font = _make_font(bold=offset == 2)

    header_row = len(info) + 3
    _write_row(ws, header_row, BOM_HEADERS)
    _style_header_row(ws, header_row, len(BOM_HEADERS))
    ws.freeze_panes = ws.cell(row=header_row + 1, column=1)

    for r_idx, comp in enumerate(result.components, start=header_row + 1):
        bg = _LIGHT_GRAY if r_idx % 2 == 0 else _WHITE
        _write_row(
            ws,
            r_idx,
            [
                _dash(comp.component_num),
                _dash(comp.description),
                _dash(comp.htsus),
                _dash(comp.country),
                _dash(comp.quantity),
                _dash(comp.unit),
                comp.cost_unit,
                comp.cost_total,
                comp.tariff_shift.value if comp.tariff_shift else "-",
            ],
            bg_color=bg,
        )
        ws.cell(row=r_idx, column=7).number_format = _COST_FORMAT
        ws.cell(row=r_idx, column=8).number_format = _COST_FORMAT

    _set_widths(ws, BOM_WIDTHS)


def _build_results_sheet(
    ws: Any, part: PartNumberEntry, result: AnalysisResult, date_str: str
) -> None:
    ws.sheet_view.showGridLines = False
    row = 1

    def _kv(label: str, value: Any, color: str = _DARK_GRAY) -> None:
        nonlocal row
        label_cell = ws.cell(row=row, column=1, value=label)
        label_cell.font = _make_font(bold=True, color=_NAVY)
        label_cell.fill = _make_fill(_LIGHT_BLUE)
        label_cell.border = _thin_border()
        value_cell = ws.cell(row=row, column=2, value=value)
        value_cell.font = _make_font(bold=color != _DARK_GRAY, color=color)
        value_cell.border = _thin_border()
        row += 1

    title = ws.cell(row=row, column=1, value="QUALIFICATION RESULTS")
    title.font = _make_font(bold=True, size=14, color=_NAVY)
    row += 2

    _section(ws, row, "PRODUCT INFORMATION")
    row += 1
    _kv("Part Number:", part.part_number)
    _kv("Product Name:", part.description)
    _kv("End Item HTS:", part.htsus)
    _kv("Date Cost:", date_str)
    _kv("Currency:", "USD")
    _kv("Agreement:", "USMCA")
    row += 1

    _section(ws, row, "COST BREAKDOWN")
    row += 1
    _kv("Total Material Cost:", format_currency(result.total_materials))
    _kv("Other (Labor Burden O/H):", format_currency(result.labor_and_others))
    _kv("Net Cost:", format_currency(result.total_manufactured_cost))
    row += 1

    verdict_color = _GREEN if result.qualifies else _RED
    _section(ws, row, "STATUS")
    row += 1
    _kv("Qualify:", result.content_rvc.value, verdict_color)
    _kv("RVC:", "ACCOMPLISHED" if result.qualifies else "INELIGIBLE", verdict_color)
    _kv("Calculated RVC:", format_percentage(result.rvc), verdict_color)
    row += 1

    _section(ws, row, "MATERIAL COST BY COUNTRY")
    row += 1
    headers = ["Country", "Total Cost", "Percentage", "Status"]
    _write_row(ws, row, headers)
    _style_header_row(ws, row, len(headers))
    row += 1
    for entry in result.countries_by_total():
        _write_row(
            ws,
            row,
            [
                entry.country,
                format_currency(entry.total),
                format_percentage(entry.percentage),
                "USMCA" if entry.is_usmca else "Non-USMCA",
            ],
            bg_color=_WHITE if entry.is_usmca else _NON_USMCA_BG,
        )
        row += 1

    _set_widths(ws, RESULTS_WIDTHS)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def generate_excel_report(
    part: PartNumberEntry,
    result: AnalysisResult,
    on: Optional[date] = None,
) -> bytes:
    """Build the two-sheet analysis workbook and return its ``.xlsx`` bytes."""
    date_str = format_report_date(on)

    wb = openpyxl.Workbook()
    default = wb.active
    if default:
        wb.remove(default)

    _build_bom_sheet(wb.create_sheet(BOM_SHEET), part, result, date_str)
    _build_results_sheet(wb.create_sheet(RESULTS_SHEET), part, result, date_str)

    buf = io.BytesIO()
    wb.save(buf)
    logger.debug("Excel report for %s: %d components", part.part_number, len(result.components))
    return buf.getvalue()
