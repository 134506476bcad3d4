"""Tests for the formatters and the Excel/PDF report generators."""

from __future__ import annotations

import io
from datetime import date

import openpyxl
import pytest

from usmcarvc.tariff.analysis import analyze_part
from usmcarvc.tariff.bom_parser import ingest_bom
from usmcarvc.tariff.excel_generator import BOM_SHEET, RESULTS_SHEET, generate_excel_report
from usmcarvc.tariff.formatters import (
    format_currency,
    format_percentage,
    format_report_date,
    report_filename,
)
from usmcarvc.tariff.models import ComponentRecord
from usmcarvc.tariff.origin_engine import analyze
from usmcarvc.tariff.pdf_generator import generate_pdf_report

REPORT_DATE = date(2024, 3, 5)


@pytest.fixture
def analysis(bom_table):
    return analyze_part(ingest_bom(bom_table), "PT-100", 150)


def _column_a_lookup(ws):
    return {
        row[0].value: row[1].value
        for row in ws.iter_rows(min_row=1, max_col=2)
        if isinstance(row[0].value, str)
    }


class TestFormatters:
    def test_currency(self):
        assert format_currency(1234.5) == "$1,234.50"
        assert format_currency(0) == "$0.00"
        assert format_currency(None) == "$0.00"

    def test_percentage(self):
        assert format_percentage(73.3333) == "73.33%"
        assert format_percentage(None) == "0.00%"

    def test_report_date(self):
        assert format_report_date(REPORT_DATE) == "03/05/2024"

    def test_report_filename(self):
        assert report_filename("PT-100", "pdf", on=REPORT_DATE) == "USMCA_Analysis_PT-100_03-05-2024.pdf"
        assert report_filename("PT-100", ".xlsx", on=REPORT_DATE) == "USMCA_Analysis_PT-100_03-05-2024.xlsx"


class TestExcelReport:
    def test_sheets(self, analysis):
        content = generate_excel_report(analysis.part, analysis.result, on=REPORT_DATE)
        wb = openpyxl.load_workbook(io.BytesIO(content))
        assert wb.sheetnames == [BOM_SHEET, RESULTS_SHEET]

    def test_bom_sheet(self, analysis):
        content = generate_excel_report(analysis.part, analysis.result, on=REPORT_DATE)
        ws = openpyxl.load_workbook(io.BytesIO(content))[BOM_SHEET]

        assert ws["A1"].value == "USMCA ANALYSIS - BOM"
        assert ws["A2"].value == "Part Number: PT-100"
        assert ws["A5"].value == "Date: 03/05/2024"
        assert ws["A6"].value == "Qualify: YES"
        assert ws.cell(row=8, column=1).value == "Component"
        assert ws.cell(row=8, column=9).value == "Tariff Shift"

        assert ws.cell(row=9, column=1).value == "C-1"
        assert ws.cell(row=9, column=3).value == "7318.15.0100"
        assert ws.cell(row=9, column=8).value == pytest.approx(30.0)
        assert ws.cell(row=9, column=9).value == "YES"
        assert ws.cell(row=11, column=9).value == "NA"
        assert ws.column_dimensions["B"].width == 40

    def test_results_sheet(self, analysis):
        content = generate_excel_report(analysis.part, analysis.result, on=REPORT_DATE)
        ws = openpyxl.load_workbook(io.BytesIO(content))[RESULTS_SHEET]
        values = _column_a_lookup(ws)

        assert ws["A1"].value == "QUALIFICATION RESULTS"
        assert values["Part Number:"] == "PT-100"
        assert values["End Item HTS:"] == "8708.29.0000"
        assert values["Total Material Cost:"] == "$100.00"
        assert values["Other (Labor Burden O/H):"] == "$50.00"
        assert values["Net Cost:"] == "$150.00"
        assert values["Qualify:"] == "YES"
        assert values["RVC:"] == "ACCOMPLISHED"
        assert values["Calculated RVC:"] == "73.33%"
        assert ws.column_dimensions["A"].width == 30

    def test_country_table_sorted_by_total(self, analysis):
        content = generate_excel_report(analysis.part, analysis.result, on=REPORT_DATE)
        ws = openpyxl.load_workbook(io.BytesIO(content))[RESULTS_SHEET]

        rows = [tuple(c.value for c in row) for row in ws.iter_rows(max_col=4)]
        header_idx = rows.index(("Country", "Total Cost", "Percentage", "Status"))
        countries = rows[header_idx + 1:]
        assert countries == [
            ("MX", "$80.00", "53.33%", "USMCA"),
            ("CN", "$40.00", "26.67%", "Non-USMCA"),
            ("US", "$30.00", "20.00%", "USMCA"),
        ]

    def test_ineligible_part(self, bom_table):
        analysis = analyze_part(ingest_bom(bom_table), "PT-200", 1000)
        content = generate_excel_report(analysis.part, analysis.result, on=REPORT_DATE)
        wb = openpyxl.load_workbook(io.BytesIO(content))
        values = _column_a_lookup(wb[RESULTS_SHEET])
        assert values["RVC:"] == "INELIGIBLE"
        # blank cells render as a dash in the component table
        assert wb[BOM_SHEET].cell(row=9, column=4).value == "-"


class TestPDFReport:
    def test_renders_pdf(self, analysis):
        content = generate_pdf_report(analysis.part, analysis.result, on=REPORT_DATE)
        assert content.startswith(b"%PDF")
        assert b"BOM WITH USMCA CALCULATION" in content
        assert b"QUALIFICATION RESULTS" in content
        assert b"RVC ACCOMPLISHED" in content
        assert b"73.33%" in content
        assert b"03/05/2024" in content

    def test_ineligible_status(self, bom_table):
        analysis = analyze_part(ingest_bom(bom_table), "PT-200", 1000)
        content = generate_pdf_report(analysis.part, analysis.result, on=REPORT_DATE)
        assert b"INELIGIBLE" in content

    def test_long_bom_paginates(self):
        components = [
            ComponentRecord(
                row_number=i + 2,
                component_num=f"C-{i}",
                description="COMPONENTE CON UNA DESCRIPCION MUY LARGA QUE NO CABE EN LA CELDA " * 2,
                quantity=1,
                unit="PZA",
                cost_unit=1.0,
                cost_total=1.0,
                country="CN" if i % 2 else "MX",
                htsus="7318.15.0100",
            )
            for i in range(120)
        ]
        result = analyze(components, 300.0, "8708.29.0000")
        from usmcarvc.tariff.models import PartNumberEntry

        part = PartNumberEntry(part_number="PT-LONG", description="LARGO", htsus="8708.29.0000")
        content = generate_pdf_report(part, result, on=REPORT_DATE)
        assert content.startswith(b"%PDF")
        assert b"C-119" in content
