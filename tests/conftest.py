from __future__ import annotations

import io
from pathlib import Path
from typing import Any, Callable, List, Sequence

import openpyxl
import pytest

FIXTURES_DIR = Path(__file__).parent / "tariff" / "fixtures"

BOM_HEADERS = [
    "NUMPRODTERMINADO",
    "FRACCION_PT",
    "DESCESPANOL_PT",
    "NUMCOMPONENTE",
    "DESCESPANOL",
    "CANTIDADCONSUMO",
    "FRACCION",
    "UNI_MED_SALDOS",
    "COSTO_UNITARIO",
    "COSTO_TOTAL",
    "PAISORIGEN",
]

# PT-100: materials 100 (MX 30, CN 40, US 30); with TMC 150 the RVC is 73.33%.
# PT-200: first line has an invalid cost and no country.
BOM_ROWS = [
    ["PT-100", "8708.29", "ASIENTO DELANTERO", "C-1", "TORNILLO", 4, "7318.15.01", "PZA", 7.5, 30.0, "mx"],
    ["PT-100", "8708.29", "ASIENTO DELANTERO", "C-2", "TELA TAPIZ", 1, "5903.10", "M", 40.0, "$40.00", "CN"],
    ["PT-100", "8708.29", "ASIENTO DELANTERO", "C-3", "SOPORTE", 1, "8708.29.99", "PZA", 30.0, 30.0, "US"],
    ["PT-200", "9401.20", "SILLA", "C-9", "MARCO", 1, "9401.90", "PZA", "$1,250.00", None, None],
    ["PT-200", "9401.20", "SILLA", "C-10", "ESPUMA", 2, "3921.13", "PZA", 250.0, 500.0, "CN"],
]


def build_xlsx(rows: Sequence[Sequence[Any]], sheet_title: str = "BOM") -> bytes:
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = sheet_title
    for row in rows:
        ws.append(list(row))
    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


@pytest.fixture
def bom_table() -> List[List[Any]]:
    """Raw table as produced by the file readers: header row first."""
    return [list(BOM_HEADERS)] + [list(row) for row in BOM_ROWS]


@pytest.fixture
def make_xlsx() -> Callable[..., bytes]:
    return build_xlsx


@pytest.fixture
def bom_xlsx_bytes(bom_table) -> bytes:
    return build_xlsx(bom_table)


@pytest.fixture
def bom_xlsx_path(tmp_path, bom_xlsx_bytes) -> Path:
    path = tmp_path / "bom.xlsx"
    path.write_bytes(bom_xlsx_bytes)
    return path


@pytest.fixture
def bom_csv_bytes() -> bytes:
    return (FIXTURES_DIR / "sample_bom.csv").read_bytes()
