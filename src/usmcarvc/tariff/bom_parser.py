"""BOM table ingestion: file decoding, part-number catalog, component rows.

The uploaded spreadsheet is read into a plain two-dimensional table (row 0 is
the header). Everything downstream works on that table and a resolved
:class:`~usmcarvc.tariff.bom_schema.ColumnSchema`:

- ``extract_part_numbers`` lists the distinct finished parts for selection
- ``extract_components`` normalizes the BOM lines of one finished part and
  collects row-level data-quality warnings
"""

from __future__ import annotations

import csv
import io
import logging
import math
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

import openpyxl

from usmcarvc.tariff.bom_schema import NOT_FOUND, ColumnSchema, resolve_columns
from usmcarvc.tariff.errors import BOMReadError
from usmcarvc.tariff.hts import format_htsus
from usmcarvc.tariff.models import (
    ComponentExtraction,
    ComponentRecord,
    PartNumberEntry,
    RawTable,
)

logger = logging.getLogger(__name__)

NO_DESCRIPTION = "No description"
XLSX_EXTENSIONS = {".xlsx", ".xlsm"}
CSV_EXTENSIONS = {".csv"}
ALLOWED_EXTENSIONS = XLSX_EXTENSIONS | CSV_EXTENSIONS


# ---------------------------------------------------------------------------
# Cell coercion
# ---------------------------------------------------------------------------
def cell_value(row: Sequence[Any], index: int) -> Any:
    """Return ``row[index]``, or ``None`` for unresolved or short rows."""
    if index == NOT_FOUND or index >= len(row):
        return None
    return row[index]


def cell_text(value: Any) -> str:
    """Render a spreadsheet cell as trimmed text."""
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def part_number_text(value: Any) -> str:
    """Part-number cell as text; numeric zero and other falsy non-text cells are empty."""
    if value is None or (not isinstance(value, str) and not value):
        return ""
    return cell_text(value)


def parse_cost(value: Any) -> float:
    """Parse a cost cell; anything unparseable, negative or non-finite is 0."""
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = re.sub(r"[$,\s]", "", str(value))
        if not text:
            return 0.0
        try:
            number = float(text)
        except ValueError:
            return 0.0
    if not math.isfinite(number) or number < 0:
        return 0.0
    return number


# ---------------------------------------------------------------------------
# File decoding
# ---------------------------------------------------------------------------
def _trim_row(values: Sequence[Any]) -> List[Any]:
    row = list(values)
    while row and (row[-1] is None or (isinstance(row[-1], str) and not row[-1].strip())):
        row.pop()
    return row


def read_xlsx_table(content: bytes) -> RawTable:
    """Read the first worksheet of an XLSX workbook as a list of rows."""
    try:
        wb = openpyxl.load_workbook(io.BytesIO(content), read_only=True, data_only=True)
    except Exception as exc:
        raise BOMReadError(f"Failed to open XLSX: {exc}") from exc
    try:
        if not wb.worksheets:
            raise BOMReadError("Workbook has no worksheets")
        sheet = wb.worksheets[0]
        return [_trim_row(values) for values in sheet.iter_rows(values_only=True)]
    finally:
        wb.close()


def read_csv_table(content: bytes | str) -> RawTable:
    """Read CSV text (UTF-8 with BOM, falling back to latin-1) as rows."""
    if isinstance(content, bytes):
        try:
            text = content.decode("utf-8-sig")
        except UnicodeDecodeError:
            text = content.decode("latin-1")
    else:
        text = content
    return [_trim_row(values) for values in csv.reader(io.StringIO(text))]


def file_extension(filename: str) -> str:
    return "." + filename.rsplit(".", 1)[-1].lower() if "." in filename else ""


def load_bom_table(content: bytes, filename: str) -> RawTable:
    """Decode an uploaded BOM file into a raw table based on its extension."""
    ext = file_extension(filename)
    if ext in XLSX_EXTENSIONS:
        table = read_xlsx_table(content)
    elif ext in CSV_EXTENSIONS:
        table = read_csv_table(content)
    else:
        raise BOMReadError(
            f"Unsupported file format: {filename}. Allowed: {sorted(ALLOWED_EXTENSIONS)}"
        )
    logger.debug("Loaded %d rows from %s", len(table), filename)
    return table


# ---------------------------------------------------------------------------
# Catalog and component extraction
# ---------------------------------------------------------------------------
def _data_rows(table: RawTable):
    for index in range(1, len(table)):
        row = table[index]
        if not row:
            continue
        yield index, row


def extract_part_numbers(table: RawTable, schema: ColumnSchema) -> List[PartNumberEntry]:
    """Distinct finished parts in first-seen order; the first row of each wins."""
    catalog: Dict[str, PartNumberEntry] = {}
    for _, row in _data_rows(table):
        part_number = part_number_text(cell_value(row, schema.part_number))
        if not part_number or part_number in catalog:
            continue
        description = cell_text(cell_value(row, schema.description_pt))
        catalog[part_number] = PartNumberEntry(
            part_number=part_number,
            description=description or NO_DESCRIPTION,
            htsus=format_htsus(cell_value(row, schema.htsus_main)),
        )
    return list(catalog.values())


def extract_components(
    table: RawTable,
    schema: ColumnSchema,
    part_number: str,
) -> ComponentExtraction:
    """Normalize the BOM lines of ``part_number``.

    Rows with a zero/invalid total cost or without a country are kept and
    reported as warnings using 1-based row numbers.
    """
    components: List[ComponentRecord] = []
    warnings: List[str] = []
    target = part_number_text(part_number)
    if not target:
        return ComponentExtraction(components=(), warnings=())

    for index, row in _data_rows(table):
        if part_number_text(cell_value(row, schema.part_number)) != target:
            continue

        row_number = index + 1
        cost_total = parse_cost(cell_value(row, schema.cost_total))
        country = cell_text(cell_value(row, schema.country)).upper()

        if cost_total == 0:
            warnings.append(f"Row {row_number}: cost is 0 or invalid")
        if not country:
            warnings.append(f"Row {row_number}: country not specified")

        components.append(
            ComponentRecord(
                row_number=row_number,
                component_num=cell_text(cell_value(row, schema.component_num)),
                description=cell_text(cell_value(row, schema.description)),
                quantity=cell_value(row, schema.quantity),
                unit=cell_text(cell_value(row, schema.unit)),
                cost_unit=parse_cost(cell_value(row, schema.cost_unit)),
                cost_total=cost_total,
                country=country,
                htsus=format_htsus(cell_value(row, schema.htsus_component)),
            )
        )

    if warnings:
        logger.info("Part %s: %d row warnings", part_number, len(warnings))
    return ComponentExtraction(components=tuple(components), warnings=tuple(warnings))


# ---------------------------------------------------------------------------
# Upload-level ingestion
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class BOMIngestResult:
    """A decoded BOM table with its resolved schema and part catalog."""

    table: RawTable
    schema: ColumnSchema
    part_numbers: Tuple[PartNumberEntry, ...]

    def find_part(self, part_number: str) -> Optional[PartNumberEntry]:
        target = part_number_text(part_number)
        for entry in self.part_numbers:
            if entry.part_number == target:
                return entry
        return None


def ingest_bom(table: RawTable) -> BOMIngestResult:
    """Resolve the header row and build the part-number catalog."""
    if not table:
        raise BOMReadError("BOM file is empty")
    schema = resolve_columns(table[0])
    part_numbers = tuple(extract_part_numbers(table, schema))
    logger.info("Ingested BOM: %d rows, %d part numbers", len(table) - 1, len(part_numbers))
    return BOMIngestResult(table=table, schema=schema, part_numbers=part_numbers)
