"""Header-row resolution for USMCA BOM spreadsheets.

The BOM export uses fixed Spanish header labels. Each semantic field is
located by exact (trimmed, case-sensitive) match against its label; fields
that are not present resolve to ``NOT_FOUND``.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Sequence

from usmcarvc.tariff.errors import MissingColumnsError

logger = logging.getLogger(__name__)

NOT_FOUND = -1

# semantic field -> header label
COLUMN_LABELS: Dict[str, str] = {
    "part_number": "NUMPRODTERMINADO",
    "htsus_main": "FRACCION_PT",
    "description_pt": "DESCESPANOL_PT",
    "component_num": "NUMCOMPONENTE",
    "description": "DESCESPANOL",
    "quantity": "CANTIDADCONSUMO",
    "htsus_component": "FRACCION",
    "unit": "UNI_MED_SALDOS",
    "cost_unit": "COSTO_UNITARIO",
    "cost_total": "COSTO_TOTAL",
    "country": "PAISORIGEN",
}

# required field -> name shown to users
REQUIRED_COLUMNS: Dict[str, str] = {
    "part_number": "Part Number",
    "htsus_main": "HTSUS Main",
    "cost_total": "Total Cost",
    "country": "Country of Origin",
}


@dataclass(frozen=True, slots=True)
class ColumnSchema:
    """Zero-based column position of every semantic BOM field."""

    part_number: int = NOT_FOUND
    htsus_main: int = NOT_FOUND
    description_pt: int = NOT_FOUND
    component_num: int = NOT_FOUND
    description: int = NOT_FOUND
    quantity: int = NOT_FOUND
    htsus_component: int = NOT_FOUND
    unit: int = NOT_FOUND
    cost_unit: int = NOT_FOUND
    cost_total: int = NOT_FOUND
    country: int = NOT_FOUND

    def missing_required(self) -> List[str]:
        return [
            label
            for key, label in REQUIRED_COLUMNS.items()
            if getattr(self, key) == NOT_FOUND
        ]

    def as_dict(self) -> Dict[str, int]:
        return asdict(self)


def _header_text(value: Any) -> str:
    return "" if value is None else str(value).strip()


def find_column_indexes(headers: Sequence[Any]) -> ColumnSchema:
    """Locate every semantic field in ``headers`` without validating."""
    texts = [_header_text(value) for value in headers or ()]
    indexes: Dict[str, int] = {}
    for key, label in COLUMN_LABELS.items():
        indexes[key] = texts.index(label) if label in texts else NOT_FOUND
    return ColumnSchema(**indexes)


def resolve_columns(headers: Sequence[Any]) -> ColumnSchema:
    """Resolve a header row, failing when a required column is absent."""
    schema = find_column_indexes(headers)
    missing = schema.missing_required()
    if missing:
        logger.warning("BOM header missing required columns: %s", missing)
        raise MissingColumnsError(missing)
    return schema
