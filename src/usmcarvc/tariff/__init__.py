"""USMCA tariff domain package.

BOM ingestion, HTSUS normalization, the net-cost RVC engine and the
Excel/PDF report generators built on top of it.
"""
from .analysis import PartAnalysis, analyze_part
from .bom_parser import BOMIngestResult, extract_components, extract_part_numbers, ingest_bom, load_bom_table
from .bom_schema import ColumnSchema, find_column_indexes, resolve_columns
from .errors import BOMAnalysisError, BOMReadError, InvalidCostError, MissingColumnsError, PartNumberNotFoundError
from .hts import TariffShift, classify_tariff_shift, format_htsus
from .models import AnalysisResult, ComponentRecord, Compliance, CountryBreakdownEntry, PartNumberEntry
from .origin_engine import analyze, is_usmca_country

__all__ = [
    "PartAnalysis",
    "analyze_part",
    "BOMIngestResult",
    "extract_components",
    "extract_part_numbers",
    "ingest_bom",
    "load_bom_table",
    "ColumnSchema",
    "find_column_indexes",
    "resolve_columns",
    "BOMAnalysisError",
    "BOMReadError",
    "InvalidCostError",
    "MissingColumnsError",
    "PartNumberNotFoundError",
    "TariffShift",
    "classify_tariff_shift",
    "format_htsus",
    "AnalysisResult",
    "ComponentRecord",
    "Compliance",
    "CountryBreakdownEntry",
    "PartNumberEntry",
    "analyze",
    "is_usmca_country",
]
