"""Select a part from an ingested BOM, extract its lines and run the RVC engine."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Tuple

from usmcarvc.observability import log_event
from usmcarvc.tariff.bom_parser import BOMIngestResult, extract_components
from usmcarvc.tariff.errors import PartNumberNotFoundError
from usmcarvc.tariff.models import AnalysisResult, PartNumberEntry
from usmcarvc.tariff.origin_engine import analyze

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class PartAnalysis:
    part: PartNumberEntry
    extraction_warnings: Tuple[str, ...]
    result: AnalysisResult

    def as_payload(self) -> Dict[str, Any]:
        return {
            "part_number": self.part.part_number,
            "description": self.part.description,
            "htsus": self.part.htsus,
            "extraction_warnings": list(self.extraction_warnings),
            **self.result.as_payload(),
        }


def analyze_part(
    ingest: BOMIngestResult,
    part_number: str,
    total_manufactured_cost: float | int | str | Decimal | None,
) -> PartAnalysis:
    part = ingest.find_part(part_number)
    if part is None:
        raise PartNumberNotFoundError(part_number)

    extraction = extract_components(ingest.table, ingest.schema, part.part_number)
    result = analyze(extraction.components, total_manufactured_cost, part.htsus)
    log_event(
        "rvc.analyzed",
        part_number=part.part_number,
        components=len(result.components),
        rvc=round(result.rvc, 4),
        content_rvc=result.content_rvc.value,
    )
    return PartAnalysis(part=part, extraction_warnings=extraction.warnings, result=result)
