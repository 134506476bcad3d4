"""Domain records shared by BOM ingestion, the RVC engine and reports."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

from usmcarvc.tariff.hts import TariffShift

RawTable = List[List[Any]]


class Compliance(str, Enum):
    YES = "YES"
    NO = "NO"


@dataclass(frozen=True, slots=True)
class PartNumberEntry:
    """One selectable finished part found in the BOM."""

    part_number: str
    description: str
    htsus: str


@dataclass(frozen=True, slots=True)
class ComponentRecord:
    """A normalized BOM line belonging to one finished part."""

    row_number: int
    component_num: str
    description: str
    quantity: Any
    unit: str
    cost_unit: float
    cost_total: float
    country: str
    htsus: str
    tariff_shift: Optional[TariffShift] = None

    def to_dict(self) -> Dict[str, Any]:
        payload = asdict(self)
        payload["tariff_shift"] = self.tariff_shift.value if self.tariff_shift else None
        return payload


@dataclass(frozen=True, slots=True)
class ComponentExtraction:
    components: Tuple[ComponentRecord, ...]
    warnings: Tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class CountryBreakdownEntry:
    country: str
    total: float
    percentage: float
    is_usmca: bool


@dataclass(frozen=True, slots=True)
class AnalysisResult:
    """Outcome of one RVC calculation for a finished part."""

    total_materials: float
    total_manufactured_cost: float
    labor_and_others: float
    non_originating_total: float
    rvc: float
    content_rvc: Compliance
    country_breakdown: Mapping[str, CountryBreakdownEntry]
    components: Tuple[ComponentRecord, ...]
    warnings: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def qualifies(self) -> bool:
        return self.content_rvc is Compliance.YES

    def countries_by_total(self) -> List[CountryBreakdownEntry]:
        """Breakdown entries sorted by descending total cost."""
        return sorted(self.country_breakdown.values(), key=lambda entry: -entry.total)

    def as_payload(self) -> Dict[str, Any]:
        return {
            "total_materials": self.total_materials,
            "total_manufactured_cost": self.total_manufactured_cost,
            "labor_and_others": self.labor_and_others,
            "non_originating_total": self.non_originating_total,
            "rvc": self.rvc,
            "content_rvc": self.content_rvc.value,
            "country_breakdown": {
                country: asdict(entry) for country, entry in self.country_breakdown.items()
            },
            "components": [component.to_dict() for component in self.components],
            "warnings": list(self.warnings),
        }
