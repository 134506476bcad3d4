"""USMCA regional value content (RVC) engine.

Net-cost RVC over a single finished part:

    RVC = (TMC - non-originating materials) / TMC * 100

where TMC is the declared total manufactured cost. Labor and overhead
(TMC minus total materials) is attributed to Mexico in the country
breakdown.
"""

from __future__ import annotations

import logging
import math
from dataclasses import replace
from decimal import Decimal
from types import MappingProxyType
from typing import Dict, Iterable, List, Sequence

from usmcarvc.tariff.errors import InvalidCostError
from usmcarvc.tariff.hts import classify_tariff_shift
from usmcarvc.tariff.models import (
    AnalysisResult,
    ComponentRecord,
    Compliance,
    CountryBreakdownEntry,
)

logger = logging.getLogger(__name__)

USMCA_COUNTRIES = frozenset({"MX", "US", "CA", "MEXICO", "USA", "CANADA"})
RVC_THRESHOLD = 60.0
LABOR_AND_OVERHEAD_COUNTRY = "MX"
PERCENTAGE_TOLERANCE = 0.1


def is_usmca_country(country: object) -> bool:
    return str(country if country is not None else "").strip().upper() in USMCA_COUNTRIES


def _to_float(value: float | int | str | Decimal | None) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def total_materials(components: Iterable[ComponentRecord]) -> float:
    return sum((component.cost_total for component in components), 0.0)


def non_originating_total(components: Iterable[ComponentRecord]) -> float:
    return sum(
        (c.cost_total for c in components if not is_usmca_country(c.country)),
        0.0,
    )


def compute_rvc(total_manufactured_cost: float, non_originating: float) -> float:
    if total_manufactured_cost <= 0:
        return 0.0
    return (total_manufactured_cost - non_originating) / total_manufactured_cost * 100


def determine_compliance(rvc: float) -> Compliance:
    return Compliance.YES if rvc >= RVC_THRESHOLD else Compliance.NO


def validate_total_manufactured_cost(
    total_manufactured_cost: float | int | str | Decimal | None,
    materials: float,
) -> float:
    """Return the declared TMC as a float or raise :class:`InvalidCostError`."""
    tmc = _to_float(total_manufactured_cost)
    if tmc is None or tmc <= 0:
        raise InvalidCostError("Total manufactured cost must be greater than 0")
    if tmc < materials:
        raise InvalidCostError("Total manufactured cost cannot be less than total materials")
    return tmc


def country_breakdown(
    components: Sequence[ComponentRecord],
    labor_and_others: float,
    total_manufactured_cost: float,
) -> Dict[str, CountryBreakdownEntry]:
    """Material cost per country as a share of TMC, with labor folded into MX.

    Components without a country are grouped under ``""``.
    """
    totals: Dict[str, float] = {}
    for component in components:
        totals[component.country] = totals.get(component.country, 0.0) + component.cost_total
    totals[LABOR_AND_OVERHEAD_COUNTRY] = (
        totals.get(LABOR_AND_OVERHEAD_COUNTRY, 0.0) + labor_and_others
    )

    return {
        country: CountryBreakdownEntry(
            country=country,
            total=total,
            percentage=total / total_manufactured_cost * 100,
            is_usmca=is_usmca_country(country),
        )
        for country, total in totals.items()
    }


def add_tariff_shift(
    components: Iterable[ComponentRecord], main_hts: str
) -> List[ComponentRecord]:
    """Copies of ``components`` with their tariff shift against ``main_hts``."""
    return [
        replace(component, tariff_shift=classify_tariff_shift(main_hts, component.htsus))
        for component in components
    ]


def analyze(
    components: Sequence[ComponentRecord],
    total_manufactured_cost: float | int | str | Decimal | None,
    main_hts: str,
) -> AnalysisResult:
    """Run the full USMCA RVC analysis for one finished part.

    Raises:
        InvalidCostError: TMC is missing, not positive, or below total
            materials. Nothing else is computed in that case.
    """
    materials = total_materials(components)
    tmc = validate_total_manufactured_cost(total_manufactured_cost, materials)

    labor_and_others = tmc - materials
    non_originating = non_originating_total(components)
    rvc = compute_rvc(tmc, non_originating)
    verdict = determine_compliance(rvc)
    breakdown = country_breakdown(components, labor_and_others, tmc)
    classified = add_tariff_shift(components, main_hts)

    warnings: List[str] = []
    total_percentage = sum(entry.percentage for entry in breakdown.values())
    if abs(total_percentage - 100) > PERCENTAGE_TOLERANCE:
        warnings.append(f"Country percentages sum to {total_percentage:.2f}% instead of 100%")

    logger.debug(
        "RVC analysis: materials=%s tmc=%s non_originating=%s rvc=%.4f verdict=%s",
        materials,
        tmc,
        non_originating,
        rvc,
        verdict.value,
    )
    return AnalysisResult(
        total_materials=materials,
        total_manufactured_cost=tmc,
        labor_and_others=labor_and_others,
        non_originating_total=non_originating,
        rvc=rvc,
        content_rvc=verdict,
        country_breakdown=MappingProxyType(breakdown),
        components=tuple(classified),
        warnings=tuple(warnings),
    )
