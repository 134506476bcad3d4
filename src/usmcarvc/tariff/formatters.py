from __future__ import annotations

from datetime import date
from typing import Optional

REPORT_PREFIX = "USMCA_Analysis"


def format_currency(amount: Optional[float]) -> str:
    if amount is None:
        return "$0.00"
    return f"${amount:,.2f}"


def format_percentage(value: Optional[float]) -> str:
    if value is None:
        return "0.00%"
    return f"{value:.2f}%"


def format_report_date(on: Optional[date] = None) -> str:
    """Report date as ``MM/DD/YYYY`` (today when ``on`` is omitted)."""
    return (on or date.today()).strftime("%m/%d/%Y")


def report_filename(part_number: str, extension: str, on: Optional[date] = None) -> str:
    """``USMCA_Analysis_<part>_<MM-DD-YYYY>.<ext>`` for exported reports."""
    stamp = format_report_date(on).replace("/", "-")
    return f"{REPORT_PREFIX}_{part_number}_{stamp}.{extension.lstrip('.')}"
