"""HTSUS code normalization and tariff-shift classification."""

from __future__ import annotations

import re
from enum import Enum
from typing import Any

HTS_DIGITS = 10
_NON_DIGIT = re.compile(r"\D")


class TariffShift(str, Enum):
    YES = "YES"
    NO = "NO"
    NA = "NA"


def _hts_text(raw: Any) -> str:
    # Spreadsheet cells hand back integral codes as floats (8708290000.0)
    if isinstance(raw, float) and raw.is_integer():
        return str(int(raw))
    return str(raw)


def hts_digits(raw: Any) -> str:
    """Return the bare digit sequence of an HTS value, separators removed."""
    if not raw:
        return ""
    return _NON_DIGIT.sub("", _hts_text(raw))


def format_htsus(raw: Any) -> str:
    """Normalize an HTS value to the canonical ``DDDD.DD.DDDD`` form.

    Separators are stripped, the digits are right-padded with zeros to ten
    places and truncated to ten, then regrouped 4/2/4. Empty input, or input
    without any digit, yields an empty string.
    """
    digits = hts_digits(raw)
    if not digits:
        return ""
    digits = digits.ljust(HTS_DIGITS, "0")[:HTS_DIGITS]
    return f"{digits[:4]}.{digits[4:6]}.{digits[6:]}"


def heading(hts_code: str) -> str:
    """First four digits (tariff heading) of an HTS code, or ``""``."""
    digits = hts_digits(hts_code)
    return digits[:4] if len(digits) >= 4 else digits


def classify_tariff_shift(main_hts: str, component_hts: str) -> TariffShift:
    """Compare tariff headings of the finished part and one component.

    Same heading means no shift (``NA``); a different heading is a shift
    (``YES``). Either code missing is ``NA``.
    """
    if not main_hts or not component_hts:
        return TariffShift.NA
    if heading(main_hts) == heading(component_hts):
        return TariffShift.NA
    return TariffShift.YES
