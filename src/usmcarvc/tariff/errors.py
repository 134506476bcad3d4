"""Domain errors raised by BOM ingestion and the RVC engine."""

from __future__ import annotations

from typing import Iterable, List


class BOMAnalysisError(ValueError):
    """Base class for recoverable BOM analysis failures."""


class BOMReadError(BOMAnalysisError):
    """Raised when an uploaded file cannot be decoded into a table."""


class MissingColumnsError(BOMAnalysisError):
    """Raised when required header labels are absent from the header row."""

    def __init__(self, missing: Iterable[str]) -> None:
        self.missing: List[str] = list(missing)
        super().__init__(f"Missing required columns: {', '.join(self.missing)}")


class InvalidCostError(BOMAnalysisError):
    """Raised when the declared total manufactured cost is unusable."""


class PartNumberNotFoundError(BOMAnalysisError):
    """Raised when a requested part number is not present in the BOM."""

    def __init__(self, part_number: str) -> None:
        self.part_number = part_number
        super().__init__(f"Part number not found: {part_number}")
