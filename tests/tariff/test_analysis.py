from __future__ import annotations

import pytest

from usmcarvc.tariff.analysis import analyze_part
from usmcarvc.tariff.bom_parser import ingest_bom
from usmcarvc.tariff.errors import InvalidCostError, PartNumberNotFoundError


@pytest.fixture
def ingest(bom_table):
    return ingest_bom(bom_table)


class TestAnalyzePart:
    def test_qualifying_part(self, ingest):
        analysis = analyze_part(ingest, "PT-100", 150)

        assert analysis.part.part_number == "PT-100"
        assert analysis.extraction_warnings == ()
        assert analysis.result.rvc == pytest.approx(73.33, abs=0.01)
        assert analysis.result.qualifies

    def test_extraction_warnings_are_kept(self, ingest):
        analysis = analyze_part(ingest, "PT-200", 1000)

        assert analysis.extraction_warnings == (
            "Row 5: cost is 0 or invalid",
            "Row 5: country not specified",
        )
        assert analysis.result.total_materials == pytest.approx(500.0)
        assert analysis.result.rvc == pytest.approx(50.0)
        assert not analysis.result.qualifies

    def test_unknown_part(self, ingest):
        with pytest.raises(PartNumberNotFoundError, match="PT-999"):
            analyze_part(ingest, "PT-999", 100)

    def test_cost_below_materials(self, ingest):
        with pytest.raises(InvalidCostError):
            analyze_part(ingest, "PT-100", 99)

    def test_payload(self, ingest):
        payload = analyze_part(ingest, "PT-100", 150).as_payload()
        assert payload["part_number"] == "PT-100"
        assert payload["htsus"] == "8708.29.0000"
        assert payload["extraction_warnings"] == []
        assert payload["content_rvc"] == "YES"
        assert len(payload["components"]) == 3
