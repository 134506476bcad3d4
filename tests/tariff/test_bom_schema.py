from __future__ import annotations

import pytest

from usmcarvc.tariff.bom_schema import NOT_FOUND, find_column_indexes, resolve_columns
from usmcarvc.tariff.errors import BOMAnalysisError, MissingColumnsError


class TestFindColumnIndexes:
    def test_all_columns_resolved(self, bom_table):
        schema = find_column_indexes(bom_table[0])
        assert schema.part_number == 0
        assert schema.htsus_main == 1
        assert schema.description_pt == 2
        assert schema.component_num == 3
        assert schema.quantity == 5
        assert schema.htsus_component == 6
        assert schema.cost_unit == 8
        assert schema.cost_total == 9
        assert schema.country == 10

    def test_header_text_is_trimmed(self):
        schema = find_column_indexes(["  NUMPRODTERMINADO ", "PAISORIGEN\t"])
        assert schema.part_number == 0
        assert schema.country == 1

    def test_match_is_case_sensitive(self):
        schema = find_column_indexes(["numprodterminado"])
        assert schema.part_number == NOT_FOUND

    def test_first_duplicate_wins(self):
        schema = find_column_indexes(["COSTO_TOTAL", "X", "COSTO_TOTAL"])
        assert schema.cost_total == 0

    def test_optional_columns_default_to_not_found(self):
        schema = find_column_indexes(["NUMPRODTERMINADO", "FRACCION_PT", "COSTO_TOTAL", "PAISORIGEN"])
        assert schema.missing_required() == []
        assert schema.description == NOT_FOUND
        assert schema.unit == NOT_FOUND
        assert schema.as_dict()["cost_unit"] == NOT_FOUND

    def test_non_string_headers(self):
        schema = find_column_indexes([None, 42, "NUMPRODTERMINADO"])
        assert schema.part_number == 2


class TestResolveColumns:
    def test_missing_required_columns_are_named(self):
        with pytest.raises(MissingColumnsError) as excinfo:
            resolve_columns(["NUMPRODTERMINADO", "COSTO_TOTAL"])
        assert excinfo.value.missing == ["HTSUS Main", "Country of Origin"]
        assert str(excinfo.value) == "Missing required columns: HTSUS Main, Country of Origin"

    def test_missing_columns_is_a_value_error(self):
        with pytest.raises(ValueError):
            resolve_columns([])
        assert issubclass(MissingColumnsError, BOMAnalysisError)

    def test_valid_header(self, bom_table):
        assert resolve_columns(bom_table[0]).part_number == 0
