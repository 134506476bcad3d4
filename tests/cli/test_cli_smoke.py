from __future__ import annotations

import json
import logging

import pytest
from click.testing import CliRunner

from usmcarvc.cli.main import cli


@pytest.fixture(autouse=True)
def restore_package_logger():
    logger = logging.getLogger("usmcarvc")
    handlers, level = list(logger.handlers), logger.level
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)


def test_cli_help() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["--help"])
    assert result.exit_code == 0
    assert "part-numbers" in result.stdout
    assert "analyze" in result.stdout


def test_cli_part_numbers(bom_xlsx_path) -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["part-numbers", str(bom_xlsx_path)], catch_exceptions=False)
    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert [p["part_number"] for p in payload] == ["PT-100", "PT-200"]


def test_cli_analyze_writes_reports(bom_xlsx_path, tmp_path) -> None:
    pdf_path = tmp_path / "report.pdf"
    xlsx_path = tmp_path / "report.xlsx"
    runner = CliRunner()
    result = runner.invoke(
        cli,
        [
            "analyze",
            str(bom_xlsx_path),
            "--part-number",
            "PT-100",
            "--cost",
            "150",
            "--pdf",
            str(pdf_path),
            "--xlsx",
            str(xlsx_path),
        ],
        catch_exceptions=False,
    )
    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["content_rvc"] == "YES"
    assert payload["rvc"] == pytest.approx(73.33, abs=0.01)
    assert pdf_path.read_bytes().startswith(b"%PDF")
    assert xlsx_path.stat().st_size > 0


def test_cli_unknown_part(bom_xlsx_path) -> None:
    runner = CliRunner()
    result = runner.invoke(
        cli, ["analyze", str(bom_xlsx_path), "--part-number", "PT-999", "--cost", "10"]
    )
    assert result.exit_code == 1
    assert "Part number not found: PT-999" in result.output


def test_cli_invalid_cost(bom_xlsx_path) -> None:
    runner = CliRunner()
    result = runner.invoke(
        cli, ["analyze", str(bom_xlsx_path), "--part-number", "PT-100", "--cost", "0"]
    )
    assert result.exit_code == 1
    assert "greater than 0" in result.output


def test_cli_missing_columns(tmp_path, make_xlsx) -> None:
    path = tmp_path / "bad.xlsx"
    path.write_bytes(make_xlsx([["NUMPRODTERMINADO"], ["PT-1"]]))
    runner = CliRunner()
    result = runner.invoke(cli, ["part-numbers", str(path)])
    assert result.exit_code == 1
    assert "Missing required columns" in result.output
