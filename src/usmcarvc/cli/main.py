"""Command-line interface for the USMCA RVC analyzer."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import click

from ..observability import configure_logging, new_run_id
from ..tariff.analysis import analyze_part
from ..tariff.bom_parser import BOMIngestResult, ingest_bom, load_bom_table
from ..tariff.errors import BOMAnalysisError
from ..tariff.excel_generator import generate_excel_report
from ..tariff.pdf_generator import generate_pdf_report


def _load(path: Path) -> BOMIngestResult:
    try:
        return ingest_bom(load_bom_table(path.read_bytes(), path.name))
    except BOMAnalysisError as exc:
        raise click.ClickException(str(exc)) from exc


@click.group()
@click.option(
    "--log-level",
    default="WARNING",
    show_default=True,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Verbosity of diagnostics written to stderr.",
)
def cli(log_level: str) -> None:
    """USMCA regional value content toolkit."""
    configure_logging(log_level.upper())
    new_run_id()


@cli.command("part-numbers")
@click.argument("bom_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def part_numbers(bom_file: Path) -> None:
    """List the finished parts found in BOM_FILE as JSON."""

    ingest = _load(bom_file)
    payload = [
        {"part_number": p.part_number, "description": p.description, "htsus": p.htsus}
        for p in ingest.part_numbers
    ]
    click.echo(json.dumps(payload, indent=2))


@cli.command("analyze")
@click.argument("bom_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--part-number", "part_number", required=True, help="Finished part to analyze.")
@click.option(
    "--cost",
    "total_manufactured_cost",
    required=True,
    type=float,
    help="Declared total manufactured cost (USD).",
)
@click.option(
    "--pdf",
    "pdf_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write the PDF report to this path.",
)
@click.option(
    "--xlsx",
    "xlsx_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write the Excel report to this path.",
)
def analyze(
    bom_file: Path,
    part_number: str,
    total_manufactured_cost: float,
    pdf_path: Optional[Path],
    xlsx_path: Optional[Path],
) -> None:
    """Run the RVC analysis for one part of BOM_FILE and emit structured JSON."""

    ingest = _load(bom_file)
    try:
        analysis = analyze_part(ingest, part_number, total_manufactured_cost)
    except BOMAnalysisError as exc:
        raise click.ClickException(str(exc)) from exc

    if pdf_path is not None:
        pdf_path.write_bytes(generate_pdf_report(analysis.part, analysis.result))
    if xlsx_path is not None:
        xlsx_path.write_bytes(generate_excel_report(analysis.part, analysis.result))

    click.echo(json.dumps(analysis.as_payload(), indent=2, default=str))


if __name__ == "__main__":
    cli()
