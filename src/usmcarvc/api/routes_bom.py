"""BOM upload and RVC analysis endpoints.

Flow for one uploaded BOM:
  1. POST /v1/bom/upload                      Parse file, return part catalog
  2. GET  /v1/bom/{upload_id}/part-numbers    List selectable finished parts
  3. GET  /v1/bom/{upload_id}/components      Lines of one part + warnings
  4. POST /v1/bom/{upload_id}/analyze         RVC analysis for one part
  5. POST /v1/bom/{upload_id}/report          PDF or XLSX report download
  6. DELETE /v1/bom/{upload_id}               Drop a stored upload

Uploads are held in memory; the oldest is evicted once RVC_MAX_UPLOADS
are stored.
"""

from __future__ import annotations

import logging
import threading
import uuid
from collections import OrderedDict
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from fastapi.responses import Response
from pydantic import BaseModel, ConfigDict, Field

from usmcarvc.api.security import load_settings, require_api_key, validate_bom_upload
from usmcarvc.observability import log_event
from usmcarvc.tariff.analysis import PartAnalysis, analyze_part
from usmcarvc.tariff.bom_parser import (
    BOMIngestResult,
    extract_components,
    ingest_bom,
    load_bom_table,
)
from usmcarvc.tariff.errors import (
    BOMReadError,
    InvalidCostError,
    MissingColumnsError,
    PartNumberNotFoundError,
)
from usmcarvc.tariff.excel_generator import generate_excel_report
from usmcarvc.tariff.formatters import report_filename
from usmcarvc.tariff.pdf_generator import generate_pdf_report

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/v1/bom", tags=["bom"])

REPORT_MEDIA_TYPES = {
    "pdf": "application/pdf",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}


# ---------------------------------------------------------------------------
# Request / response models
# ---------------------------------------------------------------------------
class PartNumberInfo(BaseModel):
    part_number: str
    description: str
    htsus: str

    model_config = ConfigDict(extra="forbid")


class ComponentInfo(BaseModel):
    row_number: int
    component_num: str
    description: str
    quantity: Any = None
    unit: str
    cost_unit: float
    cost_total: float
    country: str
    htsus: str
    tariff_shift: Optional[str] = None

    model_config = ConfigDict(extra="forbid")


class CountryBreakdownInfo(BaseModel):
    country: str
    total: float
    percentage: float
    is_usmca: bool

    model_config = ConfigDict(extra="forbid")


class BOMUploadResponse(BaseModel):
    """Response from the upload endpoint."""

    upload_id: str
    filename: str
    status: str  # "parsed"
    total_rows: int
    columns: Dict[str, int]
    part_numbers: List[PartNumberInfo]

    model_config = ConfigDict(extra="forbid")


class PartNumbersResponse(BaseModel):
    upload_id: str
    part_numbers: List[PartNumberInfo]

    model_config = ConfigDict(extra="forbid")


class ComponentsResponse(BaseModel):
    upload_id: str
    part_number: str
    components: List[ComponentInfo]
    warnings: List[str]

    model_config = ConfigDict(extra="forbid")


class BOMAnalyzeRequest(BaseModel):
    """Finished part to analyze and its declared total manufactured cost."""

    part_number: str = Field(min_length=1)
    total_manufactured_cost: Optional[float] = None

    model_config = ConfigDict(extra="forbid")


class BOMAnalyzeResponse(BaseModel):
    upload_id: str
    part_number: str
    description: str
    htsus: str
    total_materials: float
    total_manufactured_cost: float
    labor_and_others: float
    non_originating_total: float
    rvc: float
    content_rvc: str  # "YES" | "NO"
    country_breakdown: Dict[str, CountryBreakdownInfo]
    components: List[ComponentInfo]
    warnings: List[str]
    extraction_warnings: List[str]

    model_config = ConfigDict(extra="forbid")


# ---------------------------------------------------------------------------
# In-memory upload store
# ---------------------------------------------------------------------------
class _UploadRecord:
    def __init__(self, upload_id: str, filename: str, ingest: BOMIngestResult) -> None:
        self.upload_id = upload_id
        self.filename = filename
        self.ingest = ingest
        self.created_at = datetime.now(timezone.utc).isoformat()


_uploads: "OrderedDict[str, _UploadRecord]" = OrderedDict()
_lock = threading.Lock()


def _get_upload(upload_id: str) -> _UploadRecord:
    with _lock:
        record = _uploads.get(upload_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Upload not found")
    return record


def _store_upload(record: _UploadRecord) -> None:
    limit = load_settings().max_uploads
    with _lock:
        _uploads[record.upload_id] = record
        while len(_uploads) > limit:
            evicted, _ = _uploads.popitem(last=False)
            logger.info("Evicted upload %s (store limit %d)", evicted, limit)


def _part_infos(ingest: BOMIngestResult) -> List[PartNumberInfo]:
    return [
        PartNumberInfo(part_number=p.part_number, description=p.description, htsus=p.htsus)
        for p in ingest.part_numbers
    ]


def _run_analysis(record: _UploadRecord, req: BOMAnalyzeRequest) -> PartAnalysis:
    try:
        return analyze_part(record.ingest, req.part_number, req.total_manufactured_cost)
    except PartNumberNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except InvalidCostError as exc:
        logger.info("Rejected analysis for %s: %s", req.part_number, exc)
        raise HTTPException(status_code=422, detail={"message": str(exc)}) from exc


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------
@router.post("/upload", response_model=BOMUploadResponse)
async def upload_bom(
    file: UploadFile = File(...),
    api_key: str = Depends(require_api_key),
) -> BOMUploadResponse:
    """Upload a BOM spreadsheet (XLSX or CSV).

    Resolves the header row and returns the distinct finished parts found
    in it. Analysis runs per part through ``/{upload_id}/analyze``.
    """
    filename = file.filename or "unknown"
    content = await file.read()
    validate_bom_upload(filename, content)

    try:
        ingest = ingest_bom(load_bom_table(content, filename))
    except MissingColumnsError as exc:
        raise HTTPException(
            status_code=422,
            detail={"message": str(exc), "missing_columns": exc.missing},
        ) from exc
    except BOMReadError as exc:
        logger.warning("Unreadable BOM upload %s: %s", filename, exc)
        raise HTTPException(status_code=422, detail={"message": str(exc)}) from exc

    upload_id = f"bom_{uuid.uuid4().hex[:12]}"
    _store_upload(_UploadRecord(upload_id, filename, ingest))
    log_event(
        "bom.uploaded",
        upload_id=upload_id,
        filename=filename,
        part_numbers=len(ingest.part_numbers),
    )

    return BOMUploadResponse(
        upload_id=upload_id,
        filename=filename,
        status="parsed",
        total_rows=max(len(ingest.table) - 1, 0),
        columns=ingest.schema.as_dict(),
        part_numbers=_part_infos(ingest),
    )


@router.delete("/{upload_id}", status_code=204)
def delete_upload(
    upload_id: str,
    api_key: str = Depends(require_api_key),
) -> Response:
    with _lock:
        record = _uploads.pop(upload_id, None)
    if record is None:
        raise HTTPException(status_code=404, detail="Upload not found")
    log_event("bom.deleted", upload_id=upload_id)
    return Response(status_code=204)


@router.get("/{upload_id}/part-numbers", response_model=PartNumbersResponse)
def list_part_numbers(
    upload_id: str,
    api_key: str = Depends(require_api_key),
) -> PartNumbersResponse:
    record = _get_upload(upload_id)
    return PartNumbersResponse(upload_id=upload_id, part_numbers=_part_infos(record.ingest))


@router.get("/{upload_id}/components", response_model=ComponentsResponse)
def list_components(
    upload_id: str,
    part_number: str = Query(..., min_length=1),
    api_key: str = Depends(require_api_key),
) -> ComponentsResponse:
    """Components of one finished part with row-level data warnings."""
    record = _get_upload(upload_id)
    if record.ingest.find_part(part_number) is None:
        raise HTTPException(status_code=404, detail=f"Part number not found: {part_number}")

    extraction = extract_components(record.ingest.table, record.ingest.schema, part_number)
    return ComponentsResponse(
        upload_id=upload_id,
        part_number=part_number,
        components=[ComponentInfo(**c.to_dict()) for c in extraction.components],
        warnings=list(extraction.warnings),
    )


@router.post("/{upload_id}/analyze", response_model=BOMAnalyzeResponse)
def analyze_bom_part(
    upload_id: str,
    req: BOMAnalyzeRequest,
    api_key: str = Depends(require_api_key),
) -> BOMAnalyzeResponse:
    """Run the USMCA RVC analysis for one finished part of the upload."""
    record = _get_upload(upload_id)
    analysis = _run_analysis(record, req)
    return BOMAnalyzeResponse(upload_id=upload_id, **analysis.as_payload())


@router.post("/{upload_id}/report")
def download_report(
    upload_id: str,
    req: BOMAnalyzeRequest,
    report_format: str = Query("pdf", alias="format", pattern="^(pdf|xlsx)$"),
    api_key: str = Depends(require_api_key),
) -> Response:
    """Analyze one part and return the PDF or Excel report as an attachment."""
    record = _get_upload(upload_id)
    analysis = _run_analysis(record, req)

    if report_format == "xlsx":
        content = generate_excel_report(analysis.part, analysis.result)
    else:
        content = generate_pdf_report(analysis.part, analysis.result)

    filename = report_filename(analysis.part.part_number, report_format)
    log_event("report.generated", upload_id=upload_id, filename=filename, size=len(content))
    return Response(
        content=content,
        media_type=REPORT_MEDIA_TYPES[report_format],
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
