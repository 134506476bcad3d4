from __future__ import annotations

import logging
import os
from typing import Any, Dict, List

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from usmcarvc.api.routes_bom import router as bom_router
from usmcarvc.api.security import ENGINE_VERSION
from usmcarvc.observability import (
    bind_run_id,
    current_run_id,
    log_event,
    new_run_id,
    redact_api_key,
    reset_run_id,
)
from usmcarvc.tariff.errors import BOMAnalysisError, PartNumberNotFoundError
from usmcarvc.version import __version__

# -----------------------------------------------------------------------------
# App setup
# -----------------------------------------------------------------------------
logger = logging.getLogger(__name__)

app = FastAPI(title="usmcarvc API", version="v1")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(bom_router)


@app.middleware("http")
async def attach_run_id(request: Request, call_next):
    run_id = current_run_id() or new_run_id()
    token = bind_run_id(run_id)
    redacted_key = redact_api_key(request.headers.get("X-API-Key"))
    log_event("request.start", path=str(request.url.path), api_key=redacted_key)
    try:
        response = await call_next(request)
        response.headers["X-Run-ID"] = run_id
        return response
    finally:
        log_event("request.end", path=str(request.url.path), api_key=redacted_key)
        reset_run_id(token)


def _redact_message(msg: str) -> str:
    if msg.lower().startswith("value error, "):
        msg = msg.split(", ", 1)[1]
    lowered = msg.lower()
    if "key" in lowered or "token" in lowered or "secret" in lowered:
        return "Invalid request payload"
    return msg


def _normalize_validation_errors(raw_errors: List[Dict[str, Any]]) -> Dict[str, Any]:
    fields: List[Dict[str, str]] = []
    for err in raw_errors:
        loc = err.get("loc", [])
        loc_parts = [str(part) for part in loc if part != "body"]
        path = ".".join(["request", *loc_parts]) if loc_parts else "request"
        message = _redact_message(err.get("msg", "Invalid request"))
        fields.append({"path": path, "message": message})
    return {"error": "VALIDATION_ERROR", "fields": fields}


@app.exception_handler(RequestValidationError)
async def handle_request_validation_error(request: Request, exc: RequestValidationError):
    content = _normalize_validation_errors(exc.errors())
    return JSONResponse(status_code=422, content=content)


@app.exception_handler(BOMAnalysisError)
async def handle_bom_analysis_error(request: Request, exc: BOMAnalysisError):
    status = 404 if isinstance(exc, PartNumberNotFoundError) else 422
    logger.info("BOM analysis error on %s: %s", request.url.path, exc)
    return JSONResponse(
        status_code=status,
        content={"error": type(exc).__name__, "message": str(exc)},
    )


# -----------------------------------------------------------------------------
# Health + Info Endpoints
# -----------------------------------------------------------------------------
class VersionResp(BaseModel):
    engine_version: str
    package_version: str
    build: str | None = None


@app.get("/health")
def health() -> Dict[str, Any]:
    return {"ok": True, "status": "ok"}


@app.get("/v1/version", response_model=VersionResp)
def version() -> VersionResp:
    return VersionResp(
        engine_version=ENGINE_VERSION,
        package_version=__version__,
        build=os.getenv("GIT_COMMIT"),
    )
