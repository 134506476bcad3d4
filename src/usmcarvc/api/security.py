"""Access control and upload limits for the RVC API.

All service limits come from ``RVC_*`` environment variables through
:func:`load_settings`, read on each request so deployments and tests can
change them without re-importing the app.
"""

from __future__ import annotations

import logging
import os
import threading
import time
from dataclasses import dataclass
from typing import Dict, FrozenSet, Optional, Tuple

from fastapi import Header, HTTPException, Request

from usmcarvc.observability import redact_api_key
from usmcarvc.tariff.bom_parser import ALLOWED_EXTENSIONS, file_extension

logger = logging.getLogger(__name__)

ENGINE_VERSION = os.getenv("RVC_ENGINE_VERSION", "0.1.0")

DEFAULT_API_KEY = "dev-key"
DEFAULT_MAX_UPLOAD_BYTES = 10 * 1024 * 1024
DEFAULT_MAX_UPLOADS = 100


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return max(1, int(raw))
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r", name, raw)
        return default


@dataclass(frozen=True, slots=True)
class APISettings:
    api_keys: FrozenSet[str]
    rate_limit_per_minute: int
    rate_window_sec: int
    max_upload_bytes: int
    max_uploads: int


def load_settings() -> APISettings:
    keys = frozenset(
        key.strip() for key in os.getenv("RVC_API_KEYS", "").split(",") if key.strip()
    )
    return APISettings(
        api_keys=keys or frozenset({DEFAULT_API_KEY}),
        rate_limit_per_minute=_env_int("RVC_RATE_LIMIT_PER_MINUTE", 60),
        rate_window_sec=_env_int("RVC_RATE_WINDOW_SEC", 60),
        max_upload_bytes=_env_int("RVC_MAX_UPLOAD_BYTES", DEFAULT_MAX_UPLOAD_BYTES),
        max_uploads=_env_int("RVC_MAX_UPLOADS", DEFAULT_MAX_UPLOADS),
    )


class RateLimiter:
    """Fixed-window request counter keyed by (api_key, route).

    Limits default to the current settings; explicit values pin them.
    """

    def __init__(self, rate_per_minute: int | None = None, window_seconds: int | None = None) -> None:
        self._rate = rate_per_minute
        self._window = window_seconds
        self._lock = threading.Lock()
        self._counters: Dict[Tuple[str, str], Tuple[int, int]] = {}

    def reset(self) -> None:
        with self._lock:
            self._counters.clear()

    def check(self, api_key: str, route: str, settings: APISettings) -> None:
        limit = self._rate or settings.rate_limit_per_minute
        window = int(time.time() // (self._window or settings.rate_window_sec))
        key = (api_key, route)
        with self._lock:
            count, active_window = self._counters.get(key, (0, window))
            if active_window != window:
                count = 0
            if count >= limit:
                logger.warning(
                    "Rate limit exceeded for %s on %s", redact_api_key(api_key), route
                )
                raise HTTPException(
                    status_code=429,
                    detail={
                        "message": "Rate limit exceeded",
                        "limit_per_minute": limit,
                        "route": route,
                    },
                )
            self._counters[key] = (count + 1, window)


rate_limiter = RateLimiter()


def require_api_key(
    request: Request, x_api_key: Optional[str] = Header(None)
) -> str:
    """Validate the provided API key and enforce per-route rate limits."""

    settings = load_settings()
    if not x_api_key:
        raise HTTPException(status_code=401, detail={"message": "Missing API key"})
    if x_api_key not in settings.api_keys:
        raise HTTPException(status_code=401, detail={"message": "Invalid API key"})

    rate_limiter.check(x_api_key, request.url.path, settings)
    return x_api_key


def set_rate_limit(limit: int | None) -> None:
    """Pin the per-window limit; ``None`` goes back to ``RVC_RATE_LIMIT_PER_MINUTE``."""

    global rate_limiter
    rate_limiter = RateLimiter(rate_per_minute=max(1, int(limit)) if limit else None)


def validate_bom_upload(filename: str, content: bytes) -> None:
    """Reject BOM uploads with an unsupported extension, no content or too many bytes."""

    ext = file_extension(filename)
    if ext not in ALLOWED_EXTENSIONS:
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported file type: {ext}. Allowed: {sorted(ALLOWED_EXTENSIONS)}",
        )
    limit = load_settings().max_upload_bytes
    if len(content) > limit:
        logger.info("Rejected %s: %d bytes over limit %d", filename, len(content), limit)
        raise HTTPException(
            status_code=400,
            detail=f"File too large: {len(content)} bytes (max {limit})",
        )
    if not content:
        raise HTTPException(status_code=400, detail="Empty file")
