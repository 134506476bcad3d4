"""Run-scoped logging helpers for the RVC analyzer.

Each API request or CLI invocation binds a run id; ``log_event`` attaches
it to structured analysis events and ``RunIdFilter`` exposes it to log
formatters as ``%(run_id)s``.
"""

from __future__ import annotations

import logging
import uuid
from contextvars import ContextVar
from typing import Optional

logger = logging.getLogger("usmcarvc.events")

LOG_FORMAT = "%(asctime)s %(levelname)s [%(run_id)s] %(name)s: %(message)s"

_run_id_ctx: ContextVar[Optional[str]] = ContextVar("run_id", default=None)


def new_run_id() -> str:
    """Generate and bind a new run identifier."""

    value = uuid.uuid4().hex[:12]
    _run_id_ctx.set(value)
    return value


def bind_run_id(value: Optional[str]) -> ContextVar.Token | None:
    if value is None:
        return None
    return _run_id_ctx.set(value)


def reset_run_id(token: Optional[ContextVar.Token]) -> None:
    if token is None:
        return
    _run_id_ctx.reset(token)


def current_run_id() -> Optional[str]:
    return _run_id_ctx.get()


def redact_api_key(raw: Optional[str]) -> str:
    """Return a redacted representation of an API key for safe logging."""

    if not raw:
        return "<missing>"
    if len(raw) <= 3:
        return "***"
    return f"{raw[:4]}***"


class RunIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.run_id = current_run_id() or "-"
        return True


def configure_logging(level: int | str = logging.INFO) -> None:
    """Install a stderr handler that prints the active run id."""

    handler = logging.StreamHandler()
    handler.addFilter(RunIdFilter())
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root = logging.getLogger("usmcarvc")
    root.handlers[:] = [handler]
    root.setLevel(level)


def log_event(message: str, **extra: object) -> None:
    """Log an analysis event with the active run_id attached."""

    payload = {"run_id": current_run_id(), **extra}
    logger.info("%s %s", message, payload, extra={"payload": payload})
