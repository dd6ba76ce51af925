from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Mapping

from ..middlewares import principal_ctx_var, request_id_ctx_var
from .config import settings


def _request_context() -> dict[str, str]:
    context: dict[str, str] = {}
    request_id = request_id_ctx_var.get()
    if request_id:
        context["request_id"] = request_id
    principal = principal_ctx_var.get()
    if principal:
        context["principal"] = principal
    return context


class JsonLogFormatter(logging.Formatter):
    """One JSON object per line, tagged with the service and request context."""

    def __init__(self, service: str | None = None, environment: str | None = None) -> None:
        super().__init__()
        self.service = service or settings.APP_NAME
        self.environment = environment or settings.APP_ENV

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc)
            .isoformat(timespec="milliseconds")
            .replace("+00:00", "Z"),
            "level": record.levelname,
            "service": self.service,
            "env": self.environment,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(_request_context())
        extra = getattr(record, "extra_data", None)
        if isinstance(extra, Mapping):
            payload.update(extra)
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, separators=(",", ":"), default=str)


def configure_logging(level: str | None = None) -> None:
    handler = logging.StreamHandler()
    handler.setFormatter(JsonLogFormatter())
    logging.root.handlers = [handler]
    resolved = getattr(logging, (level or settings.LOG_LEVEL).upper(), logging.INFO)
    logging.root.setLevel(resolved)
    # uvicorn's own access log duplicates request.completed
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
