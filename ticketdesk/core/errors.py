from __future__ import annotations

import logging
from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger("ticketdesk.errors")


class TicketDeskError(Exception):
    """Base class for failures raised by the ticket core."""

    code = "error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class Unauthenticated(TicketDeskError):
    code = "unauthenticated"
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str, *, reason: str) -> None:
        super().__init__(message, details={"reason": reason})
        self.reason = reason


class NotFound(TicketDeskError):
    code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND


class Conflict(TicketDeskError):
    code = "conflict"
    status_code = status.HTTP_409_CONFLICT


class InvalidInput(TicketDeskError):
    code = "invalid_input"
    status_code = status.HTTP_400_BAD_REQUEST


class InvalidTransition(TicketDeskError):
    code = "invalid_transition"
    status_code = status.HTTP_400_BAD_REQUEST


class StorageError(TicketDeskError):
    """Backing store failure that is not a business-rule violation."""

    code = "internal_error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class ErrorEnvelope(JSONResponse):
    def __init__(
        self,
        *,
        status_code: int,
        code: str,
        message: str,
        details: Any | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        payload: dict[str, Any] = {"code": code, "message": message}
        if details is not None:
            payload["details"] = details
        super().__init__(payload, status_code=status_code, headers=headers)


async def ticketdesk_error_handler(request: Request, exc: TicketDeskError):
    if isinstance(exc, StorageError):
        logger.error("storage failure on %s %s: %s", request.method, request.url.path, exc.message)
    else:
        logger.warning("%s on %s %s: %s", exc.code, request.method, request.url.path, exc.message)
    headers = None
    if isinstance(exc, Unauthenticated):
        headers = {"WWW-Authenticate": "ApiKey"}
    return ErrorEnvelope(
        status_code=exc.status_code,
        code=exc.code,
        message=exc.message,
        details=exc.details,
        headers=headers,
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    detail = exc.detail
    message = detail if isinstance(detail, str) else "Error"
    details = detail if isinstance(detail, dict) else None
    return ErrorEnvelope(status_code=exc.status_code, code="http_error", message=message, details=details)


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return ErrorEnvelope(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        code="validation_error",
        message="Validation failed",
        details={"errors": jsonable_errors(exc)},
    )


def jsonable_errors(exc: RequestValidationError) -> list[dict[str, Any]]:
    # ``ctx`` may carry exception instances that JSONResponse cannot encode.
    cleaned: list[dict[str, Any]] = []
    for error in exc.errors():
        item = {k: v for k, v in error.items() if k not in {"ctx", "url"}}
        if "loc" in item:
            item["loc"] = list(item["loc"])
        cleaned.append(item)
    return cleaned


__all__ = [
    "Conflict",
    "ErrorEnvelope",
    "InvalidInput",
    "InvalidTransition",
    "NotFound",
    "StorageError",
    "TicketDeskError",
    "Unauthenticated",
    "http_exception_handler",
    "ticketdesk_error_handler",
    "validation_exception_handler",
]
