"""
Custom exception hierarchy for the Ruya API.

Rule: every HTTP error has a machine-readable `code` string so clients
can branch on it without parsing English messages. Error bodies use the
same `{success, error, code, details}` envelope as successful responses.
"""
from __future__ import annotations

import math
from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status

from ruya.core.logging import get_logger

logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Exception classes
# ---------------------------------------------------------------------------

class RuyaException(Exception):
    """Base class for all application-level errors."""
    http_status: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        payload: dict[str, Any] = {
            "success": False,
            "error": self.message,
            "code": self.code,
        }
        if self.details:
            payload["details"] = self.details
        return payload


class DreamValidationError(RuyaException):
    """Caller input violates one or more field or business rules."""
    http_status = status.HTTP_400_BAD_REQUEST
    code = "VALIDATION_ERROR"

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__(
            message=", ".join(self.errors),
            details={"errors": self.errors},
        )


class UnauthorizedError(RuyaException):
    http_status = status.HTTP_401_UNAUTHORIZED
    code = "UNAUTHORIZED"

    def __init__(self):
        super().__init__(message="Unauthorized access")


class DreamNotFoundError(RuyaException):
    http_status = status.HTTP_404_NOT_FOUND
    code = "DREAM_NOT_FOUND"

    def __init__(self, dream_id: str):
        super().__init__(
            message="Dream not found",
            details={"id": dream_id},
        )


class RateLimitedError(RuyaException):
    http_status = status.HTTP_429_TOO_MANY_REQUESTS
    code = "RATE_LIMITED"

    def __init__(self, retry_after: float):
        self.retry_after = max(1, math.ceil(retry_after))
        super().__init__(
            message="Too many requests. Please wait before submitting another dream.",
            details={"retry_after": self.retry_after},
        )


class StoreUnavailableError(RuyaException):
    """The persistence layer is unreachable or failed. Never user-correctable."""
    http_status = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "STORE_UNAVAILABLE"

    def __init__(self):
        super().__init__(message="The dream store is temporarily unavailable.")


# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------

async def ruya_exception_handler(request: Request, exc: RuyaException) -> JSONResponse:
    headers = None
    if isinstance(exc, RateLimitedError):
        headers = {"Retry-After": str(exc.retry_after)}
    return JSONResponse(
        status_code=exc.http_status,
        content=exc.to_dict(),
        headers=headers,
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Return structured 400 with machine-readable field errors."""
    field_errors = []
    for error in exc.errors():
        field_errors.append({
            "field": ".".join(
                str(loc) for loc in error["loc"] if loc not in ("body", "query", "path")
            ),
            "message": error["msg"],
            "type": error["type"],
        })
    message = ", ".join(
        f"{e['field']}: {e['message']}" if e["field"] else e["message"]
        for e in field_errors
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "success": False,
            "error": message or "Request validation failed.",
            "code": "VALIDATION_ERROR",
            "details": {"errors": field_errors},
        },
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_exception", path=request.url.path, method=request.method)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "success": False,
            "error": "An unexpected error occurred.",
            "code": "INTERNAL_ERROR",
        },
    )
