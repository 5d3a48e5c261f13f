"""
Ledger error taxonomy and the FastAPI handlers that render it.

Services raise these; routes let them propagate so every failure reaches the
client in the same JSON shape:

    {"status": "error", "error_code": ..., "message": ..., "details": {...}}
"""
from __future__ import annotations

from typing import Any, Optional

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger


class LedgerError(Exception):
    """Base ledger exception."""

    error_code = "ERR_LEDGER"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ValidationError(LedgerError):
    """Malformed or out-of-range input: no lines, non-positive amount, unbalanced entries."""

    error_code = "ERR_VALIDATION"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, fields: Optional[dict[str, str]] = None):
        super().__init__(message, {"fields": fields} if fields else None)
        self.fields = fields or {}


class NotFoundError(LedgerError):
    """Voucher or account does not exist or is not visible to the requesting user."""

    error_code = "ERR_NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, resource: str, resource_id: Any = None):
        message = f"{resource} not found"
        if resource_id is not None:
            message = f"{resource} with ID {resource_id} not found"
        super().__init__(message, {"resource": resource, "id": resource_id})


class InvalidOperationError(LedgerError):
    """The target exists but refuses the transition (auto vouchers, default accounts)."""

    error_code = "ERR_INVALID_OPERATION"
    status_code = status.HTTP_409_CONFLICT


class ConflictError(LedgerError):
    """Lost a voucher-number race. Retried internally by the ledger writer."""

    error_code = "ERR_CONFLICT"
    status_code = status.HTTP_409_CONFLICT


class StorageError(LedgerError):
    """The storage transaction aborted; nothing was written."""

    error_code = "ERR_STORAGE"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


# ── Handlers ──────────────────────────────────────────────────────────────────


async def ledger_exception_handler(request: Request, exc: LedgerError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "status": "error",
            "error_code": exc.error_code,
            "message": exc.message,
            "details": exc.details,
        },
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Pydantic body/query validation errors, with field-level detail."""
    fields = {
        ".".join(str(p) for p in err["loc"] if p != "body"): err["msg"]
        for err in exc.errors()
    }
    first = next(iter(fields.values()), "Validation failed")
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "status": "error",
            "error_code": ValidationError.error_code,
            "message": first,
            "details": {"fields": fields},
        },
    )
