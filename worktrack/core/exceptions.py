"""
Domain errors and global exception handlers.

Service-layer operations raise ``AttendanceError`` subclasses; the handlers
registered here turn them (and storage failures) into JSON responses without
leaking stack traces to clients.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError

logger = logging.getLogger(__name__)


# ── Domain errors ───────────────────────────────────────────────────
class AttendanceError(Exception):
    """Base class for recoverable attendance failures."""

    status_code: int = 400
    code: str = "attendance_error"
    default_detail: str = "Attendance operation failed"

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class InvalidSiteError(AttendanceError):
    """Unknown or inactive check-in token (the two are not distinguished)."""

    status_code = 400
    code = "invalid_site"
    default_detail = "Invalid check-in code or the work site is inactive"


class DuplicateCheckInError(AttendanceError):
    status_code = 409
    code = "duplicate_check_in"
    default_detail = "Check-in for this work site is already registered today"


class NoOpenCheckInError(AttendanceError):
    status_code = 400
    code = "no_open_check_in"
    default_detail = "No open check-in found to check out of"


class NotFoundError(AttendanceError):
    status_code = 404
    code = "not_found"
    default_detail = "Not found"


class ValidationError(AttendanceError):
    status_code = 422
    code = "validation_error"
    default_detail = "Invalid request"


# ── Handlers ────────────────────────────────────────────────────────
async def _attendance_error_handler(_request: Request, exc: AttendanceError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "code": exc.code, "success": False},
    )


async def _http_exception_handler(_request: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "success": False},
        headers=getattr(exc, "headers", None),
    )


async def _integrity_error_handler(_request: Request, exc: IntegrityError) -> JSONResponse:
    logger.error("Database integrity error: %s", exc, exc_info=True)
    return JSONResponse(
        status_code=409,
        content={"detail": "Database constraint violation", "success": False},
    )


async def _operational_error_handler(_request: Request, exc: OperationalError) -> JSONResponse:
    logger.error("Database unavailable: %s", exc, exc_info=True)
    return JSONResponse(
        status_code=503,
        content={"detail": "Database temporarily unavailable", "success": False},
        headers={"Retry-After": "5"},
    )


async def _sqlalchemy_error_handler(_request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("Database error: %s", exc, exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal database error", "success": False},
    )


async def _generic_exception_handler(_request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception: %s", exc)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "success": False},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach all exception handlers to the FastAPI app."""
    app.add_exception_handler(AttendanceError, _attendance_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(HTTPException, _http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(IntegrityError, _integrity_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(OperationalError, _operational_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(SQLAlchemyError, _sqlalchemy_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _generic_exception_handler)
