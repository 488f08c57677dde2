"""
Domain errors and global exception handlers.

Services raise the ``TimekeeperError`` family; the handlers below turn them
into JSON bodies and keep stack traces away from clients.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

logger = logging.getLogger(__name__)


# ── Domain errors ───────────────────────────────────────────────────
class TimekeeperError(Exception):
    """Base class for every business-rule failure."""

    status_code = 400
    code = "error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def payload(self) -> dict:
        return {"detail": self.message, "code": self.code, "success": False}


class ValidationError(TimekeeperError):
    """Malformed input: bad timestamp, missing id, out-of-range month."""

    status_code = 400
    code = "validation_error"


class NotFoundError(TimekeeperError):
    status_code = 404
    code = "not_found"


class StateConflictError(TimekeeperError):
    """The target is in the wrong state for the requested operation."""

    status_code = 409
    code = "state_conflict"

    def __init__(
        self,
        message: str,
        *,
        current: str | None = None,
        expected: str | None = None,
    ) -> None:
        super().__init__(message)
        self.current = current
        self.expected = expected

    def payload(self) -> dict:
        body = super().payload()
        if self.current is not None:
            body["current_status"] = self.current
        if self.expected is not None:
            body["expected_status"] = self.expected
        return body


class PolicyViolation(TimekeeperError):
    status_code = 422
    code = "policy_violation"


class TerminatedEmployeeError(PolicyViolation):
    code = "terminated"


class OnLeaveError(PolicyViolation):
    code = "on_leave"


class RestDayError(PolicyViolation):
    code = "rest_day"


class PendingAssignmentError(PolicyViolation):
    code = "pending_assignment"


# ── Handlers ────────────────────────────────────────────────────────
async def _timekeeper_error_handler(_request: Request, exc: TimekeeperError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.payload())


async def _http_exception_handler(_request: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "success": False},
        headers=getattr(exc, "headers", None),
    )


async def _stale_data_handler(_request: Request, exc: StaleDataError) -> JSONResponse:
    logger.warning("Concurrent modification rejected: %s", exc)
    return JSONResponse(
        status_code=409,
        content={
            "detail": "Record was modified concurrently, retry the request",
            "code": "state_conflict",
            "success": False,
        },
    )


async def _integrity_error_handler(_request: Request, exc: IntegrityError) -> JSONResponse:
    logger.error("Database integrity error: %s", exc, exc_info=True)
    return JSONResponse(
        status_code=409,
        content={"detail": "Database constraint violation", "success": False},
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
    app.add_exception_handler(TimekeeperError, _timekeeper_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(HTTPException, _http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StaleDataError, _stale_data_handler)  # type: ignore[arg-type]
    app.add_exception_handler(IntegrityError, _integrity_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(SQLAlchemyError, _sqlalchemy_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _generic_exception_handler)
