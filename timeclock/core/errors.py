"""
Central error handling for the Timeclock backend

Domain errors raised by the services carry their own HTTP status and a stable
``code`` so that clients can distinguish "nothing to do" (NO_OPEN_SHIFT) from
"could not save" (PERSISTENCE_FAILURE).
"""
import logging
import traceback
from typing import Optional

from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi import HTTPException

logger = logging.getLogger(__name__)

_CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "*",
    "Access-Control-Allow-Headers": "*",
}


class TimeclockError(Exception):
    """Base class for errors raised by the work-time services."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "TIMECLOCK_ERROR"

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class NoOpenShift(TimeclockError):
    """Clock-out (or a break) was requested but no clock-in is open."""

    code = "NO_OPEN_SHIFT"

    def __init__(self, employee_id: int, detail: Optional[str] = None):
        super().__init__(detail or "No active clock-in to close")
        self.employee_id = employee_id


class InvalidPunch(TimeclockError):
    """The punch is not allowed in the current state or is out of order."""

    code = "INVALID_PUNCH"


class InvalidRange(TimeclockError):
    """A from/to window where from is after to."""

    code = "INVALID_RANGE"

    def __init__(self, detail: str = "from must be less than or equal to to"):
        super().__init__(detail)


class EntryNotFound(TimeclockError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "ENTRY_NOT_FOUND"

    def __init__(self, entry_id: int):
        super().__init__("Time entry not found")
        self.entry_id = entry_id


class PersistenceFailure(TimeclockError):
    """
    Opaque failure from the storage layer. The original exception is kept as
    ``__cause__``; nothing from the failed unit of work is committed.
    """

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "PERSISTENCE_FAILURE"

    def __init__(self, detail: str = "Could not save time entries"):
        super().__init__(detail)


async def timeclock_exception_handler(request: Request, exc: TimeclockError) -> JSONResponse:
    """
    Handle domain errors with the same JSON envelope as HTTPException

    Args:
        request: FastAPI request object
        exc: TimeclockError instance

    Returns:
        JSONResponse with error details and machine-readable code
    """
    if isinstance(exc, PersistenceFailure):
        logger.error("Persistence failure on %s: %s", request.url.path, exc.__cause__ or exc)
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": True,
            "status_code": exc.status_code,
            "code": exc.code,
            "detail": exc.detail,
            "path": str(request.url.path)
        },
        headers=_CORS_HEADERS,
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """
    Handle HTTPException with consistent JSON response format
    """
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": True,
            "status_code": exc.status_code,
            "detail": exc.detail,
            "path": str(request.url.path)
        },
        headers=_CORS_HEADERS,
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Handle RequestValidationError with consistent JSON response format

    Does not leak internal validation details in production.
    """
    from timeclock.core.config import settings

    if settings.APP_ENV == "prod":
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "error": True,
                "status_code": 422,
                "detail": "Validation error: Invalid request data",
                "path": str(request.url.path)
            }
        )

    # ctx.error may hold a ValueError instance; stringify anything not JSON-native
    errors = []
    for e in exc.errors():
        err = dict(e)
        if "ctx" in err and isinstance(err["ctx"], dict):
            err["ctx"] = {
                k: (str(v) if not isinstance(v, (str, int, float, bool, type(None))) else v)
                for k, v in err["ctx"].items()
            }
        errors.append(err)
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": True,
            "status_code": 422,
            "detail": "Validation error",
            "errors": errors,
            "path": str(request.url.path)
        }
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle unexpected exceptions with consistent JSON response format

    Does not leak internal error details in production.
    """
    from timeclock.core.config import settings

    logger.error("Unhandled exception: %s", exc, exc_info=True)

    if settings.APP_ENV == "prod":
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": True,
                "status_code": 500,
                "detail": "Internal server error",
                "path": str(request.url.path)
            },
            headers=_CORS_HEADERS,
        )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": True,
            "status_code": 500,
            "detail": str(exc),
            "path": str(request.url.path),
            "traceback": traceback.format_exc() if settings.APP_ENV == "local" else None
        },
        headers=_CORS_HEADERS,
    )
