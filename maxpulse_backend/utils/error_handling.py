"""
Error handling for the MaxPulse backend.

Every failure leaves the API in one shape: {"success": false, "error": "..."}.
Services raise HTTPException for expected failures and convert anything
else with handle_exception() after rolling back their transaction.
"""

import traceback
from typing import Any, Dict, Optional

from fastapi import HTTPException, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from maxpulse_backend.core.logging import get_logger

logger = get_logger(__name__)

DATABASE_UNAVAILABLE = "Database temporarily unavailable"


def error_response(status_code: int, error: str, **extra: Any) -> JSONResponse:
    """JSON error body shared by the exception handlers and the function endpoints"""
    return JSONResponse(status_code=status_code, content={"success": False, "error": error, **extra})


def handle_exception(
    exception: Exception,
    log_message: str = "An error occurred",
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
    detail: Optional[str] = None
) -> HTTPException:
    """
    Turn an unexpected exception into the HTTPException a service should raise.

    HTTPExceptions pass through unchanged. A lost database connection
    becomes a 503 so callers know the request can be retried.
    """
    if isinstance(exception, HTTPException):
        return exception

    log_exception(exception, log_message)

    if isinstance(exception, OperationalError):
        return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=DATABASE_UNAVAILABLE)

    return HTTPException(
        status_code=status_code,
        detail=detail or str(exception) or "An internal server error occurred"
    )


def log_exception(exception: Exception, message: str = "An error occurred") -> None:
    kind = "database" if isinstance(exception, SQLAlchemyError) else "unexpected"
    logger.error(
        f"❌ {message} ({kind} error {exception.__class__.__name__}): {exception}",
        exc_info=(type(exception), exception, exception.__traceback__)
    )


def format_exception_for_client(exception: Exception, include_traceback: bool = False) -> Dict[str, Any]:
    """
    Error body for unhandled exceptions. Tracebacks only in DEBUG.
    """
    body = {
        "success": False,
        "error": str(exception) or "Internal server error",
        "error_type": exception.__class__.__name__,
    }
    if include_traceback:
        body["traceback"] = traceback.format_exception(type(exception), exception, exception.__traceback__)
    return body
