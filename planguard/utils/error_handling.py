"""
Error Handling Module for PlanGuard

Exception hierarchy for the billing jobs and the handlers that turn
exceptions into the standard error envelope:

    {"success": false, "error": {"code": ..., "message": ..., "timestamp": ...}}

Sweep-level failures (QueryFailure) abort a job; per-account failures are
logged and counted by the sweeper and never reach a handler.
"""

from enum import Enum
from typing import Any, Dict, Optional
import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError, OperationalError
from starlette.exceptions import HTTPException as StarletteHTTPException

from planguard.utils.timeutils import utcnow

logger = logging.getLogger("planguard.errors")


class ErrorCode(str, Enum):
    """Error codes returned in the error envelope"""

    # Request errors
    VALIDATION_ERROR = "VALIDATION_ERROR"
    UNAUTHORIZED = "UNAUTHORIZED"
    NOT_FOUND = "NOT_FOUND"
    METHOD_NOT_ALLOWED = "METHOD_NOT_ALLOWED"

    # Billing jobs
    ACCOUNT_QUERY_FAILED = "ACCOUNT_QUERY_FAILED"
    ACCOUNT_UPDATE_FAILED = "ACCOUNT_UPDATE_FAILED"
    ALERT_DELIVERY_FAILED = "ALERT_DELIVERY_FAILED"

    # Infrastructure
    DATABASE_ERROR = "DATABASE_ERROR"
    DATABASE_UNAVAILABLE = "DATABASE_UNAVAILABLE"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


HTTP_STATUS_CODES = {
    status.HTTP_401_UNAUTHORIZED: ErrorCode.UNAUTHORIZED,
    status.HTTP_404_NOT_FOUND: ErrorCode.NOT_FOUND,
    status.HTTP_405_METHOD_NOT_ALLOWED: ErrorCode.METHOD_NOT_ALLOWED,
    status.HTTP_422_UNPROCESSABLE_ENTITY: ErrorCode.VALIDATION_ERROR,
}


class AppException(Exception):
    """Base exception carrying an error code and HTTP status"""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Optional[Dict[str, Any]] = None,
        original_error: Optional[Exception] = None,
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.original_error = original_error
        super().__init__(self.message)


# ============================================================================
# Billing Job Exceptions
# ============================================================================

class QueryFailure(AppException):
    """The account list for a sweep could not be fetched. Fatal for the sweep."""

    def __init__(self, message: str = "Failed to fetch accounts", original_error: Optional[Exception] = None):
        super().__init__(
            code=ErrorCode.ACCOUNT_QUERY_FAILED,
            message=message,
            original_error=original_error,
        )


class PerAccountFailure(AppException):
    """Processing one account failed. Logged and counted, never fatal."""

    def __init__(self, account_id: Any, original_error: Exception):
        super().__init__(
            code=ErrorCode.ACCOUNT_UPDATE_FAILED,
            message=f"Failed to process account {account_id}: {original_error}",
            details={"account_id": str(account_id)},
            original_error=original_error,
        )
        self.account_id = account_id


class AlertDeliveryFailure(AppException):
    """A billing alert could not be delivered."""

    def __init__(self, account_id: Any, kind: str, original_error: Optional[Exception] = None):
        super().__init__(
            code=ErrorCode.ALERT_DELIVERY_FAILED,
            message=f"Could not deliver {kind} alert for account {account_id}",
            status_code=status.HTTP_502_BAD_GATEWAY,
            details={"account_id": str(account_id), "kind": kind},
            original_error=original_error,
        )


class JobAuthenticationException(AppException):
    """Job entry point called without the right token"""

    def __init__(self, message: str = "Invalid or missing job token"):
        super().__init__(
            code=ErrorCode.UNAUTHORIZED,
            message=message,
            status_code=status.HTTP_401_UNAUTHORIZED,
        )


class ConfigurationException(AppException):
    """Required configuration is missing"""

    def __init__(self, message: str):
        super().__init__(
            code=ErrorCode.CONFIGURATION_ERROR,
            message=message,
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        )


# ============================================================================
# Exception Handlers
# ============================================================================

def create_error_response(
    code: ErrorCode,
    message: str,
    status_code: int,
    details: Optional[Dict[str, Any]] = None,
) -> JSONResponse:
    """Build the standard error envelope"""
    error: Dict[str, Any] = {
        "code": code.value,
        "message": message,
        "timestamp": utcnow().isoformat(),
    }
    if details:
        error["details"] = details

    return JSONResponse(status_code=status_code, content={"success": False, "error": error})


def _request_context(request: Request) -> Dict[str, str]:
    return {"path": request.url.path, "method": request.method}


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    log = logger.warning if exc.status_code < 500 else logger.error
    log(
        f"{exc.code.value} on {request.method} {request.url.path}: {exc.message}",
        extra=_request_context(request),
        exc_info=exc.original_error,
    )
    return create_error_response(exc.code, exc.message, exc.status_code, exc.details)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    code = HTTP_STATUS_CODES.get(exc.status_code, ErrorCode.INTERNAL_ERROR)
    message = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    return create_error_response(code, message, exc.status_code)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {"field": ".".join(str(loc) for loc in error["loc"]), "message": error["msg"]}
        for error in exc.errors()
    ]
    return create_error_response(
        ErrorCode.VALIDATION_ERROR,
        "Request validation failed",
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        {"errors": errors},
    )


async def database_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Database errors that escaped a sweep (e.g. while opening the session)"""
    logger.error(
        f"Database error on {request.method} {request.url.path}: {type(exc).__name__}",
        extra=_request_context(request),
        exc_info=True,
    )
    if isinstance(exc, OperationalError):
        return create_error_response(
            ErrorCode.DATABASE_UNAVAILABLE,
            "Database unavailable",
            status.HTTP_503_SERVICE_UNAVAILABLE,
        )
    return create_error_response(
        ErrorCode.DATABASE_ERROR,
        "A database error occurred",
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.critical(
        f"Unhandled {type(exc).__name__} on {request.method} {request.url.path}: {exc}",
        extra=_request_context(request),
        exc_info=True,
    )
    return create_error_response(
        ErrorCode.INTERNAL_ERROR,
        "An unexpected error occurred",
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI application"""
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(SQLAlchemyError, database_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
