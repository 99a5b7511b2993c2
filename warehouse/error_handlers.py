"""Custom error handlers and exceptions for the application."""
import traceback
from typing import Optional, Union

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError, IntegrityError

from .logging_config import get_logger

logger = get_logger("error_handlers")


class AppException(Exception):
    """Base exception for application-specific errors."""

    def __init__(self, message: str, status_code: int = 500, details: Optional[dict] = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class NotFoundError(AppException):
    """Raised when a requested resource is not found."""

    def __init__(self, resource: str, identifier: Union[int, str]):
        super().__init__(
            message=f"{resource} with identifier '{identifier}' not found",
            status_code=404,
            details={"resource": resource, "identifier": str(identifier)}
        )


class DuplicateKeyError(AppException):
    """Raised when a unique key (SKU, transaction id, email, code) is already taken."""

    def __init__(self, resource: str, field: str, value: str):
        super().__init__(
            message=f"{resource} with {field} '{value}' already exists",
            status_code=409,
            details={"resource": resource, "field": field, "value": value}
        )


class ValidationFailedError(AppException):
    """Raised when data validation fails."""

    def __init__(self, message: str, errors: Optional[list] = None):
        super().__init__(
            message=message,
            status_code=422,
            details={"validation_errors": errors or []}
        )


class InvalidQuantityError(AppException):
    """Raised when a mutation would leave on-hand or reserved stock out of range."""

    def __init__(self, message: str, sku: Optional[str] = None, **quantities):
        details = {"sku": sku} if sku else {}
        details.update(quantities)
        super().__init__(message=message, status_code=400, details=details)


class InvalidSubTypeError(AppException):
    """Raised when a transaction sub-type does not belong to its type."""

    def __init__(self, ledger_type: str, sub_type: str, allowed: list[str]):
        super().__init__(
            message=f"Sub-type '{sub_type}' is not valid for transaction type '{ledger_type}'",
            status_code=422,
            details={"type": ledger_type, "sub_type": sub_type, "allowed": allowed}
        )


class AlreadyResolvedError(AppException):
    """Raised when resolving an alert that is already resolved."""

    def __init__(self, alert_id: Union[int, str]):
        super().__init__(
            message=f"Alert '{alert_id}' is already resolved",
            status_code=409,
            details={"alert_id": str(alert_id)}
        )


class ConcurrencyConflictError(AppException):
    """Raised when an item keeps changing underneath a mutation."""

    def __init__(self, item_id: Union[int, str], attempts: int):
        super().__init__(
            message=f"Item '{item_id}' was modified concurrently; gave up after {attempts} attempts",
            status_code=409,
            details={"item_id": str(item_id), "attempts": attempts}
        )


async def app_exception_handler(request: Request, exc: AppException):
    """Handler for custom application exceptions."""
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        f"Application error: {exc.message}",
        extra={
            "status_code": exc.status_code,
            "path": request.url.path,
            "method": request.method,
            "details": exc.details
        }
    )

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.message,
            "details": exc.details,
            "path": request.url.path
        }
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handler for request validation errors."""
    errors = []
    for error in exc.errors():
        errors.append({
            "field": " -> ".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
            "type": error["type"]
        })

    logger.warning(
        f"Validation error on {request.method} {request.url.path}",
        extra={"validation_errors": errors}
    )

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": "Validation failed",
            "validation_errors": errors,
            "path": request.url.path
        }
    )


async def sqlalchemy_exception_handler(request: Request, exc: SQLAlchemyError):
    """Handler for SQLAlchemy database errors."""
    error_msg = "Database error occurred"

    if isinstance(exc, IntegrityError):
        error_msg = "Data integrity constraint violated"
        status_code = status.HTTP_409_CONFLICT
    else:
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    logger.error(
        f"Database error: {str(exc)}",
        extra={
            "path": request.url.path,
            "method": request.method,
            "exception_type": type(exc).__name__
        },
        exc_info=True
    )

    return JSONResponse(
        status_code=status_code,
        content={
            "error": error_msg,
            "path": request.url.path
        }
    )


async def generic_exception_handler(request: Request, exc: Exception):
    """Handler for unexpected exceptions."""
    logger.critical(
        f"Unhandled exception: {str(exc)}",
        extra={
            "path": request.url.path,
            "method": request.method,
            "exception_type": type(exc).__name__,
            "traceback": traceback.format_exc()
        },
        exc_info=True
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Internal server error",
            "message": "An unexpected error occurred. Please contact support if the issue persists.",
            "path": request.url.path
        }
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach all handlers above to the application."""
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(SQLAlchemyError, sqlalchemy_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
