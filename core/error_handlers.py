"""Error handlers for the FastAPI application.

Maps the application exception taxonomy and raw SQLAlchemy failures to
JSON error bodies of the form `{"error": {"message", "status_code", "details"}}`.
"""

import traceback

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import DisconnectionError, OperationalError, SQLAlchemyError

from core.exceptions import AppException
from core.logger import get_logger

logger = get_logger("core.error_handlers")


def create_error_response(message: str, status_code: int = 500, details: dict = None) -> JSONResponse:
    """Create a standardized error response.

    Args:
        message: Error message.
        status_code: HTTP status code.
        details: Optional error details dictionary.

    Returns:
        JSONResponse with the error body.
    """
    error_body = {"error": {"message": message, "status_code": status_code}}
    if details:
        error_body["error"]["details"] = details
    return JSONResponse(status_code=status_code, content=error_body)


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handle application exceptions (not found, permission, validation, ...)."""
    log = logger.error if exc.status_code >= 500 else logger.warning
    log("Application error: %s [%s %s]", exc.message, request.method, request.url.path)
    return create_error_response(exc.message, exc.status_code, exc.details)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle request body and path validation errors."""
    errors = [
        {
            "field": ".".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]
    logger.warning("Validation error on %s %s: %s", request.method, request.url.path, errors)
    return create_error_response(
        "Validation error",
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        {"validation_errors": errors},
    )


async def unavailable_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Handle a database that cannot be reached."""
    logger.error("Database unavailable on %s %s: %s", request.method, request.url.path, exc)
    return create_error_response(
        "Database is unavailable",
        status.HTTP_503_SERVICE_UNAVAILABLE,
        {"type": "database_unavailable"},
    )


async def sqlalchemy_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Handle any other SQLAlchemy error without exposing its text."""
    logger.error("Database error on %s %s: %s", request.method, request.url.path, exc, exc_info=True)
    return create_error_response(
        "A database error occurred",
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        {"type": "database_error"},
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle all unhandled exceptions."""
    logger.error("Unhandled exception on %s %s: %s", request.method, request.url.path, exc)
    logger.error("Traceback: %s", traceback.format_exc())
    return create_error_response(
        "An internal server error occurred",
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        {"type": "internal_error"},
    )


def register_exception_handlers(app):
    """Register all exception handlers with the FastAPI app."""
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(OperationalError, unavailable_exception_handler)
    app.add_exception_handler(DisconnectionError, unavailable_exception_handler)
    app.add_exception_handler(SQLAlchemyError, sqlalchemy_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
    logger.info("Exception handlers registered")
