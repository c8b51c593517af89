"""
Error Handlers

Centralized exception handlers for the FastAPI application. Every failure
leaves the API as {ok: false, error: {code, message, errors?, details?}}.
"""

import re
import traceback

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from pymongo.errors import DuplicateKeyError

from ...config.settings import settings
from ...domain.errors import DomainError, ValidationError, ConflictError, InternalError
from ...utils.logger import get_logger, get_correlation_id

logger = get_logger(__name__)

# Parameter locations FastAPI prefixes onto error paths
_LOCATION_PREFIXES = {"body", "query", "path", "header", "cookie"}


def _response(exc: DomainError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.http_status,
        content=exc.to_dict(),
        headers={"X-Correlation-Id": get_correlation_id() or ""}
    )


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    """
    Handle domain-specific errors (business logic errors).

    These are expected errors that occur during normal operation,
    such as validation failures, not found errors, permission denied, etc.
    """
    logger.warning(
        f"Domain error: {exc.error_code} - {exc.message}",
        extra={"error_code": exc.error_code}
    )
    return _response(exc)


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """
    Handle request validation errors.

    Converted to the same field error list the services produce.
    """
    errors = []
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ()) if part not in _LOCATION_PREFIXES]
        errors.append({
            "field": ".".join(location) or "request",
            "code": error.get("type", "invalid"),
            "detail": error.get("msg", "Invalid value"),
        })

    logger.warning(
        f"Validation error: {errors}, path={request.url.path}, method={request.method}",
        extra={"error_code": ValidationError.error_code}
    )
    return _response(ValidationError("Request validation failed", errors=errors))


async def duplicate_key_handler(request: Request, exc: DuplicateKeyError) -> JSONResponse:
    """Unique index violations become 409 Conflict"""
    details = exc.details or {}
    key_value = details.get("keyValue") or {}
    field = next(iter(key_value), None)
    if field is None:
        match = re.search(r"index: (\w+?)_\d", str(exc))
        field = match.group(1) if match else None

    logger.warning(f"Duplicate key: {field}", extra={"error_code": ConflictError.error_code})
    return _response(ConflictError(
        "Duplicate value",
        details={"field": field, "value": key_value.get(field) if field else None}
    ))


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle unexpected errors.

    Logs full stack trace; the trace is only returned in debug outside
    production.
    """
    logger.error(f"Unexpected error: {exc}", exc_info=True, extra={"error_type": type(exc).__name__})

    details = None
    if settings.debug and not settings.is_production:
        details = {"exception": type(exc).__name__, "trace": traceback.format_exc()}
    return _response(InternalError("An unexpected error occurred", details=details))


def register_error_handlers(app: FastAPI) -> None:
    """
    Register all exception handlers with the FastAPI application.

    Args:
        app: The FastAPI application instance
    """
    app.add_exception_handler(DomainError, domain_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(DuplicateKeyError, duplicate_key_handler)
    app.add_exception_handler(Exception, general_exception_handler)
