"""
Exception Handlers.

Turns exceptions raised while serving a request into the ErrorResponse
envelope. Handlers are installed by register_exception_handlers(app).

    ValidationError            400  VAL_VALIDATION_ERROR
    malformed request body     400  VAL_REQUEST_INVALID
    NotFoundError              404  RES_NOT_FOUND
    StorageError               500  SYS_STORAGE_ERROR
    any other exception        500  SYS_INTERNAL_ERROR (no details leaked)
"""

from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from notekeeper.backend.core.exceptions import (
    ApplicationError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from notekeeper.backend.core.logging import get_logger
from notekeeper.backend.schemas.base import ErrorDetail, ErrorResponse, ResponseMetadata

logger = get_logger(__name__)

EXCEPTION_STATUS_MAP: dict[type[ApplicationError], int] = {
    ValidationError: 400,
    NotFoundError: 404,
    StorageError: 500,
}


def _status_for(exc: ApplicationError) -> int:
    for cls in type(exc).__mro__:
        if cls in EXCEPTION_STATUS_MAP:
            return EXCEPTION_STATUS_MAP[cls]
    return 500


def _get_request_id(request: Request) -> str | None:
    """Request id set by RequestContextMiddleware, else the raw header."""
    request_id = getattr(request.state, "request_id", None)
    return request_id or request.headers.get("x-request-id")


def _respond(
    request: Request,
    status_code: int,
    error: ErrorDetail,
    exc_info: bool = False,
    **log_fields: Any,
) -> JSONResponse:
    """Log the failure at a level matching its status and build the envelope."""
    log_extra = {
        "code": error.code,
        "status": status_code,
        "method": request.method,
        "path": request.url.path,
        **log_fields,
    }
    if exc_info:
        logger.exception(error.message, extra=log_extra)
    elif status_code >= 500:
        logger.error(error.message, extra=log_extra)
    else:
        logger.warning(error.message, extra=log_extra)

    body = ErrorResponse(
        error=error,
        metadata=ResponseMetadata(request_id=_get_request_id(request)),
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


async def application_error_handler(request: Request, exc: ApplicationError) -> JSONResponse:
    """Map an ApplicationError to its status; ValidationError keeps its details."""
    details = None
    if isinstance(exc, ValidationError) and exc.details:
        details = exc.details
    return _respond(
        request,
        _status_for(exc),
        ErrorDetail(code=exc.code, message=exc.message, details=details),
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report a request that did not match its schema, one entry per field."""
    field_errors = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ())),
            "message": err.get("msg", "Validation error"),
            "type": err.get("type", "unknown"),
        }
        for err in exc.errors()
    ]
    return _respond(
        request,
        400,
        ErrorDetail(
            code="VAL_REQUEST_INVALID",
            message="Request validation failed",
            details={"validation_errors": field_errors},
        ),
        error_count=len(field_errors),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last resort: log the traceback, answer with a generic 500."""
    return _respond(
        request,
        500,
        ErrorDetail(code="SYS_INTERNAL_ERROR", message="An unexpected error occurred"),
        exc_info=True,
        exception_type=type(exc).__name__,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install the handlers above on app."""
    app.add_exception_handler(ApplicationError, application_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
