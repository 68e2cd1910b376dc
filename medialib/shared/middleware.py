"""Request correlation and exception-to-response mapping."""
import uuid

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from starlette.middleware.base import BaseHTTPMiddleware

from .exceptions import AppError, NotFoundError, StorageError, ValidationError
from .logging import get_logger

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class CorrelationIDMiddleware(BaseHTTPMiddleware):
    """Bind a request id to the logging context and echo it back to the client."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )
        try:
            response = await call_next(request)
        finally:
            structlog.contextvars.clear_contextvars()
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    logger.info("request_rejected", error=exc.message, status_code=exc.status_code, **exc.details)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


def describe_request_errors(exc: RequestValidationError) -> str:
    """Flatten FastAPI request validation errors into one readable message."""
    parts = []
    for error in exc.errors():
        loc = ".".join(str(p) for p in error.get("loc", ()) if p not in ("body", "query", "path"))
        msg = error.get("msg", "invalid value")
        parts.append(f"{loc}: {msg}" if loc else msg)
    return "Invalid request: " + "; ".join(parts)


async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    message = describe_request_errors(exc)
    logger.info("request_rejected", error=message, status_code=status.HTTP_400_BAD_REQUEST)
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": message})


async def not_found_error_handler(request: Request, exc: NotFoundError) -> Response:
    logger.info("resource_not_found", error=exc.message, **exc.details)
    return Response(status_code=status.HTTP_404_NOT_FOUND)


async def storage_error_handler(request: Request, exc: AppError) -> JSONResponse:
    # Details go to the log only; the client gets a generic message.
    cause = exc.__cause__
    logger.error(
        "storage_error",
        error=exc.message,
        cause=repr(cause) if cause else None,
        exc_info=exc,
        **exc.details,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error"},
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("unhandled_error", error=str(exc), exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all domain exception handlers on the app."""
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(NotFoundError, not_found_error_handler)
    app.add_exception_handler(StorageError, storage_error_handler)
    app.add_exception_handler(AppError, storage_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
