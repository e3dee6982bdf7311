"""Centralized error handling for the presentation layer."""

import traceback
from typing import Any, Final

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..domain.exceptions import DependencyUnavailableError, DomainError
from ..logging_config import get_logger

logger: Final = get_logger(__name__)

GENERIC_ERROR: Final = "Something went wrong!"
GENERIC_MESSAGE: Final = "Internal server error"
ROUTE_NOT_FOUND: Final = {"error": "Route not found"}


def error_status(error: BaseException) -> int:
    """HTTP status declared by an error, defaulting to 500."""
    for attribute in ("status_code", "status"):
        declared = getattr(error, attribute, None)
        if isinstance(declared, int) and 400 <= declared <= 599:
            return declared
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def build_error_envelope(error: BaseException, development: bool) -> dict[str, Any]:
    """Build the JSON body returned for failed requests.

    The real message and the stack trace are only exposed in development.
    """
    envelope: dict[str, Any] = {
        "error": GENERIC_ERROR,
        "message": str(error) if development else GENERIC_MESSAGE,
    }
    if development:
        envelope["stack"] = "".join(
            traceback.format_exception(type(error), error, error.__traceback__)
        )
    return envelope


def pipeline_error_response(
    error: BaseException, *, path: str, method: str, development: bool
) -> JSONResponse:
    """Log an error with full detail and convert it to the error envelope."""
    status_code = error_status(error)
    log = logger.error if status_code >= 500 else logger.warning
    log(
        "Request failed",
        error_type=type(error).__name__,
        error_message=str(error),
        status_code=status_code,
        path=path,
        method=method,
        exc_info=(type(error), error, error.__traceback__),
    )
    return JSONResponse(
        status_code=status_code,
        content=build_error_envelope(error, development),
    )


def error_response(request: Request, error: BaseException) -> JSONResponse:
    """Error envelope response for an error raised while handling a request."""
    return pipeline_error_response(
        error,
        path=request.url.path,
        method=request.method,
        development=request.app.state.settings.is_development,
    )


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    """Global handler for errors no other handler claimed."""
    return error_response(request, exc)


async def handle_domain_error(request: Request, exc: DomainError) -> JSONResponse:
    """Convert domain errors to their declared status with a readable message."""
    logger.warning(
        "Domain error occurred",
        error_type=type(exc).__name__,
        error_message=str(exc),
        path=request.url.path,
        method=request.method,
    )
    headers = (
        {"WWW-Authenticate": "Bearer"}
        if exc.status_code == status.HTTP_401_UNAUTHORIZED
        else None
    )
    return JSONResponse(
        status_code=exc.status_code, content={"error": str(exc)}, headers=headers
    )


async def handle_http_exception(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Render HTTPException raised by routes and dependencies.

    Router misses, including a known path called with another method, are
    answered with the not-found body.
    """
    if (
        exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == "Not Found"
    ) or exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND, content=ROUTE_NOT_FOUND
        )
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def handle_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Convert request validation errors to a 400 with field details."""
    field_errors = []
    for error in exc.errors():
        field_name = ".".join(
            str(loc) for loc in error["loc"] if loc not in ("body", "query", "path")
        )
        field_errors.append(
            {
                "field": field_name or "unknown",
                "code": error["type"],
                "message": error["msg"],
            }
        )

    logger.warning(
        "Request validation error occurred",
        errors=field_errors,
        path=request.url.path,
        method=request.method,
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Validation failed", "details": field_errors},
    )


async def handle_database_error(
    request: Request, exc: SQLAlchemyError
) -> JSONResponse:
    """Convert database errors raised mid-request."""
    if isinstance(exc, IntegrityError):
        logger.warning(
            "Database constraint violated",
            error_message=str(exc.orig),
            path=request.url.path,
            method=request.method,
        )
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content={"error": "A record with these values already exists"},
        )
    if isinstance(exc, OperationalError):
        return error_response(
            request, DependencyUnavailableError("database", str(exc.orig))
        )
    return error_response(request, exc)
