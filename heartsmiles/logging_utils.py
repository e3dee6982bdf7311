"""Logging helpers shared by middleware, services and the entrypoint."""

from collections.abc import Mapping
from typing import Any, Final

from fastapi import Request

from .constants import APP_NAME
from .logging_config import get_logger

SENSITIVE_MARKERS: Final = (
    "password",
    "secret",
    "token",
    "credential",
    "auth",
    "cookie",
    "session",
    "key",
)
REDACTED: Final = "[REDACTED]"
MAX_USER_AGENT_LENGTH: Final = 100


def is_sensitive_field(field_name: str) -> bool:
    lowered = field_name.lower()
    return any(marker in lowered for marker in SENSITIVE_MARKERS)


def redact_sensitive_fields(data: Mapping[str, Any]) -> dict[str, Any]:
    """Copy of data whose sensitive values are replaced by a placeholder."""
    return {
        key: REDACTED if is_sensitive_field(key) else value
        for key, value in data.items()
    }


def log_api_request(
    request: Request,
    response_status: int,
    process_time_ms: float | None = None,
    client_ip: str | None = None,
) -> None:
    """Log one finished request; 4xx as warning, 5xx as error.

    Args:
        request: The handled request
        response_status: Status code sent to the client
        process_time_ms: Time spent in the pipeline
        client_ip: Client identity from the proxy-aware lookup
    """
    logger = get_logger("heartsmiles.api")
    if response_status >= 500:
        emit = logger.error
    elif response_status >= 400:
        emit = logger.warning
    else:
        emit = logger.info

    emit(
        f"{request.method} {request.url.path} - {response_status}",
        method=request.method,
        path=request.url.path,
        status_code=response_status,
        client_ip=client_ip or (request.client.host if request.client else None),
        user_agent=request.headers.get("user-agent", "Unknown")[
            :MAX_USER_AGENT_LENGTH
        ],
        process_time_ms=(
            round(process_time_ms, 2) if process_time_ms is not None else None
        ),
    )


def log_database_operation(
    operation: str, table: str, success: bool = True, **context: Any
) -> None:
    """Record a write to the database with its (redacted) context."""
    logger = get_logger("heartsmiles.database")
    emit = logger.info if success else logger.error
    emit(
        f"{table} {operation} {'succeeded' if success else 'failed'}",
        operation=operation,
        table=table,
        success=success,
        **redact_sensitive_fields(context),
    )


def log_system_info(
    port: int, environment: str, allowed_origins: list[str], serverless: bool
) -> None:
    """Startup banner: where the API listens and who may call it."""
    logger = get_logger("heartsmiles.system")
    if serverless:
        logger.info(f"{APP_NAME} loaded for serverless invocation")
    else:
        logger.info(f"{APP_NAME} running on port {port}")
    logger.info(f"Environment: {environment}")
    logger.info(
        "CORS allowed origins",
        origins=allowed_origins,
        port=port,
        serverless=serverless,
    )
