import logging
from pathlib import Path
from typing import Final

import structlog
from opentelemetry import trace
from rich.logging import RichHandler

from .config import Settings

LOG_FILE: Final = Path("logs") / "heartsmiles.log"
LOG_FORMAT: Final = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"

# Libraries that are noisy at INFO, or whose output duplicates ours
QUIET_LOGGERS: Final = {
    "sqlalchemy.engine": logging.WARNING,
    "sqlalchemy.pool": logging.WARNING,
    "uvicorn.access": logging.WARNING,
    "uvicorn": logging.INFO,
    "multipart": logging.WARNING,
    "python_multipart": logging.WARNING,
}

_installed_handlers: list[logging.Handler] = []


def _resolve_level(settings: Settings, override: str | None) -> int:
    if override:
        return logging.getLevelNamesMapping().get(override.upper(), logging.INFO)
    return logging.DEBUG if settings.is_development else logging.INFO


def _wants_file_log(settings: Settings) -> bool:
    """File logs are written on long-running non-development hosts.

    Serverless filesystems are read-only outside /tmp.
    """
    if settings.log_to_file:
        return True
    return not settings.is_development and not settings.is_serverless


def setup_logging(settings: Settings, log_level: str | None = None) -> None:
    """Configure stdlib logging and structlog for the application.

    Args:
        settings: Application settings
        log_level: Level name overriding the one derived from the environment
    """
    level = _resolve_level(settings, log_level)
    formatter = logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    handlers: list[logging.Handler] = [
        RichHandler(
            rich_tracebacks=True,
            show_path=settings.is_development,
            show_time=False,
        )
    ]
    if _wants_file_log(settings):
        LOG_FILE.parent.mkdir(exist_ok=True)
        handlers.append(logging.FileHandler(LOG_FILE, encoding="utf-8"))

    root = logging.getLogger()
    root.handlers.clear()
    while _installed_handlers:
        _installed_handlers.pop().close()
    _installed_handlers.extend(handlers)
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)
    root.setLevel(level)

    for name, quiet_level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(quiet_level)

    _configure_structlog(settings, level)

    get_logger(__name__).info(
        "Logging configured",
        level=logging.getLevelName(level),
        environment=settings.environment_name,
        file=str(LOG_FILE) if len(handlers) > 1 else None,
    )


def _add_trace_context(logger, method_name, event_dict):
    """Attach the ids of the active OpenTelemetry span, if any."""
    span = trace.get_current_span()
    if span.is_recording():
        context = span.get_span_context()
        if context.is_valid:
            event_dict["trace_id"] = trace.format_trace_id(context.trace_id)
            event_dict["span_id"] = trace.format_span_id(context.span_id)
    return event_dict


def _configure_structlog(settings: Settings, level: int) -> None:
    # Development gets readable lines, everything else one JSON object per line
    renderer: structlog.typing.Processor = (
        structlog.dev.ConsoleRenderer(colors=False)
        if settings.is_development
        else structlog.processors.JSONRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.CallsiteParameterAdder(
                {structlog.processors.CallsiteParameter.MODULE}
            ),
            _add_trace_context,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            renderer,
        ],
        # Events go through the stdlib root logger so the file handler sees them
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str):
    """Structured logger bound to a module name (usually ``__name__``)."""
    return structlog.get_logger(name)
