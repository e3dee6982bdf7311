"""Startup checks that log failures and let the application keep starting.

A serverless host treats a crashed cold start as an outage, so missing
configuration and an unreachable database are recorded in a
:class:`StartupReport` instead of aborting. The health endpoint reports it and
the routes that need the missing pieces reject requests individually.
"""

from dataclasses import dataclass, field
from typing import Final

from sqlalchemy.future import Engine

from .config import Settings
from .infrastructure.database.database import create_db_engine, init_db
from .logging_config import get_logger

logger: Final = get_logger(__name__)


@dataclass(frozen=True)
class ComponentStatus:
    """Initialization outcome of one backing service."""

    name: str
    ok: bool
    detail: str | None = None

    @property
    def summary(self) -> str:
        return "ok" if self.ok else f"error: {self.detail}"


@dataclass(frozen=True)
class StartupReport:
    """Typed result of the startup checks."""

    missing_settings: list[str] = field(default_factory=list)
    database: ComponentStatus = ComponentStatus(name="database", ok=True)

    @property
    def status(self) -> str:
        if self.missing_settings or not self.database.ok:
            return "degraded"
        return "ok"

    def as_dict(self) -> dict[str, object]:
        return {
            "startup": self.status,
            "missing_settings": list(self.missing_settings),
            "database": self.database.summary,
        }


def validate_required_settings(settings: Settings) -> list[str]:
    """Log missing required settings and return their names.

    Startup continues either way; features needing the values fail with a
    clear error when used.
    """
    missing = settings.missing_required_settings()
    if missing:
        logger.error(
            "Missing required environment variables",
            missing=missing,
            hint="Set these in the deployment's environment settings",
        )
        for name in missing:
            logger.error(f"  - {name}")
    return missing


def bootstrap_database(settings: Settings) -> tuple[Engine | None, ComponentStatus]:
    """Create the engine and tables once per process.

    Returns:
        The engine (None if initialization failed) and its status
    """
    try:
        engine = create_db_engine(settings.database_url)
        init_db(engine)
    except Exception as e:
        # Requests needing the database answer 503 until the process restarts
        logger.error(
            "Database initialization failed",
            error_type=type(e).__name__,
            error_message=str(e),
            exc_info=True,
        )
        return None, ComponentStatus(name="database", ok=False, detail=str(e))

    logger.info("Database initialized successfully")
    return engine, ComponentStatus(name="database", ok=True)


def run_startup_checks(settings: Settings) -> tuple[Engine | None, StartupReport]:
    """Run every startup check and collect the results."""
    missing = validate_required_settings(settings)
    engine, database = bootstrap_database(settings)
    report = StartupReport(missing_settings=missing, database=database)
    if report.status != "ok":
        logger.warning("Starting in degraded mode", **report.as_dict())
    return engine, report
