import asyncio
from contextlib import asynccontextmanager
from typing import Final

import uvicorn
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import Settings, load_settings
from .constants import (
    APP_DESCRIPTION,
    APP_NAME,
    APP_VERSION,
    CORS_ALLOWED_HEADERS,
    CORS_ALLOWED_METHODS,
)
from .domain.exceptions import DomainError, PipelineError
from .logging_config import get_logger, setup_logging
from .logging_utils import log_system_info
from .middleware import (
    BodySizeLimitMiddleware,
    log_requests_middleware,
    security_headers_middleware,
    unhandled_error_middleware,
)
from .presentation.error_handlers import (
    handle_database_error,
    handle_domain_error,
    handle_http_exception,
    handle_unexpected_error,
    handle_validation_error,
)
from .presentation.routes import (
    auth,
    export,
    imports,
    participants,
    programs,
    staff,
    upload,
)
from .presentation.system_routes import router as system_router
from .rate_limiting import RateLimiter, rate_limit_middleware
from .startup import run_startup_checks
from .supervisor import ProcessSupervisor
from .telemetry import setup_telemetry

ROUTERS: Final = (
    auth.router,
    participants.router,
    programs.router,
    staff.router,
    upload.router,
    export.router,
    imports.router,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger = get_logger(__name__)
    app.state.supervisor.install_loop_handler(asyncio.get_running_loop())
    logger.info("Application startup completed", **app.state.startup_report.as_dict())

    yield

    if app.state.db_engine is not None:
        app.state.db_engine.dispose()
    logger.info("Application shutdown completed")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application with its full middleware chain.

    Startup checks run before any router is mounted. They never raise: a
    missing secret or an unreachable database leaves the app running in a
    degraded state that the health endpoint reports.
    """
    settings = settings or load_settings()
    setup_logging(settings)

    engine, report = run_startup_checks(settings)

    app = FastAPI(
        title=APP_NAME,
        version=APP_VERSION,
        description=APP_DESCRIPTION,
        lifespan=lifespan,
        # The API serves JSON only; the CSP would block the docs UI anyway
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.settings = settings
    app.state.db_engine = engine
    app.state.startup_report = report
    app.state.rate_limiter = RateLimiter.from_settings(settings)
    app.state.supervisor = ProcessSupervisor(settings)

    setup_telemetry(app, settings, engine)

    # Last added runs first: logging, security headers, rate limiting, CORS,
    # body limit, then the error catch directly around the routers
    app.middleware("http")(unhandled_error_middleware)
    app.add_middleware(
        BodySizeLimitMiddleware,
        max_body_bytes=settings.max_body_bytes,
        max_upload_bytes=settings.max_upload_bytes,
        development=settings.is_development,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=list(CORS_ALLOWED_METHODS),
        allow_headers=list(CORS_ALLOWED_HEADERS),
    )
    app.middleware("http")(rate_limit_middleware)
    app.middleware("http")(security_headers_middleware)
    app.middleware("http")(log_requests_middleware)

    app.add_exception_handler(DomainError, handle_domain_error)
    app.add_exception_handler(PipelineError, handle_unexpected_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(SQLAlchemyError, handle_database_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    app.include_router(system_router)
    for router in ROUTERS:
        app.include_router(router)

    return app


app: Final = create_app()


def run() -> None:
    """Serve the API on a long-running host.

    Serverless platforms import :data:`app` (or the Mangum handler) directly,
    so nothing is bound there.
    """
    settings: Settings = app.state.settings
    logger = get_logger(__name__)

    if settings.is_serverless:
        logger.info("Serverless platform detected, not binding a port")
        return

    app.state.supervisor.install()
    log_system_info(
        port=settings.port,
        environment=settings.environment_name,
        allowed_origins=settings.allowed_origins,
        serverless=False,
    )
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        server_header=False,
        log_config=None,
    )


if __name__ == "__main__":
    run()
