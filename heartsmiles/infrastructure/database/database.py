from collections.abc import Generator

from fastapi import Request
from sqlalchemy.future import Engine
from sqlmodel import Session, SQLModel, create_engine
from sqlmodel.pool import StaticPool

from ...domain.exceptions import DependencyUnavailableError

_IN_MEMORY_SQLITE_URLS = ("sqlite://", "sqlite:///:memory:")


def create_db_engine(database_url: str) -> Engine:
    """Create the database engine for a connection URL."""
    connect_args: dict[str, bool] = {}
    engine_kwargs: dict[str, object] = {}

    # Configure connection args based on database type
    if database_url.startswith("sqlite"):
        # Handlers run in a threadpool, so connections cross threads
        connect_args["check_same_thread"] = False
        if database_url in _IN_MEMORY_SQLITE_URLS:
            # One shared connection keeps the in-memory database alive
            engine_kwargs["poolclass"] = StaticPool
    elif database_url.startswith("postgresql"):
        engine_kwargs["pool_pre_ping"] = True
        engine_kwargs["pool_size"] = 10
        engine_kwargs["max_overflow"] = 20

    return create_engine(database_url, connect_args=connect_args, **engine_kwargs)


def init_db(engine: Engine) -> None:
    SQLModel.metadata.create_all(engine)


def get_session(request: Request) -> Generator[Session, None, None]:
    """Yield a session bound to the application's engine.

    Raises:
        DependencyUnavailableError: If the database failed to initialize at
            startup
    """
    engine: Engine | None = request.app.state.db_engine
    if engine is None:
        report = request.app.state.startup_report
        raise DependencyUnavailableError("database", report.database.detail)

    with Session(engine) as session:
        yield session
