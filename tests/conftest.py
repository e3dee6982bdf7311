import os

# The module-level app in heartsmiles.main is built on import; keep it in
# memory and out of the file log
os.environ["NODE_ENV"] = "development"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("JWT_SECRET", "test-secret")
for _marker in ("VERCEL", "VERCEL_ENV", "AWS_LAMBDA_FUNCTION_NAME"):
    os.environ.pop(_marker, None)

from collections.abc import Callable, Iterator  # noqa: E402
from datetime import datetime  # noqa: E402
from typing import Any  # noqa: E402

import pytest  # noqa: E402
from fastapi import FastAPI  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from pytest_requirements import (  # noqa: E402, F401
    pytest_addoption,
    pytest_runtest_setup,
    pytest_terminal_summary,
)

from heartsmiles.config import Settings  # noqa: E402
from heartsmiles.main import create_app  # noqa: E402

ADMIN_CREDENTIALS = {
    "email": "admin@heartsmiles.org",
    "password": "admin-password",
    "name": "Avery Admin",
}
STAFF_CREDENTIALS = {
    "email": "staff@heartsmiles.org",
    "password": "staff-password",
    "name": "Sam Staff",
}


@pytest.fixture(scope="function")
def timestamp_str():
    return datetime.now().strftime(r"%Y-%m-%d %H:%M:%S:%f")


@pytest.fixture(name="settings_factory")
def settings_factory_fixture(tmp_path) -> Callable[..., Settings]:
    """Build Settings for tests without reading .env files.

    Defaults to a non-development environment so error details are redacted,
    as in a deployment.
    """

    def factory(**overrides: Any) -> Settings:
        values: dict[str, Any] = {
            "node_env": "test",
            "database_url": os.getenv("TEST_DATABASE_URL", "sqlite://"),
            "jwt_secret": "test-secret",
            "upload_dir": str(tmp_path / "uploads"),
            "vercel": None,
            "vercel_env": None,
            "aws_lambda_function_name": None,
        }
        values.update(overrides)
        return Settings(_env_file=None, **values)  # type: ignore[call-arg]

    return factory


@pytest.fixture(name="app_factory")
def app_factory_fixture(
    settings_factory: Callable[..., Settings], tmp_path, monkeypatch
) -> Callable[..., FastAPI]:
    # File logs of non-development settings land in the temporary directory
    monkeypatch.chdir(tmp_path)

    def factory(**overrides: Any) -> FastAPI:
        return create_app(settings_factory(**overrides))

    return factory


@pytest.fixture(name="client_factory")
def client_factory_fixture(
    app_factory: Callable[..., FastAPI],
) -> Iterator[Callable[..., TestClient]]:
    clients: list[TestClient] = []

    def factory(**overrides: Any) -> TestClient:
        client = TestClient(app_factory(**overrides))
        client.__enter__()
        clients.append(client)
        return client

    yield factory

    for client in clients:
        client.__exit__(None, None, None)
        engine = client.app.state.db_engine
        if engine is not None and engine.url.get_backend_name() == "postgresql":
            from sqlmodel import SQLModel

            SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="app")
def app_fixture(client: TestClient) -> FastAPI:
    return client.app  # type: ignore[return-value]


@pytest.fixture(name="client")
def client_fixture(client_factory: Callable[..., TestClient]) -> TestClient:
    return client_factory()


@pytest.fixture(name="dev_client")
def dev_client_fixture(client_factory: Callable[..., TestClient]) -> TestClient:
    return client_factory(node_env="development")


def register(client: TestClient, credentials: dict[str, str]) -> dict[str, Any]:
    response = client.post("/api/auth/register", json=credentials)
    assert response.status_code == 201, response.text
    return response.json()


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(name="admin_headers")
def admin_headers_fixture(client: TestClient) -> dict[str, str]:
    """Headers of the first registered account, which becomes an admin."""
    return bearer(register(client, ADMIN_CREDENTIALS)["token"])


@pytest.fixture(name="staff_headers")
def staff_headers_fixture(
    client: TestClient, admin_headers: dict[str, str]
) -> dict[str, str]:
    """Headers of a regular staff account, registered after the admin."""
    return bearer(register(client, STAFF_CREDENTIALS)["token"])
