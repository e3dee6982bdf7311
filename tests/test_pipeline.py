"""Tests for the system endpoints and the response headers every route gets."""

import inspect
from datetime import datetime

from fastapi import FastAPI
from fastapi.routing import APIRoute
from fastapi.testclient import TestClient


def test_health_endpoint(client: TestClient):
    """Health check reports liveness with a timestamp.

    Requirements:
    - FR-1.1: GET /api/health answers 200 with status, message and timestamp
    """
    response = client.get("/api/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "OK"
    assert body["message"] == "HeartSmiles Backend API is running"
    datetime.fromisoformat(body["timestamp"])
    assert body["checks"] == {
        "startup": "ok",
        "missing_settings": [],
        "database": "ok",
    }


def test_api_index(client: TestClient):
    """Requirements:
    - FR-1.2: GET / describes the API and lists its endpoint groups
    """
    response = client.get("/")

    assert response.status_code == 200
    body = response.json()
    assert body["name"] == "HeartSmiles Backend API"
    assert body["version"] == "1.0.0"
    assert body["status"] == "OK"
    assert body["message"] == "HeartSmiles Youth Success App Backend API"
    assert body["endpoints"]["health"] == "/api/health"
    assert set(body["endpoints"]) >= {
        "auth",
        "participants",
        "programs",
        "staff",
        "upload",
        "export",
        "import",
    }


def test_favicon_requests_get_empty_no_content(client: TestClient):
    """Requirements:
    - FR-1.3: Favicon requests answer 204 without a body
    """
    for path in ("/favicon.ico", "/favicon.png"):
        response = client.get(path)
        assert response.status_code == 204
        assert response.content == b""


def test_unmatched_route_returns_not_found_envelope(client: TestClient):
    """Requirements:
    - FR-1.4: Any unmatched path answers 404 {"error": "Route not found"}
    """
    for method, path in (
        ("GET", "/nonexistent"),
        ("POST", "/api/does-not-exist"),
        ("DELETE", "/api/participants/1/extra"),
    ):
        response = client.request(method, path)
        assert response.status_code == 404
        assert response.json() == {"error": "Route not found"}


def test_known_path_with_wrong_method_is_not_found(client: TestClient):
    for method, path in (
        ("POST", "/api/health"),
        ("PUT", "/api/health"),
        ("PATCH", "/api/programs"),
        ("DELETE", "/"),
    ):
        response = client.request(method, path)
        assert response.status_code == 404
        assert response.json() == {"error": "Route not found"}
        assert "allow" not in response.headers


def test_route_handlers_run_in_the_threadpool(app: FastAPI):
    """Handlers doing database, hashing or disk work must not block the loop."""
    blocking_routes = [
        route
        for route in app.routes
        if isinstance(route, APIRoute)
        and route.path.startswith("/api/")
        and route.path != "/api/health"
    ]

    assert blocking_routes
    for route in blocking_routes:
        assert not inspect.iscoroutinefunction(route.endpoint), route.path


def test_security_headers_on_every_response(client: TestClient):
    """Requirements:
    - NFR-1.1: Protective headers are set on success, 404 and error responses
    """
    for path in ("/api/health", "/nonexistent", "/api/participants"):
        response = client.get(path)
        headers = response.headers
        assert headers["X-Content-Type-Options"] == "nosniff"
        assert headers["X-Frame-Options"] == "SAMEORIGIN"
        assert headers["Referrer-Policy"] == "no-referrer"
        assert headers["Cross-Origin-Opener-Policy"] == "same-origin"
        assert headers["Strict-Transport-Security"].startswith("max-age=31536000")
        assert "default-src 'self'" in headers["Content-Security-Policy"]
        assert "x-powered-by" not in headers


def test_docs_are_not_served(client: TestClient):
    for path in ("/docs", "/redoc", "/openapi.json"):
        assert client.get(path).status_code == 404


def test_degraded_startup_is_reported_not_fatal(client_factory):
    """A missing secret and a broken database leave the API up.

    Requirements:
    - FR-1.5: Startup problems are logged and surfaced by the health check
    """
    client = client_factory(
        jwt_secret=None, database_url="sqlite:////nonexistent-dir/heartsmiles.db"
    )

    response = client.get("/api/health")

    assert response.status_code == 200
    checks = response.json()["checks"]
    assert checks["startup"] == "degraded"
    assert checks["missing_settings"] == ["JWT_SECRET"]
    assert checks["database"].startswith("error:")
