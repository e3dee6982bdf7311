"""Tests for the serverless entry point."""

from unittest.mock import MagicMock

from fastapi.testclient import TestClient

from heartsmiles import serverless


def test_invocations_install_the_supervisor(monkeypatch):
    supervisor = MagicMock()
    monkeypatch.setattr(serverless.app.state, "supervisor", supervisor)
    client = TestClient(serverless.supervised_app)

    first = client.get("/favicon.ico")
    second = client.get("/api/health")

    assert first.status_code == 204
    assert second.status_code == 200
    assert supervisor.install.call_count == 2
    assert supervisor.install_loop_handler.call_count == 2
    loop = supervisor.install_loop_handler.call_args.args[0]
    assert hasattr(loop, "set_exception_handler")


def test_handler_wraps_the_supervised_app():
    assert serverless.handler.app is serverless.supervised_app
