"""Tests for logging configuration."""

import json
import logging

from heartsmiles.logging_config import LOG_FILE, get_logger, setup_logging
from heartsmiles.logging_utils import log_database_operation


def _flush_root_handlers():
    for handler in logging.getLogger().handlers:
        handler.flush()


def test_application_events_reach_the_log_file(
    settings_factory, tmp_path, monkeypatch
):
    monkeypatch.chdir(tmp_path)
    setup_logging(settings_factory(node_env="production", log_to_file=True))

    logger = get_logger("heartsmiles.tests.file_log")
    logger.info("Participants imported", imported=3)
    log_database_operation(operation="create", table="Program", password="hunter2")
    _flush_root_handlers()

    lines = (tmp_path / LOG_FILE).read_text(encoding="utf-8").splitlines()
    messages = [line.split(" | ", 3)[-1] for line in lines]
    events = [json.loads(message) for message in messages if message.startswith("{")]
    imported = next(e for e in events if e["event"] == "Participants imported")
    assert imported["imported"] == 3
    assert imported["level"] == "info"
    created = next(e for e in events if e.get("table") == "Program")
    assert created["password"] == "[REDACTED]"


def test_development_does_not_write_a_log_file(
    settings_factory, tmp_path, monkeypatch
):
    monkeypatch.chdir(tmp_path)
    setup_logging(settings_factory(node_env="development"))

    get_logger("heartsmiles.tests.console_only").info("Console only")
    _flush_root_handlers()

    assert not (tmp_path / LOG_FILE).exists()


def test_reconfiguring_closes_the_previous_log_file(
    settings_factory, tmp_path, monkeypatch
):
    monkeypatch.chdir(tmp_path)
    setup_logging(settings_factory(node_env="production", log_to_file=True))
    first = next(
        handler
        for handler in logging.getLogger().handlers
        if isinstance(handler, logging.FileHandler)
    )

    setup_logging(settings_factory(node_env="development"))

    assert first.stream is None
    assert first not in logging.getLogger().handlers
