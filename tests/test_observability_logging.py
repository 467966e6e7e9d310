"""Tests for the structlog configuration helper."""

from __future__ import annotations

import importlib
import json
import logging

import pytest
import structlog


@pytest.fixture
def logging_module():
    module = importlib.import_module("observability.logging")
    module = importlib.reload(module)
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield module
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
    root.setLevel(level)
    structlog.reset_defaults()


def test_configure_logging_is_idempotent(logging_module):
    root = logging.getLogger()
    before = len(root.handlers)

    logging_module.configure_logging("INFO")
    logging_module.configure_logging("DEBUG")

    assert len(root.handlers) == before + 1
    assert root.level == logging.DEBUG


def test_events_are_rendered_as_json(logging_module, capsys):
    logging_module.configure_logging("INFO")

    logging_module.get_logger("readiness.test").info("stage_ready", stage="http")

    line = capsys.readouterr().out.strip().splitlines()[-1]
    payload = json.loads(line)
    assert payload["event"] == "stage_ready"
    assert payload["stage"] == "http"
    assert payload["level"] == "info"
    assert payload["logger"] == "readiness.test"
    assert "timestamp" in payload


def test_level_filters_debug_events(logging_module, capsys):
    logging_module.configure_logging("WARNING")

    logging_module.get_logger("readiness.test").info("hidden")

    assert "hidden" not in capsys.readouterr().out


def test_unknown_level_is_rejected(logging_module):
    with pytest.raises(ValueError):
        logging_module.configure_logging("LOUD")
