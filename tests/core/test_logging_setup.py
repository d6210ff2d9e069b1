"""Tests for structlog-backed logging configuration."""

from __future__ import annotations

import json
import logging

import pytest

from core.logging_setup import configure_logging


@pytest.fixture(autouse=True)
def _restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def test_verbose_sets_debug_on_app_namespaces() -> None:
    configure_logging(verbose=True)
    assert logging.getLogger("core").level == logging.DEBUG
    assert logging.getLogger("adapters").level == logging.DEBUG
    assert logging.getLogger("httpx").level == logging.WARNING


def test_quiet_by_default() -> None:
    configure_logging()
    assert logging.getLogger("core").level == logging.WARNING
    assert len(logging.getLogger().handlers) == 1


def test_json_lines(capsys: pytest.CaptureFixture[str]) -> None:
    configure_logging(verbose=True, log_json=True)
    logging.getLogger("core.services.dispatch_pipeline").info("dispatch finished host=%s", "x.test")

    line = capsys.readouterr().err.strip().splitlines()[-1]
    event = json.loads(line)
    assert event["event"] == "dispatch finished host=x.test"
    assert event["level"] == "info"
    assert event["logger"] == "core.services.dispatch_pipeline"
