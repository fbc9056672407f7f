"""
Tests for structured logging setup.
"""

import json
import logging

import pytest
import structlog

from tfa_core.logging_setup import setup_logging


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_json_output(self, capsys, restore_logging):
        """Log lines should be JSON with the service bound."""
        log = setup_logging("auth-service", level="DEBUG")

        log.info("Challenge started", user_id="user-1")

        line = capsys.readouterr().out.strip().splitlines()[-1]
        data = json.loads(line)
        assert data["event"] == "Challenge started"
        assert data["user_id"] == "user-1"
        assert data["service"] == "auth-service"
        assert data["level"] == "info"

    def test_level_filters(self, capsys, restore_logging):
        """Messages below the level should be dropped."""
        log = setup_logging("auth-service", level="WARNING")

        log.info("quiet")

        assert capsys.readouterr().out == ""
