"""Tests for logging setup."""

from __future__ import annotations

import json

import pytest
import structlog

from callmate.config import Settings
from callmate.core.log import setup_logging


@pytest.fixture(autouse=True)
def _reset_structlog():
    yield
    structlog.reset_defaults()


def render(method_name: str, event: dict) -> str:
    """Run an event through the configured processor chain."""
    for processor in structlog.get_config()["processors"]:
        event = processor(None, method_name, event)
    return event


class TestSetupLogging:

    def test_json_entries_are_tagged(self):
        setup_logging(Settings(environment="staging", log_json=True, log_level="debug"))

        entry = json.loads(render("info", {"event": "Quote sent", "quote_number": "QU-1"}))

        assert entry["event"] == "Quote sent"
        assert entry["quote_number"] == "QU-1"
        assert entry["level"] == "info"
        assert entry["service"] == "callmate"
        assert entry["environment"] == "staging"
        assert entry["timestamp"].endswith("Z")

    def test_console_output_in_development(self):
        setup_logging(Settings(log_json=False))

        processors = structlog.get_config()["processors"]

        assert isinstance(processors[-1], structlog.dev.ConsoleRenderer)

    def test_unknown_level_rejected(self):
        with pytest.raises(ValueError, match="loud"):
            setup_logging(Settings(log_level="loud"))
