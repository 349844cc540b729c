"""Tests for lifecycle logging and piping errors."""

from __future__ import annotations

import json
import logging

import pytest

from actioncore.config import get_config
from actioncore.logger import ActionLogger, level_number, piping_error


@pytest.fixture
def action_records(caplog):
    caplog.set_level(logging.DEBUG, logger="actioncore.actions")
    return caplog


class TestLevelNumber:
    @pytest.mark.parametrize(
        "name,expected",
        [("debug", logging.DEBUG), ("INFO", logging.INFO), ("warn", logging.WARNING)],
    )
    def test_known(self, name, expected):
        assert level_number(name) == expected

    def test_unknown(self):
        with pytest.raises(ValueError):
            level_number("loud")


class TestTextFormat:
    def test_before_line(self, action_records):
        ActionLogger("Greet").before({"name": "World"}, "info")
        record = action_records.records[-1]
        assert record.name == "actioncore.actions"
        assert record.levelno == logging.INFO
        assert record.getMessage() == "[Greet] About to execute with: {'name': 'World'}"

    def test_after_line(self, action_records):
        ActionLogger("Greet").after("success", 1.234, {"greeting": "hi"}, "debug")
        message = action_records.records[-1].getMessage()
        assert message.startswith("[Greet] Execution completed (with outcome: success) in 1.23 milliseconds")
        assert "Set: {'greeting': 'hi'}" in message
        assert action_records.records[-1].levelno == logging.DEBUG

    def test_nested_lines_indented(self, action_records):
        ActionLogger("Inner", depth=2).log("hello")
        assert action_records.records[-1].getMessage() == "    [Inner] hello"

    def test_no_indent_in_production(self, action_records):
        get_config(env="production")
        ActionLogger("Inner", depth=2).log("hello")
        assert action_records.records[-1].getMessage() == "[Inner] hello"


class TestJsonFormat:
    def test_json_entry(self, action_records):
        get_config(log_format="json", service_name="billing")
        ActionLogger("Charge", depth=1).after("failure", 5.0, {}, "warning")
        record = action_records.records[-1]
        entry = json.loads(record.getMessage())
        assert entry["event"] == "action.after"
        assert entry["action"] == "Charge"
        assert entry["service"] == "billing"
        assert entry["outcome"] == "failure"
        assert entry["nesting_depth"] == 1
        assert record.levelno == logging.WARNING


class TestPipingError:
    def test_logged_and_swallowed(self, caplog):
        caplog.set_level(logging.WARNING, logger="actioncore.logger")
        piping_error("running callback", exception=RuntimeError("boom"))
        assert "Ignoring exception raised while running callback: RuntimeError - boom" in caplog.text

    def test_raised_in_development_when_enabled(self):
        get_config(raise_piping_errors_in_dev=True, env="development")
        with pytest.raises(RuntimeError, match="boom"):
            piping_error("running callback", exception=RuntimeError("boom"))

    def test_not_raised_outside_development(self, caplog):
        get_config(raise_piping_errors_in_dev=True, env="production")
        piping_error("running callback", exception=RuntimeError("boom"))
        assert "boom" in caplog.text
