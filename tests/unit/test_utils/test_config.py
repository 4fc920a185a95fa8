"""Tests for configuration and logging setup."""

import io
import logging
import pytest
from pythonjsonlogger import jsonlogger

from tasklite.utils.config import AppConfig
from tasklite.utils.errors import ConfigurationError
from tasklite.utils.logging_config import QUIET_LOGGERS, LoggingConfig


@pytest.mark.unit
def test_gateway_credentials_from_environment(monkeypatch):
    monkeypatch.setenv("SUPABASE_URL", "https://abc.supabase.co")
    monkeypatch.setenv("SUPABASE_ANON_KEY", "anon")

    assert AppConfig.gateway_credentials() == ("https://abc.supabase.co", "anon")


@pytest.mark.unit
@pytest.mark.parametrize("missing", ["SUPABASE_URL", "SUPABASE_ANON_KEY"])
def test_gateway_credentials_missing(monkeypatch, missing):
    monkeypatch.delenv(missing, raising=False)

    with pytest.raises(ConfigurationError):
        AppConfig.gateway_credentials()


@pytest.mark.unit
def test_table_defaults():
    assert AppConfig.TASKS_TABLE == "tasks"
    assert AppConfig.COMMENTS_TABLE == "comments"
    assert AppConfig.ATTACHMENTS_BUCKET == "attachments"


@pytest.mark.unit
@pytest.mark.parametrize("log_format,formatter_type", [
    ("json", jsonlogger.JsonFormatter),
    ("text", logging.Formatter),
])
def test_setup_logging_formatter(monkeypatch, log_format, formatter_type):
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    monkeypatch.setattr(LoggingConfig, "LOG_FORMAT", log_format)
    monkeypatch.setattr(LoggingConfig, "LOG_LEVEL", "DEBUG")
    stream = io.StringIO()
    try:
        handler = LoggingConfig.setup_logging(stream)

        assert root.handlers == [handler]
        assert root.level == logging.DEBUG
        assert isinstance(handler.formatter, formatter_type)
        for name in QUIET_LOGGERS:
            assert logging.getLogger(name).level == logging.WARNING

        logging.getLogger("tasklite.test").info("Task added")
        assert "Task added" in stream.getvalue()
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
