"""Tests for structured logging configuration."""

import json
import logging

import structlog

from cli.logging_config import _redact_sensitive, setup_logging


class TestLoggingConfig:
    """Test structlog setup modes."""

    def test_json_mode(self, capsys):
        """JSON mode writes one parseable object per line to stderr."""
        setup_logging(json_mode=True, level="INFO")
        structlog.get_logger("curator.test").info("tidy.run_complete", auto_fixed=2)

        captured = capsys.readouterr()
        assert captured.out == ""
        record = json.loads(captured.err.strip().splitlines()[-1])
        assert record["event"] == "tidy.run_complete"
        assert record["auto_fixed"] == 2
        assert record["level"] == "info"

    def test_console_mode_writes_stderr(self, capsys):
        setup_logging(json_mode=False, level="DEBUG")
        structlog.get_logger("curator.test").debug("vault.note_written", path="a.md")

        captured = capsys.readouterr()
        assert captured.out == ""
        assert "vault.note_written" in captured.err

    def test_level_filtering(self, capsys):
        """Log level filters lower messages."""
        setup_logging(json_mode=True, level="WARNING")
        assert logging.getLogger().level == logging.WARNING

        structlog.get_logger("curator.test").info("hidden")
        assert "hidden" not in capsys.readouterr().err

    def test_default_level_is_warning(self):
        setup_logging()
        assert logging.getLogger().level == logging.WARNING

    def test_sdk_loggers_quieted(self):
        setup_logging(level="DEBUG")
        assert logging.getLogger("anthropic").level == logging.WARNING
        assert logging.getLogger("httpx").level == logging.WARNING

    def test_handlers_not_duplicated(self):
        setup_logging()
        setup_logging()
        assert len(logging.getLogger().handlers) == 1


class TestRedaction:
    def test_anthropic_key_in_message(self):
        event = _redact_sensitive(None, None, {"event": "using key sk-ant-REDACTED"})
        assert "qrstuvwxyz" not in event["event"]
        assert "REDACTED" in event["event"]

    def test_google_key(self):
        event = _redact_sensitive(None, None, {"error": "bad key AIzaSyA1234567890abcdefghijklmnop"})
        assert "1234567890abcdef" not in event["error"]

    def test_bearer_token(self):
        event = _redact_sensitive(None, None, {"header": "Bearer abcdefghijklmnopqrstuvwxyz123"})
        assert event["header"] == "Bearer REDACTED"

    def test_secret_keys_dropped(self):
        event = _redact_sensitive(None, None, {"event": "x", "api_key": "short", "token": "t"})
        assert event["api_key"] == "REDACTED"
        assert event["token"] == "REDACTED"

    def test_other_values_untouched(self):
        event = _redact_sensitive(None, None, {"event": "tidy.action_applied", "path": "inbox/a.md", "n": 3})
        assert event == {"event": "tidy.action_applied", "path": "inbox/a.md", "n": 3}
