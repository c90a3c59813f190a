"""Tests for structured logging configuration."""

import logging

import structlog

from cli.logging_config import _redact_sensitive, setup_logging


class TestLoggingConfig:
    """Test structlog setup modes."""

    def test_console_mode(self, capsys):
        setup_logging(json_mode=False, level="DEBUG")
        structlog.get_logger().info("test_event", key="value")
        assert logging.getLogger().level == logging.DEBUG

    def test_json_mode(self):
        setup_logging(json_mode=True, level="DEBUG")
        handler = logging.getLogger().handlers[0]
        assert isinstance(handler.formatter, structlog.stdlib.ProcessorFormatter)

    def test_level_filtering(self):
        setup_logging(json_mode=False, level="WARNING")
        assert logging.getLogger().level == logging.WARNING

    def test_single_handler_after_repeat_setup(self):
        setup_logging()
        setup_logging()
        assert len(logging.getLogger().handlers) == 1

    def test_default_level_is_info(self):
        setup_logging()
        assert logging.getLogger().level == logging.INFO

    def test_unknown_level_falls_back_to_info(self):
        setup_logging(level="chatty")
        assert logging.getLogger().level == logging.INFO


class TestRedaction:
    def test_email(self):
        out = _redact_sensitive(None, None, {"event": "x", "message": "mail ada@example.com now"})
        assert out["message"] == "mail REDACTED@email now"

    def test_bearer_token(self):
        out = _redact_sensitive(None, None, {"header": "Bearer abcdefghijklmnopqrstuvwxyz"})
        assert out["header"] == "Bearer REDACTED"

    def test_token_assignment(self):
        out = _redact_sensitive(None, None, {"msg": "token=abcdef123456789"})
        assert out["msg"] == "token=REDACTED"

    def test_content_keys(self):
        out = _redact_sensitive(None, None, {"text": "Never ask me", "value": {"at": "09:00"}, "count": 3})
        assert out["text"] == "REDACTED"
        assert out["value"] == "REDACTED"
        assert out["count"] == 3
