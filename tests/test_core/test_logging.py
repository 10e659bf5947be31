"""
Tests for signup_consent.monitoring.logging.
"""

from __future__ import annotations

import structlog

from signup_consent.monitoring import (
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
    sanitize_sensitive_data,
    unbind_context,
)


class TestSanitizeSensitiveData:
    """Tests for the redaction processor."""

    def test_redacts_cookie_values(self):
        event = {
            "event": "consent_record_unreadable",
            "cookie": "fides_consent=%7B...",
            "raw_record": "%7B%22identity%22",
            "device_id": "dev-1",
        }

        result = sanitize_sensitive_data(None, "warning", event)

        assert result["cookie"] == "[REDACTED]"
        assert result["raw_record"] == "[REDACTED]"
        assert result["device_id"] == "dev-1"

    def test_redacts_nested_keys(self):
        event = {"event": "x", "headers": {"Authorization": "Bearer abc", "Accept": "json"}}

        result = sanitize_sensitive_data(None, "info", event)

        assert result["headers"] == {"Authorization": "[REDACTED]", "Accept": "json"}

    def test_walks_lists(self):
        event = {"event": "x", "items": [{"api_key": "k"}, "plain"]}
        result = sanitize_sensitive_data(None, "info", event)
        assert result["items"] == [{"api_key": "[REDACTED]"}, "plain"]


class TestContext:
    """Tests for contextvar binding helpers."""

    def teardown_method(self):
        clear_context()

    def test_bind_and_unbind(self):
        bind_context(session_id="s1", device_id="dev-1")
        assert structlog.contextvars.get_contextvars() == {"session_id": "s1", "device_id": "dev-1"}

        unbind_context("session_id")
        assert structlog.contextvars.get_contextvars() == {"device_id": "dev-1"}

    def test_clear(self):
        bind_context(device_id="dev-1")
        clear_context()
        assert structlog.contextvars.get_contextvars() == {}


class TestConfigureLogging:
    """Tests for logger configuration."""

    def teardown_method(self):
        structlog.reset_defaults()

    def test_json_output(self):
        configure_logging(level="INFO", json_output=True)

        processors = structlog.get_config()["processors"]
        assert sanitize_sensitive_data in processors
        assert isinstance(processors[-1], structlog.processors.JSONRenderer)

    def test_sanitizing_can_be_disabled(self):
        configure_logging(sanitize_logs=False)
        assert sanitize_sensitive_data not in structlog.get_config()["processors"]

    def test_get_logger_returns_bound_logger(self):
        configure_logging(level="DEBUG")
        logger = get_logger(__name__)
        assert hasattr(logger, "info")
