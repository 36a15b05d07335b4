"""
Unit Tests for Logging Module

Tests request ID context, secret redaction and logging utilities.
"""

from unittest.mock import MagicMock

import pytest

from manifest_gateway.core.config.constants import Stage
from manifest_gateway.core.logging.logger import (
    add_request_id,
    clear_request_id,
    get_logger,
    get_request_id,
    log_stage,
    redact_secrets,
    set_request_id,
    setup_logging,
)


@pytest.mark.unit
class TestLoggerCreation:
    """Test logger creation and configuration."""

    def test_get_logger_returns_logger_instance(self):
        """Test that get_logger returns a logger with logging methods."""
        logger = get_logger(__name__)

        assert hasattr(logger, "info")
        assert hasattr(logger, "warning")

    @pytest.mark.parametrize("log_format", ["json", "console"])
    def test_setup_logging_accepts_both_formats(self, log_format):
        """Test that both renderers can be configured."""
        setup_logging(log_level="WARNING", log_format=log_format)

        get_logger("test").warning("configured", stage="TEST")


@pytest.mark.unit
class TestRequestContext:
    """Test request ID context management."""

    def test_set_and_get_request_id(self):
        """Test that set_request_id stores the request context."""
        set_request_id("req-123")

        assert get_request_id() == "req-123"
        clear_request_id()

    def test_clear_request_id(self):
        """Test that clear_request_id removes the context."""
        set_request_id("req-123")
        clear_request_id()

        assert get_request_id() is None

    def test_request_id_added_to_events(self):
        """Test that the processor injects the current request ID."""
        set_request_id("req-456")

        event = add_request_id(None, "info", {"event": "hello"})

        assert event["request_id"] == "req-456"
        clear_request_id()

    def test_no_request_id_outside_requests(self):
        """Test that no request_id field is added without a request."""
        clear_request_id()

        assert "request_id" not in add_request_id(None, "info", {"event": "hello"})


@pytest.mark.unit
class TestSecretRedaction:
    """Test the redact_secrets processor."""

    def test_secret_query_parameter_redacted(self):
        """Test that webhook secrets passed in URLs never reach the logs."""
        event = redact_secrets(None, "info", {"event": "POST /webhooks/purge?secret=abc123&x=1"})

        assert "abc123" not in event["event"]
        assert "secret=[REDACTED]&x=1" in event["event"]

    def test_url_credentials_redacted(self):
        """Test that credentials embedded in connection URLs are removed."""
        event = redact_secrets(None, "info", {"event": "connect", "url": "redis://user:pw@cache:6379/0"})

        assert event["url"] == "redis://[REDACTED]@cache:6379/0"

    def test_non_string_fields_untouched(self):
        """Test that numbers and lists pass through."""
        event = redact_secrets(None, "info", {"event": "x", "count": 3, "items": ["secret=1"]})

        assert event["count"] == 3
        assert event["items"] == ["secret=1"]


@pytest.mark.unit
class TestLogStage:
    """Test the log_stage helper."""

    def test_log_stage_uses_enum_value(self):
        """Test that Stage members are logged by value."""
        logger = MagicMock()

        log_stage(logger, Stage.EDGE_LOOKUP, "Edge cache hit", type="concert")

        logger.info.assert_called_once_with(
            "Edge cache hit", stage=Stage.EDGE_LOOKUP.value, type="concert"
        )

    def test_log_stage_respects_level(self):
        """Test that the level argument selects the logger method."""
        logger = MagicMock()

        log_stage(logger, "CUSTOM", "careful", level="warning")

        logger.warning.assert_called_once_with("careful", stage="CUSTOM")
