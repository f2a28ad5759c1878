"""
Unit Tests for Logging Module

Tests logger configuration, request context, processors and logging utilities.
"""

from unittest.mock import MagicMock

import pytest

from billing_cache.core.config.constants import Stage
from billing_cache.core.logging.logger import (
    add_log_level_name,
    add_request_id,
    add_timestamp,
    clear_request_id,
    get_logger,
    get_request_id,
    log_stage,
    redact_pii,
    set_request_id,
    setup_logging,
)


@pytest.mark.unit
class TestLoggerCreation:
    """Test logger creation and configuration."""

    def test_get_logger_returns_logger_instance(self):
        """Test that get_logger returns a logger instance."""
        logger = get_logger(__name__)
        assert hasattr(logger, "info")

    def test_setup_logging_accepts_both_formats(self):
        """Test that setup_logging configures json and console output."""
        setup_logging(log_level="DEBUG", log_format="json")
        setup_logging(log_level="INFO", log_format="console")


@pytest.mark.unit
class TestRequestContext:
    """Test request ID context management."""

    def test_set_and_get_request_id(self):
        """Test that set_request_id stores the request context."""
        set_request_id("req-123")
        assert get_request_id() == "req-123"
        clear_request_id()

    def test_clear_request_id(self):
        """Test that clear_request_id removes the request context."""
        set_request_id("req-123")
        clear_request_id()
        assert get_request_id() is None

    def test_add_request_id_processor(self):
        """Test that the processor injects the current request ID."""
        set_request_id("req-9")
        event = add_request_id(None, "info", {"event": "x"})
        clear_request_id()

        assert event["request_id"] == "req-9"

    def test_add_request_id_without_context(self):
        """Test that no request_id field is added outside a request."""
        clear_request_id()
        assert "request_id" not in add_request_id(None, "info", {"event": "x"})


@pytest.mark.unit
class TestProcessors:
    """Test the custom structlog processors."""

    def test_add_timestamp_is_utc(self):
        """Test that timestamps are ISO-8601 UTC."""
        event = add_timestamp(None, "info", {})
        assert event["timestamp"].endswith("Z")

    def test_redact_email(self):
        """Test that e-mail addresses are redacted from messages."""
        event = redact_pii(None, "info", {"event": "merchant owner@shop.example failed"})
        assert event["event"] == "merchant [EMAIL] failed"

    def test_redact_card_number(self):
        """Test that card numbers are redacted from messages."""
        event = redact_pii(None, "info", {"event": "card 4111111111111111 declined"})
        assert event["event"] == "card [PAN] declined"

    def test_redact_leaves_short_numbers(self):
        """Test that ordinary numbers are kept."""
        event = redact_pii(None, "info", {"event": "evicted 1234 keys"})
        assert event["event"] == "evicted 1234 keys"

    def test_level_name_upper_case(self):
        """Test that the level is upper-cased."""
        assert add_log_level_name(None, "info", {"level": "info"})["level"] == "INFO"


@pytest.mark.unit
class TestLogStage:
    """Test the log_stage helper."""

    def test_log_stage_with_enum(self):
        """Test that Stage enums are logged by value."""
        logger = MagicMock()
        log_stage(logger, Stage.EVICT, "Namespace evicted", namespace="v1")

        logger.info.assert_called_once_with("Namespace evicted", stage="CACHE.EVICT", namespace="v1")

    def test_log_stage_with_level(self):
        """Test that the requested level method is used."""
        logger = MagicMock()
        log_stage(logger, "CACHE.GET", "Read failed", level="WARNING")

        logger.warning.assert_called_once_with("Read failed", stage="CACHE.GET")
