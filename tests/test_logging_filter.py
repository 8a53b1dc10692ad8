"""
Tests for the SensitiveDataFilter logging filter.

This module tests that provider credentials are properly redacted from log
messages while preserving safe content unchanged.
"""

import logging
from unittest.mock import Mock

import pytest

from services.core.logging import SensitiveDataFilter, get_logger


class TestSensitiveDataFilter:
    """Test suite for the SensitiveDataFilter class."""

    @pytest.fixture
    def filter(self):
        """Create a SensitiveDataFilter instance for testing."""
        return SensitiveDataFilter()

    @pytest.fixture
    def mock_record(self):
        """Create a mock LogRecord for testing."""
        record = Mock(spec=logging.LogRecord)
        record.msg = ""
        record.args = None
        return record

    def test_tokens_are_redacted(self, filter, mock_record):
        """Test that OAuth tokens and access tokens are properly redacted."""
        # Test Bearer token
        mock_record.msg = "Authorization header: Bearer abc123def456ghi789"
        assert filter.filter(mock_record) is True
        assert mock_record.msg == "Authorization header: Bearer [REDACTED_TOKEN]"

        # Test token endpoint response body
        mock_record.msg = 'Token response: {"access_token": "eyJhbGci.x", "expires_in": 3600}'
        assert filter.filter(mock_record) is True
        assert mock_record.msg == (
            'Token response: {"access_token": "[REDACTED_TOKEN]", "expires_in": 3600}'
        )

        # Test case insensitive
        mock_record.msg = "ACCESS_TOKEN=my_secret_token_value"
        assert filter.filter(mock_record) is True
        assert mock_record.msg == "ACCESS_TOKEN=[REDACTED_TOKEN]"

    def test_polygon_api_key_in_url_is_redacted(self, filter, mock_record):
        """Polygon sends its key as a query parameter on every request."""
        mock_record.msg = (
            "GET https://api.polygon.io/v3/snapshot/options/IBIT"
            "?expiration_date=2025-02-21&apiKey=pk_live_abc123&limit=250"
        )
        assert filter.filter(mock_record) is True
        assert "apiKey=[REDACTED_API_KEY]&limit=250" in mock_record.msg
        assert "pk_live_abc123" not in mock_record.msg
        assert "expiration_date=2025-02-21" in mock_record.msg

    def test_client_secrets_are_redacted(self, filter, mock_record):
        """Test that OAuth client secrets are properly redacted."""
        mock_record.msg = 'Token request {"client_id": "abc", "client_secret": "cs_live_987"}'
        assert filter.filter(mock_record) is True
        assert '"client_secret": "[REDACTED_SECRET]"' in mock_record.msg
        assert '"client_id": "abc"' in mock_record.msg

        mock_record.msg = "SECRET_KEY=django-insecure-xyz"
        assert filter.filter(mock_record) is True
        assert mock_record.msg == "SECRET_KEY=[REDACTED_SECRET]"

    def test_passwords_are_redacted(self, filter, mock_record):
        """Test that passwords in various formats are properly redacted."""
        mock_record.msg = "Connecting with password: MySecretPass123!"
        assert filter.filter(mock_record) is True
        assert mock_record.msg == "Connecting with password: [REDACTED_PASSWORD]"

        mock_record.msg = "PASSWORD=SuperSecret123"
        assert filter.filter(mock_record) is True
        assert mock_record.msg == "PASSWORD=[REDACTED_PASSWORD]"

    def test_multiple_patterns_are_redacted_in_one_message(self, filter, mock_record):
        """Test that multiple sensitive patterns in a single message are all redacted."""
        mock_record.msg = (
            "Retrying with api_key: abc123xyz789, client_secret: sk_test_abc123 "
            "using Bearer token456"
        )
        assert filter.filter(mock_record) is True

        assert "api_key: [REDACTED_API_KEY]" in mock_record.msg
        assert "client_secret: [REDACTED_SECRET]" in mock_record.msg
        assert "Bearer [REDACTED_TOKEN]" in mock_record.msg
        assert "abc123xyz789" not in mock_record.msg
        assert "sk_test_abc123" not in mock_record.msg
        assert "token456" not in mock_record.msg

    def test_safe_content_is_preserved_unchanged(self, filter, mock_record):
        """Test that non-sensitive content passes through unchanged."""
        for original_msg in (
            "Fetched 42 contracts for IBIT 2025-02-21",
            "Enrichment finished with 1 errors (2 positions enriched)",
            "No matching contract found for IBIT  250221C00070000",
            "Loading configuration from /etc/app/config.json",
            "Password policy requires 8 characters",
        ):
            mock_record.msg = original_msg
            assert filter.filter(mock_record) is True
            assert mock_record.msg == original_msg

    def test_args_are_filtered(self, filter, mock_record):
        """Test that arguments in log records are also filtered."""
        # Test with dictionary args
        mock_record.msg = "Provider request"
        mock_record.args = {
            "symbol": "IBIT",
            "url": "/v2/aggs/ticker/IBIT/prev?apiKey=abc123",
        }
        assert filter.filter(mock_record) is True
        assert mock_record.args["symbol"] == "IBIT"
        assert mock_record.args["url"] == "/v2/aggs/ticker/IBIT/prev?apiKey=[REDACTED_API_KEY]"

        # Test with tuple args
        mock_record.msg = "Custody request %s %s"
        mock_record.args = ("ACC-1", "Bearer abc.def")
        assert filter.filter(mock_record) is True
        assert mock_record.args == ("ACC-1", "Bearer [REDACTED_TOKEN]")

    def test_preserves_non_string_types_in_args(self, filter, mock_record):
        """Test that non-string types (floats, ints) are preserved unchanged."""
        mock_record.msg = "HTTP %(method)s %(path)s %(status)s [%(time_taken).2f]"
        mock_record.args = {
            "method": "GET",
            "path": "/api/positions/",
            "status": 200,
            "time_taken": 0.07,
        }

        assert filter.filter(mock_record) is True

        assert isinstance(mock_record.args["time_taken"], float)
        assert mock_record.args["time_taken"] == 0.07
        assert isinstance(mock_record.args["status"], int)

    def test_filter_always_returns_true(self, filter, mock_record):
        """Test that the filter always returns True to allow messages through."""
        mock_record.msg = "password: secret123"
        assert filter.filter(mock_record) is True

        mock_record.msg = ""
        assert filter.filter(mock_record) is True


class TestGetLogger:
    def test_returns_named_logger(self):
        logger = get_logger("services.positions.enrichment")

        assert isinstance(logger, logging.Logger)
        assert logger.name == "services.positions.enrichment"


class TestLoggingConfigs:
    def test_development_logs_debug_to_console(self):
        from services.core.logging import LOGGING, get_development_logging

        config = get_development_logging()

        assert config["root"]["level"] == "DEBUG"
        assert config["handlers"]["console"]["filters"] == ["sensitive_data"]
        # Base config untouched
        assert LOGGING["root"]["level"] == "INFO"

    def test_production_keeps_console_quiet(self):
        from services.core.logging import get_production_logging

        config = get_production_logging()

        assert config["handlers"]["console"]["level"] == "WARNING"
        assert "console" not in config["root"]["handlers"]
        assert all(
            "sensitive_data" in handler.get("filters", [])
            for handler in config["handlers"].values()
        )
