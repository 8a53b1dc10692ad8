"""Unit tests for ErrorResponseBuilder utility.

Tests ensure consistent error handling across API endpoints with proper:
- Status codes
- Error message formatting
- Logging behavior
- Security (no provider internals leaked)
"""

import json
from datetime import date
from unittest.mock import patch

from django.http import JsonResponse

from services.api.error_responses import ErrorResponseBuilder
from services.core.exceptions import (
    LookupMissError,
    MissingCredentialsError,
    ProviderError,
    StrategyValidationError,
)


class TestErrorResponseBuilderFromException:
    """Test the from_exception() method with various exception types."""

    def test_strategy_validation_error(self):
        """Validation errors are 400 and expose message and field."""
        exc = StrategyValidationError("Valid underlyingPrice is required", field="underlyingPrice")

        response = ErrorResponseBuilder.from_exception(exc, context="analyze_strategy")

        assert isinstance(response, JsonResponse)
        assert response.status_code == 400
        data = json.loads(response.content)
        assert data["success"] is False
        assert data["error"] == "Valid underlyingPrice is required"
        assert data["field"] == "underlyingPrice"

    def test_validation_error_without_field(self):
        exc = StrategyValidationError("Request body must be a JSON object")

        response = ErrorResponseBuilder.from_exception(exc)

        assert response.status_code == 400
        assert "field" not in json.loads(response.content)

    def test_lookup_miss_error(self):
        """Test error response for LookupMissError (404)."""
        exc = LookupMissError(
            "IBIT  250221C00070000", underlying="IBIT", expiration=date(2025, 2, 21)
        )

        response = ErrorResponseBuilder.from_exception(exc)

        assert response.status_code == 404
        data = json.loads(response.content)
        assert "No matching contract found for IBIT  250221C00070000" in data["error"]

    def test_provider_error_hides_details(self):
        """Provider failures are 500 and never expose the upstream reason."""
        exc = ProviderError("polygon", reason="apiKey=abc123 rejected", status_code=403)

        response = ErrorResponseBuilder.from_exception(exc, context="chain IBIT")

        assert response.status_code == 500
        data = json.loads(response.content)
        assert data["error"] == "Market data provider unavailable"
        assert "abc123" not in data["error"]

    def test_configuration_error(self):
        """Missing credentials are 503 and name the setting to provide."""
        exc = MissingCredentialsError(provider="Polygon", setting="POLYGON_API_KEY")

        response = ErrorResponseBuilder.from_exception(exc)

        assert response.status_code == 503
        data = json.loads(response.content)
        assert "POLYGON_API_KEY" in data["error"]

    def test_unknown_exception_fallback(self):
        """Test error response for unknown exception type (fallback to 500)."""
        exc = RuntimeError("Something unexpected happened")

        response = ErrorResponseBuilder.from_exception(exc, context="unknown_operation")

        assert response.status_code == 500
        data = json.loads(response.content)
        assert data["success"] is False
        # Unknown exceptions should use generic message
        assert data["error"] == "An error occurred"

    def test_json_decode_error(self):
        """Test error response for JSONDecodeError (400)."""
        exc = json.JSONDecodeError("Expecting value", "", 0)

        response = ErrorResponseBuilder.from_exception(exc)

        assert response.status_code == 400
        data = json.loads(response.content)
        # 400 errors expose details
        assert "Expecting value" in data["error"]

    def test_value_error(self):
        """Test error response for ValueError (400)."""
        exc = ValueError("Invalid integer format")

        response = ErrorResponseBuilder.from_exception(exc)

        assert response.status_code == 400
        data = json.loads(response.content)
        assert "Invalid integer format" in data["error"]

    @patch("services.api.error_responses.logger")
    def test_logging_error_level(self, mock_logger):
        """Test that errors are logged at error level by default."""
        exc = ValueError("Test error")

        ErrorResponseBuilder.from_exception(exc, context="test_op")

        mock_logger.error.assert_called_once()
        call_args = mock_logger.error.call_args[0][0]
        assert "test_op" in call_args
        assert "ValueError" in call_args

    @patch("services.api.error_responses.logger")
    def test_logging_warning_level(self, mock_logger):
        """Test that log_level parameter controls logging level."""
        exc = ValueError("Test warning")

        ErrorResponseBuilder.from_exception(exc, context="test_op", log_level="warning")

        mock_logger.warning.assert_called_once()

    @patch("services.api.error_responses.logger")
    def test_logging_info_level(self, mock_logger):
        """Test logging at info level."""
        exc = StrategyValidationError("bad leg", field="strike")

        ErrorResponseBuilder.from_exception(exc, context="test_op", log_level="info")

        mock_logger.info.assert_called_once()
        mock_logger.error.assert_not_called()

    def test_include_details_false_for_400(self):
        """Test that include_details=False hides exception details even for 4xx."""
        exc = ValueError("Sensitive validation error")

        response = ErrorResponseBuilder.from_exception(exc, include_details=False)

        assert response.status_code == 400
        data = json.loads(response.content)
        assert data["error"] == "Invalid value provided"

    def test_status_for(self):
        assert ErrorResponseBuilder.status_for(StrategyValidationError("x")) == (
            400,
            "Invalid strategy",
        )
        assert ErrorResponseBuilder.status_for(KeyError("x")) == (500, "An error occurred")


class TestErrorResponseBuilderHelpers:
    """Test the quick response helpers."""

    def test_validation_error_with_field(self):
        response = ErrorResponseBuilder.validation_error(
            "expiration query parameter is required", field="expiration"
        )

        assert response.status_code == 400
        data = json.loads(response.content)
        assert data == {
            "success": False,
            "error": "expiration query parameter is required",
            "field": "expiration",
        }

    def test_not_found(self):
        response = ErrorResponseBuilder.not_found("Option chain for IBIT 2025-02-21")

        assert response.status_code == 404
        data = json.loads(response.content)
        assert data["error"] == "Option chain for IBIT 2025-02-21 not found"

    def test_service_unavailable(self):
        response = ErrorResponseBuilder.service_unavailable()

        assert response.status_code == 503

    def test_json_decode_error_helper(self):
        response = ErrorResponseBuilder.json_decode_error()

        assert response.status_code == 400
        assert json.loads(response.content)["error"] == "Invalid JSON in request body"

    def test_internal_error(self):
        response = ErrorResponseBuilder.internal_error()

        assert response.status_code == 500
        assert json.loads(response.content)["success"] is False
