"""Standardized error response builder for API views.

Maps the service-layer exception hierarchy onto JSON error responses.
Ensures consistent error handling, logging, and user-facing messages.
"""

from typing import ClassVar

from django.http import JsonResponse

from services.core.logging import get_logger

logger = get_logger(__name__)


def _get_exception_mapping():
    """Lazy-load exception classes to avoid circular imports."""
    from json import JSONDecodeError

    from services.core.exceptions import (
        ConfigurationError,
        LookupMissError,
        ProviderError,
        StrategyValidationError,
        ValidationError,
    )

    # Order matters: subclasses before their bases
    return {
        StrategyValidationError: (400, "Invalid strategy"),
        ValidationError: (400, "Invalid request data"),
        LookupMissError: (404, "Contract not found"),
        ProviderError: (500, "Market data provider unavailable"),
        ConfigurationError: (503, "Service not configured"),
        JSONDecodeError: (400, "Invalid JSON in request body"),
        ValueError: (400, "Invalid value provided"),
        TypeError: (400, "Invalid type provided"),
    }


class ErrorResponseBuilder:
    """Build consistent error responses for API endpoints.

    All error responses follow the pattern: {"success": False, "error": "..."}
    Validation errors also carry "field" when the offending input is known.
    """

    _exception_map: ClassVar[dict | None] = None

    @classmethod
    def _get_map(cls):
        if cls._exception_map is None:
            cls._exception_map = _get_exception_mapping()
        return cls._exception_map

    @classmethod
    def status_for(cls, exc: Exception) -> tuple[int, str]:
        """Resolve (status code, base message) for an exception."""
        for exc_class, (code, msg) in cls._get_map().items():
            if isinstance(exc, exc_class):
                return code, msg
        return 500, "An error occurred"

    @classmethod
    def from_exception(
        cls,
        exc: Exception,
        context: str | None = None,
        log_level: str = "error",
        include_details: bool = True,
    ) -> JsonResponse:
        """Build error response from exception.

        Args:
            exc: Exception that occurred
            context: Additional context for logging (e.g., symbol, endpoint)
            log_level: 'error', 'warning', or 'info' (default: 'error')
            include_details: Whether to expose the exception message for 4xx errors
                and for configuration errors. Provider failures always get the
                generic message; their details stay in the server log.

        Returns:
            JsonResponse with appropriate status code and user-safe message

        Example:
            try:
                chain = await service.get_chain(symbol, expiration)
            except ProviderError as e:
                return ErrorResponseBuilder.from_exception(e, context=f"chain {symbol}")
        """
        exc_name = exc.__class__.__name__
        log_msg = f"Exception in {context}: {exc_name}: {exc}" if context else f"{exc_name}: {exc}"

        if log_level == "error":
            logger.error(log_msg, exc_info=True)
        elif log_level == "warning":
            logger.warning(log_msg)
        else:
            logger.info(log_msg)

        status_code, base_message = cls.status_for(exc)

        response_data = {"success": False, "error": base_message}
        if include_details and (400 <= status_code < 500 or status_code == 503):
            response_data["error"] = str(exc)

        field = getattr(exc, "field", None)
        if status_code == 400 and field:
            response_data["field"] = field

        return JsonResponse(response_data, status=status_code)

    @classmethod
    def validation_error(cls, message: str, field: str | None = None) -> JsonResponse:
        """Quick validation error response (400).

        Example:
            if not expiration:
                return ErrorResponseBuilder.validation_error(
                    "expiration query parameter is required", field="expiration"
                )
        """
        data = {"success": False, "error": message}
        if field:
            data["field"] = field
        return JsonResponse(data, status=400)

    @classmethod
    def not_found(cls, resource: str = "Resource") -> JsonResponse:
        """Quick 404 response."""
        return JsonResponse({"success": False, "error": f"{resource} not found"}, status=404)

    @classmethod
    def service_unavailable(cls, message: str = "Service temporarily unavailable") -> JsonResponse:
        return JsonResponse({"success": False, "error": message}, status=503)

    @classmethod
    def json_decode_error(cls) -> JsonResponse:
        return JsonResponse({"success": False, "error": "Invalid JSON in request body"}, status=400)

    @classmethod
    def internal_error(cls, message: str = "Internal server error") -> JsonResponse:
        """Quick 500 response for internal errors.

        Args:
            message: Error message (should be user-safe, no internal details)
        """
        return JsonResponse({"success": False, "error": message}, status=500)
