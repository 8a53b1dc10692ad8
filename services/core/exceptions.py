"""Custom exception hierarchy for DerivDesk.

All exceptions carry the attributes callers need to report the failure and a
clear, user-facing message. Symbols that fail to parse as options are not an
error: the symbol codec resolves them to an equity identity instead.

Exception Hierarchy:
    DerivDeskError (base for all custom exceptions)
    ├── ValidationError (input rejected before any computation)
    │   └── StrategyValidationError
    ├── DataError (market data lookups)
    │   ├── LookupMissError
    │   └── ProviderError
    └── ConfigurationError (missing credentials or settings)

Usage:
    from services.core.exceptions import StrategyValidationError

    if quantity <= 0:
        raise StrategyValidationError("Each leg must have a positive quantity", field="quantity")
"""

from datetime import date

# =============================================================================
# Base Exception
# =============================================================================


class DerivDeskError(Exception):
    """Base exception for all DerivDesk custom exceptions.

    Lets callers catch every application-specific failure with one clause.
    """

    pass


# =============================================================================
# Validation Exceptions
# =============================================================================


class ValidationError(DerivDeskError):
    """Base exception for malformed caller input.

    Validation errors abort the operation before any output is produced; the
    caller recovers by correcting the input.
    """

    pass


class StrategyValidationError(ValidationError):
    """Raised when strategy legs or analysis parameters are malformed.

    Attributes:
        field: Name of the offending input field, when known
        leg_index: Zero-based index of the offending leg, when the error is per-leg
    """

    def __init__(
        self, message: str, field: str | None = None, leg_index: int | None = None
    ) -> None:
        self.field = field
        self.leg_index = leg_index
        super().__init__(message)


# =============================================================================
# Data Exceptions
# =============================================================================


class DataError(DerivDeskError):
    """Base exception for market data and position data errors."""

    pass


class LookupMissError(DataError):
    """Raised when a parsed option has no matching contract in its chain.

    Attributes:
        symbol: The raw position symbol
        underlying: Underlying ticker of the chain searched
        expiration: Expiration date of the chain searched
    """

    def __init__(
        self,
        symbol: str,
        underlying: str | None = None,
        expiration: date | None = None,
        reason: str | None = None,
    ) -> None:
        self.symbol = symbol
        self.underlying = underlying
        self.expiration = expiration
        self.reason = reason
        message = f"No matching contract found for {symbol}"
        if underlying and expiration:
            message += f" in the {underlying} {expiration.isoformat()} chain"
        message += "."
        if reason:
            message += f" {reason}"
        super().__init__(message)


class ProviderError(DataError):
    """Raised when a quote or custody provider is unreachable or returns an error.

    Attributes:
        provider: Short provider name (e.g., "polygon", "clear_street")
        reason: Description of the failure
        status_code: HTTP status code returned by the provider, if any
    """

    def __init__(self, provider: str, reason: str, status_code: int | None = None) -> None:
        self.provider = provider
        self.reason = reason
        self.status_code = status_code
        message = f"Provider {provider} request failed: {reason}"
        if status_code is not None:
            message += f" (HTTP {status_code})"
        super().__init__(message)


# =============================================================================
# Configuration Exceptions
# =============================================================================


class ConfigurationError(DerivDeskError):
    """Raised when a provider cannot be used because configuration is missing.

    Fatal only for the call that needed the configuration.

    Attributes:
        setting: Name of the missing or invalid setting
    """

    def __init__(self, message: str, setting: str | None = None) -> None:
        self.setting = setting
        super().__init__(message)


class MissingCredentialsError(ConfigurationError):
    """Raised when a provider's API credentials are not set.

    Attributes:
        provider: Short provider name
        setting: Name of the setting (environment variable) that must be provided
    """

    def __init__(self, provider: str, setting: str) -> None:
        self.provider = provider
        super().__init__(
            f"{provider} credentials are not configured. "
            f"Set {setting} in the environment to enable this provider.",
            setting=setting,
        )
