"""Decimal conversion utilities for safe float-to-Decimal conversions.

Provider payloads carry prices and Greeks as JSON floats; converting through
``str`` keeps ``0.1`` as ``Decimal('0.1')`` rather than its binary expansion.
"""

from __future__ import annotations

import math
from decimal import Decimal, InvalidOperation
from numbers import Real

__all__ = ["to_decimal", "parse_decimal", "decimal_or_zero", "is_finite_number"]


def to_decimal(value: object | None) -> Decimal | None:
    """
    Safely convert a numeric value to Decimal via string representation.

    Examples:
        >>> to_decimal(1.23)
        Decimal('1.23')
        >>> to_decimal(None)
        None
        >>> to_decimal("45.67")
        Decimal('45.67')
    """
    if value is None:
        return None
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def parse_decimal(value: object | None) -> Decimal | None:
    """
    Like ``to_decimal``, but returns None for values that are not finite numbers.

    Used on untrusted provider payloads where a field may be ``""``, ``"NaN"``
    or a nested object instead of a number.
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        result = to_decimal(value)
    except (InvalidOperation, ValueError, TypeError):
        return None
    if result is None or not result.is_finite():
        return None
    return result


def decimal_or_zero(value: Decimal | None) -> Decimal:
    """Return ``value`` or ``Decimal("0")`` when it is missing."""
    return value if value is not None else Decimal("0")


def is_finite_number(value: object) -> bool:
    """
    True for ints, floats and Decimals that are finite and representable as a float.

    Booleans are rejected. JSON integers too large for a float count as invalid
    rather than raising ``OverflowError`` later in float arithmetic.
    """
    if isinstance(value, bool) or not isinstance(value, (Real, Decimal)):
        return False
    try:
        return math.isfinite(float(value))
    except (OverflowError, ValueError):
        return False
