"""
Expiration and display helpers for option identities.
"""

import math
from datetime import date, datetime, time, timedelta
from decimal import Decimal

from django.utils import timezone

from services.strategies.core.primitives import OptionIdentity

# Expiring contracts are treated as live until this time on expiration day
EXPIRATION_CUTOFF = time(23, 59, 59)

SECONDS_PER_DAY = 86400


def expiration_cutoff(expiration: date) -> datetime:
    """End of the expiration day in the project time zone."""
    return timezone.make_aware(
        datetime.combine(expiration, EXPIRATION_CUTOFF), timezone.get_current_timezone()
    )


def days_to_expiration(expiration: date, now: datetime | None = None) -> int:
    """
    Whole days until the end of the expiration day, rounded up, floored at 0.

    A contract expiring later today reports 1 until the cutoff passes; after
    the cutoff it reports 0.

    Args:
        expiration: Contract expiration date
        now: Current time (aware); defaults to ``timezone.now()``
    """
    now = now or timezone.now()
    remaining = (expiration_cutoff(expiration) - now).total_seconds()
    return max(0, math.ceil(remaining / SECONDS_PER_DAY))


def is_expired(expiration: date, now: datetime | None = None) -> bool:
    """True when ``days_to_expiration`` is 0."""
    return days_to_expiration(expiration, now) == 0


def expiration_from_days(days: int, today: date | None = None) -> date:
    return (today or timezone.localdate()) + timedelta(days=days)


def format_strike(strike: Decimal | float) -> str:
    """
    Format a strike for display: whole strikes without decimals, others with two.

    Examples:
        >>> format_strike(Decimal("55"))
        '55'
        >>> format_strike(Decimal("55.5"))
        '55.50'
    """
    value = Decimal(str(strike))
    if value == value.to_integral_value():
        return f"{value:.0f}"
    return f"{value:.2f}"


def format_expiration(expiration: date) -> str:
    """Long display form, e.g. "Feb 21, 2025"."""
    return f"{expiration:%b} {expiration.day}, {expiration.year}"


def format_expiration_short(expiration: date) -> str:
    """Short display form, e.g. "2/21/25"."""
    return f"{expiration.month}/{expiration.day}/{expiration:%y}"


def format_option_display(identity: OptionIdentity) -> str:
    """Human label for a contract, e.g. "IBIT Feb 21 $55 Call"."""
    return (
        f"{identity.underlying} {identity.expiration:%b} {identity.expiration.day} "
        f"${format_strike(identity.strike)} {identity.option_type.full_name}"
    )
