"""
OCC option symbol codec.

Parses Options Clearing Corporation (OCC) standardized option symbols into
contract identities and builds them back.

OCC Format: ROOT YYMMDD C/P STRIKE
Example: IBIT  250221C00055000
         │     │     │└─────── Strike × 1000 (55.000)
         │     │     └──────── Type (C=Call, P=Put)
         │     └────────────── Expiration (YYMMDD, year = 2000 + YY)
         └──────────────────── Underlying (1-6 chars, space-padded to 6)

Custodians and quote providers disagree on padding and prefixes, so parsing
tries an ordered set of matchers and the first one that matches decides the
outcome. Anything that does not decode to a valid contract is treated as an
equity symbol; ``parse_symbol`` never raises.
"""

import re
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from services.core.logging import get_logger
from services.strategies.core.primitives import EquityIdentity, OptionIdentity
from services.strategies.core.types import OptionType

logger = get_logger(__name__)

# Data-source prefixes stripped before matching ("O:" is Polygon's option prefix)
KNOWN_PREFIXES = ("O:",)

OCC_ROOT_WIDTH = 6
OCC_STRIKE_SCALE = Decimal("1000")
OCC_STRIKE_DIGITS = 8


@dataclass(frozen=True)
class OccMatch:
    """Raw components captured by a matcher, before date and strike validation."""

    matcher: str
    underlying: str
    date_digits: str
    type_code: str
    strike_text: str
    scaled_strike: bool


@dataclass(frozen=True)
class OccMatcher:
    """
    One accepted spelling of an option symbol.

    Attributes:
        name: Matcher name, reported on the resulting match
        pattern: Anchored regex capturing root, date, type and strike
        scaled_strike: True when the strike is an integer number of thousandths
    """

    name: str
    pattern: re.Pattern
    scaled_strike: bool

    def match(self, symbol: str) -> OccMatch | None:
        found = self.pattern.match(symbol)
        if found is None:
            return None
        underlying, date_digits, type_code, strike_text = found.groups()
        return OccMatch(
            matcher=self.name,
            underlying=underlying,
            date_digits=date_digits,
            type_code=type_code,
            strike_text=strike_text,
            scaled_strike=self.scaled_strike,
        )


# Order matters: the first matcher that accepts the symbol wins.
OCC_MATCHERS: tuple[OccMatcher, ...] = (
    # Standard OCC with optional padding: "IBIT  250221C00055000"
    OccMatcher("standard", re.compile(r"^([A-Z]{1,6})\s*(\d{6})([CP])(\d{8})$"), True),
    # Compact, no padding: "IBIT250221C00055000". Never wins in match_occ_symbol:
    # standard's \s* already matches zero spaces.
    OccMatcher("compact", re.compile(r"^([A-Z]{1,6})(\d{6})([CP])(\d{8})$"), True),
    # Strike written as a plain decimal: "IBIT250221C55.5"
    OccMatcher("decimal_strike", re.compile(r"^([A-Z]{1,6})\s*(\d{6})([CP])(\d+\.?\d*)$"), False),
)


def clean_symbol(raw: str) -> str:
    """Strip surrounding whitespace and a known data-source prefix."""
    cleaned = raw.strip()
    for prefix in KNOWN_PREFIXES:
        if cleaned.startswith(prefix):
            cleaned = cleaned[len(prefix) :].strip()
            break
    return cleaned


def match_occ_symbol(cleaned: str) -> OccMatch | None:
    """Run the matchers in order and return the first match, if any."""
    for matcher in OCC_MATCHERS:
        result = matcher.match(cleaned)
        if result is not None:
            return result
    return None


def decode_match(match: OccMatch) -> OptionIdentity | None:
    """
    Validate a match and turn it into an identity.

    Returns None when the date is not a real calendar date (e.g. "250231")
    or the strike is not positive.
    """
    year = 2000 + int(match.date_digits[0:2])
    month = int(match.date_digits[2:4])
    day = int(match.date_digits[4:6])
    try:
        expiration = date(year, month, day)
    except ValueError:
        return None

    try:
        strike = Decimal(match.strike_text)
    except InvalidOperation:
        return None
    if match.scaled_strike:
        strike = strike / OCC_STRIKE_SCALE
    if strike <= 0:
        return None

    return OptionIdentity(
        underlying=match.underlying,
        expiration=expiration,
        option_type=OptionType.from_occ_code(match.type_code),
        strike=strike,
    )


def parse_occ_symbol(raw: str) -> OptionIdentity | None:
    """
    Parse an OCC option symbol.

    Args:
        raw: Symbol such as "IBIT  250221C00055000" or "O:IBIT250221C00055000"

    Returns:
        OptionIdentity, or None if the string is not a valid option symbol
    """
    if not raw or not isinstance(raw, str):
        return None

    match = match_occ_symbol(clean_symbol(raw))
    if match is None:
        return None

    identity = decode_match(match)
    if identity is None:
        logger.debug(f"Rejected {match.matcher} match for {raw!r}: invalid date or strike")
    return identity


def parse_symbol(raw: str) -> OptionIdentity | EquityIdentity:
    """
    Classify a raw position symbol as an option or an equity.

    Never raises. Strings that are not valid option symbols become an
    EquityIdentity of the trimmed, uppercased original string.
    """
    option = parse_occ_symbol(raw)
    if option is not None:
        return option
    return EquityIdentity(symbol=(raw or "").strip().upper())


def build_occ_symbol(identity: OptionIdentity) -> str:
    """
    Build the standard 21-character OCC symbol for an identity.

    The strike is rounded half-up to the nearest thousandth; strikes with
    finer precision do not survive a round trip.

    Example:
        >>> spy_put = OptionIdentity("SPY", date(2025, 11, 7), OptionType.PUT, Decimal("591"))
        >>> build_occ_symbol(spy_put)
        'SPY   251107P00591000'
    """
    root = identity.underlying.upper()[:OCC_ROOT_WIDTH].ljust(OCC_ROOT_WIDTH)
    exp_str = identity.expiration.strftime("%y%m%d")
    scaled = Decimal(identity.strike) * OCC_STRIKE_SCALE
    strike_int = int(scaled.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    return f"{root}{exp_str}{identity.option_type.occ_code}{strike_int:0{OCC_STRIKE_DIGITS}d}"
