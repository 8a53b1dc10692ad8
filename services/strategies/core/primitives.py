"""
Core option primitives.

Immutable records identifying instruments and carrying their market state:
- OptionIdentity: underlying, expiration, type and strike of one contract
- EquityIdentity: fallback identity for anything that is not an option symbol
- OptionContract: quoted market state (prices, Greeks) for an OptionIdentity
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal

from services.strategies.core.types import OptionType, Strike


@dataclass(frozen=True)
class OptionIdentity:
    """
    Identifies an option contract independent of market state.

    Attributes:
        underlying: Underlying symbol, 1-6 uppercase letters (e.g., "SPY")
        expiration: Expiration date
        option_type: CALL or PUT
        strike: Strike price, always positive

    Example:
        >>> identity = OptionIdentity(
        ...     underlying="SPY",
        ...     expiration=date(2025, 1, 17),
        ...     option_type=OptionType.PUT,
        ...     strike=Decimal("580"),
        ... )
        >>> identity.occ_symbol
        'SPY   250117P00580000'
    """

    underlying: str
    expiration: date
    option_type: OptionType
    strike: Strike

    def __post_init__(self):
        if self.strike <= 0:
            raise ValueError(f"Strike must be positive, got {self.strike}")

    @property
    def occ_symbol(self) -> str:
        """Standard 21-character OCC symbol for this contract."""
        from services.instruments.occ import build_occ_symbol

        return build_occ_symbol(self)

    @property
    def group_key(self) -> tuple[str, date]:
        """Key shared by every contract in the same chain."""
        return (self.underlying, self.expiration)

    def intrinsic_value(self, spot_price: Decimal) -> Decimal:
        """
        Intrinsic value at a given underlying price.

        For calls: max(0, spot - strike)
        For puts: max(0, strike - spot)
        """
        if self.option_type == OptionType.CALL:
            return max(Decimal("0"), spot_price - self.strike)
        return max(Decimal("0"), self.strike - spot_price)


@dataclass(frozen=True)
class EquityIdentity:
    """Identity for a symbol that does not parse as an option."""

    symbol: str


@dataclass(frozen=True)
class OptionContract:
    """
    Market state for one option contract as reported by the quote provider.

    Prices and Greeks are optional because providers omit them for illiquid
    or freshly listed contracts. Greeks and implied volatility are always
    supplied by the provider and never derived here.
    """

    identity: OptionIdentity
    bid: Decimal | None = None
    ask: Decimal | None = None
    last: Decimal | None = None
    mid: Decimal | None = None
    volume: int = 0
    open_interest: int = 0
    implied_volatility: Decimal | None = None
    delta: Decimal | None = None
    gamma: Decimal | None = None
    theta: Decimal | None = None
    vega: Decimal | None = None
    observed_at: datetime | None = None

    @staticmethod
    def build_mid(
        bid: Decimal | None, ask: Decimal | None, last: Decimal | None
    ) -> Decimal | None:
        """Midpoint of bid and ask, falling back to last when either side is missing."""
        if bid is not None and ask is not None:
            return (bid + ask) / 2
        return last

    @property
    def strike(self) -> Decimal:
        return self.identity.strike

    @property
    def option_type(self) -> OptionType:
        return self.identity.option_type

    @property
    def mark(self) -> Decimal | None:
        """Best available price: mid, then last."""
        if self.mid is not None:
            return self.mid
        return self.last
