"""
Position records for the enrichment pipeline.

RawPosition is what the custodian reports. EnrichedPosition adds the parsed
identity, the matched contract and derived values. All records are
immutable and rebuilt on every enrichment pass.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum

from django.utils import timezone

from services.strategies.core.primitives import EquityIdentity, OptionContract, OptionIdentity


@dataclass(frozen=True)
class RawPosition:
    """
    A holding as reported by the custody provider.

    Attributes:
        account_id: Custody account identifier
        symbol: Raw symbol string (OCC option symbol or equity ticker)
        quantity: Signed quantity; negative for short positions, never zero
        average_cost: Average cost per share (options: per share, not per contract)
        account_number: Human-facing account number, when the custodian has one
        market_price: Custodian's mark per share, used for equities
    """

    account_id: str
    symbol: str
    quantity: Decimal
    average_cost: Decimal
    account_number: str | None = None
    market_price: Decimal | None = None

    def __post_init__(self):
        if self.quantity == 0:
            raise ValueError(f"Position quantity must be non-zero for {self.symbol}")

    @property
    def is_short(self) -> bool:
        return self.quantity < 0


class EnrichmentStatus(str, Enum):
    MATCHED = "matched"
    UNMATCHED = "unmatched"
    EQUITY = "equity"


class EnrichmentErrorKind(str, Enum):
    """Why a position could not be enriched."""

    LOOKUP_MISS = "lookup_miss"
    PROVIDER = "provider"
    CONFIG = "config"
    DEADLINE = "deadline"


@dataclass(frozen=True)
class EnrichmentError:
    kind: EnrichmentErrorKind
    symbol: str
    account_id: str
    message: str


@dataclass(frozen=True)
class EnrichedPosition:
    """
    A raw position merged with market state.

    ``contract`` is set exactly when ``status`` is MATCHED.
    """

    raw: RawPosition
    identity: OptionIdentity | EquityIdentity
    status: EnrichmentStatus
    multiplier: int
    market_price: Decimal
    market_value: Decimal
    cost_basis: Decimal
    unrealized_pnl: Decimal
    contract: OptionContract | None = None
    delta_exposure: Decimal = Decimal("0")
    gamma_exposure: Decimal = Decimal("0")
    theta_exposure: Decimal = Decimal("0")
    vega_exposure: Decimal = Decimal("0")
    enriched_at: datetime = field(default_factory=timezone.now)

    def __post_init__(self):
        if (self.status == EnrichmentStatus.MATCHED) != (self.contract is not None):
            raise ValueError(
                f"Position {self.raw.symbol}: status {self.status.value} "
                f"inconsistent with contract presence"
            )

    @property
    def symbol(self) -> str:
        return self.raw.symbol

    @property
    def account_id(self) -> str:
        return self.raw.account_id

    @property
    def quantity(self) -> Decimal:
        return self.raw.quantity

    @property
    def is_option(self) -> bool:
        return isinstance(self.identity, OptionIdentity)

    @property
    def underlying(self) -> str:
        if isinstance(self.identity, OptionIdentity):
            return self.identity.underlying
        return self.identity.symbol

    @property
    def strike(self) -> Decimal | None:
        if isinstance(self.identity, OptionIdentity):
            return self.identity.strike
        return None

    @property
    def sort_key(self) -> tuple:
        """Underlying, then options by strike before equities, then account."""
        strike = self.strike
        return (
            self.underlying,
            0 if strike is not None else 1,
            strike if strike is not None else Decimal("0"),
            self.account_id,
            self.symbol,
        )


@dataclass
class EnrichmentResult:
    positions: list[EnrichedPosition] = field(default_factory=list)
    errors: list[EnrichmentError] = field(default_factory=list)

    @property
    def summary(self):
        from services.positions.summary import summarize_positions

        return summarize_positions(self.positions)

    @property
    def has_provider_errors(self) -> bool:
        """True when any group failed for a reason other than a lookup miss."""
        return any(error.kind != EnrichmentErrorKind.LOOKUP_MISS for error in self.errors)
