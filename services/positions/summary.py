"""
Portfolio summary reduction.

PortfolioSummary is a monoid over enriched positions: ``from_position``
lifts one position, ``merge`` combines two partial summaries, and
``PortfolioSummary()`` is the identity. All totals are Decimal sums and all
counts are integer sums, so merging is associative and commutative and the
summary is the same whatever order or grouping the positions arrive in.
"""

from collections.abc import Iterable
from dataclasses import dataclass, fields
from decimal import Decimal
from functools import reduce

from services.positions.models import EnrichedPosition, EnrichmentStatus

ZERO = Decimal("0")


@dataclass(frozen=True)
class PortfolioSummary:
    total_positions: int = 0
    options_count: int = 0
    equities_count: int = 0
    unmatched_count: int = 0
    total_market_value: Decimal = ZERO
    total_cost_basis: Decimal = ZERO
    total_unrealized_pnl: Decimal = ZERO
    total_delta: Decimal = ZERO
    total_gamma: Decimal = ZERO
    total_theta: Decimal = ZERO
    total_vega: Decimal = ZERO

    @classmethod
    def from_position(cls, position: EnrichedPosition) -> "PortfolioSummary":
        return cls(
            total_positions=1,
            options_count=1 if position.is_option else 0,
            equities_count=1 if position.status == EnrichmentStatus.EQUITY else 0,
            unmatched_count=1 if position.status == EnrichmentStatus.UNMATCHED else 0,
            total_market_value=position.market_value,
            total_cost_basis=position.cost_basis,
            total_unrealized_pnl=position.unrealized_pnl,
            total_delta=position.delta_exposure,
            total_gamma=position.gamma_exposure,
            total_theta=position.theta_exposure,
            total_vega=position.vega_exposure,
        )

    def merge(self, other: "PortfolioSummary") -> "PortfolioSummary":
        """Field-wise sum of two summaries."""
        return PortfolioSummary(
            **{f.name: getattr(self, f.name) + getattr(other, f.name) for f in fields(self)}
        )

    __add__ = merge


def summarize_positions(positions: Iterable[EnrichedPosition]) -> PortfolioSummary:
    """Reduce enriched positions into one summary."""
    return reduce(
        PortfolioSummary.merge,
        (PortfolioSummary.from_position(p) for p in positions),
        PortfolioSummary(),
    )
