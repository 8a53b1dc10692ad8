"""
Strategy payoff analyzer.

Computes risk/reward for single- and multi-leg option strategies held to
expiration: total cost, maximum profit and loss, breakevens, P&L at the
current and target prices, a P&L curve and aggregated Greeks.

Every leg's expiration payoff is linear in the underlying price except for
one kink at its strike, so the strategy payoff is piecewise-linear with
kinks only at the sorted leg strikes. The analyzer works on that structure
directly instead of sampling a price grid:

- Extremes sit at P = 0 or at a strike, unless the slope beyond the highest
  strike is non-zero, in which case profit or loss is unlimited.
- Breakevens are the zero crossings of each linear segment.

Underlying prices cannot go below zero, so the left side is always bounded.
Arithmetic is float throughout; rounding happens only in the serializer.
"""

import math
from dataclasses import dataclass, field
from typing import Literal

from services.core.constants import (
    OPTION_CONTRACT_MULTIPLIER,
    PNL_CURVE_MIN_PRICE,
    PNL_CURVE_POINTS,
    PNL_CURVE_RANGE,
)
from services.core.exceptions import StrategyValidationError
from services.core.logging import get_logger
from services.core.utils.decimal_utils import is_finite_number
from services.strategies.conversion import ReferenceConversion
from services.strategies.core.legs import StrategyLeg

logger = get_logger(__name__)

UNLIMITED: Literal["unlimited"] = "unlimited"

# Two payoffs closer than this are the same extreme
_TIE_TOLERANCE = 1e-9


@dataclass(frozen=True)
class PnlPoint:
    """P&L at one underlying price, optionally restated in reference units."""

    price: float
    pnl: float
    pnl_percent: float
    reference_price: float | None = None
    pnl_reference: float | None = None


@dataclass(frozen=True)
class AggregatedGreeks:
    """Sum of per-contract Greeks × quantity × direction sign across legs."""

    total_delta: float = 0.0
    total_gamma: float = 0.0
    total_theta: float = 0.0
    total_vega: float = 0.0


@dataclass(frozen=True)
class StrategyAnalysisResult:
    """Full analysis of a strategy held to expiration."""

    total_cost: float
    max_profit: float | Literal["unlimited"]
    max_profit_price: float | None
    max_loss: float | Literal["unlimited"]
    max_loss_price: float | None
    breakevens: list[float]
    current_pnl: float
    current_pnl_percent: float
    target_pnls: list[PnlPoint]
    pnl_curve: list[PnlPoint]
    greeks: AggregatedGreeks
    days_to_expiry: int
    underlying_price: float
    total_cost_reference: float | None = None
    current_pnl_reference: float | None = None
    breakeven_reference_prices: list[float] = field(default_factory=list)

    @property
    def is_debit(self) -> bool:
        return self.total_cost > 0

    @property
    def has_unlimited_profit(self) -> bool:
        return self.max_profit == UNLIMITED

    @property
    def has_unlimited_loss(self) -> bool:
        return self.max_loss == UNLIMITED


class StrategyAnalyzer:
    """
    Stateless analyzer for option strategies.

    Example:
        >>> legs = [StrategyLeg(OptionType.CALL, 55, Action.BUY, 1, 2.50)]
        >>> result = StrategyAnalyzer().analyze(legs, underlying_price=52, days_to_expiry=30)
        >>> result.max_loss, result.max_profit, result.breakevens
        (250.0, 'unlimited', [57.5])
    """

    def __init__(self, curve_points: int = PNL_CURVE_POINTS):
        if curve_points < 2:
            raise ValueError(f"curve_points must be at least 2, got {curve_points}")
        self.curve_points = curve_points

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    @staticmethod
    def validate(
        legs,
        underlying_price,
        days_to_expiry,
        target_prices=(),
        reference_price=None,
    ) -> None:
        """
        Reject malformed input before any computation.

        Raises:
            StrategyValidationError: Naming the offending field
        """
        if not legs:
            raise StrategyValidationError("At least one leg is required", field="legs")
        for index, leg in enumerate(legs):
            if not isinstance(leg, StrategyLeg):
                raise StrategyValidationError(
                    f"Leg {index} is not a StrategyLeg", field="legs", leg_index=index
                )
        if not is_finite_number(underlying_price) or underlying_price <= 0:
            raise StrategyValidationError(
                "Valid underlyingPrice is required", field="underlyingPrice"
            )
        if not is_finite_number(days_to_expiry) or days_to_expiry < 0:
            raise StrategyValidationError("Valid daysToExpiry is required", field="daysToExpiry")
        for price in target_prices:
            if not is_finite_number(price) or price < 0:
                raise StrategyValidationError(
                    "Target prices must be non-negative numbers", field="targetPrices"
                )
        if reference_price is not None and (
            not is_finite_number(reference_price) or reference_price <= 0
        ):
            raise StrategyValidationError(
                "Reference price must be a positive number", field="referencePrice"
            )

    # ------------------------------------------------------------------
    # Payoff primitives
    # ------------------------------------------------------------------

    @staticmethod
    def payoff(legs: list[StrategyLeg], price: float) -> float:
        """Total strategy P&L at expiration for an underlying price."""
        return sum(leg.pnl_at(price) for leg in legs)

    @staticmethod
    def total_cost(legs: list[StrategyLeg]) -> float:
        """Net premium: positive for a debit paid, negative for a credit received."""
        return sum(
            leg.premium * leg.quantity * OPTION_CONTRACT_MULTIPLIER * leg.sign for leg in legs
        )

    @staticmethod
    def right_tail_slope(legs: list[StrategyLeg]) -> float:
        """
        P&L change per $1 of underlying above the highest strike.

        Only calls have non-zero slope there.
        """
        return sum(
            OPTION_CONTRACT_MULTIPLIER * leg.quantity * leg.sign for leg in legs if leg.is_call
        )

    @staticmethod
    def kink_points(legs: list[StrategyLeg]) -> list[float]:
        """Zero plus the sorted, deduplicated strikes."""
        return [0.0, *sorted({leg.strike for leg in legs})]

    # ------------------------------------------------------------------
    # Extremes and breakevens
    # ------------------------------------------------------------------

    @staticmethod
    def _extreme(
        points: list[float], values: list[float], pick_max: bool
    ) -> tuple[float, float]:
        """Best value among candidates and the lowest price where it occurs."""
        best = max(values) if pick_max else min(values)
        for price, value in zip(points, values):
            if math.isclose(value, best, rel_tol=0.0, abs_tol=_TIE_TOLERANCE):
                return best, price
        return best, points[0]

    def find_extremes(self, legs: list[StrategyLeg]) -> dict:
        points = self.kink_points(legs)
        values = [self.payoff(legs, p) for p in points]
        slope = self.right_tail_slope(legs)

        if slope > 0:
            max_profit, max_profit_price = UNLIMITED, None
        else:
            max_profit, max_profit_price = self._extreme(points, values, pick_max=True)

        if slope < 0:
            max_loss, max_loss_price = UNLIMITED, None
        else:
            lowest, max_loss_price = self._extreme(points, values, pick_max=False)
            # Reported as a loss amount; negative only if every outcome is a profit
            max_loss = -lowest

        return {
            "max_profit": max_profit,
            "max_profit_price": max_profit_price,
            "max_loss": max_loss,
            "max_loss_price": max_loss_price,
        }

    def find_breakevens(self, legs: list[StrategyLeg]) -> list[float]:
        """
        Underlying prices where P&L at expiration is exactly zero, ascending.

        Each segment between kinks is linear, so a sign change is located by
        linear interpolation. A segment that is flat at zero contributes its
        endpoints.
        """
        points = self.kink_points(legs)
        values = [self.payoff(legs, p) for p in points]
        found: list[float] = []

        for (a, fa), (b, fb) in zip(zip(points, values), zip(points[1:], values[1:])):
            if fa == 0:
                found.append(a)
            elif fa * fb < 0:
                found.append(a + (b - a) * (-fa) / (fb - fa))

        last_price, last_value = points[-1], values[-1]
        if last_value == 0:
            found.append(last_price)
        else:
            slope = self.right_tail_slope(legs)
            if slope != 0 and (last_value > 0) != (slope > 0):
                found.append(last_price - last_value / slope)

        unique: list[float] = []
        for price in sorted(found):
            if not unique or not math.isclose(price, unique[-1], rel_tol=0.0, abs_tol=1e-9):
                unique.append(price)
        return unique

    # ------------------------------------------------------------------
    # Greeks
    # ------------------------------------------------------------------

    @staticmethod
    def aggregate_greeks(legs: list[StrategyLeg]) -> AggregatedGreeks:
        """
        Sum per-contract Greeks × quantity × sign.

        Selling a contract negates its Greeks, so a short call reduces delta.
        Missing Greeks contribute zero.
        """
        totals = {"delta": 0.0, "gamma": 0.0, "theta": 0.0, "vega": 0.0}
        for leg in legs:
            for name in totals:
                value = getattr(leg.greeks, name)
                if value is not None:
                    totals[name] += value * leg.quantity * leg.sign
        return AggregatedGreeks(
            total_delta=totals["delta"],
            total_gamma=totals["gamma"],
            total_theta=totals["theta"],
            total_vega=totals["vega"],
        )

    # ------------------------------------------------------------------
    # Curves
    # ------------------------------------------------------------------

    def price_range(
        self, legs: list[StrategyLeg], underlying_price: float, extra: list[float] = ()
    ) -> list[float]:
        """
        Ascending prices for the P&L curve.

        An even grid from 50% below the lowest strike or spot to 50% above the
        highest, merged with the strikes and any extra prices so the curve
        passes through every kink and breakeven.
        """
        anchors = [leg.strike for leg in legs] + [underlying_price]
        low = max(PNL_CURVE_MIN_PRICE, min(anchors) * (1 - PNL_CURVE_RANGE))
        high = max(anchors) * (1 + PNL_CURVE_RANGE)
        step = (high - low) / (self.curve_points - 1)
        grid = [low + step * i for i in range(self.curve_points)]
        return sorted(set(grid) | {leg.strike for leg in legs} | set(extra))

    @staticmethod
    def _point(
        price: float,
        pnl: float,
        total_cost: float,
        conversion: ReferenceConversion | None,
    ) -> PnlPoint:
        pnl_percent = pnl / abs(total_cost) * 100 if total_cost != 0 else 0.0
        if conversion is None:
            return PnlPoint(price=price, pnl=pnl, pnl_percent=pnl_percent)
        return PnlPoint(
            price=price,
            pnl=pnl,
            pnl_percent=pnl_percent,
            reference_price=conversion.price_to_reference(price),
            pnl_reference=conversion.amount_to_reference(pnl),
        )

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    def analyze(
        self,
        legs: list[StrategyLeg],
        underlying_price: float,
        days_to_expiry: int,
        target_prices: list[float] = (),
        reference_price: float | None = None,
    ) -> StrategyAnalysisResult:
        """
        Analyze a strategy held to expiration.

        Args:
            legs: Strategy legs (at least one)
            underlying_price: Current underlying price (> 0)
            days_to_expiry: Days remaining to expiration (>= 0)
            target_prices: Prices at which to report P&L, in the order given
            reference_price: Price of a reference asset for unit conversion

        Raises:
            StrategyValidationError: If any input is malformed
        """
        legs = list(legs or ())
        target_prices = list(target_prices or ())
        self.validate(legs, underlying_price, days_to_expiry, target_prices, reference_price)

        underlying_price = float(underlying_price)
        conversion = (
            ReferenceConversion(underlying_price, float(reference_price))
            if reference_price is not None
            else None
        )

        total_cost = self.total_cost(legs)
        extremes = self.find_extremes(legs)
        breakevens = self.find_breakevens(legs)

        current_pnl = self.payoff(legs, underlying_price)
        current_point = self._point(underlying_price, current_pnl, total_cost, conversion)

        target_pnls = [
            self._point(float(p), self.payoff(legs, float(p)), total_cost, conversion)
            for p in target_prices
        ]
        curve_prices = self.price_range(
            legs, underlying_price, extra=breakevens + [float(p) for p in target_prices]
        )
        pnl_curve = [
            self._point(p, self.payoff(legs, p), total_cost, conversion) for p in curve_prices
        ]

        logger.debug(
            f"Analyzed {len(legs)}-leg strategy: cost={total_cost:.2f}, "
            f"max_profit={extremes['max_profit']}, max_loss={extremes['max_loss']}, "
            f"breakevens={breakevens}"
        )

        return StrategyAnalysisResult(
            total_cost=total_cost,
            max_profit=extremes["max_profit"],
            max_profit_price=extremes["max_profit_price"],
            max_loss=extremes["max_loss"],
            max_loss_price=extremes["max_loss_price"],
            breakevens=breakevens,
            current_pnl=current_pnl,
            current_pnl_percent=current_point.pnl_percent,
            target_pnls=target_pnls,
            pnl_curve=pnl_curve,
            greeks=self.aggregate_greeks(legs),
            days_to_expiry=int(days_to_expiry),
            underlying_price=underlying_price,
            total_cost_reference=(
                conversion.amount_to_reference(total_cost) if conversion else None
            ),
            current_pnl_reference=current_point.pnl_reference,
            breakeven_reference_prices=(
                [conversion.price_to_reference(b) for b in breakevens] if conversion else []
            ),
        )


_default_analyzer = StrategyAnalyzer()


def analyze_strategy(
    legs: list[StrategyLeg],
    underlying_price: float,
    days_to_expiry: int,
    target_prices: list[float] = (),
    reference_price: float | None = None,
) -> StrategyAnalysisResult:
    """Module-level shortcut for ``StrategyAnalyzer().analyze``."""
    return _default_analyzer.analyze(
        legs, underlying_price, days_to_expiry, target_prices, reference_price
    )
