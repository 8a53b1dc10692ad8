"""
Leg composition for strategy analysis.

A StrategyLeg is one buy or sell of a single option contract within a
multi-leg strategy, together with the premium per share and the per-contract
Greeks snapshot the quote provider reported. Legs validate themselves on
construction so the analyzer never sees malformed input.
"""

from dataclasses import dataclass, field

from services.core.constants import OPTION_CONTRACT_MULTIPLIER
from services.core.exceptions import StrategyValidationError
from services.core.utils.decimal_utils import is_finite_number
from services.strategies.core.primitives import OptionContract, OptionIdentity
from services.strategies.core.types import Action, OptionType, Quantity


def _optional_float(value) -> float | None:
    return float(value) if value is not None else None


@dataclass(frozen=True)
class LegGreeks:
    """Per-contract Greeks snapshot. Missing values contribute nothing to totals."""

    delta: float | None = None
    gamma: float | None = None
    theta: float | None = None
    vega: float | None = None
    implied_volatility: float | None = None

    @classmethod
    def from_contract(cls, contract: OptionContract) -> "LegGreeks":
        return cls(
            delta=_optional_float(contract.delta),
            gamma=_optional_float(contract.gamma),
            theta=_optional_float(contract.theta),
            vega=_optional_float(contract.vega),
            implied_volatility=_optional_float(contract.implied_volatility),
        )


@dataclass(frozen=True)
class StrategyLeg:
    """
    A single leg of an options strategy.

    Attributes:
        option_type: CALL or PUT
        strike: Strike price (> 0)
        action: BUY or SELL
        quantity: Number of contracts (positive integer)
        premium: Premium per share paid or received (>= 0)
        greeks: Per-contract Greeks snapshot
        identity: Full contract identity when the leg was built from a quote

    Example:
        >>> leg = StrategyLeg(
        ...     option_type=OptionType.CALL,
        ...     strike=55.0,
        ...     action=Action.BUY,
        ...     quantity=1,
        ...     premium=2.50,
        ... )
        >>> leg.total_premium
        250.0
    """

    option_type: OptionType
    strike: float
    action: Action
    quantity: Quantity
    premium: float
    greeks: LegGreeks = field(default_factory=LegGreeks)
    identity: OptionIdentity | None = None

    def __post_init__(self):
        """Validate and normalize leg fields."""
        try:
            object.__setattr__(self, "option_type", OptionType(self.option_type))
        except ValueError:
            raise StrategyValidationError(
                "Each leg type must be 'call' or 'put'", field="type"
            ) from None
        try:
            object.__setattr__(self, "action", Action(self.action))
        except ValueError:
            raise StrategyValidationError(
                "Each leg action must be 'buy' or 'sell'", field="action"
            ) from None

        if not is_finite_number(self.strike) or self.strike <= 0:
            raise StrategyValidationError(
                "Each leg must have a valid strike price", field="strike"
            )
        if (
            not isinstance(self.quantity, int)
            or not is_finite_number(self.quantity)
            or self.quantity <= 0
        ):
            raise StrategyValidationError(
                "Each leg must have a positive quantity", field="quantity"
            )
        if not is_finite_number(self.premium) or self.premium < 0:
            raise StrategyValidationError("Each leg must have a valid premium", field="premium")

        object.__setattr__(self, "strike", float(self.strike))
        object.__setattr__(self, "premium", float(self.premium))

    @classmethod
    def from_contract(
        cls, contract: OptionContract, action: Action, quantity: Quantity = 1
    ) -> "StrategyLeg":
        """
        Build a leg from a quoted contract, using its mark as the premium.

        Contracts with no usable price are priced at zero premium.
        """
        mark = contract.mark
        return cls(
            option_type=contract.option_type,
            strike=float(contract.strike),
            action=action,
            quantity=quantity,
            premium=float(mark) if mark is not None else 0.0,
            greeks=LegGreeks.from_contract(contract),
            identity=contract.identity,
        )

    @property
    def sign(self) -> int:
        return self.action.sign

    @property
    def is_call(self) -> bool:
        return self.option_type == OptionType.CALL

    @property
    def total_premium(self) -> float:
        """Premium for the whole leg in dollars (always positive)."""
        return self.premium * self.quantity * OPTION_CONTRACT_MULTIPLIER

    def intrinsic_value(self, price: float) -> float:
        if self.is_call:
            return max(price - self.strike, 0.0)
        return max(self.strike - price, 0.0)

    def pnl_at(self, price: float) -> float:
        """Leg P&L at expiration for a given underlying price."""
        return (
            OPTION_CONTRACT_MULTIPLIER
            * self.quantity
            * self.sign
            * (self.intrinsic_value(price) - self.premium)
        )
