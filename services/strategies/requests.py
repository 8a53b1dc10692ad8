"""
Request parsing for strategy analysis.

Turns the JSON body posted to the analysis endpoint into typed legs and
parameters. Every problem is reported as a StrategyValidationError naming
the offending field, before the analyzer runs.
"""

from dataclasses import dataclass, field
from typing import Any

from services.core.exceptions import StrategyValidationError
from services.core.utils.decimal_utils import is_finite_number
from services.strategies.core.legs import LegGreeks, StrategyLeg


def _number(value: Any) -> float | None:
    if not isinstance(value, (int, float)) or not is_finite_number(value):
        return None
    return float(value)


def _optional_greek(leg: dict, key: str, index: int) -> float | None:
    value = leg.get(key)
    if value is None:
        return None
    number = _number(value)
    if number is None:
        raise StrategyValidationError(
            f"Leg {key} must be a number when provided", field=key, leg_index=index
        )
    return number


@dataclass(frozen=True)
class StrategyAnalysisRequest:
    """Validated strategy analysis request."""

    legs: list[StrategyLeg]
    underlying_price: float
    days_to_expiry: int
    target_prices: list[float] = field(default_factory=list)
    reference_price: float | None = None

    @classmethod
    def parse_leg(cls, leg: Any, index: int) -> StrategyLeg:
        if not isinstance(leg, dict):
            raise StrategyValidationError(
                "Each leg must be an object", field="legs", leg_index=index
            )

        strike = _number(leg.get("strike"))
        if strike is None or strike <= 0:
            raise StrategyValidationError(
                "Each leg must have a valid strike price", field="strike", leg_index=index
            )
        if leg.get("type") not in ("call", "put"):
            raise StrategyValidationError(
                "Each leg type must be 'call' or 'put'", field="type", leg_index=index
            )
        if leg.get("action") not in ("buy", "sell"):
            raise StrategyValidationError(
                "Each leg action must be 'buy' or 'sell'", field="action", leg_index=index
            )

        quantity = _number(leg.get("quantity"))
        if quantity is None or quantity <= 0 or not quantity.is_integer():
            raise StrategyValidationError(
                "Each leg must have a positive quantity", field="quantity", leg_index=index
            )
        premium = _number(leg.get("premium"))
        if premium is None or premium < 0:
            raise StrategyValidationError(
                "Each leg must have a valid premium", field="premium", leg_index=index
            )

        greeks = LegGreeks(
            delta=_optional_greek(leg, "delta", index),
            gamma=_optional_greek(leg, "gamma", index),
            theta=_optional_greek(leg, "theta", index),
            vega=_optional_greek(leg, "vega", index),
            implied_volatility=_optional_greek(leg, "iv", index),
        )
        return StrategyLeg(
            option_type=leg["type"],
            strike=strike,
            action=leg["action"],
            quantity=int(quantity),
            premium=premium,
            greeks=greeks,
        )

    @classmethod
    def from_payload(cls, payload: Any) -> "StrategyAnalysisRequest":
        """
        Build a request from a decoded JSON body.

        Expected shape::

            {
                "legs": [{"strike": 55, "type": "call", "action": "buy",
                          "quantity": 1, "premium": 2.5, "delta": 0.45}],
                "underlyingPrice": 52,
                "daysToExpiry": 30,
                "targetPrices": [50, 60],
                "referencePrice": 97000
            }

        Raises:
            StrategyValidationError: On the first malformed field
        """
        if not isinstance(payload, dict):
            raise StrategyValidationError("Request body must be a JSON object")

        raw_legs = payload.get("legs")
        if not isinstance(raw_legs, list) or not raw_legs:
            raise StrategyValidationError("At least one leg is required", field="legs")
        legs = [cls.parse_leg(leg, index) for index, leg in enumerate(raw_legs)]

        underlying_price = _number(payload.get("underlyingPrice"))
        if underlying_price is None or underlying_price <= 0:
            raise StrategyValidationError(
                "Valid underlyingPrice is required", field="underlyingPrice"
            )

        days_to_expiry = _number(payload.get("daysToExpiry"))
        if days_to_expiry is None or days_to_expiry < 0:
            raise StrategyValidationError("Valid daysToExpiry is required", field="daysToExpiry")

        raw_targets = payload.get("targetPrices") or []
        if not isinstance(raw_targets, list):
            raise StrategyValidationError("targetPrices must be a list", field="targetPrices")
        target_prices = []
        for raw in raw_targets:
            price = _number(raw)
            if price is None or price < 0:
                raise StrategyValidationError(
                    "Target prices must be non-negative numbers", field="targetPrices"
                )
            target_prices.append(price)

        reference_price = None
        if payload.get("referencePrice") is not None:
            reference_price = _number(payload["referencePrice"])
            if reference_price is None or reference_price <= 0:
                raise StrategyValidationError(
                    "Reference price must be a positive number", field="referencePrice"
                )

        return cls(
            legs=legs,
            underlying_price=underlying_price,
            days_to_expiry=int(days_to_expiry),
            target_prices=target_prices,
            reference_price=reference_price,
        )
