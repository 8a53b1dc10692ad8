"""
Core strategy primitives.

Exports:
    Type Aliases:
        Strike, Premium, Quantity

    Enums:
        OptionType, Action

    Core Classes:
        OptionIdentity - Contract identity (underlying, expiration, type, strike)
        EquityIdentity - Identity for non-option symbols
        OptionContract - Quoted market state for a contract
        LegGreeks - Per-contract Greeks snapshot
        StrategyLeg - Single leg of an options strategy

Usage:
    from services.strategies.core import Action, OptionType, StrategyLeg

    long_call = StrategyLeg(
        option_type=OptionType.CALL, strike=55, action=Action.BUY, quantity=1, premium=2.5
    )
"""

from services.strategies.core.legs import LegGreeks, StrategyLeg
from services.strategies.core.primitives import EquityIdentity, OptionContract, OptionIdentity
from services.strategies.core.types import Action, OptionType, Premium, Quantity, Strike

__all__ = [
    "Action",
    "EquityIdentity",
    "LegGreeks",
    "OptionContract",
    "OptionIdentity",
    "OptionType",
    "Premium",
    "Quantity",
    "StrategyLeg",
    "Strike",
]
