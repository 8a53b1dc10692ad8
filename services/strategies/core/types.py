"""
Core type definitions shared by the symbol codec, the strategy analyzer and
the position enrichment pipeline.

- Type aliases for numeric fields (Strike, Premium, Quantity)
- Enums for contract type and trade direction (OptionType, Action)
"""

from decimal import Decimal
from enum import Enum
from typing import TypeAlias

# Type aliases for self-documenting code
Strike: TypeAlias = Decimal
Premium: TypeAlias = float
Quantity: TypeAlias = int


class OptionType(str, Enum):
    """Option instrument type."""

    CALL = "call"
    PUT = "put"

    @property
    def occ_code(self) -> str:
        """Single-letter code used in OCC symbols."""
        return "C" if self == OptionType.CALL else "P"

    @property
    def full_name(self) -> str:
        """Return full name for display."""
        return "Call" if self == OptionType.CALL else "Put"

    @classmethod
    def from_occ_code(cls, code: str) -> "OptionType":
        if code == "C":
            return cls.CALL
        if code == "P":
            return cls.PUT
        raise ValueError(f"Invalid OCC option type code: {code!r}")


class Action(str, Enum):
    """
    Trade direction of a strategy leg.

    BUY: Long the contract, pays premium
    SELL: Short the contract, receives premium

    The same sign is applied to payoff and to Greeks everywhere, so a sold
    call always reduces aggregate delta.
    """

    BUY = "buy"
    SELL = "sell"

    @property
    def sign(self) -> int:
        """Return +1 for buy, -1 for sell."""
        return 1 if self == Action.BUY else -1
