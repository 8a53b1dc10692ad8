"""
Reference-unit conversion for strategy analysis.

Some underlyings are proxies for another asset (a spot bitcoin ETF tracks
BTC, for example). Given the current price of both, prices and dollar
amounts can be restated in the reference asset's terms. This is a pure unit
transform: no P&L is recalculated.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class ReferenceConversion:
    """
    Ratio conversion between the underlying and a reference asset.

    Attributes:
        underlying_price: Current underlying price (> 0)
        reference_price: Current reference asset price (> 0)
    """

    underlying_price: float
    reference_price: float

    def __post_init__(self):
        if self.underlying_price <= 0 or self.reference_price <= 0:
            raise ValueError("Conversion prices must be positive")

    @property
    def ratio(self) -> float:
        """Underlying price per unit of reference price."""
        return self.underlying_price / self.reference_price

    def price_to_reference(self, price: float) -> float:
        """Reference price at which the underlying would trade at ``price``."""
        return price / self.ratio

    def amount_to_reference(self, amount: float) -> float:
        """Dollar amount expressed in units of the reference asset."""
        return amount / self.reference_price
