"""
Quote provider interface and the option chain record it returns.

Services depend on the QuoteProvider protocol rather than a concrete HTTP
client, so tests and alternative data vendors can be swapped in.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Protocol

from django.utils import timezone

from services.instruments.expiration import days_to_expiration
from services.strategies.core.primitives import OptionContract
from services.strategies.core.types import OptionType


@dataclass(frozen=True)
class OptionChain:
    """
    All quoted contracts for one (underlying, expiration) pair.

    Attributes:
        underlying: Underlying symbol
        expiration: Expiration shared by every contract
        underlying_price: Last known underlying price, if the provider had one
        contracts: Quoted contracts, calls and puts mixed
        fetched_at: When the provider returned this chain
    """

    underlying: str
    expiration: date
    underlying_price: Decimal | None
    contracts: tuple[OptionContract, ...]
    fetched_at: datetime = field(default_factory=timezone.now)

    @property
    def calls(self) -> list[OptionContract]:
        return sorted(
            (c for c in self.contracts if c.option_type == OptionType.CALL),
            key=lambda c: c.strike,
        )

    @property
    def puts(self) -> list[OptionContract]:
        return sorted(
            (c for c in self.contracts if c.option_type == OptionType.PUT),
            key=lambda c: c.strike,
        )

    @property
    def strikes(self) -> list[Decimal]:
        return sorted({c.strike for c in self.contracts})

    @property
    def days_to_expiry(self) -> int:
        return days_to_expiration(self.expiration)

    def find_contract(self, strike: Decimal, option_type: OptionType) -> OptionContract | None:
        """Contract with exactly this strike and type, or None."""
        for contract in self.contracts:
            if contract.option_type == option_type and contract.strike == strike:
                return contract
        return None


class QuoteProvider(Protocol):
    """
    Quote and Greeks provider.

    Implementations return None when the provider has no data for the
    request, and raise ProviderError or ConfigurationError when the request
    itself fails.
    """

    name: str

    async def fetch_chain(self, underlying: str, expiration: date) -> OptionChain | None:
        """
        Fetch every contract for one underlying and expiration.

        Args:
            underlying: Underlying symbol (e.g., "IBIT")
            expiration: Expiration date

        Returns:
            OptionChain, or None if the provider has no such chain
        """
        ...

    async def fetch_expirations(self, underlying: str) -> list[date] | None:
        """
        Fetch the listed, unexpired expirations for an underlying.

        Returns:
            Sorted expiration dates, or None if the underlying has no options
        """
        ...
