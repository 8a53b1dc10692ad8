"""
Pytest configuration and shared fixtures for DerivDesk tests.

This file provides common test fixtures and configuration that can be used
across all test modules in the project.
"""

import os
from datetime import date
from decimal import Decimal
from unittest.mock import AsyncMock

import django

import pytest

# Configure Django before any imports
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "derivdesk.settings.development")
django.setup()

from services.market_data.factory import reset_option_chain_service  # noqa: E402
from services.market_data.option_chains import OptionChainService  # noqa: E402
from services.market_data.providers import OptionChain  # noqa: E402
from services.positions.models import RawPosition  # noqa: E402
from services.strategies.core.primitives import OptionContract, OptionIdentity  # noqa: E402
from services.strategies.core.types import OptionType  # noqa: E402

IBIT_EXPIRATION = date(2025, 2, 21)


class FakeClock:
    """Manually advanced clock for cache and token expiry tests."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(autouse=True)
def reset_shared_chain_service():
    """Each test starts without the process-wide chain service or its cache."""
    reset_option_chain_service()
    yield
    reset_option_chain_service()


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def make_contract():
    """Factory for quoted contracts with sensible defaults."""

    def _make(
        underlying="IBIT",
        expiration=IBIT_EXPIRATION,
        option_type=OptionType.CALL,
        strike="55",
        bid="3.40",
        ask="3.60",
        last="3.50",
        delta="0.45",
        gamma="0.05",
        theta="-0.03",
        vega="0.08",
        iv="0.55",
    ):
        def dec(value):
            return Decimal(value) if value is not None else None

        bid_d, ask_d, last_d = dec(bid), dec(ask), dec(last)
        return OptionContract(
            identity=OptionIdentity(
                underlying=underlying,
                expiration=expiration,
                option_type=option_type,
                strike=Decimal(strike),
            ),
            bid=bid_d,
            ask=ask_d,
            last=last_d,
            mid=OptionContract.build_mid(bid_d, ask_d, last_d),
            volume=120,
            open_interest=4500,
            implied_volatility=dec(iv),
            delta=dec(delta),
            gamma=dec(gamma),
            theta=dec(theta),
            vega=dec(vega),
        )

    return _make


@pytest.fixture
def make_chain():
    """Factory for option chains built from contracts."""

    def _make(contracts, underlying="IBIT", expiration=IBIT_EXPIRATION, price="52.10"):
        return OptionChain(
            underlying=underlying,
            expiration=expiration,
            underlying_price=Decimal(price) if price is not None else None,
            contracts=tuple(contracts),
        )

    return _make


@pytest.fixture
def make_position():
    """Factory for raw custody positions."""

    def _make(symbol, quantity="1", average_cost="2.50", account_id="ACC-1", market_price=None):
        return RawPosition(
            account_id=account_id,
            symbol=symbol,
            quantity=Decimal(quantity),
            average_cost=Decimal(average_cost),
            market_price=Decimal(market_price) if market_price is not None else None,
        )

    return _make


@pytest.fixture
def mock_quote_provider():
    """Quote provider double; configure fetch_chain/fetch_expirations per test."""
    provider = AsyncMock()
    provider.name = "mock"
    provider.fetch_chain = AsyncMock(return_value=None)
    provider.fetch_expirations = AsyncMock(return_value=None)
    return provider


@pytest.fixture
def chain_service(mock_quote_provider):
    return OptionChainService(provider=mock_quote_provider)
