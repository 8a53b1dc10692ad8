"""Tests for core type definitions and option primitives."""

from datetime import date
from decimal import Decimal

import pytest

from services.strategies.core import EquityIdentity, OptionContract, OptionIdentity
from services.strategies.core.types import Action, OptionType


class TestOptionType:
    """Test OptionType enum."""

    def test_values(self):
        assert OptionType.CALL.value == "call"
        assert OptionType.PUT.value == "put"

    def test_occ_codes(self):
        assert OptionType.CALL.occ_code == "C"
        assert OptionType.PUT.occ_code == "P"
        assert OptionType.from_occ_code("C") is OptionType.CALL
        assert OptionType.from_occ_code("P") is OptionType.PUT

    def test_invalid_occ_code(self):
        with pytest.raises(ValueError, match="Invalid OCC option type code"):
            OptionType.from_occ_code("X")

    def test_full_name(self):
        assert OptionType.CALL.full_name == "Call"
        assert OptionType.PUT.full_name == "Put"

    def test_constructs_from_string(self):
        assert OptionType("put") is OptionType.PUT


class TestAction:
    """Test Action enum."""

    def test_sign(self):
        assert Action.BUY.sign == 1
        assert Action.SELL.sign == -1

    def test_is_string_enum(self):
        assert Action.SELL == "sell"


class TestOptionContract:
    """Test OptionContract quote helpers."""

    @pytest.fixture
    def identity(self) -> OptionIdentity:
        return OptionIdentity(
            underlying="SPY",
            expiration=date(2025, 1, 17),
            option_type=OptionType.PUT,
            strike=Decimal("580"),
        )

    def test_build_mid_from_bid_ask(self):
        assert OptionContract.build_mid(Decimal("1.00"), Decimal("1.50"), None) == Decimal("1.25")

    def test_build_mid_falls_back_to_last(self):
        assert OptionContract.build_mid(None, Decimal("1.50"), Decimal("1.40")) == Decimal("1.40")
        assert OptionContract.build_mid(None, None, None) is None

    def test_mark_prefers_mid(self, identity):
        contract = OptionContract(identity=identity, mid=Decimal("2.10"), last=Decimal("2.00"))

        assert contract.mark == Decimal("2.10")

    def test_mark_uses_last_without_mid(self, identity):
        contract = OptionContract(identity=identity, last=Decimal("2.00"))

        assert contract.mark == Decimal("2.00")

    def test_delegates_identity_fields(self, identity):
        contract = OptionContract(identity=identity)

        assert contract.strike == Decimal("580")
        assert contract.option_type is OptionType.PUT
        assert contract.volume == 0
        assert contract.delta is None

    def test_is_immutable(self, identity):
        contract = OptionContract(identity=identity)

        with pytest.raises(AttributeError):
            contract.bid = Decimal("1")


class TestEquityIdentity:
    def test_equality(self):
        assert EquityIdentity("MSFT") == EquityIdentity("MSFT")
        assert EquityIdentity("MSFT") != EquityIdentity("AAPL")
