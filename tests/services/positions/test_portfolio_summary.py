"""Tests for PortfolioSummary reduction."""

import itertools
from decimal import Decimal

import pytest

from services.instruments.occ import parse_symbol
from services.positions.enrichment import (
    enrich_equity,
    enrich_matched_option,
    enrich_unmatched_option,
)
from services.positions.models import EnrichmentResult
from services.positions.summary import PortfolioSummary, summarize_positions
from services.strategies.core.types import OptionType


@pytest.fixture
def positions(make_position, make_contract):
    call = make_position("IBIT  250221C00055000", quantity="2", average_cost="2.50")
    put = make_position("IBIT  250221P00050000", quantity="-1", average_cost="1.50")
    orphan = make_position("IBIT  250221C00070000", average_cost="0.40")
    shares = make_position("IBIT", quantity="100", average_cost="48", market_price="52.10")
    put_contract = make_contract(
        option_type=OptionType.PUT, strike="50", bid="1.10", ask="1.30", delta="-0.30"
    )
    return [
        enrich_matched_option(call, parse_symbol(call.symbol), make_contract()),
        enrich_matched_option(put, parse_symbol(put.symbol), put_contract),
        enrich_unmatched_option(orphan, parse_symbol(orphan.symbol)),
        enrich_equity(shares, parse_symbol(shares.symbol)),
    ]


class TestPortfolioSummary:
    def test_totals(self, positions):
        summary = summarize_positions(positions)

        assert summary.total_positions == 4
        assert summary.options_count == 3
        assert summary.equities_count == 1
        assert summary.unmatched_count == 1
        # 700 - 120 + 40 + 5210
        assert summary.total_market_value == Decimal("5830")
        assert summary.total_unrealized_pnl == Decimal("640")
        # 90 + 30 + 0 + 100
        assert summary.total_delta == Decimal("220")

    def test_empty_portfolio_is_identity(self):
        assert summarize_positions([]) == PortfolioSummary()

    def test_order_does_not_matter(self, positions):
        expected = summarize_positions(positions)

        for permutation in itertools.permutations(positions):
            assert summarize_positions(permutation) == expected

    def test_grouping_does_not_matter(self, positions):
        expected = summarize_positions(positions)

        for split in range(len(positions) + 1):
            left = summarize_positions(positions[:split])
            right = summarize_positions(positions[split:])
            assert left.merge(right) == expected
            assert right + left == expected

    def test_identity_element(self, positions):
        summary = summarize_positions(positions)

        assert summary.merge(PortfolioSummary()) == summary
        assert PortfolioSummary().merge(summary) == summary

    def test_result_summary_property(self, positions):
        result = EnrichmentResult(positions=positions)

        assert result.summary == summarize_positions(positions)
