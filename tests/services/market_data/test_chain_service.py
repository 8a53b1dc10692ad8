"""Tests for OptionChainService caching and error handling."""

from datetime import date

import pytest

from services.core.cache import ExpiringCache
from services.core.exceptions import LookupMissError, MissingCredentialsError, ProviderError
from services.instruments.occ import parse_symbol
from services.market_data.factory import get_option_chain_service, reset_option_chain_service
from services.market_data.option_chains import OptionChainService
from services.strategies.core.types import OptionType

IBIT_EXPIRATION = date(2025, 2, 21)


@pytest.mark.asyncio
class TestGetChain:
    async def test_second_lookup_is_served_from_cache(
        self, chain_service, mock_quote_provider, make_chain, make_contract
    ):
        chain = make_chain([make_contract()])
        mock_quote_provider.fetch_chain.return_value = chain

        first = await chain_service.get_chain("IBIT", IBIT_EXPIRATION)
        second = await chain_service.get_chain("IBIT", IBIT_EXPIRATION)

        assert first is chain
        assert second is chain
        mock_quote_provider.fetch_chain.assert_awaited_once_with("IBIT", IBIT_EXPIRATION)

    async def test_expired_entry_is_refetched(
        self, mock_quote_provider, make_chain, make_contract, fake_clock
    ):
        service = OptionChainService(
            mock_quote_provider, chain_cache=ExpiringCache(300, clock=fake_clock)
        )
        mock_quote_provider.fetch_chain.return_value = make_chain([make_contract()])

        await service.get_chain("IBIT", IBIT_EXPIRATION)
        fake_clock.advance(301)
        await service.get_chain("IBIT", IBIT_EXPIRATION)

        assert mock_quote_provider.fetch_chain.await_count == 2

    async def test_missing_chain_is_not_cached(self, chain_service, mock_quote_provider):
        mock_quote_provider.fetch_chain.return_value = None

        assert await chain_service.get_chain("IBIT", IBIT_EXPIRATION) is None
        assert await chain_service.get_chain("IBIT", IBIT_EXPIRATION) is None
        assert mock_quote_provider.fetch_chain.await_count == 2

    async def test_empty_chain_returns_none(self, chain_service, mock_quote_provider, make_chain):
        mock_quote_provider.fetch_chain.return_value = make_chain([])

        assert await chain_service.get_chain("IBIT", IBIT_EXPIRATION) is None
        assert len(chain_service.chain_cache) == 0

    async def test_unexpected_exception_becomes_provider_error(
        self, chain_service, mock_quote_provider
    ):
        mock_quote_provider.fetch_chain.side_effect = RuntimeError("socket closed")

        with pytest.raises(ProviderError) as exc_info:
            await chain_service.get_chain("IBIT", IBIT_EXPIRATION)

        assert exc_info.value.provider == "mock"
        assert "socket closed" in str(exc_info.value)

    async def test_typed_errors_propagate_unchanged(self, chain_service, mock_quote_provider):
        error = MissingCredentialsError(provider="Polygon", setting="POLYGON_API_KEY")
        mock_quote_provider.fetch_chain.side_effect = error

        with pytest.raises(MissingCredentialsError) as exc_info:
            await chain_service.get_chain("IBIT", IBIT_EXPIRATION)

        assert exc_info.value is error


@pytest.mark.asyncio
class TestGetExpirations:
    async def test_sorted_and_cached(self, chain_service, mock_quote_provider):
        mock_quote_provider.fetch_expirations.return_value = [
            date(2025, 3, 21),
            date(2025, 2, 21),
        ]

        first = await chain_service.get_expirations("IBIT")
        second = await chain_service.get_expirations("IBIT")

        assert first == [date(2025, 2, 21), date(2025, 3, 21)]
        assert second == first
        mock_quote_provider.fetch_expirations.assert_awaited_once()

    async def test_no_expirations(self, chain_service, mock_quote_provider):
        mock_quote_provider.fetch_expirations.return_value = []

        assert await chain_service.get_expirations("ZZZZ") is None


@pytest.mark.asyncio
class TestGetContract:
    async def test_matching_contract(
        self, chain_service, mock_quote_provider, make_chain, make_contract
    ):
        contract = make_contract()
        mock_quote_provider.fetch_chain.return_value = make_chain([contract])

        found = await chain_service.get_contract(contract.identity)

        assert found is contract

    async def test_missing_strike_raises_lookup_miss(
        self, chain_service, mock_quote_provider, make_chain, make_contract
    ):
        mock_quote_provider.fetch_chain.return_value = make_chain([make_contract()])
        identity = parse_symbol("IBIT  250221C00070000")

        with pytest.raises(LookupMissError) as exc_info:
            await chain_service.get_contract(identity)

        assert exc_info.value.symbol == "IBIT  250221C00070000"
        assert "IBIT 2025-02-21 chain" in str(exc_info.value)

    async def test_missing_chain_raises_lookup_miss(self, chain_service):
        identity = parse_symbol("ZZZZ  250221P00010000")

        with pytest.raises(LookupMissError, match="no chain for this expiration"):
            await chain_service.get_contract(identity)


class TestOptionChainRecord:
    def test_calls_and_puts_sorted_by_strike(self, make_chain, make_contract):
        chain = make_chain(
            [
                make_contract(strike="60"),
                make_contract(option_type=OptionType.PUT, strike="50"),
                make_contract(strike="55"),
            ]
        )

        assert [c.strike for c in chain.calls] == [55, 60]
        assert [c.strike for c in chain.puts] == [50]
        assert chain.strikes == [50, 55, 60]

    def test_find_contract_requires_exact_type(self, make_chain, make_contract):
        chain = make_chain([make_contract(strike="55")])

        assert chain.find_contract(chain.strikes[0], OptionType.CALL) is not None
        assert chain.find_contract(chain.strikes[0], OptionType.PUT) is None


class TestSharedService:
    def test_factory_returns_one_instance_until_reset(self):
        first = get_option_chain_service()

        assert get_option_chain_service() is first

        reset_option_chain_service()

        assert get_option_chain_service() is not first

    def test_factory_uses_configured_chain_ttl(self, settings):
        settings.OPTION_CHAIN_CACHE_TTL = 7

        service = get_option_chain_service()

        assert service.chain_cache.ttl_seconds == 7


class TestCacheInjection:
    def test_empty_injected_caches_are_kept(self, mock_quote_provider, fake_clock):
        chain_cache = ExpiringCache(5, clock=fake_clock, name="injected")
        expiration_cache = ExpiringCache(60, clock=fake_clock, name="injected_expirations")

        service = OptionChainService(
            mock_quote_provider, chain_cache=chain_cache, expiration_cache=expiration_cache
        )

        assert service.chain_cache is chain_cache
        assert service.expiration_cache is expiration_cache

    def test_default_caches_use_category_ttls(self, mock_quote_provider):
        service = OptionChainService(mock_quote_provider)

        assert service.chain_cache.ttl_seconds == 300
        assert service.expiration_cache.ttl_seconds == 86400
