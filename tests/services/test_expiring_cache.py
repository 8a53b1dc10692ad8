"""Tests for ExpiringCache and cache key helpers."""

from datetime import date
from unittest.mock import patch

import pytest

from services.core.cache import CacheManager, CacheTTL, ExpiringCache


class TestExpiringCache:
    def test_hit_before_expiry(self, fake_clock):
        cache = ExpiringCache(300, clock=fake_clock)
        cache.put("k", "chain")

        fake_clock.advance(299)

        assert cache.get("k") == "chain"

    def test_miss_at_expiry_boundary(self, fake_clock):
        cache = ExpiringCache(300, clock=fake_clock)
        cache.put("k", "chain")

        fake_clock.advance(300)

        assert cache.get("k") is None

    def test_stale_entries_are_not_evicted(self, fake_clock):
        cache = ExpiringCache(10, clock=fake_clock)
        cache.put("a", 1)
        cache.put("b", 2)

        fake_clock.advance(60)

        assert cache.get("a") is None
        assert len(cache) == 2

    def test_put_restarts_ttl(self, fake_clock):
        cache = ExpiringCache(10, clock=fake_clock)
        cache.put("k", "old")
        fake_clock.advance(8)
        cache.put("k", "new")
        fake_clock.advance(8)

        assert cache.get("k") == "new"

    def test_clear(self, fake_clock):
        cache = ExpiringCache(10, clock=fake_clock)
        cache.put("k", 1)

        cache.clear()

        assert cache.get("k") is None
        assert len(cache) == 0

    def test_missing_key(self):
        assert ExpiringCache(10).get("absent") is None

    @pytest.mark.parametrize("ttl", [0, -5])
    def test_ttl_must_be_positive(self, ttl):
        with pytest.raises(ValueError):
            ExpiringCache(ttl)

    def test_repr(self):
        cache = ExpiringCache(300, name="option_chain")

        assert repr(cache) == "ExpiringCache(name='option_chain', ttl=300, entries=0)"


class TestCacheManager:
    def test_chain_key_includes_today(self):
        with patch("services.core.cache.date") as mock_date:
            mock_date.today.return_value = date(2025, 2, 14)
            key = CacheManager.option_chain_with_expiration("ibit", date(2025, 2, 21))

        assert key == "option_chain:IBIT:2025-02-21:2025-02-14"

    def test_symbols_are_sanitized(self):
        assert CacheManager.option_chain_expirations("brk b") == "option_chain:expirations:BRK_B"

    def test_underlying_price_key_is_scoped_to_today(self):
        with patch("services.core.cache.date") as mock_date:
            mock_date.today.return_value = date(2025, 2, 14)
            key = CacheManager.underlying_price("spy")

        assert key == "underlying:price:SPY:2025-02-14"


class TestCacheTTL:
    def test_previous_close_outlives_chains(self):
        assert CacheTTL.OPTION_CHAIN == 300
        assert CacheTTL.UNDERLYING_PRICE == 3600
        assert CacheTTL.EXPIRATION_LIST == 86400
