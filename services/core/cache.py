"""
Cache TTLs, cache keys and the in-process expiring cache.

This module provides:
1. Cache TTL configuration (CacheTTL class)
2. Cache key management (CacheManager class)
3. A small TTL cache with lazy expiry (ExpiringCache class)

All cache keys use colon (:) as separators for consistency.
"""

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date
from typing import Any


class CacheTTL:
    """
    Centralized cache TTL configuration.

    Quote providers are rate- and cost-limited, so chain lookups are cached
    for a few minutes and reference data for a day.
    """

    # NEAR-REAL-TIME (1-5 minutes)
    OPTION_CHAIN = 300  # Chains update periodically

    # HOURLY
    UNDERLYING_PRICE = 3600  # Previous close is fixed for the session

    # DAILY
    EXPIRATION_LIST = 86400  # Expirations don't change intraday


class CacheManager:
    """Centralized cache key management."""

    OPTION_CHAIN_PREFIX = "option_chain"
    UNDERLYING_PREFIX = "underlying"

    @staticmethod
    def _sanitize_symbol(symbol: str) -> str:
        """
        Sanitize symbol for cache key compatibility.

        OCC option symbols like 'QQQ   251114C00606000' become 'QQQ___251114C00606000'.
        """
        return symbol.replace(" ", "_")

    @staticmethod
    def option_chain_with_expiration(symbol: str, expiration: date) -> str:
        """
        Cache key for option chain with specific expiration.

        Includes the current date so a chain cached before midnight is never
        served with yesterday's days-to-expiry.
        """
        today = date.today()
        sanitized = CacheManager._sanitize_symbol(symbol.upper())
        return f"{CacheManager.OPTION_CHAIN_PREFIX}:{sanitized}:{expiration}:{today}"

    @staticmethod
    def option_chain_expirations(symbol: str) -> str:
        """Cache key for available expiration dates."""
        sanitized = CacheManager._sanitize_symbol(symbol.upper())
        return f"{CacheManager.OPTION_CHAIN_PREFIX}:expirations:{sanitized}"

    @staticmethod
    def underlying_price(symbol: str) -> str:
        """Cache key for the previous-close underlying price, scoped to today."""
        sanitized = CacheManager._sanitize_symbol(symbol.upper())
        return f"{CacheManager.UNDERLYING_PREFIX}:price:{sanitized}:{date.today()}"


@dataclass(slots=True)
class _CacheEntry:
    value: Any
    expires_at: float


class ExpiringCache:
    """
    Thread-safe in-process cache with a fixed TTL and lazy expiry.

    Entries are never evicted in the background. A read of an entry past its
    expiry is a miss; the stale entry stays in place until it is overwritten
    by ``put`` or dropped by ``clear``.

    Args:
        ttl_seconds: Lifetime of each entry
        clock: Returns the current time in seconds; tests inject a fake clock
        name: Label used in logs and ``repr``
    """

    def __init__(
        self,
        ttl_seconds: float,
        clock: Callable[[], float] | None = None,
        name: str = "cache",
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds}")
        self.ttl_seconds = ttl_seconds
        self.name = name
        self._clock = clock or time.monotonic
        self._entries: dict[str, _CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Any | None:
        """Return the cached value, or None when absent or expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._clock() >= entry.expires_at:
                return None
            return entry.value

    def put(self, key: str, value: Any) -> None:
        """Insert or replace ``key``, restarting its TTL."""
        with self._lock:
            self._entries[key] = _CacheEntry(
                value=value, expires_at=self._clock() + self.ttl_seconds
            )

    def clear(self) -> None:
        """Drop every entry, fresh or stale."""
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        # Counts stale entries too
        return len(self._entries)

    def __repr__(self) -> str:
        return f"ExpiringCache(name={self.name!r}, ttl={self.ttl_seconds}, entries={len(self)})"
