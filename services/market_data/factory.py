"""
Process-wide accessors for the quote provider and chain service.

The chain service owns the chain cache, so one instance per process lets
HTTP requests and management commands share cached chains.
"""

from django.conf import settings

from services.core.cache import ExpiringCache
from services.core.constants import OPTION_CHAIN_CACHE_TTL
from services.market_data.option_chains import OptionChainService
from services.market_data.polygon import PolygonOptionsClient
from services.market_data.providers import QuoteProvider

_chain_service: OptionChainService | None = None


def get_quote_provider() -> QuoteProvider:
    return PolygonOptionsClient()


def get_option_chain_service() -> OptionChainService:
    """Shared OptionChainService backed by the configured quote provider."""
    global _chain_service
    if _chain_service is None:
        ttl = getattr(settings, "OPTION_CHAIN_CACHE_TTL", OPTION_CHAIN_CACHE_TTL)
        _chain_service = OptionChainService(
            provider=get_quote_provider(),
            chain_cache=ExpiringCache(ttl, name="option_chain"),
        )
    return _chain_service


def reset_option_chain_service() -> None:
    """Drop the shared service and its caches (used by tests)."""
    global _chain_service
    if _chain_service is not None:
        _chain_service.clear_cache()
    _chain_service = None
