"""Option chain service: cache-checked access to the quote provider."""

from datetime import date

from services.core.cache import CacheManager, CacheTTL, ExpiringCache
from services.core.exceptions import ConfigurationError, LookupMissError, ProviderError
from services.core.logging import get_logger
from services.market_data.providers import OptionChain, QuoteProvider
from services.strategies.core.primitives import OptionContract, OptionIdentity

logger = get_logger(__name__)


class OptionChainService:
    """
    Fetches option chains and expirations, caching successful responses.

    Each chain is cached under its (underlying, expiration) key so repeated
    enrichment passes within the TTL cost no provider calls. Empty or
    not-found responses are never cached.

    Args:
        provider: Quote provider implementation
        chain_cache: Cache for chains; a fresh ExpiringCache when omitted
        expiration_cache: Cache for expiration lists; a fresh ExpiringCache when omitted
    """

    def __init__(
        self,
        provider: QuoteProvider,
        chain_cache: ExpiringCache | None = None,
        expiration_cache: ExpiringCache | None = None,
    ) -> None:
        self.provider = provider
        # ExpiringCache defines __len__, so an empty cache is falsy
        if chain_cache is None:
            chain_cache = ExpiringCache(CacheTTL.OPTION_CHAIN, name="option_chain")
        if expiration_cache is None:
            expiration_cache = ExpiringCache(CacheTTL.EXPIRATION_LIST, name="expirations")
        self.chain_cache = chain_cache
        self.expiration_cache = expiration_cache

    @property
    def provider_name(self) -> str:
        return getattr(self.provider, "name", type(self.provider).__name__)

    def clear_cache(self) -> None:
        self.chain_cache.clear()
        self.expiration_cache.clear()

    async def get_chain(self, underlying: str, expiration: date) -> OptionChain | None:
        """
        Return the chain for one underlying and expiration.

        Returns:
            OptionChain, or None when the provider has no such chain

        Raises:
            ConfigurationError: Provider credentials are missing
            ProviderError: The provider request failed
        """
        cache_key = CacheManager.option_chain_with_expiration(underlying, expiration)
        cached = self.chain_cache.get(cache_key)
        if cached is not None:
            logger.debug(f"Using cached option chain for {underlying} {expiration}")
            return cached

        try:
            chain = await self.provider.fetch_chain(underlying, expiration)
        except (ConfigurationError, ProviderError):
            raise
        except Exception as e:
            logger.error(
                f"Error fetching option chain for {underlying} {expiration}: {e}", exc_info=True
            )
            raise ProviderError(self.provider_name, reason=str(e) or type(e).__name__) from e

        if chain is not None and chain.contracts:
            self.chain_cache.put(cache_key, chain)
            return chain
        return None

    async def get_contract(self, identity: OptionIdentity) -> OptionContract:
        """
        Return the quoted contract for one option identity.

        Raises:
            LookupMissError: No chain for the expiration, or no contract at that strike and type
            ConfigurationError: Provider credentials are missing
            ProviderError: The provider request failed
        """
        chain = await self.get_chain(identity.underlying, identity.expiration)
        if chain is None:
            raise LookupMissError(
                identity.occ_symbol,
                identity.underlying,
                identity.expiration,
                reason="The provider has no chain for this expiration.",
            )
        contract = chain.find_contract(identity.strike, identity.option_type)
        if contract is None:
            raise LookupMissError(identity.occ_symbol, identity.underlying, identity.expiration)
        return contract

    async def get_expirations(self, underlying: str) -> list[date] | None:
        """
        Return the sorted listed expirations for an underlying.

        Raises:
            ConfigurationError: Provider credentials are missing
            ProviderError: The provider request failed
        """
        cache_key = CacheManager.option_chain_expirations(underlying)
        cached = self.expiration_cache.get(cache_key)
        if cached is not None:
            logger.debug(f"Using cached expirations for {underlying}")
            return cached

        try:
            expirations = await self.provider.fetch_expirations(underlying)
        except (ConfigurationError, ProviderError):
            raise
        except Exception as e:
            logger.error(f"Error fetching expirations for {underlying}: {e}", exc_info=True)
            raise ProviderError(self.provider_name, reason=str(e) or type(e).__name__) from e

        if expirations:
            expirations = sorted(expirations)
            self.expiration_cache.put(cache_key, expirations)
            return expirations
        return None
