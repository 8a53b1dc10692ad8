"""
Polygon.io options client.

Thin httpx wrapper over the Polygon options snapshot and reference
endpoints. Greeks and implied volatility come straight from the snapshot;
nothing is modeled locally.

Endpoints used:
    /v3/snapshot/options/{underlying}      - chain snapshot with quotes and Greeks
    /v2/aggs/ticker/{underlying}/prev      - previous close for the underlying
    /v3/reference/options/contracts        - listed contracts, for expirations
"""

import asyncio
from dataclasses import dataclass
from datetime import UTC, date, datetime
from decimal import Decimal

from django.conf import settings

import httpx

from services.core.cache import CacheManager, CacheTTL, ExpiringCache
from services.core.constants import (
    API_TIMEOUT,
    POLYGON_CHAIN_PAGE_LIMIT,
    POLYGON_CONTRACTS_PAGE_LIMIT,
)
from services.core.exceptions import MissingCredentialsError, ProviderError
from services.core.logging import get_logger
from services.core.utils.decimal_utils import parse_decimal
from services.market_data.providers import OptionChain
from services.strategies.core.primitives import OptionContract, OptionIdentity
from services.strategies.core.types import OptionType

logger = get_logger(__name__)

PROVIDER_NAME = "polygon"

# Upper bound on next_url pages followed for one request
MAX_PAGES = 20


@dataclass
class PolygonConfig:
    api_key: str | None
    base_url: str
    timeout: float


def get_polygon_config() -> PolygonConfig:
    return PolygonConfig(
        api_key=getattr(settings, "POLYGON_API_KEY", None) or None,
        base_url=getattr(settings, "POLYGON_BASE_URL", "https://api.polygon.io"),
        timeout=getattr(settings, "POLYGON_TIMEOUT", API_TIMEOUT),
    )


def _parse_int(value) -> int:
    number = parse_decimal(value)
    return int(number) if number is not None else 0


def _parse_observed_at(nanoseconds) -> datetime | None:
    if not nanoseconds:
        return None
    try:
        return datetime.fromtimestamp(int(nanoseconds) / 1_000_000_000, tz=UTC)
    except (TypeError, ValueError, OverflowError, OSError):
        return None


def parse_snapshot_contract(
    underlying: str, expiration: date, snapshot: dict
) -> OptionContract | None:
    """
    Convert one snapshot result into an OptionContract.

    Returns None for entries without a usable strike or contract type, and for
    entries listed under a different expiration than the one requested.
    """
    details = snapshot.get("details") or {}
    listed_expiration = details.get("expiration_date")
    if listed_expiration is not None and listed_expiration != expiration.isoformat():
        return None
    contract_type = details.get("contract_type")
    if contract_type not in ("call", "put"):
        return None
    strike = parse_decimal(details.get("strike_price"))
    if strike is None or strike <= 0:
        return None

    quote = snapshot.get("last_quote") or {}
    trade = snapshot.get("last_trade") or {}
    day = snapshot.get("day") or {}
    greeks = snapshot.get("greeks") or {}

    bid = parse_decimal(quote.get("bid"))
    ask = parse_decimal(quote.get("ask"))
    last = parse_decimal(trade.get("price"))
    if last is None:
        last = parse_decimal(day.get("close"))

    return OptionContract(
        identity=OptionIdentity(
            underlying=underlying,
            expiration=expiration,
            option_type=OptionType(contract_type),
            strike=strike,
        ),
        bid=bid,
        ask=ask,
        last=last,
        mid=OptionContract.build_mid(bid, ask, last),
        volume=_parse_int(day.get("volume")),
        open_interest=_parse_int(snapshot.get("open_interest")),
        implied_volatility=parse_decimal(snapshot.get("implied_volatility")),
        delta=parse_decimal(greeks.get("delta")),
        gamma=parse_decimal(greeks.get("gamma")),
        theta=parse_decimal(greeks.get("theta")),
        vega=parse_decimal(greeks.get("vega")),
        observed_at=_parse_observed_at(quote.get("last_updated")),
    )


class PolygonOptionsClient:
    """
    Quote provider backed by the Polygon.io REST API.

    Args:
        config: Connection settings; read from Django settings when omitted
        transport: Optional httpx transport (tests pass ``httpx.MockTransport``)
        price_cache: Cache for previous closes; a fresh ExpiringCache when omitted
    """

    name = PROVIDER_NAME

    def __init__(
        self,
        config: PolygonConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        price_cache: ExpiringCache | None = None,
    ) -> None:
        self.config = config or get_polygon_config()
        self._transport = transport
        if price_cache is None:
            price_cache = ExpiringCache(CacheTTL.UNDERLYING_PRICE, name="underlying_price")
        self.price_cache = price_cache

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.config.base_url,
            timeout=self.config.timeout,
            transport=self._transport,
            headers={"Accept": "application/json"},
        )

    def _require_api_key(self) -> str:
        if not self.config.api_key:
            raise MissingCredentialsError(provider="Polygon", setting="POLYGON_API_KEY")
        return self.config.api_key

    async def _get_json(
        self, client: httpx.AsyncClient, url: str, params: dict | None = None
    ) -> dict | None:
        """
        GET a Polygon endpoint and decode the body.

        Returns None on 404. Other failures raise ProviderError.
        """
        params = dict(params or {})
        params["apiKey"] = self._require_api_key()
        # Merge rather than replace: next_url carries its own cursor and filters
        request_url = httpx.URL(url).copy_merge_params(params)
        try:
            response = await client.get(request_url)
            if response.status_code == 404:
                return None
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            raise ProviderError(
                PROVIDER_NAME,
                reason=e.response.text[:200] or "HTTP error",
                status_code=e.response.status_code,
            ) from e
        except httpx.RequestError as e:
            raise ProviderError(PROVIDER_NAME, reason=f"Network error: {e!s}") from e
        except ValueError as e:
            raise ProviderError(PROVIDER_NAME, reason=f"Invalid JSON response: {e!s}") from e

    async def _get_all_results(
        self, client: httpx.AsyncClient, url: str, params: dict
    ) -> list[dict] | None:
        """Collect ``results`` across ``next_url`` pages."""
        data = await self._get_json(client, url, params)
        if data is None or data.get("status") not in ("OK", "DELAYED"):
            return None

        results = list(data.get("results") or [])
        pages = 1
        next_url = data.get("next_url")
        while next_url and pages < MAX_PAGES:
            page = await self._get_json(client, next_url)
            if page is None:
                break
            results.extend(page.get("results") or [])
            next_url = page.get("next_url")
            pages += 1

        if next_url:
            logger.warning(f"Polygon pagination stopped after {pages} pages for {url}")
        return results

    async def fetch_underlying_price(self, underlying: str) -> Decimal | None:
        """Previous close for the underlying, or None when unavailable."""
        async with self._client() as client:
            return await self._fetch_underlying_price(client, underlying)

    async def _fetch_underlying_price(self, client: httpx.AsyncClient, underlying: str):
        cache_key = CacheManager.underlying_price(underlying)
        cached = self.price_cache.get(cache_key)
        if cached is not None:
            return cached

        try:
            data = await self._get_json(client, f"/v2/aggs/ticker/{underlying}/prev")
        except ProviderError as e:
            # The chain is still usable without a spot price
            logger.warning(f"Polygon previous close unavailable for {underlying}: {e}")
            return None
        if not data or data.get("status") != "OK" or not data.get("results"):
            return None
        price = parse_decimal(data["results"][0].get("c"))
        if price is not None:
            self.price_cache.put(cache_key, price)
        return price

    async def fetch_chain(self, underlying: str, expiration: date) -> OptionChain | None:
        underlying = underlying.upper()
        self._require_api_key()
        async with self._client() as client:
            price_task = asyncio.create_task(self._fetch_underlying_price(client, underlying))
            try:
                results = await self._get_all_results(
                    client,
                    f"/v3/snapshot/options/{underlying}",
                    {
                        "expiration_date": expiration.isoformat(),
                        "limit": POLYGON_CHAIN_PAGE_LIMIT,
                    },
                )
            except BaseException:
                # The previous close must not outlive the client
                price_task.cancel()
                await asyncio.gather(price_task, return_exceptions=True)
                raise
            underlying_price = await price_task

        if not results:
            logger.warning(f"Polygon: No snapshot for {underlying} {expiration}")
            return None

        contracts = []
        for snapshot in results:
            contract = parse_snapshot_contract(underlying, expiration, snapshot)
            if contract is not None:
                contracts.append(contract)

        logger.info(f"Fetched {len(contracts)} contracts for {underlying} {expiration}")
        return OptionChain(
            underlying=underlying,
            expiration=expiration,
            underlying_price=underlying_price,
            contracts=tuple(sorted(contracts, key=lambda c: (c.option_type.value, c.strike))),
        )

    async def fetch_expirations(self, underlying: str) -> list[date] | None:
        underlying = underlying.upper()
        self._require_api_key()
        async with self._client() as client:
            results = await self._get_all_results(
                client,
                "/v3/reference/options/contracts",
                {
                    "underlying_ticker": underlying,
                    "expired": "false",
                    "limit": POLYGON_CONTRACTS_PAGE_LIMIT,
                },
            )

        if not results:
            logger.warning(f"Polygon: No contracts for {underlying}")
            return None

        expirations = set()
        for contract in results:
            try:
                expirations.add(date.fromisoformat(contract.get("expiration_date", "")))
            except (TypeError, ValueError):
                continue
        return sorted(expirations) or None
