"""
Custody provider interface and the Clear Street client.

The custodian is the source of truth for holdings. ``fetch_raw_positions``
returns RawPosition records; everything else about a position is derived
by the enrichment pipeline.
"""

import time
from dataclasses import dataclass
from typing import Protocol

from django.conf import settings

import httpx

from services.core.constants import API_TIMEOUT, API_TIMEOUT_SHORT, TOKEN_REFRESH_BUFFER
from services.core.exceptions import MissingCredentialsError, ProviderError
from services.core.logging import get_logger
from services.core.utils.decimal_utils import decimal_or_zero, parse_decimal
from services.positions.models import RawPosition

logger = get_logger(__name__)

PROVIDER_NAME = "clear_street"

# Non-position lines the custodian reports alongside holdings
CASH_SYMBOLS = frozenset({"Cash - USD"})


class CustodyProvider(Protocol):
    """Source of raw holdings."""

    name: str

    async def fetch_raw_positions(self) -> list[RawPosition]:
        """
        Fetch every open position.

        Raises:
            ConfigurationError: Credentials are missing
            ProviderError: The custodian could not be reached or returned an error
        """
        ...


@dataclass
class ClearStreetConfig:
    client_id: str | None
    client_secret: str | None
    account_id: str | None
    token_url: str
    api_base_url: str
    audience: str


def get_clear_street_config() -> ClearStreetConfig:
    cfg = getattr(settings, "CLEAR_STREET_CONFIG", {})
    return ClearStreetConfig(
        client_id=cfg.get("CLIENT_ID") or None,
        client_secret=cfg.get("CLIENT_SECRET") or None,
        account_id=cfg.get("ACCOUNT_ID") or None,
        token_url=cfg.get("TOKEN_URL", "https://auth.clearstreet.io/oauth/token"),
        api_base_url=cfg.get("API_BASE_URL", "https://api.clearstreet.io/studio/v2"),
        audience=cfg.get("AUDIENCE", "https://api.clearstreet.io"),
    )


def parse_pnl_detail(item: dict, default_account_id: str) -> RawPosition | None:
    """
    Convert one ``/pnl-details`` entry into a RawPosition.

    ``sod_price`` is the custodian's mark-to-market cost basis and ``price``
    its current mark. Cash lines, zero quantities and entries without a
    numeric quantity are skipped.
    """
    symbol = (item.get("symbol") or "").strip()
    if not symbol or symbol in CASH_SYMBOLS or item.get("underlier") in CASH_SYMBOLS:
        return None
    quantity = parse_decimal(item.get("quantity"))
    if quantity is None or quantity == 0:
        return None

    average_cost = parse_decimal(item.get("sod_price"))
    market_price = parse_decimal(item.get("price"))
    return RawPosition(
        account_id=str(item.get("account_id") or default_account_id),
        symbol=symbol,
        quantity=quantity,
        average_cost=average_cost if average_cost is not None else decimal_or_zero(market_price),
        account_number=item.get("account_number"),
        market_price=market_price,
    )


class ClearStreetCustodyClient:
    """
    Clear Street Studio API client (client-credentials OAuth).

    The access token is cached on the instance and refreshed once it is
    within TOKEN_REFRESH_BUFFER seconds of expiring.
    """

    name = PROVIDER_NAME

    def __init__(
        self,
        config: ClearStreetConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        clock=time.monotonic,
    ) -> None:
        self.config = config or get_clear_street_config()
        self._transport = transport
        self._clock = clock
        self._token: str | None = None
        self._token_expires_at = 0.0

    def _require_config(self) -> None:
        if not self.config.client_id or not self.config.client_secret:
            raise MissingCredentialsError(
                provider="Clear Street",
                setting="CLEAR_STREET_CLIENT_ID/CLEAR_STREET_CLIENT_SECRET",
            )
        if not self.config.account_id:
            raise MissingCredentialsError(
                provider="Clear Street", setting="CLEAR_STREET_ACCOUNT_ID"
            )

    async def _get_access_token(self, client: httpx.AsyncClient) -> str:
        if self._token and self._token_expires_at > self._clock() + TOKEN_REFRESH_BUFFER:
            return self._token

        payload = {
            "grant_type": "client_credentials",
            "client_id": self.config.client_id,
            "client_secret": self.config.client_secret,
            "audience": self.config.audience,
        }
        try:
            response = await client.post(
                self.config.token_url, json=payload, timeout=API_TIMEOUT_SHORT
            )
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            raise ProviderError(
                PROVIDER_NAME,
                reason=f"Token request rejected: {e.response.text[:200]}",
                status_code=e.response.status_code,
            ) from e
        except httpx.RequestError as e:
            raise ProviderError(PROVIDER_NAME, reason=f"Network error: {e!s}") from e
        except ValueError as e:
            raise ProviderError(PROVIDER_NAME, reason=f"Invalid token response: {e!s}") from e

        token = data.get("access_token")
        if not token:
            raise ProviderError(PROVIDER_NAME, reason="Token response missing access_token")
        self._token = token
        self._token_expires_at = self._clock() + float(data.get("expires_in") or 0)
        logger.debug("Obtained Clear Street access token")
        return token

    async def fetch_raw_positions(self) -> list[RawPosition]:
        self._require_config()
        account_id = self.config.account_id
        url = f"{self.config.api_base_url}/accounts/{account_id}/pnl-details"

        async with httpx.AsyncClient(timeout=API_TIMEOUT, transport=self._transport) as client:
            token = await self._get_access_token(client)
            try:
                response = await client.get(
                    url,
                    headers={"Authorization": f"Bearer {token}", "Accept": "application/json"},
                )
                response.raise_for_status()
                data = response.json()
            except httpx.HTTPStatusError as e:
                raise ProviderError(
                    PROVIDER_NAME,
                    reason=f"P&L details request failed: {e.response.text[:200]}",
                    status_code=e.response.status_code,
                ) from e
            except httpx.RequestError as e:
                raise ProviderError(PROVIDER_NAME, reason=f"Network error: {e!s}") from e
            except ValueError as e:
                raise ProviderError(PROVIDER_NAME, reason=f"Invalid JSON response: {e!s}") from e

        positions = []
        for item in data.get("data") or []:
            position = parse_pnl_detail(item, account_id)
            if position is not None:
                positions.append(position)

        logger.info(f"Fetched {len(positions)} positions from Clear Street account {account_id}")
        return positions


def get_custody_provider() -> CustodyProvider:
    return ClearStreetCustodyClient()
