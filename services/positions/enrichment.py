"""
Position enrichment pipeline.

Merges custody positions with live option quotes and Greeks:

1. Classify every position with the OCC symbol codec (option or equity).
2. Group options by (underlying, expiration) and fetch one chain per group,
   concurrently and bounded by a semaphore. The chain service checks its
   cache first.
3. Match each option to the contract with the same strike and type and
   derive market value, cost basis, unrealized P&L and Greek exposures.

Failures never cross the batch: a failed group, a missing contract or a
missed deadline becomes an EnrichmentError entry and every other position
is still returned.

Greek exposure is unit-less: Greek × signed quantity × multiplier. It is not
scaled by the underlying price.
"""

import asyncio
from collections import defaultdict
from collections.abc import Iterable
from datetime import date
from decimal import Decimal

from services.core.constants import (
    ENRICHMENT_MAX_CONCURRENCY,
    EQUITY_MULTIPLIER,
    OPTION_CONTRACT_MULTIPLIER,
)
from services.core.exceptions import ConfigurationError, ProviderError
from services.core.logging import get_logger
from services.core.utils.decimal_utils import decimal_or_zero
from services.instruments.occ import parse_symbol
from services.market_data.option_chains import OptionChainService
from services.market_data.providers import OptionChain
from services.positions.models import (
    EnrichedPosition,
    EnrichmentError,
    EnrichmentErrorKind,
    EnrichmentResult,
    EnrichmentStatus,
    RawPosition,
)
from services.strategies.core.primitives import EquityIdentity, OptionContract, OptionIdentity

logger = get_logger(__name__)

GroupKey = tuple[str, date]
_OPTION_MULTIPLIER = Decimal(OPTION_CONTRACT_MULTIPLIER)


def enrich_equity(raw: RawPosition, identity: EquityIdentity) -> EnrichedPosition:
    """Equity positions: multiplier 1, marked at the custodian's price."""
    price = raw.market_price if raw.market_price is not None else raw.average_cost
    market_value = price * raw.quantity * EQUITY_MULTIPLIER
    cost_basis = raw.average_cost * raw.quantity * EQUITY_MULTIPLIER
    return EnrichedPosition(
        raw=raw,
        identity=identity,
        status=EnrichmentStatus.EQUITY,
        multiplier=EQUITY_MULTIPLIER,
        market_price=price,
        market_value=market_value,
        cost_basis=cost_basis,
        unrealized_pnl=market_value - cost_basis,
        # One share carries delta 1
        delta_exposure=raw.quantity * EQUITY_MULTIPLIER,
    )


def enrich_matched_option(
    raw: RawPosition, identity: OptionIdentity, contract: OptionContract
) -> EnrichedPosition:
    """Option positions with a matched contract."""
    mark = decimal_or_zero(contract.mark)
    scale = raw.quantity * _OPTION_MULTIPLIER
    market_value = mark * scale
    cost_basis = raw.average_cost * scale
    return EnrichedPosition(
        raw=raw,
        identity=identity,
        status=EnrichmentStatus.MATCHED,
        multiplier=OPTION_CONTRACT_MULTIPLIER,
        market_price=mark,
        market_value=market_value,
        cost_basis=cost_basis,
        unrealized_pnl=market_value - cost_basis,
        contract=contract,
        delta_exposure=decimal_or_zero(contract.delta) * scale,
        gamma_exposure=decimal_or_zero(contract.gamma) * scale,
        theta_exposure=decimal_or_zero(contract.theta) * scale,
        vega_exposure=decimal_or_zero(contract.vega) * scale,
    )


def enrich_unmatched_option(raw: RawPosition, identity: OptionIdentity) -> EnrichedPosition:
    """Option positions without market data: marked at cost, no exposure."""
    cost_basis = raw.average_cost * raw.quantity * _OPTION_MULTIPLIER
    return EnrichedPosition(
        raw=raw,
        identity=identity,
        status=EnrichmentStatus.UNMATCHED,
        multiplier=OPTION_CONTRACT_MULTIPLIER,
        market_price=raw.average_cost,
        market_value=cost_basis,
        cost_basis=cost_basis,
        unrealized_pnl=Decimal("0"),
    )


class PositionEnrichmentService:
    """
    Enriches raw custody positions with quotes and Greeks.

    Args:
        chain_service: Cache-checked access to the quote provider
        max_concurrency: Maximum chain fetches in flight at once
        deadline_seconds: Overall time budget for chain fetches; None waits for all
        include_unmatched: Emit options without market data as UNMATCHED
            positions (alongside their error entries) instead of dropping them
    """

    def __init__(
        self,
        chain_service: OptionChainService,
        max_concurrency: int = ENRICHMENT_MAX_CONCURRENCY,
        deadline_seconds: float | None = None,
        include_unmatched: bool = False,
    ) -> None:
        if max_concurrency < 1:
            raise ValueError(f"max_concurrency must be at least 1, got {max_concurrency}")
        self.chain_service = chain_service
        self.max_concurrency = max_concurrency
        self.deadline_seconds = deadline_seconds
        self.include_unmatched = include_unmatched

    async def enrich(self, raw_positions: Iterable[RawPosition]) -> EnrichmentResult:
        """
        Enrich a batch of positions.

        Returns:
            EnrichmentResult with positions sorted by underlying then strike,
            and one error entry per position that could not be enriched
        """
        result = EnrichmentResult()
        groups: dict[GroupKey, list[tuple[RawPosition, OptionIdentity]]] = defaultdict(list)

        for raw in raw_positions:
            identity = parse_symbol(raw.symbol)
            if isinstance(identity, EquityIdentity):
                result.positions.append(enrich_equity(raw, identity))
            else:
                groups[identity.group_key].append((raw, identity))

        if groups:
            logger.info(
                f"Enriching {sum(len(g) for g in groups.values())} option positions "
                f"across {len(groups)} chains"
            )
            outcomes = await self._fetch_chains(list(groups))
            for key, members in groups.items():
                chain, failure = outcomes[key]
                for raw, identity in members:
                    self._merge_position(result, raw, identity, chain, failure)

        result.positions.sort(key=lambda p: p.sort_key)

        if result.errors:
            logger.warning(
                f"Enrichment finished with {len(result.errors)} errors "
                f"({len(result.positions)} positions enriched)"
            )
        return result

    def _merge_position(
        self,
        result: EnrichmentResult,
        raw: RawPosition,
        identity: OptionIdentity,
        chain: OptionChain | None,
        failure: tuple[EnrichmentErrorKind, str] | None,
    ) -> None:
        if failure is None:
            contract = chain.find_contract(identity.strike, identity.option_type)
            if contract is not None:
                result.positions.append(enrich_matched_option(raw, identity, contract))
                return
            failure = (
                EnrichmentErrorKind.LOOKUP_MISS,
                f"No matching contract found for {raw.symbol} "
                f"(strike {identity.strike} {identity.option_type.value})",
            )

        kind, message = failure
        result.errors.append(
            EnrichmentError(
                kind=kind, symbol=raw.symbol, account_id=raw.account_id, message=message
            )
        )
        if self.include_unmatched:
            result.positions.append(enrich_unmatched_option(raw, identity))

    async def _fetch_chains(
        self, keys: list[GroupKey]
    ) -> dict[GroupKey, tuple[OptionChain | None, tuple[EnrichmentErrorKind, str] | None]]:
        """
        Fetch one chain per group under the concurrency limit and deadline.

        Every key in ``keys`` gets an outcome: (chain, None) on success or
        (None, (kind, message)) on failure.
        """
        semaphore = asyncio.Semaphore(self.max_concurrency)
        tasks = {
            asyncio.create_task(self._fetch_group(semaphore, underlying, expiration)): (
                underlying,
                expiration,
            )
            for underlying, expiration in keys
        }

        done, pending = await asyncio.wait(tasks, timeout=self.deadline_seconds)

        outcomes = {}
        for task in done:
            outcomes[tasks[task]] = task.result()

        if pending:
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)
            logger.warning(
                f"Enrichment deadline of {self.deadline_seconds}s reached; "
                f"{len(pending)} of {len(tasks)} chain fetches cancelled"
            )
            for task in pending:
                underlying, expiration = tasks[task]
                outcomes[tasks[task]] = (
                    None,
                    (
                        EnrichmentErrorKind.DEADLINE,
                        f"Chain fetch for {underlying} {expiration.isoformat()} did not "
                        f"finish within {self.deadline_seconds}s",
                    ),
                )
        return outcomes

    async def _fetch_group(
        self, semaphore: asyncio.Semaphore, underlying: str, expiration: date
    ) -> tuple[OptionChain | None, tuple[EnrichmentErrorKind, str] | None]:
        label = f"{underlying} {expiration.isoformat()}"
        async with semaphore:
            try:
                chain = await self.chain_service.get_chain(underlying, expiration)
            except ConfigurationError as e:
                logger.error(f"Cannot fetch chain for {label}: {e}")
                return None, (EnrichmentErrorKind.CONFIG, str(e))
            except ProviderError as e:
                logger.error(f"Failed to fetch chain for {label}: {e}")
                return None, (EnrichmentErrorKind.PROVIDER, f"Failed to fetch {label}: {e}")
            except Exception as e:
                logger.error(f"Unexpected error fetching chain for {label}: {e}", exc_info=True)
                return None, (EnrichmentErrorKind.PROVIDER, f"Failed to fetch {label}: {e}")

        if chain is None:
            return None, (EnrichmentErrorKind.LOOKUP_MISS, f"No option chain found for {label}")
        return chain, None
