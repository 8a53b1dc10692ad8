"""
JSON serialization for analysis results, option chains and enriched positions.

Service-layer values stay unrounded (floats in the analyzer, Decimals in the
pipeline). Rounding for display happens here only: money and prices to 2
decimal places, Greeks and implied volatility to 4. Output keys are camelCase.
"""

from datetime import date, datetime
from decimal import Decimal

from services.instruments.expiration import format_option_display
from services.market_data.providers import OptionChain
from services.positions.models import EnrichedPosition, EnrichmentError, EnrichmentResult
from services.positions.summary import PortfolioSummary
from services.strategies.analyzer import UNLIMITED, PnlPoint, StrategyAnalysisResult
from services.strategies.core.primitives import OptionContract, OptionIdentity

MONEY_PLACES = 2
GREEK_PLACES = 4


def _round(value, places: int):
    """Round a float/Decimal for display, passing None and "unlimited" through."""
    if value is None or value == UNLIMITED:
        return value
    return round(float(value), places)


def _money(value):
    return _round(value, MONEY_PLACES)


def _greek(value):
    return _round(value, GREEK_PLACES)


def convert_for_serialization(obj):
    """
    Recursively convert Decimals to floats and dates to ISO strings.

    Args:
        obj: Object to convert (dict, list, tuple, set, or primitive)

    Returns:
        Object with all non-JSON types converted
    """
    if isinstance(obj, Decimal):
        return float(obj)
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, dict):
        return {k: convert_for_serialization(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple, set)):
        return [convert_for_serialization(elem) for elem in obj]
    return obj


class StrategyAnalysisSerializer:
    """Serializes StrategyAnalysisResult for the analyze endpoint."""

    @staticmethod
    def serialize_point(point: PnlPoint) -> dict:
        data = {
            "price": _money(point.price),
            "pnl": _money(point.pnl),
            "pnlPercent": _money(point.pnl_percent),
        }
        if point.reference_price is not None:
            data["referencePrice"] = _money(point.reference_price)
            data["pnlReference"] = _round(point.pnl_reference, GREEK_PLACES)
        return data

    @classmethod
    def serialize(cls, result: StrategyAnalysisResult) -> dict:
        data = {
            "totalCost": _money(result.total_cost),
            "maxProfit": _money(result.max_profit),
            "maxProfitPrice": _money(result.max_profit_price),
            "maxLoss": _money(result.max_loss),
            "maxLossPrice": _money(result.max_loss_price),
            "breakevens": [_money(b) for b in result.breakevens],
            "currentPnl": _money(result.current_pnl),
            "currentPnlPercent": _money(result.current_pnl_percent),
            "targetPnls": [cls.serialize_point(p) for p in result.target_pnls],
            "pnlCurve": [cls.serialize_point(p) for p in result.pnl_curve],
            "greeks": {
                "totalDelta": _greek(result.greeks.total_delta),
                "totalGamma": _greek(result.greeks.total_gamma),
                "totalTheta": _greek(result.greeks.total_theta),
                "totalVega": _greek(result.greeks.total_vega),
            },
            "daysToExpiry": result.days_to_expiry,
            "underlyingPrice": _money(result.underlying_price),
        }
        if result.total_cost_reference is not None:
            data["totalCostReference"] = _greek(result.total_cost_reference)
            data["currentPnlReference"] = _greek(result.current_pnl_reference)
            data["breakevenReferencePrices"] = [
                _money(b) for b in result.breakeven_reference_prices
            ]
        return data


class OptionChainSerializer:
    """Serializes option chains and contracts."""

    @staticmethod
    def serialize_identity(identity: OptionIdentity) -> dict:
        return {
            "symbol": identity.occ_symbol,
            "underlying": identity.underlying,
            "expiration": identity.expiration.isoformat(),
            "type": identity.option_type.value,
            "strike": _money(identity.strike),
            "display": format_option_display(identity),
        }

    @classmethod
    def serialize_contract(cls, contract: OptionContract) -> dict:
        return {
            **cls.serialize_identity(contract.identity),
            "bid": _money(contract.bid),
            "ask": _money(contract.ask),
            "last": _money(contract.last),
            "mid": _money(contract.mid),
            "volume": contract.volume,
            "openInterest": contract.open_interest,
            "impliedVolatility": _greek(contract.implied_volatility),
            "delta": _greek(contract.delta),
            "gamma": _greek(contract.gamma),
            "theta": _greek(contract.theta),
            "vega": _greek(contract.vega),
            "observedAt": contract.observed_at.isoformat() if contract.observed_at else None,
        }

    @classmethod
    def serialize(cls, chain: OptionChain) -> dict:
        return {
            "underlying": chain.underlying,
            "expiration": chain.expiration.isoformat(),
            "daysToExpiry": chain.days_to_expiry,
            "underlyingPrice": _money(chain.underlying_price),
            "calls": [cls.serialize_contract(c) for c in chain.calls],
            "puts": [cls.serialize_contract(c) for c in chain.puts],
            "fetchedAt": chain.fetched_at.isoformat(),
        }

    @staticmethod
    def serialize_expirations(underlying: str, expirations: list[date]) -> dict:
        return {
            "underlying": underlying,
            "expirations": [e.isoformat() for e in expirations],
        }


class PositionSerializer:
    """Serializes enrichment output for the positions endpoint."""

    @staticmethod
    def serialize_position(position: EnrichedPosition) -> dict:
        identity = position.identity
        data = {
            "accountId": position.account_id,
            "accountNumber": position.raw.account_number,
            "symbol": position.symbol,
            "status": position.status.value,
            "underlying": position.underlying,
            "quantity": float(position.quantity),
            "multiplier": position.multiplier,
            "averageCost": _money(position.raw.average_cost),
            "marketPrice": _money(position.market_price),
            "marketValue": _money(position.market_value),
            "costBasis": _money(position.cost_basis),
            "unrealizedPnl": _money(position.unrealized_pnl),
            "deltaExposure": _greek(position.delta_exposure),
            "gammaExposure": _greek(position.gamma_exposure),
            "thetaExposure": _greek(position.theta_exposure),
            "vegaExposure": _greek(position.vega_exposure),
            "enrichedAt": position.enriched_at.isoformat(),
        }
        if isinstance(identity, OptionIdentity):
            data.update(
                {
                    "expiration": identity.expiration.isoformat(),
                    "type": identity.option_type.value,
                    "strike": _money(identity.strike),
                    "display": format_option_display(identity),
                }
            )
        if position.contract is not None:
            data["contract"] = OptionChainSerializer.serialize_contract(position.contract)
        return data

    @staticmethod
    def serialize_summary(summary: PortfolioSummary) -> dict:
        return {
            "totalPositions": summary.total_positions,
            "optionsCount": summary.options_count,
            "equitiesCount": summary.equities_count,
            "unmatchedCount": summary.unmatched_count,
            "totalMarketValue": _money(summary.total_market_value),
            "totalCostBasis": _money(summary.total_cost_basis),
            "totalUnrealizedPnl": _money(summary.total_unrealized_pnl),
            "totalDelta": _greek(summary.total_delta),
            "totalGamma": _greek(summary.total_gamma),
            "totalTheta": _greek(summary.total_theta),
            "totalVega": _greek(summary.total_vega),
        }

    @staticmethod
    def serialize_error(error: EnrichmentError) -> dict:
        return {
            "kind": error.kind.value,
            "symbol": error.symbol,
            "accountId": error.account_id,
            "message": error.message,
        }

    @classmethod
    def serialize(cls, result: EnrichmentResult) -> dict:
        return {
            "positions": [cls.serialize_position(p) for p in result.positions],
            "summary": cls.serialize_summary(result.summary),
            "errors": [cls.serialize_error(e) for e in result.errors],
        }
