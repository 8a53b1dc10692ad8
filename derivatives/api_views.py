"""
Derivatives API views.

JSON endpoints over the service layer: strategy analysis, option chain and
expiration lookups, and the enriched position book. Views only translate
between HTTP and services; all computation lives in ``services/``.
"""

import json
from datetime import date

from django.conf import settings
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from services.api.error_responses import ErrorResponseBuilder
from services.api.serializers import (
    OptionChainSerializer,
    PositionSerializer,
    StrategyAnalysisSerializer,
)
from services.core.constants import ENRICHMENT_MAX_CONCURRENCY
from services.core.exceptions import (
    ConfigurationError,
    LookupMissError,
    ProviderError,
    StrategyValidationError,
)
from services.core.logging import get_logger
from services.instruments.occ import parse_occ_symbol
from services.market_data.factory import get_option_chain_service
from services.positions.custody import get_custody_provider
from services.positions.enrichment import PositionEnrichmentService
from services.strategies.analyzer import StrategyAnalyzer
from services.strategies.requests import StrategyAnalysisRequest

logger = get_logger(__name__)


@csrf_exempt
@require_http_methods(["POST"])
async def analyze_strategy(request):
    """
    Analyze an option strategy held to expiration.

    POST /api/options/analyze/
    Body: {"legs": [...], "underlyingPrice": 52, "daysToExpiry": 30,
           "targetPrices": [50, 60], "referencePrice": 97000}

    Returns the analysis with camelCase keys, or 400 with
    {"success": false, "error": "...", "field": "..."} on malformed input.
    """
    try:
        payload = json.loads(request.body)
    except (json.JSONDecodeError, UnicodeDecodeError):
        return ErrorResponseBuilder.json_decode_error()

    try:
        analysis_request = StrategyAnalysisRequest.from_payload(payload)
        result = StrategyAnalyzer().analyze(
            analysis_request.legs,
            underlying_price=analysis_request.underlying_price,
            days_to_expiry=analysis_request.days_to_expiry,
            target_prices=analysis_request.target_prices,
            reference_price=analysis_request.reference_price,
        )
    except StrategyValidationError as e:
        return ErrorResponseBuilder.from_exception(e, context="analyze_strategy", log_level="info")

    logger.info(
        f"Analyzed {len(analysis_request.legs)}-leg strategy: "
        f"cost={result.total_cost:.2f} maxProfit={result.max_profit} maxLoss={result.max_loss}"
    )
    return JsonResponse({"success": True, **StrategyAnalysisSerializer.serialize(result)})


@require_http_methods(["GET"])
async def get_option_chain(request, symbol):
    """
    Option chain for one underlying and expiration.

    GET /api/options/chain/<symbol>/?expiration=YYYY-MM-DD
    """
    raw_expiration = request.GET.get("expiration")
    if not raw_expiration:
        return ErrorResponseBuilder.validation_error(
            "expiration query parameter is required", field="expiration"
        )
    try:
        expiration = date.fromisoformat(raw_expiration)
    except ValueError:
        return ErrorResponseBuilder.validation_error(
            "expiration must be a date in YYYY-MM-DD format", field="expiration"
        )

    underlying = symbol.strip().upper()
    try:
        chain = await get_option_chain_service().get_chain(underlying, expiration)
    except (ConfigurationError, ProviderError) as e:
        return ErrorResponseBuilder.from_exception(e, context=f"option chain {underlying}")

    if chain is None:
        return ErrorResponseBuilder.not_found(
            f"Option chain for {underlying} {expiration.isoformat()}"
        )
    return JsonResponse({"success": True, **OptionChainSerializer.serialize(chain)})


@require_http_methods(["GET"])
async def get_option_contract(request, symbol):
    """
    Quote and Greeks for a single contract.

    GET /api/options/contract/<occ_symbol>/

    400 when the symbol is not an option symbol, 404 when the provider lists
    no such contract.
    """
    identity = parse_occ_symbol(symbol)
    if identity is None:
        return ErrorResponseBuilder.validation_error(
            f"{symbol!r} is not an OCC option symbol", field="symbol"
        )

    try:
        contract = await get_option_chain_service().get_contract(identity)
    except LookupMissError as e:
        return ErrorResponseBuilder.from_exception(e, context="option contract", log_level="info")
    except (ConfigurationError, ProviderError) as e:
        return ErrorResponseBuilder.from_exception(e, context=f"option contract {symbol}")

    return JsonResponse(
        {"success": True, "contract": OptionChainSerializer.serialize_contract(contract)}
    )


@require_http_methods(["GET"])
async def get_expirations(request, symbol):
    """
    Listed expiration dates for an underlying, ascending.

    GET /api/options/expirations/<symbol>/
    """
    underlying = symbol.strip().upper()
    try:
        expirations = await get_option_chain_service().get_expirations(underlying)
    except (ConfigurationError, ProviderError) as e:
        return ErrorResponseBuilder.from_exception(e, context=f"expirations {underlying}")

    if not expirations:
        return ErrorResponseBuilder.not_found(f"Expirations for {underlying}")
    return JsonResponse(
        {"success": True, **OptionChainSerializer.serialize_expirations(underlying, expirations)}
    )


@require_http_methods(["GET"])
async def get_positions(request):
    """
    Enriched position book with portfolio summary.

    GET /api/positions/?include_unmatched=true

    Returns {"positions": [...], "summary": {...}, "errors": [...]}. The status
    is 500 when any chain group failed for a provider or deadline reason; the
    partial book is still returned in the body.
    """
    include_unmatched = request.GET.get("include_unmatched", "false").lower() == "true"

    try:
        raw_positions = await get_custody_provider().fetch_raw_positions()
    except (ConfigurationError, ProviderError) as e:
        return ErrorResponseBuilder.from_exception(e, context="fetch custody positions")

    service = PositionEnrichmentService(
        chain_service=get_option_chain_service(),
        max_concurrency=getattr(settings, "ENRICHMENT_MAX_CONCURRENCY", ENRICHMENT_MAX_CONCURRENCY),
        deadline_seconds=getattr(settings, "ENRICHMENT_DEADLINE_SECONDS", None),
        include_unmatched=include_unmatched,
    )
    result = await service.enrich(raw_positions)

    status = 500 if result.has_provider_errors else 200
    return JsonResponse(
        {"success": status == 200, **PositionSerializer.serialize(result)}, status=status
    )
