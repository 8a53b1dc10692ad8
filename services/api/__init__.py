"""API utilities and helpers for view endpoints."""

from services.api.error_responses import ErrorResponseBuilder
from services.api.serializers import (
    OptionChainSerializer,
    PositionSerializer,
    StrategyAnalysisSerializer,
    convert_for_serialization,
)

__all__ = [
    "ErrorResponseBuilder",
    "OptionChainSerializer",
    "PositionSerializer",
    "StrategyAnalysisSerializer",
    "convert_for_serialization",
]
