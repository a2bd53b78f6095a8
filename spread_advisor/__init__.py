"""Spread Advisor: rebate-spread recommendations from LLM providers with a statistical fallback."""

from spread_advisor.config import AdvisorConfig, load_config
from spread_advisor.context import build_context
from spread_advisor.coordinator import RecommendationCoordinator
from spread_advisor.models import (
    CustomerAttributes,
    ErrorKind,
    HistoricalRecord,
    RecommendationContext,
    RecommendationResult,
    SpreadBounds,
)

__version__ = "0.1.0"

__all__ = [
    "AdvisorConfig",
    "CustomerAttributes",
    "ErrorKind",
    "HistoricalRecord",
    "RecommendationContext",
    "RecommendationCoordinator",
    "RecommendationResult",
    "SpreadBounds",
    "build_context",
    "load_config",
]
