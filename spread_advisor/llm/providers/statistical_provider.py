"""
Deterministic provider backed by the weighted-factor scoring engine.

Used as the last link of the failover chain; it never touches the network.
"""

import logging
from decimal import Decimal
from typing import Optional

from spread_advisor.config import ProviderSettings
from spread_advisor.currency import currency_market_outlook
from spread_advisor.decision.scoring_engine import ScoringEngine
from spread_advisor.models import RecommendationContext, ScoringWeights, StructuredPayload

from ..types import BaseSpreadProvider, ProviderOutcome

logger = logging.getLogger(__name__)

KEY_FACTORS = (
    "historical trading performance",
    "market volatility",
    "customer risk level",
    "liquidity",
)


class StatisticalProvider(BaseSpreadProvider):
    is_llm = False

    def __init__(
        self,
        settings: ProviderSettings,
        scoring_engine: Optional[ScoringEngine] = None,
        weights: Optional[ScoringWeights] = None,
    ):
        super().__init__(settings)
        self.scoring_engine = scoring_engine or ScoringEngine()
        self.weights = weights or ScoringWeights()

    def get_provider_name(self) -> str:
        return "statistical"

    async def is_available(self) -> bool:
        return True

    async def generate(self, context: RecommendationContext) -> ProviderOutcome:
        logger.info(
            "Generating statistical recommendation",
            extra={"customer_id": context.customer_id, "currency": context.currency, "provider": "statistical"},
        )
        score = self.scoring_engine.score(
            customer=context.customer,
            records=context.records,
            currency=context.currency,
            bounds=context.bounds,
            weights=self.weights,
        )
        payload = StructuredPayload(
            recommended_spread=score.spread,
            confidence_score=score.confidence,
            reasoning=self._reasoning(context, score.reason, score.spread),
            risk_assessment=self._risk_assessment(context),
            market_analysis=self._market_analysis(context),
            key_factors=KEY_FACTORS,
            model=self.model,
            factors=score.factors,
            issues=score.issues,
        )
        return ProviderOutcome.ok(self.get_provider_name(), self.model, payload)

    @staticmethod
    def _reasoning(context: RecommendationContext, factor_reason: str, spread: Decimal) -> str:
        notes = []
        if context.records:
            volatility = context.history.avg_market_volatility
            if volatility > Decimal("0.7"):
                notes.append(f"average market volatility is high ({volatility:.4f}), spread raised to hedge risk")
            elif volatility < Decimal("0.3"):
                notes.append(f"average market volatility is low ({volatility:.4f}), spread can be eased")
            liquidity = context.history.avg_liquidity_score
            if liquidity < Decimal("3.0"):
                notes.append(f"liquidity score is low ({liquidity:.2f}), liquidity risk compensation added")
        if context.customer.risk_level > 1.5:
            notes.append(f"customer risk level is high ({context.customer.risk_level}), risk premium required")

        text = factor_reason
        if notes:
            text += " " + "; ".join(notes).capitalize() + "."
        return f"{text} Recommended spread: {spread}."

    @staticmethod
    def _risk_assessment(context: RecommendationContext) -> str:
        risk_level = context.customer.risk_level
        volatility = context.history.avg_market_volatility
        if risk_level > 1.5 or volatility > Decimal("0.7"):
            reasons = []
            if risk_level > 1.5:
                reasons.append("customer risk level is elevated")
            if volatility > Decimal("0.7"):
                reasons.append("market volatility is high")
            return f"High risk: {'; '.join(reasons)}. A conservative pricing strategy is advised."
        if risk_level < 0.8 and volatility < Decimal("0.3"):
            return "Low risk: good customer credit and a stable market; preferential pricing can be considered."
        return "Medium risk: customer and market conditions are within normal ranges; standard pricing applies."

    @staticmethod
    def _market_analysis(context: RecommendationContext) -> str:
        parts = []
        if context.records:
            if context.history.avg_market_volatility > Decimal("0.6"):
                parts.append("the market is volatile and should be watched closely")
            else:
                parts.append("the market is relatively stable, which supports precise pricing")
        parts.append(currency_market_outlook(context.currency))
        return "Market analysis: " + "; ".join(parts) + "."
