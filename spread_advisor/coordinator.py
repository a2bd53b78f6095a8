"""Recommendation coordinator.

Chooses between the provider chain and the scoring engine, and assembles a
RecommendationResult with provenance and a validity window.
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Callable, Optional

from spread_advisor.config import AdvisorConfig
from spread_advisor.decision.scoring_engine import ScoreResult, ScoringEngine
from spread_advisor.llm.manager import OrchestrationResult, ProviderOrchestrator, create_orchestrator
from spread_advisor.models import (
    ErrorKind,
    FactorBreakdown,
    Provenance,
    RecommendationContext,
    RecommendationResult,
    ValidityWindow,
)
from spread_advisor.utils.decorators import log_execution
from spread_advisor.utils.errors import RecommendationUnavailableError

logger = logging.getLogger(__name__)

DEGRADED_CONFIDENCE = Decimal("0.5")
SCORING_PROVIDER = "statistical"
SCORING_MODEL = "weighted-factor-v1"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RecommendationCoordinator:
    """Entry point for producing a spread recommendation."""

    def __init__(
        self,
        config: AdvisorConfig,
        orchestrator: Optional[ProviderOrchestrator] = None,
        scoring_engine: Optional[ScoringEngine] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.config = config
        self.scoring_engine = scoring_engine or ScoringEngine()
        self.orchestrator = orchestrator or create_orchestrator(config, self.scoring_engine)
        self.clock = clock or _utcnow

    @log_execution()
    async def generate(self, context: RecommendationContext) -> RecommendationResult:
        """
        Produce a recommendation for the context.

        Raises:
            RecommendationUnavailableError: no AI provider succeeded and the
                scoring fallback is disabled.
        """
        try:
            return await self._generate(context)
        except RecommendationUnavailableError:
            raise
        except Exception as e:
            logger.error(
                f"Recommendation failed, returning default spread: {e}",
                extra={"customer_id": context.customer_id, "currency": context.currency, "error": repr(e)},
            )
            return self._degraded(context, e)

    async def _generate(self, context: RecommendationContext) -> RecommendationResult:
        if not self.config.ai_enabled:
            logger.info("AI recommendations disabled; using scoring engine")
        else:
            outcome = await self.orchestrator.recommend(context)
            if outcome.success:
                return self._from_orchestration(context, outcome)
            if all(a.error_kind is ErrorKind.PROVIDER_UNAVAILABLE for a in outcome.attempts):
                logger.warning("No recommendation provider available", extra={"customer_id": context.customer_id})
            else:
                logger.warning(
                    f"Provider chain exhausted after {len(outcome.attempts)} attempts",
                    extra={"customer_id": context.customer_id},
                )

        if not self.config.fallback_enabled:
            raise RecommendationUnavailableError(
                f"No AI recommendation available for customer {context.customer_id} "
                f"and the statistical fallback is disabled"
            )

        score = self.scoring_engine.score(
            customer=context.customer,
            records=context.records,
            currency=context.currency,
            bounds=context.bounds,
            weights=self.config.weights,
        )
        return self._from_score(context, score)

    def _window(self, hours: int) -> ValidityWindow:
        generated_at = self.clock()
        return ValidityWindow(generated_at=generated_at, expires_at=generated_at + timedelta(hours=hours))

    @staticmethod
    def _bound_confidence(value: Decimal) -> Decimal:
        return max(Decimal("0"), min(Decimal("1"), value))

    def _from_orchestration(self, context: RecommendationContext, outcome: OrchestrationResult) -> RecommendationResult:
        payload = outcome.payload
        factors = payload.factors if payload.factors is not None else FactorBreakdown.neutral()
        return RecommendationResult(
            customer_id=context.customer_id,
            currency=context.currency,
            as_of=context.as_of,
            recommended_spread=context.bounds.clamp(payload.recommended_spread),
            confidence_score=self._bound_confidence(payload.confidence_score),
            reasoning=payload.reasoning,
            risk_assessment=payload.risk_assessment,
            market_analysis=payload.market_analysis,
            key_factors=payload.key_factors,
            factors=factors,
            provenance=Provenance(
                provider=outcome.provider,
                model=outcome.model,
                used_fallback_path=not outcome.is_llm,
                used_ai_path=outcome.is_llm,
            ),
            validity=self._window(self.config.validity_hours),
            issues=payload.issues,
        )

    def _from_score(self, context: RecommendationContext, score: ScoreResult) -> RecommendationResult:
        settings = self.config.providers.get(SCORING_PROVIDER)
        return RecommendationResult(
            customer_id=context.customer_id,
            currency=context.currency,
            as_of=context.as_of,
            recommended_spread=context.bounds.clamp(score.spread),
            confidence_score=self._bound_confidence(score.confidence),
            reasoning=score.reason,
            risk_assessment="",
            market_analysis="",
            key_factors=(),
            factors=score.factors,
            provenance=Provenance(
                provider=SCORING_PROVIDER,
                model=settings.model if settings and settings.model else SCORING_MODEL,
                used_fallback_path=True,
                used_ai_path=False,
            ),
            validity=self._window(self.config.validity_hours),
            issues=score.issues,
        )

    def _degraded(self, context: RecommendationContext, error: Exception) -> RecommendationResult:
        return RecommendationResult(
            customer_id=context.customer_id,
            currency=context.currency,
            as_of=context.as_of,
            recommended_spread=context.bounds.clamp(context.bounds.default_spread),
            confidence_score=DEGRADED_CONFIDENCE,
            reasoning=f"Default spread applied because the recommendation could not be generated: {error}",
            risk_assessment="",
            market_analysis="",
            key_factors=(),
            factors=FactorBreakdown.neutral(),
            provenance=Provenance(provider="default", model="none", used_fallback_path=False, used_ai_path=False),
            validity=self._window(self.config.degraded_validity_hours),
            degraded=True,
        )
