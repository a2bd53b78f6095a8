from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Sequence, Tuple

import numpy as np

from spread_advisor.currency import currency_risk_weight
from spread_advisor.models import (
    CustomerAttributes,
    ErrorKind,
    FactorBreakdown,
    HistoricalRecord,
    ScoringWeights,
    SpreadBounds,
)
from spread_advisor.utils.decorators import log_execution

logger = logging.getLogger(__name__)

SIX_PLACES = Decimal("0.000001")
FOUR_PLACES = Decimal("0.0001")

NEUTRAL_FACTOR = Decimal("0.5")
DEFAULT_PROFIT_MARGIN = Decimal("0.05")
DEFAULT_LIQUIDITY_SCORE = Decimal("5.0")
HIGH_VOLUME_THRESHOLD = Decimal("10000")
FULL_CONFIDENCE_RECORDS = Decimal("30")
RISK_ADJUSTMENT_MIN = Decimal("0.5")
RISK_ADJUSTMENT_MAX = Decimal("2.0")
CONFIDENCE_MIN = Decimal("0.1")
CONFIDENCE_MAX = Decimal("1.0")


def _q6(value: Decimal) -> Decimal:
    return value.quantize(SIX_PLACES, rounding=ROUND_HALF_UP)


def _q4(value: Decimal) -> Decimal:
    return value.quantize(FOUR_PLACES, rounding=ROUND_HALF_UP)


def _clamp(value: Decimal, low: Decimal, high: Decimal) -> Decimal:
    return max(low, min(high, value))


def _dec(value) -> Decimal:
    return Decimal(str(value))


@dataclass(frozen=True)
class ScoreResult:
    spread: Decimal
    confidence: Decimal
    factors: FactorBreakdown
    reason: str
    issues: Tuple[ErrorKind, ...] = field(default_factory=tuple)


class ScoringEngine:
    """Deterministic weighted-factor spread model.

    spread = clamp(default_spread * (vol*w_vol + volume*w_volume + history*w_history)
                   * risk_adjustment, min_spread, max_spread)

    Factors and spreads are rounded half-up to 6 places, confidence to 4.
    The result depends only on the arguments.
    """

    @log_execution()
    def score(
        self,
        customer: CustomerAttributes,
        records: Sequence[HistoricalRecord],
        currency: str,
        bounds: SpreadBounds,
        weights: ScoringWeights,
    ) -> ScoreResult:
        records = list(records)
        issues: Tuple[ErrorKind, ...] = ()
        if not records or not self._is_complete(records):
            logger.info(
                f"Scoring with {len(records)} records; defaults substituted for missing data",
                extra={"currency": currency},
            )
            issues = (ErrorKind.SCORING_DATA_INSUFFICIENT,)

        volatility = self.volatility_factor(records)
        volume = self.volume_factor(records)
        history = self.historical_performance_factor(records)
        risk = self.risk_adjustment(customer, currency)

        base = _q6(
            bounds.default_spread
            * (volatility * weights.volatility + volume * weights.volume + history * weights.history)
        )
        adjusted = _q6(base * risk)
        spread = _q6(bounds.clamp(adjusted))
        confidence = self.confidence(len(records), volatility)

        factors = FactorBreakdown(
            volatility=volatility,
            volume=volume,
            history=history,
            risk_adjustment=risk,
            base_spread=base,
            data_points=len(records),
        )
        return ScoreResult(
            spread=spread,
            confidence=confidence,
            factors=factors,
            reason=self.describe(factors),
            issues=issues,
        )

    @staticmethod
    def _is_complete(records: Sequence[HistoricalRecord]) -> bool:
        return all(
            r.market_volatility is not None
            and r.transaction_volume is not None
            and r.profit_margin is not None
            and r.liquidity_score is not None
            for r in records
        )

    def volatility_factor(self, records: Sequence[HistoricalRecord]) -> Decimal:
        """Coefficient of variation of per-record volatility (amount as proxy)."""
        samples: List[float] = []
        for r in records:
            if r.market_volatility is not None:
                samples.append(float(r.market_volatility))
            elif r.transaction_amount is not None:
                samples.append(float(r.transaction_amount))
        if not samples:
            return NEUTRAL_FACTOR

        values = np.asarray(samples, dtype=float)
        std = float(np.std(values, ddof=1)) if len(values) > 1 else 0.0
        ratio = _dec(std) / (_dec(float(np.mean(values))) + 1)
        return _q6(_clamp(ratio, Decimal("0"), Decimal("1")))

    def volume_factor(self, records: Sequence[HistoricalRecord]) -> Decimal:
        """High average volume pushes the factor (and the spread) down."""
        if not records:
            return NEUTRAL_FACTOR
        total = sum((Decimal(r.transaction_volume or 0) for r in records), Decimal("0"))
        avg = total / len(records)
        return _q6(1 - min(Decimal("1"), avg / HIGH_VOLUME_THRESHOLD))

    def historical_performance_factor(self, records: Sequence[HistoricalRecord]) -> Decimal:
        if not records:
            return NEUTRAL_FACTOR
        margins = [r.profit_margin for r in records if r.profit_margin is not None]
        liquidity = [r.liquidity_score for r in records if r.liquidity_score is not None]
        avg_margin = sum(margins, Decimal("0")) / len(margins) if margins else DEFAULT_PROFIT_MARGIN
        avg_liquidity = sum(liquidity, Decimal("0")) / len(liquidity) if liquidity else DEFAULT_LIQUIDITY_SCORE
        performance = (avg_margin * 10 + avg_liquidity / 10) / 2
        return _q6(_clamp(performance, Decimal("0"), Decimal("1")))

    def risk_adjustment(self, customer: CustomerAttributes, currency: str) -> Decimal:
        risk_level = _dec(customer.risk_level)
        trading_volume = _dec(customer.trading_volume)
        raw = (risk_level * Decimal("0.4") + currency_risk_weight(currency) * Decimal("0.6")) * (
            1 + trading_volume / Decimal("100000")
        )
        return _q6(_clamp(raw, RISK_ADJUSTMENT_MIN, RISK_ADJUSTMENT_MAX))

    def confidence(self, data_points: int, volatility: Decimal) -> Decimal:
        data_quality = min(Decimal("1"), Decimal(data_points) / FULL_CONFIDENCE_RECORDS)
        penalty = 1 - volatility * Decimal("0.3")
        return _q4(_clamp(data_quality * penalty, CONFIDENCE_MIN, CONFIDENCE_MAX))

    @staticmethod
    def describe(factors: FactorBreakdown) -> str:
        parts = []
        if factors.volatility > Decimal("0.7"):
            parts.append("market volatility is high")
        elif factors.volatility < Decimal("0.3"):
            parts.append("market volatility is low")

        if factors.volume > Decimal("0.7"):
            parts.append("trading volume is low")
        elif factors.volume < Decimal("0.3"):
            parts.append("trading volume is high")

        if factors.history > Decimal("0.7"):
            parts.append("historical performance is strong")
        elif factors.history < Decimal("0.3"):
            parts.append("historical performance is weak")

        if factors.risk_adjustment > Decimal("1.2"):
            closing = "a higher risk adjustment was applied"
        elif factors.risk_adjustment < Decimal("0.8"):
            closing = "a lower risk adjustment was applied"
        else:
            closing = "the factors were weighed evenly"

        head = "Weighted-factor analysis: "
        if parts:
            return head + ", ".join(parts) + "; " + closing + "."
        return head + closing + "."
