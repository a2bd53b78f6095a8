"""Prompt templates for spread recommendations, chosen by scenario."""
from __future__ import annotations

from decimal import Decimal
from enum import Enum
from typing import Any, Dict

from spread_advisor.models import RecommendationContext


OUTPUT_FIELDS = (
    "recommendedSpread",
    "confidenceScore",
    "reasoning",
    "riskAssessment",
    "marketAnalysis",
    "keyFactors",
)

HIGH_VOLATILITY_THRESHOLD = 0.7
HIGH_RISK_THRESHOLD = 1.5
LOW_RISK_THRESHOLD = 0.8
HIGH_VOLUME_THRESHOLD = 50000


class Scenario(str, Enum):
    STANDARD = "standard"
    CONSERVATIVE = "conservative"
    PREFERENTIAL = "preferential"
    VOLATILITY = "volatility"


def classify_scenario(risk_level: float, volatility: float, trading_volume: float) -> Scenario:
    """Bucket a request into one scenario; the first matching rule wins."""
    if float(volatility) > HIGH_VOLATILITY_THRESHOLD:
        return Scenario.VOLATILITY
    if float(risk_level) > HIGH_RISK_THRESHOLD:
        return Scenario.CONSERVATIVE
    if float(risk_level) < LOW_RISK_THRESHOLD and float(trading_volume) > HIGH_VOLUME_THRESHOLD:
        return Scenario.PREFERENTIAL
    return Scenario.STANDARD


_ROLES = {
    Scenario.STANDARD: (
        "You are a senior FX pricing and risk-management specialist with twenty years of "
        "banking experience. Recommend the optimal rebate spread for the customer below."
    ),
    Scenario.CONSERVATIVE: (
        "You are a risk-management specialist. The customer below carries an elevated risk "
        "level; recommend a conservative rebate spread that puts risk control ahead of yield."
    ),
    Scenario.PREFERENTIAL: (
        "You are a client-relationship pricing specialist. The customer below is a low-risk, "
        "high-volume client; recommend a competitive rebate spread."
    ),
    Scenario.VOLATILITY: (
        "You are a market-risk specialist. Market volatility is currently high; recommend a "
        "rebate spread suited to a volatile environment."
    ),
}

_GUIDANCE = {
    Scenario.STANDARD: (
        "Weigh the following factors in a balanced way:\n"
        "1. Customer credit risk and historical trading performance\n"
        "2. Market liquidity and volatility risk\n"
        "3. Currency characteristics and geopolitical risk\n"
        "4. Competitive environment and relationship value\n"
        "5. Regulatory and compliance considerations"
    ),
    Scenario.CONSERVATIVE: (
        "Conservative pricing principles:\n"
        "1. Raise the spread enough to hedge the customer's risk\n"
        "2. Include compensation for liquidity risk\n"
        "3. Recommend stricter risk limits\n"
        "4. Call for closer ongoing monitoring\n"
        "Prefer the upper half of the allowed range unless the data clearly argues otherwise."
    ),
    Scenario.PREFERENTIAL: (
        "Preferential pricing strategy:\n"
        "1. Lower the spread where it helps retain the relationship\n"
        "2. Account for long-term value and customer loyalty\n"
        "3. Stay competitive against peer banks\n"
        "4. Balance profitability with customer satisfaction"
    ),
    Scenario.VOLATILITY: (
        "Pricing strategy for a volatile market:\n"
        "1. Add explicit compensation for volatility risk\n"
        "2. Keep the pricing validity window short\n"
        "3. Describe a dynamic re-pricing mechanism\n"
        "4. Call for real-time monitoring"
    ),
}

_BODY = """{role}

## Customer
- Customer code: {customer_id}
- Customer name: {customer_name}
- Currency: {currency}
- Recommendation date: {as_of}

## Historical trading summary
- Average transaction volume: {avg_transaction_volume}
- Average transaction amount: {avg_transaction_amount}
- Average profit margin: {avg_profit_margin}
- Average liquidity score (1-10): {avg_liquidity_score}
- Market volatility: {market_volatility}
- Customer risk level: {risk_level}
- Customer trading volume: {trading_volume}

## Market conditions
{market_condition}

## Customer profile
{customer_profile}

## Pricing constraints
- Minimum allowed spread: {min_spread}
- Maximum allowed spread: {max_spread}
- Baseline spread: {default_spread}

## Guidance
{guidance}

## Output format
Reply with a single JSON object inside a ```json code block, using exactly these fields:

```json
{{
    "recommendedSpread": <number between {min_spread} and {max_spread}>,
    "confidenceScore": <number between 0 and 1>,
    "reasoning": "pricing rationale, risk view and market view",
    "riskAssessment": "customer risk assessment and mitigation",
    "marketAnalysis": "market environment and trend analysis",
    "keyFactors": ["factor 1", "factor 2", "factor 3"]
}}
```

The recommendedSpread MUST be within [{min_spread}, {max_spread}] and confidenceScore within [0, 1].
"""


def _fmt(value: Any, places: int = 4) -> str:
    if isinstance(value, Decimal):
        return f"{value:.{places}f}"
    return str(value)


class PromptComposer:
    """Builds the instruction text for a RecommendationContext."""

    def scenario_for(self, context: RecommendationContext) -> Scenario:
        return classify_scenario(
            risk_level=context.customer.risk_level,
            volatility=context.history.avg_market_volatility,
            trading_volume=context.customer.trading_volume,
        )

    def template_variables(self, context: RecommendationContext) -> Dict[str, str]:
        history = context.history
        return {
            "customer_id": context.customer_id,
            "customer_name": context.customer_name,
            "currency": context.currency,
            "as_of": context.as_of.isoformat(),
            "avg_transaction_volume": _fmt(history.avg_transaction_volume, 2),
            "avg_transaction_amount": _fmt(history.avg_transaction_amount, 2),
            "avg_profit_margin": _fmt(history.avg_profit_margin),
            "avg_liquidity_score": _fmt(history.avg_liquidity_score, 2),
            "market_volatility": _fmt(history.avg_market_volatility),
            "risk_level": _fmt(context.customer.risk_level),
            "trading_volume": _fmt(context.customer.trading_volume),
            "market_condition": context.market_condition,
            "customer_profile": context.customer_profile,
            "min_spread": str(context.bounds.min_spread),
            "max_spread": str(context.bounds.max_spread),
            "default_spread": str(context.bounds.default_spread),
        }

    def compose(self, context: RecommendationContext) -> str:
        scenario = self.scenario_for(context)
        return _BODY.format(
            role=_ROLES[scenario],
            guidance=_GUIDANCE[scenario],
            **self.template_variables(context),
        )
