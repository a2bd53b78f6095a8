"""Build a RecommendationContext from a customer and its billing history."""
from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence

from spread_advisor.currency import currency_market_outlook, normalize_currency_code
from spread_advisor.models import (
    CustomerAttributes,
    HistoricalRecord,
    HistoricalSummary,
    RecommendationContext,
    SpreadBounds,
)


_DEFAULTS = HistoricalSummary()


def _average(values: Iterable[Optional[Decimal]], default: Decimal) -> Decimal:
    present: List[Decimal] = [Decimal(v) for v in values if v is not None]
    if not present:
        return default
    return sum(present, Decimal("0")) / len(present)


def summarize_history(records: Sequence[HistoricalRecord]) -> HistoricalSummary:
    """Average each metric over the records that carry it."""
    if not records:
        return _DEFAULTS
    return HistoricalSummary(
        avg_transaction_volume=_average(
            (r.transaction_volume for r in records), _DEFAULTS.avg_transaction_volume
        ),
        avg_transaction_amount=_average(
            (r.transaction_amount for r in records), _DEFAULTS.avg_transaction_amount
        ),
        avg_profit_margin=_average((r.profit_margin for r in records), _DEFAULTS.avg_profit_margin),
        avg_liquidity_score=_average((r.liquidity_score for r in records), _DEFAULTS.avg_liquidity_score),
        avg_market_volatility=_average(
            (r.market_volatility for r in records), _DEFAULTS.avg_market_volatility
        ),
    )


def describe_market_condition(summary: HistoricalSummary, currency: str, has_history: bool) -> str:
    parts = []
    if has_history:
        volatility = summary.avg_market_volatility
        if volatility > Decimal("0.7"):
            parts.append("market volatility is elevated")
        elif volatility < Decimal("0.3"):
            parts.append("market is relatively stable")
        else:
            parts.append("market volatility is normal")
    parts.append(currency_market_outlook(currency))
    return "; ".join(parts)


def describe_customer_profile(customer: CustomerAttributes) -> str:
    if customer.risk_level > 1.5:
        risk = "high-risk customer"
    elif customer.risk_level < 0.8:
        risk = "low-risk premium customer"
    else:
        risk = "standard-risk customer"

    if customer.trading_volume > 50000:
        activity = "high-frequency trading with large volume"
    elif customer.trading_volume > 10000:
        activity = "moderate trading frequency"
    else:
        activity = "low trading frequency"
    return f"{risk}, {activity}"


def build_context(
    customer_id: str,
    customer_name: str,
    currency: str,
    as_of: date,
    records: Sequence[HistoricalRecord],
    customer: Optional[CustomerAttributes] = None,
    bounds: Optional[SpreadBounds] = None,
) -> RecommendationContext:
    """Assemble an immutable context, deriving aggregates and scenario descriptors."""
    code = normalize_currency_code(currency)
    customer = customer or CustomerAttributes()
    records = tuple(records)
    summary = summarize_history(records)
    return RecommendationContext(
        customer_id=customer_id,
        customer_name=customer_name,
        currency=code,
        as_of=as_of,
        history=summary,
        customer=customer,
        bounds=bounds or SpreadBounds(),
        market_condition=describe_market_condition(summary, code, bool(records)),
        customer_profile=describe_customer_profile(customer),
        records=records,
    )
