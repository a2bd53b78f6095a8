"""Tests for context building."""
from datetime import date
from decimal import Decimal

import pytest

from spread_advisor.context import (
    build_context,
    describe_customer_profile,
    describe_market_condition,
    summarize_history,
)
from spread_advisor.currency import currency_market_outlook
from spread_advisor.models import (
    DEFAULT_CUSTOMER_PROFILE,
    DEFAULT_MARKET_CONDITION,
    CustomerAttributes,
    HistoricalSummary,
    RecommendationContext,
)
from spread_advisor.utils.errors import ValidationError


def test_summarize_empty_history_uses_defaults():
    summary = summarize_history([])
    assert summary == HistoricalSummary()
    assert summary.avg_profit_margin == Decimal("0.05")
    assert summary.avg_liquidity_score == Decimal("5.0")


def test_summarize_ignores_absent_values(record_factory):
    records = [record_factory(margin="0.02", liquidity=None, day=1), record_factory(margin=None, liquidity="8", day=2)]
    summary = summarize_history(records)
    assert summary.avg_profit_margin == Decimal("0.02")
    assert summary.avg_liquidity_score == Decimal("8")


def test_market_condition_bands():
    calm = HistoricalSummary(avg_market_volatility=Decimal("0.2"))
    wild = HistoricalSummary(avg_market_volatility=Decimal("0.8"))
    assert describe_market_condition(calm, "USD", True).startswith("market is relatively stable")
    assert describe_market_condition(wild, "USD", True).startswith("market volatility is elevated")
    assert describe_market_condition(calm, "XYZ", False) == currency_market_outlook("XYZ")


def test_customer_profile_bands():
    assert describe_customer_profile(CustomerAttributes(risk_level=1.8, trading_volume=60000)) == (
        "high-risk customer, high-frequency trading with large volume"
    )
    assert describe_customer_profile(CustomerAttributes(risk_level=0.6, trading_volume=20000)) == (
        "low-risk premium customer, moderate trading frequency"
    )
    assert describe_customer_profile(CustomerAttributes()) == "standard-risk customer, low trading frequency"


def test_build_context_normalizes_currency(record_factory):
    ctx = build_context("C9", "Delta", " eur ", date(2026, 10, 1), [record_factory()])
    assert ctx.currency == "EUR"
    assert len(ctx.records) == 1
    assert ctx.history.avg_transaction_volume == Decimal("1000")
    assert "euro" in ctx.market_condition.lower()


def test_build_context_rejects_bad_currency():
    with pytest.raises(ValidationError):
        build_context("C9", "Delta", "EURO", date(2026, 10, 1), [])


def test_context_defaults_descriptors():
    ctx = RecommendationContext(customer_id="C1", customer_name="X", currency="USD", as_of=date(2026, 1, 1))
    assert ctx.market_condition == DEFAULT_MARKET_CONDITION
    assert ctx.customer_profile == DEFAULT_CUSTOMER_PROFILE
