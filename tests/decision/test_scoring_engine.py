from decimal import Decimal

from spread_advisor.decision.scoring_engine import ScoringEngine
from spread_advisor.models import CustomerAttributes, ErrorKind, ScoringWeights, SpreadBounds


def _score(records=(), currency="USD", risk_level=1.0, trading_volume=0.0, bounds=None, weights=None):
    return ScoringEngine().score(
        customer=CustomerAttributes(risk_level=risk_level, trading_volume=trading_volume),
        records=list(records),
        currency=currency,
        bounds=bounds or SpreadBounds(),
        weights=weights or ScoringWeights(),
    )


def test_empty_history_uses_neutral_factors():
    result = _score()
    assert result.factors.volatility == Decimal("0.5")
    assert result.factors.volume == Decimal("0.5")
    assert result.factors.history == Decimal("0.5")
    assert result.issues == (ErrorKind.SCORING_DATA_INSUFFICIENT,)


def test_empty_history_end_to_end():
    # base = 0.1 * 0.5 = 0.05; risk = 1.0*0.4 + 0.8*0.6 = 0.88
    result = _score()
    assert result.factors.base_spread == Decimal("0.050000")
    assert result.factors.risk_adjustment == Decimal("0.880000")
    assert result.spread == Decimal("0.044000")
    assert result.confidence == Decimal("0.1000")


def test_single_sample_has_zero_volatility(record_factory):
    result = _score([record_factory(volatility="0.6")])
    assert result.factors.volatility == Decimal("0")


def test_volatility_uses_sample_std(record_factory):
    # samples 0.2 and 0.6: std (n-1) = 0.282843, mean 0.4
    records = [record_factory(volatility="0.2", day=1), record_factory(volatility="0.6", day=2)]
    result = _score(records)
    assert result.factors.volatility == Decimal("0.202031")


def test_transaction_amount_is_volatility_proxy(record_factory):
    records = [
        record_factory(volatility=None, amount="100", day=1),
        record_factory(volatility=None, amount="300", day=2),
    ]
    # std 141.42, mean 200 -> 141.42 / 201
    result = _score(records)
    assert result.factors.volatility == Decimal("0.703589")


def test_volume_factor_counts_missing_volume_as_zero(record_factory):
    records = [record_factory(volume=8000, day=1), record_factory(volume=None, day=2)]
    result = _score(records)
    assert result.factors.volume == Decimal("0.600000")
    assert result.issues == (ErrorKind.SCORING_DATA_INSUFFICIENT,)


def test_high_volume_saturates(record_factory):
    result = _score([record_factory(volume=50000)])
    assert result.factors.volume == Decimal("0")


def test_historical_performance(record_factory):
    # (0.05*10 + 6/10) / 2 = 0.55
    result = _score([record_factory(margin="0.05", liquidity="6.0")])
    assert result.factors.history == Decimal("0.550000")
    assert result.issues == ()


def test_risk_adjustment_clamped(record_factory):
    high = _score(currency="XAU", risk_level=3.0, trading_volume=100000)
    low = _score(currency="EUR", risk_level=0.1)
    assert high.factors.risk_adjustment == Decimal("2.000000")
    assert low.factors.risk_adjustment == Decimal("0.520000")


def test_spread_always_within_bounds(record_factory):
    bounds = SpreadBounds(min_spread=Decimal("0.05"), max_spread=Decimal("0.06"), default_spread=Decimal("0.1"))
    low = _score(bounds=bounds)
    high = _score(currency="SGD", risk_level=5.0, trading_volume=90000, bounds=bounds)
    assert low.spread == Decimal("0.05")
    assert high.spread == Decimal("0.06")


def test_confidence_grows_with_data(record_factory):
    records = [record_factory(day=d) for d in range(1, 31)]
    result = _score(records)
    # identical samples -> volatility 0 -> confidence 1
    assert result.confidence == Decimal("1.0000")


def test_scoring_is_idempotent(record_factory):
    records = [record_factory(volatility=v, day=i) for i, v in enumerate(["0.1", "0.5", "0.3"], 1)]
    assert _score(records) == _score(records)


def test_reason_describes_factors(record_factory):
    result = _score([record_factory(volume=20000, margin="0.1", liquidity="9")], currency="XAU", risk_level=2.0)
    assert "market volatility is low" in result.reason
    assert "trading volume is high" in result.reason
    assert "historical performance is strong" in result.reason
    assert "higher risk adjustment" in result.reason
