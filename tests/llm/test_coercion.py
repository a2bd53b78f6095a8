from decimal import Decimal

import pytest

from spread_advisor.llm.coercion import ResponseCoercer, extract_json_object
from spread_advisor.models import ErrorKind


def _coercer():
    return ResponseCoercer()


FENCED = """Here is my analysis.

```JSON
{
  "recommendedSpread": 0.15,
  "confidenceScore": 0.82,
  "reasoning": "Stable customer, moderate volatility.",
  "riskAssessment": "Medium risk",
  "marketAnalysis": "USD liquidity is ample",
  "keyFactors": ["volatility", "volume"]
}
```
"""


def test_fenced_block_is_parsed(context):
    payload = _coercer().coerce(FENCED, context, model="gpt-4")
    assert payload.recommended_spread == Decimal("0.15")
    assert payload.confidence_score == Decimal("0.82")
    assert payload.key_factors == ("volatility", "volume")
    assert payload.model == "gpt-4"
    assert payload.parse_failed is False
    assert payload.corrections == ()


def test_brace_object_inside_prose(context):
    text = (
        'Sure. {"recommendedSpread": "0.2", "confidenceScore": "0.6", '
        '"reasoning": "uses {braces} in text"} Hope that helps.'
    )
    payload = _coercer().coerce(text, context)
    assert payload.recommended_spread == Decimal("0.2")
    assert payload.confidence_score == Decimal("0.6")
    assert payload.reasoning == "uses {braces} in text"
    assert payload.risk_assessment == ""
    assert payload.market_analysis == ""
    assert payload.key_factors == ()


def test_scan_skips_unparseable_braces():
    text = 'note {not json} then {"recommendedSpread": 0.1}'
    assert extract_json_object(text) == {"recommendedSpread": 0.1}


def test_invalid_fenced_block_falls_back_to_brace_scan():
    text = '```json\n{broken\n```\nanswer: {"recommendedSpread": 0.3}'
    assert extract_json_object(text) == {"recommendedSpread": 0.3}


@pytest.mark.parametrize(
    "raw",
    [
        "I cannot answer that.",
        "",
        '{"recommendedSpread": "abc", "confidenceScore": 0.9, "reasoning": "x"}',
        '{"confidenceScore": 0.9, "reasoning": "x"}',
        '{"recommendedSpread": 0.1, "confidenceScore": 0.9}',
    ],
)
def test_unusable_response_degrades(context, raw):
    payload = _coercer().coerce(raw, context)
    assert payload.parse_failed is True
    assert payload.recommended_spread == context.bounds.default_spread
    assert payload.confidence_score <= Decimal("0.3")
    assert payload.issues == (ErrorKind.RESPONSE_PARSE_FAILURE,)


def test_out_of_range_values_are_clamped(context):
    raw = '{"recommendedSpread": 0.9, "confidenceScore": 1.4, "reasoning": "aggressive"}'
    payload = _coercer().coerce(raw, context)
    assert payload.recommended_spread == context.bounds.max_spread
    assert payload.confidence_score == Decimal("1")
    assert len(payload.corrections) == 2
    assert payload.issues == (ErrorKind.CONSTRAINT_VIOLATION,)


def test_below_minimum_is_raised(context):
    raw = '{"recommendedSpread": -0.05, "confidenceScore": -0.2, "reasoning": "too low"}'
    payload = _coercer().coerce(raw, context)
    assert payload.recommended_spread == context.bounds.min_spread
    assert payload.confidence_score == Decimal("0")
