"""Data model for spread recommendations.

Monetary and factor values are ``Decimal``. Contexts, payloads and results are
frozen so they can be shared across coroutines without copying.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from spread_advisor.utils.errors import ValidationError


DEFAULT_MARKET_CONDITION = "standard market conditions"
DEFAULT_CUSTOMER_PROFILE = "standard customer"


def to_decimal(value: Any, default: Optional[Decimal] = None) -> Optional[Decimal]:
    """Convert numbers and numeric strings to Decimal; ``None`` yields ``default``."""
    if value is None:
        return default
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValidationError(f"Expected a number, got {value!r}")
    try:
        result = Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as e:
        raise ValidationError(f"Expected a number, got {value!r}") from e
    if not result.is_finite():
        raise ValidationError(f"Expected a finite number, got {value!r}")
    return result


class ErrorKind(str, Enum):
    """Failure categories reported through explicit result values."""
    PROVIDER_UNAVAILABLE = "provider_unavailable"
    PROVIDER_CALL_FAILURE = "provider_call_failure"
    RESPONSE_PARSE_FAILURE = "response_parse_failure"
    CONSTRAINT_VIOLATION = "constraint_violation"
    ALL_PROVIDERS_EXHAUSTED = "all_providers_exhausted"
    SCORING_DATA_INSUFFICIENT = "scoring_data_insufficient"


@dataclass(frozen=True)
class HistoricalRecord:
    """One billing record for a customer/currency. Absent values are ``None``."""
    billing_date: Optional[date] = None
    transaction_amount: Optional[Decimal] = None
    transaction_volume: Optional[int] = None
    market_volatility: Optional[Decimal] = None
    liquidity_score: Optional[Decimal] = None  # 1-10
    profit_margin: Optional[Decimal] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HistoricalRecord":
        raw_date = data.get("billing_date")
        if isinstance(raw_date, str):
            raw_date = date.fromisoformat(raw_date)
        volume = data.get("transaction_volume")
        return cls(
            billing_date=raw_date,
            transaction_amount=to_decimal(data.get("transaction_amount")),
            transaction_volume=int(volume) if volume is not None else None,
            market_volatility=to_decimal(data.get("market_volatility")),
            liquidity_score=to_decimal(data.get("liquidity_score")),
            profit_margin=to_decimal(data.get("profit_margin")),
        )


@dataclass(frozen=True)
class CustomerAttributes:
    risk_level: float = 1.0  # 1.0 = baseline
    trading_volume: float = 0.0

    def __post_init__(self):
        if self.risk_level is None or not math.isfinite(float(self.risk_level)) or float(self.risk_level) <= 0:
            raise ValidationError(f"risk_level must be a positive finite number, got {self.risk_level!r}")
        if (
            self.trading_volume is None
            or not math.isfinite(float(self.trading_volume))
            or float(self.trading_volume) < 0
        ):
            raise ValidationError(f"trading_volume must be a non-negative finite number, got {self.trading_volume!r}")


@dataclass(frozen=True)
class SpreadBounds:
    min_spread: Decimal = Decimal("0.01")
    max_spread: Decimal = Decimal("0.5")
    default_spread: Decimal = Decimal("0.1")

    def __post_init__(self):
        for name in ("min_spread", "max_spread", "default_spread"):
            object.__setattr__(self, name, to_decimal(getattr(self, name)))
        if self.min_spread > self.max_spread:
            raise ValidationError(
                f"min_spread {self.min_spread} is greater than max_spread {self.max_spread}"
            )

    def clamp(self, value: Decimal) -> Decimal:
        return max(self.min_spread, min(self.max_spread, value))


@dataclass(frozen=True)
class ScoringWeights:
    """Factor weights for the base spread; expected to sum to 1.0."""
    volatility: Decimal = Decimal("0.3")
    volume: Decimal = Decimal("0.4")
    history: Decimal = Decimal("0.3")

    def __post_init__(self):
        for name in ("volatility", "volume", "history"):
            object.__setattr__(self, name, to_decimal(getattr(self, name)))


@dataclass(frozen=True)
class HistoricalSummary:
    avg_transaction_volume: Decimal = Decimal("0")
    avg_transaction_amount: Decimal = Decimal("0")
    avg_profit_margin: Decimal = Decimal("0.05")
    avg_liquidity_score: Decimal = Decimal("5.0")
    avg_market_volatility: Decimal = Decimal("0.5")


@dataclass(frozen=True)
class RecommendationContext:
    """Everything a provider needs to recommend a spread for one request."""
    customer_id: str
    customer_name: str
    currency: str
    as_of: date
    history: HistoricalSummary = field(default_factory=HistoricalSummary)
    customer: CustomerAttributes = field(default_factory=CustomerAttributes)
    bounds: SpreadBounds = field(default_factory=SpreadBounds)
    market_condition: Optional[str] = None
    customer_profile: Optional[str] = None
    records: Tuple[HistoricalRecord, ...] = ()

    def __post_init__(self):
        if not self.market_condition:
            object.__setattr__(self, "market_condition", DEFAULT_MARKET_CONDITION)
        if not self.customer_profile:
            object.__setattr__(self, "customer_profile", DEFAULT_CUSTOMER_PROFILE)
        object.__setattr__(self, "records", tuple(self.records))


@dataclass(frozen=True)
class FactorBreakdown:
    volatility: Decimal
    volume: Decimal
    history: Decimal
    risk_adjustment: Decimal
    base_spread: Optional[Decimal] = None
    data_points: int = 0

    @classmethod
    def neutral(cls) -> "FactorBreakdown":
        """Placeholder factors for results whose provider does not compute them."""
        return cls(
            volatility=Decimal("0.5"),
            volume=Decimal("0.5"),
            history=Decimal("0.5"),
            risk_adjustment=Decimal("1.0"),
        )


@dataclass(frozen=True)
class StructuredPayload:
    """Validated provider output."""
    recommended_spread: Decimal
    confidence_score: Decimal
    reasoning: str
    risk_assessment: str = ""
    market_analysis: str = ""
    key_factors: Tuple[str, ...] = ()
    model: Optional[str] = None
    parse_failed: bool = False
    corrections: Tuple[str, ...] = ()
    factors: Optional[FactorBreakdown] = None
    issues: Tuple[ErrorKind, ...] = ()


@dataclass(frozen=True)
class ProviderDescriptor:
    name: str
    model: str
    available: bool


@dataclass(frozen=True)
class Provenance:
    provider: str
    model: str
    used_fallback_path: bool
    used_ai_path: bool


@dataclass(frozen=True)
class ValidityWindow:
    generated_at: datetime
    expires_at: datetime

    def is_valid_at(self, moment: datetime) -> bool:
        return self.generated_at <= moment < self.expires_at


@dataclass(frozen=True)
class RecommendationResult:
    customer_id: str
    currency: str
    as_of: date
    recommended_spread: Decimal
    confidence_score: Decimal
    reasoning: str
    risk_assessment: str
    market_analysis: str
    key_factors: Tuple[str, ...]
    factors: FactorBreakdown
    provenance: Provenance
    validity: ValidityWindow
    degraded: bool = False
    issues: Tuple[ErrorKind, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "customer_id": self.customer_id,
            "currency": self.currency,
            "as_of": self.as_of.isoformat(),
            "recommended_spread": str(self.recommended_spread),
            "confidence_score": str(self.confidence_score),
            "reasoning": self.reasoning,
            "risk_assessment": self.risk_assessment,
            "market_analysis": self.market_analysis,
            "key_factors": list(self.key_factors),
            "factors": {
                "volatility": str(self.factors.volatility),
                "volume": str(self.factors.volume),
                "history": str(self.factors.history),
                "risk_adjustment": str(self.factors.risk_adjustment),
            },
            "provider": self.provenance.provider,
            "model": self.provenance.model,
            "used_fallback_path": self.provenance.used_fallback_path,
            "used_ai_path": self.provenance.used_ai_path,
            "generated_at": self.validity.generated_at.isoformat(),
            "expires_at": self.validity.expires_at.isoformat(),
            "degraded": self.degraded,
            "issues": [issue.value for issue in self.issues],
        }
