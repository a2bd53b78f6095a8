"""Currency reference tables used by scoring and prompt composition."""
from __future__ import annotations

import re
from decimal import Decimal
from typing import Dict, Optional

from spread_advisor.utils.errors import ValidationError


# Supported settlement currencies
CURRENCY_NAMES: Dict[str, str] = {
    "USD": "US Dollar",
    "EUR": "Euro",
    "JPY": "Japanese Yen",
    "GBP": "British Pound",
    "CNY": "Chinese Yuan",
    "CAD": "Canadian Dollar",
    "AUD": "Australian Dollar",
    "CHF": "Swiss Franc",
    "HKD": "Hong Kong Dollar",
    "SGD": "Singapore Dollar",
}

# Reserve currencies lowest, illiquid/exotic highest
CURRENCY_RISK_WEIGHTS: Dict[str, Decimal] = {
    "USD": Decimal("0.8"),
    "EUR": Decimal("0.8"),
    "GBP": Decimal("0.9"),
    "JPY": Decimal("0.9"),
    "CHF": Decimal("0.9"),
    "CNY": Decimal("1.0"),
    "CAD": Decimal("1.0"),
    "AUD": Decimal("1.0"),
    "HKD": Decimal("1.1"),
    "SGD": Decimal("1.1"),
}

DEFAULT_CURRENCY_RISK_WEIGHT = Decimal("1.2")

_MARKET_OUTLOOK: Dict[str, str] = {
    "USD": "USD liquidity is ample and, as the global reserve currency, it is comparatively stable",
    "EUR": "EUR pricing is sensitive to euro-area policy; watch ECB decisions",
    "JPY": "JPY carries strong safe-haven demand and is sensitive to rate policy",
    "GBP": "GBP reacts noticeably to UK political and economic news and is relatively volatile",
    "CNY": "CNY internationalisation is advancing while the exchange rate remains tightly managed",
}

_DEFAULT_OUTLOOK = "liquidity for this currency is moderate; monitor geopolitical risk closely"

_CODE_RE = re.compile(r"^[A-Z]{3}$")


def normalize_currency_code(code: Optional[str]) -> str:
    """Upper-case and validate a three-letter currency code."""
    if code is None:
        raise ValidationError("Currency code is required")
    normalized = str(code).strip().upper()
    if not _CODE_RE.match(normalized):
        raise ValidationError(f"Invalid currency code: {code!r}")
    return normalized


def currency_risk_weight(code: str) -> Decimal:
    return CURRENCY_RISK_WEIGHTS.get(code.upper(), DEFAULT_CURRENCY_RISK_WEIGHT)


def currency_market_outlook(code: str) -> str:
    return _MARKET_OUTLOOK.get(code.upper(), _DEFAULT_OUTLOOK)
