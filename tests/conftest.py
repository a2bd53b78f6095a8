"""Pytest configuration and fixtures."""
import asyncio
import tempfile
from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest
import yaml

from spread_advisor.config import AdvisorConfig, ProviderSettings
from spread_advisor.context import build_context
from spread_advisor.llm.types import BaseSpreadProvider, ProviderOutcome
from spread_advisor.models import (
    CustomerAttributes,
    HistoricalRecord,
    SpreadBounds,
    StructuredPayload,
)


def make_record(volatility="0.4", volume=1000, margin="0.05", liquidity="6.0", amount="1000", day=1):
    return HistoricalRecord(
        billing_date=date(2026, 9, day),
        transaction_amount=Decimal(amount) if amount is not None else None,
        transaction_volume=volume,
        market_volatility=Decimal(volatility) if volatility is not None else None,
        liquidity_score=Decimal(liquidity) if liquidity is not None else None,
        profit_margin=Decimal(margin) if margin is not None else None,
    )


@pytest.fixture
def context_factory():
    """Build RecommendationContexts with overridable fields."""
    def _make(
        currency="USD",
        records=(),
        risk_level=1.0,
        trading_volume=0.0,
        bounds=None,
        customer_id="C001",
    ):
        return build_context(
            customer_id=customer_id,
            customer_name="Acme Trading",
            currency=currency,
            as_of=date(2026, 10, 1),
            records=records,
            customer=CustomerAttributes(risk_level=risk_level, trading_volume=trading_volume),
            bounds=bounds or SpreadBounds(),
        )
    return _make


@pytest.fixture
def context(context_factory):
    return context_factory(records=[make_record(day=d) for d in range(1, 6)])


@pytest.fixture
def offline_config():
    """Default configuration without any credentials from the environment."""
    return AdvisorConfig.from_dict({}, env={})


class StubProvider(BaseSpreadProvider):
    """Provider double with scripted availability and outcome."""

    def __init__(self, name, available=True, outcome=None, raises=None, delay=0.0, is_llm=True, timeout=5.0):
        super().__init__(ProviderSettings(name=name, model=f"{name}-model", timeout=timeout))
        self.name = name
        self.available = available
        self.outcome = outcome
        self.raises = raises
        self.delay = delay
        self.is_llm = is_llm
        self.calls = 0
        self.availability_checks = 0

    def get_provider_name(self) -> str:
        return self.name

    async def is_available(self) -> bool:
        self.availability_checks += 1
        if isinstance(self.available, Exception):
            raise self.available
        return self.available

    async def generate(self, context):
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.raises is not None:
            raise self.raises
        if self.outcome is not None:
            return self.outcome
        return ProviderOutcome.ok(
            self.name,
            self.model,
            StructuredPayload(
                recommended_spread=Decimal("0.12"),
                confidence_score=Decimal("0.8"),
                reasoning=f"answer from {self.name}",
                key_factors=("volatility",),
            ),
        )


@pytest.fixture
def stub_provider():
    return StubProvider


@pytest.fixture
def record_factory():
    return make_record


@pytest.fixture
def temp_config_file():
    """Create a temporary config file for testing."""
    config_data = {
        'advisor': {
            'ai_enabled': True,
            'fallback_enabled': False,
            'validity_hours': 12,
            'spread': {'default': 0.2, 'min': 0.05, 'max': 0.4},
            'weights': {'volatility': 0.2, 'volume': 0.5, 'history': 0.3},
        },
        'llm': {
            'provider': 'ollama',
            'failover_order': ['ollama', 'statistical'],
            'providers': {
                'ollama': {
                    'model': 'mistral',
                    'base_url': 'http://ollama.local:11434/',
                    'timeout': 10,
                },
                'openai': {'enabled': False},
            },
        },
        'logging': {
            'level': 'DEBUG',
            'format': 'text',
        },
    }

    with tempfile.NamedTemporaryFile(mode='w', suffix='.yaml', delete=False) as f:
        yaml.dump(config_data, f)
        config_path = f.name

    yield config_path

    # Cleanup
    Path(config_path).unlink()
