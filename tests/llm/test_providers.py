import json
from decimal import Decimal

import httpx
import pytest

from spread_advisor.config import ProviderSettings
from spread_advisor.llm.providers import OllamaProvider, OpenAIProvider, StatisticalProvider
from spread_advisor.models import ErrorKind

MODEL_TEXT = json.dumps(
    {
        "recommendedSpread": 0.12,
        "confidenceScore": 0.75,
        "reasoning": "Balanced profile",
        "keyFactors": ["liquidity"],
    }
)


class DummyResponse:
    def __init__(self, data, status_code: int = 200):
        self._data = data
        self.status_code = status_code
        self.text = json.dumps(data)

    def json(self):
        return self._data


class DummyClient:
    def __init__(self, timeout=None, data=None, status_code: int = 200, should_raise=None):
        self.timeout = timeout
        self._data = data
        self._status_code = status_code
        self._should_raise = should_raise
        self.requests = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False

    async def post(self, url, headers=None, json=None):
        self.requests.append((url, headers, json))
        if self._should_raise is not None:
            raise self._should_raise
        return DummyResponse(self._data, status_code=self._status_code)

    async def get(self, url, headers=None):
        self.requests.append((url, headers, None))
        if self._should_raise is not None:
            raise self._should_raise
        return DummyResponse(self._data, status_code=self._status_code)


def _patch_client(monkeypatch, **kwargs):
    client = DummyClient(**kwargs)
    monkeypatch.setattr(httpx, "AsyncClient", lambda timeout=None: client)
    return client


def _openai(api_key="sk-test"):
    return OpenAIProvider(
        ProviderSettings(name="openai", model="gpt-4", base_url="https://api.example.com/v1", api_key=api_key)
    )


def _ollama():
    return OllamaProvider(ProviderSettings(name="ollama", model="llama3", base_url="http://localhost:11434"))


@pytest.mark.asyncio
async def test_openai_success(monkeypatch, context):
    client = _patch_client(monkeypatch, data={"choices": [{"message": {"content": MODEL_TEXT}}]})
    outcome = await _openai().generate(context)

    assert outcome.success is True
    assert outcome.payload.recommended_spread == Decimal("0.12")
    url, headers, body = client.requests[0]
    assert url == "https://api.example.com/v1/chat/completions"
    assert headers["Authorization"] == "Bearer sk-test"
    assert body["model"] == "gpt-4"
    assert body["messages"][0]["role"] == "user"


@pytest.mark.asyncio
async def test_openai_error_status_becomes_failure(monkeypatch, context):
    _patch_client(monkeypatch, data={"error": "rate limited"}, status_code=429)
    outcome = await _openai().generate(context)

    assert outcome.success is False
    assert outcome.error_kind == ErrorKind.PROVIDER_CALL_FAILURE
    assert "rate limit" in outcome.error_message


@pytest.mark.asyncio
async def test_openai_network_error_becomes_failure(monkeypatch, context):
    _patch_client(monkeypatch, should_raise=httpx.ConnectError("connection refused"))
    outcome = await _openai().generate(context)
    assert outcome.success is False
    assert outcome.error_kind == ErrorKind.PROVIDER_CALL_FAILURE


@pytest.mark.asyncio
async def test_openai_availability_depends_on_key():
    assert await _openai().is_available() is True
    assert await _openai(api_key=None).is_available() is False


@pytest.mark.asyncio
async def test_openai_unparseable_text_degrades(monkeypatch, context):
    _patch_client(monkeypatch, data={"choices": [{"message": {"content": "no idea"}}]})
    outcome = await _openai().generate(context)

    assert outcome.success is True
    assert outcome.payload.parse_failed is True
    assert outcome.payload.confidence_score <= Decimal("0.3")


@pytest.mark.asyncio
async def test_ollama_success(monkeypatch, context):
    client = _patch_client(monkeypatch, data={"response": MODEL_TEXT})
    outcome = await _ollama().generate(context)

    assert outcome.success is True
    assert outcome.payload.confidence_score == Decimal("0.75")
    url, headers, body = client.requests[0]
    assert url == "http://localhost:11434/api/generate"
    assert body["stream"] is False
    assert body["options"] == {"temperature": 0.3, "top_p": 0.9, "top_k": 40}


@pytest.mark.asyncio
async def test_ollama_availability(monkeypatch):
    _patch_client(monkeypatch, data={"models": []})
    assert await _ollama().is_available() is True


@pytest.mark.asyncio
async def test_ollama_unavailable_on_error(monkeypatch):
    _patch_client(monkeypatch, should_raise=httpx.ConnectError("refused"))
    assert await _ollama().is_available() is False


@pytest.mark.asyncio
async def test_ollama_server_error(monkeypatch, context):
    _patch_client(monkeypatch, data={"error": "model not found"}, status_code=404)
    outcome = await _ollama().generate(context)
    assert outcome.success is False
    assert "404" in outcome.error_message


@pytest.mark.asyncio
async def test_statistical_provider_is_deterministic(context):
    provider = StatisticalProvider(ProviderSettings(name="statistical", model="weighted-factor-v1"))
    assert provider.is_llm is False
    assert await provider.is_available() is True

    first = await provider.generate(context)
    second = await provider.generate(context)
    assert first.payload == second.payload
    assert first.payload.factors is not None
    assert first.payload.key_factors == (
        "historical trading performance",
        "market volatility",
        "customer risk level",
        "liquidity",
    )
    assert first.payload.market_analysis.startswith("Market analysis:")
    assert first.payload.risk_assessment.startswith("Medium risk")


@pytest.mark.asyncio
async def test_statistical_provider_flags_high_risk(context_factory):
    provider = StatisticalProvider(ProviderSettings(name="statistical", model="weighted-factor-v1"))
    outcome = await provider.generate(context_factory(risk_level=1.8))
    assert outcome.payload.risk_assessment.startswith("High risk")
    assert "risk premium" in outcome.payload.reasoning
