"""
Common types for recommendation providers.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

import httpx

from spread_advisor.config import ProviderSettings
from spread_advisor.llm.coercion import ResponseCoercer
from spread_advisor.llm.prompts import PromptComposer
from spread_advisor.models import (
    ErrorKind,
    ProviderDescriptor,
    RecommendationContext,
    StructuredPayload,
)
from spread_advisor.utils.errors import ProviderCallError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProviderOutcome:
    """Result of one provider call: a payload on success, an error kind otherwise."""
    provider: str
    model: str
    success: bool
    payload: Optional[StructuredPayload] = None
    error_kind: Optional[ErrorKind] = None
    error_message: Optional[str] = None

    @classmethod
    def ok(cls, provider: str, model: str, payload: StructuredPayload) -> "ProviderOutcome":
        return cls(provider=provider, model=model, success=True, payload=payload)

    @classmethod
    def failure(cls, provider: str, model: str, kind: ErrorKind, message: str) -> "ProviderOutcome":
        return cls(provider=provider, model=model, success=False, error_kind=kind, error_message=message)


class BaseSpreadProvider(ABC):
    """Abstract base class for all recommendation providers"""

    #: True for providers backed by a language model
    is_llm: bool = True

    def __init__(self, settings: ProviderSettings):
        self.settings = settings
        self.model = settings.model
        self.timeout = settings.timeout

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return the provider name"""
        pass

    def get_model_name(self) -> str:
        return self.model

    @abstractmethod
    async def is_available(self) -> bool:
        """Check if the provider can currently take requests"""
        pass

    @abstractmethod
    async def generate(self, context: RecommendationContext) -> ProviderOutcome:
        """Produce a recommendation payload for the context"""
        pass

    async def describe(self) -> ProviderDescriptor:
        try:
            available = await self.is_available()
        except Exception as e:
            logger.warning(f"Availability check failed for {self.get_provider_name()}: {e}")
            available = False
        return ProviderDescriptor(
            name=self.get_provider_name(),
            model=self.get_model_name(),
            available=available,
        )

    def __str__(self) -> str:
        return f"{self.get_provider_name()}({self.model})"

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} model='{self.model}'>"


class LLMSpreadProvider(BaseSpreadProvider):
    """Shared compose -> complete -> coerce flow for language-model providers."""

    def __init__(self, settings: ProviderSettings, composer=None, coercer=None):
        super().__init__(settings)
        self.composer = composer or PromptComposer()
        self.coercer = coercer or ResponseCoercer()

    @abstractmethod
    async def _complete(self, prompt: str) -> str:
        """Send the prompt and return the raw model text. Raises ProviderCallError."""
        pass

    async def generate(self, context: RecommendationContext) -> ProviderOutcome:
        name = self.get_provider_name()
        logger.info(
            f"Requesting recommendation from {name} ({self.model})",
            extra={"customer_id": context.customer_id, "currency": context.currency, "provider": name},
        )
        prompt = self.composer.compose(context)
        try:
            raw = await self._complete(prompt)
        except ProviderCallError as e:
            logger.error(f"{name} call failed: {e}", extra={"provider": name})
            return ProviderOutcome.failure(name, self.model, ErrorKind.PROVIDER_CALL_FAILURE, str(e))
        except httpx.TimeoutException:
            logger.error(f"{name} request timed out after {self.timeout}s", extra={"provider": name})
            return ProviderOutcome.failure(
                name, self.model, ErrorKind.PROVIDER_CALL_FAILURE, f"{name} request timed out"
            )
        except (httpx.HTTPError, ValueError, KeyError, IndexError, TypeError) as e:
            logger.error(f"{name} request error: {e}", extra={"provider": name})
            return ProviderOutcome.failure(
                name, self.model, ErrorKind.PROVIDER_CALL_FAILURE, f"{name} request failed: {e}"
            )

        payload = self.coercer.coerce(raw, context, model=self.model)
        if payload.parse_failed:
            logger.warning(f"{name} response could not be parsed; using degraded payload")
        return ProviderOutcome.ok(name, self.model, payload)
