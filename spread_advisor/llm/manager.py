"""
Provider orchestrator with ordered failover
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple, Type

from spread_advisor.config import AdvisorConfig
from spread_advisor.decision.scoring_engine import ScoringEngine
from spread_advisor.models import ErrorKind, ProviderDescriptor, RecommendationContext, StructuredPayload

from .providers import OllamaProvider, OpenAIProvider, StatisticalProvider
from .types import BaseSpreadProvider

logger = logging.getLogger(__name__)


PROVIDER_CLASSES: Dict[str, Type[BaseSpreadProvider]] = {
    "openai": OpenAIProvider,
    "ollama": OllamaProvider,
    "statistical": StatisticalProvider,
}


@dataclass(frozen=True)
class ProviderAttempt:
    provider: str
    model: str
    success: bool
    error_kind: Optional[ErrorKind] = None
    error_message: Optional[str] = None


@dataclass(frozen=True)
class OrchestrationResult:
    success: bool
    payload: Optional[StructuredPayload] = None
    provider: Optional[str] = None
    model: Optional[str] = None
    is_llm: bool = False
    attempts: Tuple[ProviderAttempt, ...] = field(default_factory=tuple)
    error_kind: Optional[ErrorKind] = None


class ProviderOrchestrator:
    """
    Tries providers in order until one returns a payload.

    The first available provider is the primary; the rest are only tried when
    fallback is enabled. Failures come back as an OrchestrationResult, never
    as an exception. Cancellation is propagated.
    """

    def __init__(self, providers: Sequence[BaseSpreadProvider], fallback_enabled: bool = True):
        self.providers: Tuple[BaseSpreadProvider, ...] = tuple(providers)
        self.fallback_enabled = fallback_enabled
        logger.info(
            f"ProviderOrchestrator initialized with {len(self.providers)} providers: "
            f"{[p.get_provider_name() for p in self.providers]}"
        )

    async def _check_available(self, provider: BaseSpreadProvider) -> bool:
        try:
            return bool(await provider.is_available())
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(f"Availability check failed for {provider.get_provider_name()}: {e}")
            return False

    async def has_available_provider(self) -> bool:
        for provider in self.providers:
            if await self._check_available(provider):
                return True
        return False

    async def provider_status(self) -> List[ProviderDescriptor]:
        return [await provider.describe() for provider in self.providers]

    async def recommend(self, context: RecommendationContext) -> OrchestrationResult:
        attempts: List[ProviderAttempt] = []
        primary_tried = False

        for provider in self.providers:
            name = provider.get_provider_name()
            model = provider.get_model_name()

            if primary_tried and not self.fallback_enabled:
                logger.info(f"Fallback disabled; not trying {name}")
                break

            if not await self._check_available(provider):
                logger.warning(f"Skipping unavailable provider: {name}")
                attempts.append(
                    ProviderAttempt(name, model, False, ErrorKind.PROVIDER_UNAVAILABLE, f"{name} is not available")
                )
                continue

            primary_tried = True
            logger.info(
                f"Attempting recommendation with provider: {name}",
                extra={"customer_id": context.customer_id, "provider": name},
            )
            try:
                outcome = await asyncio.wait_for(provider.generate(context), timeout=provider.timeout)
            except asyncio.TimeoutError:
                logger.error(f"Provider {name} timed out after {provider.timeout}s")
                attempts.append(
                    ProviderAttempt(
                        name, model, False, ErrorKind.PROVIDER_CALL_FAILURE,
                        f"timed out after {provider.timeout}s",
                    )
                )
                continue
            except Exception as e:
                logger.error(f"Provider {name} failed: {e}")
                attempts.append(ProviderAttempt(name, model, False, ErrorKind.PROVIDER_CALL_FAILURE, str(e)))
                continue

            if not outcome.success or outcome.payload is None:
                logger.error(f"Provider {name} returned a failure: {outcome.error_message}")
                attempts.append(
                    ProviderAttempt(
                        name, model, False,
                        outcome.error_kind or ErrorKind.PROVIDER_CALL_FAILURE,
                        outcome.error_message,
                    )
                )
                continue

            attempts.append(ProviderAttempt(name, outcome.model, True))
            logger.info(
                f"Successful recommendation from {name} (model: {outcome.model}, "
                f"spread: {outcome.payload.recommended_spread})"
            )
            return OrchestrationResult(
                success=True,
                payload=outcome.payload,
                provider=name,
                model=outcome.model,
                is_llm=provider.is_llm,
                attempts=tuple(attempts),
            )

        logger.error(f"All providers failed for customer {context.customer_id}")
        return OrchestrationResult(
            success=False,
            attempts=tuple(attempts),
            error_kind=ErrorKind.ALL_PROVIDERS_EXHAUSTED,
        )


def build_providers(
    config: AdvisorConfig, scoring_engine: Optional[ScoringEngine] = None
) -> Tuple[BaseSpreadProvider, ...]:
    """
    Instantiate providers in the configured selection + failover order.

    With fallback disabled the chain holds LLM providers only; the
    statistical provider is itself the fallback.
    """
    providers: List[BaseSpreadProvider] = []
    for name in config.provider_order():
        provider_class = PROVIDER_CLASSES.get(name)
        if provider_class is None:
            logger.warning(f"Unknown provider: {name}")
            continue
        if not provider_class.is_llm and not config.fallback_enabled:
            logger.info(f"Fallback disabled; leaving {name} out of the provider chain")
            continue

        settings = config.providers[name]
        if provider_class is StatisticalProvider:
            provider = StatisticalProvider(settings, scoring_engine=scoring_engine, weights=config.weights)
        else:
            provider = provider_class(settings)
        providers.append(provider)
        logger.info(f"Initialized provider: {name} ({provider.get_model_name()})")
    return tuple(providers)


def create_orchestrator(
    config: AdvisorConfig, scoring_engine: Optional[ScoringEngine] = None
) -> ProviderOrchestrator:
    return ProviderOrchestrator(build_providers(config, scoring_engine), fallback_enabled=config.fallback_enabled)
