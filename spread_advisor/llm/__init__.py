"""
Recommendation providers and failover orchestration.
"""

from .manager import OrchestrationResult, ProviderAttempt, ProviderOrchestrator, build_providers, create_orchestrator
from .types import BaseSpreadProvider, LLMSpreadProvider, ProviderOutcome

__all__ = [
    'BaseSpreadProvider',
    'LLMSpreadProvider',
    'OrchestrationResult',
    'ProviderAttempt',
    'ProviderOrchestrator',
    'ProviderOutcome',
    'build_providers',
    'create_orchestrator',
]
