"""Provider health check."""
from typing import Dict, Any
from datetime import datetime, timezone

from spread_advisor.llm.manager import ProviderOrchestrator
from spread_advisor.utils.logging import get_logger

logger = get_logger(__name__)


class HealthStatus:
    """Health check status."""
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


async def get_provider_health(orchestrator: ProviderOrchestrator) -> Dict[str, Any]:
    """
    Check every configured provider.

    Returns:
        Dict containing overall status and one entry per provider
    """
    descriptors = await orchestrator.provider_status()
    providers = [
        {
            "name": d.name,
            "model": d.model,
            "status": HealthStatus.HEALTHY if d.available else HealthStatus.UNHEALTHY,
        }
        for d in descriptors
    ]

    available = [d for d in descriptors if d.available]
    if descriptors and len(available) == len(descriptors):
        overall_status = HealthStatus.HEALTHY
    elif available:
        overall_status = HealthStatus.DEGRADED
    else:
        overall_status = HealthStatus.UNHEALTHY

    if overall_status != HealthStatus.HEALTHY:
        logger.warning(
            f"Provider health {overall_status}: "
            f"{len(available)}/{len(descriptors)} providers available"
        )

    return {
        "status": overall_status,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "providers": providers,
    }
