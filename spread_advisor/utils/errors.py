"""Custom exception classes for the Spread Advisor."""
from typing import Optional


class SpreadAdvisorError(Exception):
    """Base exception for all Spread Advisor errors."""
    pass


class ConfigurationError(SpreadAdvisorError):
    """Raised when there's a configuration error."""
    pass


class ValidationError(SpreadAdvisorError):
    """Raised when input data validation fails."""
    pass


class ProviderError(SpreadAdvisorError):
    """Base exception for recommendation provider errors."""
    pass


class ProviderCallError(ProviderError):
    """Raised inside a provider when the outbound call fails (network, timeout, non-2xx)."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class RecommendationUnavailableError(SpreadAdvisorError):
    """Raised when no AI provider succeeded and the statistical fallback is disabled."""
    pass
