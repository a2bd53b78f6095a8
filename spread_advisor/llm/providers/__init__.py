"""
Recommendation provider implementations
"""

from .openai_provider import OpenAIProvider
from .ollama_provider import OllamaProvider
from .statistical_provider import StatisticalProvider

__all__ = ['OpenAIProvider', 'OllamaProvider', 'StatisticalProvider']
