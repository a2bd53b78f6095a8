"""
Self-hosted Ollama provider.
"""

import logging

import httpx

from spread_advisor.config import ProviderSettings
from spread_advisor.utils.errors import ProviderCallError

from ..types import LLMSpreadProvider

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:11434"
AVAILABILITY_TIMEOUT = 5.0


class OllamaProvider(LLMSpreadProvider):
    def __init__(self, settings: ProviderSettings, composer=None, coercer=None):
        super().__init__(settings, composer=composer, coercer=coercer)
        self.base_url = (settings.base_url or DEFAULT_BASE_URL).rstrip("/")

    def get_provider_name(self) -> str:
        return "ollama"

    async def is_available(self) -> bool:
        """Check the local server answers its model listing"""
        try:
            async with httpx.AsyncClient(timeout=min(self.timeout, AVAILABILITY_TIMEOUT)) as client:
                response = await client.get(f"{self.base_url}/api/tags")
                return response.status_code == 200
        except Exception as e:
            logger.warning(f"Ollama availability check failed: {e}")
            return False

    async def _complete(self, prompt: str) -> str:
        payload = {
            "model": self.model,
            "prompt": prompt,
            "stream": False,
            "options": {
                "temperature": self.settings.temperature,
                "top_p": self.settings.top_p,
                "top_k": self.settings.top_k,
            },
        }

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.post(f"{self.base_url}/api/generate", json=payload)

            if response.status_code != 200:
                logger.error(f"Ollama error {response.status_code}: {response.text}")
                raise ProviderCallError(
                    f"Ollama error {response.status_code}: {response.text}", response.status_code
                )

            content = response.json().get("response")
            if not isinstance(content, str):
                raise ProviderCallError("Ollama response carried no text")
            return content
