"""
OpenAI chat-completions provider for spread recommendations.
"""

import logging

import httpx

from spread_advisor.config import ProviderSettings
from spread_advisor.utils.errors import ProviderCallError

from ..types import LLMSpreadProvider

logger = logging.getLogger(__name__)

DEFAULT_API_BASE = "https://api.openai.com/v1"


class OpenAIProvider(LLMSpreadProvider):
    def __init__(self, settings: ProviderSettings, composer=None, coercer=None):
        super().__init__(settings, composer=composer, coercer=coercer)
        self.api_base = (settings.base_url or DEFAULT_API_BASE).rstrip("/")
        self.api_key = settings.api_key

        self.headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "User-Agent": "SpreadAdvisor/1.0",
        }

        logger.debug(f"Initialized OpenAI provider with model: {self.model}")

    def get_provider_name(self) -> str:
        return "openai"

    async def is_available(self) -> bool:
        """A hosted endpoint is usable once a credential is configured"""
        return bool(self.api_key)

    async def _complete(self, prompt: str) -> str:
        payload = {
            "model": self.model,
            "temperature": self.settings.temperature,
            "max_tokens": self.settings.max_tokens,
            "messages": [{"role": "user", "content": prompt}],
        }

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.post(
                f"{self.api_base}/chat/completions",
                headers=self.headers,
                json=payload,
            )

            if response.status_code != 200:
                error_text = response.text
                logger.error(f"OpenAI API error {response.status_code}: {error_text}")

                if response.status_code == 401:
                    raise ProviderCallError("OpenAI authentication failed. Check OPENAI_API_KEY.", 401)
                elif response.status_code == 429:
                    raise ProviderCallError("OpenAI rate limit exceeded.", 429)
                else:
                    raise ProviderCallError(
                        f"OpenAI API error {response.status_code}: {error_text}", response.status_code
                    )

            data = response.json()
            choice = (data.get("choices") or [{}])[0]
            content = (choice.get("message") or {}).get("content")
            if not isinstance(content, str):
                raise ProviderCallError("OpenAI response carried no message content")

            usage = data.get("usage")
            if usage:
                logger.debug(f"OpenAI usage: {usage.get('total_tokens', 0)} tokens")
            return content
