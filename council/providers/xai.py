"""xAI Grok provider using openai SDK (OpenAI-compatible API)."""

from openai import AsyncOpenAI

from council.models import ModelInfo
from council.providers.openai_provider import OpenAIProvider

XAI_BASE_URL = "https://api.x.ai/v1"

GROK_MODELS = (
    ModelInfo("grok-3", "Grok 3", 131_072),
    ModelInfo("grok-3-mini", "Grok 3 Mini", 131_072),
    ModelInfo("grok-2", "Grok 2", 131_072),
)


class XAIProvider(OpenAIProvider):
    """xAI Grok provider via OpenAI-compatible API."""

    provider_id = "grok"
    display_name = "xAI Grok"
    available_models = GROK_MODELS
    fallback_model = "grok-3"

    def _create_client(self, api_key: str) -> AsyncOpenAI:
        return AsyncOpenAI(api_key=api_key, base_url=self._config.base_url or XAI_BASE_URL)
