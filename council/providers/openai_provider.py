"""OpenAI provider using openai SDK with native async."""

import asyncio
import logging
import time

from openai import AsyncOpenAI

from council.models import GenerationRequest, GenerationResponse, ModelInfo, TokenUsage
from council.providers.base import AIProvider, ProviderError, elapsed_ms

logger = logging.getLogger(__name__)

OPENAI_MODELS = (
    ModelInfo("gpt-4.1", "GPT-4.1", 1_047_576),
    ModelInfo("gpt-4.1-mini", "GPT-4.1 Mini", 1_047_576),
    ModelInfo("gpt-4.1-nano", "GPT-4.1 Nano", 1_047_576),
    ModelInfo("gpt-4o", "GPT-4o", 128_000),
    ModelInfo("gpt-4o-mini", "GPT-4o Mini", 128_000),
    ModelInfo("o3", "o3", 200_000),
    ModelInfo("o4-mini", "o4 Mini", 200_000),
    ModelInfo("o3-mini", "o3 Mini", 200_000),
    ModelInfo("o1", "o1", 200_000, supports_streaming=False),
)


class OpenAIProvider(AIProvider):
    """OpenAI provider via openai SDK."""

    provider_id = "openai"
    display_name = "OpenAI"
    available_models = OPENAI_MODELS
    fallback_model = "gpt-4.1"

    def _create_client(self, api_key: str) -> AsyncOpenAI:
        return AsyncOpenAI(api_key=api_key, base_url=self._config.base_url)

    async def generate(self, request: GenerationRequest, model_id: str | None = None) -> GenerationResponse:
        model = self._resolve_model(model_id)

        kwargs = {
            "model": model,
            "messages": [{"role": m.role, "content": m.content} for m in request.messages],
            "max_tokens": request.max_tokens,
            "temperature": request.temperature,
        }
        if request.top_p is not None:
            kwargs["top_p"] = request.top_p

        start = time.monotonic()
        try:
            response = await asyncio.wait_for(
                self._client.chat.completions.create(**kwargs),
                timeout=self._config.timeout_sec,
            )
        except TimeoutError as exc:
            raise ProviderError(self.provider_id, f"Request timed out after {self._config.timeout_sec}s") from exc
        except Exception as exc:
            raise ProviderError(self.provider_id, f"API call failed: {exc}") from exc

        latency = elapsed_ms(start)

        choice = response.choices[0] if response.choices else None
        content = (choice.message.content if choice else None) or ""

        usage = TokenUsage()
        if response.usage:
            usage = TokenUsage(
                prompt_tokens=response.usage.prompt_tokens or 0,
                completion_tokens=response.usage.completion_tokens or 0,
                total_tokens=response.usage.total_tokens or 0,
            )

        logger.info("%s %s: %.0fms, %d tokens", self.display_name, model, latency, usage.total_tokens)

        return GenerationResponse(
            content=content,
            model=model,
            provider_id=self.provider_id,
            usage=usage,
            latency_ms=latency,
        )
