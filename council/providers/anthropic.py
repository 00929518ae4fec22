"""Anthropic Claude provider using anthropic SDK with native async."""

import asyncio
import logging
import time

import anthropic as anthropic_sdk

from council.models import GenerationRequest, GenerationResponse, ModelInfo, TokenUsage
from council.providers.base import AIProvider, ProviderError, elapsed_ms, split_system_message

logger = logging.getLogger(__name__)

ANTHROPIC_MODELS = (
    ModelInfo("claude-sonnet-4-20250514", "Claude Sonnet 4", 200_000),
    ModelInfo("claude-opus-4-20250514", "Claude Opus 4", 200_000),
    ModelInfo("claude-3-7-sonnet-20250219", "Claude 3.7 Sonnet", 200_000),
    ModelInfo("claude-3-5-sonnet-20241022", "Claude 3.5 Sonnet", 200_000),
    ModelInfo("claude-3-5-haiku-20241022", "Claude 3.5 Haiku", 200_000),
)


class AnthropicProvider(AIProvider):
    """Anthropic Claude provider via anthropic SDK."""

    provider_id = "anthropic"
    display_name = "Anthropic"
    available_models = ANTHROPIC_MODELS
    fallback_model = "claude-sonnet-4-20250514"

    def _create_client(self, api_key: str) -> anthropic_sdk.AsyncAnthropic:
        return anthropic_sdk.AsyncAnthropic(api_key=api_key, base_url=self._config.base_url)

    async def generate(self, request: GenerationRequest, model_id: str | None = None) -> GenerationResponse:
        model = self._resolve_model(model_id)
        system, turns = split_system_message(request.messages)

        kwargs = {
            "model": model,
            "max_tokens": request.max_tokens,
            "temperature": request.temperature,
            "messages": [{"role": m.role, "content": m.content} for m in turns],
        }
        if system is not None:
            kwargs["system"] = system
        if request.top_p is not None:
            kwargs["top_p"] = request.top_p

        start = time.monotonic()
        try:
            response = await asyncio.wait_for(
                self._client.messages.create(**kwargs),
                timeout=self._config.timeout_sec,
            )
        except TimeoutError as exc:
            raise ProviderError(self.provider_id, f"Request timed out after {self._config.timeout_sec}s") from exc
        except Exception as exc:
            raise ProviderError(self.provider_id, f"API call failed: {exc}") from exc

        latency = elapsed_ms(start)

        text_blocks = [b.text for b in (response.content or []) if b.type == "text"]
        usage = TokenUsage()
        if response.usage:
            usage = TokenUsage(
                prompt_tokens=response.usage.input_tokens,
                completion_tokens=response.usage.output_tokens,
                total_tokens=response.usage.input_tokens + response.usage.output_tokens,
            )

        logger.info("Anthropic %s: %.0fms, %d tokens", model, latency, usage.total_tokens)

        return GenerationResponse(
            content="\n".join(text_blocks),
            model=model,
            provider_id=self.provider_id,
            usage=usage,
            latency_ms=latency,
        )
