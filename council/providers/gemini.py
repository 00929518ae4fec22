"""Gemini provider using google-genai SDK with native async."""

import asyncio
import logging
import time

from google import genai
from google.genai import types as genai_types

from council.models import GenerationRequest, GenerationResponse, ModelInfo, TokenUsage
from council.providers.base import AIProvider, ProviderError, elapsed_ms, split_system_message

logger = logging.getLogger(__name__)

GOOGLE_MODELS = (
    ModelInfo("gemini-2.5-pro", "Gemini 2.5 Pro", 1_048_576),
    ModelInfo("gemini-2.5-flash", "Gemini 2.5 Flash", 1_048_576),
    ModelInfo("gemini-2.0-flash", "Gemini 2.0 Flash", 1_048_576),
    ModelInfo("gemini-2.0-flash-lite", "Gemini 2.0 Flash Lite", 1_048_576),
)


class GeminiProvider(AIProvider):
    """Google Gemini provider via google-genai SDK."""

    provider_id = "google"
    display_name = "Google"
    available_models = GOOGLE_MODELS
    fallback_model = "gemini-2.5-flash"

    def _create_client(self, api_key: str) -> genai.Client:
        if self._config.base_url:
            return genai.Client(
                api_key=api_key,
                http_options=genai_types.HttpOptions(base_url=self._config.base_url),
            )
        return genai.Client(api_key=api_key)

    async def generate(self, request: GenerationRequest, model_id: str | None = None) -> GenerationResponse:
        model = self._resolve_model(model_id)
        system, turns = split_system_message(request.messages)

        # Gemini calls the assistant role "model"
        contents = [
            genai_types.Content(
                role="model" if m.role == "assistant" else "user",
                parts=[genai_types.Part(text=m.content)],
            )
            for m in turns
        ]

        start = time.monotonic()
        try:
            response = await asyncio.wait_for(
                self._client.aio.models.generate_content(
                    model=model,
                    contents=contents,
                    config=genai_types.GenerateContentConfig(
                        system_instruction=system,
                        max_output_tokens=request.max_tokens,
                        temperature=request.temperature,
                        top_p=request.top_p,
                    ),
                ),
                timeout=self._config.timeout_sec,
            )
        except TimeoutError as exc:
            raise ProviderError(self.provider_id, f"Request timed out after {self._config.timeout_sec}s") from exc
        except Exception as exc:
            raise ProviderError(self.provider_id, f"API call failed: {exc}") from exc

        latency = elapsed_ms(start)

        usage = TokenUsage()
        meta = response.usage_metadata
        if meta:
            usage = TokenUsage(
                prompt_tokens=meta.prompt_token_count or 0,
                completion_tokens=meta.candidates_token_count or 0,
                total_tokens=meta.total_token_count or 0,
            )

        logger.info("Gemini %s: %.0fms, %d tokens", model, latency, usage.total_tokens)

        return GenerationResponse(
            content=response.text or "",
            model=model,
            provider_id=self.provider_id,
            usage=usage,
            latency_ms=latency,
        )
