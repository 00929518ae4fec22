"""Shared pytest fixtures."""

import random
from unittest.mock import AsyncMock

import pytest

from config.config_loader import ProviderConfig
from council.models import (
    AggregatedCritique,
    AnonymizedResponse,
    CouncilResult,
    GenerationRequest,
    GenerationResponse,
    ModelCritique,
    PhaseTimings,
    TokenUsage,
    WorkerResponse,
)
from council.providers.base import AIProvider
from council.registry import ProviderRegistry
from council.schemas import Critique


def make_response(provider_id: str, content: str, model: str = "mock-model") -> GenerationResponse:
    return GenerationResponse(
        content=content,
        model=model,
        provider_id=provider_id,
        usage=TokenUsage(prompt_tokens=5, completion_tokens=5, total_tokens=10),
        latency_ms=100.0,
    )


def make_worker(provider_id: str, content: str, model: str | None = None) -> WorkerResponse:
    model = model or f"{provider_id}-model"
    return WorkerResponse(provider_id=provider_id, model_id=model, response=make_response(provider_id, content, model))


def make_critique(response_id: str, rank: int, score: float, **kwargs) -> Critique:
    return Critique(
        response_id=response_id,
        rank=rank,
        strengths=kwargs.get("strengths", []),
        weaknesses=kwargs.get("weaknesses", []),
        errors=kwargs.get("errors", []),
        overall_score=score,
        reasoning=kwargs.get("reasoning", "ok"),
    )


class MockProvider(AIProvider):
    """Test double AIProvider."""

    def __init__(self, provider_name: str = "openai", response_content: str = "Mock response",
                 available: bool = True) -> None:
        self.provider_id = provider_name
        self.display_name = provider_name
        self.fallback_model = f"{provider_name}-model"
        self._config = ProviderConfig()
        self._client = None
        self._available = available
        self._response_content = response_content
        # Shadow the class method with an AsyncMock at the instance level.
        # ABC check passes because generate is defined in the class body below.
        self.generate = AsyncMock(  # type: ignore[assignment]
            return_value=make_response(provider_name, response_content, f"{provider_name}-model")
        )

    def _create_client(self, api_key: str):
        return None

    def is_available(self) -> bool:
        return self._available

    async def generate(self, request: GenerationRequest, model_id: str | None = None) -> GenerationResponse:  # type: ignore[override]
        """Default implementation; replaced by AsyncMock in __init__."""
        return make_response(self.provider_id, self._response_content, model_id or self.fallback_model)


class ReversingRandom(random.Random):
    """Deterministic 'shuffle' that reverses the list in place."""

    def shuffle(self, x, *args, **kwargs) -> None:  # type: ignore[override]
        x.reverse()


@pytest.fixture
def question() -> str:
    return "Should we use YAML or JSON for config?"


@pytest.fixture
def two_workers() -> list[WorkerResponse]:
    return [make_worker("openai", "x"), make_worker("google", "y")]


@pytest.fixture
def anonymized_pair() -> list[AnonymizedResponse]:
    return [
        AnonymizedResponse("Response A", "Use YAML.", "openai", "gpt-4.1"),
        AnonymizedResponse("Response B", "Use JSON.", "google", "gemini-2.5-flash"),
    ]


@pytest.fixture
def sample_model_critique() -> ModelCritique:
    return ModelCritique(
        critic_provider_id="anthropic",
        critic_model_id="claude-sonnet-4-20250514",
        critiques=[
            make_critique("Response A", 1, 90, strengths=["clear"]),
            make_critique("Response B", 2, 70, weaknesses=["vague"]),
        ],
        latency_ms=250.0,
    )


@pytest.fixture
def mock_providers() -> dict[str, MockProvider]:
    return {
        "openai": MockProvider("openai", "OpenAI answer"),
        "google": MockProvider("google", "Google answer"),
        "anthropic": MockProvider("anthropic", "Anthropic answer"),
    }


@pytest.fixture
def mock_registry(mock_providers) -> ProviderRegistry:
    return ProviderRegistry.from_providers(mock_providers.values())


@pytest.fixture
def sample_result(sample_model_critique) -> CouncilResult:
    return CouncilResult(
        final_response="## Verdict\nUse YAML for hand-edited config.",
        chairman_model="gpt-4.1",
        worker_responses=[
            make_worker("openai", "Use YAML.", "gpt-4.1"),
            make_worker("google", "Use JSON.", "gemini-2.5-flash"),
        ],
        critiques=[sample_model_critique],
        aggregated_critiques=[
            AggregatedCritique(
                response_id="Response A", provider_id="openai", model_id="gpt-4.1", content="Use YAML.",
                average_rank=1.0, average_score=90.0, all_strengths=["clear"], all_weaknesses=[],
                all_errors=[], votes=1,
            ),
            AggregatedCritique(
                response_id="Response B", provider_id="google", model_id="gemini-2.5-flash", content="Use JSON.",
                average_rank=2.0, average_score=70.0, all_strengths=[], all_weaknesses=["vague"],
                all_errors=["Claims JSON supports comments"], votes=0,
            ),
        ],
        total_latency_ms=1234.0,
        debug=PhaseTimings(fanout_ms=500.0, generation_ms=500.0, anonymize_ms=0.1,
                           critique_ms=400.0, synthesis_ms=300.0),
    )
