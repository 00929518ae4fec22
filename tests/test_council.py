"""Tests for council/orchestrator.py."""

import asyncio
import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from config.config_loader import ProviderConfig
from council.errors import ChairmanUnavailableError, NoProvidersAvailableError, NoWorkerResponsesError
from council.models import CouncilConfig, CouncilResult
from council.orchestrator import DEFAULT_CONFIG, Council
from council.providers.base import ProviderError
from council.providers.openai_provider import OpenAIProvider
from council.registry import ProviderRegistry
from tests.conftest import MockProvider, ReversingRandom, make_response


def _ranking(*entries: tuple[str, int, float]) -> str:
    return json.dumps([
        {
            "responseId": rid,
            "rank": rank,
            "strengths": [],
            "weaknesses": [],
            "errors": [],
            "overallScore": score,
            "reasoning": "",
        }
        for rid, rank, score in entries
    ])


def _scripted(provider: MockProvider, *contents: str) -> None:
    """Make successive generate calls return the given contents in order."""
    provider.generate = AsyncMock(side_effect=[
        make_response(provider.name(), c, f"{provider.name()}-model") for c in contents
    ])


async def test_query_full_pipeline(mock_registry, mock_providers, question):
    config = CouncilConfig(worker_providers=("openai", "google"), chairman_provider="anthropic")
    council = Council(mock_registry, config, rng=ReversingRandom())

    # Reversed order: Response A = google, Response B = openai
    _scripted(mock_providers["openai"], "openai answer", _ranking(("Response A", 1, 90), ("Response B", 2, 70)))
    _scripted(mock_providers["google"], "google answer", _ranking(("Response A", 1, 80), ("Response B", 2, 60)))
    _scripted(mock_providers["anthropic"], "Final synthesized answer")

    result = await council.query(question)

    assert isinstance(result, CouncilResult)
    assert result.final_response == "Final synthesized answer"
    assert result.chairman_model == "anthropic-model"
    assert [w.provider_id for w in result.worker_responses] == ["openai", "google"]
    assert [c.critic_provider_id for c in result.critiques] == ["openai", "google"]

    by_provider = {a.provider_id: a for a in result.aggregated_critiques}
    assert by_provider["google"].response_id == "Response A"
    assert by_provider["google"].average_rank == 1
    assert by_provider["google"].average_score == 85
    assert by_provider["google"].votes == 2
    assert by_provider["openai"].average_rank == 2
    assert by_provider["openai"].votes == 0

    assert result.total_latency_ms >= 0
    assert result.debug is not None
    assert result.debug.generation_ms == result.debug.fanout_ms


async def test_chairman_not_a_worker_is_not_asked_to_critique(mock_registry, mock_providers, question):
    council = Council(mock_registry, {"worker_providers": ["openai"], "chairman_provider": "anthropic"})
    await council.query(question)
    assert mock_providers["openai"].generate.await_count == 2   # answer + critique
    assert mock_providers["anthropic"].generate.await_count == 1
    mock_providers["google"].generate.assert_not_called()


async def test_worker_messages_include_system_prompt(mock_registry, mock_providers, question):
    council = Council(mock_registry, {"worker_providers": ["openai"], "max_tokens": 256, "temperature": 0.9})
    await council.query(question, system_prompt="Answer in one sentence.")

    request = mock_providers["openai"].generate.await_args_list[0].args[0]
    assert [(m.role, m.content) for m in request.messages] == [
        ("system", "Answer in one sentence."),
        ("user", question),
    ]
    assert request.max_tokens == 256
    assert request.temperature == 0.9


async def test_worker_messages_without_system_prompt(mock_registry, mock_providers, question):
    await Council(mock_registry, {"worker_providers": ["openai"]}).query(question)
    request = mock_providers["openai"].generate.await_args_list[0].args[0]
    assert [m.role for m in request.messages] == ["user"]


async def test_unavailable_workers_are_filtered(mock_registry, mock_providers, question):
    council = Council(mock_registry, {"worker_providers": ["grok", "google"], "chairman_provider": "google"})
    result = await council.query(question)
    assert [w.provider_id for w in result.worker_responses] == ["google"]


async def test_no_available_workers_is_fatal(mock_registry, mock_providers, question):
    council = Council(mock_registry, {"worker_providers": ["grok"]})
    with pytest.raises(NoProvidersAvailableError, match="No LLM providers available"):
        await council.query(question)
    for provider in mock_providers.values():
        provider.generate.assert_not_called()


async def test_empty_registry_is_fatal(question):
    council = Council(ProviderRegistry.from_providers([]))
    with pytest.raises(NoProvidersAvailableError):
        await council.query(question)


async def test_all_workers_failing_is_fatal(mock_registry, mock_providers, question):
    for pid in ("openai", "google"):
        mock_providers[pid].generate = AsyncMock(side_effect=ProviderError(pid, "503"))
    with pytest.raises(NoWorkerResponsesError, match="No worker responses"):
        await Council(mock_registry).query(question)


async def test_failed_worker_is_excluded_and_reported(mock_registry, mock_providers, question):
    mock_providers["openai"].generate = AsyncMock(side_effect=[ProviderError("openai", "rate limited"),
                                                               make_response("openai", "[]")])
    events = []
    council = Council(mock_registry, {"worker_providers": ["openai", "google"], "chairman_provider": "google"},
                      on_event=events.append)

    result = await council.query(question)

    assert [w.provider_id for w in result.worker_responses] == ["google"]
    errors = [e for e in events if e.kind == "error"]
    assert [(e.phase, e.provider_id) for e in errors] == [("fanout", "openai")]
    assert "rate limited" in errors[0].detail


async def test_output_order_ignores_completion_order(question):
    slow = MockProvider("openai", "slow")
    fast = MockProvider("google", "fast")

    async def slow_generate(request, model_id=None):
        await asyncio.sleep(0.05)
        return make_response("openai", "slow answer")

    slow.generate = AsyncMock(side_effect=slow_generate)
    registry = ProviderRegistry.from_providers([slow, fast])
    council = Council(registry, {"worker_providers": ["openai", "google"]})

    result = await council.query(question)
    assert [w.provider_id for w in result.worker_responses] == ["openai", "google"]


async def test_unparseable_critiques_still_complete(mock_registry, mock_providers, question):
    _scripted(mock_providers["openai"], "answer", "I liked them both.", "final answer")
    _scripted(mock_providers["google"], "answer 2", "no json here")
    result = await Council(mock_registry).query(question)

    assert [len(c.critiques) for c in result.critiques] == [0, 0]
    assert all(a.average_rank == 0 and a.votes == 0 for a in result.aggregated_critiques)
    assert result.final_response


async def test_missing_chairman_fails_before_synthesis(mock_registry, mock_providers, question):
    events = []
    council = Council(mock_registry, {"worker_providers": ["openai", "google"], "chairman_provider": "grok"},
                      on_event=events.append)

    with pytest.raises(ChairmanUnavailableError):
        await council.query(question)

    # Workers answered and critiqued; nobody was asked to synthesize
    assert mock_providers["openai"].generate.await_count == 2
    assert mock_providers["google"].generate.await_count == 2
    mock_providers["anthropic"].generate.assert_not_called()
    assert any(e.kind == "error" and e.phase == "synthesis" for e in events)


async def test_chairman_failure_propagates(mock_registry, mock_providers, question):
    mock_providers["anthropic"].generate = AsyncMock(side_effect=ProviderError("anthropic", "overloaded"))
    council = Council(mock_registry, {"chairman_provider": "anthropic"})
    with pytest.raises(ProviderError, match="overloaded"):
        await council.query(question)


async def test_debug_timings_omitted_when_disabled(mock_registry, question):
    result = await Council(mock_registry, {"debug": False}).query(question)
    assert result.debug is None


async def test_phase_events_in_order(mock_registry, question):
    events = []
    await Council(mock_registry, on_event=events.append).query(question)
    assert [(e.kind, e.phase) for e in events] == [
        ("start", "fanout"), ("end", "fanout"),
        ("start", "anonymize"), ("end", "anonymize"),
        ("start", "critique"), ("end", "critique"),
        ("start", "synthesis"), ("end", "synthesis"),
    ]


async def test_raising_event_sink_does_not_break_query(mock_registry, question):
    def bad_sink(event):
        raise RuntimeError("sink down")

    result = await Council(mock_registry, on_event=bad_sink).query(question)
    assert result.final_response


async def test_council_is_reusable(mock_registry, question):
    council = Council(mock_registry)
    first = await council.query(question)
    second = await council.query("Another question?")
    assert len(first.worker_responses) == len(second.worker_responses) == 2
    assert council.config == DEFAULT_CONFIG


def test_mapping_config_merges_over_default(mock_registry):
    council = Council(mock_registry, {"chairman_provider": "google", "max_tokens": None})
    assert council.config.chairman_provider == "google"
    assert council.config.max_tokens == DEFAULT_CONFIG.max_tokens
    assert council.config.worker_providers == DEFAULT_CONFIG.worker_providers


async def test_empty_chairman_answer_is_returned_verbatim(mock_providers, question):
    chairman = OpenAIProvider(ProviderConfig(api_key="sk-test"))
    chairman._client = MagicMock()
    chairman._client.chat.completions.create = AsyncMock(return_value=SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=""))],
        usage=None,
    ))
    registry = ProviderRegistry.from_providers([chairman, mock_providers["google"]])
    council = Council(registry, {"worker_providers": ["google"], "chairman_provider": "openai"})

    result = await council.query(question)

    assert result.final_response == ""
    assert result.chairman_model == "gpt-4.1"


async def test_empty_worker_answer_is_kept(mock_registry, mock_providers, question):
    _scripted(mock_providers["openai"], "", "[]", "final answer")
    result = await Council(mock_registry).query(question)
    assert [(w.provider_id, w.response.content) for w in result.worker_responses] == [
        ("openai", ""),
        ("google", "Google answer"),
    ]
