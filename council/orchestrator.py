"""Council orchestration: fan-out, anonymize, critique, aggregate, synthesize."""

import asyncio
import logging
import random
import time
from collections.abc import Mapping
from typing import Any

from council.aggregation import aggregate_critiques
from council.anonymize import anonymize_responses, shuffle_responses
from council.critique import run_critique_round
from council.errors import NoProvidersAvailableError, NoWorkerResponsesError
from council.events import EventSink, PhaseEvent, emit
from council.models import (
    CouncilConfig,
    CouncilResult,
    GenerationRequest,
    Message,
    PhaseTimings,
    WorkerResponse,
)
from council.providers.base import AIProvider
from council.registry import ProviderRegistry
from council.synthesis import synthesize

logger = logging.getLogger(__name__)

DEFAULT_CONFIG = CouncilConfig()


def _ms_since(start: float) -> float:
    return (time.monotonic() - start) * 1000


class Council:
    """Runs the multi-model ensemble for one question at a time.

    Holds only its registry and immutable config, so one instance can serve
    many queries.
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        config: CouncilConfig | Mapping[str, Any] | None = None,
        *,
        on_event: EventSink | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._registry = registry
        if isinstance(config, CouncilConfig):
            self._config = config
        else:
            self._config = DEFAULT_CONFIG.merge(config)
        self._on_event = on_event
        self._rng = rng

    @property
    def config(self) -> CouncilConfig:
        return self._config

    def _available_workers(self) -> list[AIProvider]:
        """Configured worker providers that are registered, in config order."""
        return [
            self._registry.get_provider(pid)
            for pid in self._config.worker_providers
            if self._registry.has_provider(pid)
        ]

    async def query(self, prompt: str, system_prompt: str | None = None) -> CouncilResult:
        """Execute the full council process for one question.

        Raises:
            NoProvidersAvailableError: No configured worker is available.
            NoWorkerResponsesError: Every worker failed.
            ChairmanUnavailableError: The chairman is not registered.
            ProviderError: The chairman call failed.
        """
        start = time.monotonic()
        timings = PhaseTimings()

        logger.info("Starting council query: %.100s", prompt)
        logger.debug("Council config: %s", self._config)

        # Fan-out and generation
        phase_start = time.monotonic()
        self._emit(PhaseEvent("start", "fanout"))
        workers = await self._execute_workers(prompt, system_prompt)
        timings.fanout_ms = _ms_since(phase_start)
        timings.generation_ms = timings.fanout_ms
        self._emit(PhaseEvent("end", "fanout", elapsed_ms=timings.fanout_ms, detail=f"{len(workers)} responses"))

        # Anonymize
        phase_start = time.monotonic()
        self._emit(PhaseEvent("start", "anonymize"))
        shuffled = shuffle_responses(workers, self._rng)
        anonymized = anonymize_responses(shuffled)
        timings.anonymize_ms = _ms_since(phase_start)
        self._emit(PhaseEvent("end", "anonymize", elapsed_ms=timings.anonymize_ms))

        # Critique, then aggregate
        phase_start = time.monotonic()
        self._emit(PhaseEvent("start", "critique"))
        critiques = await run_critique_round(
            prompt,
            anonymized,
            self._available_workers(),
            max_tokens=self._config.max_tokens,
            on_event=self._on_event,
        )
        aggregated = aggregate_critiques(anonymized, critiques, shuffled)
        timings.critique_ms = _ms_since(phase_start)
        self._emit(PhaseEvent("end", "critique", elapsed_ms=timings.critique_ms, detail=f"{len(critiques)} critique sets"))

        # Chairman synthesis
        phase_start = time.monotonic()
        self._emit(PhaseEvent("start", "synthesis", provider_id=self._config.chairman_provider))
        try:
            synthesis = await synthesize(prompt, anonymized, critiques, self._registry, self._config)
        except Exception as exc:
            self._emit(PhaseEvent("error", "synthesis", provider_id=self._config.chairman_provider, detail=str(exc)))
            raise
        timings.synthesis_ms = _ms_since(phase_start)
        self._emit(PhaseEvent("end", "synthesis", elapsed_ms=timings.synthesis_ms))

        total_latency = _ms_since(start)
        logger.info("Council query complete in %.0fms", total_latency)

        return CouncilResult(
            final_response=synthesis.content,
            chairman_model=synthesis.model,
            worker_responses=workers,
            critiques=critiques,
            aggregated_critiques=aggregated,
            total_latency_ms=total_latency,
            debug=timings if self._config.debug else None,
        )

    async def _execute_workers(self, prompt: str, system_prompt: str | None) -> list[WorkerResponse]:
        """Call every available worker concurrently and wait for all of them.

        The result keeps ``worker_providers`` order, filtered by success.
        """
        providers = self._available_workers()
        if not providers:
            raise NoProvidersAvailableError("No LLM providers available for council workers")

        logger.info("Available workers: %s", ", ".join(p.name() for p in providers))

        messages: list[Message] = []
        if system_prompt:
            messages.append(Message("system", system_prompt))
        messages.append(Message("user", prompt))
        request = GenerationRequest(
            messages=tuple(messages),
            max_tokens=self._config.max_tokens,
            temperature=self._config.temperature,
        )

        results = await asyncio.gather(*(self._call_worker(p, request) for p in providers))
        workers = [r for r in results if r is not None]

        if not workers:
            raise NoWorkerResponsesError("No worker responses received")
        return workers

    async def _call_worker(self, provider: AIProvider, request: GenerationRequest) -> WorkerResponse | None:
        """Never raises; a failed worker yields None."""
        try:
            response = await provider.generate(request)
        except Exception as exc:
            logger.warning("Worker %s failed: %s", provider.name(), exc)
            self._emit(PhaseEvent("error", "fanout", provider_id=provider.name(), detail=str(exc)))
            return None
        logger.info("Worker %s responded (%.0fms)", provider.name(), response.latency_ms)
        return WorkerResponse(provider_id=provider.name(), model_id=response.model, response=response)

    def _emit(self, event: PhaseEvent) -> None:
        emit(self._on_event, event)
