"""Critique round: every critic evaluates the full anonymized set."""

import asyncio
import json
import logging
import re
import time
from collections.abc import Sequence

from pydantic import ValidationError

from council.events import EventSink, PhaseEvent, emit
from council.models import AnonymizedResponse, GenerationRequest, Message, ModelCritique
from council.prompts import CRITIQUE_INSTRUCTIONS, CRITIQUE_SYSTEM
from council.providers.base import AIProvider
from council.schemas import Critique

logger = logging.getLogger(__name__)

# Lower than generation so rankings are more repeatable
CRITIQUE_TEMPERATURE = 0.3

# Greedy: spans from the first "[" to the last "]"
_JSON_ARRAY_RE = re.compile(r"\[[\s\S]*\]")


def format_responses_for_critique(responses: Sequence[AnonymizedResponse]) -> str:
    """Render responses by label only; source provider/model never appear."""
    return "\n---\n\n".join(f"=== {r.id} ===\n{r.content}\n" for r in responses)


def build_critique_prompt(question: str, responses: Sequence[AnonymizedResponse]) -> str:
    return (
        f"Original question: {question}\n\n"
        "Here are the responses to evaluate:\n\n"
        f"{format_responses_for_critique(responses)}\n\n"
        f"{CRITIQUE_INSTRUCTIONS}"
    )


def parse_critiques(content: str) -> list[Critique]:
    """Extract critiques from free-form critic output.

    Returns [] when no JSON array can be found or decoded. Array elements
    that do not match the Critique shape are dropped individually.
    """
    match = _JSON_ARRAY_RE.search(content)
    if not match:
        logger.warning("No JSON array found in critique response")
        return []

    try:
        parsed = json.loads(match.group(0))
    except json.JSONDecodeError as exc:
        logger.warning("Failed to parse critiques: %s", exc)
        return []

    if not isinstance(parsed, list):
        logger.warning("Critique payload is not a JSON array")
        return []

    critiques: list[Critique] = []
    for item in parsed:
        try:
            critiques.append(Critique.model_validate(item))
        except ValidationError as exc:
            logger.debug("Dropping invalid critique entry: %s", exc.errors(include_url=False))
    return critiques


async def _call_critic(
    critic: AIProvider,
    request: GenerationRequest,
    on_event: EventSink | None,
) -> ModelCritique | None:
    """Run one critic. Never raises; a failed call yields None."""
    start = time.monotonic()
    try:
        response = await critic.generate(request)
    except Exception as exc:
        logger.warning("Critique from %s failed: %s", critic.name(), exc)
        emit(on_event, PhaseEvent("error", "critique", provider_id=critic.name(), detail=str(exc)))
        return None

    latency = (time.monotonic() - start) * 1000
    critiques = parse_critiques(response.content)
    logger.info("Parsed %d critiques from %s (%.0fms)", len(critiques), critic.name(), latency)

    return ModelCritique(
        critic_provider_id=critic.name(),
        critic_model_id=response.model,
        critiques=critiques,
        latency_ms=latency,
    )


async def run_critique_round(
    question: str,
    responses: Sequence[AnonymizedResponse],
    critics: Sequence[AIProvider],
    max_tokens: int,
    on_event: EventSink | None = None,
) -> list[ModelCritique]:
    """Ask every critic to evaluate all responses, concurrently.

    Waits for every critic. Results keep the order of ``critics``; failed
    critics are left out. Never raises for a critic failure.
    """
    request = GenerationRequest(
        messages=(
            Message("system", CRITIQUE_SYSTEM),
            Message("user", build_critique_prompt(question, responses)),
        ),
        max_tokens=max_tokens,
        temperature=CRITIQUE_TEMPERATURE,
    )

    results = await asyncio.gather(*(_call_critic(c, request, on_event) for c in critics))
    return [r for r in results if r is not None]
