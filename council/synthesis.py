"""Chairman synthesis: build the final prompt and call the chairman."""

import json
import logging
from collections.abc import Sequence

from council.errors import ChairmanUnavailableError
from council.models import (
    AnonymizedResponse,
    CouncilConfig,
    GenerationRequest,
    GenerationResponse,
    Message,
    ModelCritique,
)
from council.prompts import SYNTHESIS_SYSTEM, SYNTHESIS_TASK
from council.registry import ProviderRegistry

logger = logging.getLogger(__name__)


def format_critic_sections(model_critiques: Sequence[ModelCritique]) -> list[tuple[str, str]]:
    """Return (critic label, serialized evaluations) pairs.

    Critics are numbered, not named, so the chairman does not see which
    provider wrote which critique.
    """
    return [
        (
            f"Critic {i}",
            json.dumps([c.model_dump(by_alias=True) for c in mc.critiques], indent=2),
        )
        for i, mc in enumerate(model_critiques, start=1)
    ]


def format_for_synthesis(
    question: str,
    responses: Sequence[AnonymizedResponse],
    critic_sections: Sequence[tuple[str, str]],
) -> str:
    responses_section = "\n\n".join(f"### {r.id}\n{r.content}" for r in responses)
    critiques_section = "\n\n".join(f"### {label}\n{evaluations}" for label, evaluations in critic_sections)
    return (
        f"## Original Question\n{question}\n\n"
        f"## AI Responses\n{responses_section}\n\n"
        f"## Peer Critiques\n{critiques_section}\n\n"
        f"## Your Task\n{SYNTHESIS_TASK}"
    )


async def synthesize(
    question: str,
    responses: Sequence[AnonymizedResponse],
    model_critiques: Sequence[ModelCritique],
    registry: ProviderRegistry,
    config: CouncilConfig,
) -> GenerationResponse:
    """Run the chairman synthesis and return its raw response.

    Raises:
        ChairmanUnavailableError: If the chairman is not registered. Raised
            before any network call.
        ProviderError: If the chairman call fails.
    """
    chairman = registry.get_provider(config.chairman_provider)
    if chairman is None:
        raise ChairmanUnavailableError(config.chairman_provider)

    prompt = format_for_synthesis(question, responses, format_critic_sections(model_critiques))

    logger.info("Chairman (%s) synthesizing", chairman.name())

    return await chairman.generate(
        GenerationRequest(
            messages=(Message("system", SYNTHESIS_SYSTEM), Message("user", prompt)),
            max_tokens=config.max_tokens,
            temperature=config.temperature,
        ),
        config.chairman_model,
    )
