"""Shuffle worker responses and strip their identity before critique."""

import logging
import random
from collections.abc import Sequence
from typing import TypeVar

from council.models import AnonymizedResponse, WorkerResponse

logger = logging.getLogger(__name__)

T = TypeVar("T")

_LETTERS = "ABCDEFGH"


def shuffle_responses(items: Sequence[T], rng: random.Random | None = None) -> list[T]:
    """Return a uniformly permuted copy of ``items``.

    Uses the process-wide ``random`` source unless ``rng`` is given.
    """
    shuffled = list(items)
    (rng or random).shuffle(shuffled)
    return shuffled


def response_label(index: int) -> str:
    """'Response A' .. 'Response H', then 'Response 9', 'Response 10', ..."""
    if index < len(_LETTERS):
        return f"Response {_LETTERS[index]}"
    return f"Response {index + 1}"


def anonymize_responses(workers: Sequence[WorkerResponse]) -> list[AnonymizedResponse]:
    """Label each response by position.

    Output index i always describes ``workers[i]``; aggregation relies on it
    to attribute critiques back to the right provider.
    """
    anonymized = [
        AnonymizedResponse(
            id=response_label(i),
            content=w.response.content,
            source_provider_id=w.provider_id,
            source_model_id=w.response.model,
        )
        for i, w in enumerate(workers)
    ]
    logger.debug(
        "Anonymization map: %s",
        {a.id: a.source_provider_id for a in anonymized},
    )
    return anonymized
