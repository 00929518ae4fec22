"""Per-response statistics over all critics' critiques. Pure, no I/O."""

import math
from collections.abc import Sequence

from council.models import AggregatedCritique, AnonymizedResponse, ModelCritique, WorkerResponse
from council.schemas import Critique


def critique_stats(critiques: Sequence[Critique]) -> tuple[float, float]:
    """Return (average_rank, average_score); (0.0, 0.0) when empty."""
    if not critiques:
        return 0.0, 0.0
    # fsum is exact, so the result does not depend on input order
    total_rank = math.fsum(c.rank for c in critiques)
    total_score = math.fsum(c.overall_score for c in critiques)
    return total_rank / len(critiques), total_score / len(critiques)


def aggregate_critiques(
    anonymized: Sequence[AnonymizedResponse],
    model_critiques: Sequence[ModelCritique],
    workers: Sequence[WorkerResponse],
) -> list[AggregatedCritique]:
    """Combine critiques into one AggregatedCritique per worker.

    ``anonymized[i]`` and ``workers[i]`` must describe the same worker (the
    shuffled order); this is where the anonymous label is mapped back to
    the real provider.

    Raises:
        ValueError: If the two sequences differ in length.
    """
    if len(anonymized) != len(workers):
        raise ValueError(
            f"Anonymized responses ({len(anonymized)}) and workers ({len(workers)}) are not aligned"
        )

    # Pool feedback in a fixed critic order regardless of completion order
    ordered = sorted(model_critiques, key=lambda mc: mc.critic_provider_id)

    aggregated: list[AggregatedCritique] = []
    for anon, worker in zip(anonymized, workers):
        selected = [
            c for mc in ordered for c in mc.critiques if c.response_id == anon.id
        ]
        average_rank, average_score = critique_stats(selected)
        aggregated.append(
            AggregatedCritique(
                response_id=anon.id,
                provider_id=worker.provider_id,
                model_id=worker.response.model,
                content=anon.content,
                average_rank=average_rank,
                average_score=average_score,
                all_strengths=[s for c in selected for s in c.strengths],
                all_weaknesses=[w for c in selected for w in c.weaknesses],
                all_errors=[e for c in selected for e in c.errors],
                votes=sum(1 for c in selected if c.rank == 1),
            )
        )
    return aggregated
