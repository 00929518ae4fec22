"""Pure dataclasses for the council pipeline. No logic beyond config merging."""

from collections.abc import Mapping
from dataclasses import dataclass, field, fields, replace
from typing import Any, Literal, get_args

from council.schemas import Critique, ProviderId

PROVIDER_IDS: tuple[str, ...] = get_args(ProviderId)

Role = Literal["system", "user", "assistant"]


@dataclass(frozen=True)
class Message:
    role: Role
    content: str


@dataclass(frozen=True)
class GenerationRequest:
    messages: tuple[Message, ...]
    max_tokens: int = 4096
    temperature: float = 0.7
    top_p: float | None = None


@dataclass(frozen=True)
class TokenUsage:
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


@dataclass
class GenerationResponse:
    content: str
    model: str             # model string actually used
    provider_id: str
    usage: TokenUsage
    latency_ms: float


@dataclass(frozen=True)
class ModelInfo:
    model_id: str
    display_name: str
    max_tokens: int
    supports_streaming: bool = True


@dataclass
class WorkerResponse:
    provider_id: str
    model_id: str
    response: GenerationResponse


@dataclass
class AnonymizedResponse:
    id: str                      # "Response A", "Response B", ...
    content: str
    source_provider_id: str      # never rendered into a critique prompt
    source_model_id: str


@dataclass
class ModelCritique:
    critic_provider_id: str
    critic_model_id: str
    critiques: list[Critique] = field(default_factory=list)
    latency_ms: float = 0.0


@dataclass
class AggregatedCritique:
    response_id: str
    provider_id: str
    model_id: str
    content: str
    average_rank: float
    average_score: float
    all_strengths: list[str] = field(default_factory=list)
    all_weaknesses: list[str] = field(default_factory=list)
    all_errors: list[str] = field(default_factory=list)
    votes: int = 0


@dataclass(frozen=True)
class CouncilConfig:
    worker_providers: tuple[str, ...] = ("openai", "google")
    chairman_provider: str = "openai"
    chairman_model: str | None = None
    max_tokens: int = 4096
    temperature: float = 0.7
    debug: bool = True

    def merge(self, overrides: Mapping[str, Any] | None) -> "CouncilConfig":
        """Return a copy with every non-None override applied."""
        if not overrides:
            return self
        known = {f.name for f in fields(self)}
        unknown = set(overrides) - known
        if unknown:
            raise ValueError(f"Unknown council config keys: {sorted(unknown)}")
        changes = {k: v for k, v in overrides.items() if v is not None}
        if "worker_providers" in changes:
            changes["worker_providers"] = tuple(changes["worker_providers"])
        return replace(self, **changes)


@dataclass
class PhaseTimings:
    fanout_ms: float = 0.0
    generation_ms: float = 0.0
    anonymize_ms: float = 0.0
    critique_ms: float = 0.0     # includes aggregation
    synthesis_ms: float = 0.0


@dataclass(frozen=True)
class CouncilResult:
    final_response: str
    chairman_model: str
    worker_responses: list[WorkerResponse]
    critiques: list[ModelCritique]
    aggregated_critiques: list[AggregatedCritique]
    total_latency_ms: float
    debug: PhaseTimings | None = None
