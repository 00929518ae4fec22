"""Pydantic schemas for data that arrives from outside the process.

Critiques are parsed out of free-form model output and council queries come
from callers, so both are validated rather than trusted.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, StrictInt

ProviderId = Literal["openai", "anthropic", "google", "grok"]


class Critique(BaseModel):
    """One critic's evaluation of one anonymized response."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    response_id: str = Field(alias="responseId")
    # Strict: "1" or true must not pass as a rank
    rank: StrictInt = Field(ge=1)
    strengths: list[str]
    weaknesses: list[str]
    errors: list[str]
    overall_score: float = Field(alias="overallScore", ge=0, le=100, strict=True)
    reasoning: str


class CouncilQueryConfig(BaseModel):
    """Partial council configuration supplied with a query."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    worker_providers: list[ProviderId] | None = Field(default=None, alias="workerProviders")
    chairman_provider: ProviderId | None = Field(default=None, alias="chairmanProvider")
    chairman_model: str | None = Field(default=None, alias="chairmanModel")
    max_tokens: int | None = Field(default=None, alias="maxTokens", gt=0)
    temperature: float | None = Field(default=None, ge=0, le=2)
    debug: bool | None = None


class CouncilQuery(BaseModel):
    """A council request as accepted from a caller."""

    model_config = ConfigDict(populate_by_name=True)

    prompt: str = Field(min_length=1)
    system_prompt: str | None = Field(default=None, alias="systemPrompt")
    config: CouncilQueryConfig | None = None

    def config_overrides(self) -> dict:
        """Return the supplied config fields only, keyed by snake_case name."""
        if self.config is None:
            return {}
        return self.config.model_dump(exclude_none=True)
