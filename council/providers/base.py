"""Abstract base for all AI model providers."""

import time
from abc import ABC, abstractmethod

from config.config_loader import ProviderConfig
from council.models import GenerationRequest, GenerationResponse, Message, ModelInfo


class ProviderError(Exception):
    """Raised when a provider call fails."""

    def __init__(self, provider_name: str, message: str) -> None:
        self.provider_name = provider_name
        super().__init__(f"[{provider_name}] {message}")


def split_system_message(messages: tuple[Message, ...]) -> tuple[str | None, list[Message]]:
    """Separate the first system message from the conversation turns.

    Backends with a dedicated system-prompt field take it out of the
    message list; any further system messages are dropped.
    """
    system = next((m.content for m in messages if m.role == "system"), None)
    return system, [m for m in messages if m.role != "system"]


def elapsed_ms(start: float) -> float:
    return (time.monotonic() - start) * 1000


class AIProvider(ABC):
    """Abstract base for all AI model providers.

    Subclasses set ``provider_id``, ``display_name``, ``available_models`` and
    ``fallback_model``, create their SDK client in ``_create_client`` and
    implement ``generate``.
    """

    provider_id: str = ""
    display_name: str = ""
    available_models: tuple[ModelInfo, ...] = ()
    fallback_model: str = ""

    def __init__(self, config: ProviderConfig | None = None) -> None:
        self._config = config or ProviderConfig()
        self._client = None
        api_key = (self._config.api_key or "").strip()
        if api_key:
            self._client = self._create_client(api_key)

    @abstractmethod
    def _create_client(self, api_key: str):
        """Build the SDK client. Must not perform network I/O."""
        ...

    def name(self) -> str:
        """Return the short provider name (e.g. 'google', 'anthropic')."""
        return self.provider_id

    @property
    def default_model(self) -> str:
        return self._config.default_model or self.fallback_model

    def is_available(self) -> bool:
        """True when an API key was supplied. Purely local, no network."""
        return self._client is not None

    def _resolve_model(self, model_id: str | None) -> str:
        if self._client is None:
            raise ProviderError(self.provider_id, f"{self.display_name} provider not configured (missing API key)")
        return model_id or self.default_model

    @abstractmethod
    async def generate(self, request: GenerationRequest, model_id: str | None = None) -> GenerationResponse:
        """Generate a completion for the request's messages.

        Args:
            request: Role-tagged messages plus sampling parameters.
            model_id: Model to use; the configured default when omitted.

        Returns:
            GenerationResponse normalized to the common shape.

        Raises:
            ProviderError: On missing configuration, API failure, timeout or
                empty content.
        """
        ...
