"""Provider registry: the process-wide set of available backends."""

import logging
from collections.abc import Iterable

from config.config_loader import ProviderConfig, RegistryConfig
from council.providers.anthropic import AnthropicProvider
from council.providers.base import AIProvider
from council.providers.gemini import GeminiProvider
from council.providers.openai_provider import OpenAIProvider
from council.providers.xai import XAIProvider

logger = logging.getLogger(__name__)

PROVIDER_CLASSES: dict[str, type[AIProvider]] = {
    "openai": OpenAIProvider,
    "anthropic": AnthropicProvider,
    "google": GeminiProvider,
    "grok": XAIProvider,
}


class ProviderRegistry:
    """Holds the providers that reported themselves available.

    Built once from an explicit config. Construction performs no network
    calls and never reads the environment; read-only afterwards.
    """

    def __init__(self, config: RegistryConfig | None = None) -> None:
        config = config or {}
        self._providers: dict[str, AIProvider] = {}
        for provider_id, provider_cls in PROVIDER_CLASSES.items():
            provider = provider_cls(config.get(provider_id, ProviderConfig()))
            self._register(provider)

    @classmethod
    def from_providers(cls, providers: Iterable[AIProvider]) -> "ProviderRegistry":
        """Build a registry from already-constructed providers."""
        registry = cls.__new__(cls)
        registry._providers = {}
        for provider in providers:
            registry._register(provider)
        return registry

    def _register(self, provider: AIProvider) -> None:
        if provider.is_available():
            self._providers[provider.name()] = provider
        else:
            logger.debug("Provider %s not available, not registered", provider.name())

    def get_provider(self, provider_id: str) -> AIProvider | None:
        return self._providers.get(provider_id)

    def available_providers(self) -> list[AIProvider]:
        return list(self._providers.values())

    def available_provider_ids(self) -> list[str]:
        return list(self._providers)

    def has_provider(self, provider_id: str) -> bool:
        return provider_id in self._providers

    @property
    def count(self) -> int:
        return len(self._providers)

    def __len__(self) -> int:
        return self.count
