"""Load settings.yaml into typed dataclasses. Resolves API keys at startup."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from council.models import PROVIDER_IDS, CouncilConfig

logger = logging.getLogger(__name__)

_SETTINGS_PATH = Path(__file__).parent / "settings.yaml"


@dataclass(frozen=True)
class ProviderConfig:
    api_key: str | None = None
    base_url: str | None = None
    default_model: str | None = None
    timeout_sec: float | None = None   # None: wait indefinitely


# provider id -> credentials and defaults
RegistryConfig = dict[str, ProviderConfig]


@dataclass
class AppConfig:
    registry: RegistryConfig
    council: CouncilConfig = field(default_factory=CouncilConfig)
    output_dir: Path = Path("./output")


def _env(name: str | None) -> str | None:
    if not name:
        return None
    value = os.environ.get(name, "").strip()
    return value or None


def load_config(settings_path: Path = _SETTINGS_PATH) -> AppConfig:
    """Load configuration from settings.yaml and resolve credentials.

    This is the only place the environment is consulted. Missing API keys
    are logged, not raised; the registry simply leaves those providers out.

    Raises:
        FileNotFoundError: If the settings file is missing.
        ValueError: If the settings name an unknown provider.
    """
    if not settings_path.exists():
        raise FileNotFoundError(f"Settings file not found: {settings_path}")

    with settings_path.open("r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    registry: RegistryConfig = {}
    for provider_id, provider_raw in (raw.get("providers") or {}).items():
        if provider_id not in PROVIDER_IDS:
            raise ValueError(f"Unknown provider in settings: {provider_id}")
        provider_raw = provider_raw or {}
        timeout = provider_raw.get("timeout_sec")
        cfg = ProviderConfig(
            api_key=_env(provider_raw.get("api_key_env")),
            base_url=_env(provider_raw.get("base_url_env")) or provider_raw.get("base_url"),
            default_model=provider_raw.get("default_model"),
            timeout_sec=float(timeout) if timeout is not None else None,
        )
        registry[provider_id] = cfg
        if cfg.api_key:
            logger.info("Provider configured: %s", provider_id)
        else:
            logger.info(
                "Provider skipped (no API key): %s, set %s in .env",
                provider_id,
                provider_raw.get("api_key_env"),
            )

    council = CouncilConfig().merge(raw.get("council"))
    for provider_id in (*council.worker_providers, council.chairman_provider):
        if provider_id not in PROVIDER_IDS:
            raise ValueError(f"Unknown provider in council settings: {provider_id}")

    defaults_raw = raw.get("defaults") or {}
    output_dir = Path(defaults_raw.get("output_dir", "./output"))

    return AppConfig(
        registry=registry,
        council=council,
        output_dir=output_dir,
    )
