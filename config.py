"""Central configuration loaded from the user's config file and environment."""
from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

CONFIG_DIR_NAME = "uwu"
CONFIG_FILE_NAME = "config.json"


class ConfigFileError(Exception):
    """Raised when the configuration could not be loaded, written or validated."""


class ProviderType(str, Enum):
    OPENAI = "OpenAI"
    CUSTOM = "Custom"
    CLAUDE = "Claude"
    GEMINI = "Gemini"


# Model used when a provider type is picked without naming one
DEFAULT_MODELS: dict[ProviderType, str] = {
    ProviderType.OPENAI: "gpt-4o",
    ProviderType.CUSTOM: "gpt-4o",
    ProviderType.CLAUDE: "claude-3-5-sonnet-20241022",
    ProviderType.GEMINI: "gemini-1.5-pro",
}

# Credential fallback, keyed by provider family
ENV_API_KEYS: dict[ProviderType, str] = {
    ProviderType.OPENAI: "OPENAI_API_KEY",
    ProviderType.CUSTOM: "OPENAI_API_KEY",
    ProviderType.CLAUDE: "ANTHROPIC_API_KEY",
    ProviderType.GEMINI: "GOOGLE_API_KEY",
}


@dataclass(frozen=True)
class Config:
    # Which backend to talk to: OpenAI | Custom | Claude | Gemini
    provider_type: ProviderType = ProviderType.OPENAI

    # Secret token; None means "not configured anywhere"
    api_key: str | None = None

    model: str = DEFAULT_MODELS[ProviderType.OPENAI]

    # Endpoint override for self-hosted or proxy deployments
    base_url: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Config:
        """Build from the camelCase JSON mapping stored on disk."""
        raw_type = data.get("type", ProviderType.OPENAI.value)
        try:
            provider_type = ProviderType(raw_type)
        except ValueError as exc:
            choices = ", ".join(p.value for p in ProviderType)
            raise ConfigFileError(
                f"Unknown provider type {raw_type!r}. Choose one of: {choices}."
            ) from exc

        model = data.get("model", DEFAULT_MODELS[provider_type])
        if not isinstance(model, str):
            raise ConfigFileError(f"'model' must be a string, got {type(model).__name__}")
        return cls(
            provider_type=provider_type,
            api_key=_optional_str(data, "apiKey"),
            model=model,
            base_url=_optional_str(data, "baseUrl"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.provider_type.value,
            "apiKey": self.api_key,
            "model": self.model,
            "baseUrl": self.base_url,
        }

    def validate(self) -> None:
        """Reject configs that cannot reach any provider.

        Raises:
            ConfigFileError: If the API key is missing/empty or the model is empty.
        """
        if not self.api_key:
            raise ConfigFileError(
                "API key not found. Please provide an API key in your config file "
                "or set the appropriate environment variable."
            )
        if not self.model:
            raise ConfigFileError("Model name cannot be empty")


def _optional_str(data: dict[str, Any], key: str) -> str | None:
    value = data.get(key)
    if value is not None and not isinstance(value, str):
        raise ConfigFileError(f"{key!r} must be a string or null, got {type(value).__name__}")
    return value


def config_path() -> Path:
    """Return the config file location, honouring ``XDG_CONFIG_HOME``."""
    base = os.environ.get("XDG_CONFIG_HOME")
    root = Path(base) if base else Path.home() / ".config"
    return root / CONFIG_DIR_NAME / CONFIG_FILE_NAME


def env_api_key(provider_type: ProviderType) -> str | None:
    """Return the API key from the provider family's environment variable."""
    return os.environ.get(ENV_API_KEYS[provider_type])


def load_config(path: Path | None = None) -> Config:
    """Load configuration from a file, creating a default one when missing.

    A missing or empty ``apiKey`` falls back to the environment variable of
    the configured provider family.
    """
    cfg_path = path or config_path()
    if not cfg_path.exists():
        return _create_default_config(cfg_path)

    try:
        payload = json.loads(cfg_path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigFileError(f"Failed to read config file: {cfg_path}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigFileError(
            f"Failed to parse config file: {cfg_path}. Please ensure it is valid JSON."
        ) from exc

    if not isinstance(payload, dict):
        raise ConfigFileError(f"Config file root must be a JSON object: {cfg_path}")

    cfg = Config.from_dict(payload)
    if not cfg.api_key:
        cfg = replace(cfg, api_key=env_api_key(cfg.provider_type))
    logger.info("Loaded config from %s (provider=%s)", cfg_path, cfg.provider_type.value)
    return cfg


def _create_default_config(cfg_path: Path) -> Config:
    """Write the default config (with an empty key) and return it for this run."""
    default = Config()
    try:
        cfg_path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise ConfigFileError(
            f"Failed to create config directory: {cfg_path.parent}. Please check your permissions."
        ) from exc

    on_disk = replace(default, api_key="").to_dict()
    try:
        cfg_path.write_text(json.dumps(on_disk, indent=2), encoding="utf-8")
    except OSError as exc:
        raise ConfigFileError(
            f"Failed to create config file: {cfg_path}. Please check your permissions."
        ) from exc

    logger.info("Created default config at %s", cfg_path)
    return replace(default, api_key=env_api_key(default.provider_type))
