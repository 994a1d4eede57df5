"""Google Gemini provider (disabled stub)."""
from __future__ import annotations

from typing import TYPE_CHECKING

from shaid.providers.base import AIProvider, ConfigError, ModelInfo, UnknownProviderError

if TYPE_CHECKING:
    from config import Config

NOT_IMPLEMENTED = "Gemini provider is not yet implemented."


class GeminiProvider(AIProvider):
    """Placeholder for Google Gemini; construction always fails."""

    MODEL = "gemini-1.5-pro"

    def __init__(self, config: Config) -> None:
        raise ConfigError(NOT_IMPLEMENTED)

    @property
    def name(self) -> str:
        return "Gemini"

    async def generate_command(self, system_prompt: str, user_prompt: str) -> str:
        raise UnknownProviderError(NOT_IMPLEMENTED)

    def validate_config(self, config: Config) -> None:
        return None

    def get_model_info(self) -> ModelInfo:
        return ModelInfo(
            name=self.MODEL,
            provider="Gemini",
            max_tokens=8192,
            supports_system_prompt=True,
        )
