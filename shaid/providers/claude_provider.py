"""Anthropic Claude provider (disabled stub).

Registered with the factory so the ``Claude`` provider type is recognised,
but construction always fails until the Messages API integration lands.
"""
from __future__ import annotations

from typing import TYPE_CHECKING

from shaid.providers.base import AIProvider, ConfigError, ModelInfo, UnknownProviderError

if TYPE_CHECKING:
    from config import Config

NOT_IMPLEMENTED = "Claude provider is not yet implemented."


class ClaudeProvider(AIProvider):
    """Placeholder for Anthropic Claude; every entry point reports it is unavailable."""

    MODEL = "claude-3-5-sonnet-20241022"

    def __init__(self, config: Config) -> None:
        raise ConfigError(NOT_IMPLEMENTED)

    @property
    def name(self) -> str:
        return "Claude"

    async def generate_command(self, system_prompt: str, user_prompt: str) -> str:
        raise UnknownProviderError(NOT_IMPLEMENTED)

    def validate_config(self, config: Config) -> None:
        # Nothing to check: generation is never reached.
        return None

    def get_model_info(self) -> ModelInfo:
        return ModelInfo(
            name=self.MODEL,
            provider="Claude",
            max_tokens=4096,
            supports_system_prompt=True,
        )
