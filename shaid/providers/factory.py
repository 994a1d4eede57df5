"""AI provider factory — creates the configured provider at startup."""
import logging

from config import DEFAULT_MODELS, Config, ProviderType
from shaid.providers.base import AIProvider, ConfigError

logger = logging.getLogger(__name__)


def create_provider(cfg: Config) -> AIProvider:
    """Instantiate and return the provider specified in config.

    Supported values of cfg.provider_type:
        OpenAI  — api.openai.com (default)
        Custom  — any OpenAI-compatible endpoint set via base_url
        Claude  — Anthropic (disabled stub)
        Gemini  — Google (disabled stub)

    Raises:
        ConfigError: If the provider cannot be built from this config.
    """
    provider = cfg.provider_type
    logger.info("Creating AI provider: %s", provider.value)

    if provider in (ProviderType.OPENAI, ProviderType.CUSTOM):
        from shaid.providers.openai_provider import OpenAIProvider
        return OpenAIProvider(cfg)

    if provider is ProviderType.CLAUDE:
        from shaid.providers.claude_provider import ClaudeProvider
        return ClaudeProvider(cfg)

    if provider is ProviderType.GEMINI:
        from shaid.providers.gemini_provider import GeminiProvider
        return GeminiProvider(cfg)

    raise ConfigError(f"Unknown provider type {provider!r}.")


def get_default_model_for_provider(provider_type: ProviderType) -> str:
    """Return the model used when the config file does not name one."""
    return DEFAULT_MODELS[provider_type]
