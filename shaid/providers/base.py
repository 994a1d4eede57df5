"""Abstract AI provider interface and the shared error taxonomy.

Every backend implements :class:`AIProvider` so the CLI can swap vendors
without changing any call sites.  All failures surface as a subclass of
:class:`ProviderError`; callers catch the base class and print ``str(exc)``.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from config import Config


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class ProviderError(Exception):
    """Base class for every provider failure.

    ``message`` holds the bare reason; ``str(exc)`` is :meth:`describe`.
    """

    prefix = "Provider error"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def describe(self) -> str:
        """User-facing text: the category prefix followed by the reason."""
        return f"{self.prefix}: {self.message}"

    def __str__(self) -> str:
        return self.describe()


class HttpError(ProviderError):
    """Transport failure: DNS, connection refused, TLS."""

    prefix = "HTTP request failed"


class ApiError(ProviderError):
    """Structured vendor failure not covered by a dedicated category."""

    prefix = "API error"

    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        super().__init__(message)

    def describe(self) -> str:
        return f"{self.prefix}: {self.status_code} - {self.message}"


class AuthenticationError(ProviderError):
    """Invalid, missing or expired credential, or exhausted quota."""

    prefix = "Authentication failed"


class RateLimitError(ProviderError):
    """Vendor throttled the request."""

    prefix = "Rate limit exceeded"


class InvalidResponseError(ProviderError):
    """Well-formed transport response that fails semantic expectations."""

    prefix = "Invalid response format"


class ConfigError(ProviderError):
    """Local misconfiguration detected without a network call."""

    prefix = "Configuration error"


class ProviderTimeoutError(HttpError):
    """Request exceeded the fixed transport timeout."""

    prefix = "Network timeout"


class UnknownProviderError(ProviderError):
    """Backend selected but unable to serve requests."""

    prefix = "Unknown provider error"


# ---------------------------------------------------------------------------
# Model descriptor
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ModelInfo:
    """Static metadata about the model a provider talks to."""
    name: str                     # e.g. "gpt-4o"
    provider: str                 # e.g. "OpenAI"
    max_tokens: int | None        # output token ceiling, if known
    supports_system_prompt: bool


# ---------------------------------------------------------------------------
# Interface
# ---------------------------------------------------------------------------

class AIProvider(ABC):
    """Minimal async interface for shell command generation."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Static provider identifier, e.g. 'OpenAI'."""
        ...

    @abstractmethod
    async def generate_command(self, system_prompt: str, user_prompt: str) -> str:
        """Send one prompt pair to the backend and return the command text.

        Args:
            system_prompt: Instructions steering the output format.
            user_prompt:   The user's natural-language request.

        Returns:
            The generated command, stripped of surrounding whitespace.

        Raises:
            ProviderError: On any API, network or response failure.
        """
        ...

    @abstractmethod
    def validate_config(self, config: Config) -> None:
        """Check *config* against this backend's requirements.

        Pure; performs no I/O.

        Raises:
            ConfigError: If the configuration cannot be used.
        """
        ...

    @abstractmethod
    def get_model_info(self) -> ModelInfo:
        ...

    async def aclose(self) -> None:
        """Release transport resources.  Safe to call more than once."""
        return None

    async def __aenter__(self) -> AIProvider:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
