"""OpenAI-compatible chat completions provider over plain aiohttp.

Serves both the ``OpenAI`` and ``Custom`` provider types; the latter only
differs by pointing ``base_url`` at a self-hosted or proxy endpoint.

Request/response flow:
  1. ``build_request``  — fixed two-message payload, temperature 0.0
  2. ``check_status``   — HTTP status classified before the body is parsed
  3. ``parse_response`` — vendor error object or first completion extracted
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import asdict, dataclass, field
from typing import TYPE_CHECKING, Any

import aiohttp

from shaid.providers.base import (
    AIProvider,
    ApiError,
    AuthenticationError,
    ConfigError,
    HttpError,
    InvalidResponseError,
    ModelInfo,
    ProviderTimeoutError,
    RateLimitError,
)

if TYPE_CHECKING:
    from config import Config

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

DEFAULT_BASE_URL = "https://api.openai.com"
COMPLETIONS_PATH = "/v1/chat/completions"
REQUEST_TIMEOUT_SECONDS = 30

# Command generation must not vary run-to-run for identical input.
MAX_TOKENS = 1024
TEMPERATURE = 0.0

_QUOTA_ERRORS = {"insufficient_quota", "billing_hard_limit_reached"}
_AUTH_ERRORS = {"invalid_api_key", "invalid_request_error"}
_RATE_LIMIT_ERRORS = {"rate_limit_exceeded"}


# ---------------------------------------------------------------------------
# Wire types
# ---------------------------------------------------------------------------

@dataclass
class ChatMessage:
    role: str
    content: str


@dataclass
class ChatRequest:
    model: str
    messages: list[ChatMessage]
    max_tokens: int = MAX_TOKENS
    temperature: float = TEMPERATURE

    def to_payload(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class ChatChoice:
    message: ChatMessage
    finish_reason: str | None = None


@dataclass
class VendorError:
    """The ``error`` object some OpenAI-compatible servers return with a 2xx."""
    message: str
    type: str
    code: str | None = None


@dataclass
class ChatResponse:
    choices: list[ChatChoice] = field(default_factory=list)
    error: VendorError | None = None

    @classmethod
    def from_dict(cls, payload: Any) -> ChatResponse:
        """Decode a completions body, raising InvalidResponseError on bad shape."""
        if not isinstance(payload, dict):
            raise InvalidResponseError(
                f"Failed to parse JSON response: expected an object, got {type(payload).__name__}"
            )
        try:
            error = None
            raw_error = payload.get("error")
            if raw_error is not None:
                code = raw_error.get("code")
                error = VendorError(
                    message=str(raw_error.get("message", "")),
                    type=str(raw_error.get("type", "")),
                    code=str(code) if code is not None else None,
                )

            choices = []
            for raw_choice in payload.get("choices") or []:
                raw_message = raw_choice["message"]
                content = raw_message.get("content")
                if content is not None and not isinstance(content, str):
                    raise InvalidResponseError(
                        "Failed to parse JSON response: message content must be a string, "
                        f"got {type(content).__name__}"
                    )
                choices.append(ChatChoice(
                    message=ChatMessage(
                        role=str(raw_message.get("role", "")),
                        content=content or "",
                    ),
                    finish_reason=raw_choice.get("finish_reason"),
                ))
        except (AttributeError, KeyError, TypeError) as exc:
            raise InvalidResponseError(f"Failed to parse JSON response: {exc!r}") from exc
        return cls(choices=choices, error=error)


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------

def check_status(status: int, body: str | None) -> None:
    """Raise the error a non-2xx *status* maps to; return for success codes.

    401 and 429 are classified without looking at *body*.  Any other
    failure carries the raw body text (or "Unknown error" when unreadable).
    """
    if status == 401:
        raise AuthenticationError("Invalid API key or authentication failed")
    if status == 429:
        raise RateLimitError("Rate limit exceeded. Please try again later.")
    if not 200 <= status < 300:
        raise ApiError(status, body if body is not None else "Unknown error")


def parse_response(response: ChatResponse) -> str:
    """Return the trimmed command from *response* or raise its classified error."""
    if response.error is not None:
        error = response.error
        if error.type in _QUOTA_ERRORS:
            raise AuthenticationError(f"Quota exceeded: {error.message}")
        if error.type in _AUTH_ERRORS:
            raise AuthenticationError(error.message)
        if error.type in _RATE_LIMIT_ERRORS:
            raise RateLimitError(error.message)
        # Kept at 400 whatever the transport status was.
        raise ApiError(400, error.message)

    if not response.choices:
        raise InvalidResponseError("No choices in response")

    command = response.choices[0].message.content.strip()
    if not command:
        raise InvalidResponseError("Empty command response")
    return command


def classify_response(status: int, body: str | None) -> str:
    """Full classification of one HTTP exchange: status first, then body."""
    check_status(status, body)
    try:
        payload = json.loads(body or "")
    except ValueError as exc:
        raise InvalidResponseError(f"Failed to parse JSON response: {exc}") from exc
    return parse_response(ChatResponse.from_dict(payload))


# ---------------------------------------------------------------------------
# Provider
# ---------------------------------------------------------------------------

class OpenAIProvider(AIProvider):
    """Calls an OpenAI-compatible ``/v1/chat/completions`` endpoint."""

    PROVIDER_NAME = "OpenAI"

    def __init__(self, config: Config) -> None:
        if config.api_key is None:
            raise ConfigError("API key is required")
        if not config.api_key:
            raise ConfigError("API key cannot be empty")

        base_url = config.base_url if config.base_url is not None else DEFAULT_BASE_URL
        _check_base_url(base_url)

        self._api_key: str = config.api_key
        self._model: str = config.model
        self._base_url: str = base_url
        self._timeout = aiohttp.ClientTimeout(total=REQUEST_TIMEOUT_SECONDS)
        # Created on first use: aiohttp sessions must be built inside a running loop.
        self._session: aiohttp.ClientSession | None = None
        self._session_loop: asyncio.AbstractEventLoop | None = None

    @property
    def name(self) -> str:
        return self.PROVIDER_NAME

    @property
    def model(self) -> str:
        return self._model

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def completions_url(self) -> str:
        return f"{self._base_url}{COMPLETIONS_PATH}"

    # ------------------------------------------------------------------
    # Request construction
    # ------------------------------------------------------------------

    def build_request(self, system_prompt: str, user_prompt: str) -> ChatRequest:
        return ChatRequest(
            model=self._model,
            messages=[
                ChatMessage(role="system", content=system_prompt),
                ChatMessage(role="user", content=user_prompt),
            ],
        )

    # ------------------------------------------------------------------
    # AIProvider
    # ------------------------------------------------------------------

    async def generate_command(self, system_prompt: str, user_prompt: str) -> str:
        request = self.build_request(system_prompt, user_prompt)
        session = self._get_session()
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }
        logger.debug("POST %s (model=%s)", self.completions_url, self._model)

        try:
            async with session.post(
                self.completions_url, json=request.to_payload(), headers=headers
            ) as resp:
                status = resp.status
                try:
                    body: str | None = await resp.text()
                except (aiohttp.ClientError, UnicodeDecodeError) as exc:
                    logger.warning("Could not read response body (HTTP %d): %s", status, exc)
                    body = None
        except asyncio.TimeoutError as exc:
            raise ProviderTimeoutError(
                f"Request timed out after {REQUEST_TIMEOUT_SECONDS} seconds"
            ) from exc
        except aiohttp.ClientError as exc:
            raise HttpError(str(exc) or exc.__class__.__name__) from exc

        logger.info("Completions endpoint answered HTTP %d", status)
        return classify_response(status, body)

    def validate_config(self, config: Config) -> None:
        if not config.api_key:
            raise ConfigError("API key is required")
        if not config.model:
            raise ConfigError("Model name is required")
        if config.base_url is not None:
            _check_base_url(config.base_url)

    def get_model_info(self) -> ModelInfo:
        return ModelInfo(
            name=self._model,
            provider=self.PROVIDER_NAME,
            max_tokens=MAX_TOKENS,
            supports_system_prompt=True,
        )

    async def aclose(self) -> None:
        session, loop = self._session, self._session_loop
        self._session = None
        self._session_loop = None
        if session is None or session.closed:
            return
        if loop is asyncio.get_running_loop():
            await session.close()
        else:
            # Its connections belong to another loop and cannot be closed from here.
            logger.debug("Dropping HTTP session bound to another event loop")

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _get_session(self) -> aiohttp.ClientSession:
        """Return the session for the running event loop, creating it on first use.

        A session is bound to the loop it was created in, so a call from a
        different loop (a later ``asyncio.run`` or another thread) gets a
        fresh session instead of the stale one.
        """
        loop = asyncio.get_running_loop()
        if self._session is not None and not self._session.closed and self._session_loop is loop:
            return self._session
        if self._session is not None and not self._session.closed:
            logger.debug("Event loop changed; opening a new HTTP session")
        self._session = aiohttp.ClientSession(timeout=self._timeout)
        self._session_loop = loop
        return self._session


def _check_base_url(base_url: str) -> None:
    if not base_url.startswith(("http://", "https://")):
        raise ConfigError("Base URL must start with http:// or https://")
