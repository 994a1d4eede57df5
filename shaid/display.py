"""
Console rendering for the CLI.

stdout carries only the generated command so it can be piped or captured
with ``$(shaid ...)``; every status line, panel and error goes to stderr.
"""

from __future__ import annotations

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from config import Config
from shaid.context import SystemContext
from shaid.providers.base import (
    AuthenticationError,
    ConfigError,
    HttpError,
    ModelInfo,
    ProviderError,
    RateLimitError,
)

_ERROR_HINTS: dict[type[ProviderError], str] = {
    AuthenticationError: "Check the apiKey in your config file or the provider's API key variable.",
    RateLimitError: "The provider is throttling requests; wait a moment and try again.",
    ConfigError: "Fix the config file (see `--config`) and run again.",
    HttpError: "Check your network connection and the configured baseUrl.",
}


def _hint_for(exc: Exception) -> str | None:
    """Return the most specific hint registered for *exc*'s class."""
    for cls in type(exc).__mro__:
        hint = _ERROR_HINTS.get(cls)
        if hint:
            return hint
    return None


class Display:
    """Thin wrapper around two rich consoles: stdout for output, stderr for the rest."""

    def __init__(self, out: Console | None = None, err: Console | None = None) -> None:
        self.out = out or Console(highlight=False, soft_wrap=True)
        self.err = err or Console(stderr=True)

    def show_command(self, command: str) -> None:
        # Plain text: markup in a shell command (e.g. "[a-z]") must not be interpreted.
        self.out.print(Text(command))

    def show_provider(self, config: Config, info: ModelInfo) -> None:
        table = Table(box=box.SIMPLE, show_header=False, padding=(0, 1))
        table.add_column(style="bold cyan")
        table.add_column()
        table.add_row("Provider", config.provider_type.value)
        table.add_row("Model", info.name)
        if config.base_url:
            table.add_row("Endpoint", config.base_url)
        self.err.print(table)

    def show_context(self, context: SystemContext) -> None:
        self.err.print(Panel(
            Text(context.build_full_context().strip()),
            title="System Context",
            box=box.ROUNDED,
            border_style="blue",
        ))

    def show_error(self, exc: Exception) -> None:
        body = Text(str(exc), style="bold red")
        hint = _hint_for(exc)
        if hint:
            body.append(f"\n{hint}", style="dim")
        self.err.print(Panel(body, title="Error", box=box.ROUNDED, border_style="red"))
