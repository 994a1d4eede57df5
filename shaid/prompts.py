"""System prompt construction for shell command generation."""
from __future__ import annotations

from shaid.context import SystemContext

SYSTEM_PROMPT = (
    "You are a shell command generator. Translate the user's request into a "
    "single shell command for the system described below.\n"
    "Rules:\n"
    "- Reply with the command only: no explanation, no markdown, no code fences.\n"
    "- Produce exactly one line; chain steps with pipes, && or ; when needed.\n"
    "- Use tools and flags that exist on this operating system and shell.\n"
    "- Prefer non-destructive options when the request is ambiguous."
)


def build_system_prompt(context: SystemContext | None = None) -> str:
    """Return the system prompt, followed by the environment when known."""
    if context is None:
        return SYSTEM_PROMPT
    return f"{SYSTEM_PROMPT}\n\nSystem context:\n{context.build_full_context()}"
