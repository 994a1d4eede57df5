"""
sh-aid - Main Entry Point
Run with: shaid [-v] [--show-context] [--config PATH] PROMPT...
"""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Add project root to path so that `config` and `shaid.*` imports resolve
# when run as a script from a source checkout.
sys.path.insert(0, str(Path(__file__).parent.parent))

from config import ConfigFileError, load_config
from shaid.context import ContextError, SystemContext
from shaid.display import Display
from shaid.prompts import build_system_prompt
from shaid.providers.base import ProviderError
from shaid.providers.factory import create_provider

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130

_LOG_LEVELS = (logging.WARNING, logging.INFO, logging.DEBUG)


def setup_logging(verbose: int = 0) -> None:
    """Send log records to stderr; stdout is reserved for the command."""
    logging.basicConfig(
        level=_LOG_LEVELS[min(verbose, len(_LOG_LEVELS) - 1)],
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="shaid",
        description="Turn a natural-language request into a shell command.",
    )
    parser.add_argument(
        "prompt",
        nargs="+",
        help="What you want to do, in plain words",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Log progress to stderr (-v info, -vv debug)",
    )
    parser.add_argument(
        "--show-context",
        action="store_true",
        help="Print the system context sent to the model",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        metavar="PATH",
        help="Config file to use (default: ~/.config/uwu/config.json)",
    )
    return parser


async def main(
    user_prompt: str,
    config_file: Path | None = None,
    show_context: bool = False,
    display: Display | None = None,
) -> int:
    """Load config, generate one command and print it.

    Execution order
    ---------------
    1. Load and validate the configuration (file + environment fallback).
    2. Gather the local system context for the system prompt.
    3. Build the provider through the factory and validate it against the config.
    4. Await exactly one ``generate_command`` call and print its result.

    Returns:
        Process exit code.
    """
    display = display or Display()

    try:
        cfg = load_config(config_file)
        cfg.validate()
        logger.info("Provider: %s | Model: %s", cfg.provider_type.value, cfg.model)

        context = SystemContext.gather()
        if show_context:
            display.show_context(context)

        provider = create_provider(cfg)
        provider.validate_config(cfg)
        if show_context:
            display.show_provider(cfg, provider.get_model_info())

        async with provider:
            command = await provider.generate_command(
                build_system_prompt(context), user_prompt
            )
    except (ConfigFileError, ContextError, ProviderError) as exc:
        logger.error("Command generation failed: %s", exc)
        display.show_error(exc)
        return EXIT_FAILURE

    logger.info("Generated command (%d chars)", len(command))
    display.show_command(command)
    return EXIT_OK


def run(argv: list[str] | None = None) -> int:
    """Console-script entry point."""
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)
    user_prompt = " ".join(args.prompt)

    try:
        return asyncio.run(main(
            user_prompt,
            config_file=args.config,
            show_context=args.show_context,
        ))
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return EXIT_INTERRUPTED


if __name__ == "__main__":
    sys.exit(run())
