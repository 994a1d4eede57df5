"""Tests for the CLI wiring in shaid/main.py and rendering in shaid/display.py."""
import io
import pytest
import sys
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

from rich.console import Console

sys.path.insert(0, str(Path(__file__).parent.parent))

from config import Config, ConfigFileError, ProviderType
from shaid import main as cli
from shaid.context import ContextError, SystemContext
from shaid.display import Display
from shaid.providers.base import AuthenticationError, ConfigError, ModelInfo, ProviderTimeoutError


# ---------------------------------------------------------------------------
# Helpers / Fixtures
# ---------------------------------------------------------------------------

def _display() -> tuple[Display, io.StringIO, io.StringIO]:
    out, err = io.StringIO(), io.StringIO()
    display = Display(
        out=Console(file=out, width=200, highlight=False),
        err=Console(file=err, width=200),
    )
    return display, out, err


def _context() -> SystemContext:
    return SystemContext(
        os_type="linux", os_release="20.04", platform="unix", arch="x86_64",
        shell="/bin/zsh", current_dir="/tmp/work", home_dir="/home/user",
        cpu_model="Test CPU", cpu_cores=4, total_memory_mb=8000, free_memory_mb=4000,
        directory_listing="a.txt\nb.txt",
    )


def _provider(command: str = "ls -la", side_effect: Exception | None = None) -> MagicMock:
    provider = MagicMock()
    provider.generate_command = AsyncMock(return_value=command, side_effect=side_effect)
    provider.get_model_info.return_value = ModelInfo("gpt-4o", "OpenAI", 1024, True)
    provider.__aenter__ = AsyncMock(return_value=provider)
    provider.__aexit__ = AsyncMock(return_value=False)
    return provider


@pytest.fixture
def wired(mocker):
    """Patch config loading, context probing and the factory in shaid.main."""
    cfg = Config(provider_type=ProviderType.OPENAI, api_key="test-key", model="gpt-4o")
    provider = _provider()
    mocks = MagicMock()
    mocks.cfg = cfg
    mocks.provider = provider
    mocks.load_config = mocker.patch("shaid.main.load_config", return_value=cfg)
    mocks.gather = mocker.patch("shaid.main.SystemContext.gather", return_value=_context())
    mocks.create_provider = mocker.patch("shaid.main.create_provider", return_value=provider)
    return mocks


# ---------------------------------------------------------------------------
# main()
# ---------------------------------------------------------------------------

class TestMain:
    @pytest.mark.asyncio
    async def test_prints_generated_command(self, wired):
        display, out, err = _display()

        code = await cli.main("list files", display=display)

        assert code == cli.EXIT_OK
        assert out.getvalue() == "ls -la\n"
        wired.create_provider.assert_called_once_with(wired.cfg)
        wired.provider.validate_config.assert_called_once_with(wired.cfg)
        wired.provider.__aexit__.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_generate_called_once_with_context_prompt(self, wired):
        display, _, _ = _display()

        await cli.main("find big files", display=display)

        wired.provider.generate_command.assert_awaited_once()
        system_prompt, user_prompt = wired.provider.generate_command.await_args.args
        assert user_prompt == "find big files"
        assert "Shell: /bin/zsh" in system_prompt
        assert "a.txt\nb.txt" in system_prompt

    @pytest.mark.asyncio
    async def test_command_with_brackets_printed_verbatim(self, wired):
        wired.provider.generate_command.return_value = "ls [a-z]*.txt"
        display, out, _ = _display()

        await cli.main("txt files", display=display)

        assert out.getvalue() == "ls [a-z]*.txt\n"

    @pytest.mark.asyncio
    async def test_config_path_forwarded(self, wired, tmp_path):
        display, _, _ = _display()
        await cli.main("x", config_file=tmp_path / "c.json", display=display)
        wired.load_config.assert_called_once_with(tmp_path / "c.json")

    @pytest.mark.asyncio
    async def test_show_context_goes_to_stderr(self, wired):
        display, out, err = _display()

        await cli.main("x", show_context=True, display=display)

        assert "System Context" in err.getvalue()
        assert "Test CPU" in err.getvalue()
        assert "gpt-4o" in err.getvalue()
        assert out.getvalue() == "ls -la\n"

    @pytest.mark.asyncio
    async def test_provider_error_exit_code(self, wired):
        wired.provider.generate_command.side_effect = AuthenticationError("Invalid API key")
        display, out, err = _display()

        code = await cli.main("x", display=display)

        assert code == cli.EXIT_FAILURE
        assert out.getvalue() == ""
        assert "Authentication failed: Invalid API key" in err.getvalue()
        wired.provider.__aexit__.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_unimplemented_provider(self, wired):
        wired.create_provider.side_effect = ConfigError("Claude provider is not yet implemented.")
        display, _, err = _display()

        code = await cli.main("x", display=display)

        assert code == cli.EXIT_FAILURE
        assert "Claude provider is not yet implemented." in err.getvalue()

    @pytest.mark.asyncio
    async def test_invalid_config_stops_before_factory(self, wired):
        wired.load_config.return_value = Config(api_key=None)
        display, _, err = _display()

        code = await cli.main("x", display=display)

        assert code == cli.EXIT_FAILURE
        assert "API key not found" in err.getvalue()
        wired.create_provider.assert_not_called()

    @pytest.mark.asyncio
    async def test_config_file_error(self, wired):
        wired.load_config.side_effect = ConfigFileError("Failed to parse config file")
        display, _, err = _display()
        assert await cli.main("x", display=display) == cli.EXIT_FAILURE
        assert "Failed to parse config file" in err.getvalue()

    @pytest.mark.asyncio
    async def test_context_error(self, wired):
        wired.gather.side_effect = ContextError("Failed to get current directory")
        display, _, _ = _display()
        assert await cli.main("x", display=display) == cli.EXIT_FAILURE
        wired.create_provider.assert_not_called()

    @pytest.mark.asyncio
    async def test_failure_is_logged(self, wired, caplog):
        import logging
        wired.provider.generate_command.side_effect = ProviderTimeoutError("Request timed out after 30 seconds")
        display, _, _ = _display()

        with caplog.at_level(logging.ERROR):
            await cli.main("x", display=display)

        assert "Network timeout" in caplog.text


# ---------------------------------------------------------------------------
# Argument parsing / run()
# ---------------------------------------------------------------------------

class TestRun:
    def test_prompt_words_are_joined(self, mocker):
        fake_main = mocker.patch("shaid.main.main", new=AsyncMock(return_value=0))

        assert cli.run(["show", "disk", "usage", "-v"]) == 0

        args, kwargs = fake_main.call_args
        assert args == ("show disk usage",)
        assert kwargs["show_context"] is False
        assert kwargs["config_file"] is None

    def test_prompt_required(self):
        with pytest.raises(SystemExit) as excinfo:
            cli.build_parser().parse_args([])
        assert excinfo.value.code == 2

    def test_flags(self):
        args = cli.build_parser().parse_args(["-vv", "--show-context", "--config", "/tmp/c.json", "hi"])
        assert args.verbose == 2
        assert args.show_context is True
        assert args.config == Path("/tmp/c.json")

    def test_exit_code_propagates(self, mocker):
        mocker.patch("shaid.main.main", new=AsyncMock(return_value=cli.EXIT_FAILURE))
        assert cli.run(["x"]) == cli.EXIT_FAILURE

    def test_keyboard_interrupt(self, mocker):
        mocker.patch("shaid.main.main", new=AsyncMock(side_effect=KeyboardInterrupt))
        assert cli.run(["x"]) == cli.EXIT_INTERRUPTED


# ---------------------------------------------------------------------------
# Display
# ---------------------------------------------------------------------------

class TestDisplay:
    def test_error_hint_follows_class_hierarchy(self):
        display, _, err = _display()
        display.show_error(ProviderTimeoutError("slow"))
        assert "Network timeout: slow" in err.getvalue()
        assert "network connection" in err.getvalue()

    def test_error_without_hint(self):
        display, _, err = _display()
        display.show_error(ConfigFileError("broken file"))
        assert "broken file" in err.getvalue()

    def test_provider_table_includes_endpoint(self):
        display, _, err = _display()
        cfg = Config(provider_type=ProviderType.CUSTOM, api_key="k", base_url="http://localhost:8000")
        display.show_provider(cfg, ModelInfo("llama3", "OpenAI", 1024, True))
        assert "Custom" in err.getvalue()
        assert "llama3" in err.getvalue()
        assert "http://localhost:8000" in err.getvalue()
