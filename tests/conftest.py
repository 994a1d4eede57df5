"""Shared fixtures for all tests."""
import asyncio
import json
import pytest
import sys
import threading
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

from aiohttp import web

sys.path.insert(0, str(Path(__file__).parent.parent))


@pytest.fixture
def openai_config():
    from config import Config, ProviderType
    return Config(
        provider_type=ProviderType.OPENAI,
        api_key="test-key",
        model="gpt-4o",
    )


@pytest.fixture
def make_response():
    """Factory for an aiohttp response mock usable with ``async with``."""
    def _make(body, status: int = 200) -> AsyncMock:
        mock_resp = AsyncMock()
        mock_resp.status = status
        text = body if isinstance(body, str) else json.dumps(body)
        mock_resp.text = AsyncMock(return_value=text)
        mock_resp.__aenter__ = AsyncMock(return_value=mock_resp)
        mock_resp.__aexit__ = AsyncMock(return_value=False)
        return mock_resp
    return _make


@pytest.fixture
def make_session():
    """Factory for a ClientSession mock whose post() yields *mock_resp*."""
    def _make(mock_resp=None, side_effect=None) -> MagicMock:
        mock_session = MagicMock()
        mock_session.closed = False
        mock_session.post = MagicMock(return_value=mock_resp, side_effect=side_effect)
        mock_session.close = AsyncMock()
        return mock_session
    return _make


@pytest.fixture
def completions_server():
    """Local ``/v1/chat/completions`` endpoint answering "ls -la".

    Runs on its own event loop in a background thread so that tests can
    drive the client from any number of other loops.  Yields the base URL.
    """
    async def handle(request: web.Request) -> web.Response:
        await request.json()
        return web.json_response({
            "choices": [{"message": {"role": "assistant", "content": "ls -la"}, "finish_reason": "stop"}],
        })

    app = web.Application()
    app.router.add_post("/v1/chat/completions", handle)
    runner = web.AppRunner(app)

    loop = asyncio.new_event_loop()
    loop.run_until_complete(runner.setup())
    site = web.TCPSite(runner, "127.0.0.1", 0)
    loop.run_until_complete(site.start())
    host, port = runner.addresses[0][:2]

    thread = threading.Thread(target=loop.run_forever, daemon=True)
    thread.start()
    try:
        yield f"http://{host}:{port}"
    finally:
        asyncio.run_coroutine_threadsafe(runner.cleanup(), loop).result(timeout=5)
        loop.call_soon_threadsafe(loop.stop)
        thread.join(timeout=5)
        loop.close()
