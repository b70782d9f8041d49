"""
Shared test fixtures.

Fake websocket transport and session: frames are queued by the test and
handed out by receive(); no network is touched.
"""

import asyncio
import json
from collections import namedtuple

import aiohttp
import pytest

from bitmusa import ClientConfig


Message = namedtuple("Message", ["type", "data", "extra"])


# ============================================================
# FAKE TRANSPORT
# ============================================================

class FakeWebSocket:
    """Queue-backed stand-in for aiohttp.ClientWebSocketResponse."""

    def __init__(self, url: str):
        self.url = url
        self.closed = False
        self.pongs = []
        self._queue: asyncio.Queue = asyncio.Queue()
        self._exception = None

    def feed_text(self, text: str) -> None:
        self._queue.put_nowait(Message(aiohttp.WSMsgType.TEXT, text, None))

    def feed_json(self, payload) -> None:
        self.feed_text(json.dumps(payload))

    def feed_binary(self, data: bytes) -> None:
        self._queue.put_nowait(Message(aiohttp.WSMsgType.BINARY, data, None))

    def feed_ping(self, data: bytes = b"") -> None:
        self._queue.put_nowait(Message(aiohttp.WSMsgType.PING, data, None))

    def feed_close(self) -> None:
        self._queue.put_nowait(Message(aiohttp.WSMsgType.CLOSE, 1000, ""))

    def feed_error(self, exc: Exception) -> None:
        self._exception = exc
        self._queue.put_nowait(Message(aiohttp.WSMsgType.ERROR, exc, None))

    async def receive(self):
        return await self._queue.get()

    async def pong(self, data: bytes = b"") -> None:
        self.pongs.append(data)

    async def close(self) -> bool:
        if self.closed:
            return False
        self.closed = True
        self._queue.put_nowait(Message(aiohttp.WSMsgType.CLOSED, None, None))
        return True

    def exception(self):
        return self._exception


class FakeSession:
    """Records ws_connect calls and hands out FakeWebSocket objects."""

    def __init__(self):
        self.closed = False
        self.sockets = []
        self.connect_calls = []
        self.failures = 0

    async def ws_connect(self, url: str, **kwargs):
        self.connect_calls.append((url, kwargs))
        if self.failures > 0:
            self.failures -= 1
            raise aiohttp.ClientConnectionError("connection refused")
        ws = FakeWebSocket(url)
        self.sockets.append(ws)
        return ws

    async def close(self) -> None:
        self.closed = True


# ============================================================
# FIXTURES
# ============================================================

@pytest.fixture
def config():
    """Config with no reconnect delay and a sweep that never fires on its own."""
    return ClientConfig(
        api_key="test-api-key",
        auth_token="test-auth-token",
        liveness_interval_seconds=3600.0,
        reconnect_backoff_initial_seconds=0.0,
        reconnect_backoff_max_seconds=0.0,
    )


@pytest.fixture
def fake_session():
    return FakeSession()


@pytest.fixture
def eventually():
    """Wait until a predicate holds, yielding to the event loop."""

    async def wait(predicate, timeout: float = 1.0) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while not predicate():
            if loop.time() > deadline:
                raise AssertionError("condition not met in time")
            await asyncio.sleep(0.005)

    return wait
