"""
Channel Connection Tests.

============================================================
PURPOSE
============================================================
Drive a ChannelConnection over a fake websocket.

TEST CATEGORIES:
- Open: state and handshake options
- Messages: decoding, bad frames, callback failures
- Ping: pong and liveness
- Close/Error: owner notification
- Terminate: no notification

============================================================
"""

import aiohttp
import pytest
from unittest.mock import AsyncMock, MagicMock

from bitmusa.streams import ChannelConnection, ChannelState


CHANNEL = "/ws/spot/public?stream=BTCUSDT@depth5@100ms"
URL = f"wss://stream.test{CHANNEL}"


@pytest.fixture
def callback():
    return MagicMock()


@pytest.fixture
def on_lost():
    return AsyncMock()


@pytest.fixture
def open_connection(fake_session, callback, on_lost, eventually):
    """Start a connection and wait for OPEN."""

    async def start(cb=None):
        connection = ChannelConnection(CHANNEL, URL, fake_session, cb or callback, on_lost)
        connection.start()
        await eventually(lambda: connection.is_open)
        return connection, fake_session.sockets[-1]

    return start


# ============================================================
# OPEN
# ============================================================

class TestOpen:
    """Tests for the open transition."""

    @pytest.mark.asyncio
    async def test_open_sets_liveness(self, open_connection, fake_session):
        connection, ws = await open_connection()

        assert connection.state == ChannelState.OPEN
        assert connection.alive is True
        assert connection.has_opened is True
        assert fake_session.connect_calls == [(URL, {"autoping": False})]

        await connection.terminate()

    @pytest.mark.asyncio
    async def test_start_is_idempotent(self, open_connection, fake_session):
        connection, ws = await open_connection()

        assert connection.start() is connection.task
        assert len(fake_session.connect_calls) == 1

        await connection.terminate()

    @pytest.mark.asyncio
    async def test_connect_failure(self, fake_session, callback, on_lost, eventually):
        """A failed handshake is reported like a close."""
        fake_session.failures = 1
        connection = ChannelConnection(CHANNEL, URL, fake_session, callback, on_lost)
        connection.start()

        await eventually(lambda: on_lost.await_count == 1)

        on_lost.assert_awaited_once_with(connection)
        assert connection.state == ChannelState.ERRORED
        assert connection.has_opened is False


# ============================================================
# MESSAGES
# ============================================================

class TestMessages:
    """Tests for frame decoding and callback dispatch."""

    @pytest.mark.asyncio
    async def test_message_reaches_callback_once(self, open_connection, callback, eventually):
        connection, ws = await open_connection()

        ws.feed_json({"asks": [], "bids": []})
        await eventually(lambda: callback.call_count == 1)

        callback.assert_called_once_with(CHANNEL, {"asks": [], "bids": []})
        assert connection.stats["messages_received"] == 1

        await connection.terminate()

    @pytest.mark.asyncio
    async def test_bad_frame_is_dropped(self, open_connection, callback, on_lost, eventually):
        """A malformed frame is skipped and the next one is delivered."""
        connection, ws = await open_connection()

        ws.feed_text("{not json")
        ws.feed_json({"seq": 2})
        await eventually(lambda: callback.call_count == 1)

        callback.assert_called_once_with(CHANNEL, {"seq": 2})
        assert connection.stats["parse_errors"] == 1
        assert connection.is_open
        on_lost.assert_not_awaited()

        await connection.terminate()

    @pytest.mark.asyncio
    async def test_binary_frame(self, open_connection, callback, eventually):
        connection, ws = await open_connection()

        ws.feed_binary(b'{"e": "kline"}')
        await eventually(lambda: callback.call_count == 1)

        callback.assert_called_once_with(CHANNEL, {"e": "kline"})

        await connection.terminate()

    @pytest.mark.asyncio
    async def test_async_callback_awaited(self, open_connection, eventually):
        received = []

        async def handler(channel_id, payload):
            received.append(payload)

        connection, ws = await open_connection(handler)

        ws.feed_json([1, 2, 3])
        await eventually(lambda: received == [[1, 2, 3]])

        await connection.terminate()

    @pytest.mark.asyncio
    async def test_callback_error_keeps_connection(self, open_connection, callback, eventually):
        """An exception in user code does not close the channel."""
        callback.side_effect = [RuntimeError("boom"), None]
        connection, ws = await open_connection()

        ws.feed_json({"seq": 1})
        ws.feed_json({"seq": 2})
        await eventually(lambda: callback.call_count == 2)

        assert connection.stats["callback_errors"] == 1
        assert connection.is_open

        await connection.terminate()

    @pytest.mark.asyncio
    async def test_message_refreshes_liveness(self, open_connection, callback, eventually):
        connection, ws = await open_connection()
        connection.alive = False

        ws.feed_json({"seq": 1})
        await eventually(lambda: callback.call_count == 1)

        assert connection.alive is True

        await connection.terminate()


# ============================================================
# PING
# ============================================================

class TestPing:
    """Tests for ping handling."""

    @pytest.mark.asyncio
    async def test_ping_answered_with_pong(self, open_connection, eventually):
        connection, ws = await open_connection()
        connection.alive = False

        ws.feed_ping(b"hb")
        await eventually(lambda: ws.pongs == [b"hb"])

        assert connection.alive is True
        assert connection.stats["pings"] == 1

        await connection.terminate()


# ============================================================
# CLOSE / ERROR / TERMINATE
# ============================================================

class TestClose:
    """Tests for the lost and terminated paths."""

    @pytest.mark.asyncio
    async def test_close_notifies_owner(self, open_connection, on_lost, eventually):
        connection, ws = await open_connection()

        ws.feed_close()
        await eventually(lambda: on_lost.await_count == 1)

        on_lost.assert_awaited_once_with(connection)
        assert connection.state == ChannelState.CLOSED
        assert ws.closed

    @pytest.mark.asyncio
    async def test_error_notifies_owner(self, open_connection, on_lost, eventually):
        connection, ws = await open_connection()

        ws.feed_error(aiohttp.ClientError("reset"))
        await eventually(lambda: on_lost.await_count == 1)

        assert connection.state == ChannelState.ERRORED

    @pytest.mark.asyncio
    async def test_pong_failure_notifies_owner(self, open_connection, on_lost, eventually):
        """A transport error outside aiohttp's hierarchy still ends in the lost path."""
        connection, ws = await open_connection()
        ws.pong = AsyncMock(side_effect=ConnectionResetError("Cannot write to closing transport"))

        ws.feed_ping(b"hb")
        await eventually(lambda: on_lost.await_count == 1)

        on_lost.assert_awaited_once_with(connection)
        assert connection.state == ChannelState.ERRORED
        assert not connection.is_open
        assert ws.closed
        assert connection.task.done()
        assert connection.task.exception() is None

    @pytest.mark.asyncio
    async def test_unexpected_connect_error_notifies_owner(self, fake_session, callback, on_lost, eventually):
        fake_session.ws_connect = AsyncMock(side_effect=OSError("network unreachable"))
        connection = ChannelConnection(CHANNEL, URL, fake_session, callback, on_lost)
        connection.start()

        await eventually(lambda: on_lost.await_count == 1)

        assert connection.state == ChannelState.ERRORED

    @pytest.mark.asyncio
    async def test_terminate_does_not_notify(self, open_connection, callback, on_lost):
        """Planned teardown bypasses the reconnect path."""
        connection, ws = await open_connection()

        await connection.terminate()

        assert connection.state == ChannelState.DEAD
        assert connection.is_dead
        assert ws.closed
        assert connection.task.done()
        on_lost.assert_not_awaited()
        callback.assert_not_called()

    @pytest.mark.asyncio
    async def test_mark_dead(self, open_connection, on_lost, eventually):
        connection, ws = await open_connection()
        ws.feed_close()
        await eventually(lambda: on_lost.await_count == 1)

        connection.mark_dead()

        assert connection.is_dead
