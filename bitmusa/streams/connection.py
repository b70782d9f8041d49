"""
Streaming - Channel Connection.

============================================================
PURPOSE
============================================================
One websocket bound to one channel identifier.

STATE MACHINE:
    CONNECTING -> OPEN -> CLOSED | ERRORED
    CLOSED | ERRORED -> (new connection) CONNECTING   reconnect enabled
    CLOSED | ERRORED -> DEAD                           reconnect disabled
    any -> DEAD                                        explicit terminate()

FEATURES:
- Every text frame is decoded as JSON and handed to the callback once
- Undecodable frames are logged and dropped; the connection survives
- Pings are answered with a pong immediately
- Close/error is reported to the owner, which decides on reconnect

============================================================
"""

import asyncio
import inspect
import json
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional

import aiohttp

from ..errors import ParseError
from ..logging_utils import mask_channel
from ..types import StreamCallback


logger = logging.getLogger(__name__)


# ============================================================
# CONNECTION STATE
# ============================================================

class ChannelState(Enum):
    """Channel connection states."""

    CONNECTING = "CONNECTING"
    OPEN = "OPEN"
    CLOSED = "CLOSED"
    ERRORED = "ERRORED"
    DEAD = "DEAD"


_CLOSE_TYPES = (
    aiohttp.WSMsgType.CLOSE,
    aiohttp.WSMsgType.CLOSING,
    aiohttp.WSMsgType.CLOSED,
)


# ============================================================
# CHANNEL CONNECTION
# ============================================================

class ChannelConnection:
    """
    Websocket connection for a single channel.

    The callback is borrowed from the subscription registry; a reconnect
    builds a new ChannelConnection with the registry's callback.
    """

    def __init__(
        self,
        channel_id: str,
        url: str,
        session: aiohttp.ClientSession,
        callback: StreamCallback,
        on_lost: Callable[["ChannelConnection"], Awaitable[None]],
    ):
        """
        Initialize channel connection.

        Args:
            channel_id: Channel identifier (registry key)
            url: Full websocket URL
            session: Session used for ws_connect
            callback: Receives (channel_id, payload) for every frame
            on_lost: Awaited once after close/error unless terminated
        """
        self._channel_id = channel_id
        self._url = url
        self._session = session
        self.callback = callback
        self._on_lost = on_lost

        self._state = ChannelState.CONNECTING
        self._ws: Optional[aiohttp.ClientWebSocketResponse] = None
        self._task: Optional[asyncio.Task] = None
        self._terminated = False

        # Liveness; re-armed by open, ping and message, cleared by the sweep
        self.alive = False
        self.has_opened = False

        self.stats: Dict[str, int] = {
            "messages_received": 0,
            "parse_errors": 0,
            "callback_errors": 0,
            "pings": 0,
        }

    # --------------------------------------------------------
    # PROPERTIES
    # --------------------------------------------------------

    @property
    def channel_id(self) -> str:
        return self._channel_id

    @property
    def name(self) -> str:
        """Channel identifier safe for logging."""
        return mask_channel(self._channel_id)

    @property
    def state(self) -> ChannelState:
        return self._state

    @property
    def is_open(self) -> bool:
        return self._state == ChannelState.OPEN

    @property
    def is_dead(self) -> bool:
        return self._state == ChannelState.DEAD

    @property
    def task(self) -> Optional[asyncio.Task]:
        return self._task

    # --------------------------------------------------------
    # LIFECYCLE
    # --------------------------------------------------------

    def start(self) -> asyncio.Task:
        """Open the websocket in a background task (idempotent)."""
        if self._task is None:
            self._task = asyncio.create_task(self._run())
        return self._task

    async def terminate(self) -> None:
        """Close the transport without triggering the reconnect path."""
        self._terminated = True
        self._state = ChannelState.DEAD

        ws = self._ws
        if ws is not None and not ws.closed:
            await ws.close()

        task = self._task
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        logger.info(f"Terminated channel: {self.name}")

    def mark_dead(self) -> None:
        """Terminal state for a lost channel that will not be reopened."""
        self._state = ChannelState.DEAD

    async def _run(self) -> None:
        logger.info(f"Connecting to channel: {self.name}")

        try:
            self._ws = await self._session.ws_connect(self._url, autoping=False)
        except Exception as e:
            logger.error(f"WebSocket connection failed for channel {self.name}: {e!r}")
            self._state = ChannelState.ERRORED
        else:
            try:
                self._handle_open()
                await self._receive_loop()
            finally:
                await self._close_transport()

        if self._terminated:
            self._state = ChannelState.DEAD
            return

        await self._on_lost(self)

    def _handle_open(self) -> None:
        if self._terminated:
            return
        self._state = ChannelState.OPEN
        self.alive = True
        self.has_opened = True
        logger.info(f"Subscribed to channel: {self.name}")

    async def _close_transport(self) -> None:
        if self._ws is None or self._ws.closed:
            return
        try:
            await self._ws.close()
        except (aiohttp.ClientError, OSError) as e:
            logger.warning(f"Error closing channel {self.name}: {e!r}")

    # --------------------------------------------------------
    # RECEIVING
    # --------------------------------------------------------

    async def _receive_loop(self) -> None:
        ws = self._ws
        try:
            while True:
                msg = await ws.receive()

                if msg.type in (aiohttp.WSMsgType.TEXT, aiohttp.WSMsgType.BINARY):
                    await self._handle_frame(msg.data)

                elif msg.type == aiohttp.WSMsgType.PING:
                    await self._handle_ping(msg.data)

                elif msg.type in _CLOSE_TYPES:
                    if not self._terminated:
                        logger.warning(f"Disconnected for channel: {self.name}")
                        self._state = ChannelState.CLOSED
                    break

                elif msg.type == aiohttp.WSMsgType.ERROR:
                    logger.error(f"WebSocket error on channel {self.name}: {ws.exception()}")
                    self._state = ChannelState.ERRORED
                    break

        except Exception as e:
            # pong/receive on a closing transport; the owner decides on reconnect
            logger.error(f"Error in receive loop for channel {self.name}: {e!r}")
            if not self._terminated:
                self._state = ChannelState.ERRORED

    async def _handle_ping(self, data: bytes) -> None:
        self.stats["pings"] += 1
        self.alive = True
        await self._ws.pong(data)

    async def _handle_frame(self, data: Any) -> None:
        self.stats["messages_received"] += 1

        try:
            payload = self.decode(data)
        except ParseError as e:
            self.stats["parse_errors"] += 1
            logger.error(f"{e.message}: {e.context.get('cause_message')}")
            return

        self.alive = True
        await self._dispatch(payload)

    def decode(self, data: Any) -> Any:
        """
        Decode one frame.

        Raises:
            ParseError: If the frame is not valid UTF-8 JSON
        """
        try:
            if isinstance(data, (bytes, bytearray)):
                data = data.decode("utf-8")
            return json.loads(data)
        except (UnicodeDecodeError, json.JSONDecodeError, TypeError) as e:
            raise ParseError(self.name, data, cause=e)

    async def _dispatch(self, payload: Any) -> None:
        try:
            result = self.callback(self._channel_id, payload)
            if inspect.isawaitable(result):
                await result
        except Exception:
            # user code; the channel keeps running
            self.stats["callback_errors"] += 1
            logger.exception(f"Callback error for channel {self.name}")
