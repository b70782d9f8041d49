"""
Streaming - Stream Manager.

============================================================
PURPOSE
============================================================
Owns every channel of one client: the subscription registry,
the liveness monitor and the websocket session.

FEATURES:
- One connection per channel identifier
- Reconnect in place with the registry's callback
- Exponential backoff only while connect attempts keep failing
- Stale channels (per liveness sweep) are closed and reopened
- Reconnect disabled: lost channels become DEAD and stay registered

============================================================
"""

import asyncio
import logging
from typing import Dict, Optional

import aiohttp

from ..config import ClientConfig
from ..types import StreamCallback
from .connection import ChannelConnection
from .monitor import LivenessMonitor
from .registry import SubscriptionRegistry


logger = logging.getLogger(__name__)


class StreamManager:
    """
    Subscription manager for websocket channels.

    Example:
        manager = StreamManager(config)
        await manager.subscribe("/ws/spot/public?stream=BTCUSDT@depth5@100ms", on_book)
        ...
        await manager.close()
    """

    def __init__(
        self,
        config: ClientConfig,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        """
        Initialize stream manager.

        Args:
            config: Client configuration
            session: Optional externally owned session for ws_connect
        """
        self._config = config
        self._session = session
        self._owns_session = session is None

        self._registry = SubscriptionRegistry()
        self._monitor = LivenessMonitor(
            self._registry,
            self._handle_stale,
            config.liveness_interval_seconds,
        )

        # Consecutive connect attempts per channel that never reached OPEN
        self._failures: Dict[str, int] = {}
        self._closed = False

    # --------------------------------------------------------
    # PROPERTIES
    # --------------------------------------------------------

    @property
    def registry(self) -> SubscriptionRegistry:
        return self._registry

    @property
    def monitor(self) -> LivenessMonitor:
        return self._monitor

    def connection(self, channel_id: str) -> Optional[ChannelConnection]:
        return self._registry.get(channel_id)

    def url_for(self, channel_id: str) -> str:
        return f"{self._config.ws_url}{channel_id}"

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(
                total=None,
                sock_connect=self._config.stream_connect_timeout_seconds,
            )
            self._session = aiohttp.ClientSession(timeout=timeout)
            self._owns_session = True
        return self._session

    # ============================================================
    # SUBSCRIBE / TERMINATE
    # ============================================================

    async def subscribe(self, channel_id: str, callback: StreamCallback) -> bool:
        """
        Subscribe to a channel.

        Args:
            channel_id: Channel path, appended to the stream URL
            callback: Called with (channel_id, payload) for every message

        Returns:
            False when the channel already has an active connection
        """
        if self._closed:
            raise RuntimeError("stream manager is closed")

        if self._registry.is_active(channel_id):
            logger.warning(f"Already subscribed to channel: {self._registry.get(channel_id).name}")
            return False

        self._registry.register(channel_id, callback)
        self._failures.pop(channel_id, None)
        self._open(channel_id)
        return True

    async def terminate(self, channel_id: str) -> bool:
        """
        Close a channel and forget it; no reconnect follows.

        Returns:
            False if the channel was not registered
        """
        connection = self._registry.remove(channel_id)
        self._failures.pop(channel_id, None)
        if connection is None:
            return False
        await connection.terminate()
        return True

    async def close(self) -> None:
        """Stop the monitor, terminate every channel and close the session."""
        self._closed = True
        await self._monitor.stop()

        for channel_id in list(self._registry):
            await self.terminate(channel_id)

        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None
        logger.info("Stream manager closed")

    # ============================================================
    # CONNECTION LIFECYCLE
    # ============================================================

    def _open(self, channel_id: str) -> ChannelConnection:
        connection = ChannelConnection(
            channel_id,
            self.url_for(channel_id),
            self._get_session(),
            self._registry.callback_for(channel_id),
            self._handle_lost,
        )
        self._registry.bind(channel_id, connection)
        connection.start()
        self._monitor.ensure_started()
        return connection

    def _is_current(self, connection: ChannelConnection) -> bool:
        return (
            not self._closed
            and self._registry.get(connection.channel_id) is connection
        )

    async def _handle_lost(self, connection: ChannelConnection) -> None:
        """Close/error path, awaited by the connection's own task."""
        channel_id = connection.channel_id
        if not self._is_current(connection):
            return

        if not self._config.reconnect:
            connection.mark_dead()
            logger.warning(f"Channel {connection.name} is dead (reconnect disabled)")
            return

        if connection.has_opened:
            failures = 0
        else:
            failures = self._failures.get(channel_id, 0) + 1
        self._failures[channel_id] = failures

        delay = self._config.reconnect_delay(failures)
        if delay > 0:
            logger.info(f"Reconnecting {connection.name} in {delay}s (attempt {failures})")
            await asyncio.sleep(delay)

            if not self._is_current(connection):
                return
        else:
            logger.info(f"Reconnecting {connection.name}")

        self._open(channel_id)

    async def _handle_stale(self, connection: ChannelConnection) -> None:
        """Liveness sweep path: drop the silent transport and reopen."""
        if not self._config.reconnect:
            return

        await connection.terminate()

        if not self._is_current(connection):
            return

        self._failures[connection.channel_id] = 0
        logger.info(f"Reconnecting {connection.name}")
        self._open(connection.channel_id)
