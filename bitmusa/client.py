"""
Bitmusa Client - Client Facade.

============================================================
PURPOSE
============================================================
Single entry point for Bitmusa REST operations and
websocket streams.

FEATURES:
- Spot and futures REST operations (SpotApi, FuturesApi)
- Public order book / kline streams
- Private wallet streams with listen key renewal
- close() / async with for orderly teardown

============================================================
"""

import logging
from typing import Any, Optional

import aiohttp

from .config import ClientConfig
from .errors import ApplicationError, BitmusaError
from .executor import RequestExecutor
from .futures import FuturesApi
from .logging_utils import mask_channel
from .spot import SpotApi
from .streams import (
    ListenKeyKeeper,
    StreamManager,
    depth_channel,
    kline_channel,
    wallet_channel,
)
from .types import Envelope, Market, StreamCallback


logger = logging.getLogger(__name__)


def default_callback(channel_id: str, payload: Any) -> None:
    """Callback used when a stream is opened without one."""
    logger.info(f"{mask_channel(channel_id)}: {payload}")


class BitmusaClient(SpotApi, FuturesApi):
    """
    Bitmusa exchange client.

    Example:
        async with BitmusaClient(api_key="...", auth_token="...") as client:
            book = await client.order_book("BTC/USDT")
            await client.order_book_stream("BTCUSDT", callback=on_book)
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        *,
        session: Optional[aiohttp.ClientSession] = None,
        stream_session: Optional[aiohttp.ClientSession] = None,
        **options: Any,
    ):
        """
        Initialize client.

        Args:
            config: Full configuration; alternatively pass ClientConfig fields as keywords
            session: Optional session for REST requests
            stream_session: Optional session for websocket connections

        Raises:
            ConfigurationError: If credentials or URLs are invalid
        """
        if config is None:
            config = ClientConfig(**options)
        elif options:
            raise TypeError("pass either config or keyword options, not both")

        self._config = config
        self._executor = RequestExecutor(config, session=session)
        self._streams = StreamManager(config, session=stream_session)

        self._listen_key: Optional[str] = None
        self._futures_listen_key: Optional[str] = None

        self._spot_keeper = ListenKeyKeeper(
            "spot",
            self.update_listen_key,
            config.listen_key_refresh_seconds,
        )
        self._futures_keeper = ListenKeyKeeper(
            "future",
            self.update_futures_listen_key,
            config.listen_key_refresh_seconds,
        )

        logger.info(f"Bitmusa client created for {config.rest_url}")

    # --------------------------------------------------------
    # PROPERTIES
    # --------------------------------------------------------

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def streams(self) -> StreamManager:
        return self._streams

    @property
    def listen_key(self) -> Optional[str]:
        return self._listen_key

    @property
    def futures_listen_key(self) -> Optional[str]:
        return self._futures_listen_key

    @property
    def spot_keeper(self) -> ListenKeyKeeper:
        return self._spot_keeper

    @property
    def futures_keeper(self) -> ListenKeyKeeper:
        return self._futures_keeper

    async def __aenter__(self) -> "BitmusaClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    # ============================================================
    # REST
    # ============================================================

    async def _call(
        self,
        operation: str,
        path: str,
        method: str,
        params: Optional[dict] = None,
    ) -> Envelope:
        """
        Execute a request and check its envelope.

        Raises:
            ApplicationError: If the envelope code is non-zero
            NetworkError: If no usable response was received
        """
        envelope = await self._executor.execute(path, method, params)
        if not envelope.ok:
            raise ApplicationError(operation, envelope.code, envelope.message)
        return envelope

    # ============================================================
    # STREAMS
    # ============================================================

    async def subscribe(self, channel_id: str, callback: Optional[StreamCallback] = None) -> bool:
        """Subscribe to a raw channel path."""
        return await self._streams.subscribe(channel_id, callback or default_callback)

    async def terminate(self, channel_id: str) -> bool:
        """Close a channel without reconnecting it."""
        return await self._streams.terminate(channel_id)

    async def order_book_stream(
        self,
        symbol: str = "BTCUSDT",
        level: str = "5",
        frequency: str = "100ms",
        callback: Optional[StreamCallback] = None,
    ) -> str:
        """
        Stream the spot order book.

        Returns:
            Channel identifier (for terminate())
        """
        channel_id = depth_channel(Market.SPOT, symbol, level, frequency)
        await self.subscribe(channel_id, callback)
        return channel_id

    async def kline_stream(
        self,
        symbol: str = "BTCUSDT",
        interval: str = "1min",
        callback: Optional[StreamCallback] = None,
    ) -> str:
        """Stream spot candlesticks."""
        channel_id = kline_channel(Market.SPOT, symbol, interval)
        await self.subscribe(channel_id, callback)
        return channel_id

    async def futures_order_book_stream(
        self,
        symbol: str = "BTCUSDT",
        level: str = "5",
        frequency: str = "100ms",
        callback: Optional[StreamCallback] = None,
    ) -> str:
        """Stream the futures order book."""
        channel_id = depth_channel(Market.FUTURE, symbol, level, frequency)
        await self.subscribe(channel_id, callback)
        return channel_id

    async def futures_kline_stream(
        self,
        symbol: str = "BTCUSDT",
        interval: str = "1min",
        callback: Optional[StreamCallback] = None,
    ) -> str:
        """Stream futures candlesticks."""
        channel_id = kline_channel(Market.FUTURE, symbol, interval)
        await self.subscribe(channel_id, callback)
        return channel_id

    async def user_data_stream(self, callback: Optional[StreamCallback] = None) -> str:
        """
        Stream spot account updates.

        Issues a listen key, subscribes to its wallet channel and, when
        keep_alive is set, renews the key periodically. Calling it again
        replaces the wallet channel of a previously issued key; a re-issued
        identical key keeps the existing channel and callback.
        """
        listen_key = await self.get_listen_key()
        await self._drop_wallet_channel(Market.SPOT, self._listen_key, listen_key)
        self._listen_key = listen_key

        channel_id = wallet_channel(Market.SPOT, listen_key)
        await self.subscribe(channel_id, callback)

        if self._config.keep_alive:
            self._spot_keeper.start()
        return channel_id

    async def futures_user_data_stream(self, callback: Optional[StreamCallback] = None) -> str:
        """Stream futures account updates; repeated calls behave as for spot."""
        listen_key = await self.get_futures_listen_key()
        await self._drop_wallet_channel(Market.FUTURE, self._futures_listen_key, listen_key)
        self._futures_listen_key = listen_key

        channel_id = wallet_channel(Market.FUTURE, listen_key)
        await self.subscribe(channel_id, callback)

        if self._config.keep_alive:
            self._futures_keeper.start()
        return channel_id

    async def _drop_wallet_channel(
        self,
        market: Market,
        previous_key: Optional[str],
        listen_key: str,
    ) -> None:
        """Terminate the wallet channel of a superseded listen key."""
        if previous_key is None or previous_key == listen_key:
            return
        channel_id = wallet_channel(market, previous_key)
        if await self._streams.terminate(channel_id):
            logger.info(f"Replaced {market.value} wallet channel {mask_channel(channel_id)}")

    # ============================================================
    # TEARDOWN
    # ============================================================

    async def close(self) -> None:
        """
        Release everything the client holds.

        Stops renewal, closes every channel, deletes issued listen keys
        (failures are logged) and closes the HTTP sessions.
        """
        await self._spot_keeper.stop()
        await self._futures_keeper.stop()
        await self._streams.close()

        if self._listen_key is not None:
            await self._release_listen_key("spot", self.delete_listen_key)
            self._listen_key = None
        if self._futures_listen_key is not None:
            await self._release_listen_key("future", self.delete_futures_listen_key)
            self._futures_listen_key = None

        await self._executor.close()
        logger.info("Bitmusa client closed")

    @staticmethod
    async def _release_listen_key(name: str, delete) -> None:
        try:
            await delete()
        except BitmusaError as e:
            logger.warning(f"Failed to delete {name} listen key: {e}")
