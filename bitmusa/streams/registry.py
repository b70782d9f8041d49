"""
Streaming - Subscription Registry.

Maps channel identifier -> connection and, separately, channel identifier
-> callback. The registry owns the callback; connections borrow it, and the
reconnect path always re-reads it from here.

Invariant: at most one live connection per channel identifier.
"""

import logging
from typing import Dict, Iterator, List, Optional, Tuple

from ..types import StreamCallback
from .connection import ChannelConnection


logger = logging.getLogger(__name__)


class SubscriptionRegistry:
    """Instance-scoped channel registry."""

    def __init__(self):
        self._connections: Dict[str, ChannelConnection] = {}
        self._callbacks: Dict[str, StreamCallback] = {}

    def __contains__(self, channel_id: str) -> bool:
        return channel_id in self._connections

    def __len__(self) -> int:
        return len(self._connections)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._connections))

    def is_active(self, channel_id: str) -> bool:
        """True when the channel has a connection that is not DEAD."""
        connection = self._connections.get(channel_id)
        return connection is not None and not connection.is_dead

    def register(self, channel_id: str, callback: StreamCallback) -> None:
        """Store (or replace) the callback for a channel."""
        self._callbacks[channel_id] = callback

    def bind(self, channel_id: str, connection: ChannelConnection) -> Optional[ChannelConnection]:
        """
        Attach a connection to a registered channel.

        Returns:
            The connection it replaced, if any
        """
        if channel_id not in self._callbacks:
            raise KeyError(f"channel is not registered: {channel_id}")
        previous = self._connections.get(channel_id)
        self._connections[channel_id] = connection
        return previous

    def get(self, channel_id: str) -> Optional[ChannelConnection]:
        return self._connections.get(channel_id)

    def callback_for(self, channel_id: str) -> StreamCallback:
        """Callback registered for a channel."""
        return self._callbacks[channel_id]

    def remove(self, channel_id: str) -> Optional[ChannelConnection]:
        """Forget a channel and return its connection."""
        self._callbacks.pop(channel_id, None)
        return self._connections.pop(channel_id, None)

    def connections(self) -> List[Tuple[str, ChannelConnection]]:
        """Snapshot of (channel_id, connection) pairs, safe to mutate during iteration."""
        return list(self._connections.items())
