"""
Bitmusa Client - Streaming.

Websocket channel subscriptions: connections, registry, liveness
monitor and listen key renewal.
"""

from .channels import (
    depth_channel,
    kline_channel,
    public_channel,
    wallet_channel,
)
from .connection import ChannelConnection, ChannelState
from .keepalive import ListenKeyKeeper
from .manager import StreamManager
from .monitor import LivenessMonitor
from .registry import SubscriptionRegistry


__all__ = [
    # Channels
    "public_channel",
    "depth_channel",
    "kline_channel",
    "wallet_channel",
    # Connection
    "ChannelConnection",
    "ChannelState",
    # Management
    "SubscriptionRegistry",
    "LivenessMonitor",
    "ListenKeyKeeper",
    "StreamManager",
]
