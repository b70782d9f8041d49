"""
Bitmusa Client Package.

============================================================
PURPOSE
============================================================
Async client for the Bitmusa exchange.

COMPONENTS:
- BitmusaClient: REST operations and websocket streams
- ClientConfig: Immutable client configuration
- RequestExecutor: Authenticated HTTP requests
- StreamManager: Channel subscriptions with reconnect and liveness sweep

ERROR HANDLING:
- BitmusaError and subclasses (see errors.py)

============================================================
"""

# Configuration
from .config import (
    ClientConfig,
    DEFAULT_BASE_URL,
    DEFAULT_STREAM_URL,
)

# Client
from .client import BitmusaClient, default_callback
from .executor import RequestExecutor

# Streams
from .streams import (
    ChannelConnection,
    ChannelState,
    ListenKeyKeeper,
    LivenessMonitor,
    StreamManager,
    SubscriptionRegistry,
)

# Types
from .types import (
    Envelope,
    FuturesOrderType,
    MarginMode,
    Market,
    OrderSide,
    PositionDirection,
    SpotOrderType,
    TriggerOrder,
    TriggerType,
)

# Errors
from .errors import (
    ApplicationError,
    BitmusaError,
    ConfigurationError,
    NetworkError,
    ParseError,
    SymbolNotFoundError,
    ValidationError,
)


__version__ = "0.1.0"

__all__ = [
    # Configuration
    "ClientConfig",
    "DEFAULT_BASE_URL",
    "DEFAULT_STREAM_URL",
    # Client
    "BitmusaClient",
    "default_callback",
    "RequestExecutor",
    # Streams
    "ChannelConnection",
    "ChannelState",
    "ListenKeyKeeper",
    "LivenessMonitor",
    "StreamManager",
    "SubscriptionRegistry",
    # Types
    "Envelope",
    "FuturesOrderType",
    "MarginMode",
    "Market",
    "OrderSide",
    "PositionDirection",
    "SpotOrderType",
    "TriggerOrder",
    "TriggerType",
    # Errors
    "ApplicationError",
    "BitmusaError",
    "ConfigurationError",
    "NetworkError",
    "ParseError",
    "SymbolNotFoundError",
    "ValidationError",
]
