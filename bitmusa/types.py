"""
Bitmusa Client - Types.

============================================================
PURPOSE
============================================================
Enums for order/stream parameters and the REST response envelope.

Every REST response is wrapped as {code, message, data};
code 0 means success.

============================================================
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Optional


# Stream callback: (channel_id, payload) -> None or awaitable
StreamCallback = Callable[[str, Any], Any]


# ============================================================
# ORDER ENUMS
# ============================================================

class Market(Enum):
    """Market a channel or listen key belongs to."""

    SPOT = "spot"
    FUTURE = "future"


class OrderSide(Enum):
    """Order side."""

    BUY = "BUY"
    SELL = "SELL"


class SpotOrderType(Enum):
    """Spot order type as sent on the wire."""

    LIMIT_PRICE = "LIMIT_PRICE"
    MARKET_PRICE = "MARKET_PRICE"


class FuturesOrderType(Enum):
    """Futures order type codes."""

    MARKET = 0
    LIMIT = 1


class MarginMode(Enum):
    """Futures margin mode codes."""

    ISOLATED = 0
    CROSSED = 1


class TriggerType(Enum):
    """Price source for take-profit / stop-loss triggers."""

    MARK = 1
    LAST = 2


class PositionDirection(Enum):
    """Futures order direction codes."""

    OPEN = 0
    CLOSE = 1


# ============================================================
# STREAM PARAMETERS
# ============================================================

DEPTH_LEVELS = ("5", "10", "20")
DEPTH_FREQUENCIES = ("1s", "100ms")
KLINE_INTERVALS = (
    "1min", "3min", "5min", "15min", "30min",
    "1H", "2H", "4H", "6H", "8H", "12H",
    "1D", "1W", "1M",
)

FUTURES_TRADE_ORDER_TYPES = ("MARKET", "LIMIT", "TAKE_PROFIT", "STOP_LOSS", "LIQUIDATION")


# ============================================================
# TRIGGER ORDERS
# ============================================================

@dataclass
class TriggerOrder:
    """Take-profit or stop-loss attached to a futures order."""

    trigger_type: str
    """MARK or LAST."""

    trigger_price: Any
    """Price that arms the order."""

    order_type: str = "MARKET"
    """MARKET or LIMIT."""

    order_price: Any = None
    """Required for LIMIT."""


# ============================================================
# RESPONSE ENVELOPE
# ============================================================

@dataclass
class Envelope:
    """Unwrapped REST response."""

    code: Any = 0
    """Application status code (0 is success)."""

    message: str = ""
    """Server message."""

    data: Any = None
    """Payload."""

    http_status: Optional[int] = None
    """HTTP status of the response."""

    raw: Dict[str, Any] = field(default_factory=dict)
    """Body as received."""

    @property
    def ok(self) -> bool:
        """True when the application code signals success."""
        return self.code in (0, None)

    @classmethod
    def from_body(cls, body: Any, http_status: Optional[int] = None) -> "Envelope":
        """
        Build an envelope from a decoded 2xx body.

        Bodies without a code are treated as bare payloads.
        """
        if isinstance(body, dict) and "code" in body:
            return cls(
                code=body.get("code") or 0,
                message=body.get("message") or "",
                data=body.get("data"),
                http_status=http_status,
                raw=body,
            )
        return cls(
            code=0,
            data=body,
            http_status=http_status,
            raw=body if isinstance(body, dict) else {},
        )
