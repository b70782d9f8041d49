"""
Bitmusa Client - Parameter Validation.

============================================================
PURPOSE
============================================================
Structural checks and normalization of operation arguments.
All failures raise ValidationError before any request is sent.

============================================================
"""

from typing import Any, Iterable, Optional

from .errors import ValidationError
from .types import OrderSide, SpotOrderType, FuturesOrderType


def require(operation: str, name: str, value: Any) -> Any:
    """Reject blank required arguments."""
    if value is None or value == "" or value == 0:
        raise ValidationError(operation, f"{name} is blank")
    return value


def normalize_symbol(operation: str, symbol: Optional[str]) -> str:
    """Require a symbol and upper-case it."""
    require(operation, "symbol", symbol)
    return str(symbol).upper()


def normalize_side(operation: str, side: Optional[str], name: str = "side") -> OrderSide:
    """Map BUY/SELL (any case) to OrderSide."""
    require(operation, name, side)
    try:
        return OrderSide(str(side).upper())
    except ValueError:
        raise ValidationError(operation, f"{name} must be BUY or SELL")


def normalize_choice(
    operation: str,
    name: str,
    value: Any,
    choices: Iterable[str],
    upper: bool = True,
) -> str:
    """Require value to be one of choices."""
    text = str(value).upper() if upper else str(value)
    choices = tuple(choices)
    if text not in choices:
        raise ValidationError(operation, f"{name} must be one of {', '.join(choices)}")
    return text


def require_window(operation: str, start_time: Any, end_time: Any, size: Any) -> None:
    """Time-window queries need at least one bound or a size."""
    if not start_time and not end_time and not size:
        raise ValidationError(operation, "either timestamps or size must be specified")


# ============================================================
# ORDER TYPES
# ============================================================

_SPOT_TYPE_ALIASES = {
    "LIMIT": SpotOrderType.LIMIT_PRICE,
    "LIMIT_PRICE": SpotOrderType.LIMIT_PRICE,
    "MARKET": SpotOrderType.MARKET_PRICE,
    "MARKET_PRICE": SpotOrderType.MARKET_PRICE,
}

_FUTURES_TYPE_ALIASES = {
    "LIMIT": FuturesOrderType.LIMIT,
    "LIMIT_PRICE": FuturesOrderType.LIMIT,
    "MARKET": FuturesOrderType.MARKET,
    "MARKET_PRICE": FuturesOrderType.MARKET,
}


def spot_order_type(operation: str, order_type: Optional[str], has_price: bool) -> SpotOrderType:
    """
    Resolve the spot order type.

    Defaults to LIMIT_PRICE with a price and MARKET_PRICE without one.
    """
    if order_type is None:
        return SpotOrderType.LIMIT_PRICE if has_price else SpotOrderType.MARKET_PRICE
    try:
        return _SPOT_TYPE_ALIASES[str(order_type).upper()]
    except KeyError:
        raise ValidationError(operation, f"unsupported order type {order_type}")


def futures_order_type(operation: str, order_type: Optional[str], has_price: bool) -> FuturesOrderType:
    """Resolve the futures order type, same defaults as spot."""
    if order_type is None:
        return FuturesOrderType.LIMIT if has_price else FuturesOrderType.MARKET
    try:
        return _FUTURES_TYPE_ALIASES[str(order_type).upper()]
    except KeyError:
        raise ValidationError(operation, f"unsupported order type {order_type}")
