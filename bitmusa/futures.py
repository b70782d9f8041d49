"""
Bitmusa Client - Futures Operations.

============================================================
PURPOSE
============================================================
Futures trading, position and market data endpoints.

Futures endpoints take numeric codes instead of names:
- position:    0 BUY, 1 SELL
- order_type:  0 MARKET, 1 LIMIT
- margin_mode: 0 ISOLATED, 1 CROSSED
- direction:   0 open, 1 close

Mixed into BitmusaClient, which provides ``_call``.

============================================================
"""

import logging
from typing import Any, Dict, Optional, Union

from .errors import SymbolNotFoundError, ValidationError
from .types import (
    FUTURES_TRADE_ORDER_TYPES,
    FuturesOrderType,
    MarginMode,
    OrderSide,
    PositionDirection,
    TriggerOrder,
    TriggerType,
)
from .validation import (
    futures_order_type,
    normalize_choice,
    normalize_side,
    normalize_symbol,
    require,
    require_window,
)


logger = logging.getLogger(__name__)


FUTURES_LISTEN_KEY_ISSUE_PATH = "/api/v2/future/userDataStream"
FUTURES_LISTEN_KEY_PATH = "/api/v1/future/userDataStream"


def _trigger_fields(
    operation: str,
    kind: str,
    trigger: Union[TriggerOrder, Dict[str, Any], None],
) -> Dict[str, Any]:
    """
    Build take-profit / stop-loss request fields.

    Args:
        operation: Operation name for error messages
        kind: take_profit or stop_loss
        trigger: TriggerOrder or dict with the same keys

    Returns:
        Fields prefixed with kind, empty when trigger is not set
    """
    if not trigger:
        return {}
    if isinstance(trigger, dict):
        trigger = TriggerOrder(**trigger)

    try:
        trigger_type = TriggerType[str(trigger.trigger_type).upper()]
    except KeyError:
        raise ValidationError(operation, f"{kind} trigger type must be MARK or LAST")
    try:
        order_type = FuturesOrderType[str(trigger.order_type).upper()]
    except KeyError:
        raise ValidationError(operation, f"{kind} order type must be MARKET or LIMIT")

    if order_type is FuturesOrderType.LIMIT and not trigger.order_price:
        raise ValidationError(operation, f"{kind} order price must be specified for limit {kind} order")

    return {
        f"is_{kind}": True,
        f"{kind}_trigger_type": trigger_type.value,
        f"{kind}_trigger_price": trigger.trigger_price,
        f"{kind}_order_type": order_type.value,
        f"{kind}_order_price": trigger.order_price,
    }


class FuturesApi:
    """Futures endpoints."""

    # --------------------------------------------------------
    # LISTEN KEY
    # --------------------------------------------------------

    async def get_futures_listen_key(self) -> str:
        """Issue a listen key for the futures wallet stream."""
        envelope = await self._call("getFuturesListenKey", FUTURES_LISTEN_KEY_ISSUE_PATH, "POST")
        return envelope.data["listenKey"]

    async def update_futures_listen_key(self) -> None:
        """Extend the futures listen key's validity."""
        await self._call("updateFuturesListenKey", FUTURES_LISTEN_KEY_PATH, "PUT")

    async def delete_futures_listen_key(self) -> None:
        """Invalidate the futures listen key."""
        await self._call("deleteFuturesListenKey", FUTURES_LISTEN_KEY_PATH, "DELETE")

    # --------------------------------------------------------
    # ORDERS
    # --------------------------------------------------------

    async def futures_order(
        self,
        symbol: str,
        side: str,
        quantity: Any,
        price: Any = None,
        order_type: Optional[str] = None,
        margin_mode: str = "ISOLATED",
        close_position: bool = False,
        reduce_only: bool = False,
        post_only: bool = False,
        take_profit: Union[TriggerOrder, Dict[str, Any], None] = None,
        stop_loss: Union[TriggerOrder, Dict[str, Any], None] = None,
    ) -> Any:
        """
        Place a futures order.

        Args:
            symbol: Contract ticker, e.g. BTCUSDT
            side: BUY or SELL
            quantity: Contract quantity
            price: Limit price; omit for a market order
            order_type: LIMIT or MARKET, inferred from price
            margin_mode: ISOLATED or CROSSED
            close_position: Close instead of open
            reduce_only: Reduce-only flag
            post_only: Post-only flag
            take_profit: Optional take-profit trigger
            stop_loss: Optional stop-loss trigger

        Returns:
            Order data from the server
        """
        op = "futuresOrder"
        symbol = normalize_symbol(op, symbol)
        side = normalize_side(op, side)
        require(op, "quantity", quantity)

        try:
            mode = MarginMode[str(margin_mode or "ISOLATED").upper()]
        except KeyError:
            raise ValidationError(op, "margin mode must be either ISOLATED or CROSSED")

        resolved_type = futures_order_type(op, order_type, has_price=bool(price))
        direction = PositionDirection.CLOSE if close_position else PositionDirection.OPEN
        position = 0 if side is OrderSide.BUY else 1

        options = {
            "direction": direction.value,
            "ticker": symbol,
            "margin_mode": mode.value,
            "position": position,
            "order_type": resolved_type.value,
            "order_price": price or 0,
            "order_qty": quantity,
            "is_reduce_only": reduce_only,
            "is_post_only": post_only,
        }
        options.update(_trigger_fields(op, "take_profit", take_profit))
        options.update(_trigger_fields(op, "stop_loss", stop_loss))

        envelope = await self._call(op, "/api/v2/future/order", "POST", options)
        return envelope.data

    async def futures_limit_buy(self, symbol: str, quantity: Any, price: Any, **params: Any) -> Any:
        """Futures limit buy; extra keyword arguments go to futures_order."""
        require("futuresLimitBuy", "price", price)
        params["order_type"] = "LIMIT"
        return await self.futures_order(symbol, "BUY", quantity, price, **params)

    async def futures_limit_sell(self, symbol: str, quantity: Any, price: Any, **params: Any) -> Any:
        """Futures limit sell."""
        require("futuresLimitSell", "price", price)
        params["order_type"] = "LIMIT"
        return await self.futures_order(symbol, "SELL", quantity, price, **params)

    async def futures_market_buy(self, symbol: str, quantity: Any, **params: Any) -> Any:
        """Futures market buy."""
        params["order_type"] = "MARKET"
        return await self.futures_order(symbol, "BUY", quantity, None, **params)

    async def futures_market_sell(self, symbol: str, quantity: Any, **params: Any) -> Any:
        """Futures market sell."""
        params["order_type"] = "MARKET"
        return await self.futures_order(symbol, "SELL", quantity, None, **params)

    async def cancel_futures_order(self, order_id: str) -> Any:
        """Cancel one futures order."""
        op = "cancelFuturesOrder"
        require(op, "order_id", order_id)
        envelope = await self._call(op, f"/api/v2/future/order/cancel/{order_id}", "POST")
        return envelope.data

    async def cancel_all_futures_orders(self, symbol: str) -> Any:
        """Cancel every open futures order on a ticker."""
        op = "cancelAllFuturesOrders"
        symbol = normalize_symbol(op, symbol)
        envelope = await self._call(op, f"/api/v2/future/order/cancel/all?ticker={symbol}", "POST")
        return envelope.data

    async def close_all_futures_positions(self, symbol: str) -> Any:
        """Close every futures position on a ticker."""
        op = "closeAllFuturesPositions"
        symbol = normalize_symbol(op, symbol)
        envelope = await self._call(op, f"/api/v2/future/position/close/all?ticker={symbol}", "POST")
        return envelope.data

    async def futures_leverage(self, symbol: str, leverage: int = 1) -> Any:
        """Set leverage for a ticker."""
        op = "futuresLeverage"
        symbol = normalize_symbol(op, symbol)
        require(op, "leverage", leverage)
        envelope = await self._call(
            op, "/api/v2/future/leverage", "POST", {"ticker": symbol, "leverage": leverage}
        )
        return envelope.data

    async def futures_open_orders(
        self,
        symbol: str,
        start_time: Optional[int] = None,
        size: int = 50,
    ) -> Any:
        """Open futures orders on a ticker."""
        op = "futuresOpenOrders"
        symbol = normalize_symbol(op, symbol)
        options = {"ticker": symbol, "size": size, "start_time": start_time}
        envelope = await self._call(op, "/api/v2/future/order", "GET", options)
        return envelope.data

    async def futures_trade_history(
        self,
        symbol: str = "BTCUSDT",
        side: Optional[str] = None,
        direction: Optional[str] = None,
        order_type: Optional[str] = None,
        start_time: Optional[int] = None,
        end_time: Optional[int] = None,
        page: int = 1,
        size: Optional[int] = None,
    ) -> Any:
        """
        Executed futures trades.

        Args:
            symbol: Contract ticker
            side: Optional BUY or SELL filter
            direction: Optional OPEN or CLOSE filter
            order_type: Optional MARKET, LIMIT, TAKE_PROFIT, STOP_LOSS or LIQUIDATION
            start_time: Window start (ms)
            end_time: Window end (ms)
            page: Page number
            size: Page size
        """
        op = "futuresTradeHistory"
        symbol = normalize_symbol(op, symbol)

        if side:
            side = normalize_side(op, side, name="position").value
        if direction:
            direction = normalize_choice(op, "direction", direction, ("OPEN", "CLOSE"))
        if order_type:
            order_type = normalize_choice(op, "orderType", order_type, FUTURES_TRADE_ORDER_TYPES)
        require_window(op, start_time, end_time, size)

        options = {
            "ticker": symbol,
            "position": side,
            "direction": direction,
            "order_type": order_type,
            "startTime": start_time,
            "endTime": end_time,
            "page": page,
            "size": size,
        }

        envelope = await self._call(op, "/api/v2/future/trade/history", "GET", options)
        return envelope.data

    # --------------------------------------------------------
    # ACCOUNT
    # --------------------------------------------------------

    async def futures_exposure(self, symbol: str) -> Optional[Dict[str, Any]]:
        """Current position on a ticker, None when flat."""
        op = "futuresExposure"
        symbol = normalize_symbol(op, symbol)
        envelope = await self._call(op, "/api/v2/future/position", "GET", {"ticker": symbol})
        positions = envelope.data or []
        return positions[0] if positions else None

    async def futures_balance(self, symbol: Optional[str] = None) -> Any:
        """Futures wallet balances, or one asset when symbol is given."""
        op = "futuresBalance"
        envelope = await self._call(op, "/api/v2/future/wallet", "GET")
        if not symbol:
            return envelope.data

        symbol = symbol.upper()
        for item in envelope.data or []:
            if item.get("symbol") == symbol:
                return item
        raise SymbolNotFoundError(op, symbol)

    # --------------------------------------------------------
    # MARKET DATA
    # --------------------------------------------------------

    async def futures_tickers(self, symbol: str = "BTCUSDT") -> Any:
        """Futures ticker; the endpoint requires a ticker argument."""
        op = "futuresTickers"
        symbol = normalize_symbol(op, symbol)
        envelope = await self._call(op, "/api/v2/future/market", "GET", {"ticker": symbol})
        return envelope.data

    async def futures_prices(self, symbol: str) -> Any:
        """Last traded price of a ticker."""
        op = "futuresPrices"
        symbol = normalize_symbol(op, symbol)
        envelope = await self._call(op, "/api/v2/future/market", "GET", {"ticker": symbol})
        data = envelope.data or {}
        if data.get("ticker") != symbol:
            raise SymbolNotFoundError(op, symbol)
        return data.get("last_price")

    async def futures_recent_trades(self, symbol: str, size: int = 20) -> Any:
        """Latest public futures trades."""
        op = "futuresRecentTrades"
        symbol = normalize_symbol(op, symbol)
        envelope = await self._call(
            op, "/api/v2/future/market/trade", "GET", {"ticker": symbol, "size": size}
        )
        return envelope.data

    async def futures_order_book(self, symbol: str, size: int = 50) -> Any:
        """Futures order book snapshot."""
        op = "futuresOrderbook"
        symbol = normalize_symbol(op, symbol)
        envelope = await self._call(
            op, "/api/v2/future/market/orderbook", "GET", {"ticker": symbol, "size": size}
        )
        return envelope.data

    async def futures_klines(
        self,
        symbol: str = "BTCUSDT",
        interval: str = "1min",
        start_time: Optional[int] = None,
        end_time: Optional[int] = None,
        size: int = 100,
    ) -> Any:
        """Futures candlesticks."""
        op = "futuresKlines"
        symbol = normalize_symbol(op, symbol)
        require(op, "interval", interval)

        options = {
            "ticker": symbol,
            "interval": interval,
            "startTime": start_time,
            "endTime": end_time,
            "size": size,
        }

        envelope = await self._call(op, "/api/v2/future/market/kline", "GET", options)
        return envelope.data
