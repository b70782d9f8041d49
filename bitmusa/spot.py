"""
Bitmusa Client - Spot Operations.

============================================================
PURPOSE
============================================================
Spot trading, account and market data endpoints.

Mixed into BitmusaClient, which provides ``_call``.

============================================================
"""

import logging
from typing import Any, Dict, List, Optional

from .errors import SymbolNotFoundError, ValidationError
from .types import OrderSide
from .validation import (
    normalize_side,
    normalize_symbol,
    require,
    require_window,
    spot_order_type,
)


logger = logging.getLogger(__name__)


SPOT_USER_STREAM_PATH = "/api/v1/spot/userDataStream"


class SpotApi:
    """Spot endpoints."""

    # --------------------------------------------------------
    # LISTEN KEY
    # --------------------------------------------------------

    async def get_listen_key(self) -> str:
        """Issue a listen key for the spot wallet stream."""
        envelope = await self._call("getListenKey", SPOT_USER_STREAM_PATH, "POST")
        return envelope.data["listenKey"]

    async def update_listen_key(self) -> None:
        """Extend the spot listen key's validity."""
        await self._call("updateListenKey", SPOT_USER_STREAM_PATH, "PUT")

    async def delete_listen_key(self) -> None:
        """Invalidate the spot listen key."""
        await self._call("deleteListenKey", SPOT_USER_STREAM_PATH, "DELETE")

    # --------------------------------------------------------
    # ORDERS
    # --------------------------------------------------------

    async def order(
        self,
        symbol: str,
        side: str,
        quantity: Any,
        price: Any = None,
        order_type: Optional[str] = None,
    ) -> Any:
        """
        Place a spot order.

        Args:
            symbol: Market symbol, e.g. BTC/USDT
            side: BUY or SELL
            quantity: Amount to trade
            price: Limit price; omit for a market order
            order_type: LIMIT(_PRICE) or MARKET(_PRICE), inferred from price

        Returns:
            Order data from the server
        """
        op = "order"
        symbol = normalize_symbol(op, symbol)
        side = normalize_side(op, side, name="direction")
        require(op, "quantity", quantity)

        resolved_type = spot_order_type(op, order_type, has_price=bool(price))

        options = {
            "symbol": symbol,
            "price": f"{price or 0}",
            "amount": f"{quantity}",
            "direction": side.value,
            "type": resolved_type.value,
        }

        envelope = await self._call(op, "/api/v1/spot/order", "POST", options)
        return envelope.data

    async def limit_buy(self, symbol: str, quantity: Any, price: Any) -> Any:
        """Spot limit buy."""
        require("limitBuy", "price", price)
        return await self.order(symbol, OrderSide.BUY.value, quantity, price, "LIMIT_PRICE")

    async def limit_sell(self, symbol: str, quantity: Any, price: Any) -> Any:
        """Spot limit sell."""
        require("limitSell", "price", price)
        return await self.order(symbol, OrderSide.SELL.value, quantity, price, "LIMIT_PRICE")

    async def market_buy(self, symbol: str, quantity: Any) -> Any:
        """Spot market buy."""
        return await self.order(symbol, OrderSide.BUY.value, quantity, None, "MARKET_PRICE")

    async def market_sell(self, symbol: str, quantity: Any) -> Any:
        """Spot market sell."""
        return await self.order(symbol, OrderSide.SELL.value, quantity, None, "MARKET_PRICE")

    async def cancel_order(self, order_id: str) -> Any:
        """Cancel one spot order."""
        op = "cancelOrder"
        require(op, "orderId", order_id)
        envelope = await self._call(op, f"/api/v1/spot/order/cancel/{order_id}", "POST")
        return envelope.data

    async def cancel_all_orders(self, symbol: str) -> Any:
        """Cancel every open spot order on a symbol."""
        op = "cancelAllOrders"
        symbol = normalize_symbol(op, symbol)
        envelope = await self._call(op, "/api/v1/spot/order/cancel/all", "POST", {"symbol": symbol})
        return envelope.data

    async def open_orders(self, symbol: str, page_no: int = 1, page_size: int = 10) -> List[Dict[str, Any]]:
        """List open spot orders, one page at a time."""
        op = "openOrders"
        if page_no < 1:
            raise ValidationError(op, "pageNo start from 1")
        symbol = normalize_symbol(op, symbol)

        parameters = {
            "pageNo": page_no,
            "pageSize": page_size,
            "symbol": symbol,
        }

        envelope = await self._call(op, "/api/v1/spot/order", "GET", parameters)
        return (envelope.data or {}).get("content", [])

    async def order_history(
        self,
        symbol: str,
        order_status: str,
        size: int = 10,
        start_time: Optional[int] = None,
        end_time: Optional[int] = None,
    ) -> Any:
        """Historical spot orders filtered by status."""
        op = "orderHistory"
        symbol = normalize_symbol(op, symbol)
        require(op, "orderStatus", order_status)
        require_window(op, start_time, end_time, size)

        parameters = {
            "symbol": symbol,
            "startTime": start_time,
            "endTime": end_time,
            "status": order_status.upper(),
            "size": size,
        }

        envelope = await self._call(op, "/api/v1/spot/order/history", "GET", parameters)
        return envelope.data

    async def trade_history(
        self,
        symbol: str,
        start_time: Optional[int] = None,
        end_time: Optional[int] = None,
        side: str = "BUY",
        size: int = 10,
    ) -> Any:
        """Executed spot trades for one side."""
        op = "tradeHistory"
        symbol = normalize_symbol(op, symbol)
        require_window(op, start_time, end_time, size)
        side = normalize_side(op, side, name="direction")

        parameters = {
            "symbol": symbol,
            "startTime": start_time,
            "endTime": end_time,
            "direction": side.value,
            "size": size,
        }

        envelope = await self._call(op, "/api/v1/spot/trade/history", "GET", parameters)
        return envelope.data

    # --------------------------------------------------------
    # ACCOUNT
    # --------------------------------------------------------

    async def balance(self, symbol: Optional[str] = None) -> Any:
        """
        Spot wallet balances.

        Args:
            symbol: Coin unit such as BTC; returns every coin when omitted

        Raises:
            ValidationError: For pair symbols like BTC/USDT
            SymbolNotFoundError: If the coin is not in the wallet
        """
        op = "balance"
        if symbol and len(symbol.split("/")) == 2:
            raise ValidationError(op, "symbol must be like BTC")

        envelope = await self._call(op, "/api/v1/spot/wallet", "GET")
        if not symbol:
            return envelope.data

        symbol = symbol.upper()
        for item in envelope.data or []:
            if (item.get("coin") or {}).get("unit") == symbol:
                return item
        raise SymbolNotFoundError(op, symbol)

    # --------------------------------------------------------
    # MARKET DATA
    # --------------------------------------------------------

    async def tickers(self, symbol: Optional[str] = None) -> Any:
        """All spot tickers, or one when symbol is given."""
        op = "tickers"
        envelope = await self._call(op, "/api/v1/spot/market", "GET")
        if not symbol:
            return envelope.data

        symbol = symbol.upper()
        for item in envelope.data or []:
            if item.get("symbol") == symbol:
                return item
        raise SymbolNotFoundError(op, symbol)

    async def prices(self, symbol: Optional[str] = None) -> Any:
        """Close price for one symbol, or {symbol, close} for all."""
        op = "prices"
        envelope = await self._call(op, "/api/v1/spot/market", "GET")
        data = envelope.data or []

        if not symbol:
            return [{"symbol": item.get("symbol"), "close": item.get("close")} for item in data]

        symbol = symbol.upper()
        ticker = next((item for item in data if item.get("symbol") == symbol), None)
        if ticker is None:
            raise SymbolNotFoundError(op, symbol)
        if not ticker.get("close"):
            raise SymbolNotFoundError(op, symbol, detail="close price is not found")
        return ticker["close"]

    async def recent_trades(self, symbol: str, size: int = 20) -> Any:
        """Latest public spot trades."""
        op = "recentTrades"
        symbol = normalize_symbol(op, symbol)
        envelope = await self._call(
            op, "/api/v1/spot/market/trade", "GET", {"symbol": symbol, "size": size}
        )
        return envelope.data

    async def order_book(self, symbol: str) -> Any:
        """Spot order book snapshot."""
        op = "orderBook"
        symbol = normalize_symbol(op, symbol)
        envelope = await self._call(op, "/api/v1/spot/market/orderbook", "GET", {"symbol": symbol})
        if envelope.data in (None, "", {}):
            raise SymbolNotFoundError(op, symbol)
        return envelope.data

    async def klines(
        self,
        symbol: str,
        interval: str = "1",
        start_time: Optional[int] = None,
        end_time: Optional[int] = None,
        size: int = 100,
    ) -> Any:
        """Spot candlesticks; interval is the server's resolution string."""
        op = "klines"
        symbol = normalize_symbol(op, symbol)
        require(op, "interval", interval)
        require_window(op, start_time, end_time, size)

        parameters = {
            "symbol": symbol,
            "from": start_time,
            "to": end_time,
            "resolution": interval,
        }

        envelope = await self._call(op, "/api/v1/spot/market/kline", "GET", parameters)
        return envelope.data
