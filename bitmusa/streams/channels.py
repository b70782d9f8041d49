"""
Streaming - Channel Identifiers.

Channel identifiers are URL paths appended to the stream base URL:

    /ws/<market>/public?stream=<SYMBOL>@depth<level>@<frequency>
    /ws/<market>/public?stream=<symbol>@kline_<interval>
    /ws/<market>/wallet/<listenKey>
"""

from ..errors import ValidationError
from ..types import DEPTH_FREQUENCIES, DEPTH_LEVELS, KLINE_INTERVALS, Market
from ..validation import normalize_choice, normalize_symbol, require


def public_channel(market: Market, stream: str) -> str:
    return f"/ws/{market.value}/public?stream={stream}"


def depth_channel(
    market: Market,
    symbol: str,
    level: str = "5",
    frequency: str = "100ms",
) -> str:
    """Order book channel; level 5/10/20, frequency 1s/100ms."""
    op = "orderBookStream" if market is Market.SPOT else "futuresOrderBookStream"
    symbol = normalize_symbol(op, symbol)
    level = normalize_choice(op, "level", level, DEPTH_LEVELS)
    frequency = normalize_choice(op, "frequency", frequency, DEPTH_FREQUENCIES, upper=False)
    return public_channel(market, f"{symbol}@depth{level}@{frequency}")


def kline_channel(market: Market, symbol: str, interval: str = "1min") -> str:
    """
    Candlestick channel.

    Spot paths carry the symbol in lower case, futures paths in upper case.
    """
    op = "klineStream" if market is Market.SPOT else "futuresKlineStream"
    symbol = normalize_symbol(op, symbol)
    interval = normalize_choice(op, "interval", interval, KLINE_INTERVALS, upper=False)
    if market is Market.SPOT:
        symbol = symbol.lower()
    return public_channel(market, f"{symbol}@kline_{interval}")


def wallet_channel(market: Market, listen_key: str) -> str:
    """Private account channel keyed by a listen key."""
    op = "userDataStream" if market is Market.SPOT else "futuresUserDataStream"
    require(op, "listenKey", listen_key)
    if "/" in listen_key:
        raise ValidationError(op, "listenKey must not contain '/'")
    return f"/ws/{market.value}/wallet/{listen_key}"
