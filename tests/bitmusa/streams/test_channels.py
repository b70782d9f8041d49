"""
Channel Identifier Tests.
"""

import pytest

from bitmusa import Market, ValidationError
from bitmusa.streams import depth_channel, kline_channel, wallet_channel


class TestChannelPaths:
    """Tests for channel path construction."""

    def test_depth_channel(self):
        assert depth_channel(Market.SPOT, "btcusdt") == "/ws/spot/public?stream=BTCUSDT@depth5@100ms"
        assert depth_channel(Market.FUTURE, "ETHUSDT", "20", "1s") == (
            "/ws/future/public?stream=ETHUSDT@depth20@1s"
        )

    def test_kline_symbol_case(self):
        """Spot kline paths are lower case, futures upper case."""
        assert kline_channel(Market.SPOT, "BTCUSDT", "5min") == "/ws/spot/public?stream=btcusdt@kline_5min"
        assert kline_channel(Market.FUTURE, "btcusdt", "1H") == "/ws/future/public?stream=BTCUSDT@kline_1H"

    def test_wallet_channel(self):
        assert wallet_channel(Market.SPOT, "key123") == "/ws/spot/wallet/key123"
        assert wallet_channel(Market.FUTURE, "key123") == "/ws/future/wallet/key123"

    @pytest.mark.parametrize("build", [
        lambda: depth_channel(Market.SPOT, "BTCUSDT", level="15"),
        lambda: depth_channel(Market.SPOT, "BTCUSDT", frequency="10ms"),
        lambda: depth_channel(Market.SPOT, ""),
        lambda: kline_channel(Market.FUTURE, "BTCUSDT", interval="2min"),
        lambda: wallet_channel(Market.SPOT, ""),
        lambda: wallet_channel(Market.SPOT, "a/b"),
    ])
    def test_invalid_parameters(self, build):
        with pytest.raises(ValidationError):
            build()
