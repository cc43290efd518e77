#!filepath: tests/strategy/test_threshold_strategy.py
import pytest

from tickreplay.core.market import Depth, KlineUnit, Ticker, Trade
from tickreplay.replay.context import Context
from tickreplay.strategy.threshold import ThresholdStrategy


class FakeContext(Context):
    def __init__(self, position=0.0, balances=None, depth=None):
        self.position = position
        self.balances = balances or {}
        self.depth = depth
        self.signals = []

    def get_time(self):
        return 0

    def get_balance(self, ccy):
        return self.balances.get(ccy, 0.0), ccy in self.balances

    def get_position(self, inst_id):
        return self.position, 0.0

    def get_latest_price(self, inst_id):
        return 0.0, False

    def get_depth(self, inst_id):
        return self.depth, self.depth is not None

    def signal_taker(self, inst_id, price, amount, is_sell):
        self.signals.append((inst_id, price, amount, is_sell))


def strat(**kw):
    params = dict(buy_below=100.0, sell_above=110.0, amount=2.0)
    params.update(kw)
    return ThresholdStrategy(**params)


def test_buy_when_flat_and_cheap():
    ctx = FakeContext()
    strat().on_trade("btc_usdt_swap", Trade(0, 99.0, 1.0, "s"), ctx)
    assert ctx.signals == [("btc_usdt_swap", 99.0, 2.0, False)]


def test_buy_uses_best_ask_when_depth_known():
    ctx = FakeContext(depth=Depth.from_ticker(Ticker(0, 99.0, 98.5, 99.5)))
    strat().on_ticker("btc_usdt_swap", Ticker(0, 99.0, 98.5, 99.5), ctx)
    assert ctx.signals == [("btc_usdt_swap", 99.5, 2.0, False)]


def test_sell_whole_position_when_rich():
    ctx = FakeContext(position=3.0)
    strat().on_kline_unit("btc_usdt_swap", KlineUnit(0, 100.0, 111.0, 112.0, 99.0, 1.0), ctx)
    assert ctx.signals == [("btc_usdt_swap", 111.0, 3.0, True)]


def test_spot_holding_is_base_balance():
    ctx = FakeContext(balances={"btc": 0.5, "usdt": 100.0})
    strat().on_ticker("btc_usdt", Ticker(0, 120.0, 120.0, 120.0), ctx)
    assert ctx.signals == [("btc_usdt", 120.0, 0.5, True)]


def test_no_signal_between_thresholds():
    ctx = FakeContext()
    strat().on_ticker("btc_usdt_swap", Ticker(0, 105.0, 105.0, 105.0), ctx)
    assert ctx.signals == []


def test_inst_filter():
    ctx = FakeContext()
    strat(inst_ids=["eth_usdt_swap"]).on_ticker("btc_usdt_swap", Ticker(0, 1.0, 1.0, 1.0), ctx)
    assert ctx.signals == []


@pytest.mark.parametrize("kw", [{"buy_below": 120.0}, {"amount": 0.0}])
def test_invalid_params(kw):
    with pytest.raises(ValueError):
        strat(**kw)
