#!filepath: tests/execution/test_simulator.py
import pytest

from tickreplay.core.market import Depth, DepthLevel
from tickreplay.execution.simulator import ExecutionSimulator


def sim_for(depth):
    return ExecutionSimulator(depth_of=lambda inst_id: depth)


@pytest.mark.contract
def test_sell_walks_bids_unclamped(book):
    fill = sim_for(book).execute(0, "btc_usdt", price=99.0, amount=4.0, is_sell=True)

    # max fillable = 2 + 3 = 5 >= 4
    assert fill.amount == pytest.approx(4.0)
    assert fill.price == pytest.approx((100 * 2 + 99 * 2) / 4)
    assert fill.price == pytest.approx(99.5)
    assert not fill.clamped
    assert fill.signed_amount == pytest.approx(-4.0)


def test_sell_clamped_by_price_limit(book):
    fill = sim_for(book).execute(0, "btc_usdt", price=100.0, amount=4.0, is_sell=True)
    assert fill.amount == pytest.approx(2.0)
    assert fill.price == pytest.approx(100.0)
    assert fill.clamped


def test_buy_walks_asks(book):
    fill = sim_for(book).execute(0, "btc_usdt", price=102.0, amount=3.0, is_sell=False)
    assert fill.amount == pytest.approx(3.0)
    assert fill.price == pytest.approx((101 * 1 + 102 * 2) / 3)
    assert fill.signed_amount == pytest.approx(3.0)


def test_buy_below_best_ask_fills_nothing(book):
    fill = sim_for(book).execute(0, "btc_usdt", price=100.5, amount=1.0, is_sell=False)
    assert fill.amount == 0
    assert fill.price == 0


def test_no_depth_fills_at_request():
    fill = sim_for(None).execute(7, "btc_usdt_swap", price=123.0, amount=0.7, is_sell=False)
    assert (fill.price, fill.amount, fill.ts, fill.taker) == (123.0, 0.7, 7, True)


def test_known_asymmetry_avg_walk_ignores_price_limit():
    """
    Known non-obvious interaction between the two depth walks:
    the max-amount walk filters levels by price, the average-price walk does not.
    With an out-of-order bid side the fill price can be worse than the limit.
    """
    depth = Depth(ts=0, asks=(), bids=(DepthLevel(98.0, 5.0), DepthLevel(100.0, 2.0)))
    fill = sim_for(depth).execute(0, "btc_usdt", price=99.0, amount=3.0, is_sell=True)

    assert fill.amount == pytest.approx(2.0)     # only the 100 level passes the limit
    assert fill.price == pytest.approx(98.0)     # but the 98 level is consumed first
