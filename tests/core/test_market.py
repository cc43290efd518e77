#!filepath: tests/core/test_market.py
import pytest

from tickreplay.core.market import (
    UNLIMITED_AMOUNT,
    Depth,
    Ticker,
    bar_to_interval,
    interval_to_bar,
)


def test_depth_from_ticker():
    d = Depth.from_ticker(Ticker(ts=5, price=100.0, best_bid=99.0, best_ask=101.0))
    assert d.ts == 5
    assert d.best_bid == 99.0
    assert d.best_ask == 101.0
    assert d.mid == pytest.approx(100.0)
    assert d.asks[0].amount == UNLIMITED_AMOUNT == 2**31 - 1
    assert d.bids[0].order_count == 1


def test_depth_best_and_mid(book):
    assert book.best_bid == 100.0
    assert book.best_ask == 101.0
    assert book.mid == pytest.approx(100.5)


def test_depth_empty_side_has_no_mid():
    d = Depth(ts=0, asks=(), bids=())
    assert d.mid is None
    assert d.best_bid is None
    assert d.best_ask is None


def test_max_amount(book):
    assert book.max_amount(99.0, is_sell=True) == pytest.approx(5.0)
    assert book.max_amount(100.0, is_sell=True) == pytest.approx(2.0)
    assert book.max_amount(101.0, is_sell=False) == pytest.approx(1.0)
    assert book.max_amount(100.0, is_sell=False) == 0


def test_avg_price(book):
    assert book.avg_price(4.0, is_sell=True) == (pytest.approx(99.5), pytest.approx(4.0))
    assert book.avg_price(0.0, is_sell=True) == (0.0, 0.0)


def test_avg_price_exhausts_book(book):
    avg, filled = book.avg_price(100.0, is_sell=False)
    assert filled == pytest.approx(6.0)
    assert avg == pytest.approx((101 + 102 * 5) / 6)


def test_bar_table():
    assert interval_to_bar(60) == "1m"
    assert interval_to_bar(86400) == "1d"
    assert interval_to_bar(61) is None
    assert bar_to_interval("4h") == 14400
