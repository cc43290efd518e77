#!filepath: tests/ledger/test_spot_account.py
import pytest

from tickreplay.ledger.spot_account import SpotAccount


def test_get_missing_currency():
    acc = SpotAccount()
    assert acc.get("usdt") == (0.0, False)


def test_set_and_add():
    acc = SpotAccount(balances={"usdt": 10.0})
    acc.add("usdt", 5.0)
    acc.add("btc", 0.5)
    acc.set("eth", 2)
    assert acc.get("usdt") == (15.0, True)
    assert acc.snapshot() == {"usdt": 15.0, "btc": 0.5, "eth": 2.0}


def test_buy_fee_taken_from_base():
    acc = SpotAccount(fee_rate_maker=0.001, fee_rate_taker=0.002, balances={"usdt": 1000.0})
    fee = acc.buy("btc", "usdt", 100.0, 2.0, taker=True)

    assert fee == pytest.approx(0.004)
    assert acc.get("usdt")[0] == pytest.approx(800.0)
    assert acc.get("btc")[0] == pytest.approx(2.0 * (1 - 0.002))


def test_sell_fee_taken_from_quote():
    acc = SpotAccount(fee_rate_maker=0.001, fee_rate_taker=0.002, balances={"btc": 1.0})
    fee = acc.sell("btc", "usdt", 110.0, 1.0, taker=False)

    assert fee == pytest.approx(0.11)
    assert acc.get("btc")[0] == pytest.approx(0.0)
    assert acc.get("usdt")[0] == pytest.approx(110.0 * (1 - 0.001))


def test_snapshot_is_a_copy():
    acc = SpotAccount(balances={"usdt": 1.0})
    snap = acc.snapshot()
    snap["usdt"] = 99.0
    assert acc.get("usdt")[0] == 1.0
