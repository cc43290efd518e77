#!filepath: tests/data/test_memory_loader.py
from tickreplay.core.market import Ticker
from tickreplay.data.loader import DataKind, InMemoryMarketDataLoader


def _ticks(*ts):
    return [Ticker(ts=t, price=1.0, best_bid=1.0, best_ask=1.0) for t in ts]


def test_available_instruments_by_kind():
    loader = InMemoryMarketDataLoader()
    loader.add("okx", DataKind.TICKER, "btc_usdt", _ticks(1, 2))
    loader.add("okx", DataKind.TRADES, "eth_usdt", [])

    assert loader.available_instruments("okx", DataKind.TICKER) == {"btc_usdt"}
    assert loader.available_instruments("okx", DataKind.TRADES) == {"eth_usdt"}
    assert loader.available_instruments("binance", DataKind.TICKER) == set()


def test_time_range_defaults_to_record_bounds():
    loader = InMemoryMarketDataLoader().add("okx", DataKind.TICKER, "btc_usdt", _ticks(30, 10, 20))
    assert loader.time_range("okx", DataKind.TICKER, "btc_usdt") == (10, 30)
    assert loader.time_range("okx", DataKind.TRADES, "btc_usdt") is None


def test_time_range_explicit():
    loader = InMemoryMarketDataLoader().add(
        "okx", DataKind.TICKER, "btc_usdt", _ticks(10), time_range=(0, 100)
    )
    assert loader.time_range("okx", DataKind.TICKER, "btc_usdt") == (0, 100)


def test_load_is_sorted_and_inclusive():
    calls = []
    loader = InMemoryMarketDataLoader().add("okx", DataKind.TICKER, "btc_usdt", _ticks(40, 10, 20, 30))
    out = loader.load("okx", DataKind.TICKER, "btc_usdt", 10, 30, on_progress=lambda i, n: calls.append((i, n)))

    assert [r.ts for r in out] == [10, 20, 30]
    assert calls == [(1, 1)]
