# tests/conftest.py
from __future__ import annotations

from typing import Callable, List

import pytest
from loguru import logger

from tickreplay.config.backtest_config import StreamConfig
from tickreplay.core.market import Depth, DepthLevel, KlineUnit, Ticker, Trade
from tickreplay.data.loader import DataKind, InMemoryMarketDataLoader

# 2024-01-01 00:00:00 UTC
T0 = 1_704_067_200_000
MINUTE = 60_000


@pytest.fixture(autouse=True)
def disable_file_logger():
    logger.remove()
    logger.add(lambda msg: None)
    yield


@pytest.fixture
def t0() -> int:
    return T0


@pytest.fixture
def make_ticker() -> Callable[..., Ticker]:
    def _make(ts: int, price: float, spread: float = 1.0) -> Ticker:
        return Ticker(ts=ts, price=price, best_bid=price - spread / 2, best_ask=price + spread / 2)

    return _make


@pytest.fixture
def book() -> Depth:
    """bids [(100, 2), (99, 3)] / asks [(101, 1), (102, 5)]"""
    return Depth(
        ts=T0,
        asks=(DepthLevel(101.0, 1.0, 1), DepthLevel(102.0, 5.0, 2)),
        bids=(DepthLevel(100.0, 2.0, 1), DepthLevel(99.0, 3.0, 3)),
    )


@pytest.fixture
def ticker_loader() -> InMemoryMarketDataLoader:
    """
    btc_usdt_swap 上 5 个 ticker，每分钟一个：100, 105, 110, 95, 120
    可用范围显式覆盖 [T0, T0 + 10min]
    """
    prices = [100.0, 105.0, 110.0, 95.0, 120.0]
    tickers: List[Ticker] = [
        Ticker(ts=T0 + i * MINUTE, price=p, best_bid=p, best_ask=p) for i, p in enumerate(prices)
    ]
    loader = InMemoryMarketDataLoader()
    loader.add("okx", DataKind.TICKER, "btc_usdt_swap", tickers, time_range=(T0, T0 + 10 * MINUTE))
    return loader


@pytest.fixture
def full_loader() -> InMemoryMarketDataLoader:
    """每种数据都有的 loader（btc_usdt），用来测 sequencer / price source"""
    inst = "btc_usdt"
    rng = (T0, T0 + 10 * MINUTE)
    loader = InMemoryMarketDataLoader()
    loader.add(
        "okx",
        DataKind.TICKER,
        inst,
        [Ticker(T0 + 1_000, 100.0, 99.5, 100.5), Ticker(T0 + 61_000, 101.0, 100.5, 101.5)],
        time_range=rng,
    )
    loader.add(
        "okx",
        DataKind.DEPTH,
        inst,
        [
            Depth(T0 + 2_000, asks=(DepthLevel(102.0, 1.0),), bids=(DepthLevel(98.0, 1.0),)),
        ],
        time_range=rng,
    )
    loader.add(
        "okx",
        DataKind.TRADES,
        inst,
        [Trade(T0 + 3_000, 99.0, 0.5, "b"), Trade(T0 + 4_000, 99.5, 0.1, "s")],
        time_range=rng,
    )
    loader.add(
        "okx",
        DataKind.LIQUIDATION,
        inst,
        [Trade(T0 + 3_500, 90.0, 2.0, "s")],
    )
    loader.add(
        "okx",
        DataKind.KLINE,
        inst,
        [KlineUnit(T0, 100.0, 103.0, 104.0, 99.0, 10.0)],
        interval_sec=60,
        time_range=rng,
    )
    return loader


@pytest.fixture
def all_streams() -> StreamConfig:
    return StreamConfig(ticker=True, depth=True, trades=True, liquidations=True, kline_interval_sec=60)
