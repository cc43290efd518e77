#!filepath: tests/data/test_parquet_loader.py
import pytest

from tickreplay.core.market import Depth, DepthLevel, KlineUnit, Ticker, Trade, TradeTag
from tickreplay.data.loader import DataKind
from tickreplay.data.parquet_loader import ParquetMarketDataLoader, kind_dir, write_parquet_records
from tickreplay.utils.datetime_utils import MS_PER_DAY

DAY0 = 1_704_067_200_000  # 2024-01-01
DAY1 = DAY0 + MS_PER_DAY


def test_layout_and_available(tmp_path):
    paths = write_parquet_records(
        tmp_path,
        "okx",
        DataKind.TICKER,
        "btc_usdt",
        [Ticker(DAY0 + 5, 1.0, 0.9, 1.1), Ticker(DAY1 + 5, 2.0, 1.9, 2.1)],
    )
    assert [p.name for p in paths] == ["2024-01-01.parquet", "2024-01-02.parquet"]
    assert paths[0].parent == tmp_path / "tickers" / "okx" / "btc_usdt"

    # 不含 "_" 的目录不是 instId
    (tmp_path / "tickers" / "okx" / "tmp").mkdir()

    loader = ParquetMarketDataLoader(tmp_path)
    assert loader.available_instruments("okx", DataKind.TICKER) == {"btc_usdt"}
    assert loader.available_instruments("okx", DataKind.DEPTH) == set()


def test_time_range_whole_days(tmp_path):
    write_parquet_records(
        tmp_path, "okx", DataKind.TICKER, "btc_usdt",
        [Ticker(DAY0 + 1000, 1.0, 1.0, 1.0), Ticker(DAY1 + 1000, 1.0, 1.0, 1.0)],
    )
    loader = ParquetMarketDataLoader(tmp_path)
    assert loader.time_range("okx", DataKind.TICKER, "btc_usdt") == (DAY0, DAY1 + MS_PER_DAY - 1)
    assert loader.time_range("okx", DataKind.TICKER, "eth_usdt") is None


def test_load_filters_and_reports_progress(tmp_path):
    ticks = [Ticker(DAY0 + i * 1000, float(i), float(i), float(i)) for i in range(5)]
    ticks.append(Ticker(DAY1 + 10, 9.0, 9.0, 9.0))
    write_parquet_records(tmp_path, "okx", DataKind.TICKER, "btc_usdt", ticks)

    calls = []
    loader = ParquetMarketDataLoader(tmp_path)
    out = loader.load(
        "okx", DataKind.TICKER, "btc_usdt", DAY0 + 1000, DAY1 + 10,
        on_progress=lambda i, n: calls.append((i, n)),
    )

    assert [r.ts for r in out] == [DAY0 + 1000, DAY0 + 2000, DAY0 + 3000, DAY0 + 4000, DAY1 + 10]
    assert out[0] == Ticker(DAY0 + 1000, 1.0, 1.0, 1.0)
    assert calls == [(1, 2), (2, 2)]


def test_missing_day_is_skipped(tmp_path):
    write_parquet_records(tmp_path, "okx", DataKind.TICKER, "btc_usdt", [Ticker(DAY0, 1.0, 1.0, 1.0)])
    loader = ParquetMarketDataLoader(tmp_path)
    out = loader.load("okx", DataKind.TICKER, "btc_usdt", DAY0, DAY1 + 5)
    assert len(out) == 1


def test_depth_levels_survive(tmp_path):
    d = Depth(
        ts=DAY0,
        asks=(DepthLevel(101.0, 1.0, 2), DepthLevel(102.0, 3.0, 1)),
        bids=(DepthLevel(100.0, 2.0, 5),),
    )
    write_parquet_records(tmp_path, "okx", DataKind.DEPTH, "btc_usdt", [d])
    out = ParquetMarketDataLoader(tmp_path).load("okx", DataKind.DEPTH, "btc_usdt", DAY0, DAY0)
    assert out == [d]


def test_liquidation_rows_are_tagged(tmp_path):
    write_parquet_records(
        tmp_path, "okx", DataKind.LIQUIDATION, "btc_usdt_swap", [Trade(DAY0, 90.0, 1.5, "s")]
    )
    out = ParquetMarketDataLoader(tmp_path).load("okx", DataKind.LIQUIDATION, "btc_usdt_swap", DAY0, DAY0)
    assert out[0].tag == TradeTag.LIQUIDATION
    assert out[0].side == "s"


def test_kline_uses_bar_directory(tmp_path):
    k = KlineUnit(DAY0, 1.0, 2.0, 3.0, 0.5, 10.0)
    paths = write_parquet_records(tmp_path, "okx", DataKind.KLINE, "btc_usdt", [k], interval_sec=300)
    assert paths[0].parent == tmp_path / "klines" / "okx" / "5m" / "btc_usdt"

    loader = ParquetMarketDataLoader(tmp_path)
    assert loader.available_instruments("okx", DataKind.KLINE, 300) == {"btc_usdt"}
    assert loader.available_instruments("okx", DataKind.KLINE, 60) == set()
    assert loader.available_instruments("okx", DataKind.KLINE, 61) == set()
    assert loader.load("okx", DataKind.KLINE, "btc_usdt", DAY0, DAY0, 300) == [k]


def test_kind_dir_rejects_unknown_bar(tmp_path):
    with pytest.raises(ValueError):
        kind_dir(tmp_path, "okx", DataKind.KLINE, 7)


def test_exchange_native_directory_names(tmp_path):
    ticks = [Ticker(DAY0 + 5, 1.0, 0.9, 1.1)]
    write_parquet_records(tmp_path, "okx", DataKind.TICKER, "btc_usdt_swap", ticks)
    base = tmp_path / "tickers" / "okx"
    (base / "btc_usdt_swap").rename(base / "BTC-USDT-SWAP")

    write_parquet_records(tmp_path, "binance", DataKind.TICKER, "btc_usd_swap", ticks)
    bn = tmp_path / "tickers" / "binance"
    (bn / "btc_usd_swap").rename(bn / "BTCUSD_PERP")
    # 现货和 U 本位同名，无法唯一映射
    (bn / "BTCUSDT").mkdir()

    loader = ParquetMarketDataLoader(tmp_path)
    assert loader.available_instruments("okx", DataKind.TICKER) == {"btc_usdt_swap"}
    assert loader.available_instruments("binance", DataKind.TICKER) == {"btc_usd_swap"}

    assert loader.time_range("okx", DataKind.TICKER, "btc_usdt_swap") == (DAY0, DAY1 - 1)
    out = loader.load("binance", DataKind.TICKER, "btc_usd_swap", DAY0, DAY1 - 1)
    assert out == ticks
