#!filepath: tests/workflows/test_run_backtest.py
import json

import pytest

from tickreplay.config.app_config import AppConfig
from tickreplay.core.market import Ticker
from tickreplay.data.loader import DataKind
from tickreplay.data.parquet_loader import write_parquet_records
from tickreplay.utils.errors import DataCoverageError
from tickreplay.workflows.run_backtest import build_stream, run_backtest

DAY0 = 1_704_067_200_000
MINUTE = 60_000


def seed(root):
    prices = [100.0, 105.0, 110.0, 95.0, 120.0]
    ticks = [Ticker(DAY0 + i * MINUTE, p, p, p) for i, p in enumerate(prices)]
    write_parquet_records(root, "okx", DataKind.TICKER, "btc_usdt_swap", ticks)


def app_cfg(tmp_path, **bt):
    backtest = dict(
        name="demo",
        inst_ids=["btc_usdt_swap"],
        start="2024-01-01 00:00:00",
        end="2024-01-01 23:00:00",
        streams={"ticker": True},
        initial_balance={"usdt": 1000.0},
        data_root=str(tmp_path / "data"),
        output_dir=str(tmp_path / "out"),
        strategy={"type": "threshold", "buy_below": 100.0, "sell_above": 110.0, "amount": 1.0},
    )
    backtest.update(bt)
    return AppConfig(backtest=backtest)


def test_end_to_end(tmp_path):
    seed(tmp_path / "data")
    out = run_backtest(app_cfg(tmp_path))

    assert out.result.n_events == 5
    assert out.result.n_fills == 4
    assert out.metrics["final_nav"] == pytest.approx(1.035)
    assert out.metrics["total_return"] == pytest.approx(0.035)

    assert out.output_dir == tmp_path / "out" / "demo"
    payload = json.loads((out.output_dir / "result.json").read_text(encoding="utf-8"))
    assert payload["result"]["final_balances"]["usdt"] == pytest.approx(1035.0)
    assert (out.output_dir / "positions.csv").exists()
    assert (out.output_dir / "nav.parquet").exists()
    assert list((out.output_dir / "visual" / "threshold").glob("*/default/points.parquet"))


def test_without_output_dir(tmp_path):
    seed(tmp_path / "data")
    out = run_backtest(app_cfg(tmp_path, output_dir=None, strategy={"type": "noop"}))
    assert out.output_dir is None
    assert out.result.final_nav == pytest.approx(1.0)


def test_coverage_failure_aborts(tmp_path):
    seed(tmp_path / "data")
    cfg = app_cfg(tmp_path, end="2024-01-02 01:00:00")
    with pytest.raises(DataCoverageError) as ei:
        build_stream(cfg.backtest)
    assert ei.value.reason == "not enough data"
