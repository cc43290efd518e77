#!filepath: tickreplay/workflows/run_backtest.py
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

from tickreplay.backtest.metrics import BasicMetrics, MetricsPipeline, TradeCountMetrics
from tickreplay.backtest.report import NavCurveReport, PositionsReport, ReportPipeline, ResultJsonReport
from tickreplay.backtest.result import BacktestResult
from tickreplay.config.app_config import AppConfig
from tickreplay.config.backtest_config import BacktestConfig
from tickreplay.data.loader import MarketDataLoader
from tickreplay.data.parquet_loader import ParquetMarketDataLoader
from tickreplay.replay.engine import ReplayEngine
from tickreplay.replay.sequencer import EventSequencer, EventStream
from tickreplay.strategy.factory import StrategyFactory
from tickreplay.utils.logger import logs


@dataclass(frozen=True)
class BacktestRun:
    result: BacktestResult
    metrics: Dict[str, float]
    output_dir: Optional[Path] = None


def build_stream(cfg: BacktestConfig, loader: Optional[MarketDataLoader] = None) -> EventStream:
    """覆盖检查 + 加载 + 排序"""
    loader = loader or ParquetMarketDataLoader(cfg.data_root)
    sequencer = EventSequencer(loader, logger=logs)
    return sequencer.load(cfg.exchange, cfg.inst_ids, cfg.start_ms, cfg.end_ms, cfg.streams)


def run_backtest(app_cfg: AppConfig, loader: Optional[MarketDataLoader] = None) -> BacktestRun:
    """
    Backtest workflow:
      config -> EventStream -> ReplayEngine -> BacktestResult -> metrics -> reports
    """
    cfg = app_cfg.backtest
    logs.info(f"[Workflow] backtest {cfg.name}: {cfg.inst_ids}@{cfg.exchange} {cfg.start} -> {cfg.end}")

    # 1) 数据
    stream = build_stream(cfg, loader)

    # 2) 策略 / 引擎
    strategy = StrategyFactory.create(cfg.strategy)

    out_dir = Path(cfg.output_dir) / cfg.name if cfg.output_dir else None
    engine = ReplayEngine(
        fees=cfg.fees,
        charts_interval_ms=cfg.charts_interval_ms,
        logger=logs,
        visual_root=str(out_dir / "visual") if out_dir else None,
        baseline_ccy=cfg.baseline_ccy,
    )
    for ccy, amount in cfg.initial_balance.items():
        engine.set_balance(ccy, amount)

    # 3) 回放
    result = engine.run(strategy, stream, name=cfg.name)

    # 4) 指标
    metrics = MetricsPipeline([BasicMetrics(), TradeCountMetrics()]).compute(result)

    # 5) 报告
    if out_dir is not None:
        ReportPipeline(
            [
                ResultJsonReport(metrics, out_dir / "result.json"),
                PositionsReport(out_dir / "positions.csv"),
                NavCurveReport(out_dir / "nav.parquet"),
            ]
        ).render_all(result)
        logs.info(f"[Workflow] reports written to {out_dir}")

    return BacktestRun(result=result, metrics=metrics, output_dir=out_dir)


if __name__ == "__main__":
    # python -m tickreplay.workflows.run_backtest <config.yml>
    import sys

    run_backtest(AppConfig.load(sys.argv[1]))
