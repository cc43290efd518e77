# tickreplay/backtest/report.py
from __future__ import annotations

import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List

import pandas as pd

from tickreplay.backtest.result import BacktestResult


class Report(ABC):
    """
    Report (FINAL / FROZEN)

    BacktestResult -> side effects (files)

    - 只读消费 BacktestResult，不改变回测与 metrics
    - 派生分析放在 Metrics 层
    - 删除任何 report 不影响可复现性
    """

    @abstractmethod
    def render(self, result: BacktestResult) -> None:
        ...


class ResultJsonReport(Report):
    def __init__(self, metrics: Dict[str, float], output_path):
        self._metrics = metrics
        self._path = Path(output_path)

    def render(self, result: BacktestResult) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        payload = {"result": result.to_dict(), "metrics": self._metrics}
        with open(self._path, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2, ensure_ascii=False)


class PositionsReport(Report):
    def __init__(self, output_path):
        self._path = Path(output_path)

    def render(self, result: BacktestResult) -> None:
        if not result.positions:
            return

        df = pd.DataFrame.from_dict(result.positions, orient="index")
        df.index.name = "inst_id"
        self._path.parent.mkdir(parents=True, exist_ok=True)
        df.to_csv(self._path)


class NavCurveReport(Report):
    def __init__(self, output_path):
        self._path = Path(output_path)

    def render(self, result: BacktestResult) -> None:
        df = pd.DataFrame({"ts": result.timestamps, "nav": result.nav_values})
        df["datetime"] = pd.to_datetime(df["ts"], unit="ms", utc=True)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        df.to_parquet(self._path, index=False)


class ReportPipeline:
    def __init__(self, reports: List[Report]):
        self._reports = reports

    def render_all(self, result: BacktestResult) -> None:
        for r in self._reports:
            r.render(result)
