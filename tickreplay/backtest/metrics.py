# tickreplay/backtest/metrics.py
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, List

import numpy as np

from tickreplay.backtest.result import BacktestResult


class MetricsCollector(ABC):
    """
    MetricsCollector (FINAL)

    BacktestResult -> metrics dict

    - Metrics 是 BacktestResult 的纯函数
    - 不影响回测执行
    - Result 与 Metrics 分开存储
    """

    @abstractmethod
    def compute(self, result: BacktestResult) -> Dict[str, float]:
        ...


class BasicMetrics(MetricsCollector):
    """基于 NAV 曲线的基础指标（按采样点计算，不年化）"""

    def compute(self, result: BacktestResult) -> Dict[str, float]:
        nav = np.asarray(result.nav_values, dtype=float)
        if nav.size == 0:
            nav = np.asarray([result.final_nav], dtype=float)

        ret = np.diff(nav) / nav[:-1] if nav.size > 1 else np.zeros(0)
        std = float(np.std(ret)) if ret.size else 0.0
        sharpe = float(np.mean(ret)) / std if std > 0 else 0.0

        peak = np.maximum.accumulate(nav)
        drawdown = float(np.max((peak - nav) / peak)) if np.all(peak > 0) else 0.0

        return {
            "final_nav": float(result.final_nav),
            "total_return": float(result.final_nav) - 1.0,
            "max_drawdown": drawdown,
            "sharpe": sharpe,
        }


class TradeCountMetrics(MetricsCollector):
    def compute(self, result: BacktestResult) -> Dict[str, float]:
        return {
            "n_events": float(result.n_events),
            "n_signals": float(result.n_signals),
            "n_fills": float(result.n_fills),
        }


class MetricsPipeline:
    def __init__(self, collectors: List[MetricsCollector]):
        self._collectors = collectors

    def compute(self, result: BacktestResult) -> Dict[str, float]:
        metrics: Dict[str, float] = {}
        for c in self._collectors:
            metrics.update(c.compute(result))
        return metrics
