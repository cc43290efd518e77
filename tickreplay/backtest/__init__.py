from tickreplay.backtest.metrics import BasicMetrics, MetricsCollector, MetricsPipeline, TradeCountMetrics
from tickreplay.backtest.report import (
    NavCurveReport,
    PositionsReport,
    Report,
    ReportPipeline,
    ResultJsonReport,
)
from tickreplay.backtest.result import BacktestResult

__all__ = [
    "BacktestResult",
    "BasicMetrics",
    "MetricsCollector",
    "MetricsPipeline",
    "NavCurveReport",
    "PositionsReport",
    "Report",
    "ReportPipeline",
    "ResultJsonReport",
    "TradeCountMetrics",
]
