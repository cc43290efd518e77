#!filepath: tickreplay/config/backtest_config.py
from __future__ import annotations

from datetime import date, datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from tickreplay.core.market import interval_to_bar
from tickreplay.utils.datetime_utils import DateTimeUtils


class FeeConfig(BaseModel):
    """费率（小数，0.0005 = 5bp）"""

    spot_maker: float = Field(0.0, ge=0)
    spot_taker: float = Field(0.0, ge=0)
    contract_maker: float = Field(0.0, ge=0)
    contract_taker: float = Field(0.0, ge=0)


class StreamConfig(BaseModel):
    """
    本次回测加载哪些数据流

    kline_interval_sec = 0 表示不加载 K 线
    """

    ticker: bool = False
    depth: bool = False
    trades: bool = False
    liquidations: bool = False
    kline_interval_sec: int = 0

    @field_validator("kline_interval_sec")
    @classmethod
    def _known_bar(cls, v: int) -> int:
        if v != 0 and interval_to_bar(v) is None:
            raise ValueError(f"unsupported kline interval: {v}s")
        return v

    @property
    def kline(self) -> bool:
        return self.kline_interval_sec > 0

    def any_enabled(self) -> bool:
        return self.ticker or self.depth or self.trades or self.liquidations or self.kline


class BacktestConfig(BaseModel):
    """
    BacktestConfig（FINAL / FROZEN）

    语义：
      - 一次回测的“实验定义”
      - start / end 为 UTC，闭区间
      - strategy 参数 opaque，交给 StrategyFactory
    """

    name: str = "default"
    exchange: str = "okx"

    inst_ids: List[str] = Field(..., min_length=1)

    start: str
    end: str

    streams: StreamConfig = Field(default_factory=lambda: StreamConfig(ticker=True))
    fees: FeeConfig = Field(default_factory=FeeConfig)

    initial_balance: Dict[str, float] = Field(default_factory=dict)
    baseline_ccy: Optional[str] = None

    charts_interval_ms: int = Field(60_000, gt=0)

    data_root: str = "data"
    output_dir: Optional[str] = None

    strategy: Dict = Field(default_factory=lambda: {"type": "noop"})

    # --------------------------------------------------
    @field_validator("start", "end", mode="before")
    @classmethod
    def _date_to_str(cls, v):
        # YAML 会把未加引号的 2024-01-01 解析成 date
        if isinstance(v, (date, datetime)):
            return v.isoformat(sep=" ") if isinstance(v, datetime) else v.isoformat()
        return v

    @field_validator("inst_ids")
    @classmethod
    def _unique_inst_ids(cls, v: List[str]) -> List[str]:
        if len(set(v)) != len(v):
            raise ValueError(f"duplicate inst_ids: {v}")
        return v

    @model_validator(mode="after")
    def _check_range(self) -> "BacktestConfig":
        if self.start_ms >= self.end_ms:
            raise ValueError(f"start must be before end: {self.start} >= {self.end}")
        if not self.streams.any_enabled():
            raise ValueError("at least one stream must be enabled")
        return self

    @property
    def start_ms(self) -> int:
        return DateTimeUtils.to_ms(self.start)

    @property
    def end_ms(self) -> int:
        return DateTimeUtils.to_ms(self.end)
