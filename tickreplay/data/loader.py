# tickreplay/data/loader.py
from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence, Set, Tuple

"""
MarketDataLoader (FROZEN CONTRACT)

外部协作者：只负责把本地历史数据解码成 time-ascending 的记录。
存储格式 / 解压不属于回测核心。

  available_instruments(exchange, kind)   -> 有该类数据的 instId 集合
  time_range(exchange, kind, inst_id)     -> (t0, t1) | None
  load(exchange, kind, inst_id, t0, t1)   -> records（ts 升序，t0 <= ts <= t1）

liquidation 数据稀疏，不保证覆盖。
"""

ProgressFn = Callable[[int, int], None]


class DataKind(str, Enum):
    TICKER = "tickers"
    DEPTH = "depth"
    TRADES = "trades"
    LIQUIDATION = "liquidation"
    KLINE = "klines"


class MarketDataLoader(ABC):

    @abstractmethod
    def available_instruments(self, exchange: str, kind: DataKind, interval_sec: int = 0) -> Set[str]:
        ...

    @abstractmethod
    def time_range(
        self, exchange: str, kind: DataKind, inst_id: str, interval_sec: int = 0
    ) -> Optional[Tuple[int, int]]:
        ...

    @abstractmethod
    def load(
        self,
        exchange: str,
        kind: DataKind,
        inst_id: str,
        t0: int,
        t1: int,
        interval_sec: int = 0,
        on_progress: Optional[ProgressFn] = None,
    ) -> List:
        ...


class InMemoryMarketDataLoader(MarketDataLoader):
    """
    内存 loader（测试 / 程序化构造回测）

    key = (exchange, kind, inst_id, interval_sec)
    可用时间范围默认取记录的 min / max ts，也可显式指定
    """

    def __init__(self) -> None:
        self._records: Dict[Tuple[str, DataKind, str, int], List] = {}
        self._ranges: Dict[Tuple[str, DataKind, str, int], Tuple[int, int]] = {}

    def add(
        self,
        exchange: str,
        kind: DataKind,
        inst_id: str,
        records: Sequence,
        interval_sec: int = 0,
        time_range: Optional[Tuple[int, int]] = None,
    ) -> "InMemoryMarketDataLoader":
        key = (exchange, kind, inst_id, interval_sec)
        merged = self._records.get(key, []) + list(records)
        merged.sort(key=lambda r: r.ts)
        self._records[key] = merged
        if time_range is not None:
            self._ranges[key] = time_range
        return self

    # --------------------------------------------------
    def available_instruments(self, exchange: str, kind: DataKind, interval_sec: int = 0) -> Set[str]:
        return {
            inst_id
            for (ex, k, inst_id, itv) in set(self._records) | set(self._ranges)
            if ex == exchange and k == kind and itv == interval_sec
        }

    def time_range(
        self, exchange: str, kind: DataKind, inst_id: str, interval_sec: int = 0
    ) -> Optional[Tuple[int, int]]:
        key = (exchange, kind, inst_id, interval_sec)
        if key in self._ranges:
            return self._ranges[key]
        records = self._records.get(key)
        if not records:
            return None
        return records[0].ts, records[-1].ts

    def load(
        self,
        exchange: str,
        kind: DataKind,
        inst_id: str,
        t0: int,
        t1: int,
        interval_sec: int = 0,
        on_progress: Optional[ProgressFn] = None,
    ) -> List:
        records = self._records.get((exchange, kind, inst_id, interval_sec), [])
        out = [r for r in records if t0 <= r.ts <= t1]
        if on_progress is not None:
            on_progress(1, 1)
        return out
