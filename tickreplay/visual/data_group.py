#!filepath: tickreplay/visual/data_group.py
from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, List

import pyarrow as pa
import pyarrow.parquet as pq

"""
DataGroup

回测过程中收集的可视化数据（opaque）：
  - 每个 series 是一串 (ts, value, tag) 点
  - 成交记为 BUY / SELL 点，NAV 采样记为普通点
  - 只负责落盘，不负责画图
"""

POINTS_FILE = "points.parquet"
EXTRA_INFO_FILE = "extra_info.txt"

_SCHEMA = pa.schema(
    [
        ("series", pa.string()),
        ("ts", pa.int64()),
        ("value", pa.float64()),
        ("tag", pa.string()),
    ]
)


class PointTag(str, Enum):
    NONE = "none"
    BUY = "buy"
    SELL = "sell"


@dataclass(frozen=True, slots=True)
class VisualPoint:
    ts: int
    value: float
    tag: PointTag = PointTag.NONE


class DataGroup:

    def __init__(self, interval_ms: int) -> None:
        self.interval_ms = interval_ms
        self._series: Dict[str, List[VisualPoint]] = defaultdict(list)
        self._extra_info: List[str] = []

    # --------------------------------------------------
    def record_point(self, name: str, point: VisualPoint) -> None:
        self._series[name].append(point)

    def record_value(self, name: str, ts: int, value: float) -> None:
        self.record_point(name, VisualPoint(ts=ts, value=value))

    def save_extra_info(self, line: str) -> None:
        self._extra_info.append(line)

    # --------------------------------------------------
    def series_names(self) -> List[str]:
        return list(self._series)

    def points(self, name: str) -> List[VisualPoint]:
        return list(self._series.get(name, ()))

    @property
    def extra_info(self) -> List[str]:
        return list(self._extra_info)

    # --------------------------------------------------
    def save_to_dir(self, out_dir: str | Path) -> Path:
        out = Path(out_dir)
        out.mkdir(parents=True, exist_ok=True)

        rows = [
            {"series": name, "ts": p.ts, "value": p.value, "tag": p.tag.value}
            for name, pts in self._series.items()
            for p in pts
        ]
        pq.write_table(pa.Table.from_pylist(rows, schema=_SCHEMA), out / POINTS_FILE)

        (out / EXTRA_INFO_FILE).write_text("\n".join(self._extra_info), encoding="utf-8")
        return out
