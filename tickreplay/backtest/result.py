# tickreplay/backtest/result.py
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Dict, List


@dataclass(frozen=True)
class BacktestResult:
    """
    BacktestResult (FINAL / FROZEN)

    一次 replay 结束后的只读快照：
      - metrics / report 只从这里取数
      - to_dict() 可直接 json 序列化
    """

    # -----------------------
    # Run identity
    # -----------------------
    name: str
    strategy: str
    exchange: str
    inst_ids: List[str]

    # -----------------------
    # Range / counters
    # -----------------------
    start_ts: int
    end_ts: int
    n_events: int
    n_signals: int
    n_fills: int

    # -----------------------
    # NAV curve
    # -----------------------
    final_nav: float
    nav_values: List[float]            # 按 replay 顺序采样
    timestamps: List[int]              # 与 nav_values 对齐

    # -----------------------
    # Final state
    # -----------------------
    final_balances: Dict[str, float]
    positions: Dict[str, Dict[str, float]]
    fills: List[Dict] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return asdict(self)
