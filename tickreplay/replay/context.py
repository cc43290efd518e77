# tickreplay/replay/context.py
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Optional, Tuple

from tickreplay.core.market import Depth

if TYPE_CHECKING:
    from tickreplay.replay.engine import ReplayEngine


class Context(ABC):
    """
    Context (FINAL / FROZEN)

    Strategy 看到的唯一接口：
      - 只读：时间 / 余额 / 仓位 / 最新价 / 盘口
      - 唯一写操作：signal_taker

    Strategy 不得持有 engine 本身。
    """

    @abstractmethod
    def get_time(self) -> int:
        ...

    @abstractmethod
    def get_balance(self, ccy: str) -> Tuple[float, bool]:
        ...

    @abstractmethod
    def get_position(self, inst_id: str) -> Tuple[float, float]:
        """(amount, avg_open_price)；没有仓位 → (0, 0)"""

    @abstractmethod
    def get_latest_price(self, inst_id: str) -> Tuple[float, bool]:
        ...

    @abstractmethod
    def get_depth(self, inst_id: str) -> Tuple[Optional[Depth], bool]:
        ...

    @abstractmethod
    def signal_taker(self, inst_id: str, price: float, amount: float, is_sell: bool) -> None:
        ...


class ReplayContext(Context):
    """ReplayEngine 的只读外观"""

    __slots__ = ("_engine",)

    def __init__(self, engine: "ReplayEngine") -> None:
        self._engine = engine

    def get_time(self) -> int:
        return self._engine.now

    def get_balance(self, ccy: str) -> Tuple[float, bool]:
        return self._engine.account.get(ccy)

    def get_position(self, inst_id: str) -> Tuple[float, float]:
        pos = self._engine.positions.get(inst_id)
        if pos is None:
            return 0.0, 0.0
        return pos.position, pos.avg_open_price

    def get_latest_price(self, inst_id: str) -> Tuple[float, bool]:
        if inst_id in self._engine.prices:
            return self._engine.prices[inst_id], True
        return 0.0, False

    def get_depth(self, inst_id: str) -> Tuple[Optional[Depth], bool]:
        depth = self._engine.depths.get(inst_id)
        return depth, depth is not None

    def signal_taker(self, inst_id: str, price: float, amount: float, is_sell: bool) -> None:
        self._engine.signal_taker(inst_id, price, amount, is_sell)
