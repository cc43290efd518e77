# tickreplay/strategy/base.py
from __future__ import annotations

from typing import TYPE_CHECKING

from tickreplay.core.market import Depth, KlineUnit, Ticker, Trade

if TYPE_CHECKING:
    from tickreplay.replay.context import Context
    from tickreplay.visual.data_group import DataGroup


class Strategy:
    """
    Strategy (FINAL / FROZEN)

    行情驱动的回调集合：
      (inst_id, record, ctx) -> 通过 ctx.signal_taker 发出交易信号

    约束：
      - 回调在 replay 循环内同步执行
      - 只能通过 Context 读状态 / 发信号，不得回调 engine
      - 默认实现全部为空，子类按需覆盖
    """

    name: str = "strategy"

    # --------------------------------------------------
    # 行情驱动
    # --------------------------------------------------
    def on_ticker(self, inst_id: str, ticker: Ticker, ctx: "Context") -> None:
        pass

    def on_depth(self, inst_id: str, depth: Depth, ctx: "Context") -> None:
        pass

    def on_trade(self, inst_id: str, trade: Trade, ctx: "Context") -> None:
        pass

    def on_kline_unit(self, inst_id: str, kline: KlineUnit, ctx: "Context") -> None:
        pass

    def on_liquidation(self, inst_id: str, trade: Trade, ctx: "Context") -> None:
        pass

    # --------------------------------------------------
    # 可视化数据
    # --------------------------------------------------
    def on_visual_init(self, interval_ms: int, ctx: "Context") -> None:
        pass

    def on_visual_refresh(self, data_group: "DataGroup", ctx: "Context") -> None:
        pass

    def on_visual_save(self, root_dir: str, ctx: "Context") -> None:
        pass
