from __future__ import annotations

from typing import List, Optional

from tickreplay.core.instrument import InstType, inst_ccys, inst_type
from tickreplay.core.market import KlineUnit, Ticker, Trade
from tickreplay.replay.context import Context
from tickreplay.strategy.base import Strategy

_FLAT_EPS = 1e-12


class ThresholdStrategy(Strategy):
    """
    价格阈值策略（示例 / 回归测试用）

    规则：
      - 空仓 且 price <= buy_below  → 买入 amount
      - 有仓 且 price >= sell_above → 卖出全部持仓
      - 其他 → 不动

    持仓口径：
      - 合约：ctx.get_position
      - 现货：base 币余额
    """

    name = "threshold"

    def __init__(
        self,
        buy_below: float,
        sell_above: float,
        amount: float,
        inst_ids: Optional[List[str]] = None,
    ) -> None:
        if buy_below >= sell_above:
            raise ValueError(
                f"[ThresholdStrategy] buy_below must be < sell_above: {buy_below} >= {sell_above}"
            )
        if amount <= 0:
            raise ValueError(f"[ThresholdStrategy] amount must be positive: {amount}")

        self._buy_below = buy_below
        self._sell_above = sell_above
        self._amount = amount
        self._inst_ids = set(inst_ids) if inst_ids else None

    # --------------------------------------------------
    def on_ticker(self, inst_id: str, ticker: Ticker, ctx: Context) -> None:
        self._on_price(inst_id, ticker.price, ctx)

    def on_trade(self, inst_id: str, trade: Trade, ctx: Context) -> None:
        self._on_price(inst_id, trade.price, ctx)

    def on_kline_unit(self, inst_id: str, kline: KlineUnit, ctx: Context) -> None:
        self._on_price(inst_id, kline.close, ctx)

    # --------------------------------------------------
    def _holding(self, inst_id: str, ctx: Context) -> float:
        if inst_type(inst_id) == InstType.SPOT:
            base, _ = inst_ccys(inst_id)
            amount, _ = ctx.get_balance(base)
            return amount
        amount, _ = ctx.get_position(inst_id)
        return amount

    def _on_price(self, inst_id: str, price: float, ctx: Context) -> None:
        if self._inst_ids is not None and inst_id not in self._inst_ids:
            return

        held = self._holding(inst_id, ctx)
        depth, has_depth = ctx.get_depth(inst_id)

        if held <= _FLAT_EPS and price <= self._buy_below:
            limit = depth.best_ask if has_depth and depth.best_ask is not None else price
            ctx.signal_taker(inst_id, limit, self._amount, is_sell=False)

        elif held > _FLAT_EPS and price >= self._sell_above:
            limit = depth.best_bid if has_depth and depth.best_bid is not None else price
            ctx.signal_taker(inst_id, limit, held, is_sell=True)
