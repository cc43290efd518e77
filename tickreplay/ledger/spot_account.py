# tickreplay/ledger/spot_account.py
from __future__ import annotations

from typing import Dict, Optional, Tuple


class SpotAccount:
    """
    SpotAccount (FINAL / FROZEN)

    资产余额 ccy -> amount，运行期间只修改、不删除。

    现货成交：
      - 买入：quote -= price * amount，手续费从收到的 base 中扣
      - 卖出：base -= amount，手续费从收到的 quote 中扣

    合约盈亏（profit - fee）也通过 add() 记到保证金币种上。
    """

    def __init__(
        self,
        fee_rate_maker: float = 0.0,
        fee_rate_taker: float = 0.0,
        balances: Optional[Dict[str, float]] = None,
    ) -> None:
        self.fee_rate_maker = fee_rate_maker
        self.fee_rate_taker = fee_rate_taker
        self._balances: Dict[str, float] = dict(balances or {})

    # --------------------------------------------------
    def get(self, ccy: str) -> Tuple[float, bool]:
        if ccy in self._balances:
            return self._balances[ccy], True
        return 0.0, False

    def set(self, ccy: str, amount: float) -> None:
        self._balances[ccy] = float(amount)

    def add(self, ccy: str, delta: float) -> None:
        self._balances[ccy] = self._balances.get(ccy, 0.0) + delta

    def snapshot(self) -> Dict[str, float]:
        return dict(self._balances)

    def items(self):
        return self._balances.items()

    # --------------------------------------------------
    def _fee_rate(self, taker: bool) -> float:
        return self.fee_rate_taker if taker else self.fee_rate_maker

    def buy(self, base: str, quote: str, price: float, amount: float, taker: bool) -> float:
        """Returns fee（以 base 计）"""
        fee = amount * self._fee_rate(taker)
        self.add(quote, -price * amount)
        self.add(base, amount - fee)
        return fee

    def sell(self, base: str, quote: str, price: float, amount: float, taker: bool) -> float:
        """Returns fee（以 quote 计）"""
        proceeds = price * amount
        fee = proceeds * self._fee_rate(taker)
        self.add(base, -amount)
        self.add(quote, proceeds - fee)
        return fee
