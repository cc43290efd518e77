# tickreplay/ledger/contract_position.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

from tickreplay.utils.errors import LedgerContractError

# 浮点仓位：|position| 小于此值视为已完全平仓
POSITION_EPS = 1e-9

"""
ContractPosition (FINAL / FROZEN)

模拟一个合约仓位，计算其盈利、手续费等。

U本位合约：保证金为 USDT，仓位单位为币
币本位合约：保证金为币，仓位单位为 USD
两种本位的收益计算方式不同（见 calc_profit）。

Invariants:
- sign(position) == 开仓 - 平仓 的净方向
- realized_profit 只在平仓时变化
- avg_open_price 只在开仓时变化
- total_fee 只增不减
- max_position_abs 在两次完全平仓之间单调不减，回到 0 时重置
- position 每次变化后做 snap：|position| < POSITION_EPS 记为 0.0
"""


@dataclass(frozen=True, slots=True)
class ProfitRecord:
    profit: float           # 本次平仓利润
    profit_total: float     # 截至本次的累计已实现利润
    ts: int


@dataclass(frozen=True, slots=True)
class DealResult:
    fee: float = 0.0
    profit: float = 0.0

    def __add__(self, other: "DealResult") -> "DealResult":
        return DealResult(fee=self.fee + other.fee, profit=self.profit + other.profit)


def calc_avg_price(price: float, amount_abs: float, price_avg: float, position_abs: float) -> float:
    """
    一次成交后的加权均价

      (position_abs + amount_abs) / (position_abs / price_avg + amount_abs / price)

    position_abs 或 price_avg 为 0 时，分母第一项视为 0
    """
    if price <= 0:
        raise LedgerContractError(f"non-positive deal price: {price}")

    x = position_abs + amount_abs
    y = position_abs / price_avg if position_abs > 0 and price_avg > 0 else 0.0
    z = amount_abs / price

    if y + z <= 0:
        raise LedgerContractError(
            f"zero average-price denominator: price={price} amount={amount_abs} "
            f"avg={price_avg} position={position_abs}"
        )
    return x / (y + z)


def _snap(position: float) -> float:
    return 0.0 if abs(position) < POSITION_EPS else position


@dataclass
class ContractPosition:
    fee_rate_maker: float
    fee_rate_taker: float
    is_usdt: bool
    margin_ccy: str
    on_clear: Optional[Callable[["ContractPosition"], None]] = None

    total_fee: float = 0.0
    position: float = 0.0
    avg_open_price: float = 0.0
    avg_close_price: float = 0.0
    realized_profit: float = 0.0
    unrealized_profit: float = 0.0
    unrealized_profit_ratio: float = 0.0
    buy_amount_total: float = 0.0
    sell_amount_total: float = 0.0
    buy_price_avg: float = 0.0
    sell_price_avg: float = 0.0
    total_volume: float = 0.0
    clear_count: int = 0
    profit_records: List[ProfitRecord] = field(default_factory=list)
    max_position_abs: float = 0.0

    # --------------------------------------------------
    # 收益 / 手续费
    # --------------------------------------------------
    def calc_profit(self, open_px: float, close_px: float, amount: float) -> Tuple[float, float]:
        """
        收益计算，只能在平仓时调用

        amount: 平仓数量（带符号）。负数 = 平多，正数 = 平空
        Returns (profit_rate, profit)

        U本位：
          保证金 = |amount| * open_px
          多仓收益率 = (close - open) / open
          空仓收益率 = (open - close) / open

        币本位：
          保证金 = |amount| / open_px
          多仓收益率 = (close - open) / close
          空仓收益率 = (open - close) / close
        """
        amount_abs = abs(amount)

        if open_px <= 0 or close_px <= 0:
            raise LedgerContractError(
                f"profit on non-positive price: open={open_px} close={close_px}"
            )

        if self.is_usdt:
            margin = amount_abs * open_px
            if amount < 0:
                rate = (close_px - open_px) / open_px
            else:
                rate = (open_px - close_px) / open_px
        else:
            margin = amount_abs / open_px
            if amount < 0:
                rate = (close_px - open_px) / close_px
            else:
                rate = (open_px - close_px) / close_px

        return rate, rate * margin

    def calc_fee(self, price: float, amount: float, taker: bool) -> float:
        fee_rate = self.fee_rate_taker if taker else self.fee_rate_maker
        if self.is_usdt:
            return abs(amount) * price * fee_rate
        return abs(amount) / price * fee_rate

    # --------------------------------------------------
    # 查询
    # --------------------------------------------------
    def position_dir(self) -> int:
        if self.position > 0:
            return 1
        if self.position < 0:
            return -1
        return 0

    def total_profit(self) -> float:
        return self.realized_profit + self.unrealized_profit - self.total_fee

    def last_position_profit(self) -> float:
        """最近一次完整平仓的收益"""
        if not self.profit_records:
            return 0.0
        return self.profit_records[-1].profit

    # --------------------------------------------------
    # 成交
    # --------------------------------------------------
    def deal(self, price: float, amount: float, taker: bool, ts: int) -> DealResult:
        """
        记录一次成交。amount 正数为买入，负数为卖出。

        Returns DealResult(fee, profit)：本次收取的手续费与本次实现的利润
        """
        if amount == 0:
            raise LedgerContractError("empty deal: amount == 0")
        if price <= 0:
            raise LedgerContractError(f"non-positive deal price: {price}")

        amount_abs = abs(amount)
        position_abs = abs(self.position)
        opening = self.position == 0 or (amount > 0) == (self.position > 0)

        if not opening and amount_abs - position_abs > POSITION_EPS:
            # 反手：先完全平仓，再用剩余数量反向开仓（此时 position == 0，不会再拆分）
            amount0 = -self.position
            amount1 = amount + self.position
            first = self.deal(price, amount0, taker, ts)
            second = self.deal(price, amount1, taker, ts)
            return first + second

        profit = 0.0
        if opening:
            self._open(price, amount, amount_abs, position_abs)
        else:
            profit = self._close(price, amount, amount_abs, position_abs, ts)

        fee = self.calc_fee(price, amount, taker)
        self.total_fee += fee

        # 整体买入 / 卖出均价
        if amount > 0:
            self.buy_price_avg = calc_avg_price(price, amount_abs, self.buy_price_avg, self.buy_amount_total)
            self.buy_amount_total += amount_abs
        else:
            self.sell_price_avg = calc_avg_price(price, amount_abs, self.sell_price_avg, self.sell_amount_total)
            self.sell_amount_total += amount_abs

        if self.is_usdt:
            self.total_volume += amount_abs * price
        else:
            self.total_volume += amount_abs / price

        return DealResult(fee=fee, profit=profit)

    def _open(self, price: float, amount: float, amount_abs: float, position_abs: float) -> None:
        if self.position == 0:
            # 全新仓位
            self.max_position_abs = 0.0
            self.avg_open_price = 0.0
            self.avg_close_price = 0.0

        self.avg_open_price = calc_avg_price(price, amount_abs, self.avg_open_price, position_abs)

        self.position = _snap(self.position + amount)
        self.max_position_abs = max(self.max_position_abs, abs(self.position))

    def _close(self, price: float, amount: float, amount_abs: float, position_abs: float, ts: int) -> float:
        # 此时 |amount| <= |position|
        _, profit = self.calc_profit(self.avg_open_price, price, amount)
        self.realized_profit += profit

        # 当前仓位距离最大持仓的差，即为已平仓数量；把平仓看作另一种开仓
        total_closed_abs = self.max_position_abs - position_abs
        self.avg_close_price = calc_avg_price(price, amount_abs, self.avg_close_price, total_closed_abs)

        # 平仓量与持仓量只差浮点误差时，视为恰好平完
        self.position = _snap(self.position + amount)
        if self.position == 0:
            self._on_cleared(ts)

        return profit

    def _on_cleared(self, ts: int) -> None:
        self.clear_count += 1

        if self.profit_records:
            delta = self.realized_profit - self.profit_records[-1].profit_total
        else:
            delta = self.realized_profit
        self.profit_records.append(
            ProfitRecord(profit=delta, profit_total=self.realized_profit, ts=ts)
        )

        self.avg_open_price = 0.0
        self.avg_close_price = 0.0
        self.max_position_abs = 0.0
        self.unrealized_profit = 0.0
        self.unrealized_profit_ratio = 0.0

        if self.on_clear is not None:
            self.on_clear(self)

    # --------------------------------------------------
    # 浮盈
    # --------------------------------------------------
    def update(self, current_price: float) -> None:
        """根据当前价格重新计算未实现盈亏（把持仓视为一次瞬时平仓）"""
        if self.position == 0:
            self.unrealized_profit = 0.0
            self.unrealized_profit_ratio = 0.0
            return

        rate, profit = self.calc_profit(self.avg_open_price, current_price, -self.position)
        self.unrealized_profit_ratio = rate
        self.unrealized_profit = profit
