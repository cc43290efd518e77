# tickreplay/core/market.py
from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Dict, Optional, Tuple

"""
Market records (FINAL / FROZEN)

All records are immutable, fully decoded, time-stamped facts (epoch ms).
Depth sides are ordered best-first:
  - asks: ascending price
  - bids: descending price
"""

# Depth synthesized from a Ticker: effectively unlimited liquidity at best bid / ask
UNLIMITED_AMOUNT = float(2**31 - 1)


@dataclass(frozen=True, slots=True)
class Ticker:
    ts: int
    price: float
    best_bid: float
    best_ask: float


@dataclass(frozen=True, slots=True)
class DepthLevel:
    price: float
    amount: float
    order_count: int = 1


@dataclass(frozen=True, slots=True)
class Depth:
    ts: int
    asks: Tuple[DepthLevel, ...]
    bids: Tuple[DepthLevel, ...]

    @classmethod
    def from_ticker(cls, ticker: Ticker) -> "Depth":
        return cls(
            ts=ticker.ts,
            asks=(DepthLevel(ticker.best_ask, UNLIMITED_AMOUNT, 1),),
            bids=(DepthLevel(ticker.best_bid, UNLIMITED_AMOUNT, 1),),
        )

    @property
    def best_bid(self) -> Optional[float]:
        return self.bids[0].price if self.bids else None

    @property
    def best_ask(self) -> Optional[float]:
        return self.asks[0].price if self.asks else None

    @property
    def mid(self) -> Optional[float]:
        if not self.bids or not self.asks:
            return None
        return (self.bids[0].price + self.asks[0].price) / 2

    # --------------------------------------------------
    # 盘口遍历
    # --------------------------------------------------
    def max_amount(self, price: float, is_sell: bool) -> float:
        """
        价格限制内可成交的最大数量
          - 卖：bid price >= price
          - 买：ask price <= price
        """
        amount = 0.0
        if is_sell:
            for lv in self.bids:
                if lv.price >= price:
                    amount += lv.amount
        else:
            for lv in self.asks:
                if lv.price <= price:
                    amount += lv.amount
        return amount

    def avg_price(self, amount: float, is_sell: bool) -> Tuple[float, float]:
        """
        从最优价开始吃单，直到 amount 满足为止。

        NOTE: 这里不再检查价格限制，只按数量消耗盘口。
        调用方需要先用 max_amount() 裁剪 amount。

        Returns (avg_price, filled); nothing filled -> (0.0, 0.0)
        """
        levels = self.bids if is_sell else self.asks
        notional = 0.0
        filled = 0.0
        remaining = amount

        for lv in levels:
            if remaining <= 0:
                break
            if lv.amount >= remaining:
                notional += remaining * lv.price
                filled += remaining
                remaining = 0.0
                break
            notional += lv.amount * lv.price
            filled += lv.amount
            remaining -= lv.amount

        if filled > 0:
            return notional / filled, filled
        return 0.0, 0.0


class TradeTag(IntEnum):
    NORMAL = 0
    LIQUIDATION = 1


@dataclass(frozen=True, slots=True)
class Trade:
    ts: int
    price: float
    size: float
    side: str                       # "b" / "s"
    tag: TradeTag = TradeTag.NORMAL


@dataclass(frozen=True, slots=True)
class KlineUnit:
    ts: int
    open: float
    close: float
    high: float
    low: float
    volume: float


# --------------------------------------------------
# Kline bars
# --------------------------------------------------
BAR_TO_INTERVAL: Dict[str, int] = {
    "1m": 60,
    "5m": 300,
    "15m": 900,
    "30m": 1800,
    "1h": 3600,
    "2h": 7200,
    "4h": 14400,
    "8h": 28800,
    "1d": 86400,
}

INTERVAL_TO_BAR: Dict[int, str] = {v: k for k, v in BAR_TO_INTERVAL.items()}


def interval_to_bar(interval_sec: int) -> Optional[str]:
    return INTERVAL_TO_BAR.get(interval_sec)


def bar_to_interval(bar: str) -> Optional[int]:
    return BAR_TO_INTERVAL.get(bar)
