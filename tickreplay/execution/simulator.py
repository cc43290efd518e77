from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

from tickreplay.core.market import Depth
from tickreplay.utils.logger import logs

"""
{#!filepath: tickreplay/execution/simulator.py}

ExecutionSimulator (FINAL / FROZEN)

Role:
- Convert a taker signal into one immutable Fill against the current depth.

Semantics:
- With depth:
    1. max_amount: sum opposing levels at-or-better than the signal price,
       clamp the requested amount down to it.
    2. avg_price: consume opposing levels from the best price until the
       clamped amount is filled. This walk does NOT re-check the price limit.
- Without depth: idealized fill at the requested price and amount.

Invariants:
- Does NOT mutate balances or positions.
- Fill.amount <= requested amount.
"""


@dataclass(frozen=True, slots=True)
class Fill:
    inst_id: str
    ts: int
    price: float
    amount: float
    is_sell: bool
    taker: bool = True
    requested_price: float = 0.0
    requested_amount: float = 0.0

    @property
    def signed_amount(self) -> float:
        return -self.amount if self.is_sell else self.amount

    @property
    def clamped(self) -> bool:
        return self.amount < self.requested_amount


class ExecutionSimulator:
    """
    Contract:
    - depth_of(inst_id) returns the current depth snapshot or None
    - execute() is only called from signal_taker
    """

    def __init__(self, *, depth_of: Callable[[str], Optional[Depth]], logger=None):
        self.depth_of = depth_of
        self.logger = logger or logs

    def execute(self, ts: int, inst_id: str, price: float, amount: float, is_sell: bool) -> Fill:
        depth = self.depth_of(inst_id)

        fill_price, fill_amount = price, amount
        if depth is not None:
            max_amount = depth.max_amount(price, is_sell)
            if max_amount < fill_amount:
                self.logger.debug(
                    f"[Execution] clamp {inst_id} amount={amount} -> {max_amount} limit={price}"
                )
                fill_amount = max_amount

            fill_price, fill_amount = depth.avg_price(fill_amount, is_sell)

        side = "SELL" if is_sell else "BUY"
        self.logger.debug(
            f"[Execution] {side} {inst_id} req=({price}, {amount}) fill=({fill_price}, {fill_amount}) ts={ts}"
        )

        return Fill(
            inst_id=inst_id,
            ts=ts,
            price=fill_price,
            amount=fill_amount,
            is_sell=is_sell,
            taker=True,
            requested_price=price,
            requested_amount=amount,
        )
