# tickreplay/ledger/valuation.py
from __future__ import annotations

from typing import Iterable, Mapping, Optional

from tickreplay.ledger.contract_position import ContractPosition
from tickreplay.utils.errors import UserInputError


def exchange_to_ccy(src: str, dst: str, amount: float, prices: Mapping[str, float]) -> float:
    """
    用最新价格把 src 折算成 dst：
      - "src_dst" 存在 → 乘
      - "dst_src" 存在 → 除
      - 都不存在 → 0（静默，不报错）
    """
    if src == dst:
        return amount

    px = prices.get(f"{src}_{dst}")
    if px is not None:
        return amount * px

    px = prices.get(f"{dst}_{src}")
    if px:
        return amount / px

    return 0.0


def resolve_baseline_ccy(
    initial_balance: Mapping[str, float],
    baseline_ccy: Optional[str] = None,
) -> Optional[str]:
    """
    基准币种：
      - 显式指定 → 直接使用
      - 否则初始资产必须只有一个币种
      - 初始资产为空 → None（NAV 恒为 1）
    """
    if baseline_ccy:
        return baseline_ccy
    if not initial_balance:
        return None
    if len(initial_balance) > 1:
        raise UserInputError(
            f"initial balance holds {sorted(initial_balance)}; "
            "set baseline_ccy explicitly for a multi-currency start"
        )
    return next(iter(initial_balance))


def nav(
    initial_balance: Mapping[str, float],
    balances: Mapping[str, float],
    positions: Iterable[ContractPosition],
    prices: Mapping[str, float],
    baseline_ccy: Optional[str] = None,
) -> float:
    """
    单位净值 = (余额折算 + 浮盈折算) / 初始基准资产
    """
    base_ccy = resolve_baseline_ccy(initial_balance, baseline_ccy)
    if base_ccy is None:
        return 1.0

    base_amount = initial_balance.get(base_ccy, 0.0)
    if base_amount == 0:
        return 1.0

    total = 0.0
    for ccy, amount in balances.items():
        total += exchange_to_ccy(ccy, base_ccy, amount, prices)

    for pos in positions:
        total += exchange_to_ccy(pos.margin_ccy, base_ccy, pos.unrealized_profit, prices)

    return total / base_amount
