# tickreplay/core/instrument.py
from __future__ import annotations

from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from tickreplay.utils.errors import UserInputError

"""
Common instrument id (FINAL)

  现货        : btc_usdt
  U本位永续   : btc_usdt_swap
  币本位永续  : btc_usd_swap
"""


class InstType(str, Enum):
    SPOT = "spot"
    UM_SWAP = "umswap"
    CM_SWAP = "cmswap"


class Exchange(str, Enum):
    OKX = "okx"
    BINANCE = "binance"


def inst_type(inst_id: str) -> InstType:
    if inst_id.endswith("_usd_swap"):
        return InstType.CM_SWAP
    if inst_id.endswith("_usdt_swap"):
        return InstType.UM_SWAP
    return InstType.SPOT


def is_usdt_contract(inst_id: str) -> bool:
    return inst_id.endswith("_usdt_swap")


def margin_ccy(inst_id: str) -> str:
    if is_usdt_contract(inst_id):
        return "usdt"
    return inst_id.split("_")[0]


def inst_ccys(inst_id: str) -> Tuple[str, str]:
    parts = inst_id.split("_")
    if len(parts) < 2:
        raise UserInputError(f"invalid instrument id: {inst_id}")
    return parts[0], parts[1]


# --------------------------------------------------
# exchange symbol <-> common instId
# --------------------------------------------------
def to_common_inst_id(exchange: str, itype: InstType, symbol: str) -> Optional[str]:
    if exchange == Exchange.OKX.value:
        return symbol.replace("-", "_").lower()

    if exchange == Exchange.BINANCE.value:
        if itype == InstType.SPOT:
            # 仅支持 usdt 交易对
            if not symbol.endswith("USDT"):
                return None
            return symbol[: -len("USDT")].lower() + "_usdt"
        if itype == InstType.UM_SWAP:
            if not symbol.endswith("USDT"):
                return None
            return symbol[: -len("USDT")].lower() + "_usdt_swap"
        if itype == InstType.CM_SWAP:
            if not symbol.endswith("USD_PERP"):
                return None
            return symbol[: -len("USD_PERP")].lower() + "_usd_swap"

    return None


def to_exchange_symbol(exchange: str, inst_id: str) -> Optional[str]:
    if exchange == Exchange.OKX.value:
        return inst_id.replace("_", "-").upper()

    if exchange == Exchange.BINANCE.value:
        if inst_id.endswith("_usdt_swap"):
            return inst_id[: -len("_usdt_swap")].upper() + "USDT"
        if inst_id.endswith("_usd_swap"):
            return inst_id[: -len("_usd_swap")].upper() + "USD_PERP"
        if inst_id.endswith("_usdt"):
            return inst_id.replace("_", "").upper()

    return None


class InstrumentRegistry:
    """
    instId <-> dense index，加载前构建一次，之后只读
    """

    def __init__(self, inst_ids: Sequence[str]):
        if not inst_ids:
            raise UserInputError("[InstrumentRegistry] empty instrument list")

        self._ids: List[str] = list(inst_ids)
        self._index: Dict[str, int] = {}
        for i, inst_id in enumerate(self._ids):
            if inst_id in self._index:
                raise UserInputError(f"[InstrumentRegistry] duplicate instrument: {inst_id}")
            self._index[inst_id] = i

    def index_of(self, inst_id: str) -> int:
        return self._index[inst_id]

    def inst_id(self, index: int) -> str:
        return self._ids[index]

    @property
    def inst_ids(self) -> List[str]:
        return list(self._ids)

    def __contains__(self, inst_id: str) -> bool:
        return inst_id in self._index

    def __len__(self) -> int:
        return len(self._ids)

    def __iter__(self):
        return iter(self._ids)
