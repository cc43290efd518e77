# tickreplay/core/events.py
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union

from tickreplay.core.market import Depth, KlineUnit, Ticker, Trade
from tickreplay.utils.errors import PayloadMismatchError


class EventKind(str, Enum):
    TICKER = "ticker"
    DEPTH = "depth"
    TRADE = "trade"
    KLINE = "kline"


Payload = Union[Ticker, Depth, Trade, KlineUnit]

_PAYLOAD_TYPES = {
    EventKind.TICKER: Ticker,
    EventKind.DEPTH: Depth,
    EventKind.TRADE: Trade,
    EventKind.KLINE: KlineUnit,
}


@dataclass(frozen=True, slots=True)
class MarketEvent:
    """
    MarketEvent (FINAL / FROZEN)

    Closed tagged union over the four record kinds.
      - inst_index 指向 InstrumentRegistry，不保存 instId 字符串
      - 消费方只按 kind 分发；payload 类型在构造时校验
      - liquidation 是 TRADE + TradeTag.LIQUIDATION，不是独立 kind
    """

    ts: int
    inst_index: int
    kind: EventKind
    payload: Payload

    def __post_init__(self) -> None:
        expected = _PAYLOAD_TYPES[self.kind]
        if not isinstance(self.payload, expected):
            raise PayloadMismatchError(
                f"[MarketEvent] kind={self.kind.value} expects {expected.__name__}, "
                f"got {type(self.payload).__name__} (inst_index={self.inst_index}, ts={self.ts})"
            )


def payload_type(kind: EventKind) -> type:
    return _PAYLOAD_TYPES[kind]
