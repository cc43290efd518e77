# tickreplay/data/parquet_loader.py
from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Set, Tuple

import pyarrow as pa
import pyarrow.compute as pc
import pyarrow.parquet as pq

from tickreplay.core.instrument import InstType, to_common_inst_id, to_exchange_symbol
from tickreplay.core.market import (
    Depth,
    DepthLevel,
    KlineUnit,
    Ticker,
    Trade,
    TradeTag,
    interval_to_bar,
)
from tickreplay.data.loader import DataKind, MarketDataLoader, ProgressFn
from tickreplay.utils.datetime_utils import MS_PER_DAY, DateTimeUtils
from tickreplay.utils.logger import logs

"""
ParquetMarketDataLoader (FINAL)

本地目录布局（按 UTC 日切分）：

  <root>/tickers/<exchange>/<inst_id>/<YYYY-MM-DD>.parquet
  <root>/depth/<exchange>/<inst_id>/<YYYY-MM-DD>.parquet
  <root>/trades/<exchange>/<inst_id>/<YYYY-MM-DD>.parquet
  <root>/liquidation/<exchange>/<inst_id>/<YYYY-MM-DD>.parquet
  <root>/klines/<exchange>/<bar>/<inst_id>/<YYYY-MM-DD>.parquet

可用时间范围 = [首个文件日期 00:00:00.000, 最后文件日期 23:59:59.999]

<inst_id> 目录也可以直接用交易所原生 symbol（如 okx 的 BTC-USDT-SWAP、
binance 币本位的 BTCUSD_PERP），只要能唯一映射回通用 instId。
同一 instId 两种目录都存在时，以通用 instId 目录为准。
"""

_DEPTH_LEVEL = pa.list_(pa.float64())

SCHEMAS: Dict[DataKind, pa.Schema] = {
    DataKind.TICKER: pa.schema(
        [
            ("ts", pa.int64()),
            ("price", pa.float64()),
            ("best_bid", pa.float64()),
            ("best_ask", pa.float64()),
        ]
    ),
    DataKind.DEPTH: pa.schema(
        [
            ("ts", pa.int64()),
            ("ask_price", _DEPTH_LEVEL),
            ("ask_amount", _DEPTH_LEVEL),
            ("ask_count", pa.list_(pa.int32())),
            ("bid_price", _DEPTH_LEVEL),
            ("bid_amount", _DEPTH_LEVEL),
            ("bid_count", pa.list_(pa.int32())),
        ]
    ),
    DataKind.TRADES: pa.schema(
        [
            ("ts", pa.int64()),
            ("price", pa.float64()),
            ("size", pa.float64()),
            ("side", pa.string()),
        ]
    ),
    DataKind.KLINE: pa.schema(
        [
            ("ts", pa.int64()),
            ("open", pa.float64()),
            ("close", pa.float64()),
            ("high", pa.float64()),
            ("low", pa.float64()),
            ("volume", pa.float64()),
        ]
    ),
}
SCHEMAS[DataKind.LIQUIDATION] = SCHEMAS[DataKind.TRADES]


# --------------------------------------------------
# row <-> record
# --------------------------------------------------
def _levels(prices, amounts, counts) -> Tuple[DepthLevel, ...]:
    return tuple(
        DepthLevel(price=float(p), amount=float(a), order_count=int(c))
        for p, a, c in zip(prices or (), amounts or (), counts or ())
    )


def _row_to_record(kind: DataKind, row: dict):
    if kind == DataKind.TICKER:
        return Ticker(ts=row["ts"], price=row["price"], best_bid=row["best_bid"], best_ask=row["best_ask"])

    if kind == DataKind.DEPTH:
        return Depth(
            ts=row["ts"],
            asks=_levels(row["ask_price"], row["ask_amount"], row["ask_count"]),
            bids=_levels(row["bid_price"], row["bid_amount"], row["bid_count"]),
        )

    if kind in (DataKind.TRADES, DataKind.LIQUIDATION):
        tag = TradeTag.LIQUIDATION if kind == DataKind.LIQUIDATION else TradeTag.NORMAL
        return Trade(ts=row["ts"], price=row["price"], size=row["size"], side=row["side"], tag=tag)

    if kind == DataKind.KLINE:
        return KlineUnit(
            ts=row["ts"],
            open=row["open"],
            close=row["close"],
            high=row["high"],
            low=row["low"],
            volume=row["volume"],
        )

    raise ValueError(f"unsupported data kind: {kind}")


def _record_to_row(kind: DataKind, rec) -> dict:
    if kind == DataKind.TICKER:
        return {"ts": rec.ts, "price": rec.price, "best_bid": rec.best_bid, "best_ask": rec.best_ask}

    if kind == DataKind.DEPTH:
        return {
            "ts": rec.ts,
            "ask_price": [lv.price for lv in rec.asks],
            "ask_amount": [lv.amount for lv in rec.asks],
            "ask_count": [lv.order_count for lv in rec.asks],
            "bid_price": [lv.price for lv in rec.bids],
            "bid_amount": [lv.amount for lv in rec.bids],
            "bid_count": [lv.order_count for lv in rec.bids],
        }

    if kind in (DataKind.TRADES, DataKind.LIQUIDATION):
        return {"ts": rec.ts, "price": rec.price, "size": rec.size, "side": rec.side}

    if kind == DataKind.KLINE:
        return {
            "ts": rec.ts,
            "open": rec.open,
            "close": rec.close,
            "high": rec.high,
            "low": rec.low,
            "volume": rec.volume,
        }

    raise ValueError(f"unsupported data kind: {kind}")


# --------------------------------------------------
# layout
# --------------------------------------------------
def kind_dir(root: Path, exchange: str, kind: DataKind, interval_sec: int = 0) -> Path:
    base = Path(root) / kind.value / exchange
    if kind == DataKind.KLINE:
        bar = interval_to_bar(interval_sec)
        if bar is None:
            raise ValueError(f"invalid kline interval: {interval_sec}")
        base = base / bar
    return base


def _dir_to_inst_id(exchange: str, name: str) -> Optional[str]:
    """目录名 -> 通用 instId；原生 symbol 映射不唯一（如 binance BTCUSDT）时返回 None"""
    if "_" in name and name == name.lower():
        return name

    candidates = {to_common_inst_id(exchange, itype, name) for itype in InstType}
    candidates = {c for c in candidates if c and "_" in c}
    if len(candidates) != 1:
        return None
    return candidates.pop()


def _parse_day(name: str) -> Optional[date]:
    try:
        return datetime.strptime(name[:10], "%Y-%m-%d").date()
    except ValueError:
        return None


class ParquetMarketDataLoader(MarketDataLoader):

    def __init__(self, root: str | Path, logger=None) -> None:
        self.root = Path(root)
        self.logger = logger or logs

    # --------------------------------------------------
    def available_instruments(self, exchange: str, kind: DataKind, interval_sec: int = 0) -> Set[str]:
        if kind == DataKind.KLINE and interval_to_bar(interval_sec) is None:
            return set()

        base = kind_dir(self.root, exchange, kind, interval_sec)
        if not base.is_dir():
            return set()

        found = set()
        for p in base.iterdir():
            if not p.is_dir():
                continue
            inst_id = _dir_to_inst_id(exchange, p.name)
            if inst_id is None:
                self.logger.debug(f"[ParquetLoader] ignore directory {p}")
                continue
            found.add(inst_id)
        return found

    def _inst_dir(self, exchange: str, kind: DataKind, inst_id: str, interval_sec: int) -> Path:
        base = kind_dir(self.root, exchange, kind, interval_sec)
        common = base / inst_id
        if common.is_dir():
            return common

        symbol = to_exchange_symbol(exchange, inst_id)
        if symbol is not None and (base / symbol).is_dir():
            return base / symbol
        return common

    def _day_files(self, exchange: str, kind: DataKind, inst_id: str, interval_sec: int) -> List[Tuple[date, Path]]:
        inst_dir = self._inst_dir(exchange, kind, inst_id, interval_sec)
        if not inst_dir.is_dir():
            return []

        files = []
        for p in inst_dir.iterdir():
            if not p.is_file() or p.suffix != ".parquet":
                continue
            d = _parse_day(p.name)
            if d is not None:
                files.append((d, p))
        files.sort()
        return files

    def time_range(
        self, exchange: str, kind: DataKind, inst_id: str, interval_sec: int = 0
    ) -> Optional[Tuple[int, int]]:
        if kind == DataKind.KLINE and interval_to_bar(interval_sec) is None:
            return None

        files = self._day_files(exchange, kind, inst_id, interval_sec)
        if not files:
            return None

        t0 = DateTimeUtils.to_ms(files[0][0])
        t1 = DateTimeUtils.to_ms(files[-1][0]) + MS_PER_DAY - 1
        return t0, t1

    def load(
        self,
        exchange: str,
        kind: DataKind,
        inst_id: str,
        t0: int,
        t1: int,
        interval_sec: int = 0,
        on_progress: Optional[ProgressFn] = None,
    ) -> List:
        inst_dir = self._inst_dir(exchange, kind, inst_id, interval_sec)
        days = list(DateTimeUtils.iter_days(t0, t1))
        n = len(days)

        records = []
        for i, d in enumerate(days, start=1):
            path = inst_dir / f"{d.isoformat()}.parquet"
            if path.exists():
                table = pq.read_table(path)
                mask = pc.and_(
                    pc.greater_equal(table["ts"], t0),
                    pc.less_equal(table["ts"], t1),
                )
                table = table.filter(mask).sort_by("ts")
                records.extend(_row_to_record(kind, row) for row in table.to_pylist())
            else:
                self.logger.debug(f"[ParquetLoader] missing {path}")

            if on_progress is not None:
                on_progress(i, n)

        return records


def write_parquet_records(
    root: str | Path,
    exchange: str,
    kind: DataKind,
    inst_id: str,
    records: Sequence,
    interval_sec: int = 0,
) -> List[Path]:
    """
    按 UTC 日期切分写入（同日文件覆盖）
    """
    by_day = defaultdict(list)
    for rec in records:
        by_day[DateTimeUtils.date_str(rec.ts)].append(_record_to_row(kind, rec))

    inst_dir = kind_dir(Path(root), exchange, kind, interval_sec) / inst_id
    inst_dir.mkdir(parents=True, exist_ok=True)

    written = []
    for day, rows in sorted(by_day.items()):
        rows.sort(key=lambda r: r["ts"])
        table = pa.Table.from_pylist(rows, schema=SCHEMAS[kind])
        path = inst_dir / f"{day}.parquet"
        pq.write_table(table, path)
        written.append(path)

    return written
