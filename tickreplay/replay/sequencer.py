# tickreplay/replay/sequencer.py
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterator, List, Optional, Sequence, Tuple

from tickreplay.config.backtest_config import StreamConfig
from tickreplay.core.events import EventKind, MarketEvent, payload_type
from tickreplay.core.instrument import InstrumentRegistry
from tickreplay.core.market import Trade, TradeTag, interval_to_bar
from tickreplay.data.loader import DataKind, MarketDataLoader
from tickreplay.observability.progress import ProgressReporter
from tickreplay.utils.datetime_utils import DateTimeUtils
from tickreplay.utils.errors import DataCoverageError, NoDataLoadedError
from tickreplay.utils.logger import logs


@dataclass(frozen=True)
class EventStream:
    """
    EventStream (FINAL / FROZEN)

    一次性构建、只读的全局事件序列：
      - events 按 ts 非降序（同 ts 之间的先后不做保证）
      - registry 负责 inst_index <-> instId
      - streams 记录本次启用了哪些数据流（engine 用来选 price source）
    """

    exchange: str
    t0: int
    t1: int
    events: Tuple[MarketEvent, ...]
    registry: InstrumentRegistry
    streams: StreamConfig

    def __len__(self) -> int:
        return len(self.events)

    def __iter__(self) -> Iterator[MarketEvent]:
        return iter(self.events)


@dataclass(frozen=True, slots=True)
class _Request:
    data_kind: DataKind
    event_kind: EventKind
    interval_sec: int = 0
    weight: int = 1
    coverage_checked: bool = True


def _requests(streams: StreamConfig) -> List[_Request]:
    reqs: List[_Request] = []
    if streams.ticker:
        reqs.append(_Request(DataKind.TICKER, EventKind.TICKER))
    if streams.depth:
        # depth 解码最重，进度权重 x3
        reqs.append(_Request(DataKind.DEPTH, EventKind.DEPTH, weight=3))
    if streams.trades:
        reqs.append(_Request(DataKind.TRADES, EventKind.TRADE))
    if streams.liquidations:
        reqs.append(_Request(DataKind.LIQUIDATION, EventKind.TRADE, coverage_checked=False))
    if streams.kline:
        reqs.append(_Request(DataKind.KLINE, EventKind.KLINE, interval_sec=streams.kline_interval_sec))
    return reqs


class EventSequencer:
    """
    EventSequencer (FINAL / FROZEN)

    职责：
      1. 覆盖检查：每个 instId × 每种数据（liquidation 除外）必须完整覆盖 [t0, t1]
      2. 加载：所有记录打上 inst_index，平铺成一个 list
      3. 按 ts 稳定排序

    覆盖检查全部通过之后才开始加载；任何一项失败 → DataCoverageError，整个回测不启动。
    """

    def __init__(
        self,
        loader: MarketDataLoader,
        logger=None,
        progress: Optional[ProgressReporter] = None,
    ) -> None:
        self.loader = loader
        self.logger = logger or logs
        self.progress = progress or ProgressReporter(logger=self.logger)
        # 上一次 load 中因类型不符被丢弃的记录数
        self.skipped = 0

    # --------------------------------------------------
    # coverage
    # --------------------------------------------------
    def check_coverage(
        self,
        exchange: str,
        inst_ids: Sequence[str],
        t0: int,
        t1: int,
        streams: StreamConfig,
    ) -> None:
        for req in _requests(streams):
            if not req.coverage_checked:
                continue

            kind = req.data_kind.value
            if req.data_kind == DataKind.KLINE and interval_to_bar(req.interval_sec) is None:
                raise DataCoverageError(exchange, ",".join(inst_ids), kind, "invalid kline interval")

            available = self.loader.available_instruments(exchange, req.data_kind, req.interval_sec)
            for inst_id in inst_ids:
                if inst_id not in available:
                    raise DataCoverageError(exchange, inst_id, kind, "no data")

                rng = self.loader.time_range(exchange, req.data_kind, inst_id, req.interval_sec)
                if rng is None:
                    raise DataCoverageError(exchange, inst_id, kind, "time range unavailable")

                lo, hi = rng
                if lo > t0 or hi < t1:
                    self.logger.error(
                        f"[Sequencer] {kind} {inst_id}@{exchange} covers "
                        f"[{DateTimeUtils.format(lo)}, {DateTimeUtils.format(hi)}], requested "
                        f"[{DateTimeUtils.format(t0)}, {DateTimeUtils.format(t1)}]"
                    )
                    raise DataCoverageError(exchange, inst_id, kind, "not enough data")

        self.logger.info(f"[Sequencer] coverage ok: {len(inst_ids)} inst(s) on {exchange}")

    # --------------------------------------------------
    # load
    # --------------------------------------------------
    def load(
        self,
        exchange: str,
        inst_ids: Sequence[str],
        t0: int,
        t1: int,
        streams: StreamConfig,
    ) -> EventStream:
        registry = InstrumentRegistry(inst_ids)
        reqs = _requests(streams)

        self.check_coverage(exchange, registry.inst_ids, t0, t1, streams)

        total = sum(r.weight for r in reqs) * len(registry) + 1
        self.progress.start("load market data", total, unit="steps")

        self.skipped = 0
        events: List[MarketEvent] = []
        try:
            for req in reqs:
                for inst_id in registry:
                    n_before = len(events)
                    self._load_one(exchange, registry, inst_id, req, t0, t1, events)
                    self.logger.debug(
                        f"[Sequencer] {req.data_kind.value} {inst_id}: {len(events) - n_before} records"
                    )

            # list.sort 稳定：同 ts 保持加载顺序
            events.sort(key=lambda e: e.ts)
            self.progress.increment(1)
        except Exception:
            self.progress.failed()
            raise

        if not events:
            self.progress.failed()
            raise NoDataLoadedError(
                f"[Sequencer] no events loaded for {registry.inst_ids}@{exchange} "
                f"in [{DateTimeUtils.format(t0)}, {DateTimeUtils.format(t1)}]"
            )

        if self.skipped:
            self.logger.error(f"[Sequencer] skipped {self.skipped} record(s) with mismatched payload type")

        self.progress.done()
        self.logger.info(
            f"[Sequencer] loaded {len(events)} events "
            f"[{DateTimeUtils.format(events[0].ts)} -> {DateTimeUtils.format(events[-1].ts)}]"
        )

        return EventStream(
            exchange=exchange,
            t0=t0,
            t1=t1,
            events=tuple(events),
            registry=registry,
            streams=streams,
        )

    def _load_one(
        self,
        exchange: str,
        registry: InstrumentRegistry,
        inst_id: str,
        req: _Request,
        t0: int,
        t1: int,
        out: List[MarketEvent],
    ) -> None:
        done = 0.0

        def on_progress(i: int, n: int) -> None:
            nonlocal done
            frac = i / n if n else 1.0
            self.progress.increment(req.weight * (frac - done))
            done = frac

        records = self.loader.load(
            exchange, req.data_kind, inst_id, t0, t1, req.interval_sec, on_progress
        )
        if done < 1.0:
            self.progress.increment(req.weight * (1.0 - done))

        index = registry.index_of(inst_id)
        tag = TradeTag.LIQUIDATION if req.data_kind == DataKind.LIQUIDATION else TradeTag.NORMAL

        expected = payload_type(req.event_kind)

        for rec in records:
            if not isinstance(rec, expected):
                self.skipped += 1
                self.logger.error(
                    f"[Sequencer] {req.data_kind.value} {inst_id}@{exchange}: expected "
                    f"{expected.__name__}, got {type(rec).__name__}, record skipped"
                )
                continue
            if isinstance(rec, Trade) and rec.tag != tag:
                rec = replace(rec, tag=tag)
            out.append(MarketEvent(ts=rec.ts, inst_index=index, kind=req.event_kind, payload=rec))
