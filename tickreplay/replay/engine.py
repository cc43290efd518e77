# tickreplay/replay/engine.py
from __future__ import annotations

from dataclasses import asdict
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Dict, Iterator, List, Optional

from tickreplay.backtest.result import BacktestResult
from tickreplay.config.backtest_config import FeeConfig, StreamConfig
from tickreplay.core.events import EventKind, MarketEvent
from tickreplay.core.instrument import InstType, inst_ccys, inst_type, is_usdt_contract, margin_ccy
from tickreplay.core.market import Depth, TradeTag
from tickreplay.execution.simulator import ExecutionSimulator, Fill
from tickreplay.ledger.contract_position import ContractPosition
from tickreplay.ledger.spot_account import SpotAccount
from tickreplay.ledger.valuation import nav, resolve_baseline_ccy
from tickreplay.observability.progress import ProgressReporter
from tickreplay.observability.timer import Timer
from tickreplay.replay.context import ReplayContext
from tickreplay.replay.sequencer import EventStream
from tickreplay.utils.datetime_utils import DateTimeUtils
from tickreplay.utils.errors import ReentrantReplayError
from tickreplay.utils.logger import logs
from tickreplay.visual.data_group import DataGroup, PointTag, VisualPoint

if TYPE_CHECKING:
    from tickreplay.strategy.base import Strategy

"""
ReplayEngine (FINAL / FROZEN)

单线程、同步、确定性的一次前向遍历：

  for event in stream:
      1. depth 事件 → 替换盘口快照
         未启用 depth 时，ticker 事件合成一档盘口
      2. 事件类型 == price source → 刷新最新价 + 仓位浮盈
      3. 分发给 strategy 对应回调（liquidation 单独回调，且不作为价格源）
      4. 可视化数据刷新（NAV 采样）

price source 启动时选定一次：kline > ticker > trade > depth

状态（余额 / 盘口 / 价格 / 仓位）只在本循环内按事件顺序修改。
strategy 只能通过 ReplayContext 读状态、发 signal_taker。
"""

NAV_SERIES = "nav"

_PRICE_PRIORITY = (EventKind.KLINE, EventKind.TICKER, EventKind.TRADE, EventKind.DEPTH)


def select_price_source(streams: StreamConfig) -> Optional[EventKind]:
    enabled = {
        EventKind.KLINE: streams.kline,
        EventKind.TICKER: streams.ticker,
        EventKind.TRADE: streams.trades,
        EventKind.DEPTH: streams.depth,
    }
    for kind in _PRICE_PRIORITY:
        if enabled[kind]:
            return kind
    return None


def event_price(event: MarketEvent) -> Optional[float]:
    p = event.payload
    if event.kind == EventKind.KLINE:
        return p.close
    if event.kind == EventKind.TICKER:
        return p.price
    if event.kind == EventKind.TRADE:
        return p.price if p.tag == TradeTag.NORMAL else None
    if event.kind == EventKind.DEPTH:
        return p.mid
    return None


class ReplayEngine:

    def __init__(
        self,
        fees: Optional[FeeConfig] = None,
        charts_interval_ms: int = 60_000,
        logger=None,
        visual_root: Optional[str] = None,
        baseline_ccy: Optional[str] = None,
        progress: Optional[ProgressReporter] = None,
    ) -> None:
        self.fees = fees or FeeConfig()
        self.charts_interval_ms = charts_interval_ms
        self.logger = logger or logs
        self.visual_root = visual_root
        self.baseline_ccy = baseline_ccy
        self.progress = progress or ProgressReporter(logger=self.logger)
        self.timer = Timer()

        # ---------- 可变状态（只在 replay 循环内修改） ----------
        self.account = SpotAccount(self.fees.spot_maker, self.fees.spot_taker)
        self.positions: Dict[str, ContractPosition] = {}
        self.prices: Dict[str, float] = {}
        self.depths: Dict[str, Depth] = {}
        self.now: int = 0

        self.initial_balance: Dict[str, float] = {}
        self.simulator = ExecutionSimulator(depth_of=self.depths.get, logger=self.logger)
        self.data_group = DataGroup(charts_interval_ms)

        self.n_events = 0
        self.n_signals = 0
        self.fills: List[Fill] = []
        self.nav_ts: List[int] = []
        self.nav_values: List[float] = []

        self._ctx = ReplayContext(self)
        self._running = False
        self._price_source: Optional[EventKind] = None
        self._synth_depth = False
        self._next_refresh = 0

    # --------------------------------------------------
    # setup
    # --------------------------------------------------
    def set_balance(self, ccy: str, amount: float) -> None:
        self.account.set(ccy, amount)

    @property
    def context(self) -> ReplayContext:
        return self._ctx

    # --------------------------------------------------
    # NAV
    # --------------------------------------------------
    def nav(self) -> float:
        return nav(
            self.initial_balance,
            self.account.snapshot(),
            self.positions.values(),
            self.prices,
            self.baseline_ccy,
        )

    # --------------------------------------------------
    # main loop
    # --------------------------------------------------
    def replay(self, strategy: "Strategy", stream: EventStream) -> Iterator[MarketEvent]:
        """
        逐个处理事件，每处理完一个就 yield 出来。
        调用方可以随时停止迭代，已消费事件对应的账本状态保持有效。
        """
        if self._running:
            raise ReentrantReplayError("[Replay] replay() called while a replay is already running")

        self._running = True
        try:
            self._begin(strategy, stream)
            for event in stream.events:
                self._process(strategy, stream, event)
                yield event
        finally:
            self._running = False

    def run(self, strategy: "Strategy", stream: EventStream, name: Optional[str] = None) -> BacktestResult:
        self.progress.start("replay", len(stream), unit="events")

        with self.timer.scope("replay"):
            for _ in self.replay(strategy, stream):
                self.progress.increment(1)

        self.progress.done()
        self._finalize(strategy, stream)

        self.logger.info(
            f"[Replay] {strategy.name}: events={self.n_events} signals={self.n_signals} "
            f"fills={len(self.fills)} nav={self.nav():.4f} "
            f"cost={self.timer.timeline.get('replay', 0.0):.2f}s"
        )
        return self.result(strategy, stream, name)

    def _begin(self, strategy: "Strategy", stream: EventStream) -> None:
        # 记录初始资产，确定基准币种（多币种且未指定 → UserInputError）
        self.initial_balance = self.account.snapshot()
        self.baseline_ccy = resolve_baseline_ccy(self.initial_balance, self.baseline_ccy)

        self._price_source = select_price_source(stream.streams)
        self._synth_depth = stream.streams.ticker and not stream.streams.depth

        # 第一次刷新在首个事件所在刷新周期之后
        self._next_refresh = (
            DateTimeUtils.align_time(stream.events[0].ts, self.charts_interval_ms) if stream.events else 0
        )

        self.logger.info(
            f"[Replay] start {strategy.name}: {len(stream)} events, "
            f"price source={self._price_source.value if self._price_source else None}, "
            f"baseline={self.baseline_ccy}"
        )

        strategy.on_visual_init(self.charts_interval_ms, self._ctx)

    def _process(self, strategy: "Strategy", stream: EventStream, event: MarketEvent) -> None:
        self.now = event.ts
        inst_id = stream.registry.inst_id(event.inst_index)
        kind = event.kind
        payload = event.payload

        # 1) 盘口
        if kind == EventKind.DEPTH:
            self.depths[inst_id] = payload
        elif kind == EventKind.TICKER and self._synth_depth:
            self.depths[inst_id] = Depth.from_ticker(payload)

        # 2) 价格 / 浮盈
        if kind == self._price_source:
            price = event_price(event)
            if price is not None:
                self._on_latest_price(inst_id, price)

        # 3) 驱动策略
        if kind == EventKind.TICKER:
            strategy.on_ticker(inst_id, payload, self._ctx)
        elif kind == EventKind.DEPTH:
            strategy.on_depth(inst_id, payload, self._ctx)
        elif kind == EventKind.TRADE:
            if payload.tag == TradeTag.LIQUIDATION:
                strategy.on_liquidation(inst_id, payload, self._ctx)
            else:
                strategy.on_trade(inst_id, payload, self._ctx)
        elif kind == EventKind.KLINE:
            strategy.on_kline_unit(inst_id, payload, self._ctx)

        self.n_events += 1

        # 4) 可视化
        self._refresh_visual(strategy)

    def _on_latest_price(self, inst_id: str, price: float) -> None:
        self.prices[inst_id] = price
        pos = self.positions.get(inst_id)
        if pos is not None:
            pos.update(price)

    # --------------------------------------------------
    # signal
    # --------------------------------------------------
    def signal_taker(self, inst_id: str, price: float, amount: float, is_sell: bool) -> Optional[Fill]:
        self.n_signals += 1

        if amount <= 0:
            self.logger.warning(f"[Replay] ignore signal with non-positive amount: {inst_id} amount={amount}")
            return None

        fill = self.simulator.execute(self.now, inst_id, price, amount, is_sell)
        if fill.amount <= 0 or fill.price <= 0:
            self.logger.warning(
                f"[Replay] skip empty fill: {inst_id} req=({price}, {amount}) "
                f"fill=({fill.price}, {fill.amount}) ts={DateTimeUtils.format(self.now)}"
            )
            return None

        if inst_type(inst_id) == InstType.SPOT:
            base, quote = inst_ccys(inst_id)
            if is_sell:
                self.account.sell(base, quote, fill.price, fill.amount, fill.taker)
            else:
                self.account.buy(base, quote, fill.price, fill.amount, fill.taker)
        else:
            pos = self._position(inst_id)
            res = pos.deal(fill.price, fill.signed_amount, fill.taker, self.now)
            # 合约盈亏直接记到保证金币种
            self.account.add(pos.margin_ccy, res.profit - res.fee)

        self.fills.append(fill)
        self.data_group.record_point(
            inst_id,
            VisualPoint(ts=self.now, value=fill.price, tag=PointTag.SELL if is_sell else PointTag.BUY),
        )
        return fill

    def _position(self, inst_id: str) -> ContractPosition:
        pos = self.positions.get(inst_id)
        if pos is None:
            pos = ContractPosition(
                fee_rate_maker=self.fees.contract_maker,
                fee_rate_taker=self.fees.contract_taker,
                is_usdt=is_usdt_contract(inst_id),
                margin_ccy=margin_ccy(inst_id),
                on_clear=lambda p, inst_id=inst_id: self.logger.debug(
                    f"[Replay] {inst_id} cleared #{p.clear_count} profit={p.last_position_profit():.6f}"
                ),
            )
            self.positions[inst_id] = pos
        return pos

    # --------------------------------------------------
    # visual
    # --------------------------------------------------
    def _refresh_visual(self, strategy: "Strategy") -> None:
        if self.now <= self._next_refresh:
            return

        strategy.on_visual_refresh(self.data_group, self._ctx)
        self._sample_nav()
        self._next_refresh = (
            DateTimeUtils.align_time(self.now, self.charts_interval_ms) + self.charts_interval_ms
        )

    def _sample_nav(self) -> None:
        value = self.nav()
        self.nav_ts.append(self.now)
        self.nav_values.append(value)
        self.data_group.record_value(NAV_SERIES, self.now, value)

    def _finalize(self, strategy: "Strategy", stream: EventStream) -> None:
        # 最后一个事件的 NAV 一定入曲线
        if not self.nav_ts or self.nav_ts[-1] != self.now:
            self._sample_nav()

        t0, t1 = stream.t0, stream.t1
        self.data_group.save_extra_info(f"start: {DateTimeUtils.format(t0)}")
        self.data_group.save_extra_info(f"end: {DateTimeUtils.format(t1)}")
        self.data_group.save_extra_info(f"duration: {DateTimeUtils.duration_str(t1 - t0)}")
        self.data_group.save_extra_info(f"nav: {self.nav():.4f}")

        if not self.visual_root:
            return

        stamp = datetime.now().strftime("%Y-%m-%d.%H-%M-%S")
        root_dir = Path(self.visual_root) / strategy.name / stamp
        strategy.on_visual_save(str(root_dir), self._ctx)
        out = self.data_group.save_to_dir(root_dir / "default")
        self.logger.info(f"[Replay] visual data saved: {out}")

    # --------------------------------------------------
    # result
    # --------------------------------------------------
    def position_summary(self, inst_id: str) -> Dict[str, float]:
        pos = self.positions[inst_id]
        return {
            "position": pos.position,
            "avg_open_price": pos.avg_open_price,
            "realized_profit": pos.realized_profit,
            "unrealized_profit": pos.unrealized_profit,
            "total_fee": pos.total_fee,
            "total_profit": pos.total_profit(),
            "total_volume": pos.total_volume,
            "clear_count": pos.clear_count,
        }

    def result(self, strategy: "Strategy", stream: EventStream, name: Optional[str] = None) -> BacktestResult:
        return BacktestResult(
            name=name or strategy.name,
            strategy=strategy.name,
            exchange=stream.exchange,
            inst_ids=stream.registry.inst_ids,
            start_ts=stream.t0,
            end_ts=stream.t1,
            n_events=self.n_events,
            n_signals=self.n_signals,
            n_fills=len(self.fills),
            final_nav=self.nav(),
            nav_values=list(self.nav_values),
            timestamps=list(self.nav_ts),
            final_balances=self.account.snapshot(),
            positions={inst_id: self.position_summary(inst_id) for inst_id in self.positions},
            fills=[asdict(f) for f in self.fills],
        )
