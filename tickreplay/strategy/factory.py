# tickreplay/strategy/factory.py
from __future__ import annotations

from typing import Dict, Type

from tickreplay.strategy.base import Strategy
from tickreplay.strategy.noop import NoopStrategy
from tickreplay.strategy.threshold import ThresholdStrategy


class StrategyFactory:
    """
    StrategyFactory (FINAL / FROZEN)

    注册式 Strategy 构造器

    所有 strategy 必须显式登记在 _REGISTRY 中，
    不做动态发现，新增 strategy 必须改这里。
    """

    _REGISTRY: Dict[str, Type[Strategy]] = {
        "noop": NoopStrategy,
        "threshold": ThresholdStrategy,
    }

    # --------------------------------------------------
    @classmethod
    def create(cls, cfg: Dict) -> Strategy:
        """
        cfg:
          backtest.strategy（完整 dict）

        冻结规则：
          - cfg["type"] 必须存在
          - 未注册 type -> crash
        """
        if "type" not in cfg:
            raise KeyError("[StrategyFactory] missing 'type' in strategy config")

        typ = cfg["type"]

        if typ not in cls._REGISTRY:
            raise ValueError(f"[StrategyFactory] unknown strategy type: {typ}")

        # type 字段不传给 Strategy 本体
        params = {k: v for k, v in cfg.items() if k != "type"}

        return cls._REGISTRY[typ](**params)

    @classmethod
    def types(cls):
        return sorted(cls._REGISTRY)
