from tickreplay.strategy.base import Strategy
from tickreplay.strategy.factory import StrategyFactory
from tickreplay.strategy.noop import NoopStrategy
from tickreplay.strategy.threshold import ThresholdStrategy

__all__ = ["NoopStrategy", "Strategy", "StrategyFactory", "ThresholdStrategy"]
