from tickreplay.strategy.base import Strategy


class NoopStrategy(Strategy):
    """只看行情、不交易（用于检查数据 / 基准 NAV）"""

    name = "noop"
