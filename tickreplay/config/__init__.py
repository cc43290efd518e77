from tickreplay.config.app_config import AppConfig
from tickreplay.config.backtest_config import BacktestConfig, FeeConfig, StreamConfig
from tickreplay.config.log_config import LogConfig

__all__ = ["AppConfig", "BacktestConfig", "FeeConfig", "LogConfig", "StreamConfig"]
