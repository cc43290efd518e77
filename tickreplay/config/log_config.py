#!filepath: tickreplay/config/log_config.py
from typing import Literal

from pydantic import BaseModel

LogLevel = Literal["TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"]


class LogConfig(BaseModel):
    """loguru 文件 sink 配置（rotation / retention 直接透传给 loguru）"""

    dir: str = "logs"
    rotation: str = "1 day"
    retention: str = "30 days"
    level: LogLevel = "INFO"
