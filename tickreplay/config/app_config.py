#!filepath: tickreplay/config/app_config.py
import os

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field

from .backtest_config import BacktestConfig
from .log_config import LogConfig

ENV_DATA_ROOT = "TICKREPLAY_DATA_ROOT"
ENV_OUTPUT_DIR = "TICKREPLAY_OUTPUT_DIR"


def project_root() -> str:
    """
    返回项目根目录（基于当前文件位置推导）:
    tickreplay/config/app_config.py → tickreplay/config → tickreplay → project_root
    """
    return os.path.abspath(os.path.join(os.path.dirname(__file__), "../../"))


class AppConfig(BaseModel):
    log: LogConfig = Field(default_factory=LogConfig)
    backtest: BacktestConfig

    @classmethod
    def load(cls, path: str, env_path: str | None = None) -> "AppConfig":
        """
        加载 YAML 配置 + .env
        - .env 默认取 <project_root>/.env，不存在则忽略
        - TICKREPLAY_DATA_ROOT / TICKREPLAY_OUTPUT_DIR 覆盖 YAML 中的同名字段
        """
        # 1) 先加载 .env
        load_dotenv(env_path or os.path.join(project_root(), ".env"))

        if not os.path.exists(path):
            raise FileNotFoundError(f"Config file not found: {path}")

        # 2) 读取 YAML
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}

        # 3) env 覆盖
        bt = raw.setdefault("backtest", {})
        if os.getenv(ENV_DATA_ROOT):
            bt["data_root"] = os.getenv(ENV_DATA_ROOT)
        if os.getenv(ENV_OUTPUT_DIR):
            bt["output_dir"] = os.getenv(ENV_OUTPUT_DIR)

        return cls(**raw)
