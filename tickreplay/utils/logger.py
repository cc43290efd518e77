#!filepath: tickreplay/utils/logger.py
import os
import sys
import json
from functools import wraps
from time import perf_counter
from typing import Callable, Optional

from loguru import logger

_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level:<7} | {message}"


class Logging:
    """
    回测日志模块（loguru 封装）
    ---------------------------------------
    - import 时只挂 stderr，不碰文件系统
    - configure(LogConfig) 追加按天切割的文件 sink
    - reset() 回到仅 stderr（测试 / CLI 重复调用）
    - opt(depth=1)：日志里记录的是调用方位置，而不是本文件
    ---------------------------------------
    """

    def __init__(
        self,
        log_dir: Optional[str] = None,
        rotation: str = "1 day",
        retention: str = "30 days",
        log_level: str = "INFO",
    ):
        self.level = log_level
        self.rotation = rotation
        self.retention = retention
        self.log_dir: Optional[str] = None

        self.reset()
        if log_dir:
            self.add_file_sink(log_dir)

    # --------------------------------------------------
    # sinks
    # --------------------------------------------------
    def reset(self) -> None:
        logger.remove()
        logger.add(sys.stderr, level=self.level, format=_FORMAT)
        self.log_dir = None

    def add_file_sink(self, log_dir: str) -> None:
        os.makedirs(log_dir, exist_ok=True)
        logger.add(
            os.path.join(log_dir, "{time:YYYY-MM-DD}.log"),
            level=self.level,
            format=_FORMAT,
            rotation=self.rotation,
            retention=self.retention,
            enqueue=True,
            backtrace=True,
            diagnose=False,
        )
        self.log_dir = log_dir
        logger.info(f"[Logging] file sink -> {log_dir}")

    def configure(self, cfg) -> "Logging":
        self.level = cfg.level
        self.rotation = cfg.rotation
        self.retention = cfg.retention
        self.reset()
        self.add_file_sink(cfg.dir)
        return self

    # --------------------------------------------------
    # 日志方法
    # --------------------------------------------------
    def debug(self, msg: str, *args, **kwargs):
        logger.opt(depth=1).debug(msg, *args, **kwargs)

    def info(self, msg: str, *args, **kwargs):
        logger.opt(depth=1).info(msg, *args, **kwargs)

    def warning(self, msg: str, *args, **kwargs):
        logger.opt(depth=1).warning(msg, *args, **kwargs)

    def error(self, msg: str, *args, **kwargs):
        logger.opt(depth=1).error(msg, *args, **kwargs)

    def exception(self, msg: str, *args, **kwargs):
        logger.opt(depth=1).exception(msg, *args, **kwargs)

    # --------------------------------------------------
    # 装饰器：异常记录 + 可选入参 / 返回值 / 耗时
    # --------------------------------------------------
    def catch(
        self,
        msg: str = "Exception occurred",
        log_inputs: bool = False,
        log_outputs: bool = False,
        log_time: bool = True,
    ) -> Callable:

        def decorator(func: Callable):
            name = func.__qualname__

            @wraps(func)
            def wrapper(*args, **kwargs):
                if log_inputs:
                    shown = json.dumps(kwargs, ensure_ascii=False, default=str)
                    logger.debug(f"[Call] {name} args={args!r} kwargs={shown}")

                t0 = perf_counter()
                try:
                    out = func(*args, **kwargs)
                except Exception:
                    logger.exception(f"[Error] {name}: {msg}")
                    raise

                if log_outputs:
                    logger.debug(f"[Return] {name} -> {out!r}")
                if log_time:
                    logger.debug(f"[Time] {name} {perf_counter() - t0:.4f}s")
                return out

            return wrapper

        return decorator


def init_logging(cfg) -> Logging:
    """按 LogConfig 重新配置全局 logs（stderr + 文件）"""
    return logs.configure(cfg)


# 默认全局 logs
logs = Logging()
