#!filepath: tickreplay/observability/progress.py
from __future__ import annotations

from time import perf_counter

from tickreplay.utils.logger import logs


class ProgressReporter:
    """
    最轻量进度系统（不会影响 pytest、CI，不依赖 Rich/TQDM）

    - 支持小数增量（loader 按文件回调 1/n）
    - 只在跨越 step_pct 时打日志，避免热路径刷屏
    """

    def __init__(self, enabled: bool = True, step_pct: float = 10.0, logger=None):
        self.enabled = enabled
        self.step_pct = step_pct
        self.logger = logger or logs

        self.task = ""
        self.total = 0.0
        self.current = 0.0
        self._next_pct = step_pct
        self._start = 0.0

    def start(self, task: str, total: float, unit: str = ""):
        self.task = task
        self.total = float(total)
        self.current = 0.0
        self._next_pct = self.step_pct
        self._start = perf_counter()
        if not self.enabled:
            return
        self.logger.info(f"[Progress] {task} started total={total:g} {unit}".rstrip())

    def increment(self, value: float = 1.0):
        self.current += value
        if not self.enabled or self.total <= 0:
            return

        pct = self.current / self.total * 100.0
        if pct + 1e-9 < self._next_pct:
            return

        while self._next_pct <= pct + 1e-9:
            self._next_pct += self.step_pct

        elapsed = perf_counter() - self._start
        self.logger.info(
            f"[Progress] {self.task}: {min(pct, 100.0):.0f}% | elapsed={elapsed:.2f}s"
        )

    def update(self, task: str, current: int, total: int, unit: str = ""):
        if not self.enabled:
            return
        self.logger.info(f"[Progress] {task}: {current}/{total} {unit}".rstrip())

    def done(self, task: str | None = None):
        if not self.enabled:
            return
        elapsed = perf_counter() - self._start
        self.logger.info(f"[Progress] {task or self.task} done in {elapsed:.2f}s")

    def failed(self, task: str | None = None):
        if not self.enabled:
            return
        self.logger.error(f"[Progress] {task or self.task} failed")
