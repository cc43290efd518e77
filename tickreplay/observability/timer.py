#!filepath: tickreplay/observability/timer.py
from contextlib import contextmanager
from time import perf_counter
from typing import Dict, Iterator


class Timer:
    """
    分段计时（秒）

      with timer.scope("load"):
          ...
      timer.timeline  # {"load": 1.23}

    同名 scope 多次进入时耗时累加。enabled=False 时什么都不记。
    """

    def __init__(self, enabled: bool = True):
        self.enabled = enabled
        self.timeline: Dict[str, float] = {}
        self._open: Dict[str, float] = {}

    def start(self, name: str) -> None:
        if self.enabled:
            self._open[name] = perf_counter()

    def end(self, name: str) -> float:
        started = self._open.pop(name, None)
        if started is None:
            return 0.0
        return perf_counter() - started

    @contextmanager
    def scope(self, name: str) -> Iterator[None]:
        self.start(name)
        try:
            yield
        finally:
            cost = self.end(name)
            if self.enabled:
                self.timeline[name] = self.timeline.get(name, 0.0) + cost
