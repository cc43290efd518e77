#!filepath: tests/observability/test_progress_timer.py
import pytest

from tickreplay.observability.progress import ProgressReporter
from tickreplay.observability.timer import Timer


def test_progress_no_crash():
    p = ProgressReporter(enabled=True, step_pct=25)
    p.start("load", 4, "files")
    for _ in range(4):
        p.increment(1)
    p.update("load", 4, 4, "files")
    p.done()
    p.failed("load")
    assert p.current == pytest.approx(4)


def test_progress_disabled_still_counts():
    p = ProgressReporter(enabled=False)
    p.start("Task", 10)
    p.increment(0.5)
    p.increment(2.5)
    p.done("Task")
    assert p.current == pytest.approx(3.0)
    assert p.total == 10


def test_timer_scope_records():
    t = Timer()
    with t.scope("work"):
        sum(range(1000))
    assert "work" in t.timeline
    assert t.timeline["work"] >= 0.0


def test_timer_end_unknown_and_disabled():
    assert Timer().end("never-started") == 0.0
    t = Timer(enabled=False)
    with t.scope("x"):
        pass
    assert t.timeline == {}
