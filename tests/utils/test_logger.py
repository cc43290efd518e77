#!filepath: tests/utils/test_logger.py
import pytest

from tickreplay.config.log_config import LogConfig
from tickreplay.utils.logger import Logging, init_logging, logs


def test_logging_no_crash():
    log = Logging(log_level="DEBUG")
    log.debug("debug")
    log.info("info")
    log.warning("warning")
    log.error("error")


def test_catch_reraises():
    @logs.catch(msg="boom", log_time=False)
    def bad():
        raise ValueError("x")

    with pytest.raises(ValueError):
        bad()


def test_catch_passes_result():
    @logs.catch(log_inputs=True, log_outputs=True)
    def add(a, b=0):
        return a + b

    assert add(1, b=2) == 3


def test_init_logging_adds_file_sink(tmp_path):
    out = init_logging(LogConfig(dir=str(tmp_path / "logs"), level="INFO"))
    out.info("hello")
    assert out is logs
    assert (tmp_path / "logs").is_dir()
    # 恢复为仅 stderr
    logs.reset()
