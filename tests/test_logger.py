import logging
from pathlib import Path

import pytest

from dmr_monitor.logger.logger import DedupFilter, Logger


def _record(name: str, msg: str, level: int = logging.INFO) -> logging.LogRecord:
    return logging.LogRecord(name, level, __file__, 1, msg, None, None)


def test_dedup_filter_drops_repeats_without_cooldown():
    f = DedupFilter()
    assert f.filter(_record("a", "resync")) is True
    assert f.filter(_record("a", "resync")) is False
    assert f.filter(_record("a", "other")) is True
    assert f.filter(_record("a", "resync")) is True


def test_dedup_filter_is_per_logger_and_level():
    f = DedupFilter()
    assert f.filter(_record("a", "x")) is True
    assert f.filter(_record("b", "x")) is True
    assert f.filter(_record("a", "x", logging.ERROR)) is True


def test_dedup_filter_cooldown(monkeypatch):
    import time as _time

    t = {"now": 1000.0}
    monkeypatch.setattr(_time, "time", lambda: t["now"])

    f = DedupFilter(cooldown_s=2.0)
    assert f.filter(_record("a", "x")) is True
    t["now"] += 1.0
    assert f.filter(_record("a", "x")) is False
    t["now"] += 5.0
    assert f.filter(_record("a", "x")) is True


def test_logger_writes_rotating_file(tmp_path: Path):
    logger = Logger("test.log", logger_name="dmr_monitor_test_file", log_dir=str(tmp_path), level="DEBUG")
    try:
        logging.getLogger("dmr_monitor_test_file").info("session opened on %s", "COM3")
        logging.getLogger("dmr_monitor_test_file.child").warning("child message")
    finally:
        logger.close()

    text = (tmp_path / "test.log").read_text(encoding="utf-8")
    assert "session opened on COM3" in text
    assert "child message" in text
    assert " - INFO - " in text


def test_logger_without_file_or_console_is_silent(tmp_path: Path):
    logger = Logger("unused.log", logger_name="dmr_monitor_test_null", log_dir=None)
    try:
        logging.getLogger("dmr_monitor_test_null").error("nowhere")
    finally:
        logger.close()
    assert not (tmp_path / "unused.log").exists()


def test_logger_rejects_unknown_level(tmp_path: Path):
    with pytest.raises(ValueError):
        Logger("x.log", logger_name="dmr_monitor_test_level", log_dir=str(tmp_path), level="LOUD")


def test_dedup_filter_counts_suppressed():
    f = DedupFilter()
    for _ in range(4):
        f.filter(_record("a", "resync: bad tail"))
    f.filter(_record("a", "resync: bad head"))

    assert f.suppressed == 3


def test_logger_installs_file_despite_foreign_handler(tmp_path: Path):
    name = "dmr_monitor_test_foreign"
    foreign = logging.NullHandler()
    logging.getLogger(name).addHandler(foreign)
    try:
        for run in ("first", "second"):
            log_dir = tmp_path / run
            logger = Logger("run.log", logger_name=name, log_dir=str(log_dir))
            try:
                logging.getLogger(name).info("%s run", run)
            finally:
                logger.close()

            assert f"{run} run" in (log_dir / "run.log").read_text(encoding="utf-8")
            assert logging.getLogger(name).handlers == [foreign]
    finally:
        logging.getLogger(name).removeHandler(foreign)


def test_logger_reports_suppressed_repeats(tmp_path: Path):
    name = "dmr_monitor_test_suppressed"
    logger = Logger("s.log", logger_name=name, log_dir=str(tmp_path), dedup_cooldown_s=60.0)
    try:
        for _ in range(5):
            logging.getLogger(name).warning("link noisy")
    finally:
        logger.close()

    assert logger.suppressed == 4
    assert (tmp_path / "s.log").read_text(encoding="utf-8").count("link noisy") == 1
