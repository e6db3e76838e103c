from pathlib import Path

import pytest

from dmr_monitor.core.settings import MonitorSettings


def test_default_profile_loads():
    s = MonitorSettings.load()

    assert s.transport.type == "serial"
    assert s.transport.serial_port is None
    assert s.transport.baudrate == 115200
    assert s.capture.read_size == 1024
    assert s.capture.read_timeout_s == pytest.approx(0.1)
    assert s.capture.verify_checksum is True
    assert s.logging.level == "INFO"


def test_bridge_profile_loads():
    s = MonitorSettings.load("bridge")
    assert s.transport.type == "tcp"
    assert s.transport.host == "127.0.0.1"
    assert s.transport.port == 2000


def test_missing_profile_raises():
    with pytest.raises(ValueError):
        MonitorSettings.load("does-not-exist")


def test_load_path_with_partial_sections(tmp_path: Path):
    cfg = tmp_path / "monitor.yaml"
    cfg.write_text(
        "transport:\n"
        "  serial_port: /dev/ttyUSB0\n"
        "capture:\n"
        "  verify_checksum: false\n",
        encoding="utf-8",
    )
    s = MonitorSettings.load_path(cfg)

    assert s.transport.serial_port == "/dev/ttyUSB0"
    assert s.transport.baudrate == 115200
    assert s.capture.verify_checksum is False
    assert s.capture.read_size == 1024
    assert s.logging.log_file == "dmr_monitor.log"


def test_empty_file_gives_defaults(tmp_path: Path):
    cfg = tmp_path / "empty.yaml"
    cfg.write_text("", encoding="utf-8")
    assert MonitorSettings.load_path(cfg) == MonitorSettings.defaults()


@pytest.mark.parametrize(
    "data",
    [
        {"transport": {"kind": "serial"}},
        {"transport": {"type": "usb"}},
        {"capture": {"read_timeout_s": 0}},
        {"capture": {"read_size": 0}},
        {"extras": {}},
        {"logging": ["INFO"]},
        {"logging": {"level": "chatty"}},
        ["transport"],
        {"transport": {"baudrate": "fast"}},
        {"transport": {"baudrate": True}},
        {"transport": {"serial_port": ["COM3"]}},
        {"capture": {"read_timeout_s": "0.1"}},
        {"capture": {"read_size": 1.5}},
        {"capture": {"verify_checksum": "no"}},
        {"logging": {"console": 1}},
    ],
)
def test_bad_settings_raise(data):
    with pytest.raises(ValueError):
        MonitorSettings.from_dict(data)


def test_unreadable_or_malformed_file_raises(tmp_path: Path):
    with pytest.raises(ValueError, match="Cannot read"):
        MonitorSettings.load_path(tmp_path / "missing.yaml")

    cfg = tmp_path / "broken.yaml"
    cfg.write_text("transport: [serial\n", encoding="utf-8")
    with pytest.raises(ValueError, match="Bad settings file"):
        MonitorSettings.load_path(cfg)


def test_whole_number_accepted_for_float_field():
    s = MonitorSettings.from_dict({"capture": {"read_timeout_s": 1}, "logging": {"log_dir": None}})
    assert s.capture.read_timeout_s == 1
    assert s.logging.log_dir is None
