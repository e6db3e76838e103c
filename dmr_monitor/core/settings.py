# dmr_monitor/core/settings.py

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional, Type, TypeVar, Union, get_args, get_origin

import yaml

T = TypeVar("T")

CONFIG_DIR = Path(__file__).resolve().parent.parent / "config"

_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class TransportSettings:
    type: str = "serial"       # "serial" | "tcp"
    serial_port: Optional[str] = None
    baudrate: int = 115200
    host: Optional[str] = None
    port: Optional[int] = None

    def __post_init__(self) -> None:
        if self.type not in ("serial", "tcp"):
            raise ValueError(f"transport.type must be 'serial' or 'tcp', got {self.type!r}")
        if self.baudrate <= 0:
            raise ValueError(f"transport.baudrate must be positive, got {self.baudrate}")


@dataclass
class CaptureSettings:
    read_size: int = 1024
    read_timeout_s: float = 0.1
    verify_checksum: bool = True

    def __post_init__(self) -> None:
        if self.read_size <= 0:
            raise ValueError(f"capture.read_size must be positive, got {self.read_size}")
        # an unbounded read would make stop() wait forever
        if not self.read_timeout_s or self.read_timeout_s <= 0:
            raise ValueError(f"capture.read_timeout_s must be positive, got {self.read_timeout_s}")


@dataclass
class LoggingSettings:
    level: str = "INFO"
    log_dir: Optional[str] = "logs"
    log_file: str = "dmr_monitor.log"
    console: bool = False
    dedup_cooldown_s: float = 5.0

    def __post_init__(self) -> None:
        if str(self.level).upper() not in _LEVELS:
            raise ValueError(f"logging.level must be one of {', '.join(_LEVELS)}, got {self.level!r}")
        if self.dedup_cooldown_s < 0:
            raise ValueError(f"logging.dedup_cooldown_s must be >= 0, got {self.dedup_cooldown_s}")


def _type_ok(value: Any, tp: Any) -> bool:
    allowed = get_args(tp) if get_origin(tp) is Union else (tp,)
    if value is None:
        return type(None) in allowed
    # bool is an int subclass; a whole number is fine where a float is expected
    if isinstance(value, bool):
        return bool in allowed
    if isinstance(value, int) and (int in allowed or float in allowed):
        return True
    return any(t in (str, float) and isinstance(value, t) for t in allowed)


def _section(cls: Type[T], data: Optional[Dict[str, Any]], name: str) -> T:
    data = data or {}
    if not isinstance(data, dict):
        raise ValueError(f"'{name}' section must be a mapping")
    known = {f.name for f in fields(cls)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"Unknown key(s) in '{name}': {', '.join(unknown)}")
    for f in fields(cls):
        if f.name in data and not _type_ok(data[f.name], f.type):
            raise ValueError(f"{name}.{f.name} has the wrong type: {data[f.name]!r}")
    return cls(**data)


@dataclass
class MonitorSettings:
    transport: TransportSettings
    capture: CaptureSettings
    logging: LoggingSettings

    @classmethod
    def defaults(cls) -> "MonitorSettings":
        return cls(
            transport=TransportSettings(),
            capture=CaptureSettings(),
            logging=LoggingSettings(),
        )

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "MonitorSettings":
        data = data or {}
        if not isinstance(data, dict):
            raise ValueError("settings file must contain a mapping")
        unknown = sorted(set(data) - {"transport", "capture", "logging"})
        if unknown:
            raise ValueError(f"Unknown section(s): {', '.join(unknown)}")
        return cls(
            transport=_section(TransportSettings, data.get("transport"), "transport"),
            capture=_section(CaptureSettings, data.get("capture"), "capture"),
            logging=_section(LoggingSettings, data.get("logging"), "logging"),
        )

    @classmethod
    def load_path(cls, path: Path) -> "MonitorSettings":
        try:
            data = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
        except yaml.YAMLError as e:
            raise ValueError(f"Bad settings file {path}: {e}") from e
        except OSError as e:
            raise ValueError(f"Cannot read settings file {path}: {e.strerror or e}") from e
        return cls.from_dict(data)

    @classmethod
    def load(cls, profile: str = "default") -> "MonitorSettings":
        cfg_path = CONFIG_DIR / f"monitor_profile_{profile}.yaml"
        if not cfg_path.exists():
            raise ValueError(f"No such profile: {profile} ({cfg_path})")
        return cls.load_path(cfg_path)
