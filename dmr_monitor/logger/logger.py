# dmr_monitor/logger/logger.py
from __future__ import annotations

import logging
import os
import threading
import time
from logging.handlers import RotatingFileHandler
from typing import Dict, List, Optional, Tuple, Union

# marks handlers installed by Logger so foreign ones (pytest, embedding apps) are left alone
_OWNED_ATTR = "_dmr_monitor_owned"


class DedupFilter(logging.Filter):
    """
    Drop a record when it repeats the previous message of the same
    (logger, level) within cooldown_s. cooldown_s <= 0 drops every
    consecutive repeat.

    A flapping link produces long runs of identical resync or transport
    messages; `suppressed` counts what was dropped so the run can report it.
    """

    def __init__(self, cooldown_s: float = 0.0) -> None:
        super().__init__()
        self.cooldown_s = float(cooldown_s)
        self.suppressed = 0
        self._lock = threading.Lock()
        self._last: Dict[Tuple[str, int], Tuple[str, float]] = {}

    def _is_repeat(self, key: Tuple[str, int], msg: str, now: float) -> bool:
        last = self._last.get(key)
        if last is None or last[0] != msg:
            return False
        return self.cooldown_s <= 0.0 or (now - last[1]) < self.cooldown_s

    def filter(self, record: logging.LogRecord) -> bool:
        msg = record.getMessage()
        now = time.time()
        key = (record.name, record.levelno)

        with self._lock:
            if self._is_repeat(key, msg, now):
                self.suppressed += 1
                return False
            self._last[key] = (msg, now)
            return True


def _parse_level(level: Union[int, str]) -> int:
    if isinstance(level, int):
        return level
    value = logging.getLevelName(str(level).upper())
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level: {level!r}")
    return value


def _owned(handler: logging.Handler) -> logging.Handler:
    setattr(handler, _OWNED_ATTR, True)
    return handler


def _is_owned(handler: logging.Handler) -> bool:
    return getattr(handler, _OWNED_ATTR, False)


class Logger:
    """
    Configures the package logger: rotating file, optional console, dedup.

    Child loggers created with logging.getLogger(__name__) inside the package
    propagate into the named logger. Handlers attached by anything else are
    left in place and never count as "already configured".
    """

    def __init__(
        self,
        log_file: str,
        logger_name: str = "dmr_monitor",
        log_dir: Optional[str] = "logs",
        level: Union[int, str] = logging.INFO,
        timestamp_format: str = "%Y-%m-%d %H:%M:%S",
        propagate: bool = False,
        max_bytes: int = 5_000_000,
        backup_count: int = 5,
        console: bool = False,
        dedup_cooldown_s: float = 0.0,
    ) -> None:
        level = _parse_level(level)

        _logger = logging.getLogger(logger_name)
        _logger.setLevel(level)
        _logger.propagate = propagate

        self._logger = _logger
        self._filters: List[DedupFilter] = []
        full_log_path = None

        # a second Logger on the same name reuses the first one's handlers
        if not any(_is_owned(h) for h in _logger.handlers):
            fmt = logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                datefmt=timestamp_format,
            )
            installed = 0

            if log_dir:
                os.makedirs(log_dir, exist_ok=True)
                full_log_path = os.path.join(log_dir, log_file)
                fh = RotatingFileHandler(
                    full_log_path,
                    maxBytes=int(max_bytes),
                    backupCount=int(backup_count),
                    encoding="utf-8",
                )
                self._install(fh, fmt, level, dedup_cooldown_s)
                installed += 1

            if console:
                self._install(logging.StreamHandler(), fmt, level, dedup_cooldown_s)
                installed += 1

            if not installed:
                _logger.addHandler(_owned(logging.NullHandler()))

        _logger.debug("Logger '%s' initialized -> %s", logger_name, full_log_path or "(no file)")

    def _install(self, handler: logging.Handler, fmt: logging.Formatter, level: int, cooldown_s: float) -> None:
        handler.setLevel(level)
        handler.setFormatter(fmt)
        dedup = DedupFilter(cooldown_s=cooldown_s)
        handler.addFilter(dedup)
        self._filters.append(dedup)
        self._logger.addHandler(_owned(handler))

    @property
    def suppressed(self) -> int:
        """Records dropped as repeats by this Logger's handlers so far."""
        return sum(f.suppressed for f in self._filters)

    def close(self) -> None:
        """Detach and close the handlers this class installed; foreign handlers stay."""
        for h in list(self._logger.handlers):
            if _is_owned(h):
                self._logger.removeHandler(h)
                h.close()
