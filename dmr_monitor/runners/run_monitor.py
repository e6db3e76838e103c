# dmr_monitor/runners/run_monitor.py

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import List, Optional, TextIO

from dmr_monitor.core.event_bus import EventBus
from dmr_monitor.core.session import (
    TOPIC_ERROR,
    TOPIC_EVENT,
    TOPIC_STARTED,
    TOPIC_STOPPED,
    CaptureSession,
    DecodedEvent,
)
from dmr_monitor.core.settings import MonitorSettings
from dmr_monitor.logger.logger import Logger
from dmr_monitor.transports.base_transport import BaseTransport, TransportError
from dmr_monitor.transports.serial_transport import SerialTransport
from dmr_monitor.transports.tcp_transport import TcpTransport

TIMESTAMP_FORMAT = "[%Y-%m-%d %H:%M:%S] "


def format_event_line(text: str, now: Optional[float] = None) -> str:
    stamp = time.strftime(TIMESTAMP_FORMAT, time.localtime(now))
    return f"{stamp}{text}"


class ConsolePrinter:
    """Prints bus traffic; decoded events get a local timestamp."""

    def __init__(self, bus: EventBus, out: Optional[TextIO] = None) -> None:
        self.out = out or sys.stdout
        self.errors = 0
        bus.subscribe(TOPIC_EVENT, self._on_event)
        bus.subscribe(TOPIC_STARTED, self._on_status)
        bus.subscribe(TOPIC_STOPPED, self._on_status)
        bus.subscribe(TOPIC_ERROR, self._on_error)

    def _write(self, line: str) -> None:
        self.out.write(line + "\n")
        self.out.flush()

    def _on_event(self, event: DecodedEvent) -> None:
        self._write(format_event_line(event.text))

    def _on_status(self, msg: str) -> None:
        self._write(msg)

    def _on_error(self, msg: str) -> None:
        self.errors += 1
        self._write(msg)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="dmr-monitor",
        description="Decode DMR module host-protocol traffic captured from a serial line.",
    )
    p.add_argument("-l", "--list", action="store_true", help="List available serial ports.")
    p.add_argument("-p", "--port", help="Start capture on serial port PORT (e.g. COM3, /dev/ttyUSB0).")
    p.add_argument("--tcp", metavar="HOST:PORT", help="Capture from a TCP byte stream instead of a serial port.")
    p.add_argument("--profile", default="default", help="Settings profile name (default: %(default)s).")
    p.add_argument("--config", type=Path, help="Settings YAML file (overrides --profile).")
    p.add_argument("--baudrate", type=int, help="Serial bit rate (default from profile, 115200).")
    p.add_argument("--no-checksum", action="store_true", help="Accept frames without verifying the checksum.")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging to the console.")
    return p


def _parse_host_port(value: str) -> tuple:
    host, sep, port = value.rpartition(":")
    if not sep or not host or not port.isdigit():
        raise ValueError(f"Expected HOST:PORT, got {value!r}")
    return host, int(port)


def apply_overrides(settings: MonitorSettings, args: argparse.Namespace) -> MonitorSettings:
    t = settings.transport
    if args.tcp:
        t.type = "tcp"
        t.host, t.port = _parse_host_port(args.tcp)
    elif args.port:
        t.type = "serial"
        t.serial_port = args.port
    if args.baudrate:
        t.baudrate = args.baudrate
    if args.no_checksum:
        settings.capture.verify_checksum = False
    if args.verbose:
        settings.logging.level = "DEBUG"
        settings.logging.console = True
    return settings


def build_transport(settings: MonitorSettings) -> BaseTransport:
    t = settings.transport
    if t.type == "tcp":
        if not t.host or not t.port:
            raise ValueError("tcp transport needs host and port")
        return TcpTransport(t.host, int(t.port))
    if not t.serial_port:
        raise ValueError("serial transport needs a port")
    return SerialTransport(t.serial_port, baudrate=t.baudrate, timeout_s=settings.capture.read_timeout_s)


def list_ports(out: TextIO) -> int:
    ports = SerialTransport.enumerate()
    for port in ports:
        out.write(f"-> {port}\n")
    if not ports:
        out.write("No serial ports found.\n")
    return 0


def run(session: CaptureSession, printer: ConsolePrinter, poll_s: float) -> int:
    """Pump events until Ctrl+C or until the capture thread ends on its own."""
    try:
        session.start()
    except TransportError as e:
        printer.out.write(f"Error: {e}\n")
        return 1

    try:
        while session.running:
            session.pump(timeout_s=poll_s)
    except KeyboardInterrupt:
        pass
    finally:
        session.stop()
        session.pump(timeout_s=0)

    return 1 if printer.errors else 0


def main(argv: Optional[List[str]] = None, out: Optional[TextIO] = None) -> int:
    out = out or sys.stdout
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.list:
        return list_ports(out)

    try:
        settings = MonitorSettings.load_path(args.config) if args.config else MonitorSettings.load(args.profile)
        settings = apply_overrides(settings, args)
        transport = build_transport(settings)
    except ValueError as e:
        out.write(f"Error: {e}\n")
        out.write(parser.format_usage())
        return 1

    lc = settings.logging
    logger = Logger(
        log_file=lc.log_file,
        logger_name="dmr_monitor",
        log_dir=lc.log_dir,
        level=lc.level,
        console=lc.console,
        dedup_cooldown_s=lc.dedup_cooldown_s,
    )

    session = CaptureSession(
        transport,
        read_size=settings.capture.read_size,
        read_timeout_s=settings.capture.read_timeout_s,
        verify_checksum=settings.capture.verify_checksum,
    )
    printer = ConsolePrinter(session.bus, out=out)

    try:
        return run(session, printer, poll_s=settings.capture.read_timeout_s)
    finally:
        logging.getLogger("dmr_monitor").info(
            "frames=%d resyncs=%d discarded=%d suppressed_log_lines=%d",
            session.scanner.frames, session.scanner.resyncs, session.scanner.discarded,
            logger.suppressed,
        )
        logger.close()


if __name__ == "__main__":
    sys.exit(main())
