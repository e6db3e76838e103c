from __future__ import annotations
from typing import List, Optional

import serial
from serial.tools import list_ports

from dmr_monitor.transports.base_transport import BaseTransport, TransportError


class SerialTransport(BaseTransport):
    """
    Serial transport for the radio module's UART (USB-serial adapters included).
    'port' is something like:
      - Linux:   /dev/ttyUSB0, /dev/ttyACM0
      - macOS:   /dev/cu.usbserial-XXXX
      - Windows: COM3, COM5, ...
    Line settings are fixed at 8N1; only the rate is configurable.
    """

    def __init__(self, port: str, baudrate: int = 115200, timeout_s: float = 0.1) -> None:
        self.port = port
        self.baudrate = baudrate
        self.timeout_s = timeout_s
        self._ser: Optional[serial.Serial] = None

    @property
    def name(self) -> str:
        return self.port

    @property
    def is_open(self) -> bool:
        return self._ser is not None and self._ser.is_open

    def open(self) -> None:
        try:
            self._ser = serial.Serial(
                self.port,
                self.baudrate,
                bytesize=serial.EIGHTBITS,
                parity=serial.PARITY_NONE,
                stopbits=serial.STOPBITS_ONE,
                timeout=self.timeout_s,
            )
        except (serial.SerialException, ValueError) as e:
            self._ser = None
            raise TransportError(f"Failed to open {self.port}: {e}") from e

    def close(self) -> None:
        if self._ser and self._ser.is_open:
            self._ser.close()
        self._ser = None

    def read_some(self, n: int, timeout_s: float) -> bytes:
        if not self._ser or not self._ser.is_open:
            raise TransportError("Serial not open")
        try:
            if self._ser.timeout != timeout_s:
                self._ser.timeout = timeout_s
            # return what is already waiting rather than blocking until n arrive
            waiting = self._ser.in_waiting
            if waiting:
                return self._ser.read(min(n, waiting))

            data = self._ser.read(1)  # waits up to timeout_s
            if data and n > 1:
                more = self._ser.in_waiting
                if more:
                    data += self._ser.read(min(n - 1, more))
            return data
        except (serial.SerialException, OSError) as e:
            raise TransportError(str(e)) from e

    @classmethod
    def enumerate(cls) -> List[str]:
        return sorted(p.device for p in list_ports.comports())
