from __future__ import annotations

import socket
from typing import Optional

from dmr_monitor.transports.base_transport import BaseTransport, TransportError


class TcpTransport(BaseTransport):
    """
    TCP transport for serial-over-IP bridges (ser2net, ESP-Link, ...):
      - connects once to (host, port); no reconnect, a dropped link ends the session
      - reads raw bytes with a socket timeout so the capture loop can notice stop()
    """

    def __init__(self, host: str, port: int, connect_timeout_s: float = 5.0) -> None:
        self.host = host
        self.port = port
        self.connect_timeout_s = connect_timeout_s
        self._sock: Optional[socket.socket] = None

    @property
    def name(self) -> str:
        return f"{self.host}:{self.port}"

    @property
    def is_open(self) -> bool:
        return self._sock is not None

    def open(self) -> None:
        try:
            self._sock = socket.create_connection(
                (self.host, self.port), timeout=self.connect_timeout_s
            )
        except OSError as e:
            self._sock = None
            raise TransportError(f"Failed to connect to {self.name}: {e}") from e

    def close(self) -> None:
        if self._sock is not None:
            try:
                self._sock.close()
            finally:
                self._sock = None

    def read_some(self, n: int, timeout_s: float) -> bytes:
        if self._sock is None:
            raise TransportError("Socket not open")
        try:
            self._sock.settimeout(timeout_s)
            data = self._sock.recv(n)
        except socket.timeout:
            return b""
        except OSError as e:
            raise TransportError(str(e)) from e

        if not data:
            raise TransportError("Connection closed by peer")
        return data
