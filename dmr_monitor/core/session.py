# dmr_monitor/core/session.py

from __future__ import annotations

import logging
import queue
import threading
from dataclasses import dataclass
from typing import Any, Optional, Tuple

from dmr_monitor.transports.base_transport import BaseTransport, TransportError

from .event_bus import EventBus
from .protocol import FrameScanner, Interpreter

log = logging.getLogger(__name__)

TOPIC_EVENT = "dmr.event"
TOPIC_STARTED = "session.started"
TOPIC_STOPPED = "session.stopped"
TOPIC_ERROR = "session.error"


@dataclass(frozen=True)
class DecodedEvent:
    text: str
    command: int
    direction: int


class CaptureSession:
    """
    One capture run over one transport.

      - start(): open the transport, spawn the capture thread
      - the capture thread reads with a bounded timeout, feeds the scanner
        and queues (topic, data) messages; it never touches the bus
      - pump(): called from the presentation thread, moves queued messages
        onto the EventBus
      - stop(): signal, join, close, in that order

    Once stop is signalled nothing more is decoded; a pending partial frame is
    thrown away.
    """

    def __init__(
        self,
        transport: BaseTransport,
        bus: Optional[EventBus] = None,
        *,
        read_size: int = 1024,
        read_timeout_s: float = 0.1,
        verify_checksum: bool = True,
        interpreter: Optional[Interpreter] = None,
    ) -> None:
        self.transport = transport
        self.bus = bus or EventBus()
        self.read_size = read_size
        self.read_timeout_s = read_timeout_s
        self.scanner = FrameScanner(interpreter=interpreter, verify_checksum=verify_checksum)

        self._outbox: "queue.Queue[Tuple[str, Any]]" = queue.Queue()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    # ---------- Lifecycle ----------

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Open the transport and start capturing. Raises TransportError if it cannot open."""
        if self._thread is not None:
            # also covers a thread left behind by a stop() that timed out
            raise RuntimeError("Session already started")

        self.transport.open()
        self.scanner.clear()
        self._stop.clear()

        msg = f"Started capturing data from {self.transport.name}"
        log.info(msg)
        self._post(TOPIC_STARTED, msg)

        self._thread = threading.Thread(
            target=self._capture_loop,
            name=f"capture-{self.transport.name}",
            daemon=True,
        )
        self._thread.start()

    def stop(self, join_timeout_s: Optional[float] = None) -> None:
        """
        Signal, join, then release the transport.

        If the capture thread does not exit in time nothing is released and the
        session keeps the thread; `running` stays True and start() is refused.
        """
        if join_timeout_s is None:
            join_timeout_s = max(1.0, self.read_timeout_s * 10)

        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=join_timeout_s)
            if self._thread.is_alive():
                # still inside read_some: the transport and buffer stay with it
                log.warning("capture thread did not exit within %.1fs; call stop() again", join_timeout_s)
                return
            self._thread = None

        if self.transport.is_open:
            self.transport.close()
            self.scanner.clear()
            msg = "Stopped capturing data."
            log.info(msg)
            self._post(TOPIC_STOPPED, msg)

    def __enter__(self) -> "CaptureSession":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()

    # ---------- Capture thread ----------

    def _post(self, topic: str, data: Any) -> None:
        # unbounded queue: put never blocks the capture thread
        self._outbox.put_nowait((topic, data))

    def _capture_loop(self) -> None:
        while not self._stop.is_set():
            try:
                data = self.transport.read_some(self.read_size, self.read_timeout_s)
            except TransportError as e:
                msg = f"Error reading from {self.transport.name}: {e}"
                log.error(msg)
                self._post(TOPIC_ERROR, msg)
                break

            if not data or self._stop.is_set():
                continue

            self.scanner.feed(data)
            for result in self.scanner.drain(should_stop=self._stop.is_set):
                if result.event is None:
                    continue
                frame = result.frame
                self._post(
                    TOPIC_EVENT,
                    DecodedEvent(text=result.event, command=frame.command, direction=frame.direction),
                )

        log.debug(
            "capture loop exit: frames=%d resyncs=%d discarded=%d",
            self.scanner.frames, self.scanner.resyncs, self.scanner.discarded,
        )

    # ---------- Presentation side ----------

    def pump(self, timeout_s: float = 0.1, max_items: Optional[int] = None) -> int:
        """
        Publish queued messages on the bus, in order, from the calling thread.

        Waits up to timeout_s for the first message, then takes whatever else
        is already queued. Returns the number published.
        """
        count = 0
        block = timeout_s > 0
        while max_items is None or count < max_items:
            try:
                if count == 0 and block:
                    topic, data = self._outbox.get(timeout=timeout_s)
                else:
                    topic, data = self._outbox.get_nowait()
            except queue.Empty:
                break
            self.bus.publish(topic, data)
            count += 1
        return count
