# dmr_monitor/core/protocol.py
"""
Frame layout (all multi-byte fields big-endian):

    [HEAD 0x68][command][direction][seq][sum_hi][sum_lo][len_hi][len_lo][payload...][TAIL 0x10]

where:
    len      = number of payload bytes (must be < 256)
    checksum = checksum.compute() over the whole frame with sum_hi/sum_lo set to FF FF
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

from . import checksum
from .messages import FRAME_HEAD, FRAME_TAIL, Direction

log = logging.getLogger(__name__)

HEADER_SIZE = 8
MAX_PAYLOAD_LEN = 256  # exclusive; anything at or above is a corrupted length field

_SUM_OFFSET = 4
_LEN_OFFSET = 6


@dataclass(frozen=True)
class Frame:
    """One validated frame. Only validate() builds these from wire bytes."""

    command: int
    direction: int
    sequence: int
    checksum: int
    length: int
    payload: bytes
    raw: bytes

    @property
    def head(self) -> int:
        return self.raw[0]

    @property
    def tail(self) -> int:
        return self.raw[-1]

    def __repr__(self) -> str:
        return (
            f"Frame(command=0x{self.command:02X}, direction={self.direction}, "
            f"payload={self.payload.hex(' ') if self.payload else '(empty)'})"
        )


def frame_checksum(raw: bytes) -> int:
    """Checksum of a complete frame with its own checksum field neutralized."""
    buf = bytearray(raw)
    buf[_SUM_OFFSET] = 0xFF
    buf[_SUM_OFFSET + 1] = 0xFF
    return checksum.compute(buf)


def encode(
    command: int,
    payload: bytes = b"",
    direction: int = Direction.TO_DEVICE,
    sequence: int = 0,
) -> bytes:
    """
    Build a complete frame with a correct checksum.

    The monitor never transmits; this exists for fixtures, fakes and replays.
    """
    if len(payload) >= MAX_PAYLOAD_LEN:
        raise ValueError(f"Invalid payload length: {len(payload)}")
    for name, value in (("command", command), ("direction", direction), ("sequence", sequence)):
        if not 0 <= int(value) <= 0xFF:
            raise ValueError(f"{name} must fit in one byte, got {value}")

    frame = bytearray()
    frame.append(FRAME_HEAD)
    frame.append(int(command))
    frame.append(int(direction))
    frame.append(int(sequence))
    frame.extend(b"\xFF\xFF")
    frame.extend(len(payload).to_bytes(2, "big"))
    frame.extend(payload)
    frame.append(FRAME_TAIL)

    frame[_SUM_OFFSET:_SUM_OFFSET + 2] = checksum.compute(frame).to_bytes(2, "big")
    return bytes(frame)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

class ValidationStatus(Enum):
    INCOMPLETE = "incomplete"
    INVALID = "invalid"
    VALID = "valid"


@dataclass(frozen=True)
class ValidationResult:
    status: ValidationStatus
    frame: Optional[Frame] = None
    consumed: int = 0
    reason: str = ""


_INCOMPLETE = ValidationResult(ValidationStatus.INCOMPLETE)


def _invalid(reason: str) -> ValidationResult:
    return ValidationResult(ValidationStatus.INVALID, reason=reason)


def validate(buffer: bytes, verify_checksum: bool = True) -> ValidationResult:
    """
    Examine the front of `buffer` (expected to start at a head sentinel).

    INCOMPLETE means "not enough bytes yet to decide", INVALID means the
    candidate head is false and exactly one byte should be skipped.
    """
    n = len(buffer)
    if n < HEADER_SIZE + 1:
        return _INCOMPLETE

    if buffer[0] != FRAME_HEAD:
        return _invalid("bad head")

    length = (buffer[_LEN_OFFSET] << 8) | buffer[_LEN_OFFSET + 1]
    if length >= MAX_PAYLOAD_LEN:
        return _invalid(f"length {length} out of range")

    frame_len = HEADER_SIZE + length + 1
    if n < frame_len:
        return _INCOMPLETE

    if buffer[frame_len - 1] != FRAME_TAIL:
        return _invalid("bad tail")

    raw = bytes(buffer[:frame_len])
    carried = (raw[_SUM_OFFSET] << 8) | raw[_SUM_OFFSET + 1]

    if verify_checksum:
        expected = frame_checksum(raw)
        if expected != carried:
            return _invalid(f"checksum 0x{carried:04X} != 0x{expected:04X}")

    frame = Frame(
        command=raw[1],
        direction=raw[2],
        sequence=raw[3],
        checksum=carried,
        length=length,
        payload=raw[HEADER_SIZE:HEADER_SIZE + length],
        raw=raw,
    )
    return ValidationResult(ValidationStatus.VALID, frame=frame, consumed=frame_len)


# ---------------------------------------------------------------------------
# Scanning / resynchronization
# ---------------------------------------------------------------------------

class ScanStatus(Enum):
    NEED_MORE_DATA = "need_more_data"
    RESYNCHRONIZED = "resynchronized"
    FRAME = "frame"


@dataclass(frozen=True)
class ScanResult:
    status: ScanStatus
    frame: Optional[Frame] = None
    event: Optional[str] = None


_NEED_MORE = ScanResult(ScanStatus.NEED_MORE_DATA)
_RESYNC = ScanResult(ScanStatus.RESYNCHRONIZED)

Interpreter = Callable[[Frame], Optional[str]]


class FrameScanner:
    """
    Owns the byte accumulator for one capture session.

    Usage:
        scanner.feed(data)
        for result in scanner.drain():
            ...

    try_extract_one() never raises on wire garbage; corrupted candidates cost
    exactly one byte each.
    """

    def __init__(
        self,
        interpreter: Optional[Interpreter] = None,
        verify_checksum: bool = True,
        buffer: Optional[bytearray] = None,
    ) -> None:
        if interpreter is None:
            from .interpreter import interpret as interpreter
        self._interpret = interpreter
        self.verify_checksum = verify_checksum
        self._buffer = buffer if buffer is not None else bytearray()

        self.frames = 0
        self.resyncs = 0
        self.discarded = 0

    @property
    def buffered(self) -> int:
        return len(self._buffer)

    def feed(self, data: bytes) -> None:
        self._buffer.extend(data)

    def clear(self) -> None:
        self._buffer.clear()

    def try_extract_one(self) -> ScanResult:
        buf = self._buffer
        if not buf:
            return _NEED_MORE

        start = buf.find(FRAME_HEAD)
        if start < 0:
            # nothing in here can ever become a frame
            self.discarded += len(buf)
            buf.clear()
            return _NEED_MORE
        if start > 0:
            self.discarded += start
            del buf[:start]

        result = validate(buf, self.verify_checksum)

        if result.status is ValidationStatus.INCOMPLETE:
            return _NEED_MORE

        if result.status is ValidationStatus.INVALID:
            log.debug("resync: %s", result.reason)
            self.resyncs += 1
            self.discarded += 1
            del buf[:1]
            return _RESYNC

        del buf[:result.consumed]
        self.frames += 1
        frame = result.frame
        return ScanResult(ScanStatus.FRAME, frame=frame, event=self._interpret(frame))

    def drain(self, should_stop: Optional[Callable[[], bool]] = None) -> List[ScanResult]:
        """
        Extract until NEED_MORE_DATA and return the FRAME results in order.

        `should_stop` is polled before every extraction; once it returns True
        nothing more is decoded.
        """
        out: List[ScanResult] = []
        while should_stop is None or not should_stop():
            result = self.try_extract_one()
            if result.status is ScanStatus.NEED_MORE_DATA:
                break
            if result.status is ScanStatus.FRAME:
                out.append(result)
        return out

