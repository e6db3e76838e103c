# dmr_monitor/core/interpreter.py
"""
Command interpreter: validated Frame -> human-readable event text.

interpret() returns None for frames that are valid but carry nothing worth
showing (signal checks, alarms, some diagnostics, or a direction/length
combination the decoder does not describe). Unknown commands always produce
a raw hex dump.
"""

from __future__ import annotations

from typing import Callable, Dict, Optional

from .messages import Command, Direction
from .protocol import HEADER_SIZE, Frame

_CALL_LABELS = {0x01: "Private", 0x02: "Group"}

_POWER_SAVING = {0x00: "Off", 0x01: "Level 1", 0x02: "Level 2"}

# key type -> (label, key length in bytes)
_KEY_TYPES = {
    0x00: ("OFF", 0),
    0x01: ("ARC =", 5),
    0x04: ("AES128 =", 16),
    0x05: ("AES256 =", 32),
}

IN_BAND_LEN = 34
TALKER_ALIAS = 0x02

# talker alias text encodings
TA_7BIT = 0
TA_ISO8 = 1
TA_UTF8 = 2
TA_UCS2 = 3


def _hex(data: bytes) -> str:
    return " ".join(f"{b:02X}" for b in data)


def _call_label(kind: int) -> str:
    return _CALL_LABELS.get(kind, "All")


def _id_hex(data: bytes) -> str:
    return "".join(f"{b:02X}" for b in data)


def decode_bcd_id(data: bytes) -> int:
    """Four packed-BCD bytes, most significant first -> 8-digit integer."""
    value = 0
    for b in data[:4]:
        value = value * 100 + (b >> 4) * 10 + (b & 0x0F)
    return value


def decode_talker_alias(payload: bytes) -> str:
    """
    Talker alias block inside an in-band data frame:
        [0]=0x02 [1]=encoding [2]=length [3..]=text
    length counts bytes, or 16-bit code units for UCS-2. Text ends at the
    first NUL, like the device's own C string handling.
    """
    encoding = payload[1]
    count = payload[2]
    body = payload[3:]

    if encoding == TA_UCS2:
        raw = body[: count * 2]
        raw = raw[: len(raw) & ~1]
        text = raw.decode("utf-16-be", errors="replace")
    elif encoding == TA_ISO8:
        text = body[:count].decode("latin-1")
    else:
        text = body[:count].decode("utf-8", errors="replace")

    text = text.split("\x00", 1)[0]
    return f"Talker Alias({encoding}): {text}"


# ---------------------------------------------------------------------------
# Per-command decoders
# ---------------------------------------------------------------------------

def _single_setting(label: str) -> Callable[[Frame], Optional[str]]:
    def _decode(frame: Frame) -> Optional[str]:
        if frame.direction == Direction.TO_DEVICE and frame.length == 1:
            return f"{label} to {frame.payload[0]}"
        return None
    return _decode


def _fixed(text: str, direction: Optional[int] = None) -> Callable[[Frame], Optional[str]]:
    def _decode(frame: Frame) -> Optional[str]:
        if direction is None or frame.direction == direction:
            return text
        return None
    return _decode


def _silent(frame: Frame) -> Optional[str]:
    return None


def _call_status(frame: Frame) -> Optional[str]:
    if frame.direction != Direction.UPLOAD:
        return None
    d = frame.payload
    # only the low byte of the length field distinguishes start from end
    if frame.length & 0xFF == 9:
        return (
            f"{_call_label(d[0])} call started from {_id_hex(d[5:9])} "
            f"to {_id_hex(d[1:5])}"
        )
    return "Call ended"


def _power_saving(frame: Frame) -> Optional[str]:
    if frame.direction == Direction.TO_DEVICE and frame.length == 1:
        mode = _POWER_SAVING.get(frame.payload[0], "Level 3")
        return f"Set Power Saving Mode to {mode}"
    return None


def _firmware(frame: Frame) -> Optional[str]:
    if frame.direction == Direction.TO_HOST and frame.length == 4:
        return "Firmware: " + ".".join(f"{b:X}" for b in frame.payload)
    return None


def _local_id(frame: Frame) -> Optional[str]:
    if frame.direction == Direction.TO_DEVICE and frame.length == 4:
        return "Set Local ID: " + _id_hex(frame.payload[::-1])
    return None


def _service_status(frame: Frame) -> Optional[str]:
    if frame.direction != Direction.UPLOAD or not frame.payload:
        return None
    return "Channel is Busy" if frame.payload[0] else "Channel is Idle"


def _in_band(frame: Frame) -> Optional[str]:
    if frame.length != IN_BAND_LEN:
        return None
    if frame.payload[0] == TALKER_ALIAS:
        return decode_talker_alias(frame.payload)
    return "In Band: " + _hex(frame.payload)


def _call_detected(frame: Frame) -> Optional[str]:
    if frame.length != 10:
        return None
    d = frame.payload
    return (
        f"Detected {_call_label(d[0])} call from {_id_hex(d[5:9])} "
        f"to {_id_hex(d[1:5])} in CC{d[9]}"
    )


def _set_key(frame: Frame) -> Optional[str]:
    if frame.direction != Direction.TO_DEVICE or frame.length < 7:
        return None
    d = frame.payload
    key_type = _KEY_TYPES.get(d[1])
    if key_type is None:
        return None

    label, key_len = key_type
    text = f"Set key: Seq {d[0]}, {label}"
    key = d[2 : 2 + min(key_len, frame.length - 2)]
    if key:
        text += " " + _hex(key)
    return text


def _set_channel(frame: Frame) -> Optional[str]:
    if frame.direction != Direction.TO_DEVICE or frame.length != 20:
        return None
    d = frame.payload
    rx = int.from_bytes(d[3:7], "big")
    tx = int.from_bytes(d[7:11], "big")
    return f"Set Channel: TS{d[0]} CC{d[1]} RX {rx} TX {tx}"


def _group_list(frame: Frame) -> Optional[str]:
    if frame.direction != Direction.TO_DEVICE:
        return None
    if frame.length < 5:
        return "Cleared group list"

    d = frame.payload
    count = min(d[0], (frame.length - 1) // 4)
    text = "Set group list:"
    for i in range(count):
        off = 1 + i * 4
        text += f" {decode_bcd_id(d[off:off + 4])}"
    return text


def _raw_dump(frame: Frame) -> str:
    # command byte through the end of the payload
    return _hex(frame.raw[1 : HEADER_SIZE + frame.length])


_DECODERS: Dict[int, Callable[[Frame], Optional[str]]] = {
    Command.SET_RX_VOLUME:       _single_setting("Set RX Volume"),
    Command.SIGNAL_CHECK:        _silent,
    Command.CALL_STATUS:         _call_status,
    Command.ALARM:               _silent,
    Command.SET_MIC_GAIN:        _single_setting("Set MIC Gain"),
    Command.SET_POWER_SAVING:    _power_saving,
    Command.INIT_STATUS:         _fixed("Initialization Status"),
    Command.FIRMWARE_VERSION:    _firmware,
    Command.SET_LOCAL_ID:        _local_id,
    Command.WAKE_UP:             _fixed("Wake Up", Direction.TO_DEVICE),
    Command.DEEP_SLEEP:          _fixed("Deep Sleep Mode"),
    Command.SET_ALARM_CONFIG:    _fixed("Set Alarm Configuration"),
    Command.REMOTE_MONITOR_TIME: _silent,
    Command.BAND_SWITCH:         _silent,
    Command.SET_SQUELCH:         _single_setting("Set Squelch Level"),
    Command.SERVICE_STATUS:      _service_status,
    Command.IN_BAND_DATA:        _in_band,
    Command.CALL_DETECTED:       _call_detected,
    Command.SET_KEY:             _set_key,
    Command.SET_CHANNEL:         _set_channel,
    Command.SET_GROUP_LIST:      _group_list,
}


def interpret(frame: Frame) -> Optional[str]:
    """Decode one validated frame; None means "valid, nothing to show"."""
    decoder = _DECODERS.get(frame.command)
    if decoder is None:
        return _raw_dump(frame)
    return decoder(frame)
