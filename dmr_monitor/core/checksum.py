# dmr_monitor/core/checksum.py
"""
16-bit frame checksum.

The sum runs over the whole frame (head through tail) with the frame's own
checksum field forced to FF FF first; see protocol.frame_checksum().
"""

from __future__ import annotations

NEUTRAL = 0xFFFF


def compute(data: bytes) -> int:
    """
    Sum big-endian 16-bit words, fold the carries back into the low 16 bits
    and return the complement.

    An odd trailing byte counts as the high byte of a word with a zero low byte.
    """
    total = 0
    n = len(data)

    for i in range(0, n - 1, 2):
        total += (data[i] << 8) | data[i + 1]

    if n & 1:
        total += data[n - 1] << 8

    while total >> 16:
        total = (total & 0xFFFF) + (total >> 16)

    return (total & 0xFFFF) ^ 0xFFFF
