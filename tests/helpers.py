from dataclasses import dataclass
from typing import Any, Callable, Optional

from dmr_monitor.core import protocol
from dmr_monitor.core.messages import Direction


def make_frame(command: int, payload: bytes = b"", direction: int = Direction.TO_DEVICE, sequence: int = 0) -> bytes:
    return protocol.encode(command, payload, direction=direction, sequence=sequence)


def frame_of(command: int, payload: bytes = b"", direction: int = Direction.TO_DEVICE) -> protocol.Frame:
    """Encode then validate, giving the Frame the interpreter would see."""
    result = protocol.validate(make_frame(command, payload, direction))
    assert result.status is protocol.ValidationStatus.VALID
    return result.frame


def bcd(number: int) -> bytes:
    """8-digit decimal -> 4 packed-BCD bytes."""
    digits = f"{number:08d}"
    return bytes(int(digits[i]) << 4 | int(digits[i + 1]) for i in range(0, 8, 2))


@dataclass
class PublishedEvent:
    topic: str
    data: Any


class CapturingBus:
    """
    EventBus stand-in: publish(topic, data) / subscribe(topic, handler).
    Useful for asserting what got published.
    """
    def __init__(self) -> None:
        self.events: list[PublishedEvent] = []
        self.subscribers: dict[str, list[Callable[[Any], None]]] = {}

    def subscribe(self, topic: str, handler: Callable[[Any], None]) -> None:
        self.subscribers.setdefault(topic, []).append(handler)

    def publish(self, topic: str, data: Any = None) -> None:
        self.events.append(PublishedEvent(topic, data))
        for h in self.subscribers.get(topic, []):
            h(data)

    def topics(self) -> list[str]:
        return [e.topic for e in self.events]

    def of(self, topic: str) -> list:
        return [e.data for e in self.events if e.topic == topic]

    def last(self, topic: str) -> Optional[PublishedEvent]:
        for e in reversed(self.events):
            if e.topic == topic:
                return e
        return None
