from __future__ import annotations
from abc import ABC, abstractmethod
from typing import List


class TransportError(RuntimeError):
    """Open or read failure on the underlying byte stream (not a timeout)."""


class BaseTransport(ABC):
    """
    Base class for all read-only byte-stream transports.
    Subclasses implement:
      - open()
      - close()
      - read_some(n, timeout_s)
    and may override enumerate() when the medium can list its endpoints.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable endpoint name, e.g. 'COM3' or '10.0.0.5:2000'."""
        ...

    @property
    @abstractmethod
    def is_open(self) -> bool:
        ...

    @abstractmethod
    def open(self) -> None:
        """Open the endpoint; raises TransportError on failure."""
        ...

    @abstractmethod
    def close(self) -> None:
        """Release the endpoint. Safe to call more than once."""
        ...

    @abstractmethod
    def read_some(self, n: int, timeout_s: float) -> bytes:
        """
        Return up to n bytes, waiting at most about timeout_s.
        An empty result means "nothing arrived this cycle", not an error.
        Raises TransportError on a real read failure.
        """
        ...

    @classmethod
    def enumerate(cls) -> List[str]:
        return []

    def __enter__(self) -> "BaseTransport":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
