"""Read-only monitor for the DMR module host control protocol."""

__version__ = "0.1.0"
