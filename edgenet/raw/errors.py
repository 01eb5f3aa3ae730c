"""Errors raised while encoding and decoding IP and UDP packets."""

from __future__ import annotations

__all__ = [
    "RawError",
    "DataUnderflowError",
    "BufferOverflowError",
    "InvalidFormatError",
    "InvalidChecksumError",
]


class RawError(Exception):
    """Base class for packet encoding and decoding errors."""

    default_message = "Raw packet error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message if message is not None else self.default_message)


class DataUnderflowError(RawError):
    """The input ended before a complete structure could be read."""

    default_message = "Data underflow"


class BufferOverflowError(RawError):
    """The output does not fit in the space available."""

    default_message = "Buffer overflow"


class InvalidFormatError(RawError):
    """The input is not laid out as the format requires."""

    default_message = "Invalid format"


class InvalidChecksumError(RawError):
    """The checksum carried by a packet does not match its contents."""

    default_message = "Invalid checksum"