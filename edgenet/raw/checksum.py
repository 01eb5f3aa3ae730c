"""Internet (ones' complement) checksum helpers."""

from __future__ import annotations

import struct

__all__ = ["checksum_accumulate", "checksum_finish"]


def checksum_accumulate(data: bytes | bytearray | memoryview, checksum_word: int | None = None) -> int:
    """Sum the big-endian 16-bit words of ``data``.

    The word at index ``checksum_word`` is treated as zero; a trailing odd
    byte is padded with a zero byte.
    """
    data = bytes(data)
    if len(data) % 2:
        data += b"\x00"
    return sum(
        word
        for index, (word,) in enumerate(struct.iter_unpack(">H", data))
        if index != checksum_word
    )


def checksum_finish(total: int) -> int:
    """Fold the carries of an accumulated sum and return its complement."""
    while total >> 16:
        total = (total >> 16) + (total & 0xFFFF)
    return ~total & 0xFFFF