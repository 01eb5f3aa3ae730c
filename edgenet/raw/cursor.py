"""Sequential readers and writers over byte strings."""

from __future__ import annotations

from .errors import BufferOverflowError, DataUnderflowError, InvalidFormatError

__all__ = ["BytesIn", "BytesOut"]


class BytesIn:
    """Reads bytes from the front of a byte string, tracking the offset."""

    def __init__(self, data: bytes | bytearray | memoryview) -> None:
        self._data = bytes(data)
        self._offset = 0

    @property
    def offset(self) -> int:
        return self._offset

    def is_empty(self) -> bool:
        return self._offset == len(self._data)

    def byte(self) -> int:
        return self.arr(1)[0]

    def slice(self, length: int) -> bytes:
        if length < 0:
            raise ValueError("length must not be negative")
        if length > len(self._data) - self._offset:
            raise DataUnderflowError()
        start = self._offset
        self._offset += length
        return self._data[start : self._offset]

    def arr(self, n: int) -> bytes:
        return self.slice(n)

    def remaining(self) -> bytes:
        return self.slice(len(self._data) - self._offset)

    def remaining_byte(self) -> int:
        return self.remaining_arr(1)[0]

    def remaining_arr(self, n: int) -> bytes:
        """Read exactly ``n`` bytes, which must be all that is left."""
        if len(self._data) - self._offset > n:
            raise InvalidFormatError()
        return self.arr(n)


class BytesOut:
    """Appends bytes to a buffer of optional bounded capacity."""

    def __init__(self, capacity: int | None = None) -> None:
        self._capacity = capacity
        self._buf = bytearray()

    def __len__(self) -> int:
        return len(self._buf)

    def is_empty(self) -> bool:
        return not self._buf

    def byte(self, value: int) -> BytesOut:
        return self.push(bytes((value,)))

    def push(self, data: bytes | bytearray | memoryview) -> BytesOut:
        data = bytes(data)
        if self._capacity is not None and len(data) > self._capacity - len(self._buf):
            raise BufferOverflowError()
        self._buf.extend(data)
        return self

    def getvalue(self) -> bytes:
        return bytes(self._buf)