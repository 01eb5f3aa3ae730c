"""WebSocket frame headers: types, serialization, parsing and masking."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import ClassVar

__all__ = [
    "WsError",
    "IncompleteError",
    "InvalidFrameError",
    "BufferOverflowError",
    "InvalidLenError",
    "WsIoError",
    "FrameKind",
    "FrameType",
    "FrameHeader",
]


class WsError(Exception):
    """Base class for WebSocket framing errors."""

    default_message = "WebSocket error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message if message is not None else self.default_message)


class IncompleteError(WsError):
    """More bytes are needed to parse the frame header."""

    def __init__(self, missing: int) -> None:
        self.missing = missing
        super().__init__(f"Incomplete: {missing} bytes missing")


class InvalidFrameError(WsError):
    """The frame header is malformed, or the stream ended early."""

    default_message = "Invalid"


class BufferOverflowError(WsError):
    """The payload does not fit in the space allowed."""

    default_message = "Buffer overflow"


class InvalidLenError(WsError):
    """A length does not match what the frame header says."""

    default_message = "Invalid length"


class WsIoError(WsError):
    """The underlying stream failed."""

    def __init__(self, cause: BaseException) -> None:
        self.cause = cause
        super().__init__(f"IO error: {cause}")


class FrameKind(enum.Enum):
    TEXT = "Text"
    BINARY = "Binary"
    PING = "Ping"
    PONG = "Pong"
    CLOSE = "Close"
    CONTINUE = "Continue"


_FLAGGED = (FrameKind.TEXT, FrameKind.BINARY, FrameKind.CONTINUE)

_OPCODES = {
    FrameKind.CONTINUE: 0,
    FrameKind.TEXT: 1,
    FrameKind.BINARY: 2,
    FrameKind.CLOSE: 8,
    FrameKind.PING: 9,
    FrameKind.PONG: 10,
}
_KINDS = {opcode: kind for kind, opcode in _OPCODES.items()}


@dataclass(frozen=True)
class FrameType:
    """A frame's kind with its flag.

    For ``TEXT`` and ``BINARY`` the flag means "fragmented"; for
    ``CONTINUE`` it means "final". Other kinds carry no flag.
    """

    kind: FrameKind
    flag: bool = False

    def __post_init__(self) -> None:
        if self.flag and self.kind not in _FLAGGED:
            raise ValueError(f"{self.kind.value} frames carry no flag")

    def is_fragmented(self) -> bool:
        if self.kind in (FrameKind.TEXT, FrameKind.BINARY):
            return self.flag
        return self.kind is FrameKind.CONTINUE

    def is_final(self) -> bool:
        if self.kind in (FrameKind.TEXT, FrameKind.BINARY):
            return not self.flag
        if self.kind is FrameKind.CONTINUE:
            return self.flag
        return True

    def __str__(self) -> str:
        if self.kind in (FrameKind.TEXT, FrameKind.BINARY):
            return self.kind.value + (" (fragmented)" if self.flag else "")
        if self.kind is FrameKind.CONTINUE:
            return self.kind.value + (" (final)" if self.flag else "")
        return self.kind.value


@dataclass
class FrameHeader:
    """A WebSocket frame header."""

    frame_type: FrameType
    payload_len: int
    mask_key: int | None = None

    MIN_LEN: ClassVar[int] = 2
    MAX_LEN: ClassVar[int]

    @classmethod
    def deserialize(cls, buf: bytes) -> tuple[FrameHeader, int]:
        """Parse a header from the front of ``buf``.

        Returns the header and the offset of the payload. Raises
        :class:`IncompleteError` carrying the number of missing bytes when
        ``buf`` is too short.
        """
        buf = bytes(buf)
        expected = 2
        if len(buf) < expected:
            raise IncompleteError(expected - len(buf))

        first, second = buf[0], buf[1]
        final_frame = bool(first & 0x80)

        if first & 0x70:
            raise InvalidFrameError()

        opcode = first & 0x0F
        if 3 <= opcode <= 7 or opcode >= 11:
            raise InvalidFrameError()

        payload_len = second & 0x7F
        offset = 2

        if payload_len in (126, 127):
            width = 2 if payload_len == 126 else 8
            expected += width
            if len(buf) < expected:
                raise IncompleteError(expected - len(buf))
            payload_len = int.from_bytes(buf[offset : offset + width], "big")
            offset += width

        mask_key = None
        if second & 0x80:
            expected += 4
            if len(buf) < expected:
                raise IncompleteError(expected - len(buf))
            mask_key = int.from_bytes(buf[offset : offset + 4], "big")
            offset += 4

        kind = _KINDS[opcode]
        if kind is FrameKind.CONTINUE:
            frame_type = FrameType(kind, final_frame)
        elif kind in (FrameKind.TEXT, FrameKind.BINARY):
            frame_type = FrameType(kind, not final_frame)
        else:
            frame_type = FrameType(kind)

        return cls(frame_type, payload_len, mask_key), offset

    def serialized_len(self) -> int:
        if self.payload_len >= 65536:
            length_len = 8
        elif self.payload_len >= 126:
            length_len = 2
        else:
            length_len = 0
        return 2 + (4 if self.mask_key is not None else 0) + length_len

    def serialize(self) -> bytes:
        """Encode the header."""
        if not 0 <= self.payload_len < 1 << 64:
            raise InvalidLenError()
        if self.mask_key is not None and not 0 <= self.mask_key < 1 << 32:
            raise ValueError("mask key must fit in 32 bits")

        first = _OPCODES[self.frame_type.kind]
        if self.frame_type.is_final():
            first |= 0x80

        if self.payload_len < 126:
            second = self.payload_len
            extended = b""
        elif self.payload_len < 65536:
            second = 126
            extended = self.payload_len.to_bytes(2, "big")
        else:
            second = 127
            extended = self.payload_len.to_bytes(8, "big")

        mask = b""
        if self.mask_key is not None:
            second |= 0x80
            mask = self.mask_key.to_bytes(4, "big")

        return bytes((first, second)) + extended + mask

    def mask(self, buf: bytes, payload_offset: int = 0) -> bytes:
        """Mask (or unmask) ``buf`` with this header's key."""
        return self.mask_with(buf, self.mask_key, payload_offset)

    @staticmethod
    def mask_with(buf: bytes, mask_key: int | None, payload_offset: int = 0) -> bytes:
        """Mask ``buf``, which starts ``payload_offset`` bytes into the payload."""
        if mask_key is None:
            return bytes(buf)
        key = mask_key.to_bytes(4, "big")
        return bytes(
            byte ^ key[(payload_offset + index) % 4] for index, byte in enumerate(buf)
        )

    def __str__(self) -> str:
        return (
            f"Frame {{ {self.frame_type}, payload len {self.payload_len}, "
            f"mask {self.mask_key} }}"
        )


FrameHeader.MAX_LEN = FrameHeader(FrameType(FrameKind.BINARY), 65536, 0).serialized_len()