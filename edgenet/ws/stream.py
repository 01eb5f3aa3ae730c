"""Sending and receiving WebSocket frames over async byte streams.

A reader is any object with a coroutine ``readexactly(n)`` that raises
:class:`asyncio.IncompleteReadError` when the stream ends early, such as
:class:`asyncio.StreamReader`. A writer is any object with ``write(data)``
and a coroutine ``drain()``, such as :class:`asyncio.StreamWriter`.
"""

from __future__ import annotations

import asyncio
from typing import Any

from .frame import (
    BufferOverflowError,
    FrameHeader,
    FrameType,
    IncompleteError,
    InvalidFrameError,
    InvalidLenError,
    WsError,
    WsIoError,
)

__all__ = [
    "recv_header",
    "send_header",
    "recv_payload",
    "send_payload",
    "recv",
    "send",
]


async def _read_exact(reader: Any, size: int) -> bytes:
    try:
        return bytes(await reader.readexactly(size))
    except asyncio.IncompleteReadError as exc:
        raise InvalidFrameError() from exc
    except WsError:
        raise
    except Exception as exc:
        raise WsIoError(exc) from exc


async def _write_all(writer: Any, data: bytes) -> None:
    try:
        writer.write(data)
        await writer.drain()
    except WsError:
        raise
    except Exception as exc:
        raise WsIoError(exc) from exc


async def recv_header(reader: Any) -> FrameHeader:
    """Read one frame header, reading no more bytes than the header holds."""
    buf = bytearray()
    needed = FrameHeader.MIN_LEN
    while True:
        buf += await _read_exact(reader, needed - len(buf))
        try:
            header, _offset = FrameHeader.deserialize(buf)
        except IncompleteError as exc:
            needed = len(buf) + exc.missing
        else:
            return header


async def send_header(writer: Any, header: FrameHeader) -> None:
    """Write ``header`` to the stream."""
    await _write_all(writer, header.serialize())


async def recv_payload(reader: Any, header: FrameHeader, max_len: int | None = None) -> bytes:
    """Read and unmask the payload that follows ``header``.

    Raises :class:`BufferOverflowError` when the payload is longer than
    ``max_len``.
    """
    if max_len is not None and max_len < header.payload_len:
        raise BufferOverflowError()
    if header.payload_len == 0:
        return b""
    payload = await _read_exact(reader, header.payload_len)
    return header.mask(payload, 0)


async def send_payload(writer: Any, header: FrameHeader, payload: bytes) -> None:
    """Mask (if the header has a key) and write ``payload``.

    Raises :class:`InvalidLenError` when the payload length does not match
    the header.
    """
    payload = bytes(payload)
    if len(payload) != header.payload_len:
        raise InvalidLenError()
    if not payload:
        return
    await _write_all(writer, header.mask(payload, 0))


async def recv(reader: Any, max_len: int | None = None) -> tuple[FrameType, bytes]:
    """Read a whole frame; return its type and unmasked payload."""
    header = await recv_header(reader)
    payload = await recv_payload(reader, header, max_len)
    return header.frame_type, payload


async def send(writer: Any, frame_type: FrameType, mask_key: int | None, payload: bytes) -> None:
    """Write a whole frame carrying ``payload``."""
    payload = bytes(payload)
    header = FrameHeader(frame_type, len(payload), mask_key)
    await send_header(writer, header)
    await send_payload(writer, header, payload)