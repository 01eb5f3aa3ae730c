"""Sending and receiving UDP datagrams over a raw (link-layer) socket.

A raw socket here is any object with these coroutine methods:

* ``receive(max_len) -> (frame_bytes, remote_mac)``
* ``send(remote_mac, frame_bytes)``
* ``readable()`` (optional; only needed for :meth:`RawSocket2Udp.readable`)

and, for :meth:`RawSocket2Udp.split`, a ``split() -> (receiver, sender)`` method.
"""

from __future__ import annotations

import ipaddress
from contextlib import contextmanager
from ipaddress import IPv4Address
from typing import Any, Iterator, Tuple

from .errors import (
    BufferOverflowError,
    InvalidChecksumError,
    InvalidFormatError,
    RawError,
)
from .packet import ip_udp_decode, ip_udp_encode

__all__ = [
    "DEFAULT_BUFFER_SIZE",
    "RawIoError",
    "UnsupportedProtocolError",
    "RawSocket2Udp",
    "udp_send",
    "udp_receive",
]

DEFAULT_BUFFER_SIZE = 1500

SocketAddressV4 = Tuple[IPv4Address, int]

_UNSPECIFIED: SocketAddressV4 = (IPv4Address(0), 0)


class RawIoError(RawError):
    """The underlying raw socket failed."""

    def __init__(self, cause: BaseException) -> None:
        self.cause = cause
        super().__init__(f"IO error: {cause}")


class UnsupportedProtocolError(RawError):
    """An address is not IPv4."""

    default_message = "Unsupported protocol"


@contextmanager
def _io_errors() -> Iterator[None]:
    try:
        yield
    except Exception as exc:
        raise RawIoError(exc) from exc


def _v4(address: Any) -> SocketAddressV4:
    host, port, *rest = address
    if rest:
        raise UnsupportedProtocolError()
    ip = ipaddress.ip_address(host)
    if not isinstance(ip, IPv4Address):
        raise UnsupportedProtocolError()
    return ip, int(port)


def _optional_v4(address: Any) -> SocketAddressV4 | None:
    return None if address is None else _v4(address)


async def udp_send(
    socket: Any,
    local: Any,
    remote: Any,
    remote_mac: bytes,
    data: bytes,
    buffer_size: int = DEFAULT_BUFFER_SIZE,
) -> None:
    """Send ``data`` as a UDP datagram to the host with MAC ``remote_mac``."""
    local_v4 = _v4(local)
    remote_v4 = _v4(remote)

    packet = ip_udp_encode(local_v4, remote_v4, data, buffer_size)

    with _io_errors():
        await socket.send(bytes(remote_mac), packet)


async def udp_receive(
    socket: Any,
    filter_local: Any,
    filter_remote: Any,
    max_len: int | None = None,
    buffer_size: int = DEFAULT_BUFFER_SIZE,
) -> tuple[bytes, SocketAddressV4, SocketAddressV4, bytes]:
    """Receive the next UDP datagram passing the filters.

    Returns ``(payload, local, remote, remote_mac)``. Packets that are
    filtered out, malformed or carry a bad checksum are skipped.
    """
    local_filter = _optional_v4(filter_local)
    remote_filter = _optional_v4(filter_remote)

    while True:
        with _io_errors():
            frame, remote_mac = await socket.receive(buffer_size)

        try:
            decoded = ip_udp_decode(bytes(frame)[:buffer_size], remote_filter, local_filter)
        except (InvalidFormatError, InvalidChecksumError):
            continue

        if decoded is None:
            continue

        remote, local, payload = decoded
        if max_len is not None and len(payload) > max_len:
            raise BufferOverflowError()

        return payload, local, remote, bytes(remote_mac)


class RawSocket2Udp:
    """A UDP socket view over a raw socket.

    Datagrams are sent to a fixed MAC address, which lets DHCP clients and
    servers talk to peers that do not yet have an IP address.
    """

    def __init__(
        self,
        socket: Any,
        filter_local: Any,
        filter_remote: Any,
        remote_mac: bytes,
        buffer_size: int = DEFAULT_BUFFER_SIZE,
    ) -> None:
        self.socket = socket
        self.filter_local = _optional_v4(filter_local)
        self.filter_remote = _optional_v4(filter_remote)
        self.remote_mac = bytes(remote_mac)
        self.buffer_size = buffer_size

    async def receive(self, max_len: int | None = None) -> tuple[bytes, SocketAddressV4]:
        """Receive a datagram; return ``(payload, remote_address)``."""
        payload, _local, remote, _mac = await udp_receive(
            self.socket, self.filter_local, self.filter_remote, max_len, self.buffer_size
        )
        return payload, remote

    async def readable(self) -> None:
        """Wait until the underlying socket has data to read."""
        with _io_errors():
            await self.socket.readable()

    async def send(self, remote: Any, data: bytes) -> None:
        """Send ``data`` to ``remote`` via the configured MAC address."""
        remote_v4 = _v4(remote)
        local = self.filter_local if self.filter_local is not None else _UNSPECIFIED
        await udp_send(self.socket, local, remote_v4, self.remote_mac, data, self.buffer_size)

    def split(self) -> tuple[RawSocket2Udp, RawSocket2Udp]:
        """Split into a receiving half and a sending half."""
        receiver, sender = self.socket.split()
        return (
            RawSocket2Udp(
                receiver, self.filter_local, self.filter_remote, self.remote_mac, self.buffer_size
            ),
            RawSocket2Udp(
                sender, self.filter_local, self.filter_remote, self.remote_mac, self.buffer_size
            ),
        )