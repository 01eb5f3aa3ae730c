"""UDP packet header encoding and decoding."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from ipaddress import IPv4Address
from typing import ClassVar, Tuple, Union

from .checksum import checksum_accumulate, checksum_finish
from .cursor import BytesIn, BytesOut
from .errors import BufferOverflowError, DataUnderflowError, InvalidChecksumError

__all__ = ["UdpPacketHeader", "decode", "encode"]

_log = logging.getLogger(__name__)

AddressLike = Union[IPv4Address, str, int, bytes]
SocketAddress = Tuple[IPv4Address, int]


def _u16(data: bytes) -> int:
    return int.from_bytes(data, "big")


@dataclass
class UdpPacketHeader:
    """A parsed UDP header."""

    src: int
    dst: int
    length: int = 0
    csum: int = 0

    PROTO: ClassVar[int] = 17
    SIZE: ClassVar[int] = 8
    CHECKSUM_WORD: ClassVar[int] = 3

    @classmethod
    def new(cls, src: int, dst: int) -> UdpPacketHeader:
        return cls(src, dst)

    @classmethod
    def decode(cls, data: bytes) -> UdpPacketHeader:
        reader = BytesIn(data)
        return cls(
            src=_u16(reader.arr(2)),
            dst=_u16(reader.arr(2)),
            length=_u16(reader.arr(2)),
            csum=_u16(reader.arr(2)),
        )

    def encode(self) -> bytes:
        out = BytesOut(self.SIZE)
        (
            out.push(self.src.to_bytes(2, "big"))
            .push(self.dst.to_bytes(2, "big"))
            .push(self.length.to_bytes(2, "big"))
            .push(self.csum.to_bytes(2, "big"))
        )
        return out.getvalue()

    def encode_with_payload(
        self,
        src: AddressLike,
        dst: AddressLike,
        payload: bytes,
        capacity: int | None = None,
    ) -> bytes:
        """Encode header and payload, updating ``length`` and ``csum``."""
        if capacity is not None and capacity < self.SIZE:
            raise BufferOverflowError()
        payload = bytes(payload)
        if capacity is not None and len(payload) > capacity - self.SIZE:
            raise BufferOverflowError()

        self.length = (self.SIZE + len(payload)) & 0xFFFF

        packet = bytearray(self.encode())
        packet.extend(payload)

        checksum = self.checksum(packet, src, dst)
        self.csum = checksum
        self.inject_checksum(packet, checksum)

        return bytes(packet)

    @classmethod
    def decode_with_payload(
        cls,
        packet: bytes,
        src: AddressLike,
        dst: AddressLike,
        filter_src: int | None,
        filter_dst: int | None,
    ) -> tuple[UdpPacketHeader, bytes] | None:
        """Decode a datagram; return None when its ports do not pass the filters."""
        packet = bytes(packet)
        hdr = cls.decode(packet)

        if filter_src is not None and filter_src != hdr.src:
            return None
        if filter_dst is not None and filter_dst != hdr.dst:
            return None

        length = hdr.length
        if len(packet) < length:
            raise DataUnderflowError()

        packet = packet[:length]
        checksum = cls.checksum(packet, src, dst)

        _log.debug(
            "UDP header decoded, src=%d, dst=%d, size=%d, checksum=%d, ours=%d",
            hdr.src, hdr.dst, hdr.length, hdr.csum, checksum,
        )

        if checksum != hdr.csum:
            raise InvalidChecksumError()
        if length < cls.SIZE:
            raise DataUnderflowError()

        return hdr, packet[cls.SIZE :]

    @staticmethod
    def inject_checksum(packet: bytearray, checksum: int) -> None:
        """Write ``checksum`` into an encoded datagram in place."""
        offset = UdpPacketHeader.CHECKSUM_WORD << 1
        packet[offset : offset + 2] = checksum.to_bytes(2, "big")

    @staticmethod
    def checksum(packet: bytes, src: AddressLike, dst: AddressLike) -> int:
        """Compute the checksum of an encoded datagram with its IPv4 pseudo-header."""
        pseudo = (
            BytesOut(12)
            .push(IPv4Address(src).packed)
            .push(IPv4Address(dst).packed)
            .byte(0)
            .byte(UdpPacketHeader.PROTO)
            .push((len(packet) & 0xFFFF).to_bytes(2, "big"))
            .getvalue()
        )
        total = checksum_accumulate(pseudo) + checksum_accumulate(
            packet, UdpPacketHeader.CHECKSUM_WORD
        )
        return checksum_finish(total)


def decode(
    src: AddressLike,
    dst: AddressLike,
    packet: bytes,
    filter_src: int | None,
    filter_dst: int | None,
) -> tuple[SocketAddress, SocketAddress, bytes] | None:
    """Decode a datagram into ((src_ip, src_port), (dst_ip, dst_port), payload)."""
    decoded = UdpPacketHeader.decode_with_payload(packet, src, dst, filter_src, filter_dst)
    if decoded is None:
        return None
    hdr, payload = decoded
    return (IPv4Address(src), hdr.src), (IPv4Address(dst), hdr.dst), payload


def encode(
    src: tuple[AddressLike, int],
    dst: tuple[AddressLike, int],
    payload: bytes,
    capacity: int | None = None,
) -> bytes:
    """Encode a datagram between two (address, port) pairs."""
    src_ip, src_port = src
    dst_ip, dst_port = dst
    hdr = UdpPacketHeader.new(int(src_port), int(dst_port))
    return hdr.encode_with_payload(src_ip, dst_ip, payload, capacity)