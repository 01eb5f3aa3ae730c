"""IPv4 packet header encoding and decoding."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from ipaddress import IPv4Address
from typing import ClassVar, Union

from .checksum import checksum_accumulate, checksum_finish
from .cursor import BytesIn, BytesOut
from .errors import (
    BufferOverflowError,
    DataUnderflowError,
    InvalidChecksumError,
    InvalidFormatError,
)

__all__ = ["Ipv4PacketHeader", "decode", "encode"]

_log = logging.getLogger(__name__)

AddressLike = Union[IPv4Address, str, int, bytes]

_UNSPECIFIED = IPv4Address(0)
_BROADCAST = IPv4Address(0xFFFFFFFF)


def _address(value: AddressLike | None) -> IPv4Address:
    return _UNSPECIFIED if value is None else IPv4Address(value)


def _u16(data: bytes) -> int:
    return int.from_bytes(data, "big")


@dataclass
class Ipv4PacketHeader:
    """A parsed IPv4 header."""

    src: IPv4Address
    dst: IPv4Address
    proto: int
    version: int = 4
    hlen: int = 20
    tos: int = 0
    length: int = 20
    ident: int = 0
    frag_off: int = 0
    ttl: int = 64
    csum: int = 0

    MIN_SIZE: ClassVar[int] = 20
    CHECKSUM_WORD: ClassVar[int] = 5
    IP_DF: ClassVar[int] = 0x4000
    IP_MF: ClassVar[int] = 0x2000

    @classmethod
    def new(cls, src: AddressLike, dst: AddressLike, proto: int) -> Ipv4PacketHeader:
        return cls(IPv4Address(src), IPv4Address(dst), proto)

    @classmethod
    def decode(cls, data: bytes) -> Ipv4PacketHeader:
        reader = BytesIn(data)
        vhl = reader.byte()
        tos = reader.byte()
        length = _u16(reader.arr(2))
        ident = _u16(reader.arr(2))
        frag_off = _u16(reader.arr(2))
        ttl = reader.byte()
        proto = reader.byte()
        csum = _u16(reader.arr(2))
        src = IPv4Address(reader.arr(4))
        dst = IPv4Address(reader.arr(4))
        return cls(
            src=src,
            dst=dst,
            proto=proto,
            version=vhl >> 4,
            hlen=(vhl & 0x0F) * 4,
            tos=tos,
            length=length,
            ident=ident,
            frag_off=frag_off,
            ttl=ttl,
            csum=csum,
        )

    def encode(self) -> bytes:
        """Encode the fixed 20-byte part of the header."""
        words = self.hlen // 4 + (1 if self.hlen % 4 else 0)
        out = BytesOut()
        (
            out.byte(((self.version << 4) | words) & 0xFF)
            .byte(self.tos)
            .push(self.length.to_bytes(2, "big"))
            .push(self.ident.to_bytes(2, "big"))
            .push(self.frag_off.to_bytes(2, "big"))
            .byte(self.ttl)
            .byte(self.proto)
            .push(self.csum.to_bytes(2, "big"))
            .push(self.src.packed)
            .push(self.dst.packed)
        )
        return out.getvalue()

    def encode_with_payload(self, payload: bytes, capacity: int | None = None) -> bytes:
        """Encode header and payload, updating ``length`` and ``csum``."""
        hdr_len = self.hlen
        if hdr_len < self.MIN_SIZE or (capacity is not None and capacity < hdr_len):
            raise BufferOverflowError()
        payload = bytes(payload)
        if capacity is not None and len(payload) > capacity - hdr_len:
            raise BufferOverflowError()

        self.length = (hdr_len + len(payload)) & 0xFFFF

        header = bytearray(self.encode())
        header.extend(bytes(hdr_len - self.MIN_SIZE))

        checksum = self.checksum(header)
        self.csum = checksum
        self.inject_checksum(header, checksum)

        return bytes(header) + payload

    @classmethod
    def decode_with_payload(
        cls,
        packet: bytes,
        filter_src: AddressLike | None,
        filter_dst: AddressLike | None,
        filter_proto: int | None,
    ) -> tuple[Ipv4PacketHeader, bytes] | None:
        """Decode a packet; return None when it does not pass the filters."""
        packet = bytes(packet)
        filter_src = _address(filter_src)
        filter_dst = _address(filter_dst)

        hdr = cls.decode(packet)
        if hdr.version != 4:
            raise InvalidFormatError()

        if filter_src != _UNSPECIFIED and hdr.src != _BROADCAST and filter_src != hdr.src:
            return None
        if filter_dst != _UNSPECIFIED and hdr.dst != _BROADCAST and filter_dst != hdr.dst:
            return None
        if filter_proto is not None and filter_proto != hdr.proto:
            return None

        length = hdr.length
        if len(packet) < length:
            raise DataUnderflowError()

        packet = packet[:length]
        checksum = cls.checksum(packet)

        _log.debug(
            "IP header decoded, src=%s, dst=%s, hlen=%d, size=%d, checksum=%d, ours=%d",
            hdr.src, hdr.dst, hdr.hlen, hdr.length, hdr.csum, checksum,
        )

        if checksum != hdr.csum:
            raise InvalidChecksumError()
        if len(packet) < hdr.hlen:
            raise DataUnderflowError()

        return hdr, packet[hdr.hlen :]

    @staticmethod
    def inject_checksum(packet: bytearray, checksum: int) -> None:
        """Write ``checksum`` into an encoded header in place."""
        offset = Ipv4PacketHeader.CHECKSUM_WORD << 1
        packet[offset : offset + 2] = checksum.to_bytes(2, "big")

    @staticmethod
    def checksum(packet: bytes) -> int:
        """Compute the header checksum of an encoded packet."""
        if not packet:
            raise DataUnderflowError()
        hlen = (packet[0] & 0x0F) * 4
        if len(packet) < hlen:
            raise DataUnderflowError()
        total = checksum_accumulate(packet[:hlen], Ipv4PacketHeader.CHECKSUM_WORD)
        return checksum_finish(total)


def decode(
    packet: bytes,
    filter_src: AddressLike | None,
    filter_dst: AddressLike | None,
    filter_proto: int | None,
) -> tuple[IPv4Address, IPv4Address, int, bytes] | None:
    """Decode an IPv4 packet into (src, dst, proto, payload), or None if filtered out."""
    decoded = Ipv4PacketHeader.decode_with_payload(packet, filter_src, filter_dst, filter_proto)
    if decoded is None:
        return None
    hdr, payload = decoded
    return hdr.src, hdr.dst, hdr.proto, payload


def encode(
    src: AddressLike,
    dst: AddressLike,
    proto: int,
    payload: bytes,
    capacity: int | None = None,
) -> bytes:
    """Encode an IPv4 packet carrying ``payload``."""
    return Ipv4PacketHeader.new(src, dst, proto).encode_with_payload(payload, capacity)