"""Combined IPv4 + UDP packet encoding and decoding."""

from __future__ import annotations

from ipaddress import IPv4Address

from . import ip, udp
from .errors import BufferOverflowError
from .ip import Ipv4PacketHeader
from .udp import UdpPacketHeader

__all__ = ["ip_udp_decode", "ip_udp_encode"]


def ip_udp_decode(
    packet: bytes,
    filter_src: tuple[ip.AddressLike, int] | None,
    filter_dst: tuple[ip.AddressLike, int] | None,
) -> tuple[udp.SocketAddress, udp.SocketAddress, bytes] | None:
    """Decode an IPv4 packet carrying UDP.

    Returns ((src_ip, src_port), (dst_ip, dst_port), payload), or None when
    the packet is not UDP or does not pass the (address, port) filters.
    """
    src_ip, src_port = filter_src if filter_src is not None else (None, None)
    dst_ip, dst_port = filter_dst if filter_dst is not None else (None, None)

    decoded = ip.decode(packet, src_ip, dst_ip, UdpPacketHeader.PROTO)
    if decoded is None:
        return None

    src, dst, _proto, datagram = decoded
    return udp.decode(src, dst, datagram, src_port, dst_port)


def ip_udp_encode(
    src: tuple[ip.AddressLike, int],
    dst: tuple[ip.AddressLike, int],
    payload: bytes,
    capacity: int | None = None,
) -> bytes:
    """Encode ``payload`` as a UDP datagram inside an IPv4 packet."""
    if capacity is not None and capacity < Ipv4PacketHeader.MIN_SIZE:
        raise BufferOverflowError()
    udp_capacity = None if capacity is None else capacity - Ipv4PacketHeader.MIN_SIZE
    datagram = udp.encode(src, dst, payload, udp_capacity)
    return ip.encode(IPv4Address(src[0]), IPv4Address(dst[0]), UdpPacketHeader.PROTO, datagram, capacity)