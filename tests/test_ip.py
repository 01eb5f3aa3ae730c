from ipaddress import IPv4Address

import pytest

from edgenet.raw import ip
from edgenet.raw.errors import (
    BufferOverflowError,
    DataUnderflowError,
    InvalidChecksumError,
    InvalidFormatError,
)
from edgenet.raw.ip import Ipv4PacketHeader

KNOWN_HEADER = bytes.fromhex("45000073 00004000 4011b861 c0a80001 c0a800c7")
KNOWN_PACKET = KNOWN_HEADER + bytes(range(95))


def test_new_defaults():
    hdr = Ipv4PacketHeader.new("10.0.0.1", "10.0.0.2", 17)
    assert hdr.version == 4
    assert hdr.hlen == Ipv4PacketHeader.MIN_SIZE
    assert hdr.ttl == 64
    assert hdr.src == IPv4Address("10.0.0.1")
    assert hdr.proto == 17


def test_decode_known_header():
    hdr = Ipv4PacketHeader.decode(KNOWN_HEADER)
    assert hdr.src == IPv4Address("192.168.0.1")
    assert hdr.dst == IPv4Address("192.168.0.199")
    assert hdr.frag_off == Ipv4PacketHeader.IP_DF
    assert hdr.proto == 17
    assert hdr.hlen == 20
    assert Ipv4PacketHeader.checksum(KNOWN_HEADER) == hdr.csum


def test_encode_reproduces_known_header():
    assert Ipv4PacketHeader.decode(KNOWN_HEADER).encode() == KNOWN_HEADER


def test_decode_with_payload_known_packet():
    result = Ipv4PacketHeader.decode_with_payload(KNOWN_PACKET, None, None, 17)
    hdr, payload = result
    assert payload == bytes(range(95))
    assert hdr.length == len(KNOWN_PACKET)


def test_trailing_bytes_dropped():
    result = ip.decode(KNOWN_PACKET + b"extra", None, None, None)
    assert result[3] == bytes(range(95))


def test_decode_too_short():
    with pytest.raises(DataUnderflowError):
        Ipv4PacketHeader.decode(KNOWN_HEADER[:10])


def test_round_trip():
    packet = ip.encode("10.1.2.3", "10.4.5.6", 6, b"payload")
    assert packet[0] == 0x45
    src, dst, proto, payload = ip.decode(packet, "10.1.2.3", "10.4.5.6", 6)
    assert (src, dst, proto, payload) == (
        IPv4Address("10.1.2.3"),
        IPv4Address("10.4.5.6"),
        6,
        b"payload",
    )


def test_encode_with_payload_updates_header():
    hdr = Ipv4PacketHeader.new("1.2.3.4", "5.6.7.8", 17)
    packet = hdr.encode_with_payload(b"abc")
    assert hdr.length == len(packet) == Ipv4PacketHeader.MIN_SIZE + 3
    assert Ipv4PacketHeader.checksum(packet) == hdr.csum
    assert Ipv4PacketHeader.decode(packet) == hdr


def test_options_are_zero_filled():
    hdr = Ipv4PacketHeader.new("1.2.3.4", "5.6.7.8", 17)
    hdr.hlen = 24
    packet = hdr.encode_with_payload(b"xy")
    assert packet[20:24] == bytes(4)
    decoded, payload = Ipv4PacketHeader.decode_with_payload(packet, None, None, None)
    assert decoded.hlen == 24
    assert payload == b"xy"


@pytest.mark.parametrize(
    "filter_src, filter_dst, proto",
    [
        ("192.168.0.2", None, None),
        (None, "192.168.0.200", None),
        (None, None, 6),
    ],
)
def test_filters_reject(filter_src, filter_dst, proto):
    assert Ipv4PacketHeader.decode_with_payload(KNOWN_PACKET, filter_src, filter_dst, proto) is None


def test_broadcast_destination_passes_filter():
    packet = ip.encode("10.0.0.1", "255.255.255.255", 17, b"hi")
    result = ip.decode(packet, "10.0.0.1", "10.0.0.99", 17)
    assert result[1] == IPv4Address("255.255.255.255")
    assert result[3] == b"hi"


def test_unspecified_filter_accepts_any():
    result = ip.decode(KNOWN_PACKET, "0.0.0.0", "0.0.0.0", None)
    assert result[0] == IPv4Address("192.168.0.1")


def test_bad_checksum():
    corrupted = bytearray(KNOWN_PACKET)
    corrupted[8] ^= 0x01
    with pytest.raises(InvalidChecksumError):
        Ipv4PacketHeader.decode_with_payload(bytes(corrupted), None, None, None)


def test_non_ipv4_version():
    corrupted = bytearray(KNOWN_PACKET)
    corrupted[0] = 0x65
    with pytest.raises(InvalidFormatError):
        ip.decode(bytes(corrupted), None, None, None)


def test_truncated_packet():
    with pytest.raises(DataUnderflowError):
        ip.decode(KNOWN_PACKET[:50], None, None, None)


def test_capacity_limits():
    assert len(ip.encode("1.1.1.1", "2.2.2.2", 17, b"abcd", capacity=24)) == 24
    with pytest.raises(BufferOverflowError):
        ip.encode("1.1.1.1", "2.2.2.2", 17, b"abcd", capacity=23)
    with pytest.raises(BufferOverflowError):
        ip.encode("1.1.1.1", "2.2.2.2", 17, b"", capacity=10)


def test_header_shorter_than_minimum_rejected():
    hdr = Ipv4PacketHeader.new("1.1.1.1", "2.2.2.2", 17)
    hdr.hlen = 16
    with pytest.raises(BufferOverflowError):
        hdr.encode_with_payload(b"")


def test_inject_checksum():
    packet = bytearray(KNOWN_HEADER)
    Ipv4PacketHeader.inject_checksum(packet, 0x1234)
    assert packet[10:12] == b"\x12\x34"
    assert Ipv4PacketHeader.decode(bytes(packet)).csum == 0x1234