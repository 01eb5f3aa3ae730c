# edgenet

Small, dependency-free building blocks for low-level networking:

- **`edgenet.raw`**: build and parse IPv4 packets that carry UDP
  datagrams, with header checksums. It can also send and receive UDP over a
  raw (link-layer) socket addressed by MAC. This helps where the local host
  has no IP address yet, as with a DHCP client or server.
- **`edgenet.ws`**: encode and decode WebSocket frame headers, mask
  payloads, and read or write whole frames over asyncio streams.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## IPv4 + UDP packets

```python
from ipaddress import IPv4Address

from edgenet.raw.packet import ip_udp_decode, ip_udp_encode

src = (IPv4Address("192.168.0.10"), 68)
dst = (IPv4Address("255.255.255.255"), 67)

packet = ip_udp_encode(src, dst, b"hello", 1500)

result = ip_udp_decode(packet, None, None)
if result is not None:
    (src_ip, src_port), (dst_ip, dst_port), payload = result
    assert payload == b"hello"
```

`ip_udp_encode` takes an optional `capacity`. If the finished packet would
be larger, it raises `BufferOverflowError`.

`ip_udp_decode(packet, filter_src, filter_dst)` takes `(address, port)`
filters, or `None` for no filter. An unspecified address (`0.0.0.0`)
matches any address. A broadcast destination or source always passes the
address filter. The function returns `None` when the packet is not UDP or
does not pass the filters.

A malformed packet raises a subclass of `edgenet.raw.errors.RawError`:

- `DataUnderflowError`
- `BufferOverflowError`
- `InvalidFormatError` (for example, the packet is not IPv4)
- `InvalidChecksumError`

Lower-level pieces:

- `edgenet.raw.ip`: `Ipv4PacketHeader`, plus `encode` and `decode`.
- `edgenet.raw.udp`: `UdpPacketHeader`, plus `encode` and `decode`. The
  checksum covers the IPv4 pseudo-header.
- `edgenet.raw.checksum`: `checksum_accumulate` and `checksum_finish`, the
  ones'-complement Internet checksum.
- `edgenet.raw.cursor`: `BytesIn` and `BytesOut`, a sequential byte reader
  and a bounded byte writer.

## UDP over a raw socket

`edgenet.raw.socket` works with any object that offers these coroutines:

- `receive(max_len) -> (frame, remote_mac)`
- `send(remote_mac, frame)`
- `readable()`, needed only for `RawSocket2Udp.readable`

It also needs a `split() -> (receiver, sender)` method, but only for
`RawSocket2Udp.split`.

```python
from edgenet.raw.socket import RawSocket2Udp

udp = RawSocket2Udp(
    raw_socket,
    ("0.0.0.0", 68),        # local filter (also the source address on send)
    ("0.0.0.0", 67),        # remote filter
    b"\xff" * 6,            # destination MAC for every datagram sent
)
await udp.send(("255.255.255.255", 67), b"payload")
payload, remote = await udp.receive()
```

On receive, these packets are skipped:

- packets filtered out by address or port
- packets that are not valid IPv4
- packets with a bad checksum

A truncated packet raises `DataUnderflowError`. A payload longer than
`max_len` raises `BufferOverflowError`.

The package also has the free functions `udp_send` and `udp_receive`.
Failures of the underlying socket are raised as `RawIoError`, which keeps
the original exception as `cause`. A non-IPv4 address raises
`UnsupportedProtocolError`. The default packet buffer is
`DEFAULT_BUFFER_SIZE` (1500 bytes).

## WebSocket frames

```python
from edgenet.ws.frame import FrameHeader, FrameKind, FrameType

header = FrameHeader(FrameType(FrameKind.TEXT), payload_len=5, mask_key=0x12345678)
raw = header.serialize()
decoded, payload_offset = FrameHeader.deserialize(raw)
masked = header.mask(b"hello")
```

`FrameType` pairs a `FrameKind` with a flag:

- For `TEXT` and `BINARY`, the flag means "fragmented".
- For `CONTINUE`, the flag means "final".

`FrameHeader.deserialize` raises `IncompleteError` when the buffer is too
short. The error's `missing` attribute holds how many more bytes are
needed. A malformed header raises `InvalidFrameError`.

`edgenet.ws.stream` works over asyncio-style streams. A reader needs
`readexactly`. A writer needs `write` and `drain`. The module provides:

- `recv_header` and `send_header`
- `recv_payload` and `send_payload`, which unmask and mask the payload
- `recv` and `send`, for whole frames

A stream that ends early raises `InvalidFrameError`. Other stream failures
raise `WsIoError`.

## What this package does not do

This package includes only the parts listed above. In particular:

- It opens no sockets of its own, raw or otherwise. You supply the socket
  objects.
- It has no DHCP, DNS, mDNS or HTTP protocol logic.
- It does not perform the HTTP upgrade handshake that starts a WebSocket
  connection.
- It has no command-line tools.