"""IPv4/UDP packet handling, UDP over raw sockets, and WebSocket framing."""

__version__ = "0.7.0"