"""IPv4 and UDP packet encoding and decoding, checksums, and UDP over raw sockets."""