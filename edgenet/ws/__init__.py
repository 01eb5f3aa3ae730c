"""WebSocket frame headers, payload masking, and frame I/O over asyncio streams."""