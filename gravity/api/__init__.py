"""HTTP and WebSocket surface for renderers and spawn clients."""
