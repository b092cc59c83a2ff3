"""WebSocket handler for real-time world state streaming.

Provides:
- ConnectionManager for managing active WebSocket connections
- Binary protocol for efficient world state transmission
- WebSocket endpoint for streaming world updates
"""

from __future__ import annotations

import struct

from fastapi import WebSocket, WebSocketDisconnect
import structlog

from gravity.core.body import BodyState

logger = structlog.get_logger()

# Big-endian (network byte order)
FRAME_HEADER = struct.Struct(">IH")
FRAME_BODY = struct.Struct(">Ifffffff")


class ConnectionManager:
    """Manages active WebSocket connections.

    Handles connection lifecycle and broadcasting frames to all
    connected clients.
    """

    def __init__(self) -> None:
        self.active_connections: list[WebSocket] = []

    async def connect(self, websocket: WebSocket) -> None:
        """Accept a new WebSocket connection."""
        await websocket.accept()
        self.active_connections.append(websocket)
        logger.info(
            "ws_client_connected",
            total_connections=len(self.active_connections),
            origin=websocket.headers.get("origin", "unknown"),
        )

    def disconnect(self, websocket: WebSocket) -> None:
        if websocket in self.active_connections:
            self.active_connections.remove(websocket)
            logger.info(
                "ws_client_disconnected",
                total_connections=len(self.active_connections),
            )

    async def broadcast_bytes(self, data: bytes) -> None:
        """Broadcast binary data to all connected clients.

        Note:
            Removes disconnected clients automatically.
        """
        disconnected: list[WebSocket] = []

        for connection in self.active_connections:
            try:
                await connection.send_bytes(data)
            except Exception as exc:
                logger.warning(
                    "ws_broadcast_error",
                    error=str(exc),
                    error_type=type(exc).__name__,
                )
                disconnected.append(connection)

        for connection in disconnected:
            self.disconnect(connection)


def build_world_frame(tick: int, bodies: list[BodyState]) -> bytes:
    """Build a binary world state frame using struct.pack.

    Binary protocol format:
    - Header (6 bytes):
        - Tick: uint32 (4 bytes)
        - BodyCount: uint16 (2 bytes)
    - Body (32 bytes per body):
        - ID: uint32 (4 bytes)
        - X, Y: float32 (8 bytes)
        - Radius: float32 (4 bytes)
        - VX, VY: float32 (8 bytes)
        - AX, AY: float32 (8 bytes) - acceleration applied last tick

    Args:
        tick: Current simulation tick.
        bodies: Body snapshots to include in the frame.

    Returns:
        Binary frame as bytes.

    Note:
        Tick and id wrap at 2^32 and the body count is capped at 65535.
    """
    bodies = bodies[:0xFFFF]
    header = FRAME_HEADER.pack(tick & 0xFFFFFFFF, len(bodies))

    parts = [
        FRAME_BODY.pack(
            body.id & 0xFFFFFFFF,
            body.position[0],
            body.position[1],
            body.radius,
            body.velocity[0],
            body.velocity[1],
            body.acceleration[0],
            body.acceleration[1],
        )
        for body in bodies
    ]
    return header + b"".join(parts)


async def websocket_endpoint(websocket: WebSocket, manager: ConnectionManager) -> None:
    """WebSocket endpoint for world state streaming.

    Note:
        Clients receive binary frames pushed from the engine. They don't need
        to send anything; incoming messages only keep the connection alive.
    """
    await manager.connect(websocket)

    try:
        while True:
            data = await websocket.receive_text()
            if data and data != "ping":
                logger.debug("ws_client_message", message=data)

    except WebSocketDisconnect:
        manager.disconnect(websocket)
        logger.info("ws_client_disconnected_gracefully")
    except Exception as exc:
        logger.error(
            "ws_endpoint_error",
            error=str(exc),
            error_type=type(exc).__name__,
        )
        manager.disconnect(websocket)
