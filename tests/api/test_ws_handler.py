"""Tests for the binary world frame and the WebSocket connection manager."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from gravity.api.ws_handler import FRAME_BODY, FRAME_HEADER, ConnectionManager, build_world_frame
from gravity.core.body import BodyState


def make_state(body_id: int, x: float, y: float) -> BodyState:
    """Helper to create a body snapshot."""
    return BodyState(
        id=body_id,
        position=(x, y),
        velocity=(0.5, -0.5),
        acceleration=(0.25, 0.0),
        mass=4.0,
        radius=6.0,
    )


def make_websocket() -> MagicMock:
    """Helper to create a mock WebSocket."""
    websocket = MagicMock()
    websocket.accept = AsyncMock()
    websocket.send_bytes = AsyncMock()
    websocket.headers = {}
    return websocket


def test_build_world_frame_empty():
    """Test a frame with no bodies is just the header."""
    frame = build_world_frame(7, [])

    assert len(frame) == FRAME_HEADER.size
    assert FRAME_HEADER.unpack(frame) == (7, 0)


def test_build_world_frame_layout():
    """Test header and per-body fields."""
    frame = build_world_frame(42, [make_state(1, 10.0, 20.0), make_state(2, -1.0, 3.0)])

    assert len(frame) == FRAME_HEADER.size + 2 * FRAME_BODY.size
    assert FRAME_HEADER.unpack_from(frame, 0) == (42, 2)

    body = FRAME_BODY.unpack_from(frame, FRAME_HEADER.size)
    assert body == (1, 10.0, 20.0, 6.0, 0.5, -0.5, 0.25, 0.0)

    second = FRAME_BODY.unpack_from(frame, FRAME_HEADER.size + FRAME_BODY.size)
    assert second[0] == 2
    assert second[1:3] == (-1.0, 3.0)


@pytest.mark.asyncio
async def test_connection_manager_connect_and_disconnect():
    """Test connection bookkeeping."""
    manager = ConnectionManager()
    websocket = make_websocket()

    await manager.connect(websocket)
    assert manager.active_connections == [websocket]
    websocket.accept.assert_awaited_once()

    manager.disconnect(websocket)
    manager.disconnect(websocket)
    assert manager.active_connections == []


@pytest.mark.asyncio
async def test_broadcast_drops_failed_connections():
    """Test that a client that fails to receive is removed."""
    manager = ConnectionManager()
    healthy = make_websocket()
    broken = make_websocket()
    broken.send_bytes.side_effect = RuntimeError("closed")
    await manager.connect(healthy)
    await manager.connect(broken)

    await manager.broadcast_bytes(b"frame")

    healthy.send_bytes.assert_awaited_once_with(b"frame")
    assert manager.active_connections == [healthy]
