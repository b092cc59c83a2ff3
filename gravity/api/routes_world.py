"""World state and control API routes.

Provides endpoints for:
- Getting current world state and statistics
- Listing bodies for rendering
- Spawning bodies directly or from a drag gesture
- Manually stepping the simulation
- Streaming world frames over WebSocket
"""

from __future__ import annotations

import time
from typing import Any, Optional

from fastapi import APIRouter, HTTPException, Query, Request, WebSocket
from pydantic import BaseModel, ConfigDict, Field

import structlog

from gravity.api.ws_handler import websocket_endpoint
from gravity.core.body import BodyState
from gravity.core.errors import InvalidMass, InvalidVector
from gravity.core.spawn import launch

logger = structlog.get_logger()

router = APIRouter()


# -------------------------------------------------------------------------
# Request/Response Models
# -------------------------------------------------------------------------


class WorldStateResponse(BaseModel):
    """Response model for world state endpoint."""

    tick: int = Field(..., description="Current simulation tick")
    body_count: int = Field(..., description="Number of bodies")
    pending_spawns: int = Field(..., description="Spawns queued for the next tick")
    total_mass: float = Field(..., description="Sum of all body masses")
    running: bool = Field(..., description="Whether the tick loop is running")
    world_params: dict[str, Any] = Field(..., description="Simulation constants")


class StatsResponse(BaseModel):
    """Response model for simulation statistics."""

    uptime_seconds: float = Field(..., description="Server uptime in seconds")
    tick: int = Field(..., description="Current simulation tick")
    body_count: int = Field(..., description="Current body count")
    bodies_absorbed: int = Field(..., description="Bodies absorbed by merges since start")
    tps: float = Field(..., description="Average ticks per second since start")


class BodyResponse(BaseModel):
    """A single body as seen by renderers."""

    id: int
    position: tuple[float, float]
    velocity: tuple[float, float]
    acceleration: tuple[float, float] = Field(..., description="Acceleration applied last tick")
    mass: float
    radius: float

    @classmethod
    def from_state(cls, state: BodyState) -> BodyResponse:
        return cls(
            id=state.id,
            position=state.position,
            velocity=state.velocity,
            acceleration=state.acceleration,
            mass=state.mass,
            radius=state.radius,
        )


class SpawnRequest(BaseModel):
    """Request model for spawning a body."""

    model_config = ConfigDict(allow_inf_nan=False)

    position: tuple[float, float] = Field(..., description="Initial (x, y) position")
    velocity: tuple[float, float] = Field(default=(0.0, 0.0), description="Initial (vx, vy)")
    mass: float = Field(..., description="Body mass, must be > 0")


class LaunchRequest(BaseModel):
    """Request model for spawning a body from a drag gesture."""

    model_config = ConfigDict(allow_inf_nan=False)

    start: tuple[float, float] = Field(..., description="Press point; the body appears here")
    end: tuple[float, float] = Field(..., description="Release point")
    mass: Optional[float] = Field(default=None, description="Defaults to the configured spawn mass")


class SpawnResponse(BaseModel):
    """Response model for spawn endpoints."""

    id: int
    queued: bool = Field(..., description="True if the body waits for the next tick")


class StepResponse(BaseModel):
    """Response model for manual stepping."""

    tick: int
    body_count: int
    clusters_merged: int
    bodies_absorbed: int


# -------------------------------------------------------------------------
# World state
# -------------------------------------------------------------------------


@router.get("/world/state", response_model=WorldStateResponse)
async def get_world_state(request: Request) -> WorldStateResponse:
    """Get current world state."""
    engine = request.app.state.app_state.engine
    simulation = engine.simulation

    world_params = {
        "timestep": simulation.timestep,
        "gravitational_constant": simulation.gravitational_constant,
        "size_multiplier": simulation.size_multiplier,
        "min_separation": simulation.force_field.min_separation,
        "merge_policy": simulation.merge_policy.value,
        "ticks_per_second": engine.settings.ticks_per_second,
    }

    return WorldStateResponse(
        tick=simulation.tick_counter,
        body_count=simulation.count(),
        pending_spawns=simulation.pending_count(),
        total_mass=simulation.total_mass(),
        running=engine.running,
        world_params=world_params,
    )


@router.get("/stats", response_model=StatsResponse)
async def get_stats(request: Request) -> StatsResponse:
    """Get simulation statistics."""
    app_state = request.app.state.app_state
    engine = app_state.engine

    uptime = time.time() - app_state.start_time
    tps = 0.0
    if uptime > 0 and engine.tick_counter > 0:
        tps = engine.tick_counter / uptime

    return StatsResponse(
        uptime_seconds=round(uptime, 2),
        tick=engine.tick_counter,
        body_count=engine.simulation.count(),
        bodies_absorbed=engine.absorbed_total,
        tps=round(tps, 2),
    )


@router.post("/world/step", response_model=StepResponse)
async def step_world(
    request: Request,
    count: int = Query(default=1, ge=1, le=1000, description="Ticks to advance"),
) -> StepResponse:
    """Advance the simulation synchronously by ``count`` ticks."""
    engine = request.app.state.app_state.engine
    merged = 0
    absorbed = 0
    result = None
    for _ in range(count):
        result = engine.advance()
        merged += result.clusters_merged
        absorbed += result.bodies_absorbed

    logger.info("world_stepped", count=count, tick=result.tick)
    return StepResponse(
        tick=result.tick,
        body_count=result.body_count,
        clusters_merged=merged,
        bodies_absorbed=absorbed,
    )


# -------------------------------------------------------------------------
# Bodies
# -------------------------------------------------------------------------


@router.get("/bodies", response_model=list[BodyResponse])
async def list_bodies(request: Request) -> list[BodyResponse]:
    """List all bodies."""
    simulation = request.app.state.app_state.engine.simulation
    return [BodyResponse.from_state(state) for state in simulation.bodies()]


@router.get("/bodies/{body_id}", response_model=BodyResponse)
async def get_body(body_id: int, request: Request) -> BodyResponse:
    """Get a single body by id."""
    simulation = request.app.state.app_state.engine.simulation
    state = next((s for s in simulation.bodies() if s.id == body_id), None)
    if state is None:
        raise HTTPException(status_code=404, detail="Body not found")
    return BodyResponse.from_state(state)


def _spawn(request: Request, position, velocity, mass: float) -> SpawnResponse:
    simulation = request.app.state.app_state.engine.simulation
    before = simulation.pending_count()
    try:
        body_id = simulation.spawn(position, velocity, mass)
    except InvalidMass as exc:
        logger.warning("spawn_rejected", mass=exc.mass)
        raise HTTPException(status_code=400, detail=str(exc))
    except InvalidVector as exc:
        logger.warning("spawn_rejected", field=exc.name)
        raise HTTPException(status_code=400, detail=str(exc))
    queued = simulation.pending_count() > before
    return SpawnResponse(id=body_id, queued=queued)


@router.post("/bodies", response_model=SpawnResponse, status_code=201)
async def spawn_body(spawn: SpawnRequest, request: Request) -> SpawnResponse:
    """Spawn a body from position, velocity and mass.

    Raises:
        HTTPException: 400 if mass is not positive or the body would not stay finite.
    """
    return _spawn(request, spawn.position, spawn.velocity, spawn.mass)


@router.post("/bodies/launch", response_model=SpawnResponse, status_code=201)
async def launch_body(gesture: LaunchRequest, request: Request) -> SpawnResponse:
    """Spawn a body from a drag: placed at ``start``, launched toward ``end``."""
    settings = request.app.state.app_state.engine.settings
    mass = settings.spawn_mass if gesture.mass is None else gesture.mass
    try:
        pending = launch(
            gesture.start,
            gesture.end,
            mass=mass,
            velocity_scale=settings.launch_velocity_scale,
        )
    except InvalidMass as exc:
        logger.warning("spawn_rejected", mass=exc.mass)
        raise HTTPException(status_code=400, detail=str(exc))
    return _spawn(request, pending.position, pending.velocity, pending.mass)


# -------------------------------------------------------------------------
# WebSocket /ws/world
# -------------------------------------------------------------------------


@router.websocket("/ws/world")
async def world_stream(websocket: WebSocket) -> None:
    """WebSocket endpoint for real-time world state streaming.

    Clients receive binary frames pushed from the engine every
    ``broadcast_interval_ticks`` ticks. See build_world_frame for the layout.
    """
    ws_manager = websocket.app.state.app_state.ws_manager
    await websocket_endpoint(websocket, ws_manager)
