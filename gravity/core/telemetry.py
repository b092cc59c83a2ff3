"""Telemetry for collecting world state snapshots.

Snapshots summarize the simulation for monitoring: population, conserved
quantities and merge activity since the previous snapshot.
"""

from __future__ import annotations

import math
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog

from gravity.core.body import BodyState

if TYPE_CHECKING:
    from gravity.core.engine import CoreEngine

logger = structlog.get_logger()


@dataclass
class SimulationSnapshot:
    """Snapshot of world state at a specific tick.

    Attributes:
        tick: Simulation tick number when snapshot was taken
        body_count: Number of bodies
        total_mass: Sum of all body masses
        total_momentum: (px, py) sum of mass * velocity
        kinetic_energy: Sum of 0.5 * m * v^2
        merges_since_last: Clusters merged since the previous snapshot
        timestamp: Unix timestamp when snapshot was collected
    """

    tick: int
    body_count: int
    total_mass: float
    total_momentum: tuple[float, float]
    kinetic_energy: float
    merges_since_last: int
    timestamp: float


def summarize(tick: int, bodies: list[BodyState], merges_since_last: int = 0) -> SimulationSnapshot:
    """Build a snapshot from a list of body states."""
    total_mass = math.fsum(b.mass for b in bodies)
    px = math.fsum(b.mass * b.velocity[0] for b in bodies)
    py = math.fsum(b.mass * b.velocity[1] for b in bodies)
    kinetic = math.fsum(
        0.5 * b.mass * (b.velocity[0] ** 2 + b.velocity[1] ** 2) for b in bodies
    )

    return SimulationSnapshot(
        tick=tick,
        body_count=len(bodies),
        total_mass=total_mass,
        total_momentum=(px, py),
        kinetic_energy=kinetic,
        merges_since_last=merges_since_last,
        timestamp=time.time(),
    )


def collect_snapshot(engine: CoreEngine) -> SimulationSnapshot:
    """Collect a snapshot of the current world state.

    Note:
        This does NOT reset the engine's merge counter. The caller resets it
        after the snapshot has been handled.
    """
    return summarize(
        engine.simulation.tick_counter,
        engine.simulation.bodies(),
        merges_since_last=engine.merges_since_snapshot,
    )
