"""Simulation — owns the body collection and runs one tick at a time.

A tick is strictly ordered: accumulate forces, integrate, detect overlaps,
group into clusters, merge, commit. Spawns requested while a tick is running
are queued and applied at the start of the next tick.
"""

from __future__ import annotations

import itertools
import math
import threading
from collections import deque
from dataclasses import dataclass
from typing import TYPE_CHECKING, Union

import structlog

from gravity.core.body import Body, BodyState, Vector, validate_mass, validate_vector
from gravity.core.errors import ConfigurationError, InvalidMass
from gravity.core.forces import ForceField
from gravity.core.grouping import OverlapGrouper
from gravity.core.integrator import Integrator
from gravity.core.merger import MergePolicy, Merger

if TYPE_CHECKING:
    from gravity.config import Settings

logger = structlog.get_logger()


@dataclass(frozen=True)
class TickResult:
    """Summary of one completed tick.

    Attributes:
        tick: Number of the tick that just completed (1-based).
        body_count: Bodies in the collection after the merge step.
        clusters_merged: Multi-member clusters collapsed this tick.
        bodies_absorbed: Bodies that disappeared into merges this tick.
        spawned: Queued spawns applied at the start of this tick.
    """

    tick: int
    body_count: int
    clusters_merged: int
    bodies_absorbed: int
    spawned: int = 0


class Simulation:
    """Pairwise N-body simulation with overlap merging.

    The simulation exclusively owns its bodies. Callers interact through
    ``spawn``, ``step`` and ``bodies`` only; ``bodies`` returns immutable
    snapshots so no caller can hold a live Body across ticks.
    """

    def __init__(
        self,
        timestep: float = 1e-4,
        gravitational_constant: float = 1.0,
        size_multiplier: float = 3.0,
        min_separation: float = 1e-3,
        merge_policy: Union[MergePolicy, str] = MergePolicy.MEAN,
    ) -> None:
        """Initialize the simulation.

        Args:
            timestep: Simulated time per tick. Must be > 0.
            gravitational_constant: The constant G.
            size_multiplier: Scales mass to radius. Must be > 0.
            min_separation: Force clamp distance. Must be > 0.
            merge_policy: "mean" (default) or "mass_weighted".

        Raises:
            ConfigurationError: If any constant is out of range.
        """
        try:
            policy = MergePolicy(merge_policy)
        except ValueError as exc:
            raise ConfigurationError(f"unknown merge policy {merge_policy!r}") from exc

        self.timestep = timestep
        self.gravitational_constant = gravitational_constant
        self.size_multiplier = size_multiplier

        self._ids = itertools.count(1)
        self.force_field = ForceField(gravitational_constant, min_separation)
        self.integrator = Integrator(timestep)
        self.grouper = OverlapGrouper(size_multiplier)
        self.merger = Merger(policy, id_source=self._next_id)

        self._bodies: list[Body] = []
        self._pending: deque[Body] = deque()
        self._pending_lock = threading.Lock()
        self._tick_lock = threading.Lock()
        self.tick_counter = 0

    @classmethod
    def from_settings(cls, settings: Settings) -> Simulation:
        return cls(
            timestep=settings.timestep,
            gravitational_constant=settings.gravitational_constant,
            size_multiplier=settings.size_multiplier,
            min_separation=settings.min_separation,
            merge_policy=settings.merge_policy,
        )

    @property
    def merge_policy(self) -> MergePolicy:
        return self.merger.policy

    def _next_id(self) -> int:
        with self._pending_lock:
            return next(self._ids)

    # -------------------------------------------------------------------------
    # External operations
    # -------------------------------------------------------------------------

    def spawn(self, position: Vector, velocity: Vector, mass: float) -> int:
        """Add a new body to the simulation.

        If no tick is running the body is added immediately; otherwise it is
        queued and added at the start of the next tick.

        Args:
            position: Initial (x, y) position.
            velocity: Initial (vx, vy) velocity.
            mass: Body mass, must be positive and finite.

        Returns:
            The id of the new body.

        Raises:
            InvalidMass: If mass <= 0, not finite, or would make the total
                mass overflow. No body is created.
            InvalidVector: If a position or velocity component is NaN or
                infinite. No body is created.
        """
        mass = validate_mass(mass)
        x, y = validate_vector("position", position)
        vx, vy = validate_vector("velocity", velocity)

        body = Body(id=self._next_id(), x=x, y=y, vx=vx, vy=vy, mass=mass)
        with self._pending_lock:
            # Any merged mass is a subset of this total, so it stays finite too
            if not self._mass_fits(mass):
                raise InvalidMass(mass, f"total mass would overflow with mass {mass!r}")
            self._pending.append(body)

        # Apply right away only if we are between ticks
        if self._tick_lock.acquire(blocking=False):
            try:
                self._drain_pending()
            finally:
                self._tick_lock.release()
            queued = False
        else:
            queued = True

        logger.info(
            "body_spawned",
            body_id=body.id,
            x=body.x,
            y=body.y,
            vx=body.vx,
            vy=body.vy,
            mass=mass,
            queued=queued,
        )
        return body.id

    def step(self) -> TickResult:
        """Advance the simulation by one tick.

        Never raises for a well-formed collection: numerical edge cases are
        handled inside the force field.
        """
        with self._tick_lock:
            spawned = self._drain_pending()
            bodies = self._bodies

            self.force_field.apply(bodies)
            self.integrator.apply(bodies)

            clusters = self.grouper.group(bodies)
            merged = self.merger.merge(bodies, clusters)

            multi = [c for c in clusters if len(c) > 1]
            absorbed = len(bodies) - len(merged)
            self._bodies = merged
            self.tick_counter += 1

            result = TickResult(
                tick=self.tick_counter,
                body_count=len(merged),
                clusters_merged=len(multi),
                bodies_absorbed=absorbed,
                spawned=spawned,
            )

        if multi:
            logger.info(
                "clusters_merged",
                tick=result.tick,
                clusters=result.clusters_merged,
                absorbed=result.bodies_absorbed,
                body_count=result.body_count,
            )
        return result

    def bodies(self) -> list[BodyState]:
        """Read-only snapshot of the current bodies."""
        with self._tick_lock:
            return [b.snapshot(self.size_multiplier) for b in self._bodies]

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def count(self) -> int:
        return len(self._bodies)

    def pending_count(self) -> int:
        with self._pending_lock:
            return len(self._pending)

    def total_mass(self) -> float:
        return math.fsum(b.mass for b in self._bodies)

    def _drain_pending(self) -> int:
        """Move queued spawns into the collection. Caller must hold the tick lock."""
        with self._pending_lock:
            drained = len(self._pending)
            while self._pending:
                self._bodies.append(self._pending.popleft())
        return drained

    def _mass_fits(self, mass: float) -> bool:
        """Whether ``mass`` can join without the total overflowing. Caller must hold the pending lock."""
        masses = itertools.chain((b.mass for b in self._bodies), (b.mass for b in self._pending), (mass,))
        try:
            return math.isfinite(math.fsum(masses))
        except OverflowError:
            return False
