"""Body model — point mass dataclass and its read-only snapshot."""

from __future__ import annotations

import math
from dataclasses import dataclass

from gravity.core.errors import InvalidMass, InvalidVector

Vector = tuple[float, float]


def validate_mass(mass: float) -> float:
    """Return mass as a float, or raise InvalidMass.

    NaN and infinities are rejected along with zero and negative values.
    """
    try:
        value = float(mass)
    except (TypeError, ValueError) as exc:
        raise InvalidMass(mass) from exc
    if not value > 0 or not math.isfinite(value):
        raise InvalidMass(mass)
    return value


def validate_vector(name: str, value: Vector) -> Vector:
    """Return value as a pair of floats, or raise InvalidVector."""
    try:
        x, y = (float(c) for c in value)
    except (TypeError, ValueError) as exc:
        raise InvalidVector(name, value) from exc
    if not (math.isfinite(x) and math.isfinite(y)):
        raise InvalidVector(name, value)
    return (x, y)


def radius_for(mass: float, size_multiplier: float) -> float:
    """Radius derived from mass, used for overlap tests and rendering."""
    return math.sqrt(mass) * size_multiplier


@dataclass
class Body:
    """A single point mass in the simulation.

    Acceleration is accumulated by the force field during a tick and cleared
    by ``advance``. The value applied on the last advance is kept in
    ``last_ax``/``last_ay`` for rendering.
    """

    # Identity
    id: int

    # Kinematics
    x: float
    y: float
    vx: float
    vy: float
    mass: float

    # Transient acceleration accumulator (reset every tick)
    ax: float = 0.0
    ay: float = 0.0

    # Acceleration applied on the most recent advance
    last_ax: float = 0.0
    last_ay: float = 0.0

    def __post_init__(self) -> None:
        self.mass = validate_mass(self.mass)

    @property
    def position(self) -> Vector:
        return (self.x, self.y)

    @property
    def velocity(self) -> Vector:
        return (self.vx, self.vy)

    @property
    def accumulated_acceleration(self) -> Vector:
        return (self.ax, self.ay)

    def radius(self, size_multiplier: float) -> float:
        return radius_for(self.mass, size_multiplier)

    def add_force(self, fx: float, fy: float) -> None:
        """Accumulate a force, converted to acceleration by this body's mass (F = m·a)."""
        self.ax += fx / self.mass
        self.ay += fy / self.mass

    def advance(self, timestep: float) -> None:
        """Semi-implicit Euler step, then clear the accumulator.

        Velocity is updated first and the new velocity moves the position.
        """
        self.vx += self.ax * timestep
        self.vy += self.ay * timestep
        self.x += self.vx * timestep
        self.y += self.vy * timestep

        self.last_ax, self.last_ay = self.ax, self.ay
        self.ax = 0.0
        self.ay = 0.0

    def snapshot(self, size_multiplier: float) -> BodyState:
        return BodyState(
            id=self.id,
            position=self.position,
            velocity=self.velocity,
            acceleration=(self.last_ax, self.last_ay),
            mass=self.mass,
            radius=self.radius(size_multiplier),
        )


@dataclass(frozen=True)
class BodyState:
    """Immutable view of a body for renderers and API clients.

    Attributes:
        id: Body identifier, unique within one simulation.
        position: (x, y) position.
        velocity: (vx, vy) velocity.
        acceleration: Acceleration applied on the last tick.
        mass: Body mass.
        radius: Radius derived from mass.
    """

    id: int
    position: Vector
    velocity: Vector
    acceleration: Vector
    mass: float
    radius: float
