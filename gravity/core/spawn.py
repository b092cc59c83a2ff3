"""Spawn requests and the drag-to-launch gesture that produces them."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from gravity.core.body import Vector, validate_mass


@dataclass(frozen=True)
class PendingSpawn:
    """A body about to be created: position, velocity and mass."""

    position: Vector
    velocity: Vector
    mass: float

    def __post_init__(self) -> None:
        validate_mass(self.mass)


class LaunchGesture:
    """Turns a press/release pair into a PendingSpawn.

    The body is placed where the press happened and launched with a velocity
    proportional to the drag vector from press to release point.
    """

    def __init__(self, mass: float = 10.0, velocity_scale: float = 0.01) -> None:
        self.mass = validate_mass(mass)
        self.velocity_scale = velocity_scale
        self.origin: Optional[Vector] = None

    @property
    def active(self) -> bool:
        return self.origin is not None

    def press(self, point: Vector) -> None:
        """Start a drag. A press during an active drag is ignored."""
        if self.origin is None:
            self.origin = (float(point[0]), float(point[1]))

    def cancel(self) -> None:
        self.origin = None

    def release(self, point: Vector) -> Optional[PendingSpawn]:
        """Finish the drag at ``point``.

        Returns:
            The spawn request, or None when no drag was in progress.
        """
        if self.origin is None:
            return None
        origin, self.origin = self.origin, None
        return launch(origin, point, mass=self.mass, velocity_scale=self.velocity_scale)


def launch(start: Vector, end: Vector, mass: float = 10.0, velocity_scale: float = 0.01) -> PendingSpawn:
    """One-shot drag from ``start`` to ``end``."""
    return PendingSpawn(
        position=(float(start[0]), float(start[1])),
        velocity=(
            (end[0] - start[0]) * velocity_scale,
            (end[1] - start[1]) * velocity_scale,
        ),
        mass=mass,
    )
