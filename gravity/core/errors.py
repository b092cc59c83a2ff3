"""Simulation error taxonomy."""

from __future__ import annotations

from typing import Optional


class SimulationError(Exception):
    """Base class for all errors raised by the simulation core."""


class ConfigurationError(SimulationError):
    """A simulation constant is out of its valid range."""


class InvalidMass(SimulationError):
    """Raised when a body is requested with a non-positive or non-finite mass.

    Also raised when the mass would push the simulation's total mass past the
    largest finite float, since a later merge could then overflow.
    The body is not created.
    """

    def __init__(self, mass: float, reason: Optional[str] = None) -> None:
        self.mass = mass
        if reason is None:
            reason = f"body mass must be a positive finite number, got {mass!r}"
        super().__init__(reason)


class InvalidVector(SimulationError):
    """Raised when a position or velocity has a NaN or infinite component.

    The body is not created.
    """

    def __init__(self, name: str, value: object) -> None:
        self.name = name
        self.value = value
        super().__init__(f"{name} must have two finite components, got {value!r}")


class DegenerateSeparation(SimulationError):
    """Two bodies are closer than the minimum separation during force computation.

    Raised and handled inside the force field, which clamps the separation.
    Never escapes a tick.
    """

    def __init__(self, distance_squared: float) -> None:
        self.distance_squared = distance_squared
        super().__init__(f"bodies separated by r^2={distance_squared!r}")
