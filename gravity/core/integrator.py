"""Explicit time integration for the body collection."""

from __future__ import annotations

from gravity.core.body import Body
from gravity.core.errors import ConfigurationError


class Integrator:
    """Semi-implicit (symplectic) Euler integrator.

    Stability depends on the timestep; there is no error control. The
    default of 1e-4 keeps a two-body system at reference scale (masses ~10,
    separations ~100) well-behaved.
    """

    def __init__(self, timestep: float = 1e-4) -> None:
        if not timestep > 0:
            raise ConfigurationError(f"timestep must be > 0, got {timestep!r}")
        self.timestep = timestep

    def apply(self, bodies: list[Body]) -> None:
        """Advance every body by one timestep and clear its accumulated acceleration.

        Must run after all force contributions for the tick are in.
        """
        for body in bodies:
            body.advance(self.timestep)
