"""Pairwise gravitational force field.

Every ordered pair of bodies is visited, so the cost is O(n^2) per tick.
Forces are read from positions before integration and accumulated into each
attracted body's acceleration.
"""

from __future__ import annotations

import structlog

from gravity.core.body import Body
from gravity.core.errors import ConfigurationError, DegenerateSeparation

logger = structlog.get_logger()


class ForceField:
    """Direct-summation gravity with a minimum-separation clamp.

    For attractor ``a`` and attracted body ``b`` the force magnitude is
    ``f = G * m_a * m_b / r^2`` and ``b`` receives ``f * (p_a - p_b)``
    through ``Body.add_force``, which divides by ``m_b``.

    When ``r^2`` falls below ``min_separation^2`` the pair is degenerate and
    ``r^2`` is clamped to ``min_separation^2``. Exactly coincident bodies
    have a zero direction vector and so exert no force on each other.
    """

    def __init__(self, gravitational_constant: float = 1.0, min_separation: float = 1e-3) -> None:
        """Initialize the force field.

        Args:
            gravitational_constant: The constant G.
            min_separation: Distance below which r^2 is clamped. Must be > 0.
        """
        if not min_separation > 0:
            raise ConfigurationError(f"min_separation must be > 0, got {min_separation!r}")
        self.gravitational_constant = gravitational_constant
        self.min_separation = min_separation
        self._min_r2 = min_separation * min_separation

    def separation_squared(self, attractor: Body, attracted: Body) -> float:
        """Squared distance between two bodies.

        Raises:
            DegenerateSeparation: If the bodies are closer than min_separation.
        """
        dx = attractor.x - attracted.x
        dy = attractor.y - attracted.y
        r2 = dx * dx + dy * dy
        if r2 < self._min_r2:
            raise DegenerateSeparation(r2)
        return r2

    def attract(self, attractor: Body, attracted: Body) -> None:
        """Accumulate the pull of ``attractor`` into ``attracted``."""
        try:
            r2 = self.separation_squared(attractor, attracted)
        except DegenerateSeparation as exc:
            logger.debug(
                "degenerate_separation",
                attractor_id=attractor.id,
                attracted_id=attracted.id,
                distance_squared=exc.distance_squared,
                clamped_to=self._min_r2,
            )
            r2 = self._min_r2

        f = self.gravitational_constant * attractor.mass * attracted.mass / r2
        attracted.add_force(
            f * (attractor.x - attracted.x),
            f * (attractor.y - attracted.y),
        )

    def apply(self, bodies: list[Body]) -> None:
        """Accumulate gravitational acceleration for every ordered pair (i, j), i != j."""
        if self.gravitational_constant == 0.0:
            return

        for i, attractor in enumerate(bodies):
            for j, attracted in enumerate(bodies):
                if i == j:
                    continue  # no self-force
                self.attract(attractor, attracted)
