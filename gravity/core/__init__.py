"""Core simulation — bodies, forces, integration, clustering and merging."""

from gravity.core.body import Body, BodyState
from gravity.core.engine import CoreEngine
from gravity.core.errors import (
    ConfigurationError,
    DegenerateSeparation,
    InvalidMass,
    InvalidVector,
    SimulationError,
)
from gravity.core.merger import MergePolicy
from gravity.core.simulation import Simulation, TickResult

__all__ = [
    "Body",
    "BodyState",
    "ConfigurationError",
    "CoreEngine",
    "DegenerateSeparation",
    "InvalidMass",
    "InvalidVector",
    "MergePolicy",
    "Simulation",
    "SimulationError",
    "TickResult",
]
