"""Configuration settings for Gravity — loaded from environment variables."""

from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Simulation settings with env-driven overrides.

    All values can be overridden via environment variables prefixed with GRAVITY_.
    Example: GRAVITY_TIMESTEP=0.001 overrides timestep.
    """

    # Physics constants, fixed once the simulation is built
    timestep: float = Field(default=1e-4, gt=0)  # simulated time per tick
    gravitational_constant: float = 1.0
    size_multiplier: float = Field(default=3.0, gt=0)  # radius = sqrt(mass) * size_multiplier
    min_separation: float = Field(default=1e-3, gt=0)  # force clamp distance
    merge_policy: Literal["mean", "mass_weighted"] = "mean"

    # Tick loop
    ticks_per_second: int = Field(default=60, gt=0)
    stats_interval_ticks: int = Field(default=600, gt=0)
    snapshot_interval_ticks: int = Field(default=300, gt=0)
    broadcast_interval_ticks: int = Field(default=2, gt=0)

    # Drag-to-launch spawning
    spawn_mass: float = Field(default=10.0, gt=0)
    launch_velocity_scale: float = 0.01

    # API server
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    log_level: str = "info"

    model_config = SettingsConfigDict(
        env_prefix="GRAVITY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def tick_interval_sec(self) -> float:
        """Wall-clock seconds between two ticks."""
        return 1.0 / self.ticks_per_second
