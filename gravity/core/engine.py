"""Core simulation engine — fixed-rate tick loop.

This module provides the CoreEngine class which drives a Simulation at a
fixed tick rate and handles the surrounding chores: statistics logging,
telemetry snapshots and streaming world frames to WebSocket clients.
"""

from __future__ import annotations

import asyncio
from typing import Optional, TYPE_CHECKING

import structlog

from gravity.config import Settings
from gravity.core.simulation import Simulation, TickResult
from gravity.core.telemetry import collect_snapshot

if TYPE_CHECKING:
    from gravity.api.ws_handler import ConnectionManager

logger = structlog.get_logger()


class CoreEngine:
    """Runs the simulation tick loop.

    Coordinates:
    - One Simulation.step() per tick
    - Tick pacing and overrun warnings
    - Statistics and telemetry collection
    - World frame broadcasting
    """

    def __init__(
        self,
        simulation: Simulation,
        settings: Settings,
        ws_manager: Optional[ConnectionManager] = None,
    ) -> None:
        """Initialize the core engine.

        Args:
            simulation: The simulation to drive.
            settings: Application settings.
            ws_manager: WebSocket connection manager for real-time streaming.
        """
        self.simulation = simulation
        self.settings = settings
        self.ws_manager = ws_manager

        self.running = False

        # Merge statistics (reset after each snapshot)
        self.merges_since_snapshot = 0
        self.absorbed_total = 0
        self.last_result: Optional[TickResult] = None

    @property
    def tick_counter(self) -> int:
        return self.simulation.tick_counter

    async def run(self) -> None:
        """Main simulation loop.

        Runs until stopped, executing one tick per iteration:
        1. Advance the simulation
        2. Broadcast world state to clients
        3. Log statistics and collect telemetry on their intervals
        4. Sleep until next tick
        """
        self.running = True
        budget = self.settings.tick_interval_sec
        loop = asyncio.get_running_loop()
        logger.info(
            "engine_starting",
            ticks_per_second=self.settings.ticks_per_second,
            body_count=self.simulation.count(),
        )

        while self.running:
            tick_start = loop.time()

            try:
                result = self.advance()

                if self.ws_manager and result.tick % self.settings.broadcast_interval_ticks == 0:
                    await self._broadcast_world_state()

                if result.tick % self.settings.stats_interval_ticks == 0:
                    self._log_statistics()

                if result.tick % self.settings.snapshot_interval_ticks == 0:
                    self._collect_telemetry()

            except Exception as exc:
                # Never let the simulation loop crash
                logger.error(
                    "tick_error",
                    tick=self.tick_counter,
                    error=str(exc),
                    error_type=type(exc).__name__,
                )

            tick_duration = loop.time() - tick_start
            sleep_time = max(0.0, budget - tick_duration)

            if tick_duration > budget:
                logger.warning(
                    "tick_overrun",
                    tick=self.tick_counter,
                    duration_ms=tick_duration * 1000,
                    budget_ms=budget * 1000,
                )

            await asyncio.sleep(sleep_time)

        logger.info("engine_stopped", tick=self.tick_counter)

    def advance(self, ticks: int = 1) -> TickResult:
        """Step the simulation ``ticks`` times and record merge statistics.

        Returns:
            The result of the last tick.
        """
        result = self.last_result
        for _ in range(ticks):
            result = self.simulation.step()
            self.merges_since_snapshot += result.clusters_merged
            self.absorbed_total += result.bodies_absorbed
        self.last_result = result
        return result

    def _log_statistics(self) -> None:
        """Log population and mass for the current tick."""
        logger.info(
            "simulation_stats",
            tick=self.tick_counter,
            bodies=self.simulation.count(),
            total_mass=round(self.simulation.total_mass(), 6),
            absorbed_total=self.absorbed_total,
        )

    def _collect_telemetry(self) -> None:
        """Collect a snapshot, log it and reset the merge counter."""
        snapshot = collect_snapshot(self)
        self.merges_since_snapshot = 0

        logger.info(
            "telemetry_collected",
            tick=snapshot.tick,
            body_count=snapshot.body_count,
            total_mass=snapshot.total_mass,
            total_momentum=snapshot.total_momentum,
            kinetic_energy=snapshot.kinetic_energy,
            merges=snapshot.merges_since_last,
        )

    async def _broadcast_world_state(self) -> None:
        """Broadcast current bodies to all WebSocket clients as a binary frame."""
        # Avoid circular import
        from gravity.api.ws_handler import build_world_frame

        frame = build_world_frame(self.tick_counter, self.simulation.bodies())
        if self.ws_manager:
            await self.ws_manager.broadcast_bytes(frame)

    def stop(self) -> None:
        """Stop the simulation loop after the current tick."""
        logger.info("engine_stopping", tick=self.tick_counter)
        self.running = False
