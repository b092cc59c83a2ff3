"""Gravity entry point — simulation runner with FastAPI server.

This module initializes all core components and starts both:
- The simulation loop (CoreEngine)
- The FastAPI REST/WebSocket API server (uvicorn)

Run directly via `python -m gravity.main` or the `gravity-sim` script.
"""

from __future__ import annotations

import asyncio
import signal
from typing import Optional

import structlog
import uvicorn

import gravity
from gravity.api.app import create_app
from gravity.api.ws_handler import ConnectionManager
from gravity.config import Settings
from gravity.core.engine import CoreEngine
from gravity.core.simulation import Simulation

logger = structlog.get_logger()


def configure_logging(level: str = "info") -> None:
    """Configure structured logging for the process."""
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(min_level=level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )


class SimulationRunner:
    """Manages simulation lifecycle and graceful shutdown."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self.settings = settings or Settings()
        self.engine: Optional[CoreEngine] = None
        self.uvicorn_server: Optional[uvicorn.Server] = None
        self.shutdown_event = asyncio.Event()

    async def run(self) -> None:
        """Initialize and run the simulation with the API server.

        Runs until SIGINT/SIGTERM, then stops the engine and the server.
        """
        settings = self.settings
        logger.info("gravity_starting", version=gravity.__version__)

        simulation = Simulation.from_settings(settings)
        logger.info(
            "simulation_initialized",
            timestep=settings.timestep,
            gravitational_constant=settings.gravitational_constant,
            size_multiplier=settings.size_multiplier,
            merge_policy=settings.merge_policy,
        )

        ws_manager = ConnectionManager()
        self.engine = CoreEngine(
            simulation=simulation,
            settings=settings,
            ws_manager=ws_manager,
        )
        logger.info("core_engine_initialized")

        app = create_app(engine=self.engine, ws_manager=ws_manager)

        config = uvicorn.Config(
            app,
            host=settings.api_host,
            port=settings.api_port,
            log_level=settings.log_level,
            access_log=False,
        )
        self.uvicorn_server = uvicorn.Server(config)
        logger.info("uvicorn_configured", host=settings.api_host, port=settings.api_port)

        def handle_shutdown(sig: int) -> None:
            logger.info("shutdown_signal_received", signal=sig)
            self.shutdown_event.set()

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, lambda s=sig: handle_shutdown(s))

        engine_task = asyncio.create_task(self.engine.run())
        server_task = asyncio.create_task(self.uvicorn_server.serve())

        logger.info(
            "services_running",
            simulation="running",
            api_server=f"http://{settings.api_host}:{settings.api_port}",
        )

        await self.shutdown_event.wait()

        logger.info("initiating_graceful_shutdown")
        self.engine.stop()
        self.uvicorn_server.should_exit = True

        try:
            await asyncio.wait_for(
                asyncio.gather(engine_task, server_task, return_exceptions=True),
                timeout=5.0,
            )
        except asyncio.TimeoutError:
            logger.warning("shutdown_timeout")
            engine_task.cancel()
            server_task.cancel()

        logger.info("all_services_stopped")


async def main() -> None:
    """Main entry point."""
    settings = Settings()
    configure_logging(settings.log_level)
    runner = SimulationRunner(settings)
    try:
        await runner.run()
    except KeyboardInterrupt:
        logger.info("keyboard_interrupt_received")
    except Exception as exc:
        logger.error("fatal_error", error=str(exc), error_type=type(exc).__name__)
        raise


def run() -> None:
    """Console script entry point."""
    asyncio.run(main())


if __name__ == "__main__":
    run()
