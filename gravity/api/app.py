"""FastAPI application factory with dependency injection.

The app receives the CoreEngine from main.py rather than creating it, so
routes operate on the very simulation the tick loop is driving.
"""

from __future__ import annotations

import time
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import gravity
from gravity.api.ws_handler import ConnectionManager
from gravity.core.engine import CoreEngine


class AppState:
    """Application state container for dependency injection."""

    def __init__(
        self,
        engine: CoreEngine,
        start_time: float,
        ws_manager: ConnectionManager,
    ) -> None:
        """Initialize app state.

        Args:
            engine: The CoreEngine instance.
            start_time: Server start timestamp for uptime calculation.
            ws_manager: WebSocket connection manager for real-time streaming.
        """
        self.engine = engine
        self.start_time = start_time
        self.ws_manager = ws_manager


def create_app(
    engine: CoreEngine,
    ws_manager: Optional[ConnectionManager] = None,
) -> FastAPI:
    """Create and configure FastAPI application.

    Args:
        engine: CoreEngine instance (already initialized in main.py).
        ws_manager: WebSocket connection manager for real-time streaming.

    Returns:
        Configured FastAPI application.
    """
    app = FastAPI(
        title="Gravity",
        description="Pairwise N-body simulation with overlap merging",
        version=gravity.__version__,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Renderers may be served from anywhere during development
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if ws_manager is None:
        ws_manager = engine.ws_manager or ConnectionManager()

    app.state.app_state = AppState(
        engine=engine,
        start_time=time.time(),
        ws_manager=ws_manager,
    )

    from gravity.api.routes_world import router as world_router

    app.include_router(world_router, prefix="/api", tags=["world"])

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        """422 without echoing inputs, which may be NaN and not JSON-encodable."""
        errors = [{k: v for k, v in error.items() if k not in ("input", "ctx")} for error in exc.errors()]
        return JSONResponse(status_code=422, content={"detail": jsonable_encoder(errors)})

    @app.get("/", tags=["health"])
    async def root() -> dict[str, str]:
        """Root endpoint - basic health check."""
        return {
            "status": "ok",
            "service": "Gravity API",
            "version": gravity.__version__,
        }

    @app.get("/health", tags=["health"])
    async def health() -> dict[str, str]:
        """Health check endpoint for monitoring."""
        return {
            "status": "healthy",
            "engine_running": str(app.state.app_state.engine.running),
            "tick": str(app.state.app_state.engine.tick_counter),
        }

    return app
