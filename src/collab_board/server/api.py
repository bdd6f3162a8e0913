"""FastAPI application for the collaborative task board."""

from __future__ import annotations

import asyncio
import contextlib
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

from fastapi import FastAPI, WebSocket
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from ..config import BoardConfig
from ..coordination import Coordinator
from .ws_hub import BoardHub

APP_VERSION = "1.0.0"


async def run_sweeps(coordinator: Coordinator, hub: BoardHub, interval: float) -> None:
    """Periodically reclaim stale drags and locks and announce the result."""
    while True:
        await asyncio.sleep(interval)
        try:
            hub.deliver(coordinator.sweep())
        except Exception:
            logger.exception("Sweep failed")


def create_app(
    config: Optional[BoardConfig] = None,
    coordinator: Optional[Coordinator] = None,
    enable_cors: bool = True,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        config: Server settings; defaults are used when omitted.
        coordinator: Pre-built coordinator (tests inject one backed by an
            in-memory repository).  Built from *config* when omitted.
        enable_cors: Whether to enable CORS.

    Returns:
        Configured FastAPI app.
    """
    config = config or BoardConfig()
    coordinator = coordinator or Coordinator.from_config(config)
    hub = BoardHub(coordinator)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        sweeper = asyncio.create_task(run_sweeps(coordinator, hub, config.sweep_interval_seconds))
        logger.info("Board server ready (sweep every {}s)", config.sweep_interval_seconds)
        try:
            yield
        finally:
            sweeper.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await sweeper

    app = FastAPI(
        title="Collaborative Task Board",
        description="Authoritative state server for a shared, multi-user task board",
        version=APP_VERSION,
        lifespan=lifespan,
    )

    # Enable CORS for development
    if enable_cors:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.state.config = config
    app.state.coordinator = coordinator
    app.state.hub = hub

    @app.get("/")
    async def root() -> dict[str, Any]:
        return {"name": "collab-board", "version": APP_VERSION, "status": "running"}

    @app.get("/health")
    async def health() -> dict[str, Any]:
        return {
            "status": "ok",
            "users": len(coordinator.sessions.list_users()),
            "clients": hub.client_count,
        }

    @app.get("/api/board")
    async def board() -> dict[str, Any]:
        """Read-only snapshot of tasks, locks and connected users."""
        return coordinator.board_snapshot()

    @app.websocket("/ws")
    async def board_socket(websocket: WebSocket) -> None:
        await hub.handle_connection(websocket)

    return app
