"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, WebSocket
from fastapi.middleware.cors import CORSMiddleware

from gym_checkin.api.checkin import router as checkin_router
from gym_checkin.api.realtime import serve_connection
from gym_checkin.app_logging import configure_logging
from gym_checkin.config import parse_allowed_origins
from gym_checkin.containers import AppContainer


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)
    allowed_origins = parse_allowed_origins(container.settings.cors_allowed_origins)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        state_container: AppContainer = app.state.container
        state_container.periodic_broadcaster.start()
        if state_container.periodic_broadcaster.running:
            logger.info(
                "Broadcasting active sessions every %ss",
                state_container.periodic_broadcaster.interval_seconds,
            )
        yield
        await state_container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins or ["*"],
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    app.include_router(checkin_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.websocket("/ws")
    async def realtime(websocket: WebSocket) -> None:
        """Realtime check-in channel."""
        await serve_connection(websocket, websocket.app.state.container)

    return app
