# arena_server/main.py
"""
FastAPI application for the arena server.

Serves the static client at ``/``, the game WebSocket at ``/ws`` and a few
read-only inspection routes, and runs the simulation loop for the lifetime
of the application.
"""

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, WebSocket
from fastapi.staticfiles import StaticFiles

from arena_server.api.routes import GameAPI
from arena_server.config import settings
from arena_server.services.broadcast_service import BroadcastService
from arena_server.services.game_service import GameService
from arena_server.services.websocket_service import WebSocketService
from arena_server.services.world_store import WorldStore

# Configure logging
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def create_app(static_dir: Optional[Path] = None) -> FastAPI:
    """Create the application with a fresh world."""
    store = WorldStore()
    game_service = GameService(store)
    broadcaster = BroadcastService(store)
    websocket_service = WebSocketService(game_service, broadcaster)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        websocket_service.start_background_tasks()
        logger.info("Arena server started")
        yield
        logger.info("Shutting down...")
        await websocket_service.stop_background_tasks()

    app = FastAPI(title="Arena Server", version="0.1.0", lifespan=lifespan)
    app.state.store = store
    app.state.game_service = game_service
    app.state.websocket_service = websocket_service

    app.include_router(GameAPI(game_service, websocket_service).router)

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket):
        """Game channel: one session per connection."""
        await websocket.accept()
        await websocket_service.handle_connection(websocket)

    # Mounted last so the routes above take priority over "/"
    static_dir = Path(static_dir or settings.STATIC_DIR)
    if static_dir.is_dir():
        app.mount("/", StaticFiles(directory=str(static_dir), html=True), name="static")
    else:
        logger.warning(f"Static directory {static_dir} not found, client not served")

    return app


app = create_app()


def run():
    """Console entry point: serve the app with uvicorn."""
    import uvicorn

    ssl_options = {}
    if settings.TLS_ENABLED:
        missing = [f for f in (settings.CERT_FILE, settings.KEY_FILE) if not Path(f).is_file()]
        if missing:
            logger.error(f"TLS enabled but certificate files are missing: {', '.join(missing)}")
            sys.exit(1)
        ssl_options = {"ssl_certfile": settings.CERT_FILE, "ssl_keyfile": settings.KEY_FILE}

    scheme = "https" if ssl_options else "http"
    logger.info(f"HTTP server starting on {scheme}://{settings.HOST}:{settings.PORT}")
    uvicorn.run(app, host=settings.HOST, port=settings.PORT, **ssl_options)


if __name__ == "__main__":
    run()
