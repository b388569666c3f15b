# arena_server/api/routes.py
"""API routes for the game server."""

from fastapi import APIRouter

from arena_server.config.settings import get_game_config
from arena_server.services.game_service import GameService
from arena_server.services.websocket_service import WebSocketService


class GameAPI:
    """API routes for game-related endpoints."""

    def __init__(self, game_service: GameService, websocket_service: WebSocketService):
        self.game_service = game_service
        self.websocket_service = websocket_service
        self.router = APIRouter()
        self._setup_routes()

    def _setup_routes(self):
        """Set up all API routes."""

        @self.router.get("/health")
        async def health_check():
            """Health check endpoint."""
            return {
                "status": "healthy",
                "tick_loop_running": self.websocket_service.is_running,
                "tick_number": self.game_service.tick_number,
            }

        @self.router.get("/api/game/config")
        async def get_game_config_endpoint():
            """Get arena size, health, projectile and tick settings."""
            return get_game_config()

        @self.router.get("/api/game/players")
        async def get_players():
            """Get all current players."""
            return {"players": await self.game_service.get_all_players()}

        @self.router.get("/api/game/projectiles")
        async def get_projectiles():
            """Get all projectiles in flight."""
            return {"projectiles": await self.game_service.get_all_projectiles()}

        @self.router.get("/api/game/stats")
        async def get_game_stats():
            """Get game statistics."""
            return await self.game_service.get_stats()
