# arena_server/services/websocket_service.py
"""WebSocket connection management and message handling."""

import asyncio
import logging
from typing import Any, Optional

from arena_server.config.settings import SEND_TIMEOUT, TICK_DT, TICK_INTERVAL_MS
from arena_server.models.protocol import (
    Command,
    MoveCommand,
    ShootCommand,
    decode_command,
    encode_message,
    welcome_message,
)
from .broadcast_service import BroadcastService, ClientConnection
from .game_service import GameService

logger = logging.getLogger(__name__)


class WebSocketService:
    """Runs one session per connected client plus the simulation loop."""

    def __init__(self, game_service: GameService, broadcaster: BroadcastService):
        self.game_service = game_service
        self.broadcaster = broadcaster
        self._tick_task: Optional[asyncio.Task] = None

    # Simulation loop
    @property
    def is_running(self) -> bool:
        return self._tick_task is not None and not self._tick_task.done()

    def start_background_tasks(self):
        """Start the simulation tick loop."""
        if not self._tick_task:
            self._tick_task = asyncio.create_task(self._simulation_loop())
            logger.info(f"Simulation loop started (interval: {TICK_INTERVAL_MS}ms)")

    async def stop_background_tasks(self):
        """Stop the simulation loop and flush pending deliveries."""
        if self._tick_task is None:
            return
        self._tick_task.cancel()
        try:
            await self._tick_task
        except asyncio.CancelledError:
            pass
        self._tick_task = None
        await self.broadcaster.drain(timeout=2 * SEND_TIMEOUT)
        logger.info("Simulation loop stopped")

    async def _simulation_loop(self):
        """Step the world on a fixed period and broadcast after each step."""
        loop = asyncio.get_running_loop()
        interval = TICK_INTERVAL_MS / 1000

        while True:
            started = loop.time()
            try:
                await self.game_service.step(TICK_DT)
                await self.broadcaster.broadcast()
            except Exception:
                # Skipped, never replayed
                logger.exception(f"Tick {self.game_service.tick_number} failed")
            elapsed = loop.time() - started
            await asyncio.sleep(max(0.0, interval - elapsed))

    # Sessions
    async def handle_connection(self, channel: Any):
        """Run a client session from establishment until its channel fails."""
        connection = ClientConnection(channel)

        # Hold the send lock so no broadcast reaches the client before its welcome
        async with connection.send_lock:
            player = await self.game_service.spawn_player(connection)
            connection.player_id = player.id
            try:
                await connection.send_text_locked(encode_message(welcome_message(player.id)))
            except Exception as e:
                logger.warning(f"Error sending welcome to player {player.id}: {e}")

        try:
            await self.broadcaster.broadcast()
            await self._handle_client_messages(connection, player.id)
        finally:
            await self._handle_disconnect(connection, player.id)

    async def _handle_client_messages(self, connection: ClientConnection, player_id: str):
        """Read and apply commands until the channel fails."""
        while True:
            try:
                raw = await connection.receive_frame()
                command = decode_command(raw)
            except Exception as e:
                logger.info(f"Player {player_id} disconnected: {e!r}")
                return
            await self._process_command(player_id, command)

    async def _process_command(self, player_id: str, command: Command) -> None:
        """Apply a single decoded command."""
        if isinstance(command, MoveCommand):
            await self.game_service.move_player(player_id, command.x, command.y)
            await self.broadcaster.broadcast()
        elif isinstance(command, ShootCommand):
            projectile = await self.game_service.shoot(player_id, command.angle)
            if projectile is not None:
                await self.broadcaster.broadcast()
        # Unknown command types are ignored

    async def _handle_disconnect(self, connection: ClientConnection, player_id: str):
        """Remove the player, announce the departure and release the channel."""
        await self.game_service.remove_player(player_id)
        try:
            await self.broadcaster.broadcast()
        finally:
            await connection.close()
