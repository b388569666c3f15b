# arena_server/services/game_service.py
"""Core game logic: player lifecycle, player commands and the simulation step."""

import itertools
import logging
import random
import uuid
from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple

from arena_server.config.settings import (
    ARENA_HEIGHT,
    ARENA_WIDTH,
    HIT_RADIUS,
    MAX_HEALTH,
    PROJECTILE_SPEED,
    SPAWN_MAX_X,
    SPAWN_MAX_Y,
    SPAWN_MIN_X,
    SPAWN_MIN_Y,
    TICK_DT,
)
from arena_server.models.entities import Player, Projectile
from arena_server.services.world_store import WorldStore
from arena_server.utils.helpers import (
    calculate_distance,
    in_rect,
    random_color,
    velocity_from_angle,
)

logger = logging.getLogger(__name__)


@dataclass
class TickReport:
    """What happened during one simulation step."""

    removed: List[str] = field(default_factory=list)
    hits: List[Tuple[str, str]] = field(default_factory=list)  # (projectile, player)
    eliminated: List[str] = field(default_factory=list)


class GameService:
    """Main game service that applies every mutation to the world store."""

    def __init__(self, store: WorldStore, rng: Optional[random.Random] = None):
        self.store = store
        self.rng = rng or random.Random()
        self.tick_number = 0

        # ID generators
        self._projectile_ids = itertools.count(1)

    def _new_player_id(self) -> str:
        return str(uuid.uuid4())

    def _new_projectile_id(self) -> str:
        return f"projectile_{next(self._projectile_ids)}"

    # Session lifecycle
    def create_player(self, connection: Any = None) -> Player:
        """Create a new player with random position and color."""
        return Player(
            id=self._new_player_id(),
            x=float(self.rng.randint(SPAWN_MIN_X, SPAWN_MAX_X)),
            y=float(self.rng.randint(SPAWN_MIN_Y, SPAWN_MAX_Y)),
            color=random_color(rng=self.rng),
            hp=MAX_HEALTH,
            maxHp=MAX_HEALTH,
            angle=0.0,
            connection=connection,
        )

    async def spawn_player(self, connection: Any = None) -> Player:
        """Create a player and add it to the world."""
        player = self.create_player(connection)
        async with self.store.lock.writer():
            self.store.insert_player(player)
        logger.info(f"Player {player.id} connected")
        return player

    async def remove_player(self, player_id: str) -> Optional[Player]:
        """Remove a player from the world. Safe to call more than once."""
        async with self.store.lock.writer():
            player = self.store.remove_player(player_id)
        if player is not None:
            logger.info(f"Player {player_id} removed")
        return player

    # Commands
    async def move_player(self, player_id: str, x: float, y: float) -> None:
        async with self.store.lock.writer():
            self.store.update_position(player_id, x, y)

    async def shoot(self, player_id: str, angle: float) -> Optional[Projectile]:
        """
        Aim and fire from the player's position.

        Returns the new projectile, or None if the shooter is gone or dead.
        """
        async with self.store.lock.writer():
            shooter = self.store.players.get(player_id)
            if shooter is None or not shooter.alive:
                return None

            self.store.update_aim(player_id, angle)
            vel_x, vel_y = velocity_from_angle(angle, PROJECTILE_SPEED)
            projectile = Projectile(
                id=self._new_projectile_id(),
                x=shooter.x,
                y=shooter.y,
                velX=vel_x,
                velY=vel_y,
                ownerId=player_id,
                color=shooter.color,
            )
            self.store.insert_projectile(projectile)
            return projectile

    # Simulation
    async def step(self, dt: float = TICK_DT) -> TickReport:
        """Advance the world by one tick under the write lock."""
        async with self.store.lock.writer():
            report = self.advance(dt)
        self.tick_number += 1
        return report

    def advance(self, dt: float) -> TickReport:
        """
        Move every projectile, resolve hits and drop finished projectiles.

        Caller must hold the store's write lock. Each projectile is resolved
        at most once: it either leaves the arena or hits one player. When
        several players are in range the nearest is hit, ties going to the
        lowest player id.
        """
        report = TickReport()

        for projectile in self.store.projectiles.values():
            projectile.x += projectile.velX * dt
            projectile.y += projectile.velY * dt

            if not in_rect(projectile.x, projectile.y, ARENA_WIDTH, ARENA_HEIGHT):
                report.removed.append(projectile.id)
                continue

            target = self._find_target(projectile)
            if target is None:
                continue

            target.hp = max(0, target.hp - 1)
            report.hits.append((projectile.id, target.id))
            report.removed.append(projectile.id)
            if target.hp == 0:
                report.eliminated.append(target.id)
                logger.info(f"Player {target.id} was eliminated by {projectile.ownerId}!")

        for projectile_id in report.removed:
            self.store.remove_projectile(projectile_id)

        return report

    def _find_target(self, projectile: Projectile) -> Optional[Player]:
        candidates = []
        for player in self.store.players.values():
            if player.id == projectile.ownerId or not player.alive:
                continue
            distance = calculate_distance(projectile.x, projectile.y, player.x, player.y)
            if distance < HIT_RADIUS:
                candidates.append((distance, player.id, player))
        if not candidates:
            return None
        return min(candidates, key=lambda c: (c[0], c[1]))[2]

    # Read-only views
    async def get_all_players(self) -> List[dict]:
        """Get all players as public dictionaries."""
        snapshot = await self.store.snapshot()
        return [dict(p) for p in snapshot.players.values()]

    async def get_all_projectiles(self) -> List[dict]:
        """Get all projectiles as public dictionaries."""
        snapshot = await self.store.snapshot()
        return [dict(p) for p in snapshot.projectiles.values()]

    async def get_stats(self) -> dict:
        """Get world totals from one consistent read."""
        async with self.store.lock.reader():
            players = list(self.store.players.values())
            return {
                "totalPlayers": len(players),
                "alivePlayers": sum(1 for p in players if p.alive),
                "totalProjectiles": len(self.store.projectiles),
                "connections": sum(1 for p in players if p.connection is not None),
                "tickNumber": self.tick_number,
            }
