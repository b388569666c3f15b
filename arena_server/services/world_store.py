# arena_server/services/world_store.py
"""Shared world state: every connected player and every projectile in flight."""

from typing import Dict, List, Optional, Tuple

from arena_server.config.settings import ARENA_HEIGHT, ARENA_MARGIN, ARENA_WIDTH
from arena_server.models.entities import Player, Projectile, WorldSnapshot
from arena_server.utils.helpers import within
from arena_server.utils.rwlock import ReadWriteLock


class DuplicateIdentity(Exception):
    """Raised when inserting an entity whose id is already in the store."""


class WorldStore:
    """
    Canonical mapping of ids to players and projectiles.

    Mutators are plain methods and assume the caller holds ``lock.writer()``.
    Snapshots are taken under ``lock.reader()``.
    """

    def __init__(self) -> None:
        self.players: Dict[str, Player] = {}
        self.projectiles: Dict[str, Projectile] = {}
        self.lock = ReadWriteLock()

    # Players
    def insert_player(self, player: Player) -> None:
        if player.id in self.players:
            raise DuplicateIdentity(f"player {player.id} already exists")
        self.players[player.id] = player

    def remove_player(self, player_id: str) -> Optional[Player]:
        return self.players.pop(player_id, None)

    def update_position(self, player_id: str, x: float, y: float) -> None:
        """Move a player; an axis outside the movement bounds is left unchanged."""
        player = self.players.get(player_id)
        if player is None:
            return
        if within(x, ARENA_MARGIN, ARENA_WIDTH - ARENA_MARGIN):
            player.x = x
        if within(y, ARENA_MARGIN, ARENA_HEIGHT - ARENA_MARGIN):
            player.y = y

    def update_aim(self, player_id: str, angle: float) -> None:
        player = self.players.get(player_id)
        if player is not None:
            player.angle = angle

    # Projectiles
    def insert_projectile(self, projectile: Projectile) -> None:
        if projectile.id in self.projectiles:
            raise DuplicateIdentity(f"projectile {projectile.id} already exists")
        self.projectiles[projectile.id] = projectile

    def remove_projectile(self, projectile_id: str) -> Optional[Projectile]:
        return self.projectiles.pop(projectile_id, None)

    # Snapshots
    def build_snapshot(self) -> WorldSnapshot:
        """Copy the public world state. Caller must hold the lock."""
        return WorldSnapshot.capture(self.players, self.projectiles)

    async def snapshot(self) -> WorldSnapshot:
        async with self.lock.reader():
            return self.build_snapshot()

    async def snapshot_with_recipients(self) -> Tuple[WorldSnapshot, List]:
        """Snapshot plus the connections to deliver it to, from one read."""
        async with self.lock.reader():
            recipients = [
                p.connection for p in self.players.values() if p.connection is not None
            ]
            return self.build_snapshot(), recipients
