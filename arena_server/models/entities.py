# arena_server/models/entities.py
"""Game entity models and data classes."""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

PLAYER_PUBLIC_FIELDS = ("id", "x", "y", "color", "hp", "maxHp", "angle")
PROJECTILE_PUBLIC_FIELDS = ("id", "x", "y", "velX", "velY", "ownerId", "color")


@dataclass
class Player:
    """Represents a connected player's avatar."""

    id: str
    x: float
    y: float
    color: str
    hp: int
    maxHp: int
    angle: float = 0.0
    # Outbound channel for this player; never part of a broadcast payload
    connection: Optional[Any] = field(default=None, repr=False, compare=False)

    @property
    def alive(self) -> bool:
        return self.hp > 0

    def public(self) -> Dict[str, Any]:
        return {name: getattr(self, name) for name in PLAYER_PUBLIC_FIELDS}


@dataclass
class Projectile:
    """Represents a projectile in flight."""

    id: str
    x: float
    y: float
    velX: float
    velY: float
    ownerId: str  # Only used to skip self-hits
    color: str

    def public(self) -> Dict[str, Any]:
        return {name: getattr(self, name) for name in PROJECTILE_PUBLIC_FIELDS}


@dataclass(frozen=True)
class WorldSnapshot:
    """Immutable copy of the public world state for one broadcast."""

    players: Mapping[str, Mapping[str, Any]]
    projectiles: Mapping[str, Mapping[str, Any]]

    @classmethod
    def capture(cls, players, projectiles) -> "WorldSnapshot":
        """Copy the public fields of the given players and projectiles."""
        return cls(
            players=MappingProxyType(
                {pid: MappingProxyType(p.public()) for pid, p in players.items()}
            ),
            projectiles=MappingProxyType(
                {pid: MappingProxyType(p.public()) for pid, p in projectiles.items()}
            ),
        )

    def to_message(self) -> Dict[str, Any]:
        """Build the gameState envelope as plain, JSON-serializable dicts."""
        return {
            "type": "gameState",
            "data": {
                "players": {pid: dict(p) for pid, p in self.players.items()},
                "projectiles": {pid: dict(p) for pid, p in self.projectiles.items()},
            },
        }
