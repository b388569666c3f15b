"""
Pytest fixtures for arena server tests.
"""

import asyncio
import json
import random

import pytest

from arena_server.models.entities import Player, Projectile
from arena_server.services.broadcast_service import BroadcastService, ClientConnection
from arena_server.services.game_service import GameService
from arena_server.services.websocket_service import WebSocketService
from arena_server.services.world_store import WorldStore


class FakeChannel:
    """In-memory stand-in for a WebSocket."""

    def __init__(self, fail_sends: bool = False, send_delay: float = 0.0):
        self.inbound: asyncio.Queue = asyncio.Queue()
        self.sent: list = []
        self.closed = False
        self.fail_sends = fail_sends
        self.send_delay = send_delay
        self.in_send = False
        self.overlapped = False

    async def receive(self) -> dict:
        item = await self.inbound.get()
        if isinstance(item, BaseException):
            raise item
        return item

    async def send_text(self, payload: str) -> None:
        if self.in_send:
            self.overlapped = True
        self.in_send = True
        try:
            if self.send_delay:
                await asyncio.sleep(self.send_delay)
            if self.fail_sends:
                raise ConnectionResetError("connection reset by peer")
            self.sent.append(json.loads(payload))
        finally:
            self.in_send = False

    async def close(self) -> None:
        self.closed = True

    # Test helpers
    def push(self, message_type, data) -> None:
        self.push_raw(json.dumps({"type": message_type, "data": data}))

    def push_raw(self, raw: str) -> None:
        self.inbound.put_nowait({"type": "websocket.receive", "text": raw})

    def push_bytes(self, raw: bytes) -> None:
        self.inbound.put_nowait({"type": "websocket.receive", "bytes": raw})

    def disconnect(self, code: int = 1000) -> None:
        self.inbound.put_nowait({"type": "websocket.disconnect", "code": code})

    def fail_reads(self) -> None:
        self.inbound.put_nowait(ConnectionResetError("connection closed"))

    def of_type(self, message_type: str) -> list:
        return [m for m in self.sent if m["type"] == message_type]

    @property
    def last_state(self) -> dict:
        return self.of_type("gameState")[-1]["data"]


def make_player(player_id="p1", x=400.0, y=300.0, hp=5, connection=None) -> Player:
    return Player(
        id=player_id, x=x, y=y, color="#FF0000", hp=hp, maxHp=5, connection=connection
    )


def make_projectile(projectile_id="b1", x=400.0, y=300.0, vel_x=200.0, vel_y=0.0, owner="p1"):
    return Projectile(
        id=projectile_id, x=x, y=y, velX=vel_x, velY=vel_y, ownerId=owner, color="#FF0000"
    )


async def settle(broadcaster: BroadcastService, delay: float = 0.01) -> None:
    """Let session tasks run, then wait for their deliveries."""
    await asyncio.sleep(delay)
    await broadcaster.drain()
    await asyncio.sleep(delay)
    await broadcaster.drain()


@pytest.fixture
def store() -> WorldStore:
    return WorldStore()


@pytest.fixture
def game(store: WorldStore) -> GameService:
    return GameService(store, rng=random.Random(1234))


@pytest.fixture
def broadcaster(store: WorldStore) -> BroadcastService:
    return BroadcastService(store)


@pytest.fixture
def service(game: GameService, broadcaster: BroadcastService) -> WebSocketService:
    return WebSocketService(game, broadcaster)


@pytest.fixture
def connected():
    """Factory for a player wired to a fake channel."""

    def _connected(player_id, x=400.0, y=300.0, hp=5, **channel_kwargs):
        channel = FakeChannel(**channel_kwargs)
        connection = ClientConnection(channel, send_timeout=0.2)
        connection.player_id = player_id
        return make_player(player_id, x, y, hp, connection=connection), channel

    return _connected
