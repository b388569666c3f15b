"""Tests for the shared world store."""

import asyncio

import pytest

from arena_server.services.world_store import DuplicateIdentity, WorldStore

from conftest import make_player, make_projectile


def test_insert_duplicate_player_raises(store: WorldStore) -> None:
    store.insert_player(make_player("p1"))
    with pytest.raises(DuplicateIdentity):
        store.insert_player(make_player("p1"))


def test_insert_duplicate_projectile_raises(store: WorldStore) -> None:
    store.insert_projectile(make_projectile("b1"))
    with pytest.raises(DuplicateIdentity):
        store.insert_projectile(make_projectile("b1"))


def test_remove_is_idempotent(store: WorldStore) -> None:
    store.insert_player(make_player("p1"))
    store.insert_projectile(make_projectile("b1"))

    assert store.remove_player("p1") is not None
    assert store.remove_player("p1") is None
    assert store.remove_player("never-existed") is None
    assert store.remove_projectile("b1") is not None
    assert store.remove_projectile("b1") is None


@pytest.mark.parametrize("x,y", [(10, 10), (790, 590), (123.5, 456.25), (400, 300)])
def test_move_in_range_is_exact(store: WorldStore, x, y) -> None:
    store.insert_player(make_player("p1", x=50, y=50))
    store.update_position("p1", x, y)
    player = store.players["p1"]
    assert (player.x, player.y) == (x, y)


def test_move_rejects_out_of_range_axis_only(store: WorldStore) -> None:
    store.insert_player(make_player("p1", x=400, y=300))

    store.update_position("p1", 5, 300)
    assert store.players["p1"].x == 400

    store.update_position("p1", 800, 250)
    assert store.players["p1"].x == 400
    assert store.players["p1"].y == 250

    store.update_position("p1", 500, 595)
    assert store.players["p1"].x == 500
    assert store.players["p1"].y == 250

    store.update_position("p1", -1, -1)
    assert (store.players["p1"].x, store.players["p1"].y) == (500, 250)


def test_aim_is_stored_raw(store: WorldStore) -> None:
    store.insert_player(make_player("p1"))
    store.update_aim("p1", 7.5)
    assert store.players["p1"].angle == 7.5


def test_updates_on_absent_player_are_noops(store: WorldStore) -> None:
    store.update_position("ghost", 100, 100)
    store.update_aim("ghost", 1.0)
    assert store.players == {}


def test_snapshot_copies_public_fields_only(store: WorldStore) -> None:
    store.insert_player(make_player("p1", connection=object()))
    store.insert_projectile(make_projectile("b1"))

    snapshot = store.build_snapshot()

    assert set(snapshot.players["p1"]) == {"id", "x", "y", "color", "hp", "maxHp", "angle"}
    assert set(snapshot.projectiles["b1"]) == {
        "id", "x", "y", "velX", "velY", "ownerId", "color",
    }
    with pytest.raises(TypeError):
        snapshot.players["p2"] = {}
    with pytest.raises(TypeError):
        snapshot.players["p1"]["hp"] = 0

    store.players["p1"].x = 10
    store.remove_projectile("b1")
    assert snapshot.players["p1"]["x"] == 400
    assert "b1" in snapshot.projectiles


def test_snapshot_message_shape(store: WorldStore) -> None:
    store.insert_player(make_player("p1"))
    message = store.build_snapshot().to_message()

    assert message["type"] == "gameState"
    assert message["data"]["players"]["p1"]["maxHp"] == 5
    assert message["data"]["projectiles"] == {}


@pytest.mark.asyncio
async def test_snapshot_with_recipients_skips_unconnected(store: WorldStore) -> None:
    marker = object()
    store.insert_player(make_player("p1", connection=marker))
    store.insert_player(make_player("p2"))

    snapshot, recipients = await store.snapshot_with_recipients()

    assert set(snapshot.players) == {"p1", "p2"}
    assert recipients == [marker]


@pytest.mark.asyncio
async def test_snapshot_waits_for_writer(store: WorldStore) -> None:
    store.insert_player(make_player("p1", x=100))

    async with store.lock.writer():
        pending = asyncio.create_task(store.snapshot())
        await asyncio.sleep(0.01)
        assert not pending.done()
        store.update_position("p1", 200, 300)
        store.insert_projectile(make_projectile("b1"))

    snapshot = await pending
    assert snapshot.players["p1"]["x"] == 200
    assert "b1" in snapshot.projectiles
