from __future__ import annotations

import time

import pytest

from tracker.session_registry import SessionRegistry
from tracker.websocket_hub import CLOSE_CODE_SEND_FAILED, SessionWebSocketHub


@pytest.mark.asyncio
async def test_hide_monster_hp_only_for_participants(fake_ws) -> None:  # type: ignore[no-untyped-def]
    registry = SessionRegistry()
    dm_ws, player_ws = fake_ws(), fake_ws()
    session, _ = await registry.attach(code="ROOM1", uid="dm", websocket=dm_ws)
    await registry.attach(code="ROOM1", uid="p1", websocket=player_ws)
    session.store.add_monster(name="Ogre", hp=30, initiative=9, bonus=0)
    session.store.add_player(name="Aria", initiative=12, bonus=0)
    session.store.edit_hp(session.engine.entries[1].id, 20, 25)

    hub = SessionWebSocketHub(hide_monster_hp=True)
    await hub.broadcast_state(session)

    dm_entries = dm_ws.last_state()["entries"]
    player_entries = player_ws.last_state()["entries"]
    assert (dm_entries[0]["hp"], dm_entries[0]["maxHp"]) == (30, 30)
    assert (player_entries[0]["hp"], player_entries[0]["maxHp"]) == (0, 0)
    # Player records are not hidden.
    assert (player_entries[1]["hp"], player_entries[1]["maxHp"]) == (20, 25)
    # The live session is untouched.
    assert session.engine.entries[0].hp == 30


@pytest.mark.asyncio
async def test_broadcast_sends_same_snapshot_to_all_by_default(fake_ws) -> None:  # type: ignore[no-untyped-def]
    registry = SessionRegistry()
    dm_ws, player_ws = fake_ws(), fake_ws()
    session, _ = await registry.attach(code="ROOM1", uid="dm", websocket=dm_ws)
    await registry.attach(code="ROOM1", uid="p1", websocket=player_ws)
    session.store.add_monster(name="Ogre", hp=30, initiative=9, bonus=0)

    await SessionWebSocketHub().broadcast_state(session)

    assert dm_ws.sent == player_ws.sent
    assert player_ws.last_state()["entries"][0]["hp"] == 30


@pytest.mark.asyncio
async def test_failed_send_invokes_detach_callback(fake_ws) -> None:  # type: ignore[no-untyped-def]
    registry = SessionRegistry()
    session, conn = await registry.attach(code="ROOM1", uid="dm", websocket=fake_ws(fail=True))
    hub = SessionWebSocketHub(on_dead=registry.detach)

    ok = await hub.send_pong(conn)

    assert ok is False
    assert conn not in session.connections
    assert conn.websocket.closed_with == CLOSE_CODE_SEND_FAILED


@pytest.mark.asyncio
async def test_slow_connection_is_dropped_without_stalling_broadcast(fake_ws) -> None:  # type: ignore[no-untyped-def]
    registry = SessionRegistry()
    dm_ws, slow_ws = fake_ws(), fake_ws(delay=0.5)
    session, dm = await registry.attach(code="ROOM1", uid="dm", websocket=dm_ws)
    _, slow = await registry.attach(code="ROOM1", uid="p1", websocket=slow_ws)
    session.store.add_player(name="Aria", initiative=12, bonus=0)
    hub = SessionWebSocketHub(send_timeout_s=0.05, on_dead=registry.detach)

    started = time.monotonic()
    await hub.broadcast_state(session)
    elapsed = time.monotonic() - started

    assert elapsed < 0.4
    assert dm_ws.last_state()["entries"][0]["name"] == "Aria"
    assert slow_ws.sent == []
    assert slow_ws.closed_with == CLOSE_CODE_SEND_FAILED
    assert slow not in session.connections
    assert dm in session.connections


@pytest.mark.asyncio
async def test_hanging_close_does_not_stall_failed_send(fake_ws) -> None:  # type: ignore[no-untyped-def]
    registry = SessionRegistry()
    session, conn = await registry.attach(code="ROOM1", uid="dm", websocket=fake_ws(fail=True, close_delay=5.0))
    hub = SessionWebSocketHub(send_timeout_s=0.05, on_dead=registry.detach)

    started = time.monotonic()
    ok = await hub.send_pong(conn)

    assert ok is False
    assert time.monotonic() - started < 1.0
    assert conn not in session.connections
