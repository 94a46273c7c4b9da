from __future__ import annotations

import json

import pytest

from tracker.api.models import (
    AddMonsterCommand,
    EditEntityHpCommand,
    NextCommand,
    PingCommand,
    ReorderCommand,
    StateSnapshot,
    parse_command,
    state_message,
)
from tracker.core.entities import Entity, EntityKind
from tracker.core.errors import MalformedCommand


def test_parse_typed_commands() -> None:
    cmd = parse_command(json.dumps({"type": "addMonster", "data": {"name": "Ogre", "hp": 30, "initiative": 9, "bonus": 1}}))
    assert isinstance(cmd, AddMonsterCommand)
    assert cmd.data.hp == 30

    cmd = parse_command(json.dumps({"type": "editEntityHP", "data": {"id": "x", "hp": 5, "maxHp": 9}}))
    assert isinstance(cmd, EditEntityHpCommand)
    assert cmd.data.max_hp == 9

    cmd = parse_command(json.dumps({"type": "reorder", "data": {"order": ["b", "a"]}}))
    assert isinstance(cmd, ReorderCommand)
    assert cmd.data.order == ["b", "a"]


def test_data_is_optional_for_argumentless_commands() -> None:
    assert isinstance(parse_command('{"type": "ping"}'), PingCommand)
    assert isinstance(parse_command('{"type": "next", "data": {}}'), NextCommand)


def test_numeric_strings_from_form_inputs_are_accepted() -> None:
    cmd = parse_command(json.dumps({"type": "damage", "data": {"id": "m1", "dmg": "7"}}))
    assert cmd.data.dmg == 7  # type: ignore[union-attr]


@pytest.mark.parametrize(
    "raw",
    [
        "not json",
        "[]",
        "{}",
        '{"type": "fireball", "data": {}}',
        '{"type": "damage", "data": {"id": "m1"}}',
        '{"type": "damage", "data": {"id": "m1", "dmg": "lots"}}',
        '{"type": "addPlayer", "data": {"initiative": 3}}',
        '{"type": "reorder", "data": {"order": "a,b"}}',
    ],
)
def test_malformed_frames_rejected_at_boundary(raw: str) -> None:
    with pytest.raises(MalformedCommand):
        parse_command(raw)


def test_state_message_uses_wire_names() -> None:
    snap = StateSnapshot(
        code="ABCDE",
        round=2,
        turn=1,
        entries=[Entity(id="m1", name="Ogre", kind=EntityKind.monster, initiative=9, hp=3, max_hp=10)],
        dm_uid="dm",
    )

    msg = state_message(snap)

    assert msg["type"] == "state"
    data = msg["data"]
    assert data["dmUid"] == "dm"  # type: ignore[index]
    entry = data["entries"][0]  # type: ignore[index]
    assert entry["maxHp"] == 10
    assert entry["kind"] == "monster"
    assert entry["ownerUid"] is None
