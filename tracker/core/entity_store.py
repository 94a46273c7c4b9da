from __future__ import annotations

import random

from tracker.core.entities import Entity, EntityKind
from tracker.core.errors import InvalidArgument
from tracker.core.turn_engine import TurnEngine


def roll_d20(rng: random.Random) -> int:
    """Return 1..20."""

    return rng.randint(1, 20)


def _require_name(name: str) -> str:
    cleaned = name.strip()
    if not cleaned:
        raise InvalidArgument("name must not be empty")
    return cleaned


def _require_tag(tag: str) -> str:
    cleaned = tag.strip()
    if not cleaned:
        raise InvalidArgument("tag must not be empty")
    return cleaned


class EntityStore:
    """Player/monster mutations for one session.

    Entries live in the TurnEngine; the store creates and edits them and hands
    structural changes (insert/delete) to the engine so the turn pointer is repaired
    in one place.

    Operations on an unknown id are no-ops and return False. Stale ids are expected
    when a delete races with another edit from a different connection.
    """

    def __init__(self, *, engine: TurnEngine, rng: random.Random | None = None) -> None:
        self.engine = engine
        self._rng = rng or random.Random()

    def add_player(self, *, name: str, initiative: int, bonus: int, owner_uid: str | None = None) -> Entity:
        entity = Entity(
            name=_require_name(name),
            kind=EntityKind.player,
            initiative=max(0, initiative),
            bonus=bonus,
            owner_uid=owner_uid,
        )
        self.engine.insert(entity)
        return entity

    def add_player_roll(self, *, name: str, bonus: int, owner_uid: str | None = None) -> Entity:
        return self.add_player(
            name=name,
            initiative=roll_d20(self._rng) + bonus,
            bonus=bonus,
            owner_uid=owner_uid,
        )

    def add_monster(self, *, name: str, hp: int, initiative: int, bonus: int) -> Entity:
        hp = max(0, hp)
        entity = Entity(
            name=_require_name(name),
            kind=EntityKind.monster,
            initiative=max(0, initiative),
            bonus=bonus,
            hp=hp,
            max_hp=hp,
        )
        self.engine.insert(entity)
        return entity

    def damage(self, entity_id: str, amount: int) -> bool:
        if amount <= 0:
            raise InvalidArgument("damage must be positive")

        entity = self.engine.get(entity_id)
        if entity is None or not entity.is_monster:
            return False

        new_hp = max(0, entity.hp - amount)
        if new_hp == entity.hp:
            return False
        entity.hp = new_hp
        return True

    def edit_hp(self, entity_id: str, hp: int, max_hp: int) -> bool:
        entity = self.engine.get(entity_id)
        if entity is None:
            return False

        max_hp = max(0, max_hp)
        hp = min(max(0, hp), max_hp)
        if (entity.hp, entity.max_hp) == (hp, max_hp):
            return False
        entity.hp = hp
        entity.max_hp = max_hp
        return True

    def add_tag(self, entity_id: str, tag: str) -> bool:
        tag = _require_tag(tag)
        entity = self.engine.get(entity_id)
        if entity is None or tag in entity.tags:
            return False
        entity.tags.append(tag)
        return True

    def remove_tag(self, entity_id: str, tag: str) -> bool:
        tag = _require_tag(tag)
        entity = self.engine.get(entity_id)
        if entity is None or tag not in entity.tags:
            return False
        entity.tags.remove(tag)
        return True

    def rename(self, entity_id: str, name: str) -> bool:
        name = _require_name(name)
        entity = self.engine.get(entity_id)
        if entity is None or entity.name == name:
            return False
        entity.name = name
        return True

    def delete(self, entity_id: str) -> bool:
        return self.engine.remove(entity_id) is not None
