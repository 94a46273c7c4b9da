from __future__ import annotations

from enum import StrEnum
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


class EntityKind(StrEnum):
    player = "player"
    monster = "monster"


def new_entity_id() -> str:
    return str(uuid4())


class Entity(BaseModel):
    # Wire format uses camelCase (maxHp, ownerUid); python code uses snake_case.
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=new_entity_id)
    name: str
    kind: EntityKind
    initiative: int = Field(0, ge=0)
    bonus: int = 0

    # Conditions ("poisoned", "stunned", ...). Unique; insertion order kept for stable rendering.
    tags: list[str] = Field(default_factory=list)

    # Only meaningful for monsters; players stay at 0/0 unless the host edits them.
    hp: int = Field(0, ge=0)
    max_hp: int = Field(0, ge=0, alias="maxHp")

    # uid of the connection that added a player entry.
    owner_uid: str | None = Field(None, alias="ownerUid")

    @property
    def is_monster(self) -> bool:
        return self.kind == EntityKind.monster

    def to_wire(self) -> dict[str, object]:
        return self.model_dump(mode="json", by_alias=True)
