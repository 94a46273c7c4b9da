from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from tracker.core.entities import Entity
from tracker.core.errors import MalformedCommand


class _Data(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class EmptyData(_Data):
    pass


class AddPlayerData(_Data):
    name: str
    initiative: int
    bonus: int = 0


class AddPlayerRollData(_Data):
    name: str
    bonus: int = 0


class AddMonsterData(_Data):
    name: str
    hp: int
    initiative: int
    bonus: int = 0


class DamageData(_Data):
    id: str
    dmg: int


class RenameEntityData(_Data):
    id: str
    name: str


class EditEntityHpData(_Data):
    id: str
    hp: int
    max_hp: int = Field(..., alias="maxHp")


class EntityTagData(_Data):
    id: str
    tag: str


class EntityRefData(_Data):
    id: str


class ReorderData(_Data):
    order: list[str]


class PingCommand(BaseModel):
    type: Literal["ping"]
    data: EmptyData = Field(default_factory=EmptyData)


class AddPlayerCommand(BaseModel):
    type: Literal["addPlayer"]
    data: AddPlayerData


class AddPlayerRollCommand(BaseModel):
    type: Literal["addPlayerRoll"]
    data: AddPlayerRollData


class AddMonsterCommand(BaseModel):
    type: Literal["addMonster"]
    data: AddMonsterData


class DamageCommand(BaseModel):
    type: Literal["damage"]
    data: DamageData


class RenameEntityCommand(BaseModel):
    type: Literal["renameEntity"]
    data: RenameEntityData


class EditEntityHpCommand(BaseModel):
    type: Literal["editEntityHP"]
    data: EditEntityHpData


class AddEntityTagCommand(BaseModel):
    type: Literal["addEntityTag"]
    data: EntityTagData


class RemoveEntityTagCommand(BaseModel):
    type: Literal["removeEntityTag"]
    data: EntityTagData


class DeleteEntityCommand(BaseModel):
    type: Literal["deleteEntity"]
    data: EntityRefData


class ReorderCommand(BaseModel):
    type: Literal["reorder"]
    data: ReorderData


class NextCommand(BaseModel):
    type: Literal["next"]
    data: EmptyData = Field(default_factory=EmptyData)


class ResetCommand(BaseModel):
    type: Literal["reset"]
    data: EmptyData = Field(default_factory=EmptyData)


class SortCommand(BaseModel):
    type: Literal["sort"]
    data: EmptyData = Field(default_factory=EmptyData)


Command = Annotated[
    Union[
        PingCommand,
        AddPlayerCommand,
        AddPlayerRollCommand,
        AddMonsterCommand,
        DamageCommand,
        RenameEntityCommand,
        EditEntityHpCommand,
        AddEntityTagCommand,
        RemoveEntityTagCommand,
        DeleteEntityCommand,
        ReorderCommand,
        NextCommand,
        ResetCommand,
        SortCommand,
    ],
    Field(discriminator="type"),
]

_COMMAND_ADAPTER: TypeAdapter[Command] = TypeAdapter(Command)


def parse_command(raw: str | bytes) -> Command:
    """Parse one inbound `{type, data}` frame into its typed command.

    Raises MalformedCommand for bad JSON, unknown types and missing/ill-typed fields.
    """

    try:
        return _COMMAND_ADAPTER.validate_json(raw)
    except ValidationError as e:
        raise MalformedCommand(str(e)) from e


class StateSnapshot(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    code: str
    round: int
    turn: int
    entries: list[Entity]
    dm_uid: str = Field(..., alias="dmUid")


def state_message(snapshot: StateSnapshot) -> dict[str, object]:
    return {"type": "state", "data": snapshot.model_dump(mode="json", by_alias=True)}


def pong_message() -> dict[str, object]:
    return {"type": "pong", "data": {}}


def error_message(*, command: str | None, reason: str) -> dict[str, object]:
    return {"type": "error", "data": {"command": command, "reason": reason}}
