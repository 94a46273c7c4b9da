from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from tracker.core.errors import Unauthorized


OPEN_COMMANDS: frozenset[str] = frozenset({"ping", "addPlayer", "addPlayerRoll"})

HOST_COMMANDS: frozenset[str] = frozenset(
    {
        "addMonster",
        "damage",
        "renameEntity",
        "editEntityHP",
        "addEntityTag",
        "removeEntityTag",
        "deleteEntity",
        "reorder",
        "next",
        "reset",
        "sort",
    }
)


@dataclass(frozen=True, slots=True)
class GateContext:
    """Inputs available to validators.

    Keep this tight and serializable-ish so we can safely log it.
    """

    session_code: str
    uid: str
    is_host: bool
    command: str


class CommandValidator(ABC):
    """A small, composable authorization unit for an inbound command."""

    @abstractmethod
    def validate(self, *, ctx: GateContext) -> None:
        raise NotImplementedError


@dataclass(frozen=True, slots=True)
class HostOnlyValidator(CommandValidator):
    def validate(self, *, ctx: GateContext) -> None:
        if not ctx.is_host:
            raise Unauthorized(f"Command '{ctx.command}' requires the session host")


@dataclass(frozen=True, slots=True)
class ValidatorPipeline:
    validators: tuple[CommandValidator, ...]

    def validate(self, *, ctx: GateContext) -> None:
        for v in self.validators:
            v.validate(ctx=ctx)


# Open commands only need an attached connection, which the router already guarantees.
_OPEN_PIPELINE = ValidatorPipeline(validators=())
_HOST_PIPELINE = ValidatorPipeline(validators=(HostOnlyValidator(),))

COMMAND_PIPELINES: dict[str, ValidatorPipeline] = {
    **{name: _OPEN_PIPELINE for name in OPEN_COMMANDS},
    **{name: _HOST_PIPELINE for name in HOST_COMMANDS},
}


def pipeline_for_command(command: str) -> ValidatorPipeline:
    pipe = COMMAND_PIPELINES.get(command)
    if pipe is None:
        raise ValueError(f"Unknown command: {command}")
    return pipe


def authorize(*, ctx: GateContext) -> None:
    pipeline_for_command(ctx.command).validate(ctx=ctx)
