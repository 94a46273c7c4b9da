from __future__ import annotations

import logging
from dataclasses import dataclass

from tracker.api.models import (
    AddEntityTagCommand,
    AddMonsterCommand,
    AddPlayerCommand,
    AddPlayerRollCommand,
    Command,
    DamageCommand,
    DeleteEntityCommand,
    EditEntityHpCommand,
    NextCommand,
    PingCommand,
    RemoveEntityTagCommand,
    RenameEntityCommand,
    ReorderCommand,
    ResetCommand,
    SortCommand,
    error_message,
    parse_command,
)
from tracker.commands.gate import GateContext, authorize
from tracker.core.errors import InvalidArgument, MalformedCommand, Unauthorized
from tracker.session import Connection, Session
from tracker.session_registry import SessionRegistry
from tracker.websocket_hub import SessionWebSocketHub


logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Outcome of one inbound frame.

    - `accepted`: passed parsing, the gate and argument validation.
    - `changed`: the session state mutated (and a snapshot was broadcast).
    """

    command: str | None
    accepted: bool
    changed: bool = False
    reason: str | None = None


def apply_command(*, session: Session, conn: Connection, cmd: Command) -> bool:
    """Apply an authorized command to the session. Returns True if state changed.

    Must be called with `session.lock` held.
    """

    store = session.store
    engine = session.engine

    if isinstance(cmd, AddPlayerCommand):
        store.add_player(
            name=cmd.data.name,
            initiative=cmd.data.initiative,
            bonus=cmd.data.bonus,
            owner_uid=conn.uid,
        )
        return True

    if isinstance(cmd, AddPlayerRollCommand):
        store.add_player_roll(name=cmd.data.name, bonus=cmd.data.bonus, owner_uid=conn.uid)
        return True

    if isinstance(cmd, AddMonsterCommand):
        store.add_monster(
            name=cmd.data.name,
            hp=cmd.data.hp,
            initiative=cmd.data.initiative,
            bonus=cmd.data.bonus,
        )
        return True

    if isinstance(cmd, DamageCommand):
        return store.damage(cmd.data.id, cmd.data.dmg)

    if isinstance(cmd, RenameEntityCommand):
        return store.rename(cmd.data.id, cmd.data.name)

    if isinstance(cmd, EditEntityHpCommand):
        return store.edit_hp(cmd.data.id, cmd.data.hp, cmd.data.max_hp)

    if isinstance(cmd, AddEntityTagCommand):
        return store.add_tag(cmd.data.id, cmd.data.tag)

    if isinstance(cmd, RemoveEntityTagCommand):
        return store.remove_tag(cmd.data.id, cmd.data.tag)

    if isinstance(cmd, DeleteEntityCommand):
        return store.delete(cmd.data.id)

    if isinstance(cmd, ReorderCommand):
        return engine.reorder(cmd.data.order)

    if isinstance(cmd, NextCommand):
        return engine.advance()

    if isinstance(cmd, ResetCommand):
        had_state = bool(engine.entries) or engine.round != 1 or engine.current_id is not None
        engine.reset()
        return had_state

    if isinstance(cmd, SortCommand):
        return engine.sort_by_initiative()

    raise ValueError(f"Unknown command: {cmd.type}")


class CommandRouter:
    """Single entry point for inbound frames.

    Handles one frame by:
    - parsing it into a typed command (malformed frames are dropped)
    - answering pings directly
    - running the authorization gate
    - applying the command under the session lock
    - broadcasting the new snapshot, still under the lock, so every connection sees
      snapshots in the order the mutations were applied
    """

    def __init__(self, *, registry: SessionRegistry, hub: SessionWebSocketHub, rejection_frames: bool = False) -> None:
        self.registry = registry
        self.hub = hub
        self.rejection_frames = rejection_frames

    async def _reject(self, conn: Connection, command: str | None, reason: str) -> CommandResult:
        logger.debug("dropped %s from %s in session %s: %s", command or "frame", conn.uid, conn.session_code, reason)
        if self.rejection_frames:
            await self.hub.send(conn, error_message(command=command, reason=reason))
        return CommandResult(command=command, accepted=False, reason=reason)

    async def handle(self, conn: Connection, raw: str | bytes) -> CommandResult:
        conn.touch()

        try:
            cmd = parse_command(raw)
        except MalformedCommand:
            return await self._reject(conn, None, "malformed command")

        session = self.registry.get(conn.session_code)
        if session is None or conn not in session.connections:
            # No pong either: a detached client must notice and reconnect.
            return CommandResult(command=cmd.type, accepted=False, reason="connection is not attached")

        if isinstance(cmd, PingCommand):
            await self.hub.send_pong(conn)
            return CommandResult(command=cmd.type, accepted=True)

        try:
            authorize(ctx=GateContext(session_code=session.code, uid=conn.uid, is_host=conn.is_host, command=cmd.type))
        except Unauthorized as e:
            return await self._reject(conn, cmd.type, str(e))

        async with session.lock:
            try:
                changed = apply_command(session=session, conn=conn, cmd=cmd)
            except InvalidArgument as e:
                return await self._reject(conn, cmd.type, str(e))

            if changed:
                await self.hub.broadcast_state(session)

        return CommandResult(command=cmd.type, accepted=True, changed=changed)
