from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable

from tracker.api.models import StateSnapshot, pong_message, state_message
from tracker.session import Connection, Session


logger = logging.getLogger(__name__)

DetachCallback = Callable[[Connection], Awaitable[None]]

# "Internal error": the server gave up on delivering to this client.
CLOSE_CODE_SEND_FAILED = 1011


async def close_connection(conn: Connection, *, code: int, timeout_s: float) -> None:
    """Best-effort close so the route loop ends and the client reconnects.

    Bounded: closing a half-open socket waits for a close reply that may never come.
    """

    try:
        await asyncio.wait_for(conn.websocket.close(code=code), timeout=timeout_s)
    except Exception as e:
        # Usually already closed underneath us.
        logger.debug("close failed for %s: %r", conn.uid, e)


def _hide_monster_hp(snapshot: StateSnapshot) -> StateSnapshot:
    entries = [
        e.model_copy(update={"hp": 0, "max_hp": 0}) if e.is_monster else e
        for e in snapshot.entries
    ]
    return snapshot.model_copy(update={"entries": entries})


class SessionWebSocketHub:
    """Fan-out of session snapshots to attached WebSocket connections.

    Contract:
      - `broadcast_state(session)` sends the full canonical snapshot to every
        connection attached to the session. Clients rebuild from it; there are no deltas.
      - every send is bounded by `send_timeout_s`; a failing connection is closed and handed
        to `on_dead` (normally `SessionRegistry.detach`) instead of stalling the session.

    The hub holds no connection state of its own; sessions own their connection sets.
    """

    def __init__(
        self,
        *,
        send_timeout_s: float = 5.0,
        hide_monster_hp: bool = False,
        on_dead: DetachCallback | None = None,
    ) -> None:
        self.send_timeout_s = send_timeout_s
        self.hide_monster_hp = hide_monster_hp
        self._on_dead = on_dead

    async def send(self, conn: Connection, payload: dict[str, object]) -> bool:
        try:
            await asyncio.wait_for(conn.websocket.send_json(payload), timeout=self.send_timeout_s)
        except Exception as e:
            logger.info("send to %s in session %s failed: %r", conn.uid, conn.session_code, e)
            await close_connection(conn, code=CLOSE_CODE_SEND_FAILED, timeout_s=self.send_timeout_s)
            if self._on_dead is not None:
                await self._on_dead(conn)
            return False
        return True

    def _payloads(self, snapshot: StateSnapshot) -> tuple[dict[str, object], dict[str, object]]:
        host_payload = state_message(snapshot)
        if not self.hide_monster_hp:
            return host_payload, host_payload
        return host_payload, state_message(_hide_monster_hp(snapshot))

    async def send_state(self, session: Session, conns: Iterable[Connection]) -> None:
        host_payload, player_payload = self._payloads(session.snapshot())
        for conn in list(conns):
            await self.send(conn, host_payload if conn.is_host else player_payload)

    async def broadcast_state(self, session: Session) -> None:
        # Copy: a failed send detaches and mutates the set while we iterate.
        conns = list(session.connections)
        if not conns:
            return
        await self.send_state(session, conns)

    async def send_pong(self, conn: Connection) -> bool:
        return await self.send(conn, pong_message())
