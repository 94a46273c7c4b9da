from __future__ import annotations

import asyncio
import logging
import random
import time

from fastapi import WebSocket

from tracker.session import Connection, Session


logger = logging.getLogger(__name__)


class SessionRegistry:
    """In-process map of session code -> live Session aggregate.

    - `attach` creates the session on first use; its creator's uid becomes the host.
    - `detach` parks a session when its last connection leaves.
    - `reclaim_idle` drops sessions that stayed parked for `idle_ttl_s`.

    The registry lock only guards the map and connection membership; session state is
    mutated under each session's own lock by the command router.
    """

    def __init__(self, *, idle_ttl_s: float = 600.0, rng: random.Random | None = None) -> None:
        self.idle_ttl_s = idle_ttl_s
        self._rng = rng
        self._sessions: dict[str, Session] = {}
        self._lock = asyncio.Lock()

    def get(self, code: str) -> Session | None:
        return self._sessions.get(code)

    def codes(self) -> list[str]:
        return sorted(self._sessions)

    def __len__(self) -> int:
        return len(self._sessions)

    async def attach(self, *, code: str, uid: str, websocket: WebSocket) -> tuple[Session, Connection]:
        async with self._lock:
            session = self._sessions.get(code)
            if session is None:
                session = Session.create(code=code, host_id=uid, rng=self._rng)
                self._sessions[code] = session
                logger.info("session %s created (host=%s)", code, uid)

            conn = Connection(websocket=websocket, session_code=code, uid=uid, is_host=session.is_host(uid))
            session.add_connection(conn)

        logger.info(
            "connection %s attached to session %s (host=%s, connections=%d)",
            uid,
            code,
            conn.is_host,
            len(session.connections),
        )
        return session, conn

    async def detach(self, conn: Connection) -> None:
        """Remove a connection. Safe to call more than once for the same connection."""

        async with self._lock:
            session = self._sessions.get(conn.session_code)
            if session is None or conn not in session.connections:
                return

            parked = session.remove_connection(conn)
            logger.info("connection %s detached from session %s", conn.uid, session.code)

            if parked:
                logger.info("session %s parked", session.code)
                if self.idle_ttl_s <= 0:
                    self._reclaim(session)

    def _reclaim(self, session: Session) -> None:
        session.lifecycle.close()
        self._sessions.pop(session.code, None)
        logger.info("session %s reclaimed", session.code)

    async def reclaim_idle(self, *, now: float | None = None) -> list[str]:
        now = time.monotonic() if now is None else now
        reclaimed: list[str] = []
        async with self._lock:
            for session in list(self._sessions.values()):
                if not session.lifecycle.is_parked or session.parked_at is None:
                    continue
                if now - session.parked_at >= self.idle_ttl_s:
                    self._reclaim(session)
                    reclaimed.append(session.code)
        return reclaimed

    def stale_connections(self, *, max_silence_s: float, now: float | None = None) -> list[Connection]:
        now = time.monotonic() if now is None else now
        return [
            conn
            for session in list(self._sessions.values())
            for conn in list(session.connections)
            if now - conn.last_seen_at > max_silence_s
        ]
