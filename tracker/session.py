from __future__ import annotations

import asyncio
import random
import time
from dataclasses import dataclass, field
from datetime import UTC, datetime

from fastapi import WebSocket

from tracker.api.models import StateSnapshot
from tracker.core.entity_store import EntityStore
from tracker.core.turn_engine import TurnEngine
from tracker.fsm import SessionLifecycle


def _now() -> datetime:
    return datetime.now(tz=UTC)


@dataclass(eq=False, slots=True)
class Connection:
    websocket: WebSocket
    session_code: str
    uid: str
    is_host: bool
    # Monotonic seconds; refreshed by pings and any other inbound frame.
    last_seen_at: float = field(default_factory=time.monotonic)

    def touch(self, now: float | None = None) -> None:
        self.last_seen_at = time.monotonic() if now is None else now


@dataclass(eq=False, slots=True)
class Session:
    """One live encounter: turn order, entities and the attached connections.

    Only the command router mutates `engine`/`store`, and only while holding `lock`.
    """

    code: str
    host_id: str
    engine: TurnEngine
    store: EntityStore
    created_at: datetime = field(default_factory=_now)
    connections: set[Connection] = field(default_factory=set)
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    lifecycle: SessionLifecycle = field(default_factory=SessionLifecycle)
    parked_at: float | None = None

    @classmethod
    def create(cls, *, code: str, host_id: str, rng: random.Random | None = None) -> "Session":
        engine = TurnEngine()
        return cls(code=code, host_id=host_id, engine=engine, store=EntityStore(engine=engine, rng=rng))

    def is_host(self, uid: str) -> bool:
        return bool(self.host_id) and uid == self.host_id

    def add_connection(self, conn: Connection) -> None:
        self.connections.add(conn)
        if self.lifecycle.is_parked:
            self.lifecycle.resume()
            self.parked_at = None

    def remove_connection(self, conn: Connection, *, now: float | None = None) -> bool:
        """Detach `conn`; returns True if this parked the session."""

        self.connections.discard(conn)
        if self.connections or self.lifecycle.is_parked or self.lifecycle.is_closed:
            return False
        self.lifecycle.park()
        self.parked_at = time.monotonic() if now is None else now
        return True

    def snapshot(self) -> StateSnapshot:
        return StateSnapshot(
            code=self.code,
            round=self.engine.round,
            turn=self.engine.turn_index,
            entries=[e.model_copy(deep=True) for e in self.engine.entries],
            dm_uid=self.host_id,
        )
