from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

from tracker.session_registry import SessionRegistry
from tracker.websocket_hub import close_connection


logger = logging.getLogger(__name__)

# "Going away": the server stopped hearing pings from this client.
CLOSE_CODE_SILENT = 1001


@dataclass(frozen=True, slots=True)
class SweepResult:
    evicted: list[str] = field(default_factory=list)
    reclaimed: list[str] = field(default_factory=list)


async def sweep_once(
    *,
    registry: SessionRegistry,
    max_silence_s: float,
    close_timeout_s: float = 5.0,
    now: float | None = None,
) -> SweepResult:
    """Evict half-open connections, then reclaim sessions that stayed empty too long."""

    evicted: list[str] = []
    for conn in registry.stale_connections(max_silence_s=max_silence_s, now=now):
        logger.info("evicting silent connection %s from session %s", conn.uid, conn.session_code)
        await close_connection(conn, code=CLOSE_CODE_SILENT, timeout_s=close_timeout_s)
        await registry.detach(conn)
        evicted.append(conn.uid)

    reclaimed = await registry.reclaim_idle(now=now)
    return SweepResult(evicted=evicted, reclaimed=reclaimed)


async def keepalive_loop(
    *,
    registry: SessionRegistry,
    interval_s: float,
    max_silence_s: float,
    close_timeout_s: float = 5.0,
) -> None:
    while True:
        await asyncio.sleep(interval_s)
        try:
            await sweep_once(registry=registry, max_silence_s=max_silence_s, close_timeout_s=close_timeout_s)
        except Exception:
            logger.exception("keepalive sweep failed")
