from __future__ import annotations

import asyncio
import contextlib
import logging

from fastapi import FastAPI

from tracker.api.deps import get_registry
from tracker.api.routes import router
from tracker.config import get_settings
from tracker.keepalive import keepalive_loop

settings = get_settings()

app = FastAPI(title="initiative-tracker", version="0.1.0")
app.include_router(router)
# Configure logging
logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

_keepalive_task: asyncio.Task[None] | None = None


@app.on_event("startup")
async def _startup() -> None:
    global _keepalive_task
    s = get_settings()
    _keepalive_task = asyncio.create_task(
        keepalive_loop(
            registry=get_registry(),
            interval_s=s.ping_interval_s,
            max_silence_s=s.max_silence_s,
            close_timeout_s=s.send_timeout_s,
        )
    )
    logger.info("keepalive sweeper started (interval=%ss, max silence=%ss)", s.ping_interval_s, s.max_silence_s)


@app.on_event("shutdown")
async def _shutdown() -> None:
    global _keepalive_task
    if _keepalive_task is None:
        return
    _keepalive_task.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await _keepalive_task
    _keepalive_task = None


@app.get("/info")
async def info() -> dict[str, str]:
    return {"name": "initiative-tracker", "version": "0.1.0"}


def run() -> None:
    import uvicorn

    s = get_settings()
    uvicorn.run("tracker.main:app", host=s.host, port=s.port, log_level=s.log_level.lower())
