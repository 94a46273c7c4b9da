from __future__ import annotations

from uuid import uuid4

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from tracker.api.deps import get_command_router, get_hub, get_registry
from tracker.commands.router import CommandRouter
from tracker.session_registry import SessionRegistry
from tracker.websocket_hub import SessionWebSocketHub

router = APIRouter()


@router.websocket("/ws/session/{code}")
async def session_ws(
    websocket: WebSocket,
    code: str,
    uid: str | None = None,
    registry: SessionRegistry = Depends(get_registry),
    hub: SessionWebSocketHub = Depends(get_hub),
    commands: CommandRouter = Depends(get_command_router),
) -> None:
    await websocket.accept()
    # Without a uid the connection is anonymous; it can only be host of a session it creates.
    session, conn = await registry.attach(code=code, uid=uid or uuid4().hex, websocket=websocket)

    try:
        async with session.lock:
            await hub.send_state(session, [conn])

        # A failed send closes and detaches the connection; stop reading from it then.
        while conn in session.connections:
            raw = await websocket.receive_text()
            await commands.handle(conn, raw)
    except WebSocketDisconnect:
        await registry.detach(conn)
    except Exception:
        await registry.detach(conn)
        raise


@router.get("/healthcheck")
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}

