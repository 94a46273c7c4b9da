from __future__ import annotations

from fastapi import Depends

from tracker.commands.router import CommandRouter
from tracker.config import get_settings
from tracker.session_registry import SessionRegistry
from tracker.websocket_hub import SessionWebSocketHub


_REGISTRY: SessionRegistry | None = None


def get_registry() -> SessionRegistry:
    global _REGISTRY
    if _REGISTRY is None:
        _REGISTRY = SessionRegistry(idle_ttl_s=get_settings().session_idle_ttl_s)
    return _REGISTRY


def get_hub(registry: SessionRegistry = Depends(get_registry)) -> SessionWebSocketHub:
    settings = get_settings()
    return SessionWebSocketHub(
        send_timeout_s=settings.send_timeout_s,
        hide_monster_hp=settings.hide_monster_hp,
        on_dead=registry.detach,
    )


def get_command_router(
    registry: SessionRegistry = Depends(get_registry),
    hub: SessionWebSocketHub = Depends(get_hub),
) -> CommandRouter:
    return CommandRouter(registry=registry, hub=hub, rejection_frames=get_settings().rejection_frames)
