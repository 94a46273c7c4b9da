from __future__ import annotations

import asyncio
import os
from collections.abc import Generator

import pytest


class FakeWebSocket:
    """Records outbound frames.

    `fail` makes every send raise like a dead socket; `delay` and `close_delay` stall
    sends and closes like a peer that stopped reading.
    """

    def __init__(self, *, fail: bool = False, delay: float = 0.0, close_delay: float = 0.0) -> None:
        self.sent: list[dict[str, object]] = []
        self.closed_with: int | None = None
        self.fail = fail
        self.delay = delay
        self.close_delay = close_delay

    async def send_json(self, payload: dict[str, object]) -> None:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise RuntimeError("socket is gone")
        self.sent.append(payload)

    async def close(self, code: int = 1000) -> None:
        if self.close_delay:
            await asyncio.sleep(self.close_delay)
        self.closed_with = code

    def of_type(self, msg_type: str) -> list[dict[str, object]]:
        return [m for m in self.sent if m["type"] == msg_type]

    def last_state(self) -> dict:
        states = self.of_type("state")
        assert states, "no state frame received"
        return states[-1]["data"]  # type: ignore[return-value]


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Keep tests hermetic: ignore a developer's `.env` and TRACKER_* overrides."""

    from tracker import config

    monkeypatch.setattr(config, "load_dotenv", lambda **_: False)
    for name in list(os.environ):
        if name.startswith("TRACKER_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.delenv("PORT", raising=False)

    config.reset_settings_for_tests()
    yield
    config.reset_settings_for_tests()


@pytest.fixture()
def fake_ws() -> type[FakeWebSocket]:
    return FakeWebSocket


@pytest.fixture()
def client_and_registry():
    """FastAPI TestClient wired to a fresh SessionRegistry for each test."""

    from fastapi.testclient import TestClient

    from tracker.api.deps import get_registry
    from tracker.main import app
    from tracker.session_registry import SessionRegistry

    registry = SessionRegistry(idle_ttl_s=600.0)

    def _override() -> SessionRegistry:
        return registry

    app.dependency_overrides[get_registry] = _override
    with TestClient(app) as c:
        yield c, registry
    app.dependency_overrides.clear()
