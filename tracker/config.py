from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv


_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True, slots=True)
class TrackerSettings:
    host: str = "0.0.0.0"
    port: int = 8080
    log_level: str = "INFO"

    # Clients ping on this interval; silence for `max_missed_pings` intervals evicts the connection.
    ping_interval_s: float = 25.0
    max_missed_pings: int = 3

    # How long an empty session is parked before the registry reclaims it (0 => immediately).
    session_idle_ttl_s: float = 600.0

    # Upper bound for a single outbound frame; slower connections are dropped.
    send_timeout_s: float = 5.0

    # Non-host connections see monster hp/maxHp as 0.
    hide_monster_hp: bool = False

    # Send an `error` frame back to the issuer of a rejected command.
    rejection_frames: bool = False

    @property
    def max_silence_s(self) -> float:
        return self.ping_interval_s * self.max_missed_pings


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUTHY


def settings_from_env() -> TrackerSettings:
    defaults = TrackerSettings()
    return TrackerSettings(
        host=os.environ.get("TRACKER_HOST", defaults.host),
        # PORT is what most hosting platforms inject.
        port=int(os.environ.get("PORT", defaults.port)),
        log_level=os.environ.get("TRACKER_LOG_LEVEL", defaults.log_level).upper(),
        ping_interval_s=float(os.environ.get("TRACKER_PING_INTERVAL_S", defaults.ping_interval_s)),
        max_missed_pings=int(os.environ.get("TRACKER_MAX_MISSED_PINGS", defaults.max_missed_pings)),
        session_idle_ttl_s=float(os.environ.get("TRACKER_SESSION_IDLE_TTL_S", defaults.session_idle_ttl_s)),
        send_timeout_s=float(os.environ.get("TRACKER_SEND_TIMEOUT_S", defaults.send_timeout_s)),
        hide_monster_hp=_env_bool("TRACKER_HIDE_MONSTER_HP", defaults.hide_monster_hp),
        rejection_frames=_env_bool("TRACKER_REJECTION_FRAMES", defaults.rejection_frames),
    )


_SETTINGS: TrackerSettings | None = None


def get_settings() -> TrackerSettings:
    """Load settings once (environment first, then a local `.env`) and cache them."""

    global _SETTINGS
    if _SETTINGS is None:
        load_dotenv(override=False)
        _SETTINGS = settings_from_env()
    return _SETTINGS


def reset_settings_for_tests() -> None:
    global _SETTINGS
    _SETTINGS = None
