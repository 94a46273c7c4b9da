from __future__ import annotations

from statemachine import State, StateMachine


class SessionLifecycle(StateMachine):
    """Lifecycle of one session aggregate inside the registry.

    - active: at least one connection attached
    - parked: no connections; kept around so a quick reconnect keeps the encounter
    - closed: reclaimed by the registry, never reused
    """

    active = State("active", value="active", initial=True)
    parked = State("parked", value="parked")
    closed = State("closed", value="closed", final=True)

    park = active.to(parked)
    resume = parked.to(active)
    close = parked.to(closed)

    @property
    def is_parked(self) -> bool:
        return self.current_state == self.parked

    @property
    def is_closed(self) -> bool:
        return self.current_state == self.closed
