from __future__ import annotations

from collections.abc import Sequence

from tracker.core.entities import Entity, EntityKind
from tracker.core.errors import InvalidPermutation


class TurnEngine:
    """Owns the turn order, the round counter and the active entity.

    The active turn is tracked by entity id, never by list index. Reordering
    or deleting entries therefore cannot silently hand the turn to someone
    else; the visible `turn_index` is derived on demand.
    """

    def __init__(self) -> None:
        self.entries: list[Entity] = []
        self.round: int = 1
        self.current_id: str | None = None

    def _index_of(self, entity_id: str) -> int | None:
        for idx, e in enumerate(self.entries):
            if e.id == entity_id:
                return idx
        return None

    def get(self, entity_id: str) -> Entity | None:
        idx = self._index_of(entity_id)
        return None if idx is None else self.entries[idx]

    @property
    def current(self) -> Entity | None:
        if self.current_id is None:
            return None
        return self.get(self.current_id)

    @property
    def turn_index(self) -> int:
        if self.current_id is None:
            return 0
        idx = self._index_of(self.current_id)
        return 0 if idx is None else idx

    def advance(self) -> bool:
        if not self.entries:
            return False

        idx = None if self.current_id is None else self._index_of(self.current_id)
        if idx is None or idx == len(self.entries) - 1:
            self.current_id = self.entries[0].id
            self.round += 1
        else:
            self.current_id = self.entries[idx + 1].id
        return True

    def reorder(self, order: Sequence[str]) -> bool:
        by_id = {e.id: e for e in self.entries}
        if len(order) != len(by_id) or set(order) != set(by_id):
            raise InvalidPermutation("order must be a permutation of the current entry ids")

        new_entries = [by_id[eid] for eid in order]
        if [e.id for e in new_entries] == [e.id for e in self.entries]:
            return False
        self.entries = new_entries
        return True

    def sort_by_initiative(self) -> bool:
        """Initiative descending; players before monsters on ties; then by name."""

        ordered = sorted(
            self.entries,
            key=lambda e: (-e.initiative, e.kind != EntityKind.player, e.name),
        )
        if [e.id for e in ordered] == [e.id for e in self.entries]:
            return False
        self.entries = ordered
        return True

    def insert(self, entity: Entity) -> None:
        if self._index_of(entity.id) is not None:
            raise ValueError(f"duplicate entity id: {entity.id}")
        self.entries.append(entity)
        if self.current_id is None:
            self.current_id = entity.id

    def remove(self, entity_id: str) -> Entity | None:
        idx = self._index_of(entity_id)
        if idx is None:
            return None

        removed = self.entries.pop(idx)
        if self.current_id == entity_id:
            if not self.entries:
                self.current_id = None
            else:
                # The successor slid into `idx`; wrap when the last entry was removed.
                self.current_id = self.entries[idx % len(self.entries)].id
        return removed

    def reset(self) -> None:
        self.entries = []
        self.round = 1
        self.current_id = None
