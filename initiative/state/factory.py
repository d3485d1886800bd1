"""
Combatant construction.

Identities come from an injected generator so two clones requested in the
same instant can never share one.
"""

import itertools
import threading
from typing import Iterable, Protocol, runtime_checkable

from .schema import Combatant, EnemyTemplate


@runtime_checkable
class IdGenerator(Protocol):
    """Source of fresh integer identities."""

    def next_id(self) -> int:
        ...


class CounterIdGenerator:
    """Monotonic, thread-safe integer counter."""

    def __init__(self, start: int = 1):
        self._counter = itertools.count(start)
        self._lock = threading.Lock()

    def next_id(self) -> int:
        with self._lock:
            return next(self._counter)


class CombatantFactory:
    """
    Builds blank combatants and enemy clones with fresh identities.

    Identities already handed out elsewhere (seed data, template ids,
    rosters loaded from storage) can be reserved; the factory skips them
    and never hands out the same identity twice.
    """

    def __init__(
        self,
        id_generator: IdGenerator | None = None,
        reserved: Iterable[int] = (),
    ):
        self._ids = id_generator or CounterIdGenerator()
        self._issued: set[int] = set(reserved)

    def reserve(self, ids: Iterable[int]) -> None:
        """Mark identities as taken."""
        self._issued.update(ids)

    def fresh_id(self) -> int:
        new_id = self._ids.next_id()
        while new_id in self._issued:
            new_id = self._ids.next_id()
        self._issued.add(new_id)
        return new_id

    def blank(self, owner_id: str = "") -> Combatant:
        """Zero-valued combatant with an empty name."""
        return Combatant(id=self.fresh_id(), owner_id=owner_id)

    def clone_enemy(self, template: EnemyTemplate) -> Combatant:
        """Copy every template field except identity."""
        data = template.model_dump(exclude={"id"})
        return Combatant(id=self.fresh_id(), is_active=False, **data)
