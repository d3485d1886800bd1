"""
Turn order for an encounter roster.

Pure functions only: nothing here reads or writes store state.

    order = compute_turn_order(encounter.roster)
    next_id = next_active(encounter.roster)   # None on an empty roster

Turn order is initiative descending. Ties keep their manual-order
relative position; sorted() is stable, so sorting on the negated
initiative alone gives exactly that.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from ..state.schema import Combatant


def compute_turn_order(roster: Sequence[Combatant]) -> list[Combatant]:
    """Roster sorted by initiative, highest first, stable on ties."""
    return sorted(roster, key=lambda c: -c.initiative)


def next_active(roster: Sequence[Combatant]) -> int | None:
    """
    Identity of the combatant whose turn comes next.

    With nobody active the first combatant in turn order is chosen.
    Returns None for an empty roster; callers must leave state unchanged.
    """
    order = compute_turn_order(roster)
    if not order:
        return None

    current_index = -1
    for i, combatant in enumerate(order):
        if combatant.is_active:
            current_index = i
            break

    next_index = (current_index + 1) % len(order)
    return order[next_index].id


class TurnOrderEngine:
    """Object wrapper so the store can take the engine as a collaborator."""

    def compute_turn_order(self, roster: Sequence[Combatant]) -> list[Combatant]:
        return compute_turn_order(roster)

    def next_active(self, roster: Sequence[Combatant]) -> int | None:
        return next_active(roster)
