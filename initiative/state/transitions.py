"""
Pure snapshot transitions.

Each function takes a TrackerState and returns the next one. None of them
mutate their input; an unknown encounter or combatant returns the input
snapshot unchanged. EncounterStore is the only caller that swaps the
result in as the current snapshot.
"""

from __future__ import annotations

from typing import Callable, Sequence

from ..systems.turns import next_active
from .schema import Combatant, CombatantField, Encounter, TrackerState

Transition = Callable[[TrackerState], TrackerState]


def _replace_encounter(state: TrackerState, encounter: Encounter) -> TrackerState:
    encounters = dict(state.encounters)
    encounters[encounter.id] = encounter
    return state.model_copy(update={"encounters": encounters})


def _replace_roster(
    state: TrackerState,
    encounter_id: int,
    roster: tuple[Combatant, ...],
) -> TrackerState:
    encounter = state.encounters[encounter_id]
    return _replace_encounter(state, encounter.model_copy(update={"roster": roster}))


def add_encounter(encounter: Encounter) -> Transition:
    """Register an encounter; the first one registered becomes current."""
    def apply(state: TrackerState) -> TrackerState:
        if encounter.id in state.encounters:
            return state
        state = _replace_encounter(state, encounter)
        if state.current_encounter_id is None:
            state = state.model_copy(update={"current_encounter_id": encounter.id})
        return state
    return apply


def switch_encounter(encounter_id: int) -> Transition:
    def apply(state: TrackerState) -> TrackerState:
        if encounter_id not in state.encounters:
            return state
        return state.model_copy(update={"current_encounter_id": encounter_id})
    return apply


def append_combatant(encounter_id: int, combatant: Combatant) -> Transition:
    """Append to the end of manual order, never as the active combatant."""
    def apply(state: TrackerState) -> TrackerState:
        encounter = state.encounters.get(encounter_id)
        if encounter is None or encounter.find(combatant.id) is not None:
            return state
        added = combatant.model_copy(update={"is_active": False})
        return _replace_roster(state, encounter_id, encounter.roster + (added,))
    return apply


def update_field(
    encounter_id: int,
    combatant_id: int,
    field: CombatantField,
    value: str | int,
) -> Transition:
    def apply(state: TrackerState) -> TrackerState:
        encounter = state.encounters.get(encounter_id)
        if encounter is None or encounter.find(combatant_id) is None:
            return state
        roster = tuple(
            c.with_field(field, value) if c.id == combatant_id else c
            for c in encounter.roster
        )
        return _replace_roster(state, encounter_id, roster)
    return apply


def replace_combatant(encounter_id: int, combatant: Combatant) -> Transition:
    """Replace every editable field of a combatant; is_active is kept."""
    def apply(state: TrackerState) -> TrackerState:
        encounter = state.encounters.get(encounter_id)
        if encounter is None:
            return state
        existing = encounter.find(combatant.id)
        if existing is None:
            return state
        saved = combatant.model_copy(update={"is_active": existing.is_active})
        roster = tuple(
            saved if c.id == combatant.id else c
            for c in encounter.roster
        )
        return _replace_roster(state, encounter_id, roster)
    return apply


def set_active(encounter_id: int, combatant_id: int) -> Transition:
    """Flag one combatant active and clear the flag on every other one."""
    def apply(state: TrackerState) -> TrackerState:
        encounter = state.encounters.get(encounter_id)
        if encounter is None or encounter.find(combatant_id) is None:
            return state
        roster = tuple(
            c if c.is_active == (c.id == combatant_id)
            else c.model_copy(update={"is_active": c.id == combatant_id})
            for c in encounter.roster
        )
        return _replace_roster(state, encounter_id, roster)
    return apply


def advance_turn(
    encounter_id: int,
    pick_next: Callable[[Sequence[Combatant]], int | None] = next_active,
) -> Transition:
    """Hand the active slot to the next combatant in turn order."""
    def apply(state: TrackerState) -> TrackerState:
        encounter = state.encounters.get(encounter_id)
        if encounter is None:
            return state
        next_id = pick_next(encounter.roster)
        if next_id is None:
            return state
        return set_active(encounter_id, next_id)(state)
    return apply


def move(encounter_id: int, from_index: int, to_index: int) -> Transition:
    """Move one roster entry within manual order; out of range is a no-op."""
    def apply(state: TrackerState) -> TrackerState:
        encounter = state.encounters.get(encounter_id)
        if encounter is None:
            return state
        size = len(encounter.roster)
        if not (0 <= from_index < size and 0 <= to_index < size):
            return state
        if from_index == to_index:
            return state
        roster = list(encounter.roster)
        moved = roster.pop(from_index)
        roster.insert(to_index, moved)
        return _replace_roster(state, encounter_id, tuple(roster))
    return apply
