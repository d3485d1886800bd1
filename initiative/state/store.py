"""
Encounter roster store.

Owns the current TrackerState snapshot and is the only place it is
replaced. Every mutation goes through _apply(), which reads the snapshot
at the moment it runs, passes it to a pure transition and swaps in the
result. Nothing holds on to an earlier snapshot to write it back later, so
a field commit and a turn advance issued back to back both land.

The store also owns the inline edit sessions of every combatant, so
navigation can ask is_editing() instead of consulting a global flag.
"""

import logging
from typing import Iterable, Mapping

from ..systems.turns import TurnOrderEngine
from . import transitions
from .editing import FieldCommit, RowEditor
from .event_bus import EventBus, EventType, get_event_bus
from .factory import CombatantFactory
from .schema import Combatant, CombatantField, Encounter, EnemyTemplate, TrackerState
from .sync import ReorderMove, ReorderSync

logger = logging.getLogger(__name__)


def fuzzy_match(text: str, query: str) -> bool:
    """Case-insensitive subsequence match: every query char in order."""
    text, query = text.casefold(), query.casefold()
    if not query:
        return True
    pos = 0
    for ch in text:
        if ch == query[pos]:
            pos += 1
            if pos == len(query):
                return True
    return False


class EncounterStore:
    """
    Mapping from encounter id to encounter, plus which one is current.

    Mutations return the affected roster as a fresh tuple. Unknown
    encounter, combatant or template ids are silent no-ops.
    """

    def __init__(
        self,
        state: TrackerState | None = None,
        catalog: Mapping[int, EnemyTemplate] | None = None,
        factory: CombatantFactory | None = None,
        engine: TurnOrderEngine | None = None,
        sync: ReorderSync | None = None,
        bus: EventBus | None = None,
    ):
        self._state = state or TrackerState()
        self.catalog: Mapping[int, EnemyTemplate] = catalog or {}
        self.factory = factory or CombatantFactory()
        self.engine = engine or TurnOrderEngine()
        self.sync = sync
        self._bus = bus or get_event_bus()
        self._editors: dict[int, RowEditor] = {}

        # Fresh identities must not collide with seeded combatants or templates
        self.factory.reserve(self._state.combatant_ids())
        self.factory.reserve(self.catalog.keys())

    # -------------------------------------------------------------------------
    # Snapshot access
    # -------------------------------------------------------------------------

    @property
    def state(self) -> TrackerState:
        return self._state

    @property
    def current(self) -> Encounter | None:
        return self._state.current

    @property
    def encounters(self) -> list[Encounter]:
        return list(self._state.encounters.values())

    def roster(self, encounter_id: int) -> tuple[Combatant, ...]:
        encounter = self._state.encounters.get(encounter_id)
        return encounter.roster if encounter else ()

    def turn_order(self, encounter_id: int) -> list[Combatant]:
        return self.engine.compute_turn_order(self.roster(encounter_id))

    def active(self, encounter_id: int) -> Combatant | None:
        encounter = self._state.encounters.get(encounter_id)
        return encounter.active if encounter else None

    def locate(self, combatant_id: int) -> tuple[int, Combatant] | None:
        """Encounter id and combatant for an identity, if any roster has it."""
        for encounter in self._state.encounters.values():
            combatant = encounter.find(combatant_id)
            if combatant is not None:
                return encounter.id, combatant
        return None

    # -------------------------------------------------------------------------
    # Mutation
    # -------------------------------------------------------------------------

    def _apply(
        self,
        transition: transitions.Transition,
        event_type: EventType | None = None,
        encounter_id: int | None = None,
        **data,
    ) -> bool:
        """Run a transition against the latest snapshot. True if it changed."""
        before = self._state
        after = transition(before)
        if after is before:
            return False
        self._state = after
        if event_type is not None:
            logger.debug("%s on encounter %s: %s", event_type.value, encounter_id, data)
            self._bus.emit(event_type, encounter_id=encounter_id, **data)
        return True

    def add_encounter(self, name: str, description: str = "", owner_id: str = "") -> Encounter:
        """Register a new, empty encounter. The first one becomes current."""
        new_id = max(self._state.encounters, default=0) + 1
        encounter = Encounter(
            id=new_id, name=name, description=description, owner_id=owner_id,
        )
        self._apply(
            transitions.add_encounter(encounter),
            EventType.ENCOUNTER_ADDED,
            encounter_id=new_id,
            name=name,
        )
        return encounter

    def switch_encounter(self, encounter_id: int) -> tuple[Combatant, ...]:
        """Make another encounter current. No roster is touched."""
        self._apply(
            transitions.switch_encounter(encounter_id),
            EventType.ENCOUNTER_SWITCHED,
            encounter_id=encounter_id,
        )
        return self.roster(encounter_id)

    def add_combatant(self, encounter_id: int, owner_id: str = "", **stats) -> tuple[Combatant, ...]:
        """
        Append a blank combatant to the end of manual order.

        Keyword stats (name, armor_class, ...) override the blank values,
        for callers that create and fill a row in one step.
        """
        if encounter_id not in self._state.encounters:
            return ()
        combatant = self.factory.blank(owner_id=owner_id)
        if stats:
            combatant = combatant.model_copy(update=stats)
        self._apply(
            transitions.append_combatant(encounter_id, combatant),
            EventType.COMBATANT_ADDED,
            encounter_id=encounter_id,
            combatant_id=combatant.id,
        )
        return self.roster(encounter_id)

    def add_enemy_clone(self, encounter_id: int, template_id: int) -> tuple[Combatant, ...]:
        """Append a fresh-identity copy of a catalog template."""
        template = self.catalog.get(template_id)
        if template is None or encounter_id not in self._state.encounters:
            return self.roster(encounter_id)
        clone = self.factory.clone_enemy(template)
        self._apply(
            transitions.append_combatant(encounter_id, clone),
            EventType.COMBATANT_ADDED,
            encounter_id=encounter_id,
            combatant_id=clone.id,
            template_id=template_id,
        )
        return self.roster(encounter_id)

    def add_existing(self, encounter_id: int, combatant_id: int) -> tuple[Combatant, ...]:
        """Copy a combatant from another roster into this one, fresh identity."""
        found = self.locate(combatant_id)
        if found is None or encounter_id not in self._state.encounters:
            return self.roster(encounter_id)
        _, source = found
        copy = source.model_copy(update={"id": self.factory.fresh_id(), "is_active": False})
        self._apply(
            transitions.append_combatant(encounter_id, copy),
            EventType.COMBATANT_ADDED,
            encounter_id=encounter_id,
            combatant_id=copy.id,
            source_id=combatant_id,
        )
        return self.roster(encounter_id)

    def update_field(
        self,
        encounter_id: int,
        combatant_id: int,
        field: CombatantField | str,
        value: str | int,
    ) -> tuple[Combatant, ...]:
        """Replace one field of one combatant; everything else is untouched."""
        field = CombatantField(field)
        self._apply(
            transitions.update_field(encounter_id, combatant_id, field, value),
            EventType.COMBATANT_UPDATED,
            encounter_id=encounter_id,
            combatant_id=combatant_id,
            field=field.value,
            value=value,
        )
        return self.roster(encounter_id)

    def save_combatant(self, encounter_id: int, combatant: Combatant) -> tuple[Combatant, ...]:
        """Replace a whole combatant by identity. The active flag is kept."""
        self._apply(
            transitions.replace_combatant(encounter_id, combatant),
            EventType.COMBATANT_UPDATED,
            encounter_id=encounter_id,
            combatant_id=combatant.id,
        )
        return self.roster(encounter_id)

    def set_active(self, encounter_id: int, combatant_id: int) -> tuple[Combatant, ...]:
        """Manual selection: this combatant active, every other one not."""
        self._apply(
            transitions.set_active(encounter_id, combatant_id),
            EventType.ACTIVE_CHANGED,
            encounter_id=encounter_id,
            combatant_id=combatant_id,
        )
        return self.roster(encounter_id)

    def advance_turn(self, encounter_id: int) -> tuple[Combatant, ...]:
        """Pass the active slot to the next combatant in turn order."""
        changed = self._apply(transitions.advance_turn(encounter_id, self.engine.next_active))
        active = self.active(encounter_id)
        if changed and active is not None:
            self._bus.emit(
                EventType.TURN_ADVANCED,
                encounter_id=encounter_id,
                combatant_id=active.id,
            )
        return self.roster(encounter_id)

    def reorder(self, encounter_id: int, from_index: int, to_index: int) -> tuple[Combatant, ...]:
        """
        Move one entry within manual order and forward the move.

        Out-of-range indices do nothing and are not forwarded. The local
        move is never undone, whatever persistence later reports.
        """
        size = len(self.roster(encounter_id))
        if not (0 <= from_index < size and 0 <= to_index < size):
            return self.roster(encounter_id)
        self._apply(
            transitions.move(encounter_id, from_index, to_index),
            EventType.ROSTER_REORDERED,
            encounter_id=encounter_id,
            old_index=from_index,
            new_index=to_index,
        )
        if self.sync is not None:
            self.sync.submit(ReorderMove(encounter_id, from_index, to_index))
        return self.roster(encounter_id)

    # -------------------------------------------------------------------------
    # Search
    # -------------------------------------------------------------------------

    def search(self, query: str, limit: int = 10) -> list[Combatant]:
        """Combatants outside the current encounter whose name fuzzy-matches."""
        current = self.current
        exclude: set[int] = {c.id for c in current.roster} if current else set()
        matches: list[Combatant] = []
        for encounter in self._state.encounters.values():
            for combatant in encounter.roster:
                if combatant.id in exclude or not fuzzy_match(combatant.name, query):
                    continue
                matches.append(combatant)
                if len(matches) >= limit:
                    return matches
        return matches

    # -------------------------------------------------------------------------
    # Inline editing
    # -------------------------------------------------------------------------

    def editor(self, combatant_id: int) -> RowEditor:
        if combatant_id not in self._editors:
            self._editors[combatant_id] = RowEditor(combatant_id)
        return self._editors[combatant_id]

    @property
    def editors(self) -> dict[int, RowEditor]:
        return dict(self._editors)

    def editing_ids(self) -> list[int]:
        return [cid for cid, ed in self._editors.items() if ed.is_editing]

    def is_editing(self) -> bool:
        """True while any row has a field open."""
        return bool(self.editing_ids())

    def _apply_commit(self, commit: FieldCommit | None) -> None:
        if commit is None:
            return
        found = self.locate(commit.combatant_id)
        if found is None:
            return
        encounter_id, _ = found
        self.update_field(encounter_id, commit.combatant_id, commit.field, commit.value)

    def activate_field(self, combatant_id: int, field: CombatantField | str) -> None:
        """Open a field with its current value; flushes any other open field."""
        found = self.locate(combatant_id)
        if found is None:
            return
        _, combatant = found
        field = CombatantField(field)
        self._apply_commit(self.editor(combatant_id).activate(field, combatant.get(field)))

    def type_field(self, combatant_id: int, text: str) -> None:
        self.editor(combatant_id).type(text)

    def commit_field(self, combatant_id: int) -> None:
        """Close the open field (focus lost) and apply its value."""
        self._apply_commit(self.editor(combatant_id).commit())

    def cancel_field(self, combatant_id: int) -> None:
        self.editor(combatant_id).cancel()

    def field_key(self, combatant_id: int, key: str) -> None:
        """Key press inside an open field: Enter commits, Escape cancels."""
        self._apply_commit(self.editor(combatant_id).handle_key(key))

    def discard_edits(self, combatant_ids: Iterable[int] | None = None) -> None:
        """Cancel open edits without applying them."""
        for cid in list(combatant_ids if combatant_ids is not None else self.editing_ids()):
            editor = self._editors.get(cid)
            if editor is not None and editor.is_editing:
                editor.cancel()
