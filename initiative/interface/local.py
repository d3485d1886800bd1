"""
Offline tracker surface.

Everything runs in memory against a demo-seeded EncounterStore. Each UI
action maps to one store operation, and render() always rebuilds the whole
roster view from the latest snapshot.
"""

import logging
from contextlib import contextmanager
from typing import Iterator

from rich.table import Table

from ..errors import UnsavedEditsError
from ..state import (
    ENEMY_CATALOG,
    CombatantField,
    EncounterStore,
    HttpReorderPersistence,
    MemoryReorderPersistence,
    ReorderSync,
    demo_state,
)
from ..state.schema import Combatant, Encounter
from .config import DEFAULT_CONFIG, TrackerConfig
from .keys import KeyDispatcher, get_key_dispatcher
from .renderer import render_roster

logger = logging.getLogger(__name__)


class LocalTracker:
    """
    UI-facing controller for one tracker view.

    Navigation (row selection, encounter switching) refuses to drop an open
    field edit unless the caller confirms the discard.
    """

    def __init__(
        self,
        store: EncounterStore | None = None,
        dispatcher: KeyDispatcher | None = None,
        advance_key: str = "space",
    ):
        if store is None:
            store = EncounterStore(
                state=demo_state(),
                catalog=ENEMY_CATALOG,
                sync=ReorderSync(MemoryReorderPersistence()),
            )
        self.store = store
        self.dispatcher = dispatcher or get_key_dispatcher()
        self.advance_key = advance_key
        # Per instance, so two trackers on one dispatcher never share listeners
        self.view = f"roster-{id(self)}"
        # Turn order for play; manual order while arranging rows
        self.turn_order_view = True

    @classmethod
    def from_config(cls, config: TrackerConfig | None = None) -> "LocalTracker":
        """Build a tracker; a configured server_url turns on reorder sync over HTTP."""
        config = config or DEFAULT_CONFIG.copy()
        server_url = config.get("server_url")
        persistence = (
            HttpReorderPersistence(server_url) if server_url else MemoryReorderPersistence()
        )
        store = EncounterStore(
            state=demo_state() if config.get("seed_demo", True) else None,
            catalog=ENEMY_CATALOG,
            sync=ReorderSync(persistence),
        )
        return cls(store=store, advance_key=config.get("advance_key", "space"))

    # -------------------------------------------------------------------------
    # View lifetime
    # -------------------------------------------------------------------------

    def mount(self) -> None:
        """Install this view's advance-turn key listener."""
        self.dispatcher.install(
            self.view, self.advance_key, self.advance_turn,
            is_blocked=self.store.is_editing,
        )

    def unmount(self) -> None:
        self.dispatcher.remove_view(self.view)

    @contextmanager
    def active_view(self) -> Iterator["LocalTracker"]:
        self.mount()
        try:
            yield self
        finally:
            self.unmount()

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    @property
    def encounter(self) -> Encounter | None:
        return self.store.current

    @property
    def encounter_id(self) -> int | None:
        return self.store.state.current_encounter_id

    @property
    def roster(self) -> tuple[Combatant, ...]:
        if self.encounter_id is None:
            return ()
        return self.store.roster(self.encounter_id)

    def rows(self) -> list[Combatant]:
        """Rows in the order currently displayed."""
        if self.encounter_id is None:
            return []
        if self.turn_order_view:
            return self.store.turn_order(self.encounter_id)
        return list(self.roster)

    def render(self, cursor: tuple[int, CombatantField] | None = None) -> Table:
        return render_roster(
            self.encounter,
            self.store.editors,
            turn_order=self.turn_order_view,
            cursor=cursor,
        )

    # -------------------------------------------------------------------------
    # Actions
    # -------------------------------------------------------------------------

    def _leave_edits(self, confirm_discard: bool) -> None:
        editing = self.store.editing_ids()
        if not editing:
            return
        if not confirm_discard:
            raise UnsavedEditsError(editing)
        logger.info("Discarding open edits on %s", editing)
        self.store.discard_edits(editing)

    def select_encounter(self, encounter_id: int, confirm_discard: bool = False) -> None:
        self._leave_edits(confirm_discard)
        self.store.switch_encounter(encounter_id)

    def click_row(self, combatant_id: int, confirm_discard: bool = False) -> None:
        """Manual selection of the active combatant."""
        self._leave_edits(confirm_discard)
        if self.encounter_id is not None:
            self.store.set_active(self.encounter_id, combatant_id)

    def add_blank(self) -> None:
        if self.encounter_id is not None:
            self.store.add_combatant(self.encounter_id)

    def add_enemy(self, template_id: int) -> None:
        if self.encounter_id is not None:
            self.store.add_enemy_clone(self.encounter_id, template_id)

    def advance_turn(self) -> None:
        if self.encounter_id is not None:
            self.store.advance_turn(self.encounter_id)

    def drag(self, old_index: int, new_index: int) -> None:
        """Drop event from the manual-order list."""
        if self.encounter_id is not None:
            self.store.reorder(self.encounter_id, old_index, new_index)

    def press(self, key: str) -> bool:
        """Global key press; ignored while any field is open for editing."""
        return self.dispatcher.dispatch(key)

    # Inline editing

    def click_field(self, combatant_id: int, field: CombatantField | str) -> None:
        self.store.activate_field(combatant_id, field)

    def type(self, combatant_id: int, text: str) -> None:
        self.store.type_field(combatant_id, text)

    def field_key(self, combatant_id: int, key: str) -> None:
        self.store.field_key(combatant_id, key)

    def blur(self, combatant_id: int) -> None:
        if self.store.editor(combatant_id).is_editing:
            self.store.commit_field(combatant_id)
