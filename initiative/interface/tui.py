"""
Initiative tracker Textual TUI.

One roster screen for the current encounter. Arrow keys move a cell
cursor, Enter opens the cell for editing, and the configured advance key
(space by default) passes the turn while no field is open.
"""

import logging

from textual import events
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container, Horizontal, Vertical
from textual.screen import ModalScreen, Screen
from textual.widgets import Button, Footer, Input, Static

from ..errors import UnsavedEditsError
from ..state import CombatantField, EventType, TrackerEvent, get_event_bus
from .config import TrackerConfig
from .local import LocalTracker
from .renderer import COLUMNS, render_encounters

logger = logging.getLogger(__name__)

# Editable columns in display order
FIELDS: list[CombatantField] = [field for _, field in COLUMNS if field is not None]


class Theme:
    """Color theme constants."""
    BG = "#000000"
    BORDER = "#b3b3b3"
    TEXT = "#e5e5e5"
    ACCENT = "#5f8787"
    WARNING = "#af8700"
    DANGER = "#870000"
    DIM = "#5f5f87"


# =============================================================================
# Confirm Discard
# =============================================================================

class ConfirmDiscard(ModalScreen[bool]):
    """Asks before navigation drops an open field edit."""

    CSS = f"""
    ConfirmDiscard {{
        align: center middle;
        background: {Theme.BG} 80%;
    }}

    #confirm-dialog {{
        width: 50;
        height: auto;
        background: {Theme.BG};
        border: heavy {Theme.WARNING};
        padding: 1 2;
    }}

    #confirm-buttons {{
        height: 3;
        align: center middle;
    }}

    #confirm-buttons Button {{
        margin: 0 1;
    }}
    """

    BINDINGS = [
        Binding("y", "discard", "Discard"),
        Binding("n", "keep", "Keep"),
        Binding("escape", "keep", "Keep"),
    ]

    def compose(self) -> ComposeResult:
        yield Container(
            Static(f"[{Theme.WARNING}]Discard the unsaved edit?[/{Theme.WARNING}]"),
            Horizontal(
                Button("Discard [Y]", variant="warning", id="btn-discard"),
                Button("Keep editing [N]", variant="primary", id="btn-keep"),
                id="confirm-buttons",
            ),
            id="confirm-dialog",
        )

    def on_button_pressed(self, event: Button.Pressed) -> None:
        self.dismiss(event.button.id == "btn-discard")

    def action_discard(self) -> None:
        self.dismiss(True)

    def action_keep(self) -> None:
        self.dismiss(False)


# =============================================================================
# Roster Screen
# =============================================================================

class RosterScreen(Screen):
    """Roster of the current encounter with inline editing."""

    CSS = f"""
    RosterScreen {{
        background: {Theme.BG};
    }}

    #encounters {{
        height: auto;
        padding: 0 1;
        border-bottom: solid {Theme.DIM};
    }}

    #roster {{
        height: 1fr;
        padding: 0 1;
    }}

    #field-input {{
        display: none;
        border: tall {Theme.ACCENT};
    }}

    #status {{
        height: 1;
        padding: 0 1;
        color: {Theme.DIM};
    }}
    """

    BINDINGS = [
        Binding("up", "cursor_up", "Up", show=False),
        Binding("down", "cursor_down", "Down", show=False),
        Binding("left", "cursor_left", "Left", show=False),
        Binding("right", "cursor_right", "Right", show=False),
        Binding("enter", "edit_cell", "Edit"),
        Binding("escape", "cancel_edit", "Cancel", show=False, priority=True),
        Binding("s", "select_row", "Set active"),
        Binding("a", "add_blank", "Add"),
        Binding("e", "add_enemy", "Add enemy"),
        Binding("t", "next_template", "Template"),
        Binding("o", "toggle_order", "Order"),
        Binding("shift+up", "move_up", "Move up", show=False),
        Binding("shift+down", "move_down", "Move down", show=False),
        Binding("1", "select_encounter(1)", "Encounter 1", show=False),
        Binding("2", "select_encounter(2)", "Encounter 2", show=False),
        Binding("3", "select_encounter(3)", "Encounter 3", show=False),
        Binding("4", "select_encounter(4)", "Encounter 4", show=False),
        Binding("5", "select_encounter(5)", "Encounter 5", show=False),
        Binding("6", "select_encounter(6)", "Encounter 6", show=False),
        Binding("7", "select_encounter(7)", "Encounter 7", show=False),
        Binding("8", "select_encounter(8)", "Encounter 8", show=False),
        Binding("9", "select_encounter(9)", "Encounter 9", show=False),
    ]

    def __init__(self, tracker: LocalTracker):
        super().__init__()
        self.tracker = tracker
        self.cursor_row = 0
        self.cursor_field = 0
        self.template_ids = sorted(tracker.store.catalog)
        self.template_index = 0
        self._editing_id: int | None = None
        self._confirming = False

    def compose(self) -> ComposeResult:
        with Vertical():
            yield Static(id="encounters")
            yield Static(id="roster")
            yield Input(placeholder="value", id="field-input")
            yield Static(id="status")
        yield Footer()

    def on_mount(self) -> None:
        self.tracker.mount()
        bus = get_event_bus()
        bus.on(EventType.REORDER_SYNC_FAILED, self._on_sync_failed)
        self.refresh_all()

    def on_unmount(self) -> None:
        self.tracker.unmount()
        get_event_bus().off(EventType.REORDER_SYNC_FAILED, self._on_sync_failed)

    def _on_sync_failed(self, event: TrackerEvent) -> None:
        self.notify(f"Reorder not saved: {event.data.get('error')}", severity="warning")

    # -------------------------------------------------------------------------
    # Rendering
    # -------------------------------------------------------------------------

    def _cursor(self) -> tuple[int, CombatantField] | None:
        rows = self.tracker.rows()
        if not rows:
            return None
        self.cursor_row = min(self.cursor_row, len(rows) - 1)
        return rows[self.cursor_row].id, FIELDS[self.cursor_field]

    def refresh_all(self) -> None:
        store = self.tracker.store
        self.query_one("#encounters", Static).update(
            render_encounters(store.encounters, self.tracker.encounter_id)
        )
        self.query_one("#roster", Static).update(self.tracker.render(self._cursor()))

        template = store.catalog.get(self.template_ids[self.template_index]) if self.template_ids else None
        order = "turn order" if self.tracker.turn_order_view else "manual order"
        enemy = template.name if template else "none"
        self.query_one("#status", Static).update(f"{order} | enemy template: {enemy}")

    def on_key(self, event: events.Key) -> None:
        if self.tracker.press(event.key):
            event.stop()
            self.refresh_all()

    # -------------------------------------------------------------------------
    # Cursor
    # -------------------------------------------------------------------------

    def action_cursor_up(self) -> None:
        self.cursor_row = max(self.cursor_row - 1, 0)
        self.refresh_all()

    def action_cursor_down(self) -> None:
        self.cursor_row = min(self.cursor_row + 1, max(len(self.tracker.rows()) - 1, 0))
        self.refresh_all()

    def action_cursor_left(self) -> None:
        self.cursor_field = max(self.cursor_field - 1, 0)
        self.refresh_all()

    def action_cursor_right(self) -> None:
        self.cursor_field = min(self.cursor_field + 1, len(FIELDS) - 1)
        self.refresh_all()

    # -------------------------------------------------------------------------
    # Inline editing
    # -------------------------------------------------------------------------

    def action_edit_cell(self) -> None:
        cursor = self._cursor()
        if cursor is None or self._editing_id is not None:
            return
        combatant_id, field = cursor
        self.tracker.click_field(combatant_id, field)
        self._editing_id = combatant_id

        field_input = self.query_one("#field-input", Input)
        field_input.value = self.tracker.store.editor(combatant_id).buffer
        field_input.display = True
        field_input.focus()
        self.refresh_all()

    def _close_input(self) -> None:
        self._editing_id = None
        field_input = self.query_one("#field-input", Input)
        field_input.display = False
        self.refresh_all()

    def on_input_changed(self, event: Input.Changed) -> None:
        if self._editing_id is not None:
            self.tracker.type(self._editing_id, event.value)
            self.refresh_all()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if self._editing_id is not None:
            self.tracker.field_key(self._editing_id, "enter")
            self._close_input()

    def action_cancel_edit(self) -> None:
        if self._editing_id is not None:
            self.tracker.field_key(self._editing_id, "escape")
            self._close_input()

    def on_descendant_blur(self, event: events.DescendantBlur) -> None:
        # Focus leaving the field commits it, unless a discard prompt took focus
        if self._editing_id is not None and not self._confirming:
            self.tracker.blur(self._editing_id)
            self._close_input()

    # -------------------------------------------------------------------------
    # Navigation and roster actions
    # -------------------------------------------------------------------------

    def _guarded(self, action) -> None:
        """Run a navigation action, asking first if it would drop an edit."""
        try:
            action(False)
        except UnsavedEditsError as e:
            logger.info("Navigation blocked by %s", e)
            self._confirming = True

            def done(discard: bool) -> None:
                self._confirming = False
                if discard:
                    action(True)
                    self._close_input()
                elif self._editing_id is not None:
                    self.query_one("#field-input", Input).focus()

            self.app.push_screen(ConfirmDiscard(), done)
            return
        self.refresh_all()

    def action_select_row(self) -> None:
        cursor = self._cursor()
        if cursor is None:
            return
        combatant_id, _ = cursor
        self._guarded(lambda confirm: self.tracker.click_row(combatant_id, confirm_discard=confirm))

    def action_select_encounter(self, encounter_id: int) -> None:
        def switch(confirm: bool) -> None:
            self.tracker.select_encounter(encounter_id, confirm_discard=confirm)
            self.cursor_row = 0
        self._guarded(switch)

    def action_add_blank(self) -> None:
        self.tracker.add_blank()
        self.refresh_all()

    def action_add_enemy(self) -> None:
        if self.template_ids:
            self.tracker.add_enemy(self.template_ids[self.template_index])
            self.refresh_all()

    def action_next_template(self) -> None:
        if self.template_ids:
            self.template_index = (self.template_index + 1) % len(self.template_ids)
            self.refresh_all()

    def action_toggle_order(self) -> None:
        self.tracker.turn_order_view = not self.tracker.turn_order_view
        self.refresh_all()

    def _move(self, offset: int) -> None:
        # Reordering only makes sense against manual order
        if self.tracker.turn_order_view:
            self.notify("Switch to manual order (o) to move rows")
            return
        target = self.cursor_row + offset
        if not 0 <= target < len(self.tracker.roster):
            return
        self.tracker.drag(self.cursor_row, target)
        self.cursor_row = target
        self.refresh_all()

    def action_move_up(self) -> None:
        self._move(-1)

    def action_move_down(self) -> None:
        self._move(1)


# =============================================================================
# Main Application
# =============================================================================

class InitiativeTUI(App):
    """Initiative tracker TUI."""

    TITLE = "Initiative"

    BINDINGS = [
        Binding("ctrl+q", "quit", "Quit", show=True),
    ]

    def __init__(self, config: TrackerConfig | None = None):
        super().__init__()
        self.tracker = LocalTracker.from_config(config)

    def on_mount(self) -> None:
        self.push_screen(RosterScreen(self.tracker))
