"""
Rich rendering of encounter rosters.

Every render is built from a whole roster snapshot; there is no diffing.
"""

from rich.table import Table
from rich.text import Text

from ..state.editing import RowEditor
from ..state.schema import Combatant, CombatantField, Encounter
from ..systems.turns import compute_turn_order


# -----------------------------------------------------------------------------
# Theme
# -----------------------------------------------------------------------------

THEME = {
    "primary": "dodger_blue2",      # active row, headings
    "danger": "red3",               # HP at or below zero
    "accent": "cyan",               # field being edited
    "dim": "dim",
}

COLUMNS: tuple[tuple[str, CombatantField | None], ...] = (
    ("", None),
    ("Name", CombatantField.NAME),
    ("AC", CombatantField.ARMOR_CLASS),
    ("HP", CombatantField.CURRENT_HP),
    ("Max", CombatantField.MAX_HP),
    ("Init", CombatantField.INITIATIVE),
)


def _cell(
    combatant: Combatant,
    field: CombatantField,
    editor: RowEditor | None,
    focused: bool = False,
) -> Text:
    if editor is not None and editor.editing_field is field:
        return Text(f"[{editor.buffer}]", style=f"bold {THEME['accent']}")
    value = combatant.get(field)
    if field is CombatantField.NAME and value == "":
        text = Text("(unnamed)", style=THEME["dim"])
    elif field is CombatantField.CURRENT_HP and isinstance(value, int) and value <= 0:
        text = Text(str(value), style=THEME["danger"])
    else:
        text = Text(str(value))
    if focused:
        text.stylize("reverse")
    return text


def render_roster(
    encounter: Encounter | None,
    editors: dict[int, RowEditor] | None = None,
    turn_order: bool = True,
    cursor: tuple[int, CombatantField] | None = None,
) -> Table:
    """
    Table of a roster, in turn order by default.

    The active combatant is marked and highlighted; an open edit shows its
    working buffer in place of the committed value. cursor is a
    (combatant id, field) pair drawn in reverse video.
    """
    editors = editors or {}
    title = encounter.name if encounter else "No encounter"
    table = Table(
        title=f"[bold {THEME['primary']}]{title}[/bold {THEME['primary']}]",
        title_justify="left",
        expand=True,
    )
    for header, _ in COLUMNS:
        table.add_column(header, justify="left" if header == "Name" else "right")

    if encounter is None:
        return table

    rows = compute_turn_order(encounter.roster) if turn_order else list(encounter.roster)
    for combatant in rows:
        editor = editors.get(combatant.id)
        marker = Text("▶", style=THEME["primary"]) if combatant.is_active else Text(" ")
        cells = [marker] + [
            _cell(combatant, field, editor, cursor == (combatant.id, field))
            for _, field in COLUMNS[1:]
        ]
        style = f"bold {THEME['primary']}" if combatant.is_active else None
        table.add_row(*cells, style=style)

    return table


def render_encounters(encounters: list[Encounter], current_id: int | None) -> Table:
    """Encounter picker listing, current one marked."""
    table = Table(show_header=False, box=None)
    table.add_column("Key", style=THEME["dim"])
    table.add_column("Encounter")
    for encounter in encounters:
        name = Text(encounter.name)
        if encounter.id == current_id:
            name.stylize(f"bold {THEME['primary']}")
        table.add_row(str(encounter.id), name)
    return table
