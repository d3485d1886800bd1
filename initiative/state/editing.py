"""
Inline field editing.

Each (combatant, field) pair has a two-phase state machine:

    IDLE --activate--> EDITING --commit/cancel--> IDLE

activate() captures the current value as the working buffer. commit()
(focus lost or Enter) turns the buffer into a FieldCommit, or None when the
trimmed buffer is empty. cancel() (Escape) drops the buffer. Nothing here
touches the store; the owner applies a FieldCommit itself.

A RowEditor owns the sessions of one combatant and keeps at most one of them
in EDITING. Opening a second field first commits the open one, the same way
the first input loses focus before the second is clicked.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from enum import Enum

from ..errors import InvalidPhaseError
from .schema import CombatantField


class EditPhase(str, Enum):
    IDLE = "idle"
    EDITING = "editing"


VALID_TRANSITIONS: dict[EditPhase, set[EditPhase]] = {
    EditPhase.IDLE: {EditPhase.EDITING},
    EditPhase.EDITING: {EditPhase.IDLE},
}


@dataclass(frozen=True)
class FieldCommit:
    """Final value produced by a committed edit."""
    combatant_id: int
    field: CombatantField
    value: str | int


# Browser number syntax: signed decimals with optional exponent, or unsigned
# 0x/0o/0b integers. No digit separators, no nan/inf words.
_DECIMAL = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")
_PREFIXED = re.compile(r"0(?:[xX][0-9a-fA-F]+|[oO][0-7]+|[bB][01]+)")


def parse_number(text: str) -> int:
    """
    Numeric commit value for a buffer.

    Anything that is not a finite number in browser form input syntax
    commits as 0. Fractions truncate toward zero since every numeric field
    is an integer.
    """
    text = text.strip()
    if _PREFIXED.fullmatch(text):
        return int(text, 0)
    if not _DECIMAL.fullmatch(text):
        return 0
    if "." not in text and "e" not in text.lower():
        return int(text)
    number = float(text)
    if not math.isfinite(number):
        return 0
    return int(number)


class FieldEditSession:
    """Edit state machine for one field of one combatant."""

    def __init__(self, combatant_id: int, field: CombatantField):
        self.combatant_id = combatant_id
        self.field = field
        self._phase = EditPhase.IDLE
        self._buffer = ""

    @property
    def phase(self) -> EditPhase:
        return self._phase

    @property
    def is_editing(self) -> bool:
        return self._phase is EditPhase.EDITING

    @property
    def buffer(self) -> str:
        return self._buffer

    def _transition(self, to: EditPhase) -> None:
        if to not in VALID_TRANSITIONS[self._phase]:
            raise InvalidPhaseError(self._phase.value, f"enter {to.value}")
        self._phase = to

    def activate(self, current_value: str | int) -> None:
        """Start editing with the field's current value as the buffer."""
        if self._phase is not EditPhase.IDLE:
            raise InvalidPhaseError(self._phase.value, "activate")
        self._buffer = str(current_value)
        self._transition(EditPhase.EDITING)

    def type(self, text: str) -> None:
        """Replace the working buffer."""
        if self._phase is not EditPhase.EDITING:
            raise InvalidPhaseError(self._phase.value, "type")
        self._buffer = text

    def commit(self) -> FieldCommit | None:
        """Close the edit, producing the committed value if there is one."""
        if self._phase is not EditPhase.EDITING:
            raise InvalidPhaseError(self._phase.value, "commit")
        buffer = self._buffer
        self._buffer = ""
        self._transition(EditPhase.IDLE)

        if buffer.strip() == "":
            return None
        if self.field.is_numeric:
            return FieldCommit(self.combatant_id, self.field, parse_number(buffer))
        return FieldCommit(self.combatant_id, self.field, buffer)

    def cancel(self) -> None:
        """Close the edit and drop the buffer."""
        if self._phase is not EditPhase.EDITING:
            raise InvalidPhaseError(self._phase.value, "cancel")
        self._buffer = ""
        self._transition(EditPhase.IDLE)


class RowEditor:
    """
    Edit sessions for every field of one combatant.

    Only one field can be EDITING at a time.
    """

    def __init__(self, combatant_id: int):
        self.combatant_id = combatant_id
        self._sessions = {
            field: FieldEditSession(combatant_id, field)
            for field in CombatantField
        }

    def session(self, field: CombatantField) -> FieldEditSession:
        return self._sessions[field]

    @property
    def editing_field(self) -> CombatantField | None:
        for field, session in self._sessions.items():
            if session.is_editing:
                return field
        return None

    @property
    def is_editing(self) -> bool:
        return self.editing_field is not None

    @property
    def buffer(self) -> str | None:
        field = self.editing_field
        return None if field is None else self._sessions[field].buffer

    def _open(self) -> FieldEditSession:
        field = self.editing_field
        if field is None:
            raise InvalidPhaseError(EditPhase.IDLE.value, "edit")
        return self._sessions[field]

    def activate(self, field: CombatantField, current_value: str | int) -> FieldCommit | None:
        """
        Open a field for editing.

        Returns the commit of a different field that was still open, if any.
        Activating the field that is already open does nothing.
        """
        open_field = self.editing_field
        if open_field is field:
            return None
        flushed = None
        if open_field is not None:
            flushed = self._sessions[open_field].commit()
        self._sessions[field].activate(current_value)
        return flushed

    def type(self, text: str) -> None:
        self._open().type(text)

    def commit(self) -> FieldCommit | None:
        return self._open().commit()

    def cancel(self) -> None:
        self._open().cancel()

    def handle_key(self, key: str) -> FieldCommit | None:
        """Enter commits, Escape cancels, every other key is ignored."""
        if not self.is_editing:
            return None
        if key in ("enter", "Enter"):
            return self.commit()
        if key in ("escape", "Escape"):
            self.cancel()
        return None
