"""
Pydantic models for encounter roster state.

Every model is frozen: a snapshot handed out by the store can never be
changed in place, and every mutation produces a new snapshot.
"""

from enum import Enum
from typing import Mapping

from pydantic import BaseModel, ConfigDict, Field


# -----------------------------------------------------------------------------
# Enums
# -----------------------------------------------------------------------------

class CombatantField(str, Enum):
    """Inline-editable combatant fields (wire names from the legacy client)."""
    NAME = "Name"
    ARMOR_CLASS = "ArmorClass"
    MAX_HP = "MaxHP"
    CURRENT_HP = "CurrentHP"
    INITIATIVE = "Initiative"

    @property
    def attr(self) -> str:
        """Model attribute backing this field."""
        return FIELD_ATTRS[self]

    @property
    def is_numeric(self) -> bool:
        return self is not CombatantField.NAME


FIELD_ATTRS: dict[CombatantField, str] = {
    CombatantField.NAME: "name",
    CombatantField.ARMOR_CLASS: "armor_class",
    CombatantField.MAX_HP: "max_hp",
    CombatantField.CURRENT_HP: "current_hp",
    CombatantField.INITIATIVE: "initiative",
}


# -----------------------------------------------------------------------------
# Core Models
# -----------------------------------------------------------------------------

class Combatant(BaseModel):
    """
    A tracked participant: player character or enemy.

    HP values are never clamped; current_hp may exceed max_hp or go negative.
    Initiative may be negative and may tie with other combatants.
    """
    model_config = ConfigDict(frozen=True)

    id: int
    name: str = ""
    armor_class: int = 0
    max_hp: int = 0
    current_hp: int = 0
    initiative: int = 0
    is_active: bool = False
    owner_id: str = ""  # Opaque tag, never validated

    def get(self, field: CombatantField) -> str | int:
        """Read an editable field by its wire name."""
        return getattr(self, field.attr)

    def with_field(self, field: CombatantField, value: str | int) -> "Combatant":
        """Copy of this combatant with one editable field replaced."""
        return self.model_copy(update={field.attr: value})


class Encounter(BaseModel):
    """
    A named container for one roster.

    The roster tuple *is* the manual order. Turn order is derived from it
    on demand and never stored.
    """
    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    description: str = ""
    owner_id: str = ""
    roster: tuple[Combatant, ...] = ()

    def find(self, combatant_id: int) -> Combatant | None:
        for combatant in self.roster:
            if combatant.id == combatant_id:
                return combatant
        return None

    def index_of(self, combatant_id: int) -> int:
        """Manual-order position of a combatant, or -1."""
        for i, combatant in enumerate(self.roster):
            if combatant.id == combatant_id:
                return i
        return -1

    @property
    def active(self) -> Combatant | None:
        for combatant in self.roster:
            if combatant.is_active:
                return combatant
        return None


class EnemyTemplate(BaseModel):
    """Read-only prototype used only as a clone source."""
    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    armor_class: int = 0
    max_hp: int = 0
    current_hp: int = 0
    initiative: int = 0
    owner_id: str = "enemy"


class TrackerState(BaseModel):
    """
    Whole-process roster snapshot.

    encounters keeps insertion order; current_encounter_id is None only
    while no encounter exists.
    """
    model_config = ConfigDict(frozen=True)

    encounters: Mapping[int, Encounter] = Field(default_factory=dict)
    current_encounter_id: int | None = None

    @property
    def current(self) -> Encounter | None:
        if self.current_encounter_id is None:
            return None
        return self.encounters.get(self.current_encounter_id)

    def combatant_ids(self) -> set[int]:
        """Every identity present in any roster."""
        return {c.id for enc in self.encounters.values() for c in enc.roster}
