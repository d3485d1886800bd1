"""
Pydantic schemas for the tracker HTTP API.

Request bodies use the camelCase keys of the legacy browser client
(armorClass, maxHP, oldIndex, ...). Python code reads the snake_case
attribute names.
"""

from pydantic import BaseModel, ConfigDict, Field

from ..state.schema import Combatant, Encounter


class _Request(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# -----------------------------------------------------------------------------
# Requests
# -----------------------------------------------------------------------------

class SelectRequest(_Request):
    """Select a combatant or encounter by id."""
    id: int


class SaveCharacterRequest(_Request):
    """Whole-combatant save. id 0 creates a new combatant."""
    id: int = 0
    name: str = ""
    armor_class: int = Field(default=0, alias="armorClass")
    max_hp: int = Field(default=0, alias="maxHP")
    current_hp: int = Field(default=0, alias="currentHP")
    initiative: int = 0
    owner_id: str = Field(default="", alias="ownerId")

    def stats(self) -> dict:
        """Editable fields as Combatant keyword arguments."""
        return self.model_dump(include={
            "name", "armor_class", "max_hp", "current_hp", "initiative",
        })


class ReorderRequest(_Request):
    """A committed drag move within manual order."""
    old_index: int = Field(alias="oldIndex")
    new_index: int = Field(alias="newIndex")


class AddEnemyRequest(_Request):
    template_id: int = Field(alias="templateId")


class AddToEncounterRequest(_Request):
    """Attach a combatant from another roster to the current encounter."""
    character_id: int


# -----------------------------------------------------------------------------
# Responses
# -----------------------------------------------------------------------------

class ReorderAck(BaseModel):
    status: str = "success"


class CombatantState(BaseModel):
    """Combatant as seen by API consumers."""
    id: int
    name: str
    armor_class: int
    max_hp: int
    current_hp: int
    initiative: int
    is_active: bool
    owner_id: str

    @classmethod
    def from_combatant(cls, combatant: Combatant) -> "CombatantState":
        return cls(**combatant.model_dump())


class EncounterState(BaseModel):
    """Snapshot of one encounter: manual order and derived turn order."""
    id: int
    name: str
    description: str = ""
    roster: list[CombatantState] = Field(default_factory=list)
    turn_order: list[int] = Field(
        default_factory=list,
        description="Combatant ids by initiative, highest first",
    )
    active_id: int | None = None

    @classmethod
    def from_encounter(cls, encounter: Encounter, turn_order: list[Combatant]) -> "EncounterState":
        active = encounter.active
        return cls(
            id=encounter.id,
            name=encounter.name,
            description=encounter.description,
            roster=[CombatantState.from_combatant(c) for c in encounter.roster],
            turn_order=[c.id for c in turn_order],
            active_id=active.id if active else None,
        )


class StateResponse(BaseModel):
    ok: bool = True
    encounter: EncounterState | None = None
    encounters: list[dict] = Field(default_factory=list)
