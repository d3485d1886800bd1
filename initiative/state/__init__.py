"""Roster state for the initiative tracker."""

from .schema import (
    Combatant,
    CombatantField,
    Encounter,
    EnemyTemplate,
    TrackerState,
)
from .factory import CombatantFactory, CounterIdGenerator, IdGenerator
from .editing import EditPhase, FieldCommit, FieldEditSession, RowEditor, parse_number
from .event_bus import (
    EventBus,
    EventType,
    TrackerEvent,
    get_event_bus,
    reset_event_bus,
)
from .sync import (
    HttpReorderPersistence,
    MemoryReorderPersistence,
    ReorderMove,
    ReorderPersistence,
    ReorderSync,
)
from .store import EncounterStore, fuzzy_match
from .seed import DEMO_ENCOUNTERS, DEMO_PARTY, ENEMY_CATALOG, demo_state

__all__ = [
    # Schema
    "Combatant",
    "CombatantField",
    "Encounter",
    "EnemyTemplate",
    "TrackerState",
    # Factory
    "CombatantFactory",
    "CounterIdGenerator",
    "IdGenerator",
    # Editing
    "EditPhase",
    "FieldCommit",
    "FieldEditSession",
    "RowEditor",
    "parse_number",
    # Event Bus
    "EventBus",
    "EventType",
    "TrackerEvent",
    "get_event_bus",
    "reset_event_bus",
    # Sync
    "HttpReorderPersistence",
    "MemoryReorderPersistence",
    "ReorderMove",
    "ReorderPersistence",
    "ReorderSync",
    # Store
    "EncounterStore",
    "fuzzy_match",
    # Seed
    "DEMO_ENCOUNTERS",
    "DEMO_PARTY",
    "ENEMY_CATALOG",
    "demo_state",
]
