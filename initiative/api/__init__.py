"""
Tracker HTTP API.

FastAPI server returning HTML fragments for the browser client, plus a
Python client that behaves like that browser client.
"""

from .server import create_app, TrackerAPI
from .client import LegacyClient, PendingEdit
from .schemas import (
    AddEnemyRequest,
    AddToEncounterRequest,
    CombatantState,
    EncounterState,
    ReorderAck,
    ReorderRequest,
    SaveCharacterRequest,
    SelectRequest,
    StateResponse,
)

__all__ = [
    "create_app",
    "TrackerAPI",
    "LegacyClient",
    "PendingEdit",
    "AddEnemyRequest",
    "AddToEncounterRequest",
    "CombatantState",
    "EncounterState",
    "ReorderAck",
    "ReorderRequest",
    "SaveCharacterRequest",
    "SelectRequest",
    "StateResponse",
]
