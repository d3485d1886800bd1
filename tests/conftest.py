"""
Pytest fixtures for initiative tracker tests.

Provides demo-seeded stores, isolated event buses and key dispatchers.
"""

import pytest
from pathlib import Path

# Add the project root to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from initiative.interface.keys import KeyDispatcher, reset_key_dispatcher
from initiative.interface.local import LocalTracker
from initiative.state import (
    ENEMY_CATALOG,
    Combatant,
    EncounterStore,
    EventBus,
    MemoryReorderPersistence,
    ReorderSync,
    demo_state,
    reset_event_bus,
)


@pytest.fixture(autouse=True)
def isolated_globals():
    """Fresh process-wide event bus and key dispatcher for every test."""
    reset_event_bus()
    reset_key_dispatcher()
    yield
    reset_event_bus()
    reset_key_dispatcher()


@pytest.fixture
def bus():
    """Private event bus."""
    return EventBus()


@pytest.fixture
def persistence():
    """Reorder persistence that records moves."""
    return MemoryReorderPersistence()


@pytest.fixture
def sync(persistence, bus):
    return ReorderSync(persistence, bus=bus)


@pytest.fixture
def store(bus):
    """Demo-seeded store with no reorder forwarding."""
    return EncounterStore(state=demo_state(), catalog=ENEMY_CATALOG, bus=bus)


@pytest.fixture
def synced_store(bus, sync):
    """Demo-seeded store that forwards reorders to memory persistence."""
    return EncounterStore(state=demo_state(), catalog=ENEMY_CATALOG, sync=sync, bus=bus)


@pytest.fixture
def empty_store(bus):
    """Store with no encounters."""
    return EncounterStore(catalog=ENEMY_CATALOG, bus=bus)


@pytest.fixture
def dispatcher():
    return KeyDispatcher()


@pytest.fixture
def tracker(synced_store, dispatcher):
    """Offline tracker on the demo data."""
    return LocalTracker(store=synced_store, dispatcher=dispatcher)


@pytest.fixture
def party():
    """Aragorn (12, active), Legolas (18), Gimli (10) in manual order."""
    return (
        Combatant(id=1, name="Aragorn", initiative=12, is_active=True),
        Combatant(id=2, name="Legolas", initiative=18),
        Combatant(id=3, name="Gimli", initiative=10),
    )