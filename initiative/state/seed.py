"""
Fixed demo data for the offline tracker.

Three player characters, a small enemy catalog, and three named
encounters sharing slices of the party.
"""

from types import MappingProxyType
from typing import Mapping

from .schema import Combatant, Encounter, EnemyTemplate, TrackerState


DEMO_PARTY: tuple[Combatant, ...] = (
    Combatant(
        id=1, name="Aragorn", armor_class=16, max_hp=45, current_hp=38,
        initiative=12, is_active=True, owner_id="user1",
    ),
    Combatant(
        id=2, name="Legolas", armor_class=15, max_hp=40, current_hp=40,
        initiative=18, owner_id="user2",
    ),
    Combatant(
        id=3, name="Gimli", armor_class=17, max_hp=50, current_hp=50,
        initiative=10, owner_id="user3",
    ),
)


ENEMY_CATALOG: Mapping[int, EnemyTemplate] = MappingProxyType({
    101: EnemyTemplate(id=101, name="Goblin", armor_class=13, max_hp=7, current_hp=7, initiative=14),
    102: EnemyTemplate(id=102, name="Orc", armor_class=15, max_hp=15, current_hp=15, initiative=11),
    103: EnemyTemplate(id=103, name="Dragon", armor_class=19, max_hp=200, current_hp=200, initiative=20),
})


def _copies(members: tuple[Combatant, ...], first_id: int) -> tuple[Combatant, ...]:
    # Identities are process-unique, so a character sitting in two
    # encounters is two combatants.
    return tuple(
        c.model_copy(update={"id": first_id + i})
        for i, c in enumerate(members)
    )


DEMO_ENCOUNTERS: tuple[Encounter, ...] = (
    Encounter(id=1, name="Goblin Ambush", roster=DEMO_PARTY),
    Encounter(id=2, name="Dragon's Lair", roster=_copies(DEMO_PARTY[:2], 4)),
    Encounter(id=3, name="Bandit Camp", roster=_copies(DEMO_PARTY[2:], 6)),
)


def demo_state() -> TrackerState:
    """Initial snapshot: every demo encounter, the first one current."""
    return TrackerState(
        encounters={enc.id: enc for enc in DEMO_ENCOUNTERS},
        current_encounter_id=DEMO_ENCOUNTERS[0].id,
    )
