"""Tests for EncounterStore operations."""

import pytest

from initiative.state import (
    CombatantField,
    EncounterStore,
    EventType,
    ReorderMove,
    TrackerState,
    fuzzy_match,
)


def names(roster):
    return [c.name for c in roster]


class TestSnapshots:
    """Snapshots are replaced, never changed in place."""

    def test_mutation_replaces_snapshot(self, store):
        before = store.state
        store.update_field(1, 2, CombatantField.CURRENT_HP, 12)

        assert store.state is not before
        assert before.encounters[1].find(2).current_hp == 40
        assert store.state.encounters[1].find(2).current_hp == 12

    def test_noop_keeps_snapshot(self, store):
        before = store.state
        store.update_field(1, 999, CombatantField.NAME, "Nobody")
        store.update_field(999, 1, CombatantField.NAME, "Nobody")
        store.set_active(1, 999)
        store.add_enemy_clone(1, 999)
        assert store.state is before

    def test_roster_of_unknown_encounter_is_empty(self, store):
        assert store.roster(42) == ()
        assert store.active(42) is None

    def test_locate(self, store):
        encounter_id, combatant = store.locate(5)
        assert encounter_id == 2
        assert combatant.name == "Legolas"
        assert store.locate(999) is None


class TestEncounters:
    """Encounter registration and switching."""

    def test_demo_encounters(self, store):
        assert [e.name for e in store.encounters] == [
            "Goblin Ambush", "Dragon's Lair", "Bandit Camp",
        ]
        assert store.current.id == 1

    def test_switch_returns_roster(self, store):
        roster = store.switch_encounter(2)
        assert store.current.id == 2
        assert names(roster) == ["Aragorn", "Legolas"]

    def test_switch_to_unknown_is_noop(self, store):
        store.switch_encounter(99)
        assert store.current.id == 1

    def test_first_encounter_becomes_current(self, empty_store):
        assert empty_store.current is None
        first = empty_store.add_encounter("Ambush")
        empty_store.add_encounter("Ambush, part two")
        assert empty_store.current.id == first.id

    def test_encounter_ids_increase(self, store):
        added = store.add_encounter("Crypt", description="Undead", owner_id="user1")
        assert added.id == 4
        assert store.state.encounters[4].description == "Undead"

    def test_switch_leaves_rosters_alone(self, store):
        before = {e.id: e.roster for e in store.encounters}
        store.switch_encounter(3)
        assert {e.id: e.roster for e in store.encounters} == before


class TestAddCombatants:
    """Blank rows, enemy clones and copies from other encounters."""

    def test_add_blank_appends(self, store):
        roster = store.add_combatant(1)
        added = roster[-1]
        assert len(roster) == 4
        assert added.name == ""
        assert (added.armor_class, added.max_hp, added.current_hp, added.initiative) == (0, 0, 0, 0)
        assert added.is_active is False

    def test_add_blank_with_stats(self, store):
        roster = store.add_combatant(1, owner_id="user9", name="Boromir", initiative=9)
        assert roster[-1].name == "Boromir"
        assert roster[-1].owner_id == "user9"

    def test_add_to_unknown_encounter(self, store):
        before = store.state
        assert store.add_combatant(42) == ()
        assert store.state is before

    def test_clone_enemy(self, store):
        roster = store.add_enemy_clone(1, 101)
        goblin = roster[-1]
        assert goblin.name == "Goblin"
        assert goblin.armor_class == 13
        assert goblin.current_hp == goblin.max_hp == 7
        assert goblin.initiative == 14
        assert goblin.owner_id == "enemy"
        assert goblin.is_active is False

    def test_clone_identity_is_unique(self, store):
        store.add_enemy_clone(1, 101)
        store.add_enemy_clone(1, 101)
        store.add_enemy_clone(2, 103)

        ids = [c.id for e in store.encounters for c in e.roster]
        assert len(ids) == len(set(ids))
        assert not set(ids) & set(store.catalog)

    def test_clone_leaves_template_untouched(self, store):
        template = store.catalog[103]
        before = template.model_dump()
        roster = store.add_enemy_clone(1, 103)
        store.update_field(1, roster[-1].id, CombatantField.CURRENT_HP, 1)
        assert store.catalog[103].model_dump() == before

    def test_add_existing_copies_with_fresh_identity(self, store):
        roster = store.add_existing(3, 2)
        copy = roster[-1]
        assert copy.name == "Legolas"
        assert copy.id != 2
        assert copy.is_active is False
        # Source untouched
        assert store.roster(1)[1].id == 2

    def test_add_existing_unknown(self, store):
        before = store.state
        store.add_existing(3, 999)
        assert store.state is before

    def test_added_event(self, store, bus):
        store.add_enemy_clone(1, 102)
        events = bus.get_history(EventType.COMBATANT_ADDED)
        assert events[-1].data["template_id"] == 102
        assert events[-1].encounter_id == 1


class TestUpdateField:
    """Single-field replacement by identity."""

    def test_only_target_changes(self, store):
        before = store.roster(1)
        after = store.update_field(1, 2, CombatantField.INITIATIVE, 3)

        assert [c.id for c in after] == [c.id for c in before]
        for old, new in zip(before, after):
            if new.id == 2:
                assert new.initiative == 3
                assert new.model_copy(update={"initiative": old.initiative}) == old
            else:
                assert new == old

    def test_accepts_wire_field_name(self, store):
        roster = store.update_field(1, 3, "Name", "Gimli son of Gloin")
        assert roster[2].name == "Gimli son of Gloin"

    def test_hp_is_not_clamped(self, store):
        roster = store.update_field(1, 1, CombatantField.CURRENT_HP, 99)
        assert roster[0].current_hp == 99
        roster = store.update_field(1, 1, CombatantField.CURRENT_HP, -5)
        assert roster[0].current_hp == -5

    def test_other_encounters_untouched(self, store):
        other = store.roster(2)
        store.update_field(1, 1, CombatantField.NAME, "Strider")
        assert store.roster(2) == other

    def test_save_combatant_keeps_active_flag(self, store):
        aragorn = store.roster(1)[0]
        renamed = aragorn.model_copy(update={"name": "Strider", "is_active": False})
        roster = store.save_combatant(1, renamed)
        assert roster[0].name == "Strider"
        assert roster[0].is_active is True


class TestActiveSelection:
    """Manual selection and turn advancement."""

    def test_set_active_is_exclusive(self, store):
        roster = store.set_active(1, 3)
        assert [c.id for c in roster if c.is_active] == [3]

    def test_scenario_advance(self, store):
        """Aragorn active: next is Gimli, then wrap to Legolas."""
        store.advance_turn(1)
        assert store.active(1).name == "Gimli"
        store.advance_turn(1)
        assert store.active(1).name == "Legolas"

    def test_full_cycle(self, store):
        start = store.active(1).id
        for _ in range(len(store.roster(1))):
            store.advance_turn(1)
        assert store.active(1).id == start

    def test_advance_empty_roster_is_noop(self, empty_store):
        encounter = empty_store.add_encounter("Empty")
        before = empty_store.state
        assert empty_store.advance_turn(encounter.id) == ()
        assert empty_store.state is before

    def test_advance_keeps_manual_order(self, store):
        before = [c.id for c in store.roster(1)]
        store.advance_turn(1)
        assert [c.id for c in store.roster(1)] == before

    def test_turn_advanced_event(self, store, bus):
        store.advance_turn(1)
        event = bus.get_history(EventType.TURN_ADVANCED)[-1]
        assert event.data["combatant_id"] == 3

    def test_field_commit_then_advance_both_land(self, store):
        """Back-to-back mutations each see the latest snapshot."""
        store.update_field(1, 3, CombatantField.CURRENT_HP, 20)
        store.advance_turn(1)
        gimli = store.roster(1)[2]
        assert gimli.current_hp == 20
        assert gimli.is_active is True


class TestReorder:
    """Manual-order moves."""

    def test_scenario_move_first_to_last(self, store):
        roster = store.reorder(1, 0, 2)
        assert names(roster) == ["Legolas", "Gimli", "Aragorn"]

    def test_turn_order_unaffected(self, store):
        before = [c.id for c in store.turn_order(1)]
        store.reorder(1, 0, 2)
        assert [c.id for c in store.turn_order(1)] == before

    def test_move_up(self, store):
        roster = store.reorder(1, 2, 0)
        assert names(roster) == ["Gimli", "Aragorn", "Legolas"]

    @pytest.mark.parametrize("from_index,to_index", [(-1, 0), (0, 3), (5, 1)])
    def test_out_of_range_is_noop(self, synced_store, persistence, from_index, to_index):
        before = synced_store.state
        synced_store.reorder(1, from_index, to_index)
        assert synced_store.state is before
        assert synced_store.sync.pending == 0

    def test_move_is_forwarded(self, synced_store, persistence):
        synced_store.reorder(1, 0, 2)
        synced_store.sync.wait_idle(timeout=5)
        assert persistence.moves == [ReorderMove(1, 0, 2)]


class TestSearch:
    """Fuzzy search outside the current encounter."""

    def test_fuzzy_match(self):
        assert fuzzy_match("Legolas", "lgs")
        assert fuzzy_match("Legolas", "LEG")
        assert not fuzzy_match("Legolas", "sal")
        assert fuzzy_match("anything", "")

    def test_excludes_current_encounter(self, store):
        results = store.search("")
        assert {c.id for c in results} == {4, 5, 6}

    def test_match(self, store):
        assert [c.id for c in store.search("lgs")] == [5]

    def test_limit(self, store):
        for _ in range(12):
            store.add_enemy_clone(2, 101)
        assert len(store.search("gob")) == 10


class TestEmptyState:
    """Store built without a snapshot."""

    def test_defaults(self):
        store = EncounterStore()
        assert store.state == TrackerState()
        assert store.encounters == []
        assert store.current is None
