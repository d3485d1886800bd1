"""Tests for identity generation and combatant construction."""

import threading

from initiative.state import (
    ENEMY_CATALOG,
    CombatantFactory,
    CounterIdGenerator,
    IdGenerator,
)


class TestCounterIdGenerator:
    """Monotonic identities."""

    def test_monotonic(self):
        gen = CounterIdGenerator(start=10)
        assert [gen.next_id() for _ in range(3)] == [10, 11, 12]

    def test_is_id_generator(self):
        assert isinstance(CounterIdGenerator(), IdGenerator)

    def test_threads_never_share_an_id(self):
        gen = CounterIdGenerator()
        seen: list[int] = []
        lock = threading.Lock()

        def take():
            ids = [gen.next_id() for _ in range(200)]
            with lock:
                seen.extend(ids)

        threads = [threading.Thread(target=take) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert len(seen) == len(set(seen)) == 800


class TestCombatantFactory:
    """Blank rows and enemy clones."""

    def test_reserved_ids_skipped(self):
        factory = CombatantFactory(reserved=[1, 2, 4])
        assert [factory.fresh_id() for _ in range(3)] == [3, 5, 6]

    def test_reserve_later(self):
        factory = CombatantFactory()
        factory.reserve([1])
        assert factory.blank().id == 2

    def test_same_tick_clones_differ(self):
        """Two clones requested back to back never share an identity."""
        factory = CombatantFactory()
        goblin = ENEMY_CATALOG[101]
        first, second = factory.clone_enemy(goblin), factory.clone_enemy(goblin)
        assert first.id != second.id

    def test_clone_copies_stats(self):
        factory = CombatantFactory(reserved=ENEMY_CATALOG.keys())
        dragon = factory.clone_enemy(ENEMY_CATALOG[103])
        assert dragon.name == "Dragon"
        assert (dragon.armor_class, dragon.max_hp, dragon.current_hp, dragon.initiative) == (19, 200, 200, 20)
        assert dragon.owner_id == "enemy"
        assert dragon.id not in ENEMY_CATALOG

    def test_custom_generator(self):
        class Fixed:
            def __init__(self):
                self.values = iter([7, 7, 8])

            def next_id(self):
                return next(self.values)

        factory = CombatantFactory(id_generator=Fixed())
        assert factory.blank().id == 7
        assert factory.blank().id == 8

    def test_blank(self):
        blank = CombatantFactory().blank(owner_id="user1")
        assert blank.name == ""
        assert blank.owner_id == "user1"
        assert blank.is_active is False
