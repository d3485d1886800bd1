"""Tests for view-scoped key listeners."""

from initiative.interface.keys import KeyDispatcher, get_key_dispatcher, reset_key_dispatcher


class TestKeyDispatcher:
    """Install, dispatch, remove."""

    def test_dispatch_runs_listener(self):
        dispatcher = KeyDispatcher()
        calls = []
        dispatcher.install("roster", "space", lambda: calls.append(1))
        assert dispatcher.dispatch("space") is True
        assert dispatcher.dispatch("enter") is False
        assert calls == [1]

    def test_install_is_idempotent(self):
        """Re-entering a view never stacks a second handler."""
        dispatcher = KeyDispatcher()
        calls = []
        for _ in range(3):
            dispatcher.install("roster", "space", lambda: calls.append(1))
        dispatcher.dispatch("space")
        assert calls == [1]
        assert dispatcher.listener_count("space") == 1

    def test_remove_view(self):
        dispatcher = KeyDispatcher()
        dispatcher.install("roster", "space", lambda: None)
        dispatcher.install("roster", "n", lambda: None)
        dispatcher.install("other", "space", lambda: None)
        dispatcher.remove_view("roster")
        assert dispatcher.listener_count() == 1

    def test_scoped_listener(self):
        dispatcher = KeyDispatcher()
        calls = []
        with dispatcher.scoped("roster", "space", lambda: calls.append(1)):
            dispatcher.dispatch("space")
        dispatcher.dispatch("space")
        assert calls == [1]
        assert dispatcher.listener_count() == 0

    def test_blocked_listener_skipped(self):
        """The block check is asked on every press, never cached."""
        dispatcher = KeyDispatcher()
        calls = []
        editing = [True]
        dispatcher.install("roster", "space", lambda: calls.append(1), is_blocked=lambda: editing[0])
        assert dispatcher.dispatch("space") is False
        editing[0] = False
        assert dispatcher.dispatch("space") is True
        assert calls == [1]

    def test_global_dispatcher(self):
        first = get_key_dispatcher()
        assert get_key_dispatcher() is first
        reset_key_dispatcher()
        assert get_key_dispatcher() is not first
