"""
Process-wide key listeners with view-scoped lifetimes.

A view installs its listeners when it becomes active and removes them when
it is torn down. Installing the same (view, key) again replaces nothing and
adds nothing, so switching views back and forth never stacks handlers.

    dispatcher = get_key_dispatcher()
    with dispatcher.scoped("roster", "space", tracker.advance_turn):
        ...  # space advances the turn only inside this block

A listener may carry an is_blocked predicate, asked on every press. The
roster view passes its store's is_editing, so keys typed into an open field
are never treated as commands.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Iterator

logger = logging.getLogger(__name__)

KeyHandler = Callable[[], None]
BlockedCheck = Callable[[], bool]


@dataclass(frozen=True)
class ListenerHandle:
    view: str
    key: str


@dataclass(frozen=True)
class _Listener:
    handler: KeyHandler
    is_blocked: BlockedCheck | None = None

    def blocked(self) -> bool:
        return self.is_blocked is not None and self.is_blocked()


class KeyDispatcher:
    """Routes key presses to the listeners of currently installed views."""

    def __init__(self):
        self._listeners: dict[ListenerHandle, _Listener] = {}

    def install(
        self,
        view: str,
        key: str,
        handler: KeyHandler,
        is_blocked: BlockedCheck | None = None,
    ) -> ListenerHandle:
        """Install a listener; a second install for the same view and key is ignored."""
        handle = ListenerHandle(view, key)
        if handle in self._listeners:
            logger.debug("Listener %s/%s already installed", view, key)
            return handle
        self._listeners[handle] = _Listener(handler, is_blocked)
        return handle

    def remove(self, handle: ListenerHandle) -> None:
        self._listeners.pop(handle, None)

    def remove_view(self, view: str) -> None:
        """Drop every listener a view installed."""
        for handle in [h for h in self._listeners if h.view == view]:
            del self._listeners[handle]

    @contextmanager
    def scoped(
        self,
        view: str,
        key: str,
        handler: KeyHandler,
        is_blocked: BlockedCheck | None = None,
    ) -> Iterator[ListenerHandle]:
        handle = self.install(view, key, handler, is_blocked)
        try:
            yield handle
        finally:
            self.remove(handle)

    def dispatch(self, key: str) -> bool:
        """
        Deliver a key press. Returns True if a listener handled it.

        Listeners whose is_blocked check answers True are skipped.
        """
        handled = False
        for handle, listener in list(self._listeners.items()):
            if handle.key != key or listener.blocked():
                continue
            listener.handler()
            handled = True
        return handled

    def listener_count(self, key: str | None = None) -> int:
        if key is None:
            return len(self._listeners)
        return sum(1 for h in self._listeners if h.key == key)


_dispatcher: KeyDispatcher | None = None


def get_key_dispatcher() -> KeyDispatcher:
    """Process-wide dispatcher (created on first use)."""
    global _dispatcher
    if _dispatcher is None:
        _dispatcher = KeyDispatcher()
    return _dispatcher


def reset_key_dispatcher() -> None:
    """Drop the global dispatcher. Useful for testing."""
    global _dispatcher
    _dispatcher = None
