"""
Event bus for roster state changes.

Lets the surfaces (TUI, HTTP server) react to store mutations without the
store knowing about them.

Usage:
    from .event_bus import get_event_bus, EventType

    bus = get_event_bus()
    bus.on(EventType.TURN_ADVANCED, my_handler)

    # Emitted by the store after the snapshot is replaced
    bus.emit(EventType.TURN_ADVANCED, encounter_id=1, combatant_id=2)

    def my_handler(event: TrackerEvent):
        print(f"Now acting: {event.data['combatant_id']}")
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable

logger = logging.getLogger(__name__)


class EventType(Enum):
    """Roster events that can be published."""

    # Encounter events
    ENCOUNTER_ADDED = "encounter.added"
    ENCOUNTER_SWITCHED = "encounter.switched"

    # Combatant events
    COMBATANT_ADDED = "combatant.added"
    COMBATANT_UPDATED = "combatant.updated"

    # Turn events
    ACTIVE_CHANGED = "turn.active_changed"
    TURN_ADVANCED = "turn.advanced"

    # Manual order events
    ROSTER_REORDERED = "roster.reordered"
    REORDER_SYNCED = "reorder.synced"
    REORDER_SYNC_FAILED = "reorder.sync_failed"


@dataclass
class TrackerEvent:
    """
    Event payload for the event bus.

    Attributes:
        type: The event type (from EventType enum)
        data: Event-specific payload as dict
        encounter_id: Encounter the event belongs to, if any
        timestamp: When the event was emitted
    """

    type: EventType
    data: dict = field(default_factory=dict)
    encounter_id: int | None = None
    timestamp: datetime = field(default_factory=datetime.now)

    def __str__(self) -> str:
        return f"[{self.type.value}] {self.data}"


EventHandler = Callable[[TrackerEvent], None]


class EventBus:
    """
    Synchronous event bus.

    Listeners run immediately inside emit(), on the caller's thread.
    A listener that raises is logged and skipped; the rest still run.
    """

    def __init__(self):
        self._listeners: dict[EventType, list[EventHandler]] = {}
        self._history: list[TrackerEvent] = []
        self._history_limit = 100

    def on(self, event_type: EventType, handler: EventHandler) -> None:
        """Subscribe to an event type. Subscribing twice is a no-op."""
        if event_type not in self._listeners:
            self._listeners[event_type] = []
        if handler not in self._listeners[event_type]:
            self._listeners[event_type].append(handler)

    def off(self, event_type: EventType, handler: EventHandler) -> None:
        """Unsubscribe from an event type."""
        if event_type in self._listeners and handler in self._listeners[event_type]:
            self._listeners[event_type].remove(handler)

    def emit(
        self,
        event_type: EventType,
        encounter_id: int | None = None,
        **data,
    ) -> TrackerEvent:
        """
        Emit an event to all subscribers.

        Returns:
            The emitted TrackerEvent (for chaining/testing)
        """
        event = TrackerEvent(type=event_type, data=data, encounter_id=encounter_id)

        self._history.append(event)
        if len(self._history) > self._history_limit:
            self._history = self._history[-self._history_limit :]

        for handler in list(self._listeners.get(event_type, [])):
            try:
                handler(event)
            except Exception:
                logger.exception("Error in handler for %s", event_type.value)

        return event

    def clear(self) -> None:
        """Clear all listeners. Useful for testing."""
        self._listeners.clear()

    def get_history(self, event_type: EventType | None = None) -> list[TrackerEvent]:
        """Recent events, optionally filtered by type."""
        if event_type is None:
            return list(self._history)
        return [e for e in self._history if e.type == event_type]

    def listener_count(self, event_type: EventType) -> int:
        return len(self._listeners.get(event_type, []))


_event_bus: EventBus | None = None


def get_event_bus() -> EventBus:
    """Process-wide event bus (created on first use)."""
    global _event_bus
    if _event_bus is None:
        _event_bus = EventBus()
    return _event_bus


def reset_event_bus() -> None:
    """Drop the global event bus. Useful for testing."""
    global _event_bus
    _event_bus = None
