"""
Event bus for Good Fight state changes.

Provides decoupled communication between the rules engine and whatever
renders it. Components subscribe to events and react without tight
coupling; the engine never imports UI code.

Usage:
    from .event_bus import get_event_bus, EventType

    # Subscribe (typically when a UI starts)
    bus = get_event_bus()
    bus.on(EventType.CRACKDOWN, my_handler)

    # Emit (in the engine when state changes)
    bus.emit(EventType.CRACKDOWN, tier=3, roll=55)

    # Handler receives event
    def my_handler(event: GameEvent):
        console.print(f"Crackdown tier {event.data['tier']}!")
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable

logger = logging.getLogger(__name__)


class EventType(Enum):
    """Game events that can be published."""

    # Recruitment events
    POOL_DRAWN = "pool.drawn"
    RECRUIT_SUCCEEDED = "recruit.succeeded"
    RECRUIT_FAILED = "recruit.failed"

    # Operation events
    OPERATION_RESOLVED = "operation.resolved"
    OPERATION_STARTED = "operation.started"
    OPERATION_COMPLETED = "operation.completed"
    OPERATIVE_DETAINED = "operative.detained"
    OPPORTUNITY_OPENED = "opportunity.opened"

    # Turn events
    CRACKDOWN = "crackdown"
    TURN_ENDED = "turn.ended"
    VICTORY = "victory"

    # Session events
    GAME_STARTED = "game.started"
    GAME_LOADED = "game.loaded"
    GAME_SAVED = "game.saved"


@dataclass
class GameEvent:
    """
    Event payload for the event bus.

    Attributes:
        type: The event type (from EventType enum)
        data: Event-specific payload as dict
        turn: Turn number when the event occurred
        timestamp: When the event was emitted
    """

    type: EventType
    data: dict = field(default_factory=dict)
    turn: int = 0
    timestamp: datetime = field(default_factory=datetime.now)

    def __str__(self) -> str:
        return f"[{self.type.value}] {self.data}"


# Type alias for event handlers
EventHandler = Callable[[GameEvent], None]


class EventBus:
    """
    Synchronous event bus.

    Listeners are called immediately on emit(). For async work,
    listeners should schedule it themselves with asyncio.create_task().
    """

    def __init__(self):
        self._listeners: dict[EventType, list[EventHandler]] = {}
        self._history: list[GameEvent] = []
        self._history_limit = 100  # Keep last N events for debugging

    def on(self, event_type: EventType, handler: EventHandler) -> None:
        """Subscribe to an event type."""
        if event_type not in self._listeners:
            self._listeners[event_type] = []
        if handler not in self._listeners[event_type]:
            self._listeners[event_type].append(handler)

    def off(self, event_type: EventType, handler: EventHandler) -> None:
        """Unsubscribe from an event type."""
        if event_type in self._listeners and handler in self._listeners[event_type]:
            self._listeners[event_type].remove(handler)

    def emit(self, event_type: EventType, turn: int = 0, **data) -> GameEvent:
        """
        Emit an event to all subscribers.

        Args:
            event_type: The type of event
            turn: Turn number (optional)
            **data: Event-specific data

        Returns:
            The emitted GameEvent (for chaining/testing)
        """
        event = GameEvent(type=event_type, data=data, turn=turn)

        self._history.append(event)
        if len(self._history) > self._history_limit:
            self._history = self._history[-self._history_limit :]

        for handler in list(self._listeners.get(event_type, [])):
            try:
                handler(event)
            except Exception as e:
                # One bad listener shouldn't break the others or the engine
                logger.error(f"Error in handler for {event_type.value}: {e}")

        return event

    def clear(self) -> None:
        """Clear all listeners and history. Useful for testing."""
        self._listeners.clear()
        self._history.clear()

    def get_history(self, event_type: EventType | None = None) -> list[GameEvent]:
        """Recent events, optionally filtered by type."""
        if event_type is None:
            return list(self._history)
        return [e for e in self._history if e.type == event_type]

    def listener_count(self, event_type: EventType) -> int:
        return len(self._listeners.get(event_type, []))


# Global singleton instance
_event_bus: EventBus | None = None


def get_event_bus() -> EventBus:
    """
    Get the global event bus instance.

    Returns the same instance across all calls (singleton pattern).
    """
    global _event_bus
    if _event_bus is None:
        _event_bus = EventBus()
    return _event_bus


def reset_event_bus() -> None:
    """Reset the global event bus. Useful for testing."""
    global _event_bus
    _event_bus = None
