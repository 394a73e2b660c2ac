"""State management for Good Fight games."""

from .schema import (
    GameState,
    Card,
    Suit,
    Rank,
    TimedCard,
    Operative,
    MultiTurnOp,
    Opportunity,
    InputMode,
    OperationType,
    RANK_VALUES,
)
from .store import SaveStore, JsonSaveStore, MemorySaveStore, STORAGE_PREFIX
from .event_bus import (
    EventBus,
    EventType,
    GameEvent,
    get_event_bus,
    reset_event_bus,
)

__all__ = [
    # Schema
    "GameState",
    "Card",
    "Suit",
    "Rank",
    "TimedCard",
    "Operative",
    "MultiTurnOp",
    "Opportunity",
    "InputMode",
    "OperationType",
    "RANK_VALUES",
    # Store
    "SaveStore",
    "JsonSaveStore",
    "MemorySaveStore",
    "STORAGE_PREFIX",
    # Events
    "EventBus",
    "EventType",
    "GameEvent",
    "get_event_bus",
    "reset_event_bus",
]
