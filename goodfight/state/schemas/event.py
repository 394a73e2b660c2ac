"""
LogEntry schema: individual records in the game's turn log.

Every resolved action appends one or more entries. Entries are never
edited or removed, so the log doubles as an audit trail for replay and
for the UI's event feed.
"""

from datetime import datetime
from uuid import uuid4

from pydantic import BaseModel, Field


class LogEntry(BaseModel):
    """
    A single event recorded during play.

    The payload carries the machine-readable details (rolls, card keys,
    deltas); text is the player-facing line.
    """
    event_id: str = Field(default_factory=lambda: str(uuid4())[:8])
    turn: int
    event_type: str  # e.g., "recruit.succeeded", "crackdown.applied", "turn.ended"
    text: str = ""
    payload: dict = Field(default_factory=dict)
    # Payload varies by event_type:
    # card.drawn: {"card": "K-spades", "value": 13}
    # recruit.failed: {"card": "A-hearts", "rolls": [...], "total": 9, "target": 15}
    # crackdown.applied: {"tier": 3, "steps": [...]}

    timestamp: datetime = Field(default_factory=datetime.now)

    def __str__(self) -> str:
        return f"T{self.turn} {self.text}"
