"""
TurnResult schema: the output of end_turn.

Carries everything that happened while the turn closed: promotions,
releases, completed assignments, the crackdown roll and its penalty.
The UI renders from the GameState afterwards; this is the change feed.
"""

from pydantic import BaseModel, Field

from .action import OperationResult
from .crackdown import CrackdownPenalty
from .event import LogEntry


class TurnResult(BaseModel):
    """Complete result of an end-of-turn transition."""
    turn_ended: int
    new_turn: int
    promoted: list[str] = Field(default_factory=list)  # card keys
    released: list[str] = Field(default_factory=list)  # card keys
    completed_operations: list[OperationResult] = Field(default_factory=list)
    crackdown_roll: int
    crackdown: CrackdownPenalty
    heat_before: int
    heat_after: int
    leader_skill_level: int
    victory: bool = False
    events: list[LogEntry] = Field(default_factory=list)
