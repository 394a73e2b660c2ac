"""
Action schemas for operations and recruitment.

Defines the records the engine hands back to drivers:
- Requirement / OperationPreview: read-only answer to "can I run this?"
- RollRecord: one die request and its result
- OperationResult / RecruitResult: what a resolved action did

Previews are non-mutating. Results are produced after mutation and carry
the log entries the action appended.
"""

from enum import Enum

from pydantic import BaseModel, Field

from .event import LogEntry


class OperationType(str, Enum):
    """Every operation the player can run. Closed set."""
    MINOR_VANDALISM = "minor_vandalism"
    AVERAGE_VANDALISM = "average_vandalism"
    SIGNIFICANT_VANDALISM = "significant_vandalism"
    GATHER_SUPPLIES = "gather_supplies"
    SCOUT = "scout"
    MID_GAME_OP = "mid_game_op"
    LATE_GAME_OP = "late_game_op"


class RequirementStatus(str, Enum):
    """Whether a requirement is met."""
    MET = "met"
    UNMET = "unmet"


class Requirement(BaseModel):
    """
    A single requirement for an operation.

    Returned in OperationPreview so the player sees exactly what is
    missing before committing.
    """
    label: str  # "4 available operatives"
    status: RequirementStatus
    detail: str = ""  # "Have 2"


class OperationPreview(BaseModel):
    """Engine preview of an operation. No mutation occurs."""
    operation: OperationType
    feasible: bool
    requirements: list[Requirement] = Field(default_factory=list)

    @property
    def unmet(self) -> list[str]:
        return [
            r.label for r in self.requirements
            if r.status == RequirementStatus.UNMET
        ]


class RollRecord(BaseModel):
    """A single die request within a resolution."""
    die: str
    value: int
    purpose: str = ""  # "check", "bonus", "draw chance", ...


class OperationResult(BaseModel):
    """Outcome of resolve_operation (or a multi-turn completion)."""
    operation: OperationType
    success: bool
    pending: bool = False  # True when the operation was only started
    operation_id: str | None = None  # MultiTurnOp id for assignments
    rolls: list[RollRecord] = Field(default_factory=list)
    outcome: str | None = None  # mid/late-game table entry
    participants: list[str] = Field(default_factory=list)
    events: list[LogEntry] = Field(default_factory=list)


class RecruitResult(BaseModel):
    """Outcome of attempt_recruit."""
    card: str  # card key
    recruiter: str  # "leader" or an operative card key
    success: bool
    rolls: list[RollRecord] = Field(default_factory=list)
    total: int
    target: int
    events: list[LogEntry] = Field(default_factory=list)
