"""
Schema contracts for the Good Fight engine's results.

- OperationPreview: engine answer to "what would this need?" (no mutation)
- OperationResult / RecruitResult: what a resolved action did
- CrackdownPenalty: pure descriptor produced at turn end
- TurnResult: everything end_turn changed
- LogEntry: one record in the append-only turn log
"""

from .action import (
    Requirement,
    RequirementStatus,
    OperationPreview,
    RollRecord,
    OperationResult,
    RecruitResult,
)
from .crackdown import PenaltyKind, PenaltyStep, CrackdownPenalty
from .turn_result import TurnResult
from .event import LogEntry

__all__ = [
    "Requirement",
    "RequirementStatus",
    "OperationPreview",
    "RollRecord",
    "OperationResult",
    "RecruitResult",
    "PenaltyKind",
    "PenaltyStep",
    "CrackdownPenalty",
    "TurnResult",
    "LogEntry",
]
