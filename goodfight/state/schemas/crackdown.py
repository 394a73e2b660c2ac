"""
Crackdown penalty descriptor.

The resolver produces a CrackdownPenalty from (heat, roll, personnel
counts) without touching state; the turn lifecycle applies it.
"""

from enum import Enum

from pydantic import BaseModel, Field


class PenaltyKind(str, Enum):
    SUPPLIES = "supplies"
    INFLUENCE = "influence"
    LOSE_OPERATIVE = "lose_operative"
    LOSE_INITIATE = "lose_initiate"


class PenaltyStep(BaseModel):
    """One concrete penalty: a resource delta or a personnel loss count."""
    kind: PenaltyKind
    amount: int  # resource points or number of cards

    def describe(self) -> str:
        match self.kind:
            case PenaltyKind.SUPPLIES:
                return f"-{self.amount} Supplies"
            case PenaltyKind.INFLUENCE:
                return f"-{self.amount} Influence"
            case PenaltyKind.LOSE_OPERATIVE:
                return f"lose {self.amount} operative(s)"
            case PenaltyKind.LOSE_INITIATE:
                return f"lose {self.amount} initiate(s)"


class CrackdownPenalty(BaseModel):
    """Result of a crackdown check. tier 0 means no crackdown."""
    roll: int
    heat: int
    tier: int = 0
    steps: list[PenaltyStep] = Field(default_factory=list)

    @property
    def triggered(self) -> bool:
        return self.tier > 0

    def describe(self) -> str:
        if not self.triggered:
            return "No crackdown"
        return f"Tier {self.tier} crackdown: " + ", ".join(
            s.describe() for s in self.steps
        )
