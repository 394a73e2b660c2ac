"""
Pydantic models for Good Fight game state.

All state is versioned for migration support and serializes to plain
JSON. GameState is the single mutable record of a game in progress;
every resource write goes through a clamping validator.
"""

from enum import Enum
from typing import Literal
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .schemas.action import OperationType
from .schemas.event import LogEntry


# -----------------------------------------------------------------------------
# Limits
# -----------------------------------------------------------------------------

INFLUENCE_MAX = 500
HEAT_MAX = 100
DECK_SIZE = 52
RECRUIT_TIMER = 2
VICTORY_LATE_GAME_OPS = 3


# -----------------------------------------------------------------------------
# Enums
# -----------------------------------------------------------------------------

class Suit(str, Enum):
    HEARTS = "hearts"
    DIAMONDS = "diamonds"
    CLUBS = "clubs"
    SPADES = "spades"


class Rank(str, Enum):
    TWO = "2"
    THREE = "3"
    FOUR = "4"
    FIVE = "5"
    SIX = "6"
    SEVEN = "7"
    EIGHT = "8"
    NINE = "9"
    TEN = "10"
    JACK = "J"
    QUEEN = "Q"
    KING = "K"
    ACE = "A"


# Aces jump to 15, there is no 14
RANK_VALUES: dict[Rank, int] = {
    Rank.TWO: 2,
    Rank.THREE: 3,
    Rank.FOUR: 4,
    Rank.FIVE: 5,
    Rank.SIX: 6,
    Rank.SEVEN: 7,
    Rank.EIGHT: 8,
    Rank.NINE: 9,
    Rank.TEN: 10,
    Rank.JACK: 11,
    Rank.QUEEN: 12,
    Rank.KING: 13,
    Rank.ACE: 15,
}

SUIT_SYMBOLS: dict[Suit, str] = {
    Suit.HEARTS: "♥",
    Suit.DIAMONDS: "♦",
    Suit.CLUBS: "♣",
    Suit.SPADES: "♠",
}


InputSource = Literal["digital", "physical"]


# -----------------------------------------------------------------------------
# Cards & Personnel
# -----------------------------------------------------------------------------

class Card(BaseModel):
    """
    An immutable playing card.

    Identity is the (suit, rank) pair; value is derived from the rank and
    rejected if a saved file disagrees.
    """
    model_config = ConfigDict(frozen=True)

    suit: Suit
    rank: Rank
    value: int

    @model_validator(mode="before")
    @classmethod
    def _derive_value(cls, data):
        if isinstance(data, dict) and data.get("value") is None and "rank" in data:
            data = {**data, "value": RANK_VALUES[Rank(data["rank"])]}
        return data

    @model_validator(mode="after")
    def _check_value(self) -> "Card":
        expected = RANK_VALUES[self.rank]
        if self.value != expected:
            raise ValueError(
                f"Card {self.rank.value} of {self.suit.value} has value "
                f"{self.value}, expected {expected}"
            )
        return self

    @classmethod
    def of(cls, rank: Rank | str, suit: Suit | str) -> "Card":
        """Build a card from rank and suit."""
        return cls(suit=Suit(suit), rank=Rank(rank))

    @property
    def key(self) -> str:
        """Stable identifier, e.g. 'K-spades'."""
        return f"{self.rank.value}-{self.suit.value}"

    @property
    def label(self) -> str:
        """Short display form, e.g. 'K♠'."""
        return f"{self.rank.value}{SUIT_SYMBOLS[self.suit]}"

    def __str__(self) -> str:
        return self.label


class TimedCard(BaseModel):
    """A card waiting out a timer (initiate maturing, operative detained)."""
    card: Card
    turns_remaining: int = Field(ge=0)
    created_turn: int | None = None  # timer holds on the turn it was set


class Operative(BaseModel):
    """
    A card serving as an operative.

    tapped: already used this turn (cleared at end of turn)
    assignment: id of the multi-turn operation holding this operative
    """
    card: Card
    tapped: bool = False
    assignment: str | None = None

    @property
    def value(self) -> int:
        return self.card.value

    @property
    def key(self) -> str:
        return self.card.key

    @property
    def available(self) -> bool:
        """Free to be tapped for an action this turn."""
        return not self.tapped and self.assignment is None


# -----------------------------------------------------------------------------
# Operations
# -----------------------------------------------------------------------------

class MultiTurnOp(BaseModel):
    """An operation whose operatives are committed across several turns."""
    id: str = Field(default_factory=lambda: str(uuid4())[:8])
    operation: OperationType
    turns_remaining: int = Field(ge=0)
    assigned_operatives: list[str] = Field(default_factory=list)  # card keys
    started_turn: int = 1

    @property
    def operation_id(self) -> str:
        return self.operation.value


class Opportunity(BaseModel):
    """A mid- or late-game operation the player has unlocked."""
    id: str = Field(default_factory=lambda: str(uuid4())[:8])
    name: str
    created_turn: int = 1


class InputMode(BaseModel):
    """Where dice results and card draws come from."""
    dice: InputSource = "digital"
    cards: InputSource = "digital"


# -----------------------------------------------------------------------------
# Game State
# -----------------------------------------------------------------------------

class GameState(BaseModel):
    """
    The single mutable record of a game in progress.

    Resources clamp on every write (validate_assignment), so
    `state.heat = 250` stores 100. Deltas go through the add_* helpers.
    """
    model_config = ConfigDict(validate_assignment=True)

    version: str = "1.0.0"

    # Setup
    resistance_values: list[str] = Field(default_factory=list)
    regime_type: list[str] = Field(default_factory=list)
    input_mode: InputMode = Field(default_factory=InputMode)

    # Resources
    influence: int = 0
    heat: int = 0
    supplies: int = 0

    # Deck & Personnel
    recruit_deck: list[Card] = Field(default_factory=list)
    recruit_pool: list[Card] = Field(default_factory=list)
    initiates: list[TimedCard] = Field(default_factory=list)
    operatives: list[Operative] = Field(default_factory=list)
    detained_operatives: list[TimedCard] = Field(default_factory=list)
    leader_skill_level: int = 0

    # Turn
    current_turn: int = Field(default=1, ge=1)
    multi_turn_ops: list[MultiTurnOp] = Field(default_factory=list)

    # Opportunities
    available_mid_game_ops: list[Opportunity] = Field(default_factory=list)
    available_late_game_ops: list[Opportunity] = Field(default_factory=list)
    completed_late_game_ops: list[str] = Field(default_factory=list)

    # Log
    turn_log: list[LogEntry] = Field(default_factory=list)

    # ─── Clamps ──────────────────────────────────────────────

    @field_validator("influence")
    @classmethod
    def _clamp_influence(cls, v: int) -> int:
        return max(0, min(INFLUENCE_MAX, v))

    @field_validator("heat")
    @classmethod
    def _clamp_heat(cls, v: int) -> int:
        return max(0, min(HEAT_MAX, v))

    @field_validator("supplies")
    @classmethod
    def _clamp_supplies(cls, v: int) -> int:
        return max(0, v)

    def set_influence(self, value: int) -> None:
        self.influence = value

    def set_heat(self, value: int) -> None:
        self.heat = value

    def set_supplies(self, value: int) -> None:
        self.supplies = value

    def add_influence(self, delta: int) -> None:
        self.influence = self.influence + delta

    def add_heat(self, delta: int) -> None:
        self.heat = self.heat + delta

    def add_supplies(self, delta: int) -> None:
        self.supplies = self.supplies + delta

    # ─── Personnel Queries ───────────────────────────────────

    @property
    def available_operatives(self) -> list[Operative]:
        """Operatives that are neither tapped nor assigned."""
        return [op for op in self.operatives if op.available]

    def find_operative(self, key: str) -> Operative | None:
        for op in self.operatives:
            if op.key == key:
                return op
        return None

    def recompute_leader_skill(self) -> int:
        """Leader skill mirrors the best operative (0 with none)."""
        self.leader_skill_level = max(
            (op.value for op in self.operatives), default=0,
        )
        return self.leader_skill_level

    def all_cards(self) -> list[Card]:
        """Every card the game currently tracks, wherever it sits."""
        return [
            *self.recruit_deck,
            *self.recruit_pool,
            *(t.card for t in self.initiates),
            *(op.card for op in self.operatives),
            *(t.card for t in self.detained_operatives),
        ]

    def card_count(self) -> int:
        return len(self.all_cards())

    def check_conservation(self) -> bool:
        """True when all 52 cards are present exactly once."""
        keys = [c.key for c in self.all_cards()]
        return len(keys) == DECK_SIZE and len(set(keys)) == DECK_SIZE

    @property
    def is_victory(self) -> bool:
        return len(self.completed_late_game_ops) >= VICTORY_LATE_GAME_OPS

    # ─── Log ─────────────────────────────────────────────────

    def log(self, event_type: str, text: str, **payload) -> LogEntry:
        """Append an entry to the turn log and return it."""
        entry = LogEntry(
            turn=self.current_turn,
            event_type=event_type,
            text=text,
            payload=payload,
        )
        self.turn_log.append(entry)
        return entry
