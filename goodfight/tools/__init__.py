"""Dice, deck and randomness providers."""

from .dice import (
    DieType,
    AutomaticDice,
    RelayDice,
    ScriptedDice,
    die_max,
)
from .deck import (
    AutomaticDeck,
    RelayDeck,
    ScriptedDeck,
    create_deck,
    shuffle,
)
from .randomness import Randomness

__all__ = [
    "DieType",
    "AutomaticDice",
    "RelayDice",
    "ScriptedDice",
    "die_max",
    "AutomaticDeck",
    "RelayDeck",
    "ScriptedDeck",
    "create_deck",
    "shuffle",
    "Randomness",
]
