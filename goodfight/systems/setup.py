"""
New-game setup: the d6 setup tables and the starting state.

Every game starts with nothing but a shuffled deck: zero Influence, Heat
and Supplies, no personnel, turn 1. The resistance's values and the
regime it fights are picked from two d6 tables, by hand or by rolling.
"""

from __future__ import annotations

import logging
import random
from typing import Sequence

from ..state.schema import GameState, InputMode, InputSource
from ..tools.deck import create_deck, shuffle
from ..tools.dice import DieType
from ..tools.randomness import Randomness

logger = logging.getLogger(__name__)


RESISTANCE_VALUES = [
    "Liberty & Freedom",
    "Equality",
    "Collective Solidarity & Unity",
    "Democratic Processes",
    "Truth & Transparency",
    "Cultural & Historical Preservation",
]

REGIME_TYPES = [
    "Dictatorship",
    "Oligarchy",
    "Theocracy",
    "Surveillance State",
    "Foreign Occupation",
    "Kleptocracy",
]


def _check_labels(labels: Sequence[str], table: list[str], kind: str) -> list[str]:
    unknown = [label for label in labels if label not in table]
    if unknown:
        raise ValueError(f"Unknown {kind}: {', '.join(unknown)}")
    return list(labels)


def create_game(
    resistance_values: Sequence[str] = (),
    regime_type: Sequence[str] = (),
    dice_mode: InputSource = "digital",
    cards_mode: InputSource = "digital",
    rng: random.Random | None = None,
) -> GameState:
    """Fresh GameState with a shuffled 52-card deck."""
    deck = create_deck()
    shuffle(deck, rng)
    state = GameState(
        resistance_values=_check_labels(resistance_values, RESISTANCE_VALUES, "resistance value"),
        regime_type=_check_labels(regime_type, REGIME_TYPES, "regime type"),
        input_mode=InputMode(dice=dice_mode, cards=cards_mode),
        recruit_deck=deck,
    )
    state.log(
        "game.started",
        "The fight begins.",
        resistance_values=state.resistance_values,
        regime_type=state.regime_type,
    )
    logger.info(f"New game: dice {dice_mode}, cards {cards_mode}")
    return state


async def roll_setup(state: GameState, randomness: Randomness) -> tuple[str, str]:
    """
    Roll d6 on each setup table and record the results.

    Rolls the resistance value first, then the regime type. A label
    already chosen is not added twice.
    """
    value = RESISTANCE_VALUES[await randomness.roll(DieType.D6) - 1]
    regime = REGIME_TYPES[await randomness.roll(DieType.D6) - 1]
    if value not in state.resistance_values:
        state.resistance_values.append(value)
    if regime not in state.regime_type:
        state.regime_type.append(regime)
    state.log(
        "setup.rolled",
        f"Fighting for {value} against a {regime}.",
        resistance_value=value,
        regime_type=regime,
    )
    return value, regime
