"""
Randomness facade owned by each engine.

Holds the active dice and card providers and is the only way engine code
obtains randomness. Providers can be swapped at any time; passing None
restores the automatic implementation.

Card reconciliation happens here: when the active card provider does not
mutate the deck (relay, scripted, plain function), the facade removes the
returned cards from the deck itself, so every card stays in exactly one
place no matter where draws come from.
"""

from __future__ import annotations

import logging
import random

from ..errors import CardNotInDeck
from ..state.schema import Card
from .deck import AutomaticDeck, CardProvider, FunctionDeck, take_card
from .dice import AutomaticDice, DiceProvider, DieType, FunctionDice, parse_die, validate_roll

logger = logging.getLogger(__name__)


class Randomness:
    """
    Dice and card source for one engine.

    Usage:
        randomness = Randomness(seed=7)
        value = await randomness.roll("d10")
        cards = await randomness.draw_cards(state.recruit_deck, 3)

        randomness.set_dice_provider(RelayDice())   # physical dice
        randomness.set_dice_provider(None)          # back to automatic
    """

    def __init__(self, seed: int | None = None, rng: random.Random | None = None):
        self.rng = rng or random.Random(seed)
        self._automatic_dice = AutomaticDice(self.rng)
        self._automatic_deck = AutomaticDeck()
        self._dice: DiceProvider = self._automatic_dice
        self._deck: CardProvider = self._automatic_deck

    @property
    def dice_provider(self) -> DiceProvider:
        return self._dice

    @property
    def deck_provider(self) -> CardProvider:
        return self._deck

    @property
    def dice_automatic(self) -> bool:
        return self._dice is self._automatic_dice

    @property
    def cards_automatic(self) -> bool:
        return self._deck is self._automatic_deck

    def set_dice_provider(self, provider) -> None:
        """Install a DiceProvider, a plain callable, or None for automatic."""
        if provider is None:
            self._dice = self._automatic_dice
        elif isinstance(provider, DiceProvider):
            self._dice = provider
        elif callable(provider):
            self._dice = FunctionDice(provider)
        else:
            raise TypeError(f"Not a dice provider: {provider!r}")

    def set_deck_provider(self, provider) -> None:
        """Install a CardProvider, a plain callable, or None for automatic."""
        if provider is None:
            self._deck = self._automatic_deck
        elif isinstance(provider, CardProvider):
            self._deck = provider
        elif callable(provider):
            self._deck = FunctionDeck(provider)
        else:
            raise TypeError(f"Not a card provider: {provider!r}")

    async def roll(self, die: DieType | str) -> int:
        """Roll one die through the active provider."""
        die = parse_die(die)
        value = validate_roll(die, await self._dice.roll(die))
        logger.debug(f"Rolled {die.value}: {value}")
        return value

    async def draw_cards(self, deck: list[Card], count: int) -> list[Card]:
        """
        Draw up to `count` cards. Short decks return fewer cards.

        Raises CardNotInDeck (before removing anything) when a
        non-mutating provider returns a card the deck does not hold.
        Cards beyond `count` from such a provider are dropped.
        """
        count = max(0, min(count, len(deck)))
        if count == 0:
            return []

        provider = self._deck
        drawn = await provider.draw(deck, count)
        if provider.mutates_deck:
            return drawn

        if len(drawn) > count:
            logger.warning(f"Provider returned {len(drawn)} cards for a draw of {count}; keeping {count}")
            drawn = drawn[:count]

        keys = [c.key for c in drawn]
        deck_keys = {c.key for c in deck}
        for key in keys:
            if key not in deck_keys or keys.count(key) > 1:
                raise CardNotInDeck(key)
        return [take_card(deck, key) for key in keys]
