"""
Recruitment deck and card providers.

The deck is a plain list of Card values. Card providers answer
`await provider.draw(deck, count)`:

- AutomaticDeck: takes cards off the front of the deck (mutates it)
- RelayDeck: waits for an external source to name the cards drawn
- ScriptedDeck: hands out pre-chosen cards

Relay and scripted providers leave the deck alone; the Randomness facade
reconciles their cards against it.
"""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Iterable, Protocol, Sequence, Union, runtime_checkable

from pydantic import ValidationError

from ..errors import RequestCancelled, ScriptExhausted
from ..state.schema import Card, Rank, Suit

logger = logging.getLogger(__name__)


def create_deck() -> list[Card]:
    """A fresh, ordered 52-card deck (suit by suit, 2 through A)."""
    return [Card(suit=suit, rank=rank) for suit in Suit for rank in Rank]


def shuffle(deck: list[Card], rng: random.Random | None = None) -> None:
    """Shuffle in place."""
    (rng or random).shuffle(deck)


def return_cards(
    deck: list[Card],
    cards: Sequence[Card],
    rng: random.Random | None = None,
) -> None:
    """Put captured personnel back in the deck and reshuffle."""
    deck.extend(cards)
    shuffle(deck, rng)


def take_card(deck: list[Card], key: str) -> Card | None:
    """Remove and return the card with this key, or None if absent."""
    for i, card in enumerate(deck):
        if card.key == key:
            return deck.pop(i)
    return None


@runtime_checkable
class CardProvider(Protocol):
    """Anything that can produce drawn cards asynchronously."""

    mutates_deck: bool

    async def draw(self, deck: list[Card], count: int) -> list[Card]:
        ...


CardFunction = Callable[[int], Union[list[Card], Awaitable[list[Card]]]]


class AutomaticDeck:
    """Draws from the front of the backing deck."""

    mutates_deck = True

    async def draw(self, deck: list[Card], count: int) -> list[Card]:
        actual = max(0, min(count, len(deck)))
        drawn = deck[:actual]
        del deck[:actual]
        return drawn


class ScriptedDeck:
    """Hands out a fixed sequence of cards without touching the deck."""

    mutates_deck = False

    def __init__(self, cards: Iterable[Card]):
        self._cards = list(cards)

    async def draw(self, deck: list[Card], count: int) -> list[Card]:
        if count > len(self._cards):
            raise ScriptExhausted(
                f"Asked for {count} cards, {len(self._cards)} scripted"
            )
        drawn = self._cards[:count]
        del self._cards[:count]
        return drawn


class FunctionDeck:
    """Wraps a plain callable `fn(count) -> cards | awaitable` as a provider."""

    mutates_deck = False

    def __init__(self, fn: CardFunction):
        self.fn = fn

    async def draw(self, deck: list[Card], count: int) -> list[Card]:
        result = self.fn(count)
        if asyncio.iscoroutine(result) or isinstance(result, asyncio.Future):
            result = await result
        return [c if isinstance(c, Card) else Card.model_validate(c) for c in result]


@dataclass
class DrawRequest:
    """A draw waiting on an external source."""
    count: int
    deck: list[Card]
    future: asyncio.Future
    cards: list[Card] = field(default_factory=list)

    @property
    def remaining(self) -> int:
        return self.count - len(self.cards)

    def prompt(self) -> str:
        current = len(self.cards) + 1
        if self.count > 1:
            return f"Draw card {current} of {self.count}"
        return "Draw a card from your deck"


class RelayDeck:
    """
    Relays draws to a player holding the physical deck.

    Cards are submitted one at a time. A card that is not in the backing
    deck, or was already submitted for this draw, is refused. The draw
    completes once `count` cards are in, or early via finish() when the
    physical deck runs out.
    """

    mutates_deck = False

    def __init__(self, on_request: Callable[[DrawRequest], None] | None = None):
        self.on_request = on_request
        self._pending: DrawRequest | None = None

    @property
    def pending(self) -> DrawRequest | None:
        return self._pending

    async def draw(self, deck: list[Card], count: int) -> list[Card]:
        if count <= 0:
            return []
        loop = asyncio.get_running_loop()
        request = DrawRequest(count=count, deck=deck, future=loop.create_future())
        self._pending = request
        if self.on_request:
            self.on_request(request)
        try:
            return await request.future
        finally:
            self._pending = None

    def submit(self, card: Card | dict) -> bool:
        """Offer the next drawn card. Returns False if refused."""
        request = self._pending
        if request is None or request.future.done():
            return False
        if not isinstance(card, Card):
            try:
                card = Card.model_validate(card)
            except ValidationError as e:
                logger.info(f"Rejected malformed card {card!r}: {e.error_count()} error(s)")
                return False
        in_deck = any(c.key == card.key for c in request.deck)
        already = any(c.key == card.key for c in request.cards)
        if not in_deck or already:
            logger.info(f"Rejected {card.key}: not available in the deck")
            return False
        request.cards.append(card)
        if request.remaining == 0:
            request.future.set_result(list(request.cards))
        return True

    def finish(self) -> bool:
        """Close the pending draw with the cards submitted so far."""
        request = self._pending
        if request is None or request.future.done():
            return False
        request.future.set_result(list(request.cards))
        return True

    def cancel_pending(self) -> bool:
        request = self._pending
        if request is None or request.future.done():
            return False
        request.future.set_exception(
            RequestCancelled(f"Draw of {request.count} card(s) was cancelled")
        )
        return True
