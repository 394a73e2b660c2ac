"""
Terminal relays for physical dice and cards.

In physical mode the engine's relay providers ask the player at the
table. Each request is answered by a rich prompt run in a worker thread
so the event loop stays free; the relay validates what comes back and
re-asks on a bad answer. End-of-input cancels the pending request.
"""

import asyncio
import logging

from rich.prompt import Prompt

from ..state.schema import Card, Rank, Suit
from ..tools.deck import DrawRequest, RelayDeck
from ..tools.dice import RelayDice, RollRequest
from .renderer import console, THEME

logger = logging.getLogger(__name__)

SUIT_LETTERS = {"h": Suit.HEARTS, "d": Suit.DIAMONDS, "c": Suit.CLUBS, "s": Suit.SPADES}

# Strong refs so answer tasks are not collected mid-prompt
_tasks: set[asyncio.Task] = set()


def parse_card(text: str) -> Card:
    """
    Parse a card typed by the player.

    Accepts 'K-spades', 'Ks', '10h' or 'a-hearts'. Raises ValueError.
    """
    text = text.strip()
    if "-" in text:
        rank, suit = text.split("-", 1)
        return Card.of(rank.upper(), suit.lower())
    if len(text) < 2:
        raise ValueError(f"Not a card: {text!r}")
    rank, letter = text[:-1].upper(), text[-1].lower()
    if letter not in SUIT_LETTERS:
        raise ValueError(f"Unknown suit in {text!r}")
    return Card(suit=SUIT_LETTERS[letter], rank=Rank(rank))


def _spawn(coro) -> None:
    task = asyncio.get_running_loop().create_task(coro)
    _tasks.add(task)
    task.add_done_callback(_tasks.discard)


async def _answer_roll(relay: RelayDice, request: RollRequest) -> None:
    while not request.future.done():
        try:
            answer = await asyncio.to_thread(Prompt.ask, f"[{THEME['accent']}]{request.prompt()}[/{THEME['accent']}]")
        except (EOFError, KeyboardInterrupt):
            relay.cancel_pending()
            return
        try:
            value = int(answer)
        except ValueError:
            value = answer
        if not relay.submit(value):
            console.print(f"[{THEME['warning']}]Enter a whole number from 1 to {request.max}.[/{THEME['warning']}]")


async def _answer_draw(relay: RelayDeck, request: DrawRequest) -> None:
    while not request.future.done():
        try:
            answer = await asyncio.to_thread(
                Prompt.ask,
                f"[{THEME['accent']}]{request.prompt()}[/{THEME['accent']}] (e.g. Ks, 10h; 'done' if the deck is out)",
            )
        except (EOFError, KeyboardInterrupt):
            relay.cancel_pending()
            return
        if answer.strip().lower() == "done":
            relay.finish()
            return
        try:
            card = parse_card(answer)
        except ValueError as e:
            console.print(f"[{THEME['warning']}]{e}[/{THEME['warning']}]")
            continue
        if not relay.submit(card):
            console.print(f"[{THEME['warning']}]{card.label} is not in the deck.[/{THEME['warning']}]")


def prompt_dice() -> RelayDice:
    """RelayDice answered at the terminal."""
    relay = RelayDice()
    relay.on_request = lambda request: _spawn(_answer_roll(relay, request))
    return relay


def prompt_deck() -> RelayDeck:
    """RelayDeck answered at the terminal."""
    relay = RelayDeck()
    relay.on_request = lambda request: _spawn(_answer_draw(relay, request))
    return relay
