"""
Dice providers for the Good Fight engine.

Every provider answers the same async contract, `await provider.roll(die)`,
so the engine never knows whether a result came from the random module, a
human at the table, or a test script.

- AutomaticDice: uniform random in [1, max]
- RelayDice: suspends until an external source submits a value
- ScriptedDice: replays a fixed sequence, one value per request
"""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Iterable, Protocol, Union, runtime_checkable

from ..errors import InvalidDieType, InvalidRollValue, RequestCancelled, ScriptExhausted

logger = logging.getLogger(__name__)


class DieType(str, Enum):
    D4 = "d4"
    D6 = "d6"
    D8 = "d8"
    D10 = "d10"
    D12 = "d12"
    D20 = "d20"
    D100 = "d100"


DIE_MAX: dict[DieType, int] = {
    DieType.D4: 4,
    DieType.D6: 6,
    DieType.D8: 8,
    DieType.D10: 10,
    DieType.D12: 12,
    DieType.D20: 20,
    DieType.D100: 100,
}


def parse_die(die: DieType | str) -> DieType:
    """Accept 'd6' or DieType.D6; anything else is an input error."""
    try:
        return DieType(die)
    except ValueError:
        raise InvalidDieType(die) from None


def die_max(die: DieType | str) -> int:
    """Highest face of a die."""
    return DIE_MAX[parse_die(die)]


def validate_roll(die: DieType | str, value: object) -> int:
    """Check a result lies in [1, max] for the die. Returns it as int."""
    die = parse_die(die)
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidRollValue(die.value, value)
    if value < 1 or value > DIE_MAX[die]:
        raise InvalidRollValue(die.value, value)
    return value


@runtime_checkable
class DiceProvider(Protocol):
    """Anything that can produce a die result asynchronously."""

    async def roll(self, die: DieType) -> int:
        ...


DiceFunction = Callable[[str], Union[int, Awaitable[int]]]


class AutomaticDice:
    """Uniform random rolls. Pass a seeded Random for reproducible games."""

    def __init__(self, rng: random.Random | None = None):
        self.rng = rng or random.Random()

    async def roll(self, die: DieType) -> int:
        return self.rng.randint(1, DIE_MAX[parse_die(die)])


class ScriptedDice:
    """
    Replays a fixed sequence of results.

    Each request consumes exactly one value, validated against the die
    that was asked for. Used by tests and by replays of physical games.
    """

    def __init__(self, values: Iterable[int]):
        self._values = list(values)
        self.requests: list[DieType] = []

    @property
    def remaining(self) -> int:
        return len(self._values)

    def extend(self, values: Iterable[int]) -> None:
        self._values.extend(values)

    async def roll(self, die: DieType) -> int:
        die = parse_die(die)
        self.requests.append(die)
        if not self._values:
            raise ScriptExhausted(f"No scripted value left for {die.value}")
        return validate_roll(die, self._values.pop(0))


class FunctionDice:
    """Wraps a plain callable `fn(die_type) -> int | awaitable` as a provider."""

    def __init__(self, fn: DiceFunction):
        self.fn = fn

    async def roll(self, die: DieType) -> int:
        die = parse_die(die)
        result = self.fn(die.value)
        if asyncio.iscoroutine(result) or isinstance(result, asyncio.Future):
            result = await result
        return validate_roll(die, result)


@dataclass
class RollRequest:
    """A roll waiting on an external source."""
    die: DieType
    future: asyncio.Future

    @property
    def max(self) -> int:
        return DIE_MAX[self.die]

    def prompt(self) -> str:
        return f"Roll a {self.die.value} and enter your result (1-{self.max})"


class RelayDice:
    """
    Relays each roll to an external source (a player with physical dice).

    roll() suspends until submit() supplies a value in range. Invalid
    submissions are refused and the request stays open. Only one request
    is ever pending because the engine awaits each roll before the next.

    on_request, if given, is called with each new RollRequest so a UI can
    show its prompt.
    """

    def __init__(self, on_request: Callable[[RollRequest], None] | None = None):
        self.on_request = on_request
        self._pending: RollRequest | None = None

    @property
    def pending(self) -> RollRequest | None:
        return self._pending

    async def roll(self, die: DieType) -> int:
        die = parse_die(die)
        loop = asyncio.get_running_loop()
        request = RollRequest(die=die, future=loop.create_future())
        self._pending = request
        if self.on_request:
            self.on_request(request)
        try:
            return await request.future
        finally:
            self._pending = None

    def submit(self, value: object) -> bool:
        """Offer a result for the pending roll. Returns False if refused."""
        request = self._pending
        if request is None or request.future.done():
            return False
        try:
            value = validate_roll(request.die, value)
        except InvalidRollValue:
            logger.info(f"Rejected {value!r} for {request.die.value}")
            return False
        request.future.set_result(value)
        return True

    def cancel_pending(self) -> bool:
        """Abandon the pending roll; the awaiting engine call raises."""
        request = self._pending
        if request is None or request.future.done():
            return False
        request.future.set_exception(
            RequestCancelled(f"Roll of {request.die.value} was cancelled")
        )
        return True
