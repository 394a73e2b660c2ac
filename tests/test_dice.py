"""Tests for dice providers and the randomness facade."""

import asyncio
import random

import pytest

from goodfight.errors import (
    InvalidDieType,
    InvalidRollValue,
    RequestCancelled,
    ScriptExhausted,
)
from goodfight.tools.dice import (
    AutomaticDice,
    DieType,
    RelayDice,
    ScriptedDice,
    die_max,
    parse_die,
)
from goodfight.tools.randomness import Randomness


class TestDieTypes:
    """Die identifiers and ranges."""

    def test_die_max(self):
        assert die_max("d4") == 4
        assert die_max(DieType.D12) == 12
        assert die_max("d100") == 100

    def test_parse_accepts_strings(self):
        assert parse_die("d20") is DieType.D20

    def test_unknown_die_rejected(self):
        """d7 is not a die the game uses."""
        with pytest.raises(InvalidDieType):
            die_max("d7")

    def test_unknown_die_is_value_error(self):
        with pytest.raises(ValueError):
            parse_die("percentile")


class TestAutomaticDice:
    """Uniform random provider."""

    def test_rolls_stay_in_range(self):
        dice = AutomaticDice(random.Random(5))

        async def roll_many():
            return [await dice.roll(DieType.D6) for _ in range(300)]

        results = asyncio.run(roll_many())
        assert min(results) >= 1
        assert max(results) <= 6
        assert set(results) == {1, 2, 3, 4, 5, 6}

    def test_seeded_rolls_repeat(self):
        async def sequence(seed):
            dice = AutomaticDice(random.Random(seed))
            return [await dice.roll("d100") for _ in range(10)]

        assert asyncio.run(sequence(9)) == asyncio.run(sequence(9))


class TestScriptedDice:
    """Deterministic sequences map one value per request."""

    def test_values_in_order(self):
        dice = ScriptedDice([3, 17])

        async def go():
            return await dice.roll("d6"), await dice.roll("d20")

        assert asyncio.run(go()) == (3, 17)
        assert dice.requests == [DieType.D6, DieType.D20]
        assert dice.remaining == 0

    def test_exhausted(self):
        dice = ScriptedDice([])
        with pytest.raises(ScriptExhausted):
            asyncio.run(dice.roll("d6"))

    def test_value_checked_against_die(self):
        """A scripted 9 cannot answer a d6."""
        dice = ScriptedDice([9])
        with pytest.raises(InvalidRollValue):
            asyncio.run(dice.roll("d6"))


class TestRelayDice:
    """Relay waits for an external value."""

    def test_rejects_out_of_range_then_accepts(self):
        relay = RelayDice()

        async def scenario():
            task = asyncio.create_task(relay.roll("d6"))
            await asyncio.sleep(0)
            assert relay.pending is not None
            assert relay.submit(7) is False
            assert relay.submit(0) is False
            assert relay.submit("3") is False
            assert relay.submit(True) is False
            assert not task.done()
            assert relay.submit(4) is True
            return await task

        assert asyncio.run(scenario()) == 4
        assert relay.pending is None

    def test_submit_without_request(self):
        assert RelayDice().submit(3) is False

    def test_on_request_sees_prompt(self):
        seen = []
        relay = RelayDice(on_request=seen.append)

        async def scenario():
            task = asyncio.create_task(relay.roll("d10"))
            await asyncio.sleep(0)
            relay.submit(10)
            return await task

        assert asyncio.run(scenario()) == 10
        assert "1-10" in seen[0].prompt()

    def test_cancel_pending(self):
        relay = RelayDice()

        async def scenario():
            task = asyncio.create_task(relay.roll("d100"))
            await asyncio.sleep(0)
            assert relay.cancel_pending() is True
            await task

        with pytest.raises(RequestCancelled):
            asyncio.run(scenario())


class TestRandomness:
    """Provider injection through the facade."""

    def test_automatic_by_default(self):
        randomness = Randomness(seed=1)
        assert randomness.dice_automatic
        assert randomness.cards_automatic

    def test_plain_function_provider(self):
        randomness = Randomness(seed=1)
        randomness.set_dice_provider(lambda die: 3)
        assert not randomness.dice_automatic
        assert asyncio.run(randomness.roll("d6")) == 3

    def test_async_function_provider(self):
        async def physical(die):
            return 2

        randomness = Randomness(seed=1)
        randomness.set_dice_provider(physical)
        assert asyncio.run(randomness.roll("d4")) == 2

    def test_function_result_validated(self):
        randomness = Randomness(seed=1)
        randomness.set_dice_provider(lambda die: 9)
        with pytest.raises(InvalidRollValue):
            asyncio.run(randomness.roll("d6"))

    def test_none_restores_automatic(self):
        randomness = Randomness(seed=1)
        randomness.set_dice_provider(ScriptedDice([1]))
        randomness.set_dice_provider(None)
        assert randomness.dice_automatic

    def test_rejects_non_provider(self):
        with pytest.raises(TypeError):
            Randomness().set_dice_provider(42)
