"""Tests for the engine facade: setup, exclusivity, persistence."""

import asyncio

import pytest

from goodfight.engine import GameEngine
from goodfight.errors import EngineBusy
from goodfight.interface.prompts import parse_card
from goodfight.state.event_bus import get_event_bus, EventType
from goodfight.state.schemas.action import OperationType
from goodfight.tools.deck import RelayDeck
from goodfight.tools.dice import RelayDice


class TestNewGame:

    def test_blank_start(self, engine):
        state = engine.new_game()

        assert state.current_turn == 1
        assert (state.influence, state.heat, state.supplies) == (0, 0, 0)
        assert len(state.recruit_deck) == 52
        assert state.operatives == [] and state.initiates == []
        assert state.input_mode.dice == "digital"
        assert get_event_bus().get_history(EventType.GAME_STARTED)

    def test_labels(self, engine):
        state = engine.new_game(["Equality"], ["Theocracy", "Kleptocracy"], dice_mode="physical")
        assert state.resistance_values == ["Equality"]
        assert state.regime_type == ["Theocracy", "Kleptocracy"]
        assert state.input_mode.dice == "physical"

    def test_unknown_label(self, engine):
        with pytest.raises(ValueError):
            engine.new_game(["Prosperity"])

    def test_seeded_shuffle_repeats(self):
        a = GameEngine(seed=5).new_game()
        b = GameEngine(seed=5).new_game()
        assert [c.key for c in a.recruit_deck] == [c.key for c in b.recruit_deck]

    def test_roll_setup(self, engine, script):
        state = engine.new_game()
        dice = script(1, 6)

        value, regime = asyncio.run(engine.roll_setup(state))

        assert (value, regime) == ("Liberty & Freedom", "Kleptocracy")
        assert state.resistance_values == ["Liberty & Freedom"]
        assert state.regime_type == ["Kleptocracy"]
        assert dice.requests == ["d6", "d6"]


class TestQueries:

    def test_feasible_operations_at_start(self, engine):
        state = engine.new_game()
        assert engine.feasible_operations(state) == [OperationType.GATHER_SUPPLIES]

    def test_feasible_with_operative(self, engine, make_state):
        state = make_state(operatives=["3-clubs"])
        feasible = engine.feasible_operations(state)
        assert OperationType.MINOR_VANDALISM in feasible
        assert OperationType.AVERAGE_VANDALISM not in feasible


class TestExclusivity:
    """Only one mutating call may be in flight."""

    def test_second_call_refused_while_waiting(self, engine, make_state):
        state = make_state(pool=["2-clubs"])
        relay = RelayDice()
        engine.set_dice_provider(relay)

        async def scenario():
            task = asyncio.create_task(engine.attempt_recruit(state, 0))
            while relay.pending is None:
                await asyncio.sleep(0)
            assert engine.busy
            with pytest.raises(EngineBusy):
                await engine.end_turn(state)
            relay.submit(2)
            return await task

        result = asyncio.run(scenario())

        assert result.success
        assert not engine.busy
        assert state.current_turn == 1

    def test_provider_reset(self, engine):
        relay = RelayDice()
        engine.set_dice_provider(relay)
        assert engine.randomness.dice_provider is relay
        assert not engine.randomness.dice_automatic
        engine.set_dice_provider(None)
        assert engine.randomness.dice_automatic

        deck = RelayDeck()
        engine.set_deck_provider(deck)
        assert engine.randomness.deck_provider is deck
        engine.set_deck_provider(None)
        assert engine.randomness.cards_automatic

    def test_callable_provider(self, engine, make_state):
        state = make_state(pool=["4-clubs"])
        engine.set_dice_provider(lambda die: 4)

        result = asyncio.run(engine.attempt_recruit(state, 0))

        assert result.success


class TestPersistence:

    def test_save_and_load(self, engine, make_state):
        state = make_state(operatives=["K-spades"], influence=60)
        engine.save(state, "current")

        loaded = engine.load("current")

        assert loaded.influence == 60
        assert loaded.operatives[0].key == "K-spades"
        assert engine.list_saves() == ["current"]
        assert get_event_bus().get_history(EventType.GAME_SAVED)
        assert get_event_bus().get_history(EventType.GAME_LOADED)

    def test_missing_slot(self, engine):
        assert engine.load("nothing") is None
        assert not get_event_bus().get_history(EventType.GAME_LOADED)

    def test_delete(self, engine):
        engine.save(engine.new_game(), "a")
        assert engine.delete_save("a")
        assert engine.list_saves() == []


class TestParseCard:

    @pytest.mark.parametrize("text,key", [
        ("K-spades", "K-spades"),
        ("Ks", "K-spades"),
        ("10h", "10-hearts"),
        ("a-hearts", "A-hearts"),
        (" qd ", "Q-diamonds"),
    ])
    def test_formats(self, text, key):
        assert parse_card(text).key == key

    @pytest.mark.parametrize("text", ["", "K", "Kx", "1-hearts"])
    def test_rejects(self, text):
        with pytest.raises(ValueError):
            parse_card(text)
