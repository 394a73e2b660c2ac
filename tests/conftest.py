"""
Pytest fixtures for Good Fight engine tests.

Provides state builders, an engine with in-memory saves, and scripted
dice for deterministic resolution.
"""

import pytest

from goodfight.engine import GameEngine
from goodfight.state.event_bus import reset_event_bus
from goodfight.state.schema import GameState, Operative, Opportunity, TimedCard
from goodfight.state.store import MemorySaveStore
from goodfight.tools.deck import create_deck, take_card
from goodfight.tools.dice import ScriptedDice


HEARTS_TWELVE = [f"{r}-hearts" for r in ["2", "3", "4", "5", "6", "7", "8", "9", "10", "J", "Q", "K"]]


def build_state(
    operatives=(),
    initiates=(),
    detained=(),
    pool=(),
    mid_ops: int = 0,
    late_ops: int = 0,
    **fields,
) -> GameState:
    """
    A GameState holding all 52 cards.

    Named cards (keys like 'K-spades') are moved out of the ordered deck
    into the requested groups, so card conservation always holds.
    """
    state = GameState(recruit_deck=create_deck(), **fields)
    for key in pool:
        state.recruit_pool.append(take_card(state.recruit_deck, key))
    for key in initiates:
        state.initiates.append(TimedCard(card=take_card(state.recruit_deck, key), turns_remaining=2))
    for key in operatives:
        state.operatives.append(Operative(card=take_card(state.recruit_deck, key)))
    for key in detained:
        state.detained_operatives.append(
            TimedCard(card=take_card(state.recruit_deck, key), turns_remaining=1)
        )
    for _ in range(mid_ops):
        state.available_mid_game_ops.append(Opportunity(name="Scouted Target"))
    for _ in range(late_ops):
        state.available_late_game_ops.append(Opportunity(name="Coalition Summit Lead"))
    state.recompute_leader_skill()
    return state


@pytest.fixture(autouse=True)
def fresh_event_bus():
    """Each test gets its own event bus."""
    reset_event_bus()
    yield
    reset_event_bus()


@pytest.fixture
def make_state():
    """Factory for GameStates with named personnel."""
    return build_state


@pytest.fixture
def memory_store():
    """In-memory save store for testing."""
    return MemorySaveStore()


@pytest.fixture
def engine(memory_store):
    """Seeded engine with in-memory saves."""
    return GameEngine(seed=1234, store=memory_store)


@pytest.fixture
def script(engine):
    """Install scripted dice on the engine: script(5, 40, ...)."""
    def install(*values) -> ScriptedDice:
        dice = ScriptedDice(values)
        engine.set_dice_provider(dice)
        return dice
    return install
