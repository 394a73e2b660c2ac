"""
Engine facade: the one boundary drivers talk to.

A human UI and a simulation strategy drive a game through the same
entry points. The engine owns its randomness; the GameState it acts on
is always passed in explicitly.

Usage:
    engine = GameEngine(seed=7, store=JsonSaveStore("saves"))
    state = engine.new_game()
    await engine.draw_to_pool(state, 3)
    await engine.attempt_recruit(state, 0)
    if engine.check_requirements("minor_vandalism", state):
        await engine.resolve_operation("minor_vandalism", state)
    await engine.end_turn(state)
    engine.save(state, "current")

Mutating calls are exclusive: while one is suspended on a relay
request, any other raises EngineBusy.
"""

from __future__ import annotations

import functools
import logging
import random
from typing import Sequence

from .errors import EngineBusy
from .state.event_bus import get_event_bus, EventType
from .state.schema import GameState, Card, InputSource
from .state.schemas import OperationPreview, OperationResult, RecruitResult, TurnResult
from .state.schemas.action import OperationType
from .state.store import MemorySaveStore, SaveStore
from .systems.operations import OperationsEngine
from .systems.recruitment import RecruitmentPipeline
from .systems.setup import create_game, roll_setup
from .systems.turns import TurnLifecycle
from .tools.randomness import Randomness

logger = logging.getLogger(__name__)


def exclusive(method):
    """Reject re-entry while another mutating call is suspended."""
    @functools.wraps(method)
    async def wrapper(self: "GameEngine", *args, **kwargs):
        if self._busy:
            raise EngineBusy(
                f"Cannot {method.__name__} while {self._busy} is waiting on input"
            )
        self._busy = method.__name__
        try:
            return await method(self, *args, **kwargs)
        finally:
            self._busy = None
    return wrapper


class GameEngine:
    """
    Rules engine for one table.

    Wires the randomness facade, recruitment pipeline, operations
    engine and turn lifecycle together, and fronts the save store.
    """

    def __init__(
        self,
        seed: int | None = None,
        store: SaveStore | None = None,
        rng: random.Random | None = None,
    ):
        self.randomness = Randomness(seed=seed, rng=rng)
        self.recruitment = RecruitmentPipeline(self.randomness)
        self.operations = OperationsEngine(self.randomness, self.recruitment)
        self.turns = TurnLifecycle(self.randomness, self.operations)
        self.store: SaveStore = store if store is not None else MemorySaveStore()
        self._busy: str | None = None
        self._bus = get_event_bus()

    @property
    def busy(self) -> bool:
        return self._busy is not None

    # ─── Providers ───────────────────────────────────────────

    def set_dice_provider(self, provider) -> None:
        """Install a dice provider or callable; None restores automatic dice."""
        self.randomness.set_dice_provider(provider)

    def set_deck_provider(self, provider) -> None:
        """Install a card provider or callable; None restores the automatic deck."""
        self.randomness.set_deck_provider(provider)

    # ─── Setup ───────────────────────────────────────────────

    def new_game(
        self,
        resistance_values: Sequence[str] = (),
        regime_type: Sequence[str] = (),
        dice_mode: InputSource = "digital",
        cards_mode: InputSource = "digital",
    ) -> GameState:
        state = create_game(
            resistance_values,
            regime_type,
            dice_mode=dice_mode,
            cards_mode=cards_mode,
            rng=self.randomness.rng,
        )
        self._bus.emit(EventType.GAME_STARTED, turn=state.current_turn)
        return state

    @exclusive
    async def roll_setup(self, state: GameState) -> tuple[str, str]:
        return await roll_setup(state, self.randomness)

    # ─── Queries ─────────────────────────────────────────────

    def check_requirements(self, operation: OperationType | str, state: GameState) -> bool:
        return self.operations.check_requirements(operation, state)

    def preview(self, operation: OperationType | str, state: GameState) -> OperationPreview:
        return self.operations.preview(operation, state)

    def feasible_operations(self, state: GameState) -> list[OperationType]:
        """Operations whose requirements are met right now."""
        return [op for op in OperationType if self.check_requirements(op, state)]

    # ─── Mutations ───────────────────────────────────────────

    @exclusive
    async def draw_to_pool(self, state: GameState, count: int) -> list[Card]:
        return await self.recruitment.draw_to_pool(state, count)

    @exclusive
    async def attempt_recruit(
        self,
        state: GameState,
        pool_index: int,
        recruiter: str | None = None,
        upgrade_die: bool = False,
    ) -> RecruitResult:
        return await self.recruitment.attempt_recruit(
            state, pool_index, recruiter=recruiter, upgrade_die=upgrade_die,
        )

    @exclusive
    async def resolve_operation(
        self,
        operation: OperationType | str,
        state: GameState,
        operatives: Sequence[str] | None = None,
    ) -> OperationResult:
        return await self.operations.resolve_operation(operation, state, operatives)

    @exclusive
    async def end_turn(self, state: GameState) -> TurnResult:
        return await self.turns.end_turn(state)

    # ─── Persistence ─────────────────────────────────────────

    def save(self, state: GameState, slot: str) -> None:
        self.store.save(state, slot)
        self._bus.emit(EventType.GAME_SAVED, turn=state.current_turn, slot=slot)
        logger.info(f"Saved game to slot {slot}")

    def load(self, slot: str) -> GameState | None:
        state = self.store.load(slot)
        if state is not None:
            self._bus.emit(EventType.GAME_LOADED, turn=state.current_turn, slot=slot)
        return state

    def delete_save(self, slot: str) -> bool:
        return self.store.delete(slot)

    def list_saves(self) -> list[str]:
        return self.store.list_saves()
