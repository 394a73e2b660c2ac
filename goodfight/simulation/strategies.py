"""Scripted player strategies for simulated games."""

from __future__ import annotations

import logging

from ..engine import GameEngine
from ..errors import NoEligibleRecruiter
from ..state.schema import GameState
from ..state.schemas.action import OperationType

logger = logging.getLogger(__name__)

POOL_TARGET = 3
LOW_SUPPLIES = 20

# Most valuable first
OPERATION_PRIORITY = [
    OperationType.LATE_GAME_OP,
    OperationType.MID_GAME_OP,
    OperationType.SCOUT,
    OperationType.SIGNIFICANT_VANDALISM,
    OperationType.AVERAGE_VANDALISM,
    OperationType.MINOR_VANDALISM,
]

VANDALISM = {
    OperationType.SIGNIFICANT_VANDALISM,
    OperationType.AVERAGE_VANDALISM,
    OperationType.MINOR_VANDALISM,
}


class GreedyStrategy:
    """
    Plays every turn the same way.

    Tops the recruit pool up, lets the Leader try the cheapest card, has
    spare operatives try cards below them, then runs each feasible
    operation once in priority order and gathers supplies when low.
    """

    name = "greedy"

    def skip(self, operation: OperationType, state: GameState) -> bool:
        return False

    async def play_turn(self, engine: GameEngine, state: GameState) -> None:
        missing = POOL_TARGET - len(state.recruit_pool)
        if missing > 0 and state.recruit_deck:
            await engine.draw_to_pool(state, missing)

        await self._recruit(engine, state)

        for operation in OPERATION_PRIORITY:
            if self.skip(operation, state):
                continue
            if engine.check_requirements(operation, state):
                await engine.resolve_operation(operation, state)

        if state.supplies < LOW_SUPPLIES:
            await engine.resolve_operation(OperationType.GATHER_SUPPLIES, state)

    async def _recruit(self, engine: GameEngine, state: GameState) -> None:
        if not state.recruit_pool:
            return
        cheapest = min(range(len(state.recruit_pool)), key=lambda i: state.recruit_pool[i].value)
        await engine.attempt_recruit(state, cheapest)

        # Spare operatives beyond what a late-game op needs
        spare = len(state.available_operatives) - 12
        for operative in list(state.available_operatives):
            if spare <= 0 or not state.recruit_pool:
                break
            for index, card in enumerate(state.recruit_pool):
                if card.value < operative.value:
                    try:
                        await engine.attempt_recruit(state, index, recruiter=operative.key)
                    except NoEligibleRecruiter as e:
                        logger.debug(f"Skipped recruit: {e}")
                    spare -= 1
                    break


class CautiousStrategy(GreedyStrategy):
    """Greedy, but holds off on vandalism while heat is high."""

    name = "cautious"
    heat_limit = 50

    def skip(self, operation: OperationType, state: GameState) -> bool:
        return operation in VANDALISM and state.heat >= self.heat_limit


STRATEGIES = {
    GreedyStrategy.name: GreedyStrategy,
    CautiousStrategy.name: CautiousStrategy,
}


def get_strategy(name: str):
    """Instantiate a strategy by name. Unknown names raise KeyError."""
    try:
        return STRATEGIES[name]()
    except KeyError:
        raise KeyError(f"Unknown strategy {name!r}; choose from {sorted(STRATEGIES)}") from None
