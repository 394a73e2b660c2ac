"""
Turn lifecycle for the Good Fight engine.

One state per turn; the only transition is an explicit end_turn. The
lifecycle sequences the turn-end pipeline and delegates the rules:

    1. initiates mature      (timer -> operatives)
    2. detainees return      (timer -> operatives)
    3. assignments complete  (OperationsEngine)
    4. crackdown check       (CrackdownResolver, d100 <= heat)
    5. heat cools            (same d100)
    6. leader skill recomputed
    7. operatives untapped
    8. turn counter advances

There is no terminal state. Drivers stop when state.is_victory is set.
"""

from __future__ import annotations

import logging

from ..state.event_bus import get_event_bus, EventType
from ..state.schema import GameState, Operative
from ..state.schemas.turn_result import TurnResult
from ..tools.dice import DieType
from ..tools.randomness import Randomness
from .crackdown import apply_crackdown, resolve_crackdown
from .operations import OperationsEngine

logger = logging.getLogger(__name__)


class TurnLifecycle:
    """
    Sequences end-of-turn. Delegates, never resolves operations itself.

    Usage:
        lifecycle = TurnLifecycle(randomness, operations)
        result = await lifecycle.end_turn(state)
    """

    def __init__(self, randomness: Randomness, operations: OperationsEngine | None = None):
        self.randomness = randomness
        self.operations = operations or OperationsEngine(randomness)
        self._bus = get_event_bus()

    async def end_turn(self, state: GameState) -> TurnResult:
        turn = state.current_turn
        log_start = len(state.turn_log)
        already_won = state.is_victory

        promoted = self._mature_initiates(state)
        released = self._release_detainees(state)

        # ── 3. Multi-turn operations ─────────────────────────
        completed = []
        due = []
        for mop in list(state.multi_turn_ops):
            mop.turns_remaining = max(0, mop.turns_remaining - 1)
            if mop.turns_remaining == 0:
                due.append(mop)
        for mop in due:
            completed.append(await self.operations.complete_multi_turn(state, mop))

        # ── 4-5. Crackdown and cooling, one roll ─────────────
        heat_before = state.heat
        roll = await self.randomness.roll(DieType.D100)
        penalty = resolve_crackdown(
            state.heat, roll, len(state.operatives), len(state.initiates),
        )
        if penalty.triggered:
            apply_crackdown(state, penalty, self.randomness.rng)
            self._bus.emit(
                EventType.CRACKDOWN,
                turn=turn,
                tier=penalty.tier,
                roll=roll,
                steps=[s.describe() for s in penalty.steps],
            )
        state.add_heat(-roll)
        state.log(
            "heat.cooled",
            f"Heat cooled by {roll}: {heat_before} → {state.heat}.",
            roll=roll,
            heat_before=heat_before,
            heat_after=state.heat,
        )

        # ── 6-8. Leader, untap, advance ──────────────────────
        state.recompute_leader_skill()
        for operative in state.operatives:
            operative.tapped = False
        state.current_turn = turn + 1

        victory = state.is_victory
        state.log(
            "turn.ended",
            f"Turn {turn} ended. Turn {state.current_turn} begins.",
            turn_ended=turn,
        )
        logger.info(
            f"Turn {turn} ended: roll {roll}, heat {heat_before} → {state.heat}, "
            f"crackdown tier {penalty.tier}"
        )
        self._bus.emit(EventType.TURN_ENDED, turn=turn, new_turn=state.current_turn)
        if victory and not already_won:
            self._bus.emit(
                EventType.VICTORY, turn=turn, completed=list(state.completed_late_game_ops),
            )

        return TurnResult(
            turn_ended=turn,
            new_turn=state.current_turn,
            promoted=promoted,
            released=released,
            completed_operations=completed,
            crackdown_roll=roll,
            crackdown=penalty,
            heat_before=heat_before,
            heat_after=state.heat,
            leader_skill_level=state.leader_skill_level,
            victory=victory,
            events=state.turn_log[log_start:],
        )

    def _mature_initiates(self, state: GameState) -> list[str]:
        promoted = []
        waiting = []
        for initiate in state.initiates:
            initiate.turns_remaining = max(0, initiate.turns_remaining - 1)
            if initiate.turns_remaining == 0:
                state.operatives.append(Operative(card=initiate.card))
                promoted.append(initiate.card.key)
                state.log(
                    "initiate.promoted",
                    f"{initiate.card.label} is now an Operative.",
                    card=initiate.card.key,
                )
            else:
                waiting.append(initiate)
        state.initiates = waiting
        return promoted

    def _release_detainees(self, state: GameState) -> list[str]:
        released = []
        held = []
        for detainee in state.detained_operatives:
            # Detained mid-turn: the full sentence starts next turn
            if detainee.created_turn == state.current_turn:
                held.append(detainee)
                continue
            detainee.turns_remaining = max(0, detainee.turns_remaining - 1)
            if detainee.turns_remaining == 0:
                state.operatives.append(Operative(card=detainee.card))
                released.append(detainee.card.key)
                state.log(
                    "operative.released",
                    f"{detainee.card.label} released from detention.",
                    card=detainee.card.key,
                )
            else:
                held.append(detainee)
        state.detained_operatives = held
        return released
