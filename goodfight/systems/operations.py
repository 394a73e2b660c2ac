"""
Operations engine: requirement checks and resolution formulas.

Every operation has a static requirement record and a resolution. The
check is a pure query; resolution deducts supplies and taps (or
assigns) operatives before the first die is requested, then awaits
each roll in turn.

Check formulas:
    vandalism      d100 - heat <= target          (50 / 40 / 30)
    gather         d100 - heat + influence//2 >= 50, three times
    scout          d100 - heat + sum(assigned values) >= 75, at completion
    mid-game op    d6 on the outcome table
    late-game op   d8 on the outcome table at completion, 7-8 and repeats re-rolled

Failures with several consequences are ordered rule chains: every rule
is applied, and each rule takes its first alternative that can be paid.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Sequence

from ..errors import InvalidTarget, RequirementsNotMet, UnknownOperation
from ..state.event_bus import get_event_bus, EventType
from ..state.schema import GameState, MultiTurnOp, Opportunity, TimedCard
from ..state.schemas.action import (
    OperationPreview,
    OperationResult,
    OperationType,
    Requirement,
    RequirementStatus,
    RollRecord,
)
from ..tools.dice import DieType
from ..tools.randomness import Randomness
from .recruitment import RecruitmentPipeline

logger = logging.getLogger(__name__)


# ─── Requirements ───────────────────────────────────────────

@dataclass(frozen=True)
class OperationSpec:
    """Static requirement record for one operation."""
    label: str
    operatives: int
    supplies: int
    influence_threshold: int = 0
    duration: int = 0  # turns of assignment; 0 resolves immediately
    opportunity: str | None = None  # "mid" or "late"


REQUIREMENTS: dict[OperationType, OperationSpec] = {
    OperationType.MINOR_VANDALISM: OperationSpec("Minor Vandalism", 1, 0),
    OperationType.AVERAGE_VANDALISM: OperationSpec("Average Vandalism", 2, 3),
    OperationType.SIGNIFICANT_VANDALISM: OperationSpec("Significant Vandalism", 4, 5),
    OperationType.GATHER_SUPPLIES: OperationSpec("Gather Supplies", 0, 0),
    OperationType.SCOUT: OperationSpec("Scout", 4, 5, duration=2),
    OperationType.MID_GAME_OP: OperationSpec(
        "Mid-Game Operation", 6, 10, influence_threshold=100, opportunity="mid",
    ),
    OperationType.LATE_GAME_OP: OperationSpec(
        "Late-Game Operation", 12, 20, influence_threshold=250,
        duration=3, opportunity="late",
    ),
}


# ─── Formulas ───────────────────────────────────────────────

VANDALISM_TARGETS: dict[OperationType, int] = {
    OperationType.MINOR_VANDALISM: 50,
    OperationType.AVERAGE_VANDALISM: 40,
    OperationType.SIGNIFICANT_VANDALISM: 30,
}

# (influence, heat) gained on a successful vandalism
VANDALISM_GAINS: dict[OperationType, tuple[int, int]] = {
    OperationType.MINOR_VANDALISM: (1, 1),
    OperationType.AVERAGE_VANDALISM: (3, 2),
    OperationType.SIGNIFICANT_VANDALISM: (6, 4),
}

GATHER_ROLLS = 3
GATHER_THRESHOLD = 50
GATHER_YIELD = 2

SCOUT_THRESHOLD = 75


@dataclass(frozen=True)
class MidGameOutcome:
    name: str
    influence: int = 0
    heat: int = 0
    supplies: int = 0
    opens_late: bool = False


MID_GAME_TABLE: dict[int, MidGameOutcome] = {
    1: MidGameOutcome("Underground Press", influence=10),
    2: MidGameOutcome("Supply Cache", supplies=8),
    3: MidGameOutcome("Inside Contact", heat=-15),
    4: MidGameOutcome("Mass Rally", influence=20, heat=5),
    5: MidGameOutcome("Safehouse Network", heat=-10, opens_late=True),
    6: MidGameOutcome("Coalition Summit", influence=15, opens_late=True),
}

# d8 face -> (outcome id, name). Faces 7 and 8 are re-rolled.
LATE_GAME_TABLE: dict[int, tuple[str, str]] = {
    1: ("free_broadcast", "Free Broadcast"),
    2: ("general_strike", "General Strike"),
    3: ("parallel_institutions", "Parallel Institutions"),
    4: ("defection_wave", "Defection Wave"),
    5: ("public_tribunal", "Public Tribunal"),
    6: ("open_elections", "Open Elections"),
}
LATE_GAME_INFLUENCE = 25


def parse_operation(operation: OperationType | str) -> OperationType:
    """Accept 'scout' or OperationType.SCOUT; anything else is an input error."""
    try:
        return OperationType(operation)
    except ValueError:
        raise UnknownOperation(operation) from None


# ─── Failure Rule Chains ────────────────────────────────────

# An alternative tries to pay a consequence and returns a description,
# or None when its resource is empty.
Alternative = Callable[[GameState, list[str]], "str | None"]
Rule = tuple[Alternative, ...]


def detain_operative(
    state: GameState, turns: int, preferred: Sequence[str] = (),
) -> str | None:
    """
    Move one operative into detention. Returns its card key, or None.

    Picks a preferred key first (the operation's participants), then any
    available operative, then any operative at all.
    """
    target = None
    for key in preferred:
        target = state.find_operative(key)
        if target is not None:
            break
    if target is None and state.available_operatives:
        target = state.available_operatives[0]
    if target is None and state.operatives:
        target = state.operatives[0]
    if target is None:
        return None

    _release_assignment(state, target.key)
    state.operatives.remove(target)
    state.detained_operatives.append(
        TimedCard(card=target.card, turns_remaining=turns, created_turn=state.current_turn)
    )
    return target.key


def _release_assignment(state: GameState, key: str) -> None:
    for mop in state.multi_turn_ops:
        if key in mop.assigned_operatives:
            mop.assigned_operatives.remove(key)


def detain(turns: int) -> Alternative:
    def alternative(state: GameState, participants: list[str]) -> str | None:
        key = detain_operative(state, turns, participants)
        if key is None:
            return None
        state.log(
            "operative.detained",
            f"{key} detained for {turns} turn(s).",
            card=key,
            turns=turns,
        )
        get_event_bus().emit(
            EventType.OPERATIVE_DETAINED, turn=state.current_turn, card=key, turns=turns,
        )
        return f"{key} detained ({turns} turn{'s' if turns != 1 else ''})"
    return alternative


def lose_supplies(amount: int) -> Alternative:
    def alternative(state: GameState, participants: list[str]) -> str | None:
        state.add_supplies(-amount)
        state.log("supplies.lost", f"Lost {amount} Supplies.", amount=amount)
        return f"-{amount} Supplies"
    return alternative


def apply_rule_chain(
    rules: Sequence[Rule], state: GameState, participants: list[str],
) -> list[str]:
    """Apply every rule; within a rule the first payable alternative wins."""
    applied = []
    for rule in rules:
        for alternative in rule:
            outcome = alternative(state, participants)
            if outcome is not None:
                applied.append(outcome)
                break
    return applied


FAILURE_RULES: dict[OperationType, list[Rule]] = {
    OperationType.MINOR_VANDALISM: [],
    OperationType.AVERAGE_VANDALISM: [
        (detain(1),),
    ],
    OperationType.SIGNIFICANT_VANDALISM: [
        (detain(2),),
        (detain(2), lose_supplies(2)),
    ],
    OperationType.SCOUT: [
        (detain(1),),
        (detain(1), lose_supplies(2)),
    ],
}


# ─── Engine ─────────────────────────────────────────────────

class OperationsEngine:
    """
    Checks and resolves operations against a GameState.

    Stateless apart from its randomness source; every call receives
    the state it acts on.
    """

    def __init__(
        self,
        randomness: Randomness,
        recruitment: RecruitmentPipeline | None = None,
    ):
        self.randomness = randomness
        self.recruitment = recruitment or RecruitmentPipeline(randomness)
        self._bus = get_event_bus()

    # ─── Queries ─────────────────────────────────────────────

    def preview(self, operation: OperationType | str, state: GameState) -> OperationPreview:
        """Per-requirement breakdown. Never mutates."""
        op = parse_operation(operation)
        spec = REQUIREMENTS[op]
        requirements: list[Requirement] = []

        if spec.operatives:
            have = len(state.available_operatives)
            requirements.append(_requirement(
                f"{spec.operatives} available operatives",
                have >= spec.operatives,
                f"Have {have}",
            ))
        if spec.supplies:
            requirements.append(_requirement(
                f"{spec.supplies} supplies",
                state.supplies >= spec.supplies,
                f"Have {state.supplies}",
            ))
        if spec.influence_threshold:
            requirements.append(_requirement(
                f"Influence {spec.influence_threshold}+",
                state.influence >= spec.influence_threshold,
                f"Have {state.influence}",
            ))
        if spec.opportunity == "mid":
            count = len(state.available_mid_game_ops)
            requirements.append(_requirement(
                "Mid-game opportunity", count > 0, f"{count} available",
            ))
        elif spec.opportunity == "late":
            count = len(state.available_late_game_ops)
            requirements.append(_requirement(
                "Late-game opportunity", count > 0, f"{count} available",
            ))

        feasible = all(r.status == RequirementStatus.MET for r in requirements)
        return OperationPreview(operation=op, feasible=feasible, requirements=requirements)

    def check_requirements(self, operation: OperationType | str, state: GameState) -> bool:
        return self.preview(operation, state).feasible

    # ─── Resolution ──────────────────────────────────────────

    async def resolve_operation(
        self,
        operation: OperationType | str,
        state: GameState,
        operatives: Sequence[str] | None = None,
    ) -> OperationResult:
        """
        Resolve (or start) an operation.

        Args:
            operation: Operation to run
            state: Game in progress
            operatives: Card keys of the participants; defaults to the
                highest-value available operatives

        Raises:
            UnknownOperation: unrecognized identifier
            RequirementsNotMet: requirements fail (state untouched)
            InvalidTarget: named operatives are not usable
        """
        op = parse_operation(operation)
        preview = self.preview(op, state)
        if not preview.feasible:
            logger.info(f"{op.value} refused: {', '.join(preview.unmet)}")
            raise RequirementsNotMet(op.value, preview.unmet)

        spec = REQUIREMENTS[op]
        participants = self._select_participants(state, spec.operatives, operatives)
        log_start = len(state.turn_log)

        # Costs are committed before any roll is requested
        if spec.supplies:
            state.add_supplies(-spec.supplies)

        match op:
            case (
                OperationType.MINOR_VANDALISM
                | OperationType.AVERAGE_VANDALISM
                | OperationType.SIGNIFICANT_VANDALISM
            ):
                self._tap(state, participants)
                result = await self._resolve_vandalism(op, state, participants)
            case OperationType.GATHER_SUPPLIES:
                result = await self._resolve_gather(state)
            case OperationType.SCOUT:
                result = self._start_assignment(op, state, participants)
            case OperationType.MID_GAME_OP:
                self._tap(state, participants)
                opportunity = state.available_mid_game_ops.pop(0)
                result = await self._resolve_mid_game(state, participants, opportunity)
            case OperationType.LATE_GAME_OP:
                state.available_late_game_ops.pop(0)
                result = self._start_assignment(op, state, participants)
            case _:
                raise UnknownOperation(op)

        result.events = state.turn_log[log_start:]
        self._bus.emit(
            EventType.OPERATION_STARTED if result.pending else EventType.OPERATION_RESOLVED,
            turn=state.current_turn,
            operation=op.value,
            success=result.success,
        )
        return result

    async def complete_multi_turn(self, state: GameState, mop: MultiTurnOp) -> OperationResult:
        """
        Resolve a multi-turn operation whose timer has run out.

        Releases the assigned operatives and removes the entry before
        resolving, so failure detention can pick the participants.
        """
        log_start = len(state.turn_log)
        participants = [
            op.key for op in state.operatives if op.assignment == mop.id
        ]
        for key in participants:
            state.find_operative(key).assignment = None
        if mop in state.multi_turn_ops:
            state.multi_turn_ops.remove(mop)

        match mop.operation:
            case OperationType.SCOUT:
                result = await self._complete_scout(state, participants)
            case OperationType.LATE_GAME_OP:
                result = await self._complete_late_game(state, participants)
            case _:
                raise UnknownOperation(mop.operation)

        result.operation_id = mop.id
        result.events = state.turn_log[log_start:]
        self._bus.emit(
            EventType.OPERATION_COMPLETED,
            turn=state.current_turn,
            operation=mop.operation.value,
            success=result.success,
        )
        return result

    # ─── Participants ────────────────────────────────────────

    def _select_participants(
        self, state: GameState, count: int, named: Sequence[str] | None,
    ) -> list[str]:
        if count == 0:
            return []
        if named is None:
            ranked = sorted(state.available_operatives, key=lambda o: o.value, reverse=True)
            return [o.key for o in ranked[:count]]

        keys = list(named)
        if len(keys) != count or len(set(keys)) != count:
            raise InvalidTarget(f"Expected {count} distinct operatives, got {len(keys)}")
        for key in keys:
            operative = state.find_operative(key)
            if operative is None or not operative.available:
                raise InvalidTarget(f"{key} is not an available operative")
        return keys

    def _tap(self, state: GameState, participants: list[str]) -> None:
        for key in participants:
            state.find_operative(key).tapped = True

    def _start_assignment(
        self, op: OperationType, state: GameState, participants: list[str],
    ) -> OperationResult:
        spec = REQUIREMENTS[op]
        mop = MultiTurnOp(
            operation=op,
            turns_remaining=spec.duration,
            assigned_operatives=list(participants),
            started_turn=state.current_turn,
        )
        for key in participants:
            state.find_operative(key).assignment = mop.id
        state.multi_turn_ops.append(mop)
        state.log(
            "operation.started",
            f"{spec.label} underway: {len(participants)} operatives assigned "
            f"for {spec.duration} turns.",
            operation=op.value,
            operation_id=mop.id,
            operatives=list(participants),
            turns=spec.duration,
        )
        logger.info(f"Started {op.value} ({mop.id}) with {len(participants)} operatives")
        return OperationResult(
            operation=op,
            success=False,
            pending=True,
            operation_id=mop.id,
            participants=list(participants),
        )

    # ─── Vandalism ───────────────────────────────────────────

    async def _resolve_vandalism(
        self, op: OperationType, state: GameState, participants: list[str],
    ) -> OperationResult:
        label = REQUIREMENTS[op].label
        target = VANDALISM_TARGETS[op]
        roll = await self.randomness.roll(DieType.D100)
        rolls = [RollRecord(die="d100", value=roll, purpose="check")]
        heat_before = state.heat
        score = roll - heat_before
        success = score <= target

        if success:
            influence, heat = VANDALISM_GAINS[op]
            state.add_influence(influence)
            state.add_heat(heat)
            state.log(
                "operation.resolved",
                f"{label} succeeded (d100 {roll} - heat {heat_before} = "
                f"{score} vs {target}): +{influence} Influence, +{heat} Heat.",
                operation=op.value,
                roll=roll,
                target=target,
                success=True,
            )
            if op == OperationType.MINOR_VANDALISM:
                chance = await self.randomness.roll(DieType.D4)
                rolls.append(RollRecord(die="d4", value=chance, purpose="draw chance"))
                if chance == 1:
                    await self.recruitment.draw_to_pool(state, 1)
        else:
            state.log(
                "operation.resolved",
                f"{label} failed (d100 {roll} - heat {heat_before} = {score} vs {target}).",
                operation=op.value,
                roll=roll,
                target=target,
                success=False,
            )
            consequences = apply_rule_chain(FAILURE_RULES[op], state, participants)
            if consequences:
                logger.info(f"{op.value} failure: {', '.join(consequences)}")

        logger.info(f"{op.value}: d100 {roll} vs {target} ({'success' if success else 'failure'})")
        return OperationResult(
            operation=op, success=success, rolls=rolls, participants=participants,
        )

    # ─── Gather Supplies ─────────────────────────────────────

    async def _resolve_gather(self, state: GameState) -> OperationResult:
        rolls = []
        successes = 0
        bonus = state.influence // 2
        for _ in range(GATHER_ROLLS):
            roll = await self.randomness.roll(DieType.D100)
            rolls.append(RollRecord(die="d100", value=roll, purpose="gather"))
            if roll - state.heat + bonus >= GATHER_THRESHOLD:
                successes += 1

        gained = successes * GATHER_YIELD
        state.add_supplies(gained)
        state.log(
            "operation.resolved",
            f"Gathered supplies: {successes}/{GATHER_ROLLS} successful "
            f"({', '.join(str(r.value) for r in rolls)}), +{gained} Supplies.",
            operation=OperationType.GATHER_SUPPLIES.value,
            rolls=[r.value for r in rolls],
            successes=successes,
            gained=gained,
        )
        return OperationResult(
            operation=OperationType.GATHER_SUPPLIES,
            success=successes > 0,
            rolls=rolls,
            outcome=f"+{gained} Supplies",
        )

    # ─── Scout ───────────────────────────────────────────────

    async def _complete_scout(self, state: GameState, participants: list[str]) -> OperationResult:
        total_value = sum(state.find_operative(k).value for k in participants)
        roll = await self.randomness.roll(DieType.D100)
        score = roll - state.heat + total_value
        success = score >= SCOUT_THRESHOLD

        if success:
            opportunity = Opportunity(name="Scouted Target", created_turn=state.current_turn)
            state.available_mid_game_ops.append(opportunity)
            state.log(
                "operation.completed",
                f"Scouting succeeded ({roll} - {state.heat} + {total_value} = {score} "
                f"vs {SCOUT_THRESHOLD}): mid-game opportunity opened.",
                operation=OperationType.SCOUT.value,
                roll=roll,
                score=score,
                success=True,
            )
            self._bus.emit(
                EventType.OPPORTUNITY_OPENED, turn=state.current_turn, kind="mid",
            )
        else:
            state.log(
                "operation.completed",
                f"Scouting failed ({roll} - {state.heat} + {total_value} = {score} "
                f"vs {SCOUT_THRESHOLD}).",
                operation=OperationType.SCOUT.value,
                roll=roll,
                score=score,
                success=False,
            )
            apply_rule_chain(FAILURE_RULES[OperationType.SCOUT], state, participants)

        return OperationResult(
            operation=OperationType.SCOUT,
            success=success,
            rolls=[RollRecord(die="d100", value=roll, purpose="scout")],
            participants=participants,
        )

    # ─── Mid / Late Game ─────────────────────────────────────

    async def _resolve_mid_game(
        self, state: GameState, participants: list[str], opportunity: Opportunity,
    ) -> OperationResult:
        roll = await self.randomness.roll(DieType.D6)
        outcome = MID_GAME_TABLE[roll]
        state.add_influence(outcome.influence)
        state.add_heat(outcome.heat)
        state.add_supplies(outcome.supplies)

        effects = []
        if outcome.influence:
            effects.append(f"{outcome.influence:+d} Influence")
        if outcome.heat:
            effects.append(f"{outcome.heat:+d} Heat")
        if outcome.supplies:
            effects.append(f"{outcome.supplies:+d} Supplies")
        if outcome.opens_late:
            state.available_late_game_ops.append(
                Opportunity(name=f"{outcome.name} Lead", created_turn=state.current_turn)
            )
            effects.append("late-game opportunity opened")
            self._bus.emit(
                EventType.OPPORTUNITY_OPENED, turn=state.current_turn, kind="late",
            )

        state.log(
            "operation.resolved",
            f"Mid-game operation ({opportunity.name}): {outcome.name}. {', '.join(effects)}.",
            operation=OperationType.MID_GAME_OP.value,
            roll=roll,
            outcome=outcome.name,
        )
        logger.info(f"mid_game_op: d6 {roll} -> {outcome.name}")
        return OperationResult(
            operation=OperationType.MID_GAME_OP,
            success=True,
            rolls=[RollRecord(die="d6", value=roll, purpose="outcome")],
            outcome=outcome.name,
            participants=participants,
        )

    async def _complete_late_game(
        self, state: GameState, participants: list[str],
    ) -> OperationResult:
        rolls = []
        remaining = [
            face for face, (outcome_id, _) in LATE_GAME_TABLE.items()
            if outcome_id not in state.completed_late_game_ops
        ]
        if not remaining:
            state.log(
                "operation.completed",
                "Late-game operation completed, but every outcome is already achieved.",
                operation=OperationType.LATE_GAME_OP.value,
            )
            return OperationResult(
                operation=OperationType.LATE_GAME_OP, success=False, participants=participants,
            )

        while True:
            roll = await self.randomness.roll(DieType.D8)
            rolls.append(RollRecord(die="d8", value=roll, purpose="outcome"))
            if roll in remaining:
                break
            logger.debug(f"late_game_op: re-rolling {roll}")

        outcome_id, name = LATE_GAME_TABLE[roll]
        state.completed_late_game_ops.append(outcome_id)
        state.add_influence(LATE_GAME_INFLUENCE)
        state.log(
            "operation.completed",
            f"Late-game operation: {name}! +{LATE_GAME_INFLUENCE} Influence "
            f"({len(state.completed_late_game_ops)}/3 complete).",
            operation=OperationType.LATE_GAME_OP.value,
            outcome=outcome_id,
            rolls=[r.value for r in rolls],
        )
        logger.info(f"late_game_op completed: {outcome_id}")
        return OperationResult(
            operation=OperationType.LATE_GAME_OP,
            success=True,
            rolls=rolls,
            outcome=name,
            participants=participants,
        )


def _requirement(label: str, met: bool, detail: str) -> Requirement:
    return Requirement(
        label=label,
        status=RequirementStatus.MET if met else RequirementStatus.UNMET,
        detail=detail,
    )
