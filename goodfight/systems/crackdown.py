"""
Crackdown resolver.

Pure function design: resolve_crackdown(heat, roll, personnel) -> penalty.
No state is touched until apply_crackdown is called by the turn
lifecycle.

One d100 roll per turn end. A roll above current heat means no
crackdown; otherwise the roll picks the tier:

    1-20  Tier 1    21-40 Tier 2    41-60 Tier 3    61-80 Tier 4    81-100 Tier 5

Personnel penalties cascade: when the primary target pool is empty the
next one down the chain is hit instead, ending in a Supplies loss.
Captured cards go back into the deck, never out of the game.
"""

from __future__ import annotations

import logging
import random

from ..state.schema import GameState
from ..state.schemas.crackdown import CrackdownPenalty, PenaltyKind, PenaltyStep
from ..tools.deck import return_cards

logger = logging.getLogger(__name__)


TIER_BOUNDS = [(20, 1), (40, 2), (60, 3), (80, 4), (100, 5)]

# Supplies lost when the personnel chain runs dry
TIER_SUPPLY_PENALTY = {1: 3, 2: 4, 3: 5, 4: 6, 5: 8}
TIER_INFLUENCE_PENALTY = {4: 20, 5: 50}

INITIATES_LOST_FALLBACK = 2


def crackdown_tier(roll: int) -> int:
    """Tier selected by a d100 roll (ignores heat)."""
    for upper, tier in TIER_BOUNDS:
        if roll <= upper:
            return tier
    return 5


def resolve_crackdown(
    heat: int, roll: int, operatives: int, initiates: int,
) -> CrackdownPenalty:
    """
    Decide the crackdown for this turn.

    Args:
        heat: Current heat
        roll: The turn-end d100
        operatives: Number of operatives held (assigned ones included)
        initiates: Number of initiates held

    Returns:
        CrackdownPenalty; tier 0 when roll > heat
    """
    if roll > heat:
        return CrackdownPenalty(roll=roll, heat=heat)

    tier = crackdown_tier(roll)
    supplies = TIER_SUPPLY_PENALTY[tier]
    steps: list[PenaltyStep] = []

    if tier in TIER_INFLUENCE_PENALTY:
        steps.append(PenaltyStep(kind=PenaltyKind.INFLUENCE, amount=TIER_INFLUENCE_PENALTY[tier]))

    if tier == 1:
        steps.append(PenaltyStep(kind=PenaltyKind.SUPPLIES, amount=supplies))
    elif tier == 2:
        if initiates > 0:
            steps.append(PenaltyStep(kind=PenaltyKind.LOSE_INITIATE, amount=1))
        else:
            steps.append(PenaltyStep(kind=PenaltyKind.SUPPLIES, amount=supplies))
    else:
        # operative -> initiates -> supplies
        if operatives > 0:
            steps.append(PenaltyStep(kind=PenaltyKind.LOSE_OPERATIVE, amount=1))
        elif initiates > 0:
            steps.append(PenaltyStep(
                kind=PenaltyKind.LOSE_INITIATE,
                amount=min(INITIATES_LOST_FALLBACK, initiates),
            ))
        else:
            steps.append(PenaltyStep(kind=PenaltyKind.SUPPLIES, amount=supplies))

    return CrackdownPenalty(roll=roll, heat=heat, tier=tier, steps=steps)


def apply_crackdown(
    state: GameState,
    penalty: CrackdownPenalty,
    rng: random.Random | None = None,
) -> list[str]:
    """
    Apply a penalty descriptor to the state.

    Lost operatives are the newest ones, preferring those not on a
    multi-turn assignment; lost initiates are the newest. Their cards
    return to the deck, which is reshuffled.

    Returns:
        Card keys of the personnel lost
    """
    if not penalty.triggered:
        return []

    captured = []
    for step in penalty.steps:
        match step.kind:
            case PenaltyKind.SUPPLIES:
                state.add_supplies(-step.amount)
            case PenaltyKind.INFLUENCE:
                state.add_influence(-step.amount)
            case PenaltyKind.LOSE_OPERATIVE:
                for _ in range(step.amount):
                    if not state.operatives:
                        break
                    captured.append(_remove_newest_operative(state))
            case PenaltyKind.LOSE_INITIATE:
                for _ in range(step.amount):
                    if not state.initiates:
                        break
                    captured.append(state.initiates.pop().card)

    if captured:
        return_cards(state.recruit_deck, captured, rng)

    lost = [card.key for card in captured]
    state.log(
        "crackdown.applied",
        f"CRACKDOWN! {penalty.describe()} (rolled {penalty.roll} vs heat {penalty.heat}).",
        tier=penalty.tier,
        roll=penalty.roll,
        steps=[s.model_dump(mode="json") for s in penalty.steps],
        lost=lost,
    )
    logger.info(f"Tier {penalty.tier} crackdown applied, lost {lost or 'no personnel'}")
    return lost


def _remove_newest_operative(state: GameState):
    target = next(
        (op for op in reversed(state.operatives) if op.assignment is None),
        state.operatives[-1],
    )
    state.operatives.remove(target)
    for mop in state.multi_turn_ops:
        if target.key in mop.assigned_operatives:
            mop.assigned_operatives.remove(target.key)
    return target.card
