"""
Recruitment pipeline.

Cards flow deck → recruit pool (draw_to_pool) → initiates (attempt_recruit).

Recruit check:
    base d10 (or d12 for one supply) + influence bonus die >= card value

The recruiter's skill only decides whether the attempt is allowed. The
Leader may always attempt; an operative may attempt only against a card
worth less than itself, and is tapped by the attempt.
"""

from __future__ import annotations

import logging

from ..errors import InsufficientSupplies, InvalidTarget, NoEligibleRecruiter
from ..state.event_bus import get_event_bus, EventType
from ..state.schema import GameState, TimedCard, RECRUIT_TIMER
from ..state.schemas.action import RecruitResult, RollRecord
from ..tools.dice import DieType
from ..tools.randomness import Randomness

logger = logging.getLogger(__name__)

LEADER = "leader"

# Influence thresholds that add a bonus die, highest first
INFLUENCE_DIE_TIERS: list[tuple[int, DieType]] = [
    (300, DieType.D20),
    (250, DieType.D12),
    (200, DieType.D10),
    (150, DieType.D8),
    (100, DieType.D6),
    (50, DieType.D4),
]

UPGRADE_COST = 1


def get_influence_die(influence: int) -> DieType | None:
    """Bonus die unlocked by the current influence, if any."""
    for threshold, die in INFLUENCE_DIE_TIERS:
        if influence >= threshold:
            return die
    return None


class RecruitmentPipeline:
    """
    Draws candidates and resolves recruitment attempts.

    Holds no game state of its own; every call receives the GameState.
    """

    def __init__(self, randomness: Randomness):
        self.randomness = randomness
        self._bus = get_event_bus()

    async def draw_to_pool(self, state: GameState, count: int) -> list:
        """Draw up to `count` cards into the recruit pool. Short decks give fewer."""
        drawn = await self.randomness.draw_cards(state.recruit_deck, count)
        state.recruit_pool.extend(drawn)
        for card in drawn:
            state.log(
                "card.drawn",
                f"Drew {card.label} (value {card.value}) to recruit pool.",
                card=card.key,
                value=card.value,
            )
        if drawn:
            self._bus.emit(EventType.POOL_DRAWN, cards=[c.key for c in drawn])
        return drawn

    def check_recruiter(
        self, state: GameState, pool_index: int, recruiter: str | None = None,
    ) -> str:
        """
        Confirm the recruiter may attempt this card. Returns the recruiter id.

        Raises InvalidTarget for a bad index, NoEligibleRecruiter when a
        named operative cannot attempt it. Never mutates.
        """
        if pool_index < 0 or pool_index >= len(state.recruit_pool):
            raise InvalidTarget(f"No card at recruit pool index {pool_index}")
        card = state.recruit_pool[pool_index]

        if recruiter is None or recruiter == LEADER:
            return LEADER

        operative = state.find_operative(recruiter)
        if operative is None:
            raise NoEligibleRecruiter(recruiter, "not an operative")
        if not operative.available:
            raise NoEligibleRecruiter(recruiter, "already used this turn")
        if operative.value <= card.value:
            raise NoEligibleRecruiter(
                recruiter,
                f"value {operative.value} does not exceed {card.label} ({card.value})",
            )
        return operative.key

    async def attempt_recruit(
        self,
        state: GameState,
        pool_index: int,
        recruiter: str | None = None,
        upgrade_die: bool = False,
    ) -> RecruitResult:
        """
        Try to turn a pool card into an initiate.

        Args:
            state: Game in progress
            pool_index: Index into state.recruit_pool
            recruiter: Operative card key, or None for the Leader
            upgrade_die: Spend one supply to roll d12 instead of d10

        Returns:
            RecruitResult with the roll breakdown
        """
        try:
            recruiter_id = self.check_recruiter(state, pool_index, recruiter)
        except NoEligibleRecruiter as e:
            logger.info(f"Recruitment refused: {e}")
            state.log("recruit.refused", f"Recruitment refused: {e}", recruiter=recruiter)
            raise
        if upgrade_die and state.supplies < UPGRADE_COST:
            raise InsufficientSupplies("Upgrading the recruit die costs 1 supply")

        card = state.recruit_pool[pool_index]
        log_start = len(state.turn_log)

        # Commit costs before any roll is requested
        if recruiter_id != LEADER:
            state.find_operative(recruiter_id).tapped = True
        base_die = DieType.D10
        if upgrade_die:
            state.add_supplies(-UPGRADE_COST)
            base_die = DieType.D12

        rolls: list[RollRecord] = []
        base = await self.randomness.roll(base_die)
        rolls.append(RollRecord(die=base_die.value, value=base, purpose="base"))

        bonus_die = get_influence_die(state.influence)
        if bonus_die is not None:
            bonus = await self.randomness.roll(bonus_die)
            rolls.append(RollRecord(die=bonus_die.value, value=bonus, purpose="influence"))

        total = sum(r.value for r in rolls)
        success = total >= card.value
        breakdown = " + ".join(f"{r.die}: {r.value}" for r in rolls)
        who = "Leader" if recruiter_id == LEADER else recruiter_id

        # The card may have shifted if the pool changed while suspended
        index = next(
            (i for i, c in enumerate(state.recruit_pool) if c.key == card.key),
            None,
        )
        if success and index is not None:
            state.recruit_pool.pop(index)
            state.initiates.append(TimedCard(card=card, turns_remaining=RECRUIT_TIMER))
            state.log(
                "recruit.succeeded",
                f"Recruit success! {card.label} ({breakdown} = {total} vs {card.value}) "
                f"→ Initiate ({RECRUIT_TIMER} turns)",
                card=card.key,
                recruiter=who,
                rolls=[r.model_dump() for r in rolls],
                total=total,
                target=card.value,
            )
            self._bus.emit(EventType.RECRUIT_SUCCEEDED, card=card.key, total=total)
        else:
            success = False
            state.log(
                "recruit.failed",
                f"Recruit failed: {card.label} ({breakdown} = {total} vs {card.value}) "
                "stays in the pool.",
                card=card.key,
                recruiter=who,
                rolls=[r.model_dump() for r in rolls],
                total=total,
                target=card.value,
            )
            self._bus.emit(EventType.RECRUIT_FAILED, card=card.key, total=total)

        logger.info(
            f"Recruit {card.key} by {who}: {breakdown} = {total} vs {card.value} "
            f"({'success' if success else 'failure'})"
        )

        return RecruitResult(
            card=card.key,
            recruiter=recruiter_id,
            success=success,
            rolls=rolls,
            total=total,
            target=card.value,
            events=state.turn_log[log_start:],
        )
