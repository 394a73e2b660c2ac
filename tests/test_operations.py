"""Tests for the operations engine."""

import asyncio

import pytest

from goodfight.errors import (
    InvalidTarget,
    RequestCancelled,
    RequirementsNotMet,
    UnknownOperation,
)
from goodfight.state.schemas.action import OperationType
from goodfight.systems.operations import FAILURE_RULES, REQUIREMENTS, apply_rule_chain
from goodfight.tools.dice import DieType, RelayDice

from conftest import HEARTS_TWELVE

SPADES_FOUR = ["K-spades", "Q-spades", "J-spades", "10-spades"]  # values sum to 46


class TestRequirements:
    """Requirement checks are pure queries."""

    def test_table(self):
        late = REQUIREMENTS[OperationType.LATE_GAME_OP]
        assert (late.operatives, late.supplies, late.duration) == (12, 20, 3)
        assert REQUIREMENTS[OperationType.SCOUT].duration == 2
        assert REQUIREMENTS[OperationType.GATHER_SUPPLIES].operatives == 0

    def test_gather_always_feasible(self, engine, make_state):
        assert engine.check_requirements("gather_supplies", make_state())

    def test_fresh_game_can_only_gather(self, engine, make_state):
        assert engine.feasible_operations(make_state()) == [OperationType.GATHER_SUPPLIES]

    def test_check_has_no_side_effects(self, engine, make_state):
        state = make_state(operatives=["9-hearts", "8-hearts"], supplies=2)
        before = state.model_dump()

        assert not engine.check_requirements("average_vandalism", state)
        assert state.model_dump() == before

    def test_tapped_operatives_do_not_count(self, engine, make_state):
        state = make_state(operatives=["9-hearts"])
        state.operatives[0].tapped = True
        assert not engine.check_requirements("minor_vandalism", state)

    def test_preview_lists_unmet(self, engine, make_state):
        state = make_state(operatives=SPADES_FOUR[:2], supplies=3, influence=50)
        preview = engine.preview("mid_game_op", state)

        assert not preview.feasible
        assert len(preview.unmet) == 4

    def test_unknown_operation(self, engine, make_state):
        with pytest.raises(UnknownOperation):
            engine.check_requirements("bake_sale", make_state())

    def test_unmet_resolution_touches_nothing(self, engine, make_state, script):
        state = make_state(operatives=["9-hearts"], supplies=3)
        dice = script()

        with pytest.raises(RequirementsNotMet):
            asyncio.run(engine.resolve_operation("average_vandalism", state))

        assert state.supplies == 3
        assert not state.operatives[0].tapped
        assert dice.requests == []


class TestVandalism:
    """d100 - heat <= target."""

    def test_minor_success(self, engine, make_state, script):
        state = make_state(operatives=["5-hearts"])
        script(30, 2)

        result = asyncio.run(engine.resolve_operation("minor_vandalism", state))

        assert result.success
        assert (state.influence, state.heat) == (1, 1)
        assert state.operatives[0].tapped
        assert state.recruit_pool == []

    def test_minor_success_draw_chance(self, engine, make_state, script):
        state = make_state(operatives=["5-hearts"])
        script(30, 1)

        asyncio.run(engine.resolve_operation("minor_vandalism", state))

        assert len(state.recruit_pool) == 1
        assert state.check_conservation()

    def test_minor_failure_only_taps(self, engine, make_state, script):
        state = make_state(operatives=["5-hearts"])
        script(80)

        result = asyncio.run(engine.resolve_operation("minor_vandalism", state))

        assert not result.success
        assert (state.influence, state.heat) == (0, 0)
        assert state.operatives[0].tapped
        assert state.detained_operatives == []

    def test_heat_enters_the_check(self, engine, make_state, script):
        """70 - 25 = 45 <= 50."""
        state = make_state(operatives=["5-hearts"], heat=25)
        script(70, 3)
        assert asyncio.run(engine.resolve_operation("minor_vandalism", state)).success

    def test_average_failure_detains_participant(self, engine, make_state, script):
        state = make_state(operatives=["9-hearts", "8-hearts", "2-hearts"], supplies=3)
        script(90)

        result = asyncio.run(engine.resolve_operation("average_vandalism", state))

        assert not result.success
        assert result.participants == ["9-hearts", "8-hearts"]
        assert state.supplies == 0
        assert [t.card.key for t in state.detained_operatives] == ["9-hearts"]
        assert state.detained_operatives[0].turns_remaining == 1
        assert state.find_operative("8-hearts").tapped
        assert state.check_conservation()

    def test_significant_success(self, engine, make_state, script):
        """35 - 10 = 25 <= 30."""
        state = make_state(operatives=SPADES_FOUR, supplies=5, heat=10)
        script(35)

        result = asyncio.run(engine.resolve_operation("significant_vandalism", state))

        assert result.success
        assert (state.influence, state.heat, state.supplies) == (6, 14, 0)

    def test_significant_failure_applies_both_consequences(self, engine, make_state, script):
        state = make_state(operatives=SPADES_FOUR, supplies=5)
        script(99)

        asyncio.run(engine.resolve_operation("significant_vandalism", state))

        assert len(state.detained_operatives) == 2
        assert all(t.turns_remaining == 2 for t in state.detained_operatives)
        assert {t.card.key for t in state.detained_operatives} <= set(SPADES_FOUR)
        assert state.supplies == 0

    def test_named_participants(self, engine, make_state, script):
        state = make_state(operatives=["9-hearts", "2-hearts"])
        script(99)

        result = asyncio.run(
            engine.resolve_operation("minor_vandalism", state, operatives=["2-hearts"])
        )

        assert result.participants == ["2-hearts"]
        assert state.find_operative("2-hearts").tapped
        assert not state.find_operative("9-hearts").tapped

    def test_named_participant_must_be_available(self, engine, make_state, script):
        state = make_state(operatives=["9-hearts", "2-hearts", "3-hearts"], supplies=3)
        state.operatives[1].tapped = True
        script()

        with pytest.raises(InvalidTarget):
            asyncio.run(engine.resolve_operation(
                "average_vandalism", state, operatives=["9-hearts", "2-hearts"],
            ))
        assert state.supplies == 3


class TestFailureRuleChain:
    """Substitution bullets only apply when the first pool is empty."""

    def test_substitutes_supplies_when_no_operative_left(self, make_state):
        state = make_state(operatives=["4-clubs"], supplies=5)

        applied = apply_rule_chain(
            FAILURE_RULES[OperationType.SIGNIFICANT_VANDALISM], state, ["4-clubs"],
        )

        assert len(applied) == 2
        assert [t.card.key for t in state.detained_operatives] == ["4-clubs"]
        assert state.supplies == 3

    def test_falls_back_to_any_operative(self, make_state):
        state = make_state(operatives=["4-clubs", "5-clubs"], supplies=5)

        apply_rule_chain(FAILURE_RULES[OperationType.SCOUT], state, [])

        assert len(state.detained_operatives) == 2
        assert state.supplies == 5

    def test_nothing_to_detain(self, make_state):
        state = make_state(supplies=1)
        applied = apply_rule_chain(FAILURE_RULES[OperationType.SCOUT], state, [])
        assert applied == ["-2 Supplies"]
        assert state.supplies == 0


class TestGatherSupplies:
    """Three checks of d100 - heat + influence//2 >= 50."""

    def test_counts_successes(self, engine, make_state, script):
        state = make_state()
        dice = script(50, 49, 100)

        result = asyncio.run(engine.resolve_operation("gather_supplies", state))

        assert dice.requests == [DieType.D100] * 3
        assert state.supplies == 4
        assert result.success

    def test_influence_helps(self, engine, make_state, script):
        state = make_state(influence=40, heat=10)
        script(40, 1, 1)
        asyncio.run(engine.resolve_operation("gather_supplies", state))
        assert state.supplies == 2

    def test_no_penalty_on_failure(self, engine, make_state, script):
        state = make_state(supplies=3, heat=60)
        script(10, 20, 30)

        result = asyncio.run(engine.resolve_operation("gather_supplies", state))

        assert not result.success
        assert state.supplies == 3


class TestScout:
    """Two-turn assignment, then d100 - heat + sum(values) >= 75."""

    def test_start_assigns(self, engine, make_state, script):
        state = make_state(operatives=SPADES_FOUR + ["2-clubs"], supplies=5)
        dice = script()

        result = asyncio.run(engine.resolve_operation("scout", state))

        assert result.pending
        assert dice.requests == []
        assert state.supplies == 0
        mop = state.multi_turn_ops[0]
        assert mop.turns_remaining == 2
        assert sorted(mop.assigned_operatives) == sorted(SPADES_FOUR)
        assert [op.key for op in state.available_operatives] == ["2-clubs"]

    def test_success_opens_mid_game(self, engine, make_state, script):
        state = make_state(operatives=SPADES_FOUR, supplies=5)
        script(100, 30, 100)  # turn-1 crackdown, scout check, turn-2 crackdown

        asyncio.run(engine.resolve_operation("scout", state))
        asyncio.run(engine.end_turn(state))
        assert state.multi_turn_ops[0].turns_remaining == 1
        result = asyncio.run(engine.end_turn(state))

        assert result.completed_operations[0].success
        assert len(state.available_mid_game_ops) == 1
        assert state.multi_turn_ops == []
        assert all(op.assignment is None for op in state.operatives)

    def test_failure_detains_two(self, engine, make_state, script):
        state = make_state(operatives=SPADES_FOUR, supplies=5)
        script(100, 1, 100)

        asyncio.run(engine.resolve_operation("scout", state))
        asyncio.run(engine.end_turn(state))
        result = asyncio.run(engine.end_turn(state))

        assert not result.completed_operations[0].success
        assert len(state.detained_operatives) == 2
        assert all(t.turns_remaining == 1 for t in state.detained_operatives)
        assert len(state.operatives) == 2
        assert state.check_conservation()


class TestMidGame:

    def test_outcome_table(self, engine, make_state, script):
        state = make_state(
            operatives=HEARTS_TWELVE[:6], supplies=10, influence=100, heat=20, mid_ops=1,
        )
        script(5)

        result = asyncio.run(engine.resolve_operation("mid_game_op", state))

        assert result.outcome == "Safehouse Network"
        assert state.heat == 10
        assert state.available_mid_game_ops == []
        assert len(state.available_late_game_ops) == 1
        assert state.supplies == 0
        assert all(op.tapped for op in state.operatives)

    def test_needs_opportunity(self, engine, make_state):
        state = make_state(operatives=HEARTS_TWELVE[:6], supplies=10, influence=100)
        assert not engine.check_requirements("mid_game_op", state)

    def test_needs_influence(self, engine, make_state):
        state = make_state(operatives=HEARTS_TWELVE[:6], supplies=10, influence=99, mid_ops=1)
        assert not engine.check_requirements("mid_game_op", state)


class TestLateGame:

    def _started(self, engine, make_state, **fields):
        state = make_state(
            operatives=HEARTS_TWELVE, supplies=20, influence=250, late_ops=1, **fields,
        )
        result = asyncio.run(engine.resolve_operation("late_game_op", state))
        return state, result

    def test_start_consumes_opportunity(self, engine, make_state, script):
        script()
        state, result = self._started(engine, make_state)

        assert result.pending
        assert state.available_late_game_ops == []
        assert state.multi_turn_ops[0].turns_remaining == 3
        assert state.available_operatives == []

    def test_rerolls_blank_faces(self, engine, make_state, script):
        dice = script(7, 8, 2)
        state, _ = self._started(engine, make_state)

        result = asyncio.run(
            engine.operations.complete_multi_turn(state, state.multi_turn_ops[0])
        )

        assert dice.requests == [DieType.D8] * 3
        assert result.outcome == "General Strike"
        assert state.completed_late_game_ops == ["general_strike"]
        assert state.influence == 275

    def test_rerolls_completed_outcomes(self, engine, make_state, script):
        script(2, 3)
        state, _ = self._started(engine, make_state, completed_late_game_ops=["general_strike"])

        asyncio.run(engine.operations.complete_multi_turn(state, state.multi_turn_ops[0]))

        assert state.completed_late_game_ops == ["general_strike", "parallel_institutions"]

    def test_third_completion_wins(self, engine, make_state, script):
        script(100, 100, 6, 100)
        state, _ = self._started(
            engine, make_state, completed_late_game_ops=["free_broadcast", "defection_wave"],
        )

        for _ in range(2):
            assert not asyncio.run(engine.end_turn(state)).victory
        result = asyncio.run(engine.end_turn(state))

        assert result.victory
        assert state.is_victory
        assert state.completed_late_game_ops[-1] == "open_elections"


class TestCancellation:

    def test_cancelled_roll_keeps_costs_spent(self, engine, make_state):
        state = make_state(operatives=["9-hearts", "8-hearts"], supplies=3)
        relay = RelayDice()
        engine.set_dice_provider(relay)

        async def scenario():
            task = asyncio.create_task(engine.resolve_operation("average_vandalism", state))
            while relay.pending is None:
                await asyncio.sleep(0)
            relay.cancel_pending()
            await task

        with pytest.raises(RequestCancelled):
            asyncio.run(scenario())

        assert state.supplies == 0
        assert all(op.tapped for op in state.operatives)
        assert not engine.busy


class TestDetentionLength:
    """A detention costs whole turns after the one it happened in."""

    def test_average_failure_sits_out_next_turn(self, engine, make_state, script):
        state = make_state(operatives=["9-hearts", "8-hearts"], supplies=3)
        script(100, 100, 100)

        asyncio.run(engine.resolve_operation("average_vandalism", state))
        first = asyncio.run(engine.end_turn(state))

        assert first.released == []
        assert [t.card.key for t in state.detained_operatives] == ["9-hearts"]
        assert [op.key for op in state.available_operatives] == ["8-hearts"]

        second = asyncio.run(engine.end_turn(state))

        assert second.released == ["9-hearts"]
        assert len(state.available_operatives) == 2

    def test_significant_failure_sits_out_two_turns(self, engine, make_state, script):
        state = make_state(operatives=SPADES_FOUR, supplies=5)
        script(99, 100, 100, 100)

        asyncio.run(engine.resolve_operation("significant_vandalism", state))
        detained = {t.card.key for t in state.detained_operatives}

        asyncio.run(engine.end_turn(state))
        assert {t.card.key for t in state.detained_operatives} == detained
        assert len(state.available_operatives) == 2

        asyncio.run(engine.end_turn(state))
        assert {t.card.key for t in state.detained_operatives} == detained
        assert len(state.available_operatives) == 2

        third = asyncio.run(engine.end_turn(state))
        assert set(third.released) == detained
        assert len(state.available_operatives) == 4
        assert state.check_conservation()

    def test_detention_survives_save(self, engine, make_state, script):
        state = make_state(operatives=["9-hearts", "8-hearts"], supplies=3)
        script(100)

        asyncio.run(engine.resolve_operation("average_vandalism", state))
        engine.save(state, "current")

        assert engine.load("current").detained_operatives[0].created_turn == 1
