"""Simulation runner and game summaries."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

from rich.console import Console
from rich.table import Table

from ..engine import GameEngine
from ..state.event_bus import get_event_bus, EventType, GameEvent
from ..state.schema import GameState
from .strategies import get_strategy

logger = logging.getLogger(__name__)


@dataclass
class GameSummary:
    """How one simulated game ended."""

    game: int
    seed: int | None
    strategy: str
    turns: int = 0
    victory: bool = False
    influence: int = 0
    heat: int = 0
    supplies: int = 0
    operatives: int = 0
    crackdowns: int = 0
    completed_late_game_ops: list[str] = field(default_factory=list)
    cards_conserved: bool = True

    @classmethod
    def from_state(cls, game: int, seed: int | None, strategy: str, state: GameState, crackdowns: int) -> "GameSummary":
        return cls(
            game=game,
            seed=seed,
            strategy=strategy,
            turns=state.current_turn - 1,
            victory=state.is_victory,
            influence=state.influence,
            heat=state.heat,
            supplies=state.supplies,
            operatives=len(state.operatives),
            crackdowns=crackdowns,
            completed_late_game_ops=list(state.completed_late_game_ops),
            cards_conserved=state.check_conservation(),
        )


async def play_game(
    engine: GameEngine,
    strategy,
    max_turns: int,
) -> tuple[GameState, int]:
    """Play until victory or max_turns. Returns the final state and crackdown count."""
    crackdowns = 0

    def count(event: GameEvent) -> None:
        nonlocal crackdowns
        crackdowns += 1

    bus = get_event_bus()
    bus.on(EventType.CRACKDOWN, count)
    try:
        state = engine.new_game()
        await engine.roll_setup(state)
        while state.current_turn <= max_turns and not state.is_victory:
            await strategy.play_turn(engine, state)
            await engine.end_turn(state)
    finally:
        bus.off(EventType.CRACKDOWN, count)
    return state, crackdowns


def run_simulation(
    games: int = 10,
    seed: int | None = None,
    max_turns: int = 100,
    strategy: str = "greedy",
) -> list[GameSummary]:
    """
    Run automated games with automatic dice and deck.

    Args:
        games: Number of games to play
        seed: Base seed; game i uses seed + i (None for unseeded games)
        max_turns: Turn cap per game
        strategy: Strategy name (see STRATEGIES)

    Returns:
        One GameSummary per game
    """
    player = get_strategy(strategy)
    summaries = []
    for i in range(games):
        game_seed = None if seed is None else seed + i
        engine = GameEngine(seed=game_seed)
        state, crackdowns = asyncio.run(play_game(engine, player, max_turns))
        summary = GameSummary.from_state(i + 1, game_seed, strategy, state, crackdowns)
        logger.info(
            f"Game {summary.game}: {'victory' if summary.victory else 'no victory'} "
            f"after {summary.turns} turns"
        )
        summaries.append(summary)
    return summaries


def summarize(summaries: list[GameSummary], console: Console | None = None) -> None:
    """Print one row per game."""
    console = console or Console()
    table = Table(title="Simulation")
    table.add_column("Game", justify="right")
    table.add_column("Turns", justify="right")
    table.add_column("Result")
    table.add_column("Influence", justify="right")
    table.add_column("Heat", justify="right")
    table.add_column("Operatives", justify="right")
    table.add_column("Crackdowns", justify="right")
    for s in summaries:
        table.add_row(
            str(s.game),
            str(s.turns),
            "victory" if s.victory else "-",
            str(s.influence),
            str(s.heat),
            str(s.operatives),
            str(s.crackdowns),
        )
    console.print(table)
    wins = sum(1 for s in summaries if s.victory)
    console.print(f"{wins}/{len(summaries)} victories")
