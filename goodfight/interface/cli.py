"""
Command-line interface for the Good Fight engine.

Each invocation loads a save slot, performs one action through the
engine facade, renders the outcome and saves the slot again.

    goodfight new --roll-setup
    goodfight draw 3
    goodfight recruit 0
    goodfight op minor_vandalism
    goodfight end-turn
    goodfight status
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from ..config import load_config, set_input_mode
from ..engine import GameEngine
from ..errors import GameError
from ..state.schema import GameState
from ..state.schemas.action import OperationType
from ..state.store import JsonSaveStore
from ..systems.setup import RESISTANCE_VALUES, REGIME_TYPES
from .prompts import prompt_deck, prompt_dice
from .renderer import (
    THEME,
    console,
    show_operation_result,
    show_preview,
    show_recruit_result,
    show_saves,
    show_status,
    show_turn_result,
)

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="goodfight", description="The Good Fight - solo resistance game engine",
    )
    parser.add_argument("--saves-dir", help="Directory holding saves and config")
    parser.add_argument("--slot", default="current", help="Save slot to play (default: current)")
    parser.add_argument("--seed", type=int, help="Seed for automatic dice and shuffles")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log engine activity")
    sub = parser.add_subparsers(dest="command", required=True)

    new = sub.add_parser("new", help="Start a new game in the slot (overwrites it)")
    new.add_argument("--value", action="append", default=[], choices=RESISTANCE_VALUES,
                     help="Resistance value (repeatable)")
    new.add_argument("--regime", action="append", default=[], choices=REGIME_TYPES,
                     help="Regime type (repeatable)")
    new.add_argument("--roll-setup", action="store_true", help="Roll d6 on both setup tables")
    new.add_argument("--dice", choices=["digital", "physical"], help="Dice input mode")
    new.add_argument("--cards", choices=["digital", "physical"], help="Card input mode")

    sub.add_parser("status", help="Show the current game")

    draw = sub.add_parser("draw", help="Draw cards into the recruit pool")
    draw.add_argument("count", type=int, nargs="?", default=1)

    recruit = sub.add_parser("recruit", help="Attempt to recruit a pool card")
    recruit.add_argument("index", type=int, help="Recruit pool index")
    recruit.add_argument("--by", dest="recruiter", help="Operative card key (default: Leader)")
    recruit.add_argument("--upgrade", action="store_true", help="Spend 1 supply to roll d12")

    op = sub.add_parser("op", help="Run an operation")
    op.add_argument("operation", choices=[o.value for o in OperationType])
    op.add_argument("--operatives", nargs="+", help="Card keys of the participants")
    op.add_argument("--preview", action="store_true", help="Only show the requirements")

    sub.add_parser("end-turn", help="End the turn")

    saves = sub.add_parser("saves", help="List saved games")
    saves.add_argument("--delete", metavar="SLOT", help="Delete a save slot")

    sim = sub.add_parser("simulate", help="Play automated games")
    sim.add_argument("--games", type=int, default=10)
    sim.add_argument("--max-turns", type=int, default=100)
    sim.add_argument("--strategy", default="greedy")

    return parser


def configure_providers(engine: GameEngine, state: GameState) -> None:
    """Match the engine's providers to the game's input mode."""
    engine.set_dice_provider(prompt_dice() if state.input_mode.dice == "physical" else None)
    engine.set_deck_provider(prompt_deck() if state.input_mode.cards == "physical" else None)


async def run_command(args, engine: GameEngine) -> int:
    """Dispatch one subcommand. Returns the process exit code."""
    if args.command == "saves":
        if args.delete:
            deleted = engine.delete_save(args.delete)
            console.print(f"Deleted {args.delete}" if deleted else f"No save named {args.delete}")
        show_saves(engine.list_saves())
        return 0

    if args.command == "new":
        config = set_input_mode(args.dice, args.cards, args.saves_dir)
        state = engine.new_game(
            args.value,
            args.regime,
            dice_mode=config["dice_mode"],
            cards_mode=config["cards_mode"],
        )
        configure_providers(engine, state)
        if args.roll_setup:
            await engine.roll_setup(state)
        engine.save(state, args.slot)
        show_status(state, args.slot)
        return 0

    state = engine.load(args.slot)
    if state is None:
        console.print(f"[{THEME['warning']}]No game in slot {args.slot}. Start one with 'goodfight new'.[/{THEME['warning']}]")
        return 1
    configure_providers(engine, state)

    match args.command:
        case "status":
            show_status(state, args.slot)
            return 0
        case "draw":
            drawn = await engine.draw_to_pool(state, args.count)
            console.print(f"Drew {' '.join(c.label for c in drawn) or 'nothing, the deck is empty'}")
        case "recruit":
            show_recruit_result(await engine.attempt_recruit(
                state, args.index, recruiter=args.recruiter, upgrade_die=args.upgrade,
            ))
        case "op":
            preview = engine.preview(args.operation, state)
            if args.preview or not preview.feasible:
                show_preview(preview)
                return 0 if args.preview else 1
            show_operation_result(await engine.resolve_operation(
                args.operation, state, args.operatives,
            ))
        case "end-turn":
            show_turn_result(await engine.end_turn(state))

    engine.save(state, args.slot)
    return 0


def run_simulate(args) -> int:
    # Imported here so the play commands never load the harness
    from ..simulation import run_simulation, summarize

    try:
        summaries = run_simulation(
            games=args.games,
            seed=args.seed,
            max_turns=args.max_turns,
            strategy=args.strategy,
        )
    except KeyError as e:
        console.print(f"[{THEME['danger']}]{e.args[0]}[/{THEME['danger']}]")
        return 2
    summarize(summaries, console)
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    saves_dir = Path(args.saves_dir) if args.saves_dir else Path("saves")
    args.saves_dir = saves_dir
    config = load_config(saves_dir)

    level = logging.INFO if args.verbose else getattr(logging, str(config.get("log_level", "WARNING")).upper(), logging.WARNING)
    logging.basicConfig(level=level, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")

    seed = args.seed if args.seed is not None else config.get("seed")
    if args.command == "simulate":
        args.seed = seed
        return run_simulate(args)

    engine = GameEngine(
        seed=seed,
        store=JsonSaveStore(saves_dir, prefix=config.get("storage_prefix", "good-fight-save-")),
    )
    try:
        return asyncio.run(run_command(args, engine))
    except GameError as e:
        # Refused actions leave the save untouched
        console.print(f"[{THEME['danger']}]{e}[/{THEME['danger']}]")
        return 1


if __name__ == "__main__":
    sys.exit(main())
