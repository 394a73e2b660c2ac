"""
Game systems for the Good Fight engine.

Each system operates on an explicit GameState and awaits randomness
through the engine's Randomness facade.
"""

from .recruitment import RecruitmentPipeline, get_influence_die
from .operations import OperationsEngine, REQUIREMENTS, parse_operation
from .crackdown import resolve_crackdown, apply_crackdown, crackdown_tier
from .turns import TurnLifecycle
from .setup import create_game, roll_setup, RESISTANCE_VALUES, REGIME_TYPES

__all__ = [
    "RecruitmentPipeline",
    "get_influence_die",
    "OperationsEngine",
    "REQUIREMENTS",
    "parse_operation",
    "resolve_crackdown",
    "apply_crackdown",
    "crackdown_tier",
    "TurnLifecycle",
    "create_game",
    "roll_setup",
    "RESISTANCE_VALUES",
    "REGIME_TYPES",
]
