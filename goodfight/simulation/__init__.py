"""Simulation module for automated play with scripted strategies."""

from .strategies import STRATEGIES, GreedyStrategy, CautiousStrategy, get_strategy
from .runner import run_simulation, summarize, GameSummary

__all__ = [
    "STRATEGIES",
    "GreedyStrategy",
    "CautiousStrategy",
    "get_strategy",
    "run_simulation",
    "summarize",
    "GameSummary",
]
