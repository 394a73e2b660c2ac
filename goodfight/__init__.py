"""The Good Fight: rules engine for a solo card and dice resistance game."""

from .engine import GameEngine

__version__ = "0.1.0"

__all__ = ["GameEngine", "__version__"]
