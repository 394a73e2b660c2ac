"""
User configuration persistence.

Stores settings like the saves location and the input mode in a JSON
file kept next to the saves.
"""

import json
import logging
from pathlib import Path
from typing import TypedDict

from .state.store import STORAGE_PREFIX

logger = logging.getLogger(__name__)


class Config(TypedDict, total=False):
    """User configuration."""
    saves_dir: str
    storage_prefix: str
    dice_mode: str  # digital or physical
    cards_mode: str  # digital or physical
    seed: int | None  # Fixed seed for reproducible automatic randomness
    log_level: str


DEFAULT_CONFIG: Config = {
    "saves_dir": "saves",
    "storage_prefix": STORAGE_PREFIX,
    "dice_mode": "digital",
    "cards_mode": "digital",
    "seed": None,
    "log_level": "WARNING",
}

INPUT_MODES = ("digital", "physical")


def get_config_path(saves_dir: Path | str = "saves") -> Path:
    """Get path to config file."""
    return Path(saves_dir) / ".goodfight_config.json"


def load_config(saves_dir: Path | str = "saves") -> Config:
    """Load config from file, or return defaults if not found."""
    path = get_config_path(saves_dir)

    if not path.exists():
        config = DEFAULT_CONFIG.copy()
        config["saves_dir"] = str(saves_dir)
        return config

    try:
        with open(path, "r", encoding="utf-8") as f:
            saved = json.load(f)
        # Merge with defaults to handle missing keys
        config = DEFAULT_CONFIG.copy()
        config.update(saved)
        return config
    except (json.JSONDecodeError, IOError) as e:
        logger.warning(f"Ignoring unreadable config {path}: {e}")
        config = DEFAULT_CONFIG.copy()
        config["saves_dir"] = str(saves_dir)
        return config


def save_config(config: Config, saves_dir: Path | str = "saves") -> bool:
    """Save config to file. Returns True on success."""
    path = get_config_path(saves_dir)

    # Ensure directory exists
    path.parent.mkdir(parents=True, exist_ok=True)

    try:
        with open(path, "w", encoding="utf-8") as f:
            json.dump(config, f, indent=2)
        return True
    except IOError as e:
        logger.error(f"Could not write config {path}: {e}")
        return False


def set_input_mode(
    dice: str | None = None,
    cards: str | None = None,
    saves_dir: Path | str = "saves",
) -> Config:
    """Save input mode preference. Either half may be left unchanged."""
    for mode in (dice, cards):
        if mode is not None and mode not in INPUT_MODES:
            raise ValueError(f"Input mode must be one of {INPUT_MODES}, got {mode!r}")
    config = load_config(saves_dir)
    if dice is not None:
        config["dice_mode"] = dice
    if cards is not None:
        config["cards_mode"] = cards
    save_config(config, saves_dir)
    return config
