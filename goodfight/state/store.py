"""
Save-slot storage abstraction.

Separates persistence from the rules engine for testability. A save is
the GameState serialized to JSON under the key `<prefix><slot>`. Slots
are independent and overwrite is unconditional; confirming an overwrite
is the caller's business.
"""

import json
import logging
from pathlib import Path
from typing import Protocol, runtime_checkable

from pydantic import ValidationError

from .schema import GameState

logger = logging.getLogger(__name__)

STORAGE_PREFIX = "good-fight-save-"


@runtime_checkable
class SaveStore(Protocol):
    """
    Abstract storage interface for saved games.

    Implementations:
    - JsonSaveStore: File-based persistence (production)
    - MemorySaveStore: In-memory storage (testing)
    """

    def save(self, state: GameState, slot: str) -> None:
        """Persist a game under a slot name."""
        ...

    def load(self, slot: str) -> GameState | None:
        """Load a slot. Returns None if absent."""
        ...

    def delete(self, slot: str) -> bool:
        """Delete a slot. Returns True if deleted."""
        ...

    def list_saves(self) -> list[str]:
        """Slot names, most recent first."""
        ...

    def exists(self, slot: str) -> bool:
        ...


def _parse(raw: str, key: str) -> GameState | None:
    try:
        return GameState.model_validate(json.loads(raw))
    except (json.JSONDecodeError, ValidationError) as e:
        logger.warning(f"Could not read save {key}: {e}")
        return None


class JsonSaveStore:
    """
    File-based save storage using JSON.

    Each slot is `<saves_dir>/<prefix><slot>.json`; the previous save is
    kept alongside as `.json.bak`.
    """

    def __init__(self, saves_dir: Path | str = "saves", prefix: str = STORAGE_PREFIX):
        self.saves_dir = Path(saves_dir)
        self.prefix = prefix
        self.saves_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, slot: str) -> Path:
        return self.saves_dir / f"{self.prefix}{slot}.json"

    def save(self, state: GameState, slot: str) -> None:
        """Save game to JSON file with backup."""
        save_file = self._path(slot)

        # Backup previous save
        if save_file.exists():
            backup = save_file.with_suffix(".json.bak")
            backup.write_text(save_file.read_text(encoding="utf-8"), encoding="utf-8")

        save_file.write_text(state.model_dump_json(indent=2), encoding="utf-8")
        logger.debug(f"Saved slot {slot} to {save_file}")

    def load(self, slot: str) -> GameState | None:
        save_file = self._path(slot)
        if not save_file.exists():
            return None
        return _parse(save_file.read_text(encoding="utf-8"), save_file.name)

    def delete(self, slot: str) -> bool:
        """Delete save file (the backup is left in place)."""
        save_file = self._path(slot)
        if save_file.exists():
            save_file.unlink()
            return True
        return False

    def list_saves(self) -> list[str]:
        """Slot names sorted by modification time, newest first."""
        files = sorted(
            self.saves_dir.glob(f"{self.prefix}*.json"),
            key=lambda f: f.stat().st_mtime,
            reverse=True,
        )
        return [f.stem[len(self.prefix):] for f in files]

    def exists(self, slot: str) -> bool:
        return self._path(slot).exists()


class MemorySaveStore:
    """
    In-memory save storage for testing.

    Keeps serialized JSON strings, so loads return independent copies
    exactly as a file round-trip would.
    """

    def __init__(self, prefix: str = STORAGE_PREFIX):
        self.prefix = prefix
        self.saves: dict[str, str] = {}

    def save(self, state: GameState, slot: str) -> None:
        key = self.prefix + slot
        self.saves.pop(key, None)
        self.saves[key] = state.model_dump_json()

    def load(self, slot: str) -> GameState | None:
        key = self.prefix + slot
        if key not in self.saves:
            return None
        return _parse(self.saves[key], key)

    def delete(self, slot: str) -> bool:
        key = self.prefix + slot
        if key in self.saves:
            del self.saves[key]
            return True
        return False

    def list_saves(self) -> list[str]:
        # Newest first, matching the file store
        return [key[len(self.prefix):] for key in reversed(self.saves)]

    def exists(self, slot: str) -> bool:
        return self.prefix + slot in self.saves

    def clear(self) -> None:
        """Clear all saves (test utility)."""
        self.saves.clear()
