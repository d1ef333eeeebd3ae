"""
Storage layer for character records.

The lifecycle only needs a key-value store keyed by character id with
get/list/save/delete. Two implementations are provided: an in-memory store
for tests and embedding, and a JSON store with one file per character.
Both hand out copies, so a caller mutating a loaded character never changes
the stored version until it calls ``save``.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Protocol

from .models import Character

logger = logging.getLogger("rulekeeper")


class CharacterStore(Protocol):
    """Key-value store of characters keyed by id."""

    def get(self, character_id: str) -> Character | None: ...

    def list(self) -> list[Character]: ...

    def save(self, character: Character) -> None: ...

    def delete(self, character_id: str) -> None: ...


class InMemoryCharacterStore:
    """Characters kept in a dict for the lifetime of the process."""

    def __init__(self) -> None:
        self._characters: dict[str, Character] = {}

    def get(self, character_id: str) -> Character | None:
        character = self._characters.get(character_id)
        return character.model_copy(deep=True) if character else None

    def list(self) -> list[Character]:
        return [c.model_copy(deep=True) for c in self._characters.values()]

    def save(self, character: Character) -> None:
        """Insert or replace by id."""
        self._characters[character.id] = character.model_copy(deep=True)

    def delete(self, character_id: str) -> None:
        self._characters.pop(character_id, None)


class JsonCharacterStore:
    """Characters stored as ``<data_dir>/characters/<id>.json``."""

    def __init__(self, data_dir: str | Path = "rulekeeper_data") -> None:
        self.data_dir = Path(data_dir)
        self.characters_dir = self.data_dir / "characters"
        logger.debug(f"📂 Initializing JsonCharacterStore with data_dir: {self.data_dir.resolve()}")
        self.characters_dir.mkdir(parents=True, exist_ok=True)

    def _get_character_file(self, character_id: str) -> Path:
        return self.characters_dir / f"{character_id}.json"

    def get(self, character_id: str) -> Character | None:
        file_path = self._get_character_file(character_id)
        if not file_path.exists():
            return None
        with open(file_path, "r", encoding="utf-8") as f:
            return Character.model_validate(json.load(f))

    def list(self) -> list[Character]:
        """Load every stored character, skipping unreadable files."""
        characters: list[Character] = []
        for file_path in sorted(self.characters_dir.glob("*.json")):
            try:
                with open(file_path, "r", encoding="utf-8") as f:
                    characters.append(Character.model_validate(json.load(f)))
            except (json.JSONDecodeError, ValueError) as e:
                logger.error(f"❌ Error loading character file {file_path.name}: {e}")
        return characters

    def save(self, character: Character) -> None:
        """Insert or replace by id."""
        self._atomic_write(self._get_character_file(character.id), character.model_dump(mode="json"))
        logger.debug(f"💾 Saved character {character.id} to {self.characters_dir}")

    def delete(self, character_id: str) -> None:
        file_path = self._get_character_file(character_id)
        if file_path.exists():
            file_path.unlink()
            logger.debug(f"🗑️ Deleted character {character_id}")

    def _atomic_write(self, file_path: Path, data: dict) -> None:
        """Write data to file atomically (write to temp, then rename)."""
        temp_file = file_path.with_suffix(".tmp")
        try:
            with open(temp_file, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, default=str)
            temp_file.replace(file_path)
        except Exception as e:
            if temp_file.exists():
                temp_file.unlink()
            logger.error(f"❌ Error during atomic write to {file_path.name}: {e}")
            raise
