"""Character file storage.

One JSON file per character. A save is a single atomic replace, so a reader
never sees half of one update mixed with half of another.

Writers must hold character_lock(id) across their whole read-modify-write.
The lock only serializes writers inside this process; with several worker
processes the last writer still wins.
"""

import asyncio
import os
import tempfile
import weakref
from pathlib import Path

from neon_threads.models import Character

from .core import characters_dir

# entries vanish once no request holds or waits on the lock
_locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()


def _character_path(character_id: str) -> Path:
    return characters_dir() / f"{character_id}.json"


def character_lock(character_id: str) -> asyncio.Lock:
    """The lock guarding writes to one character."""
    lock = _locks.get(character_id)
    if lock is None:
        lock = _locks[character_id] = asyncio.Lock()
    return lock


def get_character(character_id: str) -> Character | None:
    """Load a character by id. Returns None if missing."""
    path = _character_path(character_id)
    if not path.is_file():
        return None
    return Character.model_validate_json(path.read_text())


def save_character(character: Character) -> None:
    """Write the full character record in one atomic replace."""
    path = _character_path(character.id)
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{character.id}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w") as f:
            f.write(character.model_dump_json(indent=2))
        os.replace(tmp, path)
    except BaseException:
        Path(tmp).unlink(missing_ok=True)
        raise


def list_characters(player_id: str) -> list[Character]:
    """All characters owned by a player, newest first."""
    results = []
    for path in characters_dir().glob("*.json"):
        character = Character.model_validate_json(path.read_text())
        if character.player_id == player_id:
            results.append(character)
    results.sort(key=lambda c: c.created_at, reverse=True)
    return results


def delete_character(character_id: str) -> bool:
    path = _character_path(character_id)
    if not path.is_file():
        return False
    path.unlink()
    _locks.pop(character_id, None)
    return True
