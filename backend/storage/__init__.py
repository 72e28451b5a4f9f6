"""File-based JSON storage for characters.

Data layout:
  data/
    characters/
      <id>.json        Full character record: profile, story state, health,
                       money, inventory, status, story history, cached portrait

A character file is only ever replaced whole (write temp file, then
os.replace). Updates go through character_lock(id) so at most one request
rewrites a character at a time.
"""

# Re-export all public symbols so `from backend import storage` keeps working.

from .core import (  # noqa: F401
    characters_dir,
    data_dir,
    init_storage,
)

from .characters import (  # noqa: F401
    character_lock,
    delete_character,
    get_character,
    list_characters,
    save_character,
)
