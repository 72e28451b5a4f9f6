"""Story turn pipeline.

Three request kinds, each a single locked read-modify-write of one character:
  run_scenario  narrator sets the next scene (six comic panels); no stat changes
  run_action    narrator resolves a player action; health/money/items deltas applied
  run_combat    narrator resolves a fight; damage comes from the combat policy table

Dead characters are refused with CharacterDeadError before any provider call.
Unknown ids raise CharacterNotFound.

Response format: the narrator's response (camelCase keys) merged with the
character's new vitals: health, maxHealth, money, status, inventory, died.
"""

from .core import (  # noqa: F401
    CharacterDeadError,
    CharacterNotFound,
    run_action,
    run_combat,
    run_scenario,
)
