"""Combat damage policy.

A CombatResolution from the narrative provider carries no numbers, so the
damage it does is fixed here, in one table:

  character_status "dead"     lethal (-max_health)
  injuries listed             -(10 + 5 per injury)
  otherwise, by outcome       victory -5, defeat -20, escape -10, negotiation 0

The result is an ordinary StoryOutcome, so combat goes through the same
mutator as every other action.
"""

from __future__ import annotations

from neon_threads.models import CombatResolution, StoryOutcome

OUTCOME_DAMAGE = {
    "victory": 5,
    "defeat": 20,
    "escape": 10,
    "negotiation": 0,
}

INJURY_BASE_DAMAGE = 10
DAMAGE_PER_INJURY = 5


def combat_damage(resolution: CombatResolution, max_health: int) -> int:
    """Damage (a positive number) dealt by a combat resolution."""
    if resolution.character_status == "dead":
        return max_health
    if resolution.character_injuries:
        return INJURY_BASE_DAMAGE + DAMAGE_PER_INJURY * len(resolution.character_injuries)
    return OUTCOME_DAMAGE[resolution.outcome]


def combat_outcome(resolution: CombatResolution, max_health: int) -> StoryOutcome:
    return StoryOutcome(
        health_change=-combat_damage(resolution, max_health),
        scenario=resolution.description,
    )
