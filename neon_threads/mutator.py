"""Apply a story outcome to a character.

apply_outcome() is pure: it never touches storage and never mutates its
input. It also never raises for bad outcome data; out-of-range deltas are
clamped and unusable directives are skipped, so the result is always a
valid character.

  health  clamp(health + delta, 0, max_health); 0 means dead
  money   max(0, money + delta)
  items   directives applied in order (see neon_threads.inventory)
  status  alive -> dead only; nothing here revives a dead character

The caller must not pass a dead character, and must persist the result in a
single write.
"""

from __future__ import annotations

import logging

from neon_threads.inventory import acquire_item, lose_item, parse_directive
from neon_threads.models import Character, StoryOutcome

logger = logging.getLogger(__name__)

ITEM_NOTE_LENGTH = 100


def _item_note(scenario: str) -> str:
    context = scenario.strip()[:ITEM_NOTE_LENGTH]
    if not context:
        return "Acquired during the story"
    return f"Acquired: {context}"


def apply_outcome(character: Character, outcome: StoryOutcome) -> tuple[Character, bool]:
    """Return (next_character, died_this_turn)."""
    health = character.health + (outcome.health_change or 0)
    health = max(0, min(character.max_health, health))
    status = character.status
    if health <= 0:
        health = 0
        status = "dead"

    money = max(0, character.money + (outcome.money_change or 0))

    inventory = [item.model_copy() for item in character.inventory]
    note = _item_note(outcome.scenario)
    for raw in outcome.inventory_changes:
        directive = parse_directive(raw)
        if directive is None:
            logger.debug("skipping unparseable inventory directive %r", raw)
            continue
        op, name = directive
        if op == "+":
            acquire_item(inventory, name, note)
        elif not lose_item(inventory, name):
            logger.debug("character %s has no %r to lose", character.id, name)

    died = character.status == "alive" and status == "dead"
    if died:
        logger.info("character %s died (health %d -> 0)", character.id, character.health)

    updated = character.model_copy(deep=True)
    updated.health = health
    updated.money = money
    updated.inventory = inventory
    updated.status = status
    return updated, died
