"""Turn pipeline: one story request against one character.

Every turn follows the same steps while holding the character's lock:
  1. Load the character; refuse unknown or dead characters.
  2. One narrative call (falls back to a canned narrative on provider trouble).
  3. At most one image call, best effort.
  4. Apply the outcome with the mutator (actions and combat only).
  5. Append the story event (plus a death event if the character died).
  6. One save_character() call with the whole new record.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any

from backend import storage
from backend.narrative import NarrativeService
from neon_threads.combat import combat_outcome
from neon_threads.images import ImageClient, build_panel_prompt
from neon_threads.models import Character, CombatScenario, StoryEvent, StoryResponse
from neon_threads.mutator import apply_outcome

logger = logging.getLogger(__name__)


class CharacterNotFound(LookupError):
    """No character with the requested id."""


class CharacterDeadError(ValueError):
    """The character is dead and can take no further story actions."""


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _load_alive(character_id: str) -> Character:
    character = storage.get_character(character_id)
    if character is None:
        raise CharacterNotFound(character_id)
    if character.status == "dead":
        raise CharacterDeadError("Character is dead")
    return character


def _event(**fields: Any) -> StoryEvent:
    return StoryEvent(id=uuid.uuid4().hex, timestamp=_now(), **fields)


def _death_event(cause: str) -> StoryEvent:
    return _event(
        type="death",
        description=cause,
        outcome="Character died",
    )


def _vitals(character: Character, died: bool) -> dict[str, Any]:
    return {
        "health": character.health,
        "maxHealth": character.max_health,
        "money": character.money,
        "status": character.status,
        "inventory": [item.model_dump(by_alias=True) for item in character.inventory],
        "died": died,
    }


async def _illustrate_first_panel(
    images: ImageClient | None, character: Character, response: StoryResponse, scene_type: str
) -> None:
    if images is None or not response.panels:
        return
    panel = response.panels[0]
    prompt = build_panel_prompt(
        character, response.scenario, scene_type, panel,
        outcome=response.outcome, consequences=response.consequences,
    )
    url = await images.generate(prompt)
    if url is None:
        logger.warning("no image for first panel of character %s", character.id)
        return
    panel.image_url = url
    panel.image_prompt = prompt


async def run_scenario(
    character_id: str, narrative: NarrativeService, images: ImageClient | None = None
) -> dict[str, Any]:
    """Generate the next scenario. Does not change health, money or items."""
    async with storage.character_lock(character_id):
        character = _load_alive(character_id)
        response = await narrative.opening_scenario(character)
        await _illustrate_first_panel(images, character, response, "story")

        if response.next_scene:
            character.story_state.current_scene = response.next_scene
        first = response.panels[0] if response.panels else None
        character.story_history.append(_event(
            type="story",
            description=response.scenario,
            outcome=response.outcome or "Story scenario generated",
            image_url=first.image_url if first else None,
            image_prompt=first.image_prompt if first else None,
        ))
        storage.save_character(character)

    return {**response.model_dump(by_alias=True), **_vitals(character, False)}


async def run_action(
    character_id: str, action: str, narrative: NarrativeService, images: ImageClient | None = None
) -> dict[str, Any]:
    """Resolve a player action and apply its outcome."""
    async with storage.character_lock(character_id):
        character = _load_alive(character_id)
        response = await narrative.player_action(character, action)
        await _illustrate_first_panel(images, character, response, "combat" if response.combat else "outcome")

        updated, died = apply_outcome(character, response.outcome_delta())
        if response.next_scene:
            updated.story_state.current_scene = response.next_scene
        first = response.panels[0] if response.panels else None
        updated.story_history.append(_event(
            type="combat" if response.combat else "decision",
            description=response.scenario,
            player_input=action,
            outcome=response.outcome or "Action processed",
            consequences=list(response.consequences),
            image_url=first.image_url if first else None,
            image_prompt=first.image_prompt if first else None,
        ))
        if died:
            updated.story_history.append(_death_event(response.scenario))
        storage.save_character(updated)

    return {**response.model_dump(by_alias=True), **_vitals(updated, died)}


async def run_combat(
    character_id: str,
    combat: CombatScenario,
    tactics: str,
    narrative: NarrativeService,
    images: ImageClient | None = None,
) -> dict[str, Any]:
    """Resolve a fight and apply the combat damage policy."""
    async with storage.character_lock(character_id):
        character = _load_alive(character_id)
        resolution = await narrative.resolve_combat(character, combat, tactics)

        if images is not None:
            prompt = build_panel_prompt(
                character, resolution.description, "combat",
                outcome=resolution.outcome, consequences=resolution.consequences,
            )
            url = await images.generate(prompt)
            if url is not None:
                resolution.image_url = url
                resolution.image_prompt = prompt

        updated, died = apply_outcome(character, combat_outcome(resolution, character.max_health))
        updated.story_history.append(_event(
            type="combat",
            description=resolution.description,
            player_input=tactics,
            outcome=resolution.outcome,
            consequences=list(resolution.consequences),
            image_url=resolution.image_url,
            image_prompt=resolution.image_prompt,
        ))
        if died:
            updated.story_history.append(_death_event(resolution.description))
        storage.save_character(updated)

    return {**resolution.model_dump(by_alias=True), **_vitals(updated, died)}
