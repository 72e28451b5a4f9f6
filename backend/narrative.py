"""Narrative service — prompts in, validated story models out.

Wraps an LLM callable (neon_threads.llm.HttpLLM in production). Each method
renders its prompt, calls the LLM once and parses the reply. When the
provider is unreachable, errors out or sends something unparseable, the
method returns a fallback narrative with no state changes instead.

Exceptions: authentication, credit and rate-limit failures (HTTP 401, 402,
403, 429) are not papered over with a fallback story; the LLMError
propagates so the player sees that the game is misconfigured.
"""

import logging

from neon_threads.llm import LLM, LLMError
from neon_threads.models import Character, CombatResolution, CombatScenario, StoryResponse
from neon_threads.outcomes import (
    fallback_panels,
    parse_combat_resolution,
    parse_scenario_response,
    parse_story_response,
)

from .prompts import ACTION_PROMPT, COMBAT_PROMPT, SCENARIO_PROMPT, build_context, render_prompt

logger = logging.getLogger(__name__)

FATAL_STATUS_CODES = frozenset({401, 402, 403, 429})

FALLBACK_SCENARIO = "The neon lights flicker as you step into the rain-soaked alley. Something is about to happen..."
FALLBACK_ACTION = "Your action ripples through the neon-soaked world. The consequences unfold..."
FALLBACK_COMBAT = "The combat ends with you standing, though not unscathed."


class NarrativeService:
    def __init__(self, llm: LLM) -> None:
        self._llm = llm

    async def _call(self, stage: str, prompt: str) -> str | None:
        try:
            return await self._llm(stage, prompt)
        except LLMError as e:
            if e.status_code in FATAL_STATUS_CODES:
                raise
            logger.warning("narrative provider failed stage=%s: %s; using fallback", stage, e)
            return None

    async def opening_scenario(self, character: Character) -> StoryResponse:
        """Generate the six-panel opening (or next) scenario for a character."""
        prompt = render_prompt(SCENARIO_PROMPT, build_context(character, with_event_types=False))
        text = await self._call("scenario", prompt)
        response = parse_scenario_response(text) if text is not None else None
        if response is None:
            response = StoryResponse(
                scenario=FALLBACK_SCENARIO,
                panels=fallback_panels(FALLBACK_SCENARIO),
                requires_input=True,
                next_scene="street",
            )
        return response

    async def player_action(self, character: Character, action: str) -> StoryResponse:
        """Resolve a player action. The response carries the state deltas."""
        scene = character.story_state.current_scene
        prompt = render_prompt(ACTION_PROMPT, build_context(character, scene=scene, action=action))
        text = await self._call("action", prompt)
        response = parse_story_response(text, scene) if text is not None else None
        if response is None:
            response = StoryResponse(
                scenario=FALLBACK_ACTION,
                panels=fallback_panels(FALLBACK_ACTION),
                outcome="Action processed",
                requires_input=True,
                next_scene=scene,
            )
        return response

    async def resolve_combat(
        self, character: Character, combat: CombatScenario, tactics: str
    ) -> CombatResolution:
        prompt = render_prompt(COMBAT_PROMPT, build_context(character, combat=combat, tactics=tactics))
        text = await self._call("combat", prompt)
        resolution = parse_combat_resolution(text) if text is not None else None
        if resolution is None:
            resolution = CombatResolution(
                outcome="victory",
                description=FALLBACK_COMBAT,
                consequences=["You survived the encounter"],
                character_status="alive",
            )
        return resolution
