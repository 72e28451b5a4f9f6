"""Turn raw narrative-provider text into validated models.

Every parser here returns None instead of raising when the text is not a
usable JSON object; callers decide what the fallback is. Models that do come
back are already defaulted, so the mutator never sees raw text.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from pydantic import ValidationError

from neon_threads.models import CombatResolution, ComicPanel, StoryResponse

logger = logging.getLogger(__name__)

PANEL_COUNT = 6

DEFAULT_SCENARIO = "You find yourself in the neon-lit streets of Night City..."
DEFAULT_ACTION_SCENARIO = "Your action has consequences..."
DEFAULT_ACTION_OUTCOME = "Action completed"


def parse_json_output(text: str) -> dict[str, Any] | None:
    """Parse JSON from LLM output, stripping markdown fences."""
    cleaned = text.strip()
    if cleaned.startswith("```"):
        lines = cleaned.split("\n")
        lines = [l for l in lines[1:] if not l.strip().startswith("```")]
        cleaned = "\n".join(lines)
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        logger.warning(f"Narrative output is not valid JSON: {e}")
        return None
    if not isinstance(data, dict):
        logger.warning("Narrative output is JSON but not an object")
        return None
    return data


def fallback_panels(scenario: str) -> list[ComicPanel]:
    """Six placeholder panels cut from the scenario text."""
    parts = [p for p in scenario.split(". ") if len(p) > 10]
    panels = []
    for i in range(PANEL_COUNT):
        panels.append(ComicPanel(
            panel_number=i + 1,
            visual_description=parts[i] if i < len(parts) else f"Scene {i + 1} in the cyberpunk world",
            dialogue=["What's happening here?"] if i % 2 == 0 else [],
            narration=scenario[:100] if i == 0 else None,
        ))
    return panels


def parse_scenario_response(text: str) -> StoryResponse | None:
    """Parse an opening scenario. Anything but six panels gets fallback panels."""
    data = parse_json_output(text)
    if data is None:
        return None
    try:
        response = StoryResponse.model_validate(data)
    except ValidationError as e:
        logger.warning(f"Scenario output failed validation: {e}")
        return None
    if not response.scenario:
        response.scenario = DEFAULT_SCENARIO
    if len(response.panels) != PANEL_COUNT:
        response.panels = fallback_panels(response.scenario)
    if not response.next_scene:
        response.next_scene = "street"
    return response


def parse_story_response(text: str, current_scene: str) -> StoryResponse | None:
    """Parse the result of a player action."""
    data = parse_json_output(text)
    if data is None:
        return None
    try:
        response = StoryResponse.model_validate(data)
    except ValidationError as e:
        logger.warning(f"Action output failed validation: {e}")
        return None
    if not response.scenario:
        response.scenario = DEFAULT_ACTION_SCENARIO
    if not response.panels:
        response.panels = fallback_panels(response.scenario)
    if not response.outcome:
        response.outcome = DEFAULT_ACTION_OUTCOME
    if not response.next_scene:
        response.next_scene = current_scene
    return response


def parse_combat_resolution(text: str) -> CombatResolution | None:
    data = parse_json_output(text)
    if data is None:
        return None
    try:
        return CombatResolution.model_validate(data)
    except ValidationError as e:
        logger.warning(f"Combat output failed validation: {e}")
        return None
