"""Handlebars prompt rendering for the narrative provider.

Three templates, one per request kind: SCENARIO_PROMPT (opening comic),
ACTION_PROMPT (resolve a player action), COMBAT_PROMPT (resolve a fight).
All of them start from CHARACTER_PROFILE and ask for a JSON object back;
see neon_threads.outcomes for how that object is read.

Values are inserted with triple-stash ({{{x}}}) so player text is not
HTML-escaped on its way to the model.
"""

from collections.abc import Callable
from typing import Any

import pybars

from backend.characters import history_lines, inventory_summary, optional_prompt_lines
from neon_threads.models import Character, CombatScenario


_compiler = pybars.Compiler()
_cache: dict[str, Callable] = {}


class PromptError(Exception):
    """Raised when a Handlebars template fails to compile or render."""


# ── Custom Handlebars helpers ────────────────────────────


def _helper_last(this, options, items, count):
    """{{#last array N}}...{{/last}} — iterate over the last N items."""
    result = []
    for item in list(items)[-int(count):]:
        result.extend(options["fn"](item))
    return result


_HELPERS: dict[str, Callable] = {
    "last": _helper_last,
}


def render_prompt(template_str: str, context: dict[str, Any]) -> str:
    """Compile and render a Handlebars template with the given context.

    Templates are cached by source string to avoid recompilation.
    """
    try:
        compiled = _cache.get(template_str)
        if compiled is None:
            compiled = _compiler.compile(template_str)
            _cache[template_str] = compiled
        return str(compiled(context, helpers=_HELPERS))
    except Exception as e:
        raise PromptError(f"Template error: {e}") from e


# ── Templates ────────────────────────────────────────────

CHARACTER_PROFILE = """Character Profile:
Background: {{{char.background}}}
Augmentations/Cyberware: {{{char.augmentations}}}
Appearance: {{{char.appearance}}}
Trade/Skill: {{{char.trade}}}
Status: {{{char.status}}}

Full Description: {{{char.full_description}}}
{{#each char.extras}}
{{{this}}}
{{/each}}
{{#if history}}

Story History:
{{#last history 10}}
{{{this}}}
{{/last}}
{{/if}}"""

SCENARIO_PROMPT = CHARACTER_PROFILE + """

Generate an engaging cyberpunk story scenario as a 6-panel comic book. The story should:
1. Be appropriate to their background and skills
2. Present a challenge or opportunity
3. Require player action/decision
4. Be vivid and atmospheric
5. Include dialogue in speech bubbles
6. Show visual progression across 6 panels

Format your response as JSON with:
{
  "scenario": "brief overall story summary (1-2 sentences)",
  "panels": [
    {
      "panelNumber": 1,
      "visualDescription": "detailed visual description of what's shown in this panel",
      "dialogue": ["character dialogue", "other character dialogue"],
      "narration": "optional narration text"
    }
  ],
  "requiresInput": true,
  "nextScene": "brief scene identifier"
}

Panel 1 sets the scene, panels 2-3 develop the story, panels 4-5 bring the
conflict, panel 6 ends on a cliffhanger or decision point."""

ACTION_PROMPT = CHARACTER_PROFILE + """

Money: {{{char.money}}} eddies | Health: {{{char.health}}}/{{{char.max_health}}} | Inventory: {{{char.inventory}}}

Current Scene: {{{scene}}}
Recent Story History:
{{#last history 5}}
{{{this}}}
{{/last}}

Player Action: "{{{action}}}"

Evaluate this action realistically:
1. If the player lacks the required items or money, the action fails
2. Some actions are very difficult or impossible
3. The character's trade and augmentations matter
4. Failure has consequences: injuries, lost money, new enemies
5. Death is possible

Difficulty and damage on failure:
- EASY: actions matching the character's trade, 5-10 damage
- MEDIUM: risky actions, combat, hacking, 10-25 damage
- HARD: nearly impossible actions, 25-40 damage
- IMPOSSIBLE: actions needing things the character lacks, 40-50 damage

Format your response as JSON:
{
  "scenario": "detailed outcome description (2-3 paragraphs)",
  "outcome": "brief summary - include SUCCESS or FAILURE",
  "success": true,
  "difficulty": "easy|medium|hard|impossible",
  "requiresInput": true,
  "nextScene": "scene identifier",
  "consequences": ["consequence1", "consequence2"],
  "healthChange": 0,
  "moneyChange": 0,
  "inventoryChanges": ["+item name", "-item name"],
  "combat": null
}

healthChange ranges from -50 to 20, moneyChange from -500 to 1000 eddies.
Only add or remove items that make sense for what happened. If combat
starts, "combat" is an object with "opponent", "opponentDescription",
"environment" and "stakes"."""

COMBAT_PROMPT = CHARACTER_PROFILE + """

Combat Scenario:
Opponent: {{{combat.opponent}}}
{{{combat.opponent_description}}}
Environment: {{{combat.environment}}}
Stakes: {{{combat.stakes}}}

Player Tactics: "{{{tactics}}}"

Determine the combat outcome from the character's skills and augmentations,
the quality of the tactics, the environment and positioning.

Format your response as JSON:
{
  "outcome": "victory" | "defeat" | "escape" | "negotiation",
  "description": "detailed narrative of the combat (2-3 paragraphs)",
  "consequences": ["consequence1", "consequence2"],
  "characterInjuries": ["injury1"],
  "characterStatus": "alive" | "dead" | "injured"
}

Be fair but dramatic. Death should feel earned, not arbitrary."""


def build_context(
    character: Character,
    *,
    with_event_types: bool = True,
    scene: str | None = None,
    action: str | None = None,
    combat: CombatScenario | None = None,
    tactics: str | None = None,
) -> dict[str, Any]:
    """Assemble template variables from a character and the current request."""
    ctx: dict[str, Any] = {
        "char": {
            "background": character.background,
            "augmentations": character.augmentations,
            "appearance": character.appearance,
            "trade": character.trade,
            "status": character.status,
            "full_description": character.full_description,
            "extras": optional_prompt_lines(character.optional_prompts),
            "health": character.health,
            "max_health": character.max_health,
            "money": character.money,
            "inventory": inventory_summary(character),
        },
        "history": history_lines(character, with_type=with_event_types),
    }
    if scene is not None:
        ctx["scene"] = scene
    if action is not None:
        ctx["action"] = action
    if combat is not None:
        ctx["combat"] = combat.model_dump()
    if tactics is not None:
        ctx["tactics"] = tactics
    return ctx
