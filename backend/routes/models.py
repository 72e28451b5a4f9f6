"""Pydantic request models for API endpoints.

Bodies arrive camelCase from the browser client; snake_case is accepted too.
"""

from neon_threads.models import CombatScenario, OptionalPrompts, WireModel


class CreateCharacter(WireModel):
    background: str = ""
    augmentations: str = ""
    appearance: str = ""
    trade: str = ""
    optional_prompts: OptionalPrompts | None = None
    player_id: str | None = None


class UpdateStatus(WireModel):
    status: str


class ActionBody(WireModel):
    action: str = ""
    context: str | None = None


class CombatBody(WireModel):
    combat_scenario: CombatScenario | None = None
    player_tactics: str = ""
