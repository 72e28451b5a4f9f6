"""Core domain models.

The mutator, the outcome parser and the storage layer all operate on these
types. Pydantic is used for validation and serialisation at every data
boundary.

Field names are snake_case in Python and on disk; the browser client and the
narrative provider speak camelCase, so every model accepts both and dumps
camelCase when asked for aliases (which is what FastAPI does for responses).

StoryOutcome, StoryResponse and CombatResolution are built from untrusted LLM
output. Their validators coerce junk to "no change" instead of raising, so a
single malformed field never throws away the rest of the response.
"""

from __future__ import annotations

import math
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

Category = Literal["weapon", "tool", "consumable", "cyberware", "misc"]
Status = Literal["alive", "dead"]
EventType = Literal["story", "combat", "decision", "death"]
CombatOutcomeKind = Literal["victory", "defeat", "escape", "negotiation"]
CombatStatus = Literal["alive", "dead", "injured"]
Difficulty = Literal["easy", "medium", "hard", "impossible"]

STARTING_HEALTH = 100
STARTING_MONEY = 500


class WireModel(BaseModel):
    """Base for models that cross the HTTP or LLM boundary."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


def _coerce_int(value: Any) -> int | None:
    """Best-effort integer from LLM output. Anything unusable becomes None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return None
    if isinstance(value, float):
        # NaN and +-inf have no integer value
        return int(value) if math.isfinite(value) else None
    return None


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [v for v in value if isinstance(v, str)]


# ---------------------------------------------------------------------------
# Character
# ---------------------------------------------------------------------------

class InventoryItem(WireModel):
    """One inventory entry. `name` is the case-insensitive key."""

    name: str
    description: str = ""
    quantity: int = Field(default=1, ge=1)
    category: Category = "misc"


class OptionalPrompts(WireModel):
    enemies: str | None = None
    never_sell_out: str | None = None
    secret: str | None = None
    problem_handling: str | None = None
    reputation: str | None = None


class StoryState(WireModel):
    location: str = "night_city_street"
    current_scene: str = "initial"
    active_complications: list[str] = Field(default_factory=list)
    npc_relationships: dict[str, int] = Field(default_factory=dict)
    world_state: dict[str, Any] = Field(default_factory=dict)


class StoryEvent(WireModel):
    """An entry in a character's append-only story history."""

    id: str
    timestamp: str
    type: EventType
    description: str
    outcome: str
    player_input: str | None = None
    consequences: list[str] = Field(default_factory=list)
    image_url: str | None = None
    image_prompt: str | None = None


class Character(WireModel):
    """A player's character and everything the story has done to it."""

    id: str
    player_id: str
    background: str
    augmentations: str
    appearance: str
    trade: str
    optional_prompts: OptionalPrompts | None = None
    full_description: str = ""
    created_at: str = ""
    story_state: StoryState = Field(default_factory=StoryState)
    status: Status = "alive"
    story_history: list[StoryEvent] = Field(default_factory=list)
    inventory: list[InventoryItem] = Field(default_factory=list)
    money: int = STARTING_MONEY  # eddies
    health: int = STARTING_HEALTH
    max_health: int = STARTING_HEALTH
    portrait_url: str | None = None
    portrait_hash: str | None = None


# ---------------------------------------------------------------------------
# Narrative provider output
# ---------------------------------------------------------------------------

class StoryOutcome(WireModel):
    """The part of a narrative response that changes character state.

    Every field is optional; None / [] means "no change".
    """

    health_change: int | None = None
    money_change: int | None = None
    inventory_changes: list[str] = Field(default_factory=list)
    scenario: str = ""

    @field_validator("health_change", "money_change", mode="before")
    @classmethod
    def _lenient_delta(cls, value: Any) -> int | None:
        return _coerce_int(value)

    @field_validator("inventory_changes", mode="before")
    @classmethod
    def _lenient_directives(cls, value: Any) -> list[str]:
        return _string_list(value)

    @field_validator("scenario", mode="before")
    @classmethod
    def _lenient_scenario(cls, value: Any) -> str:
        return value if isinstance(value, str) else ""


class ComicPanel(WireModel):
    panel_number: int = 1
    visual_description: str = ""
    dialogue: list[str] = Field(default_factory=list)
    narration: str | None = None
    image_url: str | None = None
    image_prompt: str | None = None

    @field_validator("panel_number", mode="before")
    @classmethod
    def _lenient_number(cls, value: Any) -> int:
        number = _coerce_int(value)
        return number if number is not None else 1

    @field_validator("visual_description", mode="before")
    @classmethod
    def _lenient_description(cls, value: Any) -> str:
        return value if isinstance(value, str) else ""

    @field_validator("dialogue", mode="before")
    @classmethod
    def _lenient_dialogue(cls, value: Any) -> list[str]:
        return _string_list(value)

    @field_validator("narration", "image_url", "image_prompt", mode="before")
    @classmethod
    def _lenient_optional_text(cls, value: Any) -> str | None:
        return value if isinstance(value, str) else None


class CombatScenario(WireModel):
    opponent: str = "Unknown opponent"
    opponent_description: str = ""
    environment: str = ""
    stakes: str = ""
    player_advantages: list[str] = Field(default_factory=list)
    player_disadvantages: list[str] = Field(default_factory=list)

    @field_validator("opponent", mode="before")
    @classmethod
    def _lenient_opponent(cls, value: Any) -> str:
        return value if isinstance(value, str) and value.strip() else "Unknown opponent"

    @field_validator("opponent_description", "environment", "stakes", mode="before")
    @classmethod
    def _lenient_text(cls, value: Any) -> str:
        return value if isinstance(value, str) else ""

    @field_validator("player_advantages", "player_disadvantages", mode="before")
    @classmethod
    def _lenient_lists(cls, value: Any) -> list[str]:
        return _string_list(value)


class StoryResponse(StoryOutcome):
    """A scenario or action result from the narrative provider."""

    panels: list[ComicPanel] = Field(default_factory=list)
    choices: list[str] = Field(default_factory=list)
    requires_input: bool = True
    combat: CombatScenario | None = None
    outcome: str | None = None
    next_scene: str | None = None
    success: bool | None = None
    difficulty: Difficulty | None = None
    consequences: list[str] = Field(default_factory=list)
    image_url: str | None = None
    image_prompt: str | None = None

    @field_validator("panels", mode="before")
    @classmethod
    def _lenient_panels(cls, value: Any) -> list[Any]:
        if not isinstance(value, list):
            return []
        panels = []
        for p in value:
            if isinstance(p, ComicPanel):
                panels.append(p)
            elif isinstance(p, dict):
                try:
                    panels.append(ComicPanel.model_validate(p))
                except ValidationError:
                    continue
        return panels

    @field_validator("choices", "consequences", mode="before")
    @classmethod
    def _lenient_lists(cls, value: Any) -> list[str]:
        return _string_list(value)

    @field_validator("combat", mode="before")
    @classmethod
    def _lenient_combat(cls, value: Any) -> Any:
        return value if isinstance(value, (dict, CombatScenario)) else None

    @field_validator("difficulty", mode="before")
    @classmethod
    def _lenient_difficulty(cls, value: Any) -> Any:
        if isinstance(value, str) and value.lower() in ("easy", "medium", "hard", "impossible"):
            return value.lower()
        return None

    @field_validator("success", mode="before")
    @classmethod
    def _lenient_success(cls, value: Any) -> bool | None:
        return value if isinstance(value, bool) else None

    @field_validator("requires_input", mode="before")
    @classmethod
    def _lenient_requires_input(cls, value: Any) -> bool:
        return value if isinstance(value, bool) else True

    @field_validator("outcome", "next_scene", "image_url", "image_prompt", mode="before")
    @classmethod
    def _lenient_optional_text(cls, value: Any) -> str | None:
        return value if isinstance(value, str) else None

    def outcome_delta(self) -> StoryOutcome:
        """The state-changing subset handed to the mutator."""
        return StoryOutcome(
            health_change=self.health_change,
            money_change=self.money_change,
            inventory_changes=list(self.inventory_changes),
            scenario=self.scenario,
        )


class CombatResolution(WireModel):
    outcome: CombatOutcomeKind = "victory"
    description: str = "The combat concludes..."
    consequences: list[str] = Field(default_factory=list)
    character_injuries: list[str] = Field(default_factory=list)
    character_status: CombatStatus = "alive"
    image_url: str | None = None
    image_prompt: str | None = None

    @field_validator("outcome", mode="before")
    @classmethod
    def _lenient_outcome(cls, value: Any) -> str:
        if isinstance(value, str) and value.lower() in ("victory", "defeat", "escape", "negotiation"):
            return value.lower()
        return "victory"

    @field_validator("character_status", mode="before")
    @classmethod
    def _lenient_status(cls, value: Any) -> str:
        if isinstance(value, str) and value.lower() in ("alive", "dead", "injured"):
            return value.lower()
        return "alive"

    @field_validator("description", mode="before")
    @classmethod
    def _lenient_description(cls, value: Any) -> str:
        return value if isinstance(value, str) and value.strip() else "The combat concludes..."

    @field_validator("image_url", "image_prompt", mode="before")
    @classmethod
    def _lenient_optional_text(cls, value: Any) -> str | None:
        return value if isinstance(value, str) else None

    @field_validator("consequences", "character_injuries", mode="before")
    @classmethod
    def _lenient_lists(cls, value: Any) -> list[str]:
        return _string_list(value)
