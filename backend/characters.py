"""Character creation and prompt context.

New characters start with 100/100 health, 500 eddies and a starting kit
picked by trade (see neon_threads.inventory). The full description is the
profile flattened into labelled lines; it is what the narrator sees.
"""

import uuid
from datetime import datetime, timezone

from neon_threads.inventory import starting_inventory
from neon_threads.models import (
    STARTING_HEALTH,
    STARTING_MONEY,
    Character,
    OptionalPrompts,
    StoryState,
)

# (field, label) in the order they appear in the description
OPTIONAL_PROMPT_LABELS = [
    ("enemies", "Enemies/Those who want them dead"),
    ("never_sell_out", "Never sell out"),
    ("secret", "Biggest secret/regret"),
    ("problem_handling", "Problem handling style"),
    ("reputation", "Street reputation"),
]


def full_description(
    background: str,
    augmentations: str,
    appearance: str,
    trade: str,
    optional_prompts: OptionalPrompts | None = None,
) -> str:
    lines = [
        f"Background: {background}",
        f"Augmentations/Cyberware: {augmentations}",
        f"Appearance: {appearance}",
        f"Trade/Skill: {trade}",
    ]
    lines.extend(optional_prompt_lines(optional_prompts))
    return "\n".join(lines)


def optional_prompt_lines(optional_prompts: OptionalPrompts | None) -> list[str]:
    if optional_prompts is None:
        return []
    lines = []
    for field, label in OPTIONAL_PROMPT_LABELS:
        value = getattr(optional_prompts, field)
        if value:
            lines.append(f"{label}: {value}")
    return lines


def new_character(
    background: str,
    augmentations: str,
    appearance: str,
    trade: str,
    optional_prompts: OptionalPrompts | None = None,
    player_id: str | None = None,
) -> Character:
    """Create an alive character with starting stats and a trade kit."""
    return Character(
        id=uuid.uuid4().hex,
        player_id=player_id or uuid.uuid4().hex,
        background=background,
        augmentations=augmentations,
        appearance=appearance,
        trade=trade,
        optional_prompts=optional_prompts,
        full_description=full_description(background, augmentations, appearance, trade, optional_prompts),
        created_at=datetime.now(timezone.utc).isoformat(),
        story_state=StoryState(),
        status="alive",
        story_history=[],
        inventory=starting_inventory(trade),
        money=STARTING_MONEY,
        health=STARTING_HEALTH,
        max_health=STARTING_HEALTH,
    )


def inventory_summary(character: Character) -> str:
    """One line listing every item, for prompts."""
    if not character.inventory:
        return "Empty"
    return ", ".join(
        f"{item.name} ({item.quantity}x) - {item.description}" for item in character.inventory
    )


def history_lines(character: Character, *, with_type: bool = True) -> list[str]:
    """Story history as prompt lines, oldest first."""
    if with_type:
        return [f"{e.type}: {e.description}" for e in character.story_history]
    return [e.description for e in character.story_history]
