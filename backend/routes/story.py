"""Story endpoints: scenario, player action, combat."""

from fastapi import APIRouter, HTTPException, Request

from backend.pipeline import (
    CharacterDeadError,
    CharacterNotFound,
    run_action,
    run_combat,
    run_scenario,
)
from neon_threads.llm import LLMError

from .models import ActionBody, CombatBody

router = APIRouter()


async def _run(coro):
    try:
        return await coro
    except CharacterNotFound:
        raise HTTPException(404, "Character not found")
    except CharacterDeadError as e:
        raise HTTPException(400, str(e))
    except LLMError as e:
        raise HTTPException(502, str(e))


@router.post("/story/{character_id}/scenario")
async def scenario(character_id: str, request: Request):
    """Generate the next six-panel scenario for a character."""
    state = request.app.state
    return await _run(run_scenario(character_id, state.narrative, state.images))


@router.post("/story/{character_id}/action")
async def action(character_id: str, body: ActionBody, request: Request):
    """Resolve a player action and apply its health/money/inventory outcome."""
    if not body.action:
        raise HTTPException(400, "Action is required")
    state = request.app.state
    return await _run(run_action(character_id, body.action, state.narrative, state.images))


@router.post("/story/{character_id}/combat")
async def combat(character_id: str, body: CombatBody, request: Request):
    """Resolve a fight using the player's tactics."""
    if body.combat_scenario is None or not body.player_tactics:
        raise HTTPException(400, "Combat scenario and player tactics are required")
    state = request.app.state
    return await _run(run_combat(
        character_id, body.combat_scenario, body.player_tactics, state.narrative, state.images,
    ))
