"""Character endpoints: create, read, list by player, status, portrait."""

import logging

from fastapi import APIRouter, HTTPException, Request

from backend import storage
from backend.characters import new_character
from neon_threads.images import build_portrait_prompt, portrait_hash

from .models import CreateCharacter, UpdateStatus

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/characters", status_code=201)
async def create_character(body: CreateCharacter):
    """Create a character with starting stats and a trade kit."""
    if not (body.background and body.augmentations and body.appearance and body.trade):
        raise HTTPException(400, "Missing required fields")
    char = new_character(
        background=body.background,
        augmentations=body.augmentations,
        appearance=body.appearance,
        trade=body.trade,
        optional_prompts=body.optional_prompts,
        player_id=body.player_id,
    )
    storage.save_character(char)
    logger.info("created character %s for player %s", char.id, char.player_id)
    return char


@router.get("/characters/player/{player_id}")
async def list_player_characters(player_id: str):
    """List a player's characters, newest first."""
    return storage.list_characters(player_id)


@router.get("/characters/{character_id}")
async def get_character(character_id: str):
    """Get a single character."""
    char = storage.get_character(character_id)
    if not char:
        raise HTTPException(404, "Character not found")
    return char


@router.patch("/characters/{character_id}/status")
async def update_status(character_id: str, body: UpdateStatus):
    """Set status. Death is final: a dead character cannot be revived."""
    if body.status not in ("alive", "dead"):
        raise HTTPException(400, "Invalid status")
    async with storage.character_lock(character_id):
        char = storage.get_character(character_id)
        if not char:
            raise HTTPException(404, "Character not found")
        if char.status == "dead" and body.status == "alive":
            raise HTTPException(409, "Dead characters cannot be revived")
        if char.status != body.status:
            char.status = body.status
            if body.status == "dead":
                char.health = 0
            storage.save_character(char)
    return {"success": True}


@router.get("/characters/{character_id}/portrait")
async def get_portrait(character_id: str, request: Request):
    """Return the character's portrait, regenerating it if their look changed."""
    images = request.app.state.images
    async with storage.character_lock(character_id):
        char = storage.get_character(character_id)
        if not char:
            raise HTTPException(404, "Character not found")
        current = portrait_hash(char)
        if char.portrait_url and char.portrait_hash == current:
            return {"portraitUrl": char.portrait_url, "cached": True}

        url = await images.generate(build_portrait_prompt(char), base_image=char.portrait_url)
        if url is None:
            raise HTTPException(502, "Portrait generation failed")
        char.portrait_url = url
        char.portrait_hash = current
        storage.save_character(char)
    return {"portraitUrl": url, "cached": False}
