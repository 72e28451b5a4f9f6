"""FastAPI API endpoints under /api.

Endpoint groups: health, characters (create / read / list by player /
status / portrait) and story (scenario / action / combat). Story endpoints
run the turn pipeline in backend.pipeline and surface the character's new
health, money and status next to the narrative.

Provider clients live on app.state (narrative, images); see backend.app.
"""

from fastapi import APIRouter

from .characters import router as characters_router
from .health import router as health_router
from .story import router as story_router

router = APIRouter()
router.include_router(health_router)
router.include_router(characters_router)
router.include_router(story_router)
