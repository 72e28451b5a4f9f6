from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend import storage
from backend.narrative import NarrativeService
from backend.routes import router
from neon_threads.config import Settings
from neon_threads.images import ImageClient
from neon_threads.llm import HttpLLM

load_dotenv(Path(__file__).parent.parent / ".env")


def create_app(data_dir: Path | None = None, settings: Settings | None = None) -> FastAPI:
    settings = settings or Settings.from_env()
    storage.init_storage(data_dir or settings.data_dir)

    app = FastAPI(title="Neon Threads")
    app.state.settings = settings
    app.state.narrative = NarrativeService(HttpLLM(settings.narrative))
    app.state.images = ImageClient(settings.portrait)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.app_url],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(router, prefix="/api")
    return app


# Default app instance for uvicorn (uses DATA_DIR env var or default)
app = create_app()
