"""Runtime settings.

Settings are read from the environment once (after python-dotenv has loaded
`.env`) and passed explicitly to whatever needs them. Provider clients get
their own ProviderSettings at construction time; nothing reads provider
configuration from module globals.

Environment variables:
  DATA_DIR            storage directory (default ./data)
  APP_URL             browser origin allowed by CORS, sent as HTTP-Referer
  NARRATIVE_URL       text LLM base URL (default OpenRouter)
  NARRATIVE_API_KEY   bearer token for the text LLM
  NARRATIVE_MODEL     model identifier
  NARRATIVE_FORMAT    "openai" (chat completions) or "koboldcpp"
  IMAGE_URL           image-generation base URL
  IMAGE_API_KEY       bearer token for the image API
  IMAGE_MODEL         image model identifier
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field

ProviderFormat = Literal["openai", "koboldcpp"]

DEFAULT_DATA_DIR = Path(__file__).parent.parent / "data"
DEFAULT_APP_URL = "http://localhost:3000"
DEFAULT_NARRATIVE_URL = "https://openrouter.ai/api/v1"
DEFAULT_NARRATIVE_MODEL = "xiaomi/mimo-v2-flash:free"
DEFAULT_IMAGE_URL = "https://gateway.nanobananapro.site/api/v1"
DEFAULT_IMAGE_MODEL = "nano-banana-free"


class ProviderSettings(BaseModel):
    """Connection settings for one external provider."""

    url: str
    api_key: str = ""
    model: str = ""
    format: ProviderFormat = "openai"
    max_tokens: int = 2048
    temperature: float = 0.8
    timeout: float = 120.0
    poll_attempts: int = 60  # image task polling only
    poll_interval: float = 2.0
    extra_headers: dict[str, str] = Field(default_factory=dict)


class Settings(BaseModel):
    data_dir: Path = DEFAULT_DATA_DIR
    app_url: str = DEFAULT_APP_URL
    narrative: ProviderSettings = Field(
        default_factory=lambda: ProviderSettings(url=DEFAULT_NARRATIVE_URL, model=DEFAULT_NARRATIVE_MODEL)
    )
    portrait: ProviderSettings = Field(
        default_factory=lambda: ProviderSettings(url=DEFAULT_IMAGE_URL, model=DEFAULT_IMAGE_MODEL, timeout=60.0)
    )

    @classmethod
    def from_env(cls) -> Settings:
        app_url = os.getenv("APP_URL", DEFAULT_APP_URL)
        return cls(
            data_dir=Path(os.getenv("DATA_DIR", str(DEFAULT_DATA_DIR))),
            app_url=app_url,
            narrative=ProviderSettings(
                url=os.getenv("NARRATIVE_URL", DEFAULT_NARRATIVE_URL),
                api_key=os.getenv("NARRATIVE_API_KEY", ""),
                model=os.getenv("NARRATIVE_MODEL", DEFAULT_NARRATIVE_MODEL),
                format=os.getenv("NARRATIVE_FORMAT", "openai"),
                extra_headers={"HTTP-Referer": app_url, "X-Title": "Neon Threads"},
            ),
            portrait=ProviderSettings(
                url=os.getenv("IMAGE_URL", DEFAULT_IMAGE_URL),
                api_key=os.getenv("IMAGE_API_KEY", ""),
                model=os.getenv("IMAGE_MODEL", DEFAULT_IMAGE_MODEL),
                timeout=60.0,
            ),
        )
