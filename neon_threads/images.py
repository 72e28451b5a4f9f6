"""Image-generation client for comic panels and character portraits.

Everything here is best effort: a provider failure is logged and reported as
None, never raised, so a missing picture cannot fail a story turn.

Provider protocol:
  POST {url}/images/generate  {"model", "prompt", "size", "n"}
  POST {url}/images/edit      same, plus "image" (URL of the picture to edit)
  Response carries either the picture ("image_url" / "url" / data[0].url)
  or a "task_id" to poll at GET {url}/status/{task_id} until
  status == "completed" (or "failed").
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
import re
from typing import Any, Literal

import httpx

from neon_threads.config import ProviderSettings
from neon_threads.models import Character, ComicPanel

logger = logging.getLogger(__name__)

SceneType = Literal["story", "combat", "outcome"]

CLOTHING_WORDS = ("cloth", "outfit", "armor", "jacket", "shirt", "pants")

_TEXTY_WORDS = re.compile(r"dialogue|speech|text|narration|caption", re.IGNORECASE)


def _visual(text: str, limit: int) -> str:
    """Strip words that make image models draw lettering."""
    text = _TEXTY_WORDS.sub("", text[:limit])
    return re.sub(r"[\"']", " ", text).strip()


def clothing_items(character: Character) -> list[str]:
    names = []
    for item in character.inventory:
        lowered = item.name.lower()
        if item.category == "misc" or any(w in lowered for w in CLOTHING_WORDS):
            names.append(item.name)
    return names


def portrait_hash(character: Character) -> str:
    """Fingerprint of everything that shows up in a portrait."""
    clothing = ",".join(sorted(clothing_items(character)))
    key = f"{character.appearance}|{character.augmentations}|{clothing}"
    return hashlib.md5(key.encode("utf-8")).hexdigest()


def build_panel_prompt(
    character: Character,
    scenario: str,
    scene_type: SceneType,
    panel: ComicPanel | None = None,
    outcome: str | None = None,
    consequences: list[str] | None = None,
) -> str:
    parts = [
        "Anime style cyberpunk comic book illustration",
        "pure visual illustration, absolutely no text, no speech bubbles, no caption boxes",
    ]
    if scene_type == "combat":
        parts.append("dynamic action scene, intense battle sequence")
    else:
        parts.append("cinematic dramatic scene")

    parts.append(f"character background context: {character.background[:150]}")
    parts.append(f"character trade/skills: {character.trade}")
    parts.append(f"character appearance: {character.appearance}")
    clothing = clothing_items(character)
    if clothing:
        parts.append(f"wearing: {', '.join(clothing)}")
    parts.append(f"cyberware and augmentations: {character.augmentations}")
    parts.append(f"location setting: {character.story_state.current_scene.replace('_', ' ')}")
    parts.append(f"story context: {_visual(scenario, 300)}")

    if panel is not None and panel.visual_description:
        parts.append(f"detailed visual scene composition: {_visual(panel.visual_description, 500)}")
    if outcome:
        parts.append(f"visual outcome context: {_visual(outcome, 150)}")
    if consequences:
        parts.append(f"visual consequences: {_visual(', '.join(consequences), 150)}")

    parts.append("vibrant neon colors, cel-shaded style, atmospheric lighting, comic book panel style")
    parts.append("illustration only, no text elements whatsoever")
    return ", ".join(parts)


def build_portrait_prompt(character: Character) -> str:
    parts = [
        "Anime style cyberpunk character portrait, head and shoulders",
        f"appearance: {character.appearance}",
        f"cyberware and augmentations: {character.augmentations}",
        f"trade: {character.trade}",
    ]
    clothing = clothing_items(character)
    if clothing:
        parts.append(f"wearing: {', '.join(clothing)}")
    parts.append("neon-lit background, detailed face, no text")
    return ", ".join(parts)


class ImageClient:
    """Async client for the image-generation provider."""

    def __init__(self, settings: ProviderSettings) -> None:
        self._settings = settings
        self._base_url = settings.url.rstrip("/")

    def _headers(self) -> dict[str, str]:
        headers: dict[str, str] = {"Content-Type": "application/json"}
        if self._settings.api_key:
            headers["Authorization"] = f"Bearer {self._settings.api_key}"
        return headers

    @staticmethod
    def _image_url(data: dict[str, Any]) -> str | None:
        url = data.get("image_url") or data.get("url")
        if isinstance(url, str) and url:
            return url
        items = data.get("data")
        if isinstance(items, list) and items and isinstance(items[0], dict):
            url = items[0].get("url")
            return url if isinstance(url, str) else None
        return None

    async def generate(self, prompt: str, base_image: str | None = None) -> str | None:
        """Generate (or edit, given base_image) a picture. Returns its URL or None."""
        endpoint = "edit" if base_image else "generate"
        url = f"{self._base_url}/images/{endpoint}"
        body: dict[str, Any] = {"model": self._settings.model, "prompt": prompt, "size": "1024x1024", "n": 1}
        if base_image:
            body["image"] = base_image
        logger.debug("image call endpoint=%s prompt_len=%d", endpoint, len(prompt))

        try:
            async with httpx.AsyncClient(timeout=self._settings.timeout) as client:
                resp = await client.post(url, json=body, headers=self._headers())
                resp.raise_for_status()
                data = resp.json()
                if not isinstance(data, dict):
                    logger.warning("image provider response is not a JSON object")
                    return None
                image_url = self._image_url(data)
                if image_url:
                    return image_url
                task_id = data.get("task_id") or data.get("id")
                if task_id:
                    return await self._poll(client, str(task_id))
        except httpx.HTTPStatusError as e:
            logger.warning("image provider returned HTTP %d", e.response.status_code)
            return None
        except httpx.HTTPError as e:
            logger.warning("image provider request failed: %s", e)
            return None
        except ValueError as e:
            logger.warning("image provider sent a body that is not JSON: %s", e)
            return None

        logger.warning("image provider response had neither image nor task id")
        return None

    async def _poll(self, client: httpx.AsyncClient, task_id: str) -> str | None:
        url = f"{self._base_url}/status/{task_id}"
        for _ in range(self._settings.poll_attempts):
            resp = await client.get(url, headers=self._headers())
            resp.raise_for_status()
            data = resp.json()
            if not isinstance(data, dict):
                logger.warning("image task %s status is not a JSON object", task_id)
                return None
            status = data.get("status")
            if status == "completed":
                return self._image_url(data)
            if status == "failed":
                logger.warning("image task %s failed: %s", task_id, data.get("error", "unknown error"))
                return None
            await asyncio.sleep(self._settings.poll_interval)
        logger.warning("image task %s did not finish after %d polls", task_id, self._settings.poll_attempts)
        return None
