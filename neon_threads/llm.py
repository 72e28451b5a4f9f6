"""LLM client — HTTP connection to the narrative provider.

The narrative service calls an LLM callable matching the protocol:

    async def __call__(self, stage: str, prompt: str) -> str: ...

`stage` identifies which request is calling ("scenario", "action",
"combat"). HttpLLM only uses it for logging.

Production code constructs an HttpLLM from ProviderSettings and passes it to
NarrativeService. Tests use a stub callable instead.
"""

from __future__ import annotations

import logging
from typing import Protocol

import httpx

from neon_threads.config import ProviderSettings

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Protocol — every LLM implementation must match this signature
# ---------------------------------------------------------------------------

class LLM(Protocol):
    async def __call__(self, stage: str, prompt: str) -> str: ...


# ---------------------------------------------------------------------------
# HttpLLM — connects to a real backend
# ---------------------------------------------------------------------------

class HttpLLM:
    """Async HTTP client for text-generation backends.

    Supported formats:
      "openai"     — POST {url}/chat/completions
                     {"model": ..., "messages": [...], "max_tokens": ..., "temperature": ...}
                     Response: {"choices": [{"message": {"content": "..."}}]}
                     Works with OpenRouter and other OpenAI-compatible gateways.
      "koboldcpp"  — POST {url}/api/v1/generate  {"prompt": ...}
                     Response: {"results": [{"text": "..."}]}

    Args:
        settings: Provider URL, key, model, format, sampling and timeout.
    """

    def __init__(self, settings: ProviderSettings) -> None:
        self._settings = settings
        self._base_url = settings.url.rstrip("/")

    def _headers(self) -> dict[str, str]:
        headers: dict[str, str] = {"Content-Type": "application/json"}
        headers.update(self._settings.extra_headers)
        if self._settings.api_key:
            headers["Authorization"] = f"Bearer {self._settings.api_key}"
        return headers

    def _build_request(self, prompt: str) -> tuple[str, dict]:
        """Return (url, body) for the configured format."""
        if self._settings.format == "koboldcpp":
            return f"{self._base_url}/api/v1/generate", {"prompt": prompt}

        body: dict = {
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": self._settings.max_tokens,
            "temperature": self._settings.temperature,
        }
        if self._settings.model:
            body["model"] = self._settings.model
        return f"{self._base_url}/chat/completions", body

    def _parse_response(self, data: object) -> str:
        """Extract the completion text from the response body."""
        if self._settings.format == "koboldcpp":
            results = data.get("results") if isinstance(data, dict) else None
            first = results[0] if isinstance(results, list) and results else None
            if not isinstance(first, dict) or not isinstance(first.get("text"), str):
                raise LLMError("Unexpected response format from KoboldCpp backend")
            return first["text"]

        choices = data.get("choices") if isinstance(data, dict) else None
        first = choices[0] if isinstance(choices, list) and choices else None
        message = first.get("message") if isinstance(first, dict) else None
        if not isinstance(message, dict):
            raise LLMError("Unexpected response format from OpenAI-compatible backend")
        content = message.get("content")
        return content if isinstance(content, str) else ""

    async def __call__(self, stage: str, prompt: str) -> str:
        url, body = self._build_request(prompt)
        logger.debug("llm call stage=%s url=%s prompt_len=%d", stage, url, len(prompt))

        try:
            async with httpx.AsyncClient(timeout=self._settings.timeout) as client:
                resp = await client.post(url, json=body, headers=self._headers())
                resp.raise_for_status()
        except httpx.ConnectError as e:
            raise LLMError(f"Cannot connect to LLM backend at {self._base_url}") from e
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            raise LLMError(f"LLM backend returned HTTP {status}", status_code=status) from e
        except httpx.TimeoutException as e:
            raise LLMError(f"LLM backend timed out after {self._settings.timeout}s") from e
        except httpx.HTTPError as e:
            raise LLMError(f"LLM request failed: {e}") from e

        try:
            data = resp.json()
        except ValueError as e:
            raise LLMError("LLM backend sent a body that is not JSON") from e
        text = self._parse_response(data)
        logger.debug("llm response stage=%s len=%d", stage, len(text))
        return text


# ---------------------------------------------------------------------------
# LLMError — raised by HttpLLM for all connection and protocol failures
# ---------------------------------------------------------------------------

class LLMError(RuntimeError):
    """Raised when the LLM backend cannot be reached or returns an error.

    `status_code` is set when the backend answered with an HTTP error.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
