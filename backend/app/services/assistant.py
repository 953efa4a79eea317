"""Language-model client used for channel summaries and smart replies."""

from __future__ import annotations

import json
import logging
import re
from typing import Any

import httpx

from app.config import Settings, get_settings
from app.core.errors import UpstreamError

logger = logging.getLogger(__name__)

MAX_SUGGESTIONS = 3

SUMMARY_PROMPT = (
    "You summarize team chat conversations. Reply with a short summary of the "
    "main topics, decisions and open questions."
)
SMART_REPLY_PROMPT = (
    "You suggest short replies for the last message of a team chat. Reply only "
    "with a JSON array of up to three strings."
)

_FENCE_RE = re.compile(r"^```[a-zA-Z]*\s*|\s*```$")


def parse_suggestions(text: str) -> list[str]:
    """Extract reply suggestions from model output; anything malformed yields []."""

    cleaned = _FENCE_RE.sub("", text.strip()).strip()
    try:
        payload = json.loads(cleaned)
    except ValueError:
        return []
    if not isinstance(payload, list):
        return []
    suggestions = [item.strip() for item in payload if isinstance(item, str) and item.strip()]
    return suggestions[:MAX_SUGGESTIONS]


class AssistantClient:
    """Talks to an OpenAI-compatible chat completions endpoint."""

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        settings = settings or get_settings()
        self.base_url = str(settings.llm_api_url).rstrip("/") if settings.llm_api_url else None
        self.api_key = settings.llm_api_key
        self.model = settings.llm_model
        self.timeout = settings.llm_timeout_seconds
        self._transport = transport

    def _get_headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def _complete(self, system_prompt: str, transcript: str) -> str:
        if not self.base_url:
            raise UpstreamError("Language model is not configured")

        body = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": transcript},
            ],
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(
                    f"{self.base_url}/chat/completions",
                    headers=self._get_headers(),
                    json=body,
                )
                response.raise_for_status()
                payload: dict[str, Any] = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Language model request failed", exc_info=True)
            raise UpstreamError("Language model is unavailable") from exc

        try:
            return str(payload["choices"][0]["message"]["content"] or "")
        except (KeyError, IndexError, TypeError) as exc:
            logger.warning("Unexpected language model response: %s", payload)
            raise UpstreamError("Language model returned an unexpected response") from exc

    async def summarize(self, transcript: str) -> str:
        return (await self._complete(SUMMARY_PROMPT, transcript)).strip()

    async def suggest_replies(self, transcript: str) -> list[str]:
        return parse_suggestions(await self._complete(SMART_REPLY_PROMPT, transcript))


def get_assistant() -> AssistantClient:
    return AssistantClient()
