"""
Remote completion service behind POST /api/gpt3.

Speaks the OpenAI completions protocol; chat-style replies
(``choices[0].message.content``) are accepted as well.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from mathgpt.config import Settings

logger = logging.getLogger(__name__)


class CompletionError(Exception):
    """The upstream service failed or answered with something unusable."""


class CompletionNotConfigured(CompletionError):
    pass


def extract_text(data: Any) -> str:
    if not isinstance(data, dict):
        raise CompletionError("completion body is not an object")
    choices = data.get("choices") or []
    if not choices or not isinstance(choices[0], dict):
        raise CompletionError("completion has no choices")
    first = choices[0]
    text = first.get("text")
    if text is None:
        text = (first.get("message") or {}).get("content")
    if not isinstance(text, str):
        raise CompletionError("completion choice has no text")
    return text.strip()


class CompletionService:
    def __init__(self, url: str, api_key: str, model: str, max_tokens: int = 1000,
                 temperature: float = 0.0, timeout: float = 60.0,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.url = url
        self.api_key = api_key
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.timeout = timeout
        self.transport = transport

    @classmethod
    def from_settings(cls, settings: Settings,
                      transport: Optional[httpx.AsyncBaseTransport] = None) -> "CompletionService":
        return cls(
            url=settings.COMPLETION_URL,
            api_key=settings.OPENAI_API_KEY,
            model=settings.COMPLETION_MODEL,
            max_tokens=settings.COMPLETION_MAX_TOKENS,
            temperature=settings.COMPLETION_TEMPERATURE,
            timeout=settings.COMPLETION_TIMEOUT,
            transport=transport,
        )

    def payload(self, prompt: str) -> Dict[str, Any]:
        return {
            "model": self.model,
            "prompt": prompt,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
        }

    async def complete(self, prompt: str) -> str:
        if not self.api_key:
            raise CompletionNotConfigured("OPENAI_API_KEY is not set")

        headers = {"Authorization": f"Bearer {self.api_key}"}
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                r = await client.post(self.url, json=self.payload(prompt), headers=headers)
                r.raise_for_status()
                data = r.json()
        except httpx.HTTPStatusError as e:
            logger.warning("Completion service answered %s", e.response.status_code)
            raise CompletionError(f"completion service answered {e.response.status_code}") from e
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Completion request failed: %s", type(e).__name__)
            raise CompletionError(f"completion request failed: {type(e).__name__}") from e

        return extract_text(data)
