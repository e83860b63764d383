"""
Client for the completion endpoint, as used by a page session.

One POST per submission. No retry, no timeout; every failure becomes an
``Error`` answer carrying its description.
"""
from __future__ import annotations

import json
import logging
from typing import Optional, Union

import httpx

from mathgpt.answer import Error, Success
from mathgpt.schemas import ParseFailure, parse_api_return

logger = logging.getLogger(__name__)

PROMPT_ENDPOINT = "api/gpt3"


def serialize_exception(exc: BaseException) -> str:
    return json.dumps({"name": type(exc).__name__, "message": str(exc)}, ensure_ascii=False)


class ApiClient:
    def __init__(self, base_url: str, transport: Optional[httpx.AsyncBaseTransport] = None,
                 endpoint: str = PROMPT_ENDPOINT):
        self.base_url = base_url if base_url.endswith("/") else base_url + "/"
        self.transport = transport
        self.endpoint = endpoint

    async def ask(self, prompt: str) -> Union[Success, Error]:
        try:
            async with httpx.AsyncClient(base_url=self.base_url, transport=self.transport,
                                         timeout=None) as client:
                r = await client.post(self.endpoint, json={"prompt": prompt})
                data = r.json()
        except Exception as e:
            logger.warning("Prompt request failed: %s", type(e).__name__)
            return Error(serialize_exception(e))

        parsed = parse_api_return(data)
        if isinstance(parsed, ParseFailure):
            logger.warning("Unexpected response shape from %s", self.endpoint)
            return Error("Error parsing result: " + parsed.message)
        return Success(parsed.value.promptReturn)
