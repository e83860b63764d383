import asyncio
import json

import httpx
import pytest

from conftest import completion_transport, make_completion
from mathgpt.completion import CompletionError, CompletionNotConfigured, CompletionService, extract_text
from mathgpt.config import Settings


def test_complete_sends_prompt_and_strips_text():
    transport = completion_transport(text="\n\nx = 2\n")
    service = make_completion(transport)
    assert asyncio.run(service.complete("Find x in the following: $$x+1=3$$")) == "x = 2"

    request = transport.calls[0]
    assert request.headers["Authorization"] == "Bearer sk-test"
    body = json.loads(request.content)
    assert body["prompt"] == "Find x in the following: $$x+1=3$$"
    assert body["model"] == "text-davinci-003"
    assert body["max_tokens"] == 1000


def test_missing_key():
    service = make_completion(completion_transport(), api_key="")
    with pytest.raises(CompletionNotConfigured):
        asyncio.run(service.complete("p"))


def test_upstream_error_status():
    service = make_completion(completion_transport(status=429))
    with pytest.raises(CompletionError, match="429"):
        asyncio.run(service.complete("p"))


def test_upstream_unreachable():
    def handler(request):
        raise httpx.ConnectTimeout("timed out")

    service = make_completion(httpx.MockTransport(handler))
    with pytest.raises(CompletionError, match="ConnectTimeout"):
        asyncio.run(service.complete("p"))


def test_extract_text_accepts_chat_replies():
    assert extract_text({"choices": [{"message": {"content": " 7 "}}]}) == "7"


@pytest.mark.parametrize("data", [[], {}, {"choices": []}, {"choices": [{"index": 0}]}])
def test_extract_text_rejects_unusable_bodies(data):
    with pytest.raises(CompletionError):
        extract_text(data)


def test_from_settings(monkeypatch):
    monkeypatch.setenv("COMPLETION_MODEL", "gpt-3.5-turbo-instruct")
    monkeypatch.setenv("COMPLETION_TEMPERATURE", "0.5")
    service = CompletionService.from_settings(Settings())
    assert service.model == "gpt-3.5-turbo-instruct"
    assert service.temperature == 0.5
