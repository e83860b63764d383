import json
import random

import httpx
import pytest

pytest.importorskip("fastapi")

from fastapi.testclient import TestClient

from mathgpt.client import ApiClient
from mathgpt.completion import CompletionService
from mathgpt.server import app
from mathgpt.sessions import SessionRegistry


def prompt_transport(reply):
    """Stand-in for POST /api/gpt3. ``reply`` maps the prompt to an httpx.Response."""
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(json.loads(request.content)["prompt"])
        return reply(seen[-1])

    transport = httpx.MockTransport(handler)
    transport.seen = seen
    return transport


def completion_transport(text="42", status=200):
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        if status != 200:
            return httpx.Response(status, json={"error": {"message": "upstream"}})
        return httpx.Response(200, json={"choices": [{"text": text}]})

    transport = httpx.MockTransport(handler)
    transport.calls = calls
    return transport


def make_completion(transport, api_key="sk-test"):
    return CompletionService(
        url="https://completions.test/v1/completions",
        api_key=api_key,
        model="text-davinci-003",
        transport=transport,
    )


@pytest.fixture
def client():
    """Test client with fresh sessions and a stubbed completion endpoint."""
    app.state.sessions = SessionRegistry(rng=random.Random(0))
    app.state.completion = None
    app.state.api_client = ApiClient(
        "http://mathgpt.test/",
        transport=prompt_transport(lambda prompt: httpx.Response(200, json={"promptReturn": "\\sqrt{2}"})),
    )
    with TestClient(app) as c:
        yield c
    app.state.completion = None
    app.state.api_client = None
