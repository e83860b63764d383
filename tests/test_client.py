"""ApiClient: one POST, validated body, every failure becomes an Error."""
import asyncio
import json

import httpx

from conftest import prompt_transport
from mathgpt.answer import Error, Success
from mathgpt.client import ApiClient, serialize_exception
from mathgpt.schemas import ParseFailure, ParseOk, parse_api_return


def ask(reply, prompt="Solve the following: $$1+1$$"):
    transport = prompt_transport(reply)
    client = ApiClient("http://mathgpt.test", transport=transport)
    return asyncio.run(client.ask(prompt)), transport


def test_success():
    answer, transport = ask(lambda p: httpx.Response(200, json={"promptReturn": "42"}))
    assert answer == Success("42")
    assert transport.seen == ["Solve the following: $$1+1$$"]


def test_missing_field_is_parse_error():
    answer, _ = ask(lambda p: httpx.Response(200, json={"foo": "bar"}))
    assert isinstance(answer, Error)
    assert answer.error.startswith("Error parsing result: ")
    assert "promptReturn" in answer.error


def test_non_string_field_is_parse_error():
    answer, _ = ask(lambda p: httpx.Response(200, json={"promptReturn": 42}))
    assert isinstance(answer, Error)
    assert answer.error.startswith("Error parsing result: ")


def test_error_status_body_is_validated_not_raised():
    answer, _ = ask(lambda p: httpx.Response(502, json={"detail": "upstream"}))
    assert isinstance(answer, Error)
    assert answer.error.startswith("Error parsing result: ")


def test_non_json_body():
    answer, _ = ask(lambda p: httpx.Response(200, text="<html>oops</html>"))
    assert isinstance(answer, Error)
    assert json.loads(answer.error)["name"] == "JSONDecodeError"


def test_network_failure_is_serialized():
    def reply(prompt):
        raise httpx.ConnectError("connection refused")

    answer, _ = ask(reply)
    assert answer == Error(serialize_exception(httpx.ConnectError("connection refused")))
    assert json.loads(answer.error) == {"name": "ConnectError", "message": "connection refused"}


def test_posts_to_relative_endpoint():
    urls = []

    def handler(request):
        urls.append(str(request.url))
        return httpx.Response(200, json={"promptReturn": "ok"})

    client = ApiClient("http://host.test/app", transport=httpx.MockTransport(handler))
    asyncio.run(client.ask("p"))
    assert urls == ["http://host.test/app/api/gpt3"]


def test_parse_api_return_is_fallible():
    ok = parse_api_return({"promptReturn": "x"})
    assert isinstance(ok, ParseOk) and ok.value.promptReturn == "x"
    assert isinstance(parse_api_return(["promptReturn"]), ParseFailure)
    assert isinstance(parse_api_return(None), ParseFailure)
