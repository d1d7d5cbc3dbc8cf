from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from keyword_analyzer.core.errors import (
    ApiError,
    JobSetupError,
    MalformedResponseError,
    RateLimitedError,
    TransportError,
)
from keyword_analyzer.infrastructure.openrouter import SYSTEM_PROMPT, OpenRouterOracle


def _completion(content: object) -> dict:
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


def _run_answer(handler, keyword: str = "running gear", topic: str = "running") -> str:
    async def run() -> str:
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http_client:
            oracle = OpenRouterOracle(
                "secret",
                referer="https://example.test",
                http_client=http_client,
            )
            return await oracle.answer(keyword, topic)

    return asyncio.run(run())


def test_answer_posts_chat_completion_request():
    captured: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["url"] = str(request.url)
        captured["headers"] = request.headers
        captured["body"] = json.loads(request.content.decode("utf-8"))
        return httpx.Response(200, json=_completion("true"))

    answer = _run_answer(handler)

    assert answer == "true"
    assert captured["url"] == "https://openrouter.ai/api/v1/chat/completions"
    headers = captured["headers"]
    assert headers["authorization"] == "Bearer secret"
    assert headers["http-referer"] == "https://example.test"
    assert headers["x-title"] == "Keyword Analyzer"
    body = captured["body"]
    assert body["model"] == "mistralai/mistral-7b-instruct"
    assert body["max_tokens"] == 5
    assert body["messages"][0] == {"role": "system", "content": SYSTEM_PROMPT}
    assert 'Topic: "running"' in body["messages"][1]["content"]
    assert 'Keyword: "running gear"' in body["messages"][1]["content"]


def test_rate_limit_response_raises_rate_limited():
    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(429, headers={"Retry-After": "12"}, json={"error": "slow down"})

    with pytest.raises(RateLimitedError) as excinfo:
        _run_answer(handler)

    assert excinfo.value.retry_after == 12.0


def test_server_error_raises_api_error_with_status():
    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(503, text="unavailable")

    with pytest.raises(ApiError) as excinfo:
        _run_answer(handler)

    assert excinfo.value.status == 503
    assert excinfo.value.reason == "API error: 503"


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, json={"choices": []}),
        httpx.Response(200, json={"id": "x"}),
        httpx.Response(200, json=_completion(None)),
        httpx.Response(200, text="not json"),
    ],
)
def test_malformed_payloads_raise_malformed_response(response):
    with pytest.raises(MalformedResponseError):
        _run_answer(lambda _: response)


def test_connection_failure_raises_transport_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(TransportError):
        _run_answer(handler)


def test_timeout_raises_transport_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(TransportError):
        _run_answer(handler)


def test_check_ready_requires_api_key():
    oracle = OpenRouterOracle(None)
    with pytest.raises(JobSetupError):
        oracle.check_ready()
    asyncio.run(oracle.aclose())

    configured = OpenRouterOracle("secret")
    configured.check_ready()
    asyncio.run(configured.aclose())


def test_api_base_must_include_scheme_and_host():
    with pytest.raises(ValueError):
        OpenRouterOracle("secret", api_base="openrouter.ai")
