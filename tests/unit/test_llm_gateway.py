"""Tests for the chat-completion gateway."""
from __future__ import annotations

import asyncio

import httpx
import pytest

from config import default_route
from llm_gateway import (
    CompletionClient,
    CredentialResolver,
    InsufficientPermissionError,
    InvalidCredentialError,
    MissingCredentialError,
    NetworkFailureError,
    ParseFailureError,
    RateLimitedError,
    UpstreamError,
)
from tests.conftest import TEST_KEY, FakeHttpClient, FakeResponse, completion


def _client(fake: FakeHttpClient, *, key: str = TEST_KEY, **route_updates) -> CompletionClient:
    route = default_route().model_copy(update={"retry_backoff_s": 0.0, **route_updates})
    return CompletionClient(route, CredentialResolver(default=key), fake)


def test_complete_sends_system_and_user_messages():
    fake = FakeHttpClient(completion("  What is a mutex?  "))
    text = asyncio.run(_client(fake).complete("Ask something", "You are an interviewer"))

    assert text == "  What is a mutex?  "
    call = fake.calls[0]
    assert call["url"] == "https://api.groq.com/openai/v1/chat/completions"
    assert call["headers"]["Authorization"] == f"Bearer {TEST_KEY}"
    body = call["json"]
    assert body["model"] == "llama3-8b-8192"
    assert body["temperature"] == pytest.approx(0.7)
    assert body["max_tokens"] == 1000
    assert body["messages"] == [
        {"role": "system", "content": "You are an interviewer"},
        {"role": "user", "content": "Ask something"},
    ]


def test_complete_without_system_prompt_sends_single_message():
    fake = FakeHttpClient(completion("ok"))
    asyncio.run(_client(fake).complete("Hi"))
    assert fake.calls[0]["json"]["messages"] == [{"role": "user", "content": "Hi"}]


def test_credential_override_wins():
    fake = FakeHttpClient(completion("ok"))
    asyncio.run(_client(fake).complete("Hi", credential_override="gsk_override"))
    assert fake.calls[0]["headers"]["Authorization"] == "Bearer gsk_override"


def test_missing_credential_fails_before_any_request():
    fake = FakeHttpClient(completion("never"))
    with pytest.raises(MissingCredentialError) as info:
        asyncio.run(_client(fake, key="").complete("Hi"))
    assert info.value.kind == "MISSING_API_KEY"
    assert fake.calls == []


@pytest.mark.parametrize(
    "status,error",
    [
        (401, InvalidCredentialError),
        (403, InsufficientPermissionError),
        (429, RateLimitedError),
        (500, UpstreamError),
        (404, UpstreamError),
    ],
)
def test_status_codes_map_to_error_kinds(status, error):
    fake = FakeHttpClient(FakeResponse(status, {"error": "nope"}))
    with pytest.raises(error) as info:
        asyncio.run(_client(fake).complete("Hi"))
    assert info.value.status == status


def test_transport_failure_becomes_network_error():
    fake = FakeHttpClient(httpx.ConnectError("connection refused"))
    with pytest.raises(NetworkFailureError) as info:
        asyncio.run(_client(fake).complete("Hi"))
    assert isinstance(info.value.__cause__, httpx.ConnectError)


@pytest.mark.parametrize(
    "response",
    [
        FakeResponse(200, ValueError("not json")),
        FakeResponse(200, {"choices": []}),
        FakeResponse(200, {"choices": [{"message": {"content": None}}]}),
        FakeResponse(200, ["unexpected"]),
    ],
)
def test_malformed_bodies_raise_parse_failure(response):
    with pytest.raises(ParseFailureError):
        asyncio.run(_client(FakeHttpClient(response)).complete("Hi"))


def test_rate_limit_is_retried_when_configured():
    fake = FakeHttpClient(FakeResponse(429), FakeResponse(429), completion("third time"))
    text = asyncio.run(_client(fake, max_retries=2).complete("Hi"))
    assert text == "third time"
    assert len(fake.calls) == 3


def test_retries_are_bounded():
    fake = FakeHttpClient(default=FakeResponse(429))
    with pytest.raises(RateLimitedError):
        asyncio.run(_client(fake, max_retries=1).complete("Hi"))
    assert len(fake.calls) == 2


def test_credential_errors_are_not_retried():
    fake = FakeHttpClient(FakeResponse(401), completion("unused"))
    with pytest.raises(InvalidCredentialError):
        asyncio.run(_client(fake, max_retries=3).complete("Hi"))
    assert len(fake.calls) == 1


def test_validate_reports_missing_and_bad_format_without_network():
    fake = FakeHttpClient()
    client = _client(fake, key="")

    missing = asyncio.run(client.validate())
    assert not missing.is_valid
    assert missing.error_kind == "MISSING_API_KEY"

    bad = asyncio.run(client.validate("sk-openai-style"))
    assert bad.error_kind == "INVALID_FORMAT"
    assert '"gsk_"' in bad.message
    assert fake.calls == []


def test_validate_sends_short_probe_without_temperature():
    fake = FakeHttpClient(completion("Hello"))
    result = asyncio.run(_client(fake).validate())

    assert result.is_valid
    assert result.error_kind is None
    body = fake.calls[0]["json"]
    assert body["max_tokens"] == 10
    assert "temperature" not in body
    assert body["messages"] == [{"role": "user", "content": "Hello, this is a test message."}]


@pytest.mark.parametrize(
    "response,kind",
    [
        (FakeResponse(401), "INVALID_API_KEY"),
        (FakeResponse(403), "INSUFFICIENT_PERMISSIONS"),
        (FakeResponse(429), "RATE_LIMIT_EXCEEDED"),
        (FakeResponse(502), "API_ERROR"),
        (FakeResponse(200, {"id": "x"}), "INVALID_RESPONSE"),
        (httpx.ReadTimeout("slow"), "NETWORK_ERROR"),
    ],
)
def test_validate_maps_failures_without_raising(response, kind):
    result = asyncio.run(_client(FakeHttpClient(response)).validate())
    assert not result.is_valid
    assert result.error_kind == kind


def test_validate_api_error_mentions_status():
    result = asyncio.run(_client(FakeHttpClient(FakeResponse(502))).validate())
    assert result.message == "API request failed with status 502"
