"""Tests for the Mistral chat-completions extractor."""

from __future__ import annotations

import json
from typing import List

import httpx
import pytest

from docscan.extraction.base import JsonSchema
from docscan.extraction.factory import FallbackJsonExtractor
from docscan.extraction.mistral import MistralJsonExtractor
from tests.helpers import FakeExtractor, json_transport, request_json

SCHEMA = JsonSchema(
    name="receipt",
    description="Receipt fields",
    definition={
        "type": "object",
        "properties": {"total": {"type": "number"}, "confidence": {"type": "number"}},
        "required": ["total"],
    },
)


def _completion(content: str, finish_reason: str = "stop") -> dict:
    return {
        "choices": [
            {"message": {"role": "assistant", "content": content}, "finish_reason": finish_reason}
        ]
    }


def _extractor(transport: httpx.BaseTransport) -> MistralJsonExtractor:
    return MistralJsonExtractor(
        api_key="secret-mistral-key-0123456789",
        base_url="https://mistral.test/",
        model="mistral-large-latest",
        transport=transport,
    )


def test_request_carries_schema_response_format():
    seen: List[httpx.Request] = []
    transport = json_transport(lambda _: _completion('{"total": 9.5}'), recorder=seen)

    result = _extractor(transport).extract("# RECEIPT\nTOTAL 9.50", SCHEMA)

    assert result.ok
    request = seen[0]
    assert str(request.url) == "https://mistral.test/v1/chat/completions"
    assert request.headers["Authorization"] == "Bearer secret-mistral-key-0123456789"
    body = request_json(request)
    assert body["model"] == "mistral-large-latest"
    assert body["temperature"] == 0
    assert [message["role"] for message in body["messages"]] == ["system", "user"]
    assert body["messages"][1]["content"] == "# RECEIPT\nTOTAL 9.50"
    response_format = body["response_format"]
    assert response_format["type"] == "json_schema"
    assert response_format["json_schema"]["name"] == "receipt"
    assert response_format["json_schema"]["schema"] == SCHEMA.definition
    assert response_format["json_schema"]["strict"] is True


def test_successful_extraction_is_scored():
    transport = json_transport(lambda _: _completion('{"total": 9.5}'))

    result = _extractor(transport).extract("text", SCHEMA)

    assert result.payload == {"total": 9.5}
    assert result.provider == "mistral"
    assert result.confidence == 0.97


def test_fenced_content_is_unwrapped():
    content = "```json\n" + json.dumps({"total": 3}) + "\n```"
    transport = json_transport(lambda _: _completion(content))

    result = _extractor(transport).extract("text", SCHEMA)

    assert result.payload == {"total": 3}


def test_missing_required_field_fails_strict_schema():
    transport = json_transport(lambda _: _completion('{"confidence": 0.4}'))

    result = _extractor(transport).extract("text", SCHEMA)

    assert not result.ok
    assert "total" in str(result.error)
    assert result.error.retryable is False


def test_server_error_is_retryable():
    transport = json_transport(lambda _: {"message": "overloaded"}, status_code=503)

    result = _extractor(transport).extract("text", SCHEMA)

    assert not result.ok
    assert result.error.retryable is True


def test_client_error_is_permanent():
    transport = json_transport(lambda _: {"message": "bad key"}, status_code=401)

    result = _extractor(transport).extract("text", SCHEMA)

    assert result.error is not None
    assert result.error.retryable is False
    assert "401" in str(result.error)


def test_timeout_is_retryable():
    def _raise(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    result = _extractor(httpx.MockTransport(_raise)).extract("text", SCHEMA)

    assert result.error is not None
    assert result.error.retryable is True
    assert "timed out" in str(result.error)


def test_empty_choices_fail():
    transport = json_transport(lambda _: {"choices": []})

    result = _extractor(transport).extract("text", SCHEMA)

    assert not result.ok
    assert "no choices" in str(result.error)


@pytest.mark.parametrize("message", ["oops", ["content"], None])
def test_malformed_message_fails(message):
    transport = json_transport(
        lambda _: {"choices": [{"message": message, "finish_reason": "stop"}]}
    )

    result = _extractor(transport).extract("text", SCHEMA)

    assert not result.ok
    assert result.error.retryable is False
    assert "malformed message" in str(result.error)


def test_malformed_primary_reply_still_reaches_fallback():
    transport = json_transport(lambda _: {"choices": [{"message": "oops"}]})
    fallback = FakeExtractor(payload={"total": 9.5}, name="cloudflare")

    result = FallbackJsonExtractor(_extractor(transport), fallback).extract("text", SCHEMA)

    assert result.ok
    assert result.provider == "cloudflare"


def test_unparseable_content_fails_without_repair():
    transport = json_transport(lambda _: _completion('{"total": 9.5,'))

    result = _extractor(transport).extract("text", SCHEMA)

    assert not result.ok
    assert "invalid JSON" in str(result.error)
