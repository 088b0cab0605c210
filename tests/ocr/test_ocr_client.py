"""Tests for the Mistral OCR client."""

from __future__ import annotations

import base64
from typing import List

import httpx
import pytest

from docscan.errors import OcrError
from docscan.ocr.client import MistralOcrClient, is_supported_mime_type
from tests.helpers import json_transport, request_json

IMAGE = b"\x89PNG fake image bytes"


def _client(transport: httpx.BaseTransport) -> MistralOcrClient:
    return MistralOcrClient(
        api_key="ocr-key-0123456789abcdef",
        base_url="https://mistral.test",
        model="mistral-ocr-latest",
        transport=transport,
    )


def _pages(*pages: dict) -> dict:
    return {"pages": list(pages), "model": "mistral-ocr-latest"}


def test_image_is_sent_as_data_url():
    seen: List[httpx.Request] = []
    transport = json_transport(
        lambda _: _pages({"index": 0, "markdown": "# ACME\nTOTAL 4.00"}), recorder=seen
    )

    result = _client(transport).extract_text(IMAGE, "image/png")

    assert result.text == "# ACME\nTOTAL 4.00"
    request = seen[0]
    assert str(request.url) == "https://mistral.test/v1/ocr"
    assert request.headers["Authorization"] == "Bearer ocr-key-0123456789abcdef"
    body = request_json(request)
    assert body["model"] == "mistral-ocr-latest"
    encoded = base64.b64encode(IMAGE).decode("ascii")
    assert body["document"] == {
        "type": "image_url",
        "image_url": f"data:image/png;base64,{encoded}",
    }


def test_pdf_is_sent_as_document_url():
    seen: List[httpx.Request] = []
    transport = json_transport(lambda _: _pages({"index": 0, "markdown": "page"}), recorder=seen)

    _client(transport).extract_text(b"%PDF-1.7", "application/pdf; charset=binary")

    document = request_json(seen[0])["document"]
    assert document["type"] == "document_url"
    assert document["document_url"].startswith("data:application/pdf;base64,")


def test_pages_are_joined_in_index_order():
    transport = json_transport(
        lambda _: _pages(
            {"index": 1, "markdown": "second", "confidence": 0.6},
            {"index": 0, "markdown": "first", "confidence": 0.8},
        )
    )

    result = _client(transport).extract_text(IMAGE, "image/jpeg")

    assert result.text == "first\n\nsecond"
    assert [page.index for page in result.pages] == [0, 1]
    assert result.confidence == pytest.approx(0.7)


def test_unscored_pages_count_as_confident():
    transport = json_transport(
        lambda _: _pages({"index": 0, "markdown": "text", "dimensions": {"width": 10, "height": 20}})
    )

    result = _client(transport).extract_text(IMAGE, "image/webp")

    assert result.confidence == 1.0
    assert (result.pages[0].width, result.pages[0].height) == (10, 20)


def test_empty_text_is_an_error():
    transport = json_transport(lambda _: _pages({"index": 0, "markdown": "   "}))

    with pytest.raises(OcrError, match="no text"):
        _client(transport).extract_text(IMAGE, "image/png")


def test_missing_pages_is_an_error():
    transport = json_transport(lambda _: {"pages": []})

    with pytest.raises(OcrError, match="empty page set"):
        _client(transport).extract_text(IMAGE, "image/png")


@pytest.mark.parametrize(("status_code", "retryable"), [(429, True), (502, True), (400, False)])
def test_http_failures_are_classified(status_code, retryable):
    transport = json_transport(lambda _: {"detail": "nope"}, status_code=status_code)

    with pytest.raises(OcrError) as excinfo:
        _client(transport).extract_text(IMAGE, "image/png")

    assert excinfo.value.retryable is retryable


def test_timeout_is_retryable():
    def _raise(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    with pytest.raises(OcrError, match="timed out") as excinfo:
        _client(httpx.MockTransport(_raise)).extract_text(IMAGE, "image/png")

    assert excinfo.value.retryable is True


def test_connection_failure_is_retryable():
    def _raise(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(OcrError, match="unreachable") as excinfo:
        _client(httpx.MockTransport(_raise)).extract_text(IMAGE, "image/png")

    assert excinfo.value.retryable is True


def test_rejects_empty_and_unsupported_input_without_calling_upstream():
    seen: List[httpx.Request] = []
    client = _client(json_transport(lambda _: {}, recorder=seen))

    with pytest.raises(OcrError, match="empty"):
        client.extract_text(b"", "image/png")
    with pytest.raises(OcrError, match="Unsupported"):
        client.extract_text(IMAGE, "image/gif")

    assert seen == []


@pytest.mark.parametrize(
    ("mime_type", "expected"),
    [
        ("image/jpeg", True),
        ("IMAGE/PNG", True),
        ("image/heic", True),
        ("application/pdf; charset=binary", True),
        ("image/gif", False),
        ("", False),
        (None, False),
    ],
)
def test_is_supported_mime_type(mime_type, expected):
    assert is_supported_mime_type(mime_type) is expected
