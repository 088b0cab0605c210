"""Test doubles shared across the Docscan test suite."""

from __future__ import annotations

import json
from typing import Any, Callable, Dict, List, Optional

import httpx

from docscan.errors import ExtractionError, OcrError
from docscan.extraction.base import ExtractionResult, JsonSchema
from docscan.ocr.client import OcrResult


class FakeOcrClient:
    """OCR client returning canned text or raising a canned error."""

    def __init__(
        self,
        text: str = "ACME MARKET\nTOTAL 42.99",
        confidence: float = 0.9,
        error: Optional[OcrError] = None,
    ) -> None:
        self.text = text
        self.confidence = confidence
        self.error = error
        self.calls: List[tuple[bytes, str]] = []

    def extract_text(self, image_bytes: bytes, mime_type: str) -> OcrResult:
        self.calls.append((image_bytes, mime_type))
        if self.error is not None:
            raise self.error
        return OcrResult(text=self.text, confidence=self.confidence)


class FakeExtractor:
    """Extractor returning a canned payload or a canned failure."""

    def __init__(
        self,
        payload: Optional[Dict[str, Any]] = None,
        confidence: float = 0.8,
        error: Optional[ExtractionError] = None,
        name: str = "fake",
    ) -> None:
        self.payload = payload or {}
        self.confidence = confidence
        self.error = error
        self.name = name
        self.calls: List[tuple[str, JsonSchema]] = []

    def extract(self, markdown: str, schema: JsonSchema) -> ExtractionResult:
        self.calls.append((markdown, schema))
        if self.error is not None:
            return ExtractionResult.failure(self.error, self.name)
        return ExtractionResult.success(dict(self.payload), self.confidence, self.name)


def receipt_payload(**overrides: Any) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "merchant": {"name": "Corner Grocery", "address": "12 Elm Road", "phone": "555-0100"},
        "timestamp": "2024-03-14T09:30:00Z",
        "totals": {"subtotal": 39.5, "tax": 3.49, "total": 42.99},
        "currency": "usd",
        "items": [
            {"description": "Organic Apples", "totalPrice": 12.5, "quantity": 2, "unit": "lbs"},
            {"description": "Whole Milk", "totalPrice": "$27.00"},
        ],
        "paymentMethod": "Credit Card",
        "confidence": 0.92,
    }
    payload.update(overrides)
    return payload


def check_payload(**overrides: Any) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "checkNumber": "4821",
        "date": "03/14/2024",
        "payee": "Northwind Traders",
        "payer": "Maria Garcia",
        "amount": 1234.5,
        "bankName": "Cascade Federal Credit Union",
        "micrLine": "⑆021000021⑆⑈4455667788⑈⑇4821⑇",
        "checkType": "Personal",
        "accountType": "CHECKING",
        "signature": True,
        "confidence": 0.9,
    }
    payload.update(overrides)
    return payload


def json_transport(
    handler: Callable[[httpx.Request], Any],
    *,
    status_code: int = 200,
    recorder: Optional[List[httpx.Request]] = None,
) -> httpx.MockTransport:
    """Mock transport answering every request with ``handler(request)`` as JSON."""

    def _handle(request: httpx.Request) -> httpx.Response:
        if recorder is not None:
            recorder.append(request)
        return httpx.Response(status_code, json=handler(request))

    return httpx.MockTransport(_handle)


def request_json(request: httpx.Request) -> Dict[str, Any]:
    return json.loads(request.content.decode("utf-8"))
