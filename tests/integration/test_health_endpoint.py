"""Integration tests for the health endpoint."""

from __future__ import annotations

from fastapi.testclient import TestClient

from docscan import __version__
from docscan.extraction.factory import FallbackJsonExtractor
from docscan.pipeline.scanner import CheckScanner, ReceiptScanner
from docscan.server.app import create_app
from tests.helpers import FakeExtractor, FakeOcrClient


def test_health_reports_version_and_extractors(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "version": __version__, "extractors": ["fake"]}


def test_health_lists_fallback_chain_once(settings):
    extractor = FallbackJsonExtractor(
        FakeExtractor(name="mistral"), FakeExtractor(name="cloudflare")
    )
    ocr = FakeOcrClient()
    app = create_app(
        scanners={
            "check": CheckScanner(ocr_client=ocr, extractor=extractor),
            "receipt": ReceiptScanner(ocr_client=ocr, extractor=extractor),
        },
        settings=settings,
    )

    response = TestClient(app).get("/health")

    assert response.json()["extractors"] == ["mistral", "cloudflare"]
