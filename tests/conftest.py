"""Shared pytest fixtures for the Docscan test suite."""

from __future__ import annotations

import os
from typing import Dict, Generator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from docscan.config import Settings, get_settings
from docscan.pipeline.scanner import CheckScanner, DocumentScanner, ReceiptScanner
from docscan.server.app import create_app
from tests.helpers import FakeExtractor, FakeOcrClient, check_payload, receipt_payload

_ENV_PREFIXES = ("DOCSCAN_",)
_ENV_NAMES = ("MISTRAL_API_KEY",)


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Keep host environment variables and .env files out of every test."""

    for name in list(os.environ):
        if name.startswith(_ENV_PREFIXES) or name in _ENV_NAMES:
            monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture()
def settings() -> Settings:
    return Settings(mistral_api_key="test-mistral-key-0123456789", log_requests=True)


@pytest.fixture()
def ocr_client() -> FakeOcrClient:
    return FakeOcrClient()


@pytest.fixture()
def receipt_extractor() -> FakeExtractor:
    return FakeExtractor(payload=receipt_payload(), confidence=0.85)


@pytest.fixture()
def check_extractor() -> FakeExtractor:
    return FakeExtractor(payload=check_payload(), confidence=0.85)


@pytest.fixture()
def scanners(ocr_client, receipt_extractor, check_extractor) -> Dict[str, DocumentScanner]:
    return {
        "check": CheckScanner(ocr_client=ocr_client, extractor=check_extractor),
        "receipt": ReceiptScanner(ocr_client=ocr_client, extractor=receipt_extractor),
    }


@pytest.fixture()
def app(scanners, settings) -> Generator[FastAPI, None, None]:
    """Create a new FastAPI app instance for each test and reset overrides."""

    application = create_app(scanners=scanners, settings=settings)
    yield application
    application.dependency_overrides.clear()


@pytest.fixture()
def client(app) -> TestClient:
    """Return a test client bound to the FastAPI app."""

    return TestClient(app)
