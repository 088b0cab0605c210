"""Tests for wiring scanners from settings."""

from __future__ import annotations

import pytest

from docscan.config import Settings
from docscan.errors import ConfigurationError
from docscan.extraction.factory import FallbackJsonExtractor
from docscan.extraction.mistral import MistralJsonExtractor
from docscan.pipeline.factory import build_scanners
from docscan.pipeline.scanner import CheckScanner, ReceiptScanner


def test_scanners_share_collaborators():
    settings = Settings(mistral_api_key="m" * 32, json_extractor_fallback=None)

    scanners = build_scanners(settings)

    assert isinstance(scanners["check"], CheckScanner)
    assert isinstance(scanners["receipt"], ReceiptScanner)
    assert scanners["check"].ocr_client is scanners["receipt"].ocr_client
    assert isinstance(scanners["receipt"].extractor, MistralJsonExtractor)


def test_fallback_extractor_used_when_both_configured():
    settings = Settings(
        mistral_api_key="m" * 32,
        cloudflare_account_id="acct",
        cloudflare_api_token="cf-token",
    )

    scanners = build_scanners(settings)

    assert isinstance(scanners["check"].extractor, FallbackJsonExtractor)


def test_missing_ocr_key_is_fatal():
    with pytest.raises(ConfigurationError, match="OCR is not configured"):
        build_scanners(Settings(cloudflare_account_id="acct", cloudflare_api_token="token"))


def test_unknown_extractor_is_fatal():
    with pytest.raises(ConfigurationError, match="Unsupported JSON extractor"):
        build_scanners(Settings(mistral_api_key="m" * 32, json_extractor="openai"))
