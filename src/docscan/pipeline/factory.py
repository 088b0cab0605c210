"""Composition root wiring OCR, extraction and scanners from settings."""

from __future__ import annotations

import logging
from typing import Dict

import httpx

from docscan.config import Settings
from docscan.errors import ConfigurationError
from docscan.extraction.factory import JsonExtractorFactory, validate_api_key
from docscan.ocr.client import MistralOcrClient
from docscan.pipeline.scanner import CheckScanner, DocumentScanner, ReceiptScanner

logger = logging.getLogger(__name__)


def build_scanners(
    settings: Settings,
    *,
    transport: httpx.BaseTransport | None = None,
) -> Dict[str, DocumentScanner]:
    """Create one scanner per document type sharing a single OCR client and extractor.

    Raises ``ConfigurationError`` when OCR cannot be configured or no extractor is usable.
    """

    key_status = validate_api_key(settings.mistral_api_key)
    if not key_status.available:
        raise ConfigurationError(f"OCR is not configured: {key_status.reason}")

    ocr_client = MistralOcrClient(
        api_key=settings.mistral_api_key or "",
        base_url=settings.mistral_base_url,
        model=settings.ocr_model,
        timeout=settings.request_timeout,
        transport=transport,
    )
    extractor = JsonExtractorFactory(settings, transport=transport).create(
        settings.json_extractor,
        settings.json_extractor_fallback,
    )
    logger.info("Scanners ready with extractor=%s ocr_model=%s", extractor.name, settings.ocr_model)
    return {
        "check": CheckScanner(ocr_client=ocr_client, extractor=extractor),
        "receipt": ReceiptScanner(ocr_client=ocr_client, extractor=extractor),
    }


__all__ = ["build_scanners"]
