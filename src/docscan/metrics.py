"""Prometheus metrics definitions for Docscan."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

REQUEST_COUNT = Counter(
    "docscan_http_requests_total",
    "Total number of HTTP requests processed by the Docscan API",
    ["method", "path", "status"],
)

REQUEST_LATENCY = Histogram(
    "docscan_http_request_duration_seconds",
    "Latency of HTTP requests processed by the Docscan API",
    ["method", "path"],
)

SCANS = Counter(
    "docscan_scans_total",
    "Number of document scans executed by document type and outcome",
    ["document_type", "status"],
)

HALLUCINATIONS_FLAGGED = Counter(
    "docscan_hallucinations_flagged_total",
    "Number of extraction results flagged as likely fabricated",
    ["document_type"],
)

EXTRACTOR_FALLBACKS = Counter(
    "docscan_extractor_fallbacks_total",
    "Number of times the fallback JSON extractor was used",
    ["primary", "fallback", "reason"],
)

UPSTREAM_LATENCY = Histogram(
    "docscan_upstream_request_duration_seconds",
    "Latency of outbound OCR and extraction calls",
    ["provider", "operation"],
)

__all__ = [
    "REQUEST_COUNT",
    "REQUEST_LATENCY",
    "SCANS",
    "HALLUCINATIONS_FLAGGED",
    "EXTRACTOR_FALLBACKS",
    "UPSTREAM_LATENCY",
]
